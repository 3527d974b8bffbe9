"""
Ingredient Sources Trace
Expands a finished product's upstream trace into one row per ingredient,
with the product's final location and each ingredient's source location.
"""

from .client import TraceService, TraceServiceClient, TraceServiceError
from .collector import ParentAliasIndex, collect_asset_ids, collect_trace_assets
from .config import Settings
from .epc import ProductIdentity, decode_item_tag
from .flattener import IngredientRowFlattener
from .logging import configure_logging, configure_logging_from_settings
from .master_data import MasterData, build_master_data
from .models import (
    Event,
    EventRef,
    Location,
    LocationResult,
    ParentAlias,
    Product,
    TraceFilter,
    TraceNode,
)
from .pipeline import get_ingredient_sources
from .report import HEADERS, IngredientSourcesReport, ReportRow
from .resolver import resolve_final, resolve_source

__all__ = [
    'Event',
    'EventRef',
    'HEADERS',
    'IngredientRowFlattener',
    'IngredientSourcesReport',
    'Location',
    'LocationResult',
    'MasterData',
    'ParentAlias',
    'ParentAliasIndex',
    'Product',
    'ProductIdentity',
    'ReportRow',
    'Settings',
    'TraceFilter',
    'TraceNode',
    'TraceService',
    'TraceServiceClient',
    'TraceServiceError',
    'build_master_data',
    'collect_asset_ids',
    'collect_trace_assets',
    'configure_logging',
    'configure_logging_from_settings',
    'decode_item_tag',
    'get_ingredient_sources',
    'resolve_final',
    'resolve_source',
]
