"""
Ingredient sources: for every finished item matching a filter, trace it
upstream and report each raw ingredient's source location next to the
finished item's final location.
"""

from typing import Optional

import structlog

from .client import TraceService
from .collector import ParentAliasIndex, collect_trace_assets
from .config import Settings
from .config import settings as default_settings
from .flattener import IngredientRowFlattener
from .master_data import build_master_data
from .models import TraceFilter
from .report import HEADERS, IngredientSourcesReport

logger = structlog.get_logger(__name__)


def get_ingredient_sources(trace_filter: TraceFilter, service: TraceService,
                           settings: Optional[Settings] = None) -> IngredientSourcesReport:
    """
    Build the ingredient sources report.

    Returns an advisory report (no rows) when more items match than the
    configured limit, and an empty report when nothing matches or the
    trace comes back empty. Trace service errors propagate unchanged.
    """
    settings = settings or default_settings
    log = logger.bind(product_ids=list(trace_filter.product_ids))

    item_ids = service.fetch_lots_and_serials(trace_filter)
    if len(item_ids) > settings.max_traced_items:
        log.warning("too many items to trace", items=len(item_ids), limit=settings.max_traced_items)
        return IngredientSourcesReport.too_large()
    if not item_ids:
        log.info("no lots or serials matched")
        return IngredientSourcesReport.empty()

    traces = service.run_trace(trace_filter, item_ids, upstream=True, downstream=False)
    if not traces:
        log.info("trace returned no results", items=len(item_ids))
        return IngredientSourcesReport.empty()

    # one alias index per request
    alias_index = ParentAliasIndex()
    asset_ids = collect_trace_assets(traces, alias_index)

    events = service.fetch_events(trace_filter, asset_ids)
    master_data = build_master_data(events, service, trace_filter)

    rows = IngredientRowFlattener(master_data, alias_index).expand_all(traces)
    log.info("ingredient sources report built", items=len(item_ids), roots=len(traces), rows=len(rows))
    return IngredientSourcesReport(list(HEADERS), rows)
