"""
Flattens an upstream trace into one report row per ingredient.

The finished product's row is built first (identity and final location)
and used as a template. Every node of the ingredient subtree, at any
depth, gets a copy of that template with its own identity and source
location filled in. Rows do not inherit an intermediate ingredient's
fields: a grandchild's row shows the finished product and the
grandchild, nothing in between.
"""

from typing import List

import structlog

from .collector import ParentAliasIndex
from .master_data import MasterData, observed_org
from .models import TraceNode
from .report import (
    INGREDIENT_EPC,
    INGREDIENT_GTIN,
    INGREDIENT_NAME,
    PRODUCT_EPC,
    PRODUCT_GTIN,
    PRODUCT_NAME,
    ReportRow,
)
from .resolver import resolve_final, resolve_source

logger = structlog.get_logger(__name__)


class IngredientRowFlattener:
    def __init__(self, master_data: MasterData, alias_index: ParentAliasIndex):
        self.master_data = master_data
        self.alias_index = alias_index

    def _identity(self, node: TraceNode, events):
        product = self.master_data.product_for(node.item_id, observed_org(events))
        if product is None:
            return None, None
        return product.gtin, product.description

    def product_template(self, root: TraceNode, events) -> ReportRow:
        """Row holding the finished product's identity and final location"""
        row = ReportRow()
        row[PRODUCT_EPC] = root.item_id
        row[PRODUCT_GTIN], row[PRODUCT_NAME] = self._identity(root, events)
        row.set_final_location(resolve_final(events, self.master_data.locations))
        return row

    def expand(self, root: TraceNode) -> List[ReportRow]:
        """
        Rows for one finished product: one per node below the root, or a
        single row for the root itself when it has no known ingredients.
        """
        events = self.master_data.events_for(root, self.alias_index)
        template = self.product_template(root, events)

        if not root.input_nodes:
            template.set_source_location(resolve_source(events, self.master_data.locations))
            return [template]

        rows: List[ReportRow] = []

        def build_rows(input_nodes: List[TraceNode]):
            for node in input_nodes:
                node_events = self.master_data.events_for(node, self.alias_index)

                row = template.copy()
                row[INGREDIENT_EPC] = node.item_id
                row[INGREDIENT_GTIN], row[INGREDIENT_NAME] = self._identity(node, node_events)
                row.set_source_location(resolve_source(node_events, self.master_data.locations))
                rows.append(row)

                # branch from the product template, not from this row
                build_rows(node.input_nodes)

        build_rows(root.input_nodes)
        logger.debug("expanded trace", item_id=root.item_id, rows=len(rows))
        return rows

    def expand_all(self, traces: List[TraceNode]) -> List[ReportRow]:
        rows: List[ReportRow] = []
        for trace in traces:
            rows.extend(self.expand(trace))
        return rows
