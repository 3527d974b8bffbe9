"""
Asset collection over a trace forest.

Two walks feed the event hydration request:
- collect_asset_ids: a node's own events and those of its inputs
- ParentAliasIndex.collect: the events contributed by parent aliases,
  merged once per alias id across the whole forest
"""

from typing import Dict, Iterable, List, Set

import structlog

from .models import EventRef, TraceNode

logger = structlog.get_logger(__name__)


def collect_asset_ids(node: TraceNode) -> Set[str]:
    """Asset ids of a node's own events and every input below it (aliases excluded)"""
    asset_ids = set(node.asset_ids)
    for input_node in node.input_nodes:
        asset_ids |= collect_asset_ids(input_node)
    return asset_ids


class ParentAliasIndex:
    """
    Request-scoped table: alias id -> de-duplicated asset ids it contributes.

    The trace service lists an alias's events only where it happens to
    report them, so every sighting of an alias id is merged into one
    shared list. Create one index per request; never share across requests.
    """

    def __init__(self):
        self._assets: Dict[str, List[str]] = {}

    def __contains__(self, alias_id: str) -> bool:
        return alias_id in self._assets

    def __len__(self) -> int:
        return len(self._assets)

    def resolve(self, alias_id: str, events: Iterable[EventRef]) -> List[str]:
        """Union the alias's asset ids into its stored list and return that list"""
        stored = self._assets.setdefault(alias_id, [])
        seen = set(stored)
        for event in events:
            if event.asset_id and event.asset_id not in seen:
                seen.add(event.asset_id)
                stored.append(event.asset_id)
        return stored

    def assets_for(self, alias_id: str) -> List[str]:
        return list(self._assets.get(alias_id, []))

    def collect(self, node: TraceNode) -> List[str]:
        """Resolve every alias on the node and below it; returns the asset ids reached"""
        asset_ids: List[str] = []
        for alias in node.parent_aliases:
            asset_ids.extend(self.resolve(alias.alias_id, alias.events))
        for input_node in node.input_nodes:
            asset_ids.extend(self.collect(input_node))
        return asset_ids


def collect_trace_assets(traces: List[TraceNode], alias_index: ParentAliasIndex) -> List[str]:
    """
    Every asset id needed to hydrate the forest: own events of all nodes
    plus all alias contributions. Sorted so the hydration request is stable.
    """
    assets: Set[str] = set()
    for trace in traces:
        assets |= collect_asset_ids(trace)

    for trace in traces:
        assets.update(alias_index.collect(trace))

    logger.info("collected trace assets", roots=len(traces), assets=len(assets), parent_aliases=len(alias_index))
    return sorted(assets)
