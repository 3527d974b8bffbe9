"""
Master-data join for one trace request.

Hydrated events are indexed by asset id, every location they mention is
seeded into a lookup table, and the GTINs behind their item tags are
collected. The location and product master records fetched for those ids
are then merged in, VLOOKUP style: ids the lookup did not cover stay
unresolved and read as "no information".
"""

from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

import pandas as pd
import structlog

from .collector import ParentAliasIndex
from .epc import decode_item_tag
from .models import Event, Location, Product, TraceFilter, TraceNode

if TYPE_CHECKING:
    from .client import TraceService

logger = structlog.get_logger(__name__)

PRODUCT_COLUMNS = ['gtin', 'description', 'owner_org_id']


class MasterData:
    """Events, locations and products for one request, joined for lookup"""

    def __init__(self):
        self.events: Dict[str, Event] = {}
        self.locations: Dict[str, Optional[Location]] = {}
        self.gtins: List[str] = []
        self.products = pd.DataFrame(columns=PRODUCT_COLUMNS)

    @classmethod
    def from_events(cls, events: Iterable[Event]) -> "MasterData":
        master = cls()
        seen_gtins = set()

        for event in events:
            master.events[event.asset_id] = event

            for location_id in event.location_ids:
                master.locations.setdefault(location_id, None)

            for tag in event.item_tags:
                identity = decode_item_tag(tag)
                if identity and identity.gtin not in seen_gtins:
                    seen_gtins.add(identity.gtin)
                    master.gtins.append(identity.gtin)

        logger.info(
            "indexed event data",
            events=len(master.events),
            locations=len(master.locations),
            gtins=len(master.gtins),
        )
        return master

    @property
    def location_ids(self) -> List[str]:
        return list(self.locations.keys())

    def attach_locations(self, records: Iterable[Location]):
        """Merge location master records into the seeded table"""
        match_count = 0
        for location in records:
            if location.id in self.locations:
                match_count += 1
            self.locations[location.id] = location

        unresolved = sum(1 for loc in self.locations.values() if loc is None)
        if unresolved:
            logger.debug("locations without master data", unresolved=unresolved)
        logger.info("attached location master data", matched=match_count, total=len(self.locations))

    def attach_products(self, records: Iterable[Product]):
        rows = [
            {'gtin': p.gtin, 'description': p.description, 'owner_org_id': p.owner_org_id}
            for p in records
        ]
        self.products = pd.DataFrame(rows, columns=PRODUCT_COLUMNS)
        logger.info("attached product master data", products=len(self.products))

    def events_for(self, node: TraceNode, alias_index: ParentAliasIndex) -> List[Event]:
        """
        The node's hydrated events: its own first, then those contributed
        by its parent aliases. Asset ids with no hydrated event are skipped.
        """
        asset_ids = list(node.asset_ids)
        for alias in node.parent_aliases:
            asset_ids.extend(alias_index.assets_for(alias.alias_id))
        return [self.events[a] for a in asset_ids if a in self.events]

    def product_for(self, item_id: str, org_id: Optional[str]) -> Optional[Product]:
        """
        Master record for the product behind an item tag.

        Several organisations may register the same GTIN; the one owning
        the item's events wins, otherwise the first record listed.
        """
        identity = decode_item_tag(item_id)
        if identity is None:
            logger.debug("item tag carries no product", item_id=item_id)
            return None

        matches = self.products[self.products['gtin'] == identity.gtin]
        if matches.empty:
            logger.debug("no product master data", gtin=identity.gtin)
            return None

        chosen = matches.iloc[0]
        if len(matches) > 1 and org_id is not None:
            owned = matches[matches['owner_org_id'] == org_id]
            if not owned.empty:
                chosen = owned.iloc[0]

        return Product(
            gtin=chosen['gtin'],
            description=_none_if_missing(chosen['description']),
            owner_org_id=_none_if_missing(chosen['owner_org_id']),
        )


def _none_if_missing(value):
    return None if pd.isna(value) else value


def observed_org(events: List[Event]) -> Optional[str]:
    """Org of the first event that names one"""
    for event in events:
        if event.org_id:
            return event.org_id
    return None


def build_master_data(events: List[Event], service: "TraceService", trace_filter: TraceFilter) -> MasterData:
    """Join events with the location and product master data fetched for them"""
    master = MasterData.from_events(events)
    master.attach_locations(service.fetch_locations(trace_filter, master.location_ids))
    master.attach_products(service.fetch_products(trace_filter, master.gtins))
    return master
