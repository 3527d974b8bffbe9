from typing import Any, Dict, List, Optional

import pytest

from ingredient_trace.client import TraceServiceError
from ingredient_trace.collector import ParentAliasIndex, collect_trace_assets
from ingredient_trace.master_data import MasterData
from ingredient_trace.models import Event, Location, Product, TraceNode

PRODUCT_TAG = 'urn:epc:id:sgtin:0614141.812345.6789'
INGREDIENT_A_TAG = 'urn:epc:id:sgtin:0614141.012345.100'
INGREDIENT_B_TAG = 'urn:epc:class:lgtin:0614141.054321.LOTB'

PRODUCT_GTIN = '80614141123458'
INGREDIENT_A_GTIN = '00614141123452'
INGREDIENT_B_GTIN = '00614141543212'


def event_dict(asset_id: str, event_time: str, biz_location_id: Optional[str] = None,
               source: List[str] = None, destination: List[str] = None,
               event_type: str = 'observation', org_id: str = 'org-1',
               tags: List[str] = None) -> Dict[str, Any]:
    return {
        'asset_id': asset_id,
        'event_time': event_time,
        'biz_location_id': biz_location_id,
        'source_location_ids': source or [],
        'destination_location_ids': destination or [],
        'event_type': event_type,
        'org_id': org_id,
        'epcs_ids': tags or [],
    }


def make_event(*args, **kwargs) -> Event:
    return Event.from_dict(event_dict(*args, **kwargs))


def trace_dict(epc_id: str, asset_ids: List[str] = None, inputs: List[Dict] = None,
               parents: List[Dict] = None) -> Dict[str, Any]:
    return {
        'epc_id': epc_id,
        'events': [{'asset_id': a} for a in asset_ids or []],
        'parent_epcs': parents or [],
        'input_epcs': inputs or [],
    }


def parent_dict(epc_id: str, asset_ids: List[str]) -> Dict[str, Any]:
    return {'epc_id': epc_id, 'events': [{'asset_id': a} for a in asset_ids]}


def location_dict(location_id: str, name: str, role: Optional[str]) -> Dict[str, Any]:
    return {'id': location_id, 'party_name': name, 'party_role_code': role, 'org_id': 'org-1'}


def product_dict(gtin: str, description: str, org_id: str = 'org-1') -> Dict[str, Any]:
    return {'id': gtin, 'description': description, 'org_id': org_id}


LOCATIONS = [
    location_dict('loc-farm', 'Green Acres', 'FARM'),
    location_dict('loc-supplier', 'Acme Foods', 'SUPPLIER'),
    location_dict('loc-dc', 'Central DC', 'DISTRIBUTION_CENTER'),
    location_dict('loc-store', 'Store 42', 'STORE'),
]

PRODUCTS = [
    product_dict(PRODUCT_GTIN, 'Salsa 16oz'),
    product_dict(INGREDIENT_A_GTIN, 'Tomatoes'),
    product_dict(INGREDIENT_B_GTIN, 'Onions'),
]

EVENTS = [
    # finished product: packed at the supplier, shipped to the DC, received at the store
    event_dict('evt-p1', '2019-05-01T08:00:00Z', 'loc-supplier', event_type='commission', tags=[PRODUCT_TAG]),
    event_dict('evt-p2', '2019-05-02T08:00:00Z', 'loc-supplier', destination=['loc-dc'], tags=[PRODUCT_TAG]),
    event_dict('evt-p3', '2019-05-04T08:00:00Z', 'loc-dc', destination=['loc-store'], tags=[PRODUCT_TAG]),
    # tomatoes: harvested at the farm, shipped to the supplier
    event_dict('evt-a1', '2019-04-20T06:00:00Z', 'loc-farm', event_type='commission', tags=[INGREDIENT_A_TAG]),
    event_dict('evt-a2', '2019-04-22T06:00:00Z', 'loc-supplier', source=['loc-farm'], tags=[INGREDIENT_A_TAG]),
    # onions: received at the supplier from the DC
    event_dict('evt-b1', '2019-04-25T06:00:00Z', 'loc-supplier', source=['loc-dc'], tags=[INGREDIENT_B_TAG]),
]


def sample_trace() -> Dict[str, Any]:
    return trace_dict(
        PRODUCT_TAG,
        ['evt-p1', 'evt-p2', 'evt-p3'],
        inputs=[
            trace_dict(INGREDIENT_A_TAG, ['evt-a1', 'evt-a2']),
            trace_dict(INGREDIENT_B_TAG, ['evt-b1']),
        ],
    )


def build_context(traces: List[TraceNode], events: List[Dict] = None, locations: List[Dict] = None,
                  products: List[Dict] = None):
    """Master data and alias index for a forest, as the pipeline builds them"""
    alias_index = ParentAliasIndex()
    collect_trace_assets(traces, alias_index)

    master = MasterData.from_events(Event.from_dict(e) for e in (EVENTS if events is None else events))
    master.attach_locations(Location.from_dict(l) for l in (LOCATIONS if locations is None else locations))
    master.attach_products(Product.from_dict(p) for p in (PRODUCTS if products is None else products))
    return master, alias_index


class FakeTraceService:
    """In-memory trace service recording the calls made to it"""

    def __init__(self, item_ids=None, traces=None, events=None, locations=None, products=None, fail_on=None):
        self.item_ids = item_ids if item_ids is not None else [PRODUCT_TAG]
        self.traces = traces if traces is not None else [sample_trace()]
        self.events = events if events is not None else EVENTS
        self.locations = locations if locations is not None else LOCATIONS
        self.products = products if products is not None else PRODUCTS
        self.fail_on = fail_on
        self.calls: List[tuple] = []

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        if self.fail_on == name:
            raise TraceServiceError(f"/{name}", "service unavailable", status_code=503)

    @property
    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]

    def fetch_lots_and_serials(self, trace_filter):
        self._record('fetch_lots_and_serials', trace_filter)
        return list(self.item_ids)

    def run_trace(self, trace_filter, item_ids, upstream=True, downstream=False):
        self._record('run_trace', item_ids, upstream, downstream)
        return [TraceNode.from_dict(t) for t in self.traces]

    def fetch_events(self, trace_filter, asset_ids):
        self._record('fetch_events', list(asset_ids))
        wanted = set(asset_ids)
        return [Event.from_dict(e) for e in self.events if e['asset_id'] in wanted]

    def fetch_locations(self, trace_filter, location_ids):
        self._record('fetch_locations', list(location_ids))
        wanted = set(location_ids)
        return [Location.from_dict(l) for l in self.locations if l['id'] in wanted]

    def fetch_products(self, trace_filter, gtins):
        self._record('fetch_products', list(gtins))
        wanted = set(gtins)
        return [Product.from_dict(p) for p in self.products if p['id'] in wanted]


@pytest.fixture
def fake_service() -> FakeTraceService:
    return FakeTraceService()
