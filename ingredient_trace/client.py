"""
Trace service client.

Thin httpx wrapper around the five read endpoints the tracer needs. Id
lists are sent in batches; responses are parsed into model records. Any
HTTP failure or unreadable response is raised as TraceServiceError and is fatal for the request:
nothing here retries.
"""

from typing import Any, Dict, Iterator, List, Optional, Protocol, Sequence

import httpx
import structlog

from .config import Settings
from .models import Event, Location, Product, TraceFilter, TraceNode

logger = structlog.get_logger(__name__)


class TraceServiceError(Exception):
    """A trace service call failed; the whole request fails with it"""

    def __init__(self, endpoint: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{endpoint}: {message}")
        self.endpoint = endpoint
        self.status_code = status_code


class TraceService(Protocol):
    def fetch_lots_and_serials(self, trace_filter: TraceFilter) -> List[str]: ...

    def run_trace(self, trace_filter: TraceFilter, item_ids: List[str],
                  upstream: bool = True, downstream: bool = False) -> List[TraceNode]: ...

    def fetch_events(self, trace_filter: TraceFilter, asset_ids: List[str]) -> List[Event]: ...

    def fetch_locations(self, trace_filter: TraceFilter, location_ids: List[str]) -> List[Location]: ...

    def fetch_products(self, trace_filter: TraceFilter, gtins: List[str]) -> List[Product]: ...


def chunked(values: Sequence[str], size: int) -> Iterator[List[str]]:
    for start in range(0, len(values), size):
        yield list(values[start:start + size])


def _unwrap(payload: Any, key: str) -> List[Any]:
    """Responses come either as a bare list or as {key: [...]}"""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        return payload.get(key) or []
    return []


class TraceServiceClient:
    def __init__(self, settings: Settings, client: Optional[httpx.Client] = None):
        self.settings = settings
        self._owns_client = client is None
        if client is None:
            headers = {}
            if settings.api_token:
                headers['Authorization'] = f"Bearer {settings.api_token}"
            client = httpx.Client(
                base_url=settings.api_base_url,
                headers=headers,
                timeout=settings.request_timeout,
            )
        self._client = client

    def __enter__(self) -> "TraceServiceClient":
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self):
        if self._owns_client:
            self._client.close()

    def _get(self, endpoint: str, params: Dict[str, Any]) -> Any:
        try:
            response = self._client.get(endpoint, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise TraceServiceError(endpoint, str(e), status_code=e.response.status_code) from e
        except httpx.HTTPError as e:
            raise TraceServiceError(endpoint, str(e)) from e
        except ValueError as e:
            raise TraceServiceError(endpoint, f"invalid JSON response: {e}") from e

    def _filter_params(self, trace_filter: TraceFilter) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        org_id = trace_filter.org_id or self.settings.org_id
        if org_id:
            params['org_id'] = org_id
        if trace_filter.start_date:
            params['event_start_timestamp'] = trace_filter.start_date.isoformat()
        if trace_filter.end_date:
            params['event_end_timestamp'] = trace_filter.end_date.isoformat()
        return params

    def _get_batched(self, endpoint: str, id_param: str, ids: List[str],
                     key: str, extra: Optional[Dict[str, Any]] = None) -> List[Any]:
        records: List[Any] = []
        for batch in chunked(ids, self.settings.batch_size):
            params = dict(extra or {})
            params[id_param] = batch
            records.extend(_unwrap(self._get(endpoint, params), key))
        return records

    def fetch_lots_and_serials(self, trace_filter: TraceFilter) -> List[str]:
        params = self._filter_params(trace_filter)
        params['product_id'] = list(trace_filter.product_ids)
        items = _unwrap(self._get('/lots_and_serials', params), 'lots_and_serials')
        item_ids = [i['epc_id'] if isinstance(i, dict) else i for i in items]
        logger.info("fetched lots and serials", count=len(item_ids))
        return item_ids

    def run_trace(self, trace_filter: TraceFilter, item_ids: List[str],
                  upstream: bool = True, downstream: bool = False) -> List[TraceNode]:
        extra = {'upstream': str(upstream).lower(), 'downstream': str(downstream).lower()}
        records = self._get_batched('/epcs/trace', 'epc_id', item_ids, 'trace', extra)
        return [TraceNode.from_dict(r) for r in records]

    def fetch_events(self, trace_filter: TraceFilter, asset_ids: List[str]) -> List[Event]:
        extra = {}
        if trace_filter.end_date:
            extra['event_end_timestamp'] = trace_filter.end_date.isoformat()
        records = self._get_batched('/events', 'asset_id', asset_ids, 'events', extra)
        return [Event.from_dict(r) for r in records]

    def fetch_locations(self, trace_filter: TraceFilter, location_ids: List[str]) -> List[Location]:
        records = self._get_batched('/locations', 'location_id', location_ids, 'locations')
        return [Location.from_dict(r) for r in records]

    def fetch_products(self, trace_filter: TraceFilter, gtins: List[str]) -> List[Product]:
        records = self._get_batched('/products', 'product_id', gtins, 'products')
        return [Product.from_dict(r) for r in records]
