"""
Final and source location resolution.

An item usually has several events and each event names several
locations. These functions pick exactly one: the latest event's most
retail-like location (final), or the earliest event's most origin-like
location (source). Every tie falls back to input order, so the answer
never depends on anything but the order the events were listed in.
"""

from datetime import datetime
from typing import Dict, List, Optional, Sequence

from .models import Event, Location, LocationResult

FINAL_LOCATION_PRIORITY = ('STORE', 'DISTRIBUTION_CENTER', 'SUPPLIER', 'FARM')
SOURCE_LOCATION_PRIORITY = ('FARM', 'SUPPLIER', 'DISTRIBUTION_CENTER', 'STORE')
SOURCE_EVENT_PRIORITY = ('aggregation', 'observation', 'commission')

LocationTable = Dict[str, Optional[Location]]


def priority_rank(value: Optional[str], priority: Sequence[str]) -> int:
    """Position in the priority list; unlisted values rank after all listed ones"""
    if value in priority:
        return priority.index(value)
    return len(priority)


def _candidates(event: Event, location_ids: List[str], locations: LocationTable) -> List[LocationResult]:
    ids = [event.biz_location_id] if event.biz_location_id else []
    ids.extend(location_ids)

    candidates = []
    for location_id in dict.fromkeys(ids):
        location = locations.get(location_id)
        candidates.append(LocationResult(
            time=event.event_time,
            location_id=location_id,
            name=location.name if location else None,
            role_type=location.role_type if location else None,
        ))
    return candidates


def _pick_location(candidates: List[LocationResult], priority: Sequence[str], time: datetime) -> LocationResult:
    if not candidates:
        # event named no location at all; keep the time
        return LocationResult(time=time)
    ranked = sorted(
        enumerate(candidates),
        key=lambda pair: (priority_rank(pair[1].role_type, priority), pair[0]),
    )
    return ranked[0][1]


def resolve_final(events: List[Event], locations: LocationTable) -> LocationResult:
    """Where the item ended up: latest event, retail-most location"""
    if not events:
        return LocationResult.empty()

    # max() keeps the first of equal maxima
    final_event = max(events, key=lambda e: e.event_time)
    candidates = _candidates(final_event, final_event.destination_location_ids, locations)
    return _pick_location(candidates, FINAL_LOCATION_PRIORITY, final_event.event_time)


def resolve_source(events: List[Event], locations: LocationTable) -> LocationResult:
    """Where the item came from: earliest event, origin-most location"""
    if not events:
        return LocationResult.empty()

    first_event = min(
        events,
        key=lambda e: (e.event_time, priority_rank(e.event_type, SOURCE_EVENT_PRIORITY)),
    )
    candidates = _candidates(first_event, first_event.source_location_ids, locations)
    return _pick_location(candidates, SOURCE_LOCATION_PRIORITY, first_event.event_time)
