"""
Records exchanged with the trace service.

Each type parses itself from the service's JSON via from_dict. Lists the
service leaves out are read as empty; nothing here is mutated after
parsing.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional


def parse_event_time(value: Any) -> datetime:
    """Parse an ISO-8601 event time into an aware datetime (UTC if unzoned)"""
    if isinstance(value, datetime):
        parsed = value
    elif value is None or value == '':
        raise ValueError("event record has no event_time")
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class EventRef:
    asset_id: Optional[str]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EventRef":
        return cls(asset_id=data.get('asset_id') or None)


def _asset_ids(refs: List[EventRef]) -> List[str]:
    return [ref.asset_id for ref in refs if ref.asset_id]


@dataclass(frozen=True)
class ParentAlias:
    """Another identifier under which an already-traced item shows up"""
    alias_id: str
    events: List[EventRef] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParentAlias":
        return cls(
            alias_id=data['epc_id'],
            events=[EventRef.from_dict(e) for e in data.get('events') or []],
        )

    @property
    def asset_ids(self) -> List[str]:
        return _asset_ids(self.events)


@dataclass(frozen=True)
class TraceNode:
    """One item in the upstream trace, with links to what it was made from"""
    item_id: str
    events: List[EventRef] = field(default_factory=list)
    parent_aliases: List[ParentAlias] = field(default_factory=list)
    input_nodes: List["TraceNode"] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TraceNode":
        return cls(
            item_id=data['epc_id'],
            events=[EventRef.from_dict(e) for e in data.get('events') or []],
            parent_aliases=[ParentAlias.from_dict(p) for p in data.get('parent_epcs') or []],
            input_nodes=[cls.from_dict(i) for i in data.get('input_epcs') or []],
        )

    @property
    def asset_ids(self) -> List[str]:
        return _asset_ids(self.events)


@dataclass(frozen=True)
class Event:
    asset_id: str
    event_time: datetime
    org_id: Optional[str] = None
    biz_location_id: Optional[str] = None
    source_location_ids: List[str] = field(default_factory=list)
    destination_location_ids: List[str] = field(default_factory=list)
    event_type: Optional[str] = None
    item_tags: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        return cls(
            asset_id=data['asset_id'],
            event_time=parse_event_time(data.get('event_time')),
            org_id=data.get('org_id'),
            biz_location_id=data.get('biz_location_id'),
            source_location_ids=list(data.get('source_location_ids') or []),
            destination_location_ids=list(data.get('destination_location_ids') or []),
            event_type=data.get('event_type'),
            item_tags=list(data.get('epcs_ids') or []),
        )

    @property
    def location_ids(self) -> List[str]:
        """Every location this event mentions: biz, sources, destinations"""
        ids = [self.biz_location_id] if self.biz_location_id else []
        return ids + self.source_location_ids + self.destination_location_ids


@dataclass(frozen=True)
class Location:
    id: str
    name: Optional[str] = None
    role_type: Optional[str] = None
    org_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Location":
        return cls(
            id=data['id'],
            name=data.get('party_name'),
            role_type=data.get('party_role_code'),
            org_id=data.get('org_id'),
        )


@dataclass(frozen=True)
class Product:
    gtin: str
    description: Optional[str] = None
    owner_org_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        return cls(
            gtin=data['id'],
            description=data.get('description'),
            owner_org_id=data.get('org_id'),
        )


@dataclass(frozen=True)
class LocationResult:
    """The one location (and when the item was there) picked for a node"""
    time: Optional[datetime] = None
    location_id: Optional[str] = None
    name: Optional[str] = None
    role_type: Optional[str] = None

    @classmethod
    def empty(cls) -> "LocationResult":
        return cls()


@dataclass(frozen=True)
class TraceFilter:
    """What the caller asked to trace: products and an optional date window"""
    product_ids: List[str] = field(default_factory=list)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    org_id: Optional[str] = None
