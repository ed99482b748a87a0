# © 2025 Ice Calendar Sync authors. All Rights Reserved.
# Licensed for use by the ice rink session tracking service only.
# Unauthorized use, distribution, or modification is prohibited.

"""
Data models for booking records, stored snapshots and calendar days
"""
import json
import re
from dataclasses import dataclass, asdict
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, Tuple

ProductId = str


class Action(Enum):
    """Outcome of comparing an incoming record with the stored history"""
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class EventContext:
    day: str
    product: ProductId = ""


# Booking API field -> EventRecord attribute. Much of the payload is ignored.
_API_STRING_FIELDS = {
    'SessionId': 'session_id',
    'ProductName': 'product_name',
    'Location': 'location',
    'StartTime': 'start_time',
    'EndTime': 'end_time',
}
_API_INT_FIELDS = {
    'TotalSpaces': 'total_spaces',
    'AvailableSpaces': 'available_spaces',
    'CapacityFreeAcademy': 'academy_capacity',
    'AvailableFreeSpaces': 'academy_available',
}


@dataclass(frozen=True)
class EventRecord:
    """One session as reported by the booking site"""
    session_id: str
    product_name: str = ""
    location: str = ""
    start_time: str = ""
    end_time: str = ""
    total_spaces: int = 0
    available_spaces: int = 0
    academy_capacity: int = 0
    academy_available: int = 0

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "EventRecord":
        """Decode one entry of the ice-sports-times response"""
        if not isinstance(data, dict):
            raise ValueError(f"Event entry is not an object: {data!r}")

        values = {}
        for api_name, attr in _API_STRING_FIELDS.items():
            value = data.get(api_name) or ""
            if not isinstance(value, str):
                raise ValueError(f"{api_name} should be a string, got {value!r}")
            values[attr] = value
        for api_name, attr in _API_INT_FIELDS.items():
            value = data.get(api_name) or 0
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{api_name} should be an integer, got {value!r}")
            values[attr] = value

        if not values['session_id']:
            raise ValueError("Event entry has no SessionId")
        return cls(**values)


# Fields that decide whether a new snapshot is worth appending
COMPARABLE_FIELDS = (
    'product_name',
    'location',
    'start_time',
    'end_time',
    'total_spaces',
    'available_spaces',
    'academy_capacity',
    'academy_available',
    'cancelled',
)


@dataclass(frozen=True)
class Snapshot:
    """One immutable observation of a session"""
    session_id: str
    product_name: str
    location: str
    start_time: str
    end_time: str
    total_spaces: int
    available_spaces: int
    academy_capacity: int
    academy_available: int
    cancelled: bool
    updated_at: datetime
    # Product the session was listed under; routes cancellations to a calendar
    product_id: ProductId = ""

    @classmethod
    def from_record(cls, record: EventRecord, observed_at: datetime,
                    cancelled: bool = False, product_id: ProductId = "") -> "Snapshot":
        return cls(updated_at=observed_at, cancelled=cancelled, product_id=product_id, **asdict(record))

    def to_record(self) -> EventRecord:
        fields = asdict(self)
        for name in ('cancelled', 'updated_at', 'product_id'):
            fields.pop(name)
        return EventRecord(**fields)

    def comparable(self) -> Tuple:
        return tuple(getattr(self, name) for name in COMPARABLE_FIELDS)

    def to_json(self) -> str:
        data = asdict(self)
        data['updated_at'] = self.updated_at.isoformat()
        return json.dumps(data, separators=(',', ':'))

    @classmethod
    def from_json(cls, payload: str) -> "Snapshot":
        """Decode a stored snapshot; raises ValueError/KeyError/TypeError on bad data"""
        data = json.loads(payload)
        if not isinstance(data, dict):
            raise ValueError(f"Snapshot is not an object: {data!r}")

        for name in ('product_id', *_API_STRING_FIELDS.values()):
            if name in data and not isinstance(data[name], str):
                raise ValueError(f"{name} should be a string, got {data[name]!r}")
        for name in _API_INT_FIELDS.values():
            value = data.get(name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} should be an integer, got {value!r}")
        if not isinstance(data.get('cancelled'), bool):
            raise ValueError(f"cancelled should be a boolean, got {data.get('cancelled')!r}")

        updated_at = datetime.fromisoformat(data['updated_at'])
        if updated_at.tzinfo is None:
            raise ValueError(f"updated_at has no offset: {data['updated_at']!r}")
        data['updated_at'] = updated_at
        return cls(**data)


def booked_counts(snapshot: Snapshot) -> Tuple[int, int]:
    """(academy booked, other booked) for a snapshot"""
    academy = snapshot.academy_capacity - snapshot.academy_available
    other = snapshot.total_spaces - snapshot.available_spaces
    return academy, other


# Matches "/Date(1551398400000+0000)/", capturing millis since 1970 and the offset
_JS_DATE_RE = re.compile(r'/Date\(([0-9]+)\+([0-9]{4})\)/')


def parse_js_date(value: str) -> date:
    """Extract the UTC date from the calendar's JavaScript date notation"""
    match = _JS_DATE_RE.search(value or "")
    if not match:
        raise ValueError(f"Can't parse date '{value}'")
    millis = int(match.group(1))
    # The offset is always +0000 in practice and is ignored
    return datetime.fromtimestamp(millis // 1000, tz=timezone.utc).date()


@dataclass(frozen=True)
class CalendarDay:
    """One day cell of the booking calendar for a product"""
    date: date
    has_event: bool

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "CalendarDay":
        if not isinstance(data, dict):
            raise ValueError(f"Calendar entry is not an object: {data!r}")
        return cls(date=parse_js_date(data.get('Date', '')), has_event=bool(data.get('HasEvent')))
