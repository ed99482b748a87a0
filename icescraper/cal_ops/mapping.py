# © 2025 Ice Calendar Sync authors. All Rights Reserved.
# Licensed for use by the ice rink session tracking service only.
# Unauthorized use, distribution, or modification is prohibited.

"""
Calendar Mapping - Turn a stored snapshot into a Google Calendar event
"""
import base64
from datetime import datetime
from typing import Dict

from icescraper import config
from icescraper.models import EventContext, ProductId, Snapshot, booked_counts
from icescraper.utils.timezone import format_stamp, parse_time_locally


def calendar_event_id(session_id: str) -> str:
    """
    Deterministic calendar event id for a session.

    Unpadded base32hex of the raw id bytes, lowercased, only uses 0-9 and
    a-v, which Google accepts as an event id. The same session always maps
    to the same event, so no lookup table is needed.
    """
    encoded = base64.b32hexencode(session_id.encode('utf-8')).decode('ascii')
    return encoded.rstrip('=').lower()


def product_link(product_id: ProductId) -> str:
    """
    Link to the booking page for a product.

    The page takes the product id base64url-encoded after a '!'; it does
    not pin down the day or session.
    """
    encoded = base64.urlsafe_b64encode(product_id.encode('utf-8')).decode('ascii').rstrip('=')
    return f"{config.BOOKING_BASE_URL}/ice-sports-details!{encoded}"


def build_calendar_event(snapshot: Snapshot, context: EventContext, observed_at: datetime) -> Dict:
    """
    Calendar representation of a snapshot

    Raises:
        ValueError: if the start or end time can't be parsed
    """
    starts_at = parse_time_locally(context.day, snapshot.start_time)
    ends_at = parse_time_locally(context.day, snapshot.end_time)

    academy_booked, other_booked = booked_counts(snapshot)
    summary = snapshot.product_name
    if snapshot.cancelled:
        summary = f"Cancelled: {summary}"

    description = (
        f"{academy_booked} Academy, {other_booked} other booked\n"
        f"{snapshot.available_spaces} spaces free ({snapshot.academy_available} Academy)\n"
        f"{product_link(context.product or snapshot.product_id)}\n"
        f"Last updated: {format_stamp(observed_at)}\n"
    )

    return {
        'id': calendar_event_id(snapshot.session_id),
        'summary': summary,
        'description': description,
        'location': snapshot.location,
        'start': {'dateTime': starts_at.isoformat()},
        'end': {'dateTime': ends_at.isoformat()},
    }
