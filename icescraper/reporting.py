# © 2025 Ice Calendar Sync authors. All Rights Reserved.
# Licensed for use by the ice rink session tracking service only.
# Unauthorized use, distribution, or modification is prohibited.

"""
Reporting - Read-only views of the store for humans
"""
import logging
from typing import Dict, List, Optional

from icescraper.errors import StoreDecodeError
from icescraper.models import booked_counts
from icescraper.store import DayHandle, EventStore
from icescraper.utils.timezone import day_key, get_local_time

logger = logging.getLogger(__name__)

SUMMARY_HEADERS = ('Date', 'Start', 'End', 'Pad', '#Academy', '#Other', 'Type')


def summarise(store: EventStore, start_today: bool = True, end_tomorrow: bool = False,
              today: Optional[str] = None) -> List[Dict]:
    """
    Latest state of every session, one row each, day by day.

    start_today skips days before today; end_tomorrow (with start_today)
    stops after the first two stored days.
    """
    today = today or day_key(get_local_time())
    limit = 2 if start_today and end_tomorrow else None

    rows = []
    with store.reader() as conn:
        days = store.days_from(conn, today) if start_today else store.all_days(conn)
        for index, day in enumerate(days):
            if limit is not None and index >= limit:
                break
            rows.extend(summarise_day(day))
    return rows


def summarise_day(day: DayHandle) -> List[Dict]:
    """Rows for one day, sorted by start time"""
    rows = []
    for session in day.events().sessions():
        try:
            last = session.latest()
        except StoreDecodeError as e:
            logger.warning(f"Leaving {day.day}/{session.session_id} out of summary: {e}")
            continue
        if last is None:
            continue

        academy, other = booked_counts(last)
        rows.append({
            'date': day.day,
            'session_id': last.session_id,
            'start': last.start_time,
            'end': last.end_time,
            'location': last.location,
            'academy': academy,
            'other': other,
            'type': last.product_name,
            'cancelled': last.cancelled,
        })

    rows.sort(key=lambda row: row['start'])
    return rows


def format_summary(rows: List[Dict]) -> str:
    """Render rows as a space-aligned table, printing each date only once"""
    table = [SUMMARY_HEADERS]
    previous_date = None
    for row in rows:
        date = row['date'] if row['date'] != previous_date else ''
        previous_date = row['date']
        kind = f"Cancelled: {row['type']}" if row['cancelled'] else row['type']
        table.append((date, row['start'], row['end'], row['location'],
                      str(row['academy']), str(row['other']), kind))

    widths = [max(len(line[i]) for line in table) for i in range(len(SUMMARY_HEADERS) - 1)]
    lines = [
        ''.join(cell.ljust(width + 1) for cell, width in zip(line, widths)) + line[-1]
        for line in table
    ]
    return '\n'.join(lines) + '\n'


def dump_store(store: EventStore) -> Dict:
    """
    The whole store as nested dicts, without decoding anything:
    {day: {'products': raw, 'events': {session id: {seq: raw snapshot}}}}
    """
    dump = {}
    with store.reader() as conn:
        for day in store.all_days(conn):
            events = {}
            for session in day.events().sessions():
                events[session.session_id] = dict(session.raw_history())
            dump[day.day] = {'events': events, 'products': day.raw_products()}
    return dump


def format_dump(dump: Dict) -> str:
    """Bucket-style text listing of a store dump"""
    lines = []
    for day, content in dump.items():
        lines.append(f"root-Bucket-start {day}")
        lines.append("Bucket-start events")
        for session_id, history in content['events'].items():
            lines.append(f"Bucket-start {session_id}")
            lines.extend(f"key={seq}, value={payload}" for seq, payload in history.items())
            lines.append(f"Bucket-end {session_id}")
        lines.append("Bucket-end events")
        if content['products'] is not None:
            lines.append(f"key=products, value={content['products']}")
        lines.append(f"root-Bucket-end {day}")
    return '\n'.join(lines) + '\n' if lines else ''
