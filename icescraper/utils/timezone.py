# © 2025 Ice Calendar Sync authors. All Rights Reserved.
# Licensed for use by the ice rink session tracking service only.
# Unauthorized use, distribution, or modification is prohibited.

"""
Timezone utilities for the rink's local civil time
"""
import logging
from datetime import date, datetime
from typing import Optional, Union

import pytz

from icescraper import config

logger = logging.getLogger(__name__)

# Day and time of day as written by the booking site, joined with a space
REFERENCE_FORMAT = '%Y-%m-%d %H:%M:%S'

_local_timezone = None


def get_local_timezone():
    """Resolve the configured local timezone once, falling back to UTC"""
    global _local_timezone
    if _local_timezone is None:
        # Must be explicit: the hosts running this usually sit in UTC
        try:
            _local_timezone = pytz.timezone(config.LOCAL_TIMEZONE)
        except pytz.UnknownTimeZoneError:
            logger.warning(f"Can't load timezone {config.LOCAL_TIMEZONE}, defaulting to UTC")
            _local_timezone = pytz.UTC
    return _local_timezone


def reset_local_timezone():
    """Forget the resolved timezone so the next call re-reads config"""
    global _local_timezone
    _local_timezone = None


def get_local_time() -> datetime:
    """Get current time in the local timezone"""
    return datetime.now(get_local_timezone())


def to_local(dt: datetime) -> datetime:
    """Convert a datetime to local time, treating naive values as UTC"""
    if dt.tzinfo is None:
        dt = pytz.UTC.localize(dt)
    return dt.astimezone(get_local_timezone())


def parse_time_locally(day: str, time_of_day: str) -> datetime:
    """Interpret a YYYY-MM-DD day and HH:MM:SS time in the local timezone"""
    naive = datetime.strptime(f"{day} {time_of_day}", REFERENCE_FORMAT)
    return get_local_timezone().localize(naive)


def day_key(value: Union[date, datetime]) -> str:
    """Canonical YYYY-MM-DD key for a day"""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def format_stamp(dt: Optional[datetime]) -> str:
    """Format a timestamp like 'Mar  1 18:30:00' in local time"""
    if dt is None:
        return "Never"
    local = to_local(dt)
    return f"{local:%b} {local.day:2d} {local:%H:%M:%S}"
