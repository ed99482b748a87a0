# © 2025 Ice Calendar Sync authors. All Rights Reserved.
# Licensed for use by the ice rink session tracking service only.
# Unauthorized use, distribution, or modification is prohibited.

"""
Error types for Ice Calendar Sync.

Pass-level failures (store decode, booking fetch, product catalog) propagate
out of the pass transaction and roll it back. Calendar and authentication
failures are caught at the sync boundary and only logged.
"""


class IceScraperError(Exception):
    """Base class for all application errors"""


class StoreDecodeError(IceScraperError):
    """A persisted products list or snapshot could not be decoded"""


class BookingApiError(IceScraperError):
    """The booking site could not be queried"""


class ProductCatalogError(IceScraperError):
    """The products file is missing or malformed"""


class AuthConfigError(IceScraperError):
    """Service account credentials could not be loaded"""


class AuthenticationError(IceScraperError):
    """A bearer token could not be obtained"""


class CalendarSyncError(IceScraperError):
    """A calendar write failed"""


class CalendarEventNotFound(CalendarSyncError):
    """The calendar event addressed by an update does not exist"""
