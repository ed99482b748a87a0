# © 2025 Ice Calendar Sync authors. All Rights Reserved.
# Licensed for use by the ice rink session tracking service only.
# Unauthorized use, distribution, or modification is prohibited.

"""
Booking Client - Read-only access to the ice-sports booking API

The calendar endpoint reports, per product and month, which days have
events. It also pads the month with days either side for the widget, but
those never have event data. The times endpoint lists the sessions for one
product on one day.
"""
import logging
import time
from typing import Any, Dict, List, Optional

import requests

from icescraper import config
from icescraper.errors import BookingApiError
from icescraper.models import CalendarDay, EventRecord, ProductId
from icescraper.utils.logger import StructuredLogger
from icescraper.utils.retry import retry_with_backoff

logger = logging.getLogger(__name__)


class BookingClient:
    """Fetches calendars and session lists from the booking site"""

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()
        self.structured_logger = StructuredLogger(__name__)

    def get_calendar(self, month: int, year: int, product_id: ProductId) -> List[CalendarDay]:
        """
        Days of the given month and their event flags for a product

        Raises:
            BookingApiError: if the calendar can't be fetched or decoded
        """
        payload = self._get_json('ice-sports-calendar', {
            'month': month,
            'year': year,
            'productId': product_id,
        })
        dates = payload.get('Dates') if isinstance(payload, dict) else None
        if not isinstance(dates, list):
            raise BookingApiError(f"Calendar for {product_id} {month}/{year} has no Dates list")

        try:
            return [CalendarDay.from_api(entry) for entry in dates]
        except ValueError as e:
            raise BookingApiError(f"Can't parse calendar for {product_id} {month}/{year}: {e}") from e

    def get_events_info(self, date: str, product_id: ProductId) -> List[EventRecord]:
        """
        Sessions on a YYYY-MM-DD day for a product.

        Entries that can't be decoded are logged and skipped; the rest of
        the list is still returned.

        Raises:
            BookingApiError: if the list can't be fetched or isn't a list
        """
        payload = self._get_json('ice-sports-times', {'date': date, 'productId': product_id})
        if not isinstance(payload, list):
            raise BookingApiError(f"Events for {product_id} on {date}: expected a list")

        records = []
        for entry in payload:
            try:
                records.append(EventRecord.from_api(entry))
            except ValueError as e:
                logger.warning(f"⚠️ Skipping event entry for {product_id} on {date}: {e}")
        return records

    def _get_json(self, endpoint: str, params: Dict[str, Any]) -> Any:
        url = f"{config.BOOKING_BASE_URL}/{endpoint}"
        try:
            response = self._fetch(url, params)
        except requests.RequestException as e:
            raise BookingApiError(f"Can't retrieve {endpoint}: {e}") from e

        if response.status_code != 200:
            raise BookingApiError(f"Can't retrieve {endpoint}: {response.status_code} - {response.text[:200]}")
        try:
            return response.json()
        except ValueError as e:
            raise BookingApiError(f"Can't parse {endpoint} response: {e}") from e

    @retry_with_backoff(retry_on=(requests.exceptions.ConnectionError, requests.exceptions.Timeout))
    def _fetch(self, url: str, params: Dict[str, Any]) -> requests.Response:
        started = time.monotonic()
        try:
            response = self.session.get(url, params=params, timeout=config.REQUEST_TIMEOUT)
        except requests.RequestException as e:
            self.structured_logger.log_api_call('GET', url, error=str(e))
            raise

        self.structured_logger.log_api_call('GET', url, status_code=response.status_code,
                                            duration_ms=round((time.monotonic() - started) * 1000, 1))
        return response
