# © 2025 Ice Calendar Sync authors. All Rights Reserved.
# Licensed for use by the ice rink session tracking service only.
# Unauthorized use, distribution, or modification is prohibited.

"""
Calendar Writer - Handles write operations to the Google Calendar API
"""
import logging
import time
from typing import Dict
from urllib.parse import quote

import requests

from icescraper import config
from icescraper.errors import CalendarEventNotFound, CalendarSyncError
from icescraper.utils.logger import StructuredLogger

logger = logging.getLogger(__name__)


class CalendarWriter:
    """
    Handles writing events to Google Calendar.

    The http session is expected to carry the authenticator; no retries are
    made here.
    """

    def __init__(self, http: requests.Session):
        self.http = http
        self.structured_logger = StructuredLogger(__name__)

    def _events_url(self, calendar_id: str) -> str:
        return f"{config.GCAL_API_BASE}/calendars/{quote(calendar_id, safe='@')}/events"

    def update_event(self, calendar_id: str, event_data: Dict) -> Dict:
        """
        Replace an existing event

        Raises:
            CalendarEventNotFound: if the event does not exist
            CalendarSyncError: for any other failure
        """
        url = f"{self._events_url(calendar_id)}/{event_data['id']}"
        response = self._send('PUT', url, event_data)

        # Missing event: caller should insert instead
        if response.status_code == 404:
            raise CalendarEventNotFound(f"Calendar event {event_data['id']} not found")

        result = self._parse(response, 'updating')
        logger.info(f"✅ Updated event: {event_data.get('summary')} ({event_data['id']})")
        return result

    def insert_event(self, calendar_id: str, event_data: Dict) -> Dict:
        """
        Create a new event with the given id

        Raises:
            CalendarSyncError: if the event can't be created
        """
        response = self._send('POST', self._events_url(calendar_id), event_data)
        result = self._parse(response, 'inserting')
        logger.info(f"✅ Created event: {event_data.get('summary')} ({event_data['id']})")
        return result

    def _send(self, method: str, url: str, event_data: Dict) -> requests.Response:
        started = time.monotonic()
        try:
            response = self.http.request(method, url, json=event_data, timeout=config.REQUEST_TIMEOUT)
        except requests.RequestException as e:
            self.structured_logger.log_api_call(method, url, error=str(e))
            raise CalendarSyncError(f"{method} {url}: {e}") from e

        duration_ms = (time.monotonic() - started) * 1000
        self.structured_logger.log_api_call(method, url, status_code=response.status_code,
                                            duration_ms=round(duration_ms, 1))
        return response

    @staticmethod
    def _parse(response: requests.Response, action: str) -> Dict:
        if not 200 <= response.status_code < 300:
            raise CalendarSyncError(f"{action} event failed: {response.status_code} - {response.text[:200]}")
        try:
            return response.json()
        except ValueError as e:
            raise CalendarSyncError(f"parsing {action} event response: {e}") from e
