# © 2025 Ice Calendar Sync authors. All Rights Reserved.
# Licensed for use by the ice rink session tracking service only.
# Unauthorized use, distribution, or modification is prohibited.

"""
Calendar Reconciler - Mirror stored snapshots into Google Calendar
"""
import logging
from datetime import datetime
from typing import Optional

import requests
from requests.auth import AuthBase

from icescraper import config
from icescraper.cal_ops.mapping import build_calendar_event
from icescraper.cal_ops.writer import CalendarWriter
from icescraper.errors import CalendarEventNotFound, IceScraperError
from icescraper.models import EventContext, Snapshot
from icescraper.products import ProductCatalog
from icescraper.utils.metrics import MetricsCollector

logger = logging.getLogger(__name__)


class CalendarReconciler:
    """
    Writes a snapshot to every calendar configured for its product.

    Without an authenticator, syncing is disabled and sync() does nothing.
    Failures are logged and counted, never raised; there is no retry within
    a pass, the next change to the session will try again.
    """

    def __init__(self, authenticator: Optional[AuthBase], catalog: ProductCatalog,
                 http: Optional[requests.Session] = None,
                 metrics: Optional[MetricsCollector] = None):
        self.authenticator = authenticator
        self.catalog = catalog
        self.metrics = metrics or MetricsCollector()
        self.writer = None

        if authenticator is not None:
            session = http or requests.Session()
            session.auth = authenticator
            self.writer = CalendarWriter(session)

    @property
    def enabled(self) -> bool:
        return self.writer is not None

    def sync(self, snapshot: Snapshot, context: EventContext, observed_at: datetime) -> bool:
        """Returns True if every configured calendar now holds the snapshot"""
        if not self.enabled:
            return False

        product = context.product or snapshot.product_id
        calendars = self.catalog.calendars_for(product)
        if not calendars:
            logger.debug(f"No calendar configured for product {product}, skipping {snapshot.session_id}")
            return False

        try:
            event = build_calendar_event(snapshot, context, observed_at)
        except ValueError as e:
            logger.error(f"❌ Can't build calendar event for {context.day}/{snapshot.session_id}: {e}")
            self.metrics.record_error('calendar_sync_failed', f"{snapshot.session_id}: {e}")
            return False

        ok = True
        for calendar_id in calendars:
            ok = self._write(calendar_id, event) and ok
        return ok

    def _write(self, calendar_id: str, event: dict) -> bool:
        if config.DRY_RUN_MODE:
            logger.info(f"DRY RUN: Would write '{event['summary']}' ({event['id']}) to {calendar_id}")
            self.metrics.increment('calendar_dry_run')
            return True

        try:
            try:
                self.writer.update_event(calendar_id, event)
                self.metrics.increment('calendar_updated')
            except CalendarEventNotFound:
                logger.info(f"Event {event['id']} not in {calendar_id} yet, inserting")
                self.writer.insert_event(calendar_id, event)
                self.metrics.increment('calendar_inserted')
        except IceScraperError as e:
            logger.error(f"❌ Calendar sync failed for {event['id']} in {calendar_id}: {e}")
            self.metrics.record_error('calendar_sync_failed', f"{event['id']}: {e}")
            return False
        return True
