# © 2025 Ice Calendar Sync authors. All Rights Reserved.
# Licensed for use by the ice rink session tracking service only.
# Unauthorized use, distribution, or modification is prohibited.

"""
Sync Engine - Poll the booking site, record changes, then mirror them to the calendar

Every pass runs inside one store transaction. Calendar writes only happen
once that transaction has committed, so a calendar failure never undoes
recorded history and a rolled-back pass never reaches the calendar.
"""
import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from icescraper import config
from icescraper.booking import BookingClient
from icescraper.models import ProductId
from icescraper.products import ProductCatalog
from icescraper.store import DayHandle, EventStore
from icescraper.sync.change_tracker import ChangeTracker
from icescraper.sync.reconciler import CalendarReconciler
from icescraper.utils.logger import StructuredLogger
from icescraper.utils.metrics import MetricsCollector
from icescraper.utils.timezone import day_key, get_local_time, parse_time_locally, to_local

logger = logging.getLogger(__name__)


@dataclass
class PassResult:
    """What one pass did"""
    name: str
    ran: bool = True
    days_checked: int = 0
    new_days: List[str] = field(default_factory=list)
    products_updated: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    cancelled: int = 0
    synced: int = 0
    sync_failures: int = 0
    duration_seconds: float = 0.0

    def to_dict(self) -> Dict:
        return asdict(self)


class IceSyncEngine:
    """Runs the polling passes against one store"""

    def __init__(self, store: EventStore, catalog: ProductCatalog,
                 booking: Optional[BookingClient] = None,
                 reconciler: Optional[CalendarReconciler] = None,
                 clock: Optional[Callable[[], datetime]] = None,
                 metrics: Optional[MetricsCollector] = None):
        self.store = store
        self.catalog = catalog
        self.booking = booking or BookingClient()
        self.metrics = metrics or (reconciler.metrics if reconciler else MetricsCollector())
        self.reconciler = reconciler or CalendarReconciler(None, catalog, metrics=self.metrics)
        self.tracker = ChangeTracker(self.metrics)
        self.clock = clock or get_local_time
        self.structured_logger = StructuredLogger(__name__)

    def now(self) -> datetime:
        return to_local(self.clock())

    def check_for_new_days(self) -> PassResult:
        """Record which days this month and next have sessions, and for which products"""
        started = time.monotonic()
        before = self.metrics.snapshot()
        result = PassResult('check-calendar')

        this_month = self.now().date().replace(day=1)
        next_month = (this_month + timedelta(days=32)).replace(day=1)

        days_with_ice: Dict[str, List[ProductId]] = {}
        for month in (this_month, next_month):
            logger.info(f"Checking {month:%B %Y}")
            for product_id in self.catalog.product_ids():
                for calendar_day in self.booking.get_calendar(month.month, month.year, product_id):
                    if not calendar_day.has_event:
                        continue
                    products = days_with_ice.setdefault(day_key(calendar_day.date), [])
                    if product_id not in products:
                        products.append(product_id)

        with self.store.transaction() as conn:
            for key in sorted(days_with_ice):
                day, created = self.store.ensure_day(conn, key)
                if created:
                    result.new_days.append(key)
                if day.set_products(days_with_ice[key]):
                    result.products_updated += 1
                result.days_checked += 1

        if result.new_days:
            logger.info(f"Added {len(result.new_days)} new days")
        return self._finish(result, before, started)

    def check_for_events(self, only_today: bool = False) -> PassResult:
        """
        Refresh the sessions of every known day from today onwards.

        With only_today, just today's day (if known) is refreshed. Any
        fatal error rolls the whole pass back and is raised.
        """
        started = time.monotonic()
        before = self.metrics.snapshot()
        result = PassResult('check-todays-events' if only_today else 'check-events')
        today = day_key(self.now())

        try:
            with self.store.transaction() as conn:
                if only_today:
                    day = self.store.get_day(conn, today)
                    days = [day] if day is not None else []
                else:
                    days = self.store.days_from(conn, today)

                for day in days:
                    self._check_events_for_day(day)
                    result.days_checked += 1
        except Exception:
            self.tracker.discard()
            raise

        self._sync_pending()
        return self._finish(result, before, started)

    def check_if_events_starting_soon(self) -> PassResult:
        """Refresh today's sessions, but only if one is about to start"""
        now = self.now()
        today = day_key(now)
        threshold = timedelta(minutes=config.STARTING_SOON_MINUTES)

        starting_soon = []
        with self.store.reader() as conn:
            day = self.store.get_day(conn, today)
            if day is not None:
                for session in day.events().sessions():
                    last = session.latest()
                    if last is None:
                        continue
                    try:
                        starts_at = parse_time_locally(today, last.start_time)
                    except ValueError as e:
                        logger.warning(f"Skipping {today}/{session.session_id}: {e}")
                        continue

                    if starts_at < now:
                        # Already started
                        continue
                    if starts_at - now < threshold:
                        starting_soon.append(session.session_id)

        if not starting_soon:
            logger.debug("No sessions starting soon")
            return PassResult('check-if-events-starting-soon', ran=False)

        logger.info(f"⏰ {len(starting_soon)} session(s) starting soon, refreshing today's events")
        result = self.check_for_events(only_today=True)
        result.name = 'check-if-events-starting-soon'
        return result

    def _check_events_for_day(self, day: DayHandle):
        products = day.products()
        events = day.events()

        # Session ids seen this pass, to work out which have been cancelled
        observed = []
        for product_id in products:
            records = self.booking.get_events_info(day.day, product_id)
            observed_at = self.now()
            for record in records:
                session = events.session(record.session_id)
                self.tracker.reconcile_session(session, record, observed_at, product_id=product_id)
                observed.append(record.session_id)

        self.tracker.infer_cancellations(events, observed, self.now())

    def _sync_pending(self):
        pending = self.tracker.drain()
        if not pending or not self.reconciler.enabled:
            return

        logger.info(f"🔄 Syncing {len(pending)} changed session(s) to the calendar")
        for change in pending:
            self.reconciler.sync(change.snapshot, change.context, change.snapshot.updated_at)

    def _finish(self, result: PassResult, before: Dict[str, int], started: float) -> PassResult:
        counts = self.metrics.diff(before)
        result.created = counts.get('sessions_created', 0)
        result.updated = counts.get('sessions_updated', 0)
        result.unchanged = counts.get('sessions_unchanged', 0)
        result.cancelled = counts.get('sessions_cancelled', 0)
        result.synced = sum(counts.get(name, 0) for name in ('calendar_updated', 'calendar_inserted', 'calendar_dry_run'))
        result.sync_failures = counts.get('calendar_sync_failed', 0)
        result.duration_seconds = round(time.monotonic() - started, 3)

        self.structured_logger.log_sync_event('pass_completed', result.to_dict())
        self.structured_logger.log_performance(result.name, result.duration_seconds,
                                               item_count=result.days_checked)
        return result
