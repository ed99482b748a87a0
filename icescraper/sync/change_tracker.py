# © 2025 Ice Calendar Sync authors. All Rights Reserved.
# Licensed for use by the ice rink session tracking service only.
# Unauthorized use, distribution, or modification is prohibited.

"""
Change Tracker - Decide when a session's history grows, and spot cancellations
"""
import logging
from datetime import datetime
from typing import Iterable, List, NamedTuple, Optional

from icescraper.models import COMPARABLE_FIELDS, Action, EventContext, EventRecord, ProductId, Snapshot
from icescraper.store import EventsHandle, SessionHandle
from icescraper.utils.metrics import MetricsCollector
from icescraper.utils.timezone import parse_time_locally

logger = logging.getLogger(__name__)


class PendingChange(NamedTuple):
    """A stored snapshot waiting to be mirrored to the calendar"""
    snapshot: Snapshot
    context: EventContext


class ChangeTracker:
    """Appends snapshots only when something that matters has changed"""

    def __init__(self, metrics: Optional[MetricsCollector] = None):
        self.metrics = metrics or MetricsCollector()
        self.pending: List[PendingChange] = []

    def reconcile_session(
        self,
        session: SessionHandle,
        incoming: EventRecord,
        observed_at: datetime,
        cancelled: bool = False,
        product_id: ProductId = "",
    ) -> Action:
        """
        Compare an incoming record with the session's latest snapshot.

        A new snapshot is appended on first sight (CREATED) or when any of
        the comparable fields differ (UPDATED). Either way the snapshot is
        queued in self.pending for calendar sync. UNCHANGED writes nothing.
        """
        candidate = Snapshot.from_record(incoming, observed_at, cancelled=cancelled, product_id=product_id)
        last = session.latest()

        if last is None:
            action = Action.CREATED
            logger.info(f"Creating event info: {session.day} {incoming.session_id} {incoming.product_name} {incoming.start_time}")
        elif last.comparable() != candidate.comparable():
            action = Action.UPDATED
            logger.info(f"Updating event info: {session.day} {incoming.session_id} {self._describe_change(last, candidate)}")
        else:
            self.metrics.record_action(Action.UNCHANGED)
            return Action.UNCHANGED

        session.append(candidate)
        self.metrics.record_action(action)
        self.pending.append(PendingChange(candidate, EventContext(day=session.day, product=product_id)))
        return action

    def infer_cancellations(
        self,
        events: EventsHandle,
        observed_ids: Iterable[str],
        now: datetime,
    ) -> List[SessionHandle]:
        """
        Mark future sessions missing from this pass as cancelled.

        Sessions are visited in stored key order. The scan stops at the first
        session that has already started; started sessions are never
        cancelled. Re-running with the same observed ids cancels nothing new.
        """
        observed = set(observed_ids)
        cancelled = []

        for session in events.sessions():
            last = session.latest()
            if last is None:
                # Nothing recorded, so nothing to cancel
                continue

            try:
                starts_at = parse_time_locally(events.day, last.start_time)
            except ValueError as e:
                logger.warning(f"Skipping {events.day}/{session.session_id}: can't parse start time '{last.start_time}': {e}")
                self.metrics.record_error('unparseable_start_time', f"{events.day}/{session.session_id}: {last.start_time}")
                continue

            if starts_at <= now:
                # Session already started
                break

            if session.session_id in observed:
                continue

            action = self.reconcile_session(
                session, last.to_record(), now, cancelled=True, product_id=last.product_id
            )
            if action is not Action.UNCHANGED:
                logger.info(f"Session cancelled: {events.day} {session.session_id} {last.product_name} {last.start_time}")
                self.metrics.increment('sessions_cancelled')
                cancelled.append(session)

        return cancelled

    def drain(self) -> List[PendingChange]:
        """Hand over and forget the queued changes"""
        pending, self.pending = self.pending, []
        return pending

    def discard(self):
        """Drop queued changes (their transaction rolled back)"""
        self.pending = []

    @staticmethod
    def _describe_change(old: Snapshot, new: Snapshot) -> str:
        changed = [
            f"{name}: {old_value!r} -> {new_value!r}"
            for name, old_value, new_value in zip(
                COMPARABLE_FIELDS,
                old.comparable(),
                new.comparable(),
            )
            if old_value != new_value
        ]
        return ", ".join(changed)
