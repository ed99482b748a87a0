"""
Cancellation inference tests - future sessions missing from a poll
"""

from datetime import timedelta

import pytest

from icescraper.models import Snapshot
from icescraper.sync.change_tracker import ChangeTracker

from conftest import TODAY, make_record


def seed(events, now, *records):
    for record in records:
        events.session(record.session_id).append(Snapshot.from_record(record, now - timedelta(hours=6)))


@pytest.fixture
def events(store):
    with store.transaction() as conn:
        day, _ = store.ensure_day(conn, TODAY)
        yield day.events()


class TestInferCancellations:
    """infer_cancellations"""

    @pytest.mark.sync
    def test_missing_future_session_is_cancelled(self, events, now):
        seed(events, now, make_record("s1", "14:00:00"), make_record("s2", "15:00:00"))
        tracker = ChangeTracker()

        cancelled = tracker.infer_cancellations(events, ["s2"], now)

        assert [s.session_id for s in cancelled] == ["s1"]
        latest = events.get_session("s1").latest()
        assert latest.cancelled is True
        assert latest.updated_at == now
        assert events.get_session("s2").latest().cancelled is False
        assert tracker.metrics.get('sessions_cancelled') == 1
        assert len(tracker.pending) == 1

    @pytest.mark.sync
    def test_cancellation_is_idempotent(self, events, now):
        """Running twice with the same observations cancels nothing new"""
        seed(events, now, make_record("s1", "14:00:00"))
        tracker = ChangeTracker()
        tracker.infer_cancellations(events, [], now)
        tracker.drain()

        again = tracker.infer_cancellations(events, [], now + timedelta(minutes=1))

        assert again == []
        assert len(events.get_session("s1").history()) == 2
        assert tracker.pending == []

    @pytest.mark.sync
    def test_scan_stops_at_first_started_session(self, events, now):
        """
        Sessions are visited in id order; the scan ends at the first one that
        has already started, even if later ids start in the future.
        """
        seed(
            events, now,
            make_record("s1", "14:00:00"),
            make_record("s2", "10:00:00", "11:00:00"),
            make_record("s3", "16:00:00", "17:00:00"),
        )
        tracker = ChangeTracker()

        cancelled = tracker.infer_cancellations(events, [], now)

        assert [s.session_id for s in cancelled] == ["s1"]
        assert events.get_session("s2").latest().cancelled is False
        assert events.get_session("s3").latest().cancelled is False

    @pytest.mark.sync
    def test_session_starting_now_counts_as_started(self, events, now):
        seed(events, now, make_record("s1", "12:00:00", "13:00:00"))

        cancelled = ChangeTracker().infer_cancellations(events, [], now)

        assert cancelled == []

    @pytest.mark.sync
    def test_sessions_without_snapshots_are_skipped(self, events, now):
        events.session("s0")
        seed(events, now, make_record("s1", "14:00:00"))

        cancelled = ChangeTracker().infer_cancellations(events, [], now)

        assert [s.session_id for s in cancelled] == ["s1"]
        assert events.get_session("s0").latest() is None

    @pytest.mark.sync
    def test_unparseable_start_is_skipped_and_counted(self, events, now):
        seed(events, now, make_record("s1", "soon"), make_record("s2", "14:00:00"))
        tracker = ChangeTracker()

        cancelled = tracker.infer_cancellations(events, [], now)

        assert [s.session_id for s in cancelled] == ["s2"]
        assert tracker.metrics.get('unparseable_start_time') == 1
        assert len(events.get_session("s1").history()) == 1

    @pytest.mark.sync
    def test_cancelled_snapshot_keeps_product(self, events, now):
        """The cancellation can still be routed to the product's calendar"""
        record = make_record("s1", "14:00:00")
        events.session("s1").append(Snapshot.from_record(record, now, product_id="prod-1"))
        tracker = ChangeTracker()

        tracker.infer_cancellations(events, [], now + timedelta(minutes=1))

        change = tracker.pending[0]
        assert change.snapshot.product_id == "prod-1"
        assert change.context.product == "prod-1"
