"""
Calendar sync tests - event mapping and the update-then-insert write path
"""

from unittest.mock import MagicMock

import pytest
import requests

from icescraper import config
from icescraper.cal_ops.mapping import build_calendar_event, calendar_event_id, product_link
from icescraper.errors import AuthenticationError
from icescraper.models import EventContext, Snapshot
from icescraper.sync.reconciler import CalendarReconciler

from conftest import TODAY, fake_response, make_record

CALENDAR = 'ice@group.calendar.google.com'


@pytest.fixture
def snapshot(now):
    return Snapshot.from_record(make_record(), now, product_id="prod-1")


@pytest.fixture
def context():
    return EventContext(day=TODAY, product="prod-1")


@pytest.fixture
def http():
    return MagicMock(spec=requests.Session)


class TestMapping:
    """Snapshot -> calendar event"""

    @pytest.mark.calendar
    def test_event_id_is_lowercase_base32hex(self):
        assert calendar_event_id("abc") == "c5h66"

    @pytest.mark.calendar
    def test_event_id_is_stable(self):
        assert calendar_event_id("s-123") == calendar_event_id("s-123")
        assert calendar_event_id("s-123") != calendar_event_id("s-124")

    @pytest.mark.calendar
    def test_product_link(self):
        assert product_link("abc") == f"{config.BOOKING_BASE_URL}/ice-sports-details!YWJj"

    @pytest.mark.calendar
    def test_build_event(self, snapshot, context, now):
        event = build_calendar_event(snapshot, context, now)

        assert event['id'] == calendar_event_id("s1")
        assert event['summary'] == "Figure Skating Practice"
        assert event['location'] == "Pad 1"
        assert event['start'] == {'dateTime': '2019-03-27T14:00:00+00:00'}
        assert event['end'] == {'dateTime': '2019-03-27T15:00:00+00:00'}

        lines = event['description'].splitlines()
        assert lines[0] == "6 Academy, 10 other booked"
        assert lines[1] == "30 spaces free (4 Academy)"
        assert lines[2] == product_link("prod-1")
        assert lines[3] == "Last updated: Mar 27 12:00:00"

    @pytest.mark.calendar
    def test_cancelled_summary(self, context, now):
        cancelled = Snapshot.from_record(make_record(), now, cancelled=True, product_id="prod-1")

        event = build_calendar_event(cancelled, context, now)

        assert event['summary'] == "Cancelled: Figure Skating Practice"

    @pytest.mark.calendar
    def test_bad_time_raises(self, now, context):
        bad = Snapshot.from_record(make_record(start="later"), now)

        with pytest.raises(ValueError):
            build_calendar_event(bad, context, now)


class TestReconciler:
    """CalendarReconciler write path"""

    @pytest.mark.calendar
    def test_disabled_without_authenticator(self, catalog, snapshot, context, now, http):
        reconciler = CalendarReconciler(None, catalog, http=http)

        assert not reconciler.enabled
        assert reconciler.sync(snapshot, context, now) is False
        http.request.assert_not_called()

    @pytest.mark.calendar
    def test_existing_event_is_updated(self, catalog, snapshot, context, now, http):
        http.request.return_value = fake_response(200, {'id': calendar_event_id("s1")})
        reconciler = CalendarReconciler(MagicMock(), catalog, http=http)

        assert reconciler.sync(snapshot, context, now)

        http.request.assert_called_once()
        method, url = http.request.call_args[0]
        assert method == 'PUT'
        assert url == f"{config.GCAL_API_BASE}/calendars/{CALENDAR}/events/{calendar_event_id('s1')}"
        assert http.request.call_args[1]['json']['summary'] == "Figure Skating Practice"
        assert reconciler.metrics.get('calendar_updated') == 1

    @pytest.mark.calendar
    def test_missing_event_is_inserted(self, catalog, snapshot, context, now, http):
        http.request.side_effect = [
            fake_response(404, {'error': {'code': 404}}),
            fake_response(200, {'id': calendar_event_id("s1")}),
        ]
        reconciler = CalendarReconciler(MagicMock(), catalog, http=http)

        assert reconciler.sync(snapshot, context, now)

        methods = [call[0][0] for call in http.request.call_args_list]
        assert methods == ['PUT', 'POST']
        assert http.request.call_args_list[1][0][1] == f"{config.GCAL_API_BASE}/calendars/{CALENDAR}/events"
        assert reconciler.metrics.get('calendar_inserted') == 1

    @pytest.mark.calendar
    def test_other_failures_are_logged_not_raised(self, catalog, snapshot, context, now, http):
        """A 500 is not retried and never reaches the caller"""
        http.request.return_value = fake_response(500, text="backend error")
        reconciler = CalendarReconciler(MagicMock(), catalog, http=http)

        assert reconciler.sync(snapshot, context, now) is False

        assert http.request.call_count == 1
        assert reconciler.metrics.get('calendar_sync_failed') == 1

    @pytest.mark.calendar
    def test_network_failure_is_swallowed(self, catalog, snapshot, context, now, http):
        http.request.side_effect = requests.exceptions.ConnectionError("no route to host")
        reconciler = CalendarReconciler(MagicMock(), catalog, http=http)

        assert reconciler.sync(snapshot, context, now) is False

    @pytest.mark.calendar
    def test_auth_failure_only_fails_the_write(self, catalog, snapshot, context, now, http):
        http.request.side_effect = AuthenticationError("no-access-token: invalid_grant")
        reconciler = CalendarReconciler(MagicMock(), catalog, http=http)

        assert reconciler.sync(snapshot, context, now) is False
        assert reconciler.metrics.get('calendar_sync_failed') == 1

    @pytest.mark.calendar
    def test_product_without_calendar_is_skipped(self, catalog, now, http):
        reconciler = CalendarReconciler(MagicMock(), catalog, http=http)
        snapshot = Snapshot.from_record(make_record(), now, product_id="prod-2")

        assert reconciler.sync(snapshot, EventContext(day=TODAY, product="prod-2"), now) is False
        http.request.assert_not_called()

    @pytest.mark.calendar
    def test_every_configured_calendar_is_written(self, snapshot, context, now, http):
        from icescraper.products import ProductCatalog

        catalog = ProductCatalog({'prod-1': ['a@example.com', 'b@example.com']})
        http.request.return_value = fake_response(200, {})
        reconciler = CalendarReconciler(MagicMock(), catalog, http=http)

        assert reconciler.sync(snapshot, context, now)

        urls = [call[0][1] for call in http.request.call_args_list]
        assert len(urls) == 2
        assert '/calendars/a@example.com/' in urls[0]
        assert '/calendars/b@example.com/' in urls[1]

    @pytest.mark.calendar
    def test_dry_run_sends_nothing(self, catalog, snapshot, context, now, http, monkeypatch):
        monkeypatch.setattr(config, 'DRY_RUN_MODE', True)
        reconciler = CalendarReconciler(MagicMock(), catalog, http=http)

        assert reconciler.sync(snapshot, context, now)

        http.request.assert_not_called()
        assert reconciler.metrics.get('calendar_dry_run') == 1

    @pytest.mark.calendar
    def test_authenticator_is_attached_to_session(self, catalog, http):
        authenticator = MagicMock()

        CalendarReconciler(authenticator, catalog, http=http)

        assert http.auth is authenticator
