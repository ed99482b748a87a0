"""
Shared fixtures: a throwaway store, a fixed clock, fake HTTP collaborators
"""

import json
from datetime import datetime
from unittest.mock import MagicMock

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from icescraper import config
from icescraper.models import EventRecord
from icescraper.products import ProductCatalog
from icescraper.store import EventStore
from icescraper.utils.timezone import get_local_timezone, reset_local_timezone

TODAY = "2019-03-27"
TOMORROW = "2019-03-28"


@pytest.fixture(autouse=True)
def local_timezone(monkeypatch):
    """Every test runs in Europe/London regardless of the environment"""
    monkeypatch.setattr(config, 'LOCAL_TIMEZONE', 'Europe/London')
    monkeypatch.setattr(config, 'DRY_RUN_MODE', False)
    reset_local_timezone()
    yield
    reset_local_timezone()


def local(year, month, day, hour=0, minute=0):
    """Aware datetime in the local timezone"""
    return get_local_timezone().localize(datetime(year, month, day, hour, minute))


@pytest.fixture
def now():
    return local(2019, 3, 27, 12, 0)


@pytest.fixture
def clock(now):
    return lambda: now


@pytest.fixture
def store(tmp_path):
    store = EventStore.open(str(tmp_path / "ice-info.db"))
    yield store
    store.close()


@pytest.fixture
def catalog():
    return ProductCatalog({
        'prod-1': ['ice@group.calendar.google.com'],
        'prod-2': [],
    })


def make_record(session_id="s1", start="14:00:00", end="15:00:00", **overrides):
    values = dict(
        session_id=session_id,
        product_name="Figure Skating Practice",
        location="Pad 1",
        start_time=start,
        end_time=end,
        total_spaces=40,
        available_spaces=30,
        academy_capacity=10,
        academy_available=4,
    )
    values.update(overrides)
    return EventRecord(**values)


def api_entry(record: EventRecord) -> dict:
    """The booking API's spelling of a record"""
    return {
        'SessionId': record.session_id,
        'ProductName': record.product_name,
        'Location': record.location,
        'StartTime': record.start_time,
        'EndTime': record.end_time,
        'TotalSpaces': record.total_spaces,
        'AvailableSpaces': record.available_spaces,
        'CapacityFreeAcademy': record.academy_capacity,
        'AvailableFreeSpaces': record.academy_available,
        'PriceDescription': 'ignored',
    }


def fake_response(status_code=200, payload=None, text=None):
    response = MagicMock()
    response.status_code = status_code
    if payload is None and text is not None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = payload
    response.text = text if text is not None else json.dumps(payload)
    return response


@pytest.fixture
def rsa_pem():
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return key, pem.decode('ascii')


@pytest.fixture
def cred_file(tmp_path, rsa_pem):
    _, pem = rsa_pem
    path = tmp_path / "service-account.json"
    path.write_text(json.dumps({
        'type': 'service_account',
        'client_email': 'ice-sync@example.iam.gserviceaccount.com',
        'token_uri': 'https://oauth2.googleapis.com/token',
        'private_key': pem,
    }))
    return str(path)
