# tests/conftest.py

import asyncio

import pytest
from fastapi.testclient import TestClient

from rsvpdesk.config import Settings
from rsvpdesk.database import create_sync_engine
from rsvpdesk.exceptions import DeliveryError
from rsvpdesk.main import create_app
from rsvpdesk.services.schema_service import SchemaManager
from rsvpdesk.store import create_record_store

ADMIN_PASSWORD = "test-admin-secret"
ADMIN_HEADERS = {"Authorization": f"Bearer {ADMIN_PASSWORD}"}


# --- Fake email transports ---
class RecordingTransport:
    name = "recording"

    def __init__(self):
        self.sent = []

    async def send(self, message):
        self.sent.append(message)


class FailingTransport:
    name = "failing"

    def __init__(self):
        self.attempts = 0

    async def send(self, message):
        self.attempts += 1
        raise DeliveryError("relay refused the message")


class SlowTransport:
    name = "slow"

    async def send(self, message):
        await asyncio.sleep(5)


def make_settings(database_url: str, **overrides) -> Settings:
    values = {
        "DATABASE_URL": database_url,
        "ADMIN_PASSWORD": ADMIN_PASSWORD,
        "SMTP_USER": None,
        "SMTP_PASSWORD": None,
        "FALLBACK_SMTP_HOST": None,
        "SEND_CONFIRMATION_EMAILS": True,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def sample_rsvp(**overrides) -> dict:
    record = {
        "full_name": "Jane Doe",
        "email": "jane@example.com",
        "number_of_guests": 2,
        "rsvp_status": "Yes",
        "referral_source": "Friend",
        "receive_updates": True,
    }
    record.update(overrides)
    return record


# --- Database fixtures ---
@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'rsvp.db'}"


@pytest.fixture
def migrated_url(database_url):
    engine = create_sync_engine(database_url)
    try:
        SchemaManager(engine).ensure_schema()
    finally:
        engine.dispose()
    return database_url


@pytest.fixture
def run_with_store(migrated_url):
    """Run an async callable against a connected SQLite record store"""

    def run(body, **store_kwargs):
        async def main():
            store = create_record_store(migrated_url, **store_kwargs)
            await store.connect()
            try:
                return await body(store)
            finally:
                await store.disconnect()

        return asyncio.run(main())

    return run


# --- Application fixtures ---
@pytest.fixture
def settings(database_url):
    return make_settings(database_url)


@pytest.fixture
def outbox():
    return RecordingTransport()


@pytest.fixture
def app(settings):
    return create_app(settings, configure_logging=False)


@pytest.fixture
def client(app, outbox):
    with TestClient(app) as test_client:
        app.state.notifier.transports = [outbox]
        yield test_client
