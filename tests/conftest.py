"""Shared fixtures for the digest tests.

Provides:
- a fresh SQLite document store per test
- fake mail sender and fake event source
- event / subscriber factories
"""

import os

import httpx
import pytest

# Set env vars before any letsrace imports
os.environ.setdefault("ADMIN_TOKEN", "test-admin-token")
os.environ.setdefault("TOKEN_SECRET", "test-token-secret")
os.environ.setdefault("SMTP_USERNAME", "")
os.environ.setdefault("SMTP_PASSWORD", "")

from letsrace.collector.events import Event
from letsrace.database import init_db
from letsrace.errors import UpstreamFetchError
from letsrace.mailer.smtp_sender import SendResult
from letsrace.subscription.models import Subscriber
from letsrace.subscription.store import SubscriberStore


@pytest.fixture(autouse=True)
def temp_database(tmp_path):
    """Every test gets its own document store"""
    init_db(f"sqlite:///{tmp_path / 'letsrace.db'}")
    yield


@pytest.fixture
def store():
    return SubscriberStore(document_key="subscribers.json")


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeSender:
    """Records sends; fails for addresses in fail_for"""

    def __init__(self, fail_for=()):
        self.fail_for = set(fail_for)
        self.sent = []

    def send(self, recipient, subject, html_content):
        if recipient in self.fail_for:
            return SendResult(recipient=recipient, success=False, error_message="550 Mailbox unavailable")
        self.sent.append({"recipient": recipient, "subject": subject, "html": html_content})
        return SendResult(recipient=recipient, success=True)

    async def send_async(self, recipient, subject, html_content):
        return self.send(recipient, subject, html_content)


class FakeEventSource:
    """Stands in for EventSourceAdapter"""

    def __init__(self, events=None, error=None):
        self.events = list(events or [])
        self.error = error
        self.calls = 0

    def load_events(self):
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.events)

    async def fetch_events(self):
        return self.load_events()


@pytest.fixture
def fake_sender():
    return FakeSender()


@pytest.fixture
def manifest_error():
    return UpstreamFetchError("HTTP 503 for https://www.letsrace.cc/data/manifest.json")


def make_transport(routes: dict, calls: list = None):
    """routes: path -> (status, json) ; missing path -> 404"""

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request.url.path)
        status, body = routes.get(request.url.path, (404, {"error": "not found"}))
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    return httpx.MockTransport(handler)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def make_event(**overrides) -> Event:
    data = {
        "id": "ev-1",
        "name": "Tour of the Borders",
        "discipline": "Road",
        "region": "Scotland",
        "venue": "Peebles",
        "start_date": "2025-06-20",
        "added_at": "2025-06-10",
        "url": "",
    }
    data.update(overrides)
    return Event(**data)


def make_subscriber(**overrides) -> Subscriber:
    data = {
        "email": "rider@example.com",
        "region": "Scotland",
        "disciplines": ["Road"],
        "send_day": "Sunday",
    }
    data.update(overrides)
    return Subscriber(**data)
