"""Shared test fixtures.

The app is imported with the testing environment and file logs in a
temporary directory. No Cassandra is needed: services are replaced with
in-memory fakes through the service getters.
"""

import os
import tempfile
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta


os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="certregistry-logs-"))
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from src.access_links.models import AccessLink  # noqa: E402
from src.access_links.service import AccessGateService  # noqa: E402
from src.auth.security import create_admin_session_token  # noqa: E402
from src.config.settings import get_settings  # noqa: E402
from src.main import app  # noqa: E402


NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


class FakeLedger:
    """In-memory ledger with the same contract as AccessLinkLedger."""

    def __init__(self) -> None:
        self.rows: dict[str, AccessLink] = {}
        self.insert_calls = 0
        self.mark_used_calls = 0

    async def find_by_token(self, token: str) -> AccessLink | None:
        return self.rows.get(token)

    async def insert(self, link: AccessLink) -> bool:
        self.insert_calls += 1
        if link.token in self.rows:
            return False
        self.rows[link.token] = link
        return True

    async def mark_used(self, token: str, used_at: datetime) -> bool:
        self.mark_used_calls += 1
        link = self.rows.get(token)
        if link is None:
            return False
        link.is_used = True
        link.used_at = used_at
        return True


class FakeClock:
    """Settable clock for expiry tests."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def gate(ledger: FakeLedger, clock: FakeClock) -> AccessGateService:
    return AccessGateService(ledger=ledger, clock=clock)


@pytest.fixture
def client() -> TestClient:
    """Test client without lifespan (no database connection)."""
    return TestClient(app)


@pytest.fixture
def admin_cookies() -> dict[str, str]:
    token, _ = create_admin_session_token("admin")
    return {get_settings().admin_cookie_name: token}


@pytest.fixture
def override_services(gate: AccessGateService) -> Iterator:
    """Install fake services behind the routers' service getters.

    Yields a setter for the registrant service mock.
    """
    from src.access_links import dependencies as access_deps
    from src.registrants import dependencies as registrant_deps

    previous_gate = access_deps._service_getter
    previous_registrants = registrant_deps._service_getter
    holder: dict = {}

    access_deps.set_service_getter(lambda: gate)
    registrant_deps.set_service_getter(lambda: holder["registrants"])

    def set_registrants(service) -> None:
        holder["registrants"] = service

    yield set_registrants

    access_deps._service_getter = previous_gate
    registrant_deps._service_getter = previous_registrants


def make_registrant(**overrides):
    """Build a Registrant with realistic defaults."""
    from datetime import date

    from src.auth.security import hash_password
    from src.registrants.models import Registrant

    values = {
        "registration_number": "MOH202512345",
        "registration_form_title": "Pharmacy Council Registration",
        "title": "Ms",
        "name": "Asha Verma",
        "father_husband_name": "Ravi Verma",
        "mobile_no": "9876543210",
        "email_id": "asha@example.com",
        "hashed_password": hash_password("9876543210"),
        "date_of_birth": date(1998, 4, 12),
        "passout_percentage": 78.5,
        "state": "Kerala",
        "address": "12 MG Road, Kochi",
        "course_name": "D.Pharm",
        "experience": "2 years",
        "college_name": "Govt. College of Pharmacy",
        "photo_url": "https://storage.example/photo.png",
        "qr_code_url": "",
        "created_at": NOW,
        "updated_at": NOW,
    }
    values.update(overrides)
    return Registrant(**values)
