"""
Pytest fixtures for the fuel operations client-core test suite.

Provides:
- Structured-logging capture
- A deterministic clock
- An in-memory SQLite client-state store
- User sessions for each role
- A fake HTTP transport standing in for ``requests.Session``
- Sample entries
"""

import json
import logging
from dataclasses import dataclass, replace
from datetime import date
from io import StringIO
from typing import Any

import pytest
import requests

from fuelops_engines.reconciliation import derive_entry
from fuelops_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from fuelops_kernel.domain.clock import DeterministicClock
from fuelops_kernel.domain.entry import Entry, EntryStatus, Product
from fuelops_kernel.domain.session import Role, UserSession
from fuelops_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from fuelops_services.api_client import ApiClient
from fuelops_services.local_store import LocalStore
from fuelops_services.resilient_fetch import ResilientFetcher, RetryPolicy

BASE_URL = "http://backend.test/api"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture fuelops logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, lifecycle):
            lifecycle.submit(entry)
            logs = captured_logs()
            assert any(r["message"] == "entry_submitted" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("fuelops")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock and store
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock()


@pytest.fixture
def session_factory():
    """A fresh in-memory SQLite database per test."""
    init_engine_from_url("sqlite://")
    create_tables()
    yield get_session_factory()
    reset_engine()


@pytest.fixture
def store(session_factory, clock) -> LocalStore:
    return LocalStore(session_factory, clock)


# =============================================================================
# User sessions
# =============================================================================


@pytest.fixture
def manager_session() -> UserSession:
    return UserSession(
        user_id="u-sm-1",
        name="Samuel Osei",
        role=Role.STATION_MANAGER,
        station_id="accra-central",
        station_name="KTC Accra Central",
        token="token-manager",
    )


@pytest.fixture
def admin_session() -> UserSession:
    return UserSession(
        user_id="u-ad-1",
        name="Mary Asante",
        role=Role.ADMIN,
        token="token-admin",
    )


@pytest.fixture
def super_admin_session() -> UserSession:
    return UserSession(
        user_id="u-sa-1",
        name="Dr. Emmanuel Asante",
        role=Role.SUPER_ADMIN,
        token="token-super",
    )


# =============================================================================
# Fake HTTP transport
# =============================================================================


def make_response(
    status: int = 200,
    body: Any = None,
    reason: str = "OK",
) -> requests.Response:
    """Build a ``requests.Response`` without a network."""
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    response.encoding = "utf-8"
    if body is None:
        response._content = b""
    elif isinstance(body, bytes):
        response._content = body
    elif isinstance(body, str):
        response._content = body.encode("utf-8")
    else:
        response._content = json.dumps(body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    return response


@dataclass
class RecordedCall:
    method: str
    path: str
    json: Any
    params: dict | None
    headers: dict
    timeout: float | None


class FakeHttp:
    """
    Stand-in for ``requests.Session``.

    Routes map ``(METHOD, path)`` to a list of outcomes (a response or an
    exception instance).  Outcomes are consumed in order; the last one
    repeats.  Unrouted requests get ``default``, a connection error unless
    set otherwise.
    """

    def __init__(self):
        self.calls: list[RecordedCall] = []
        self._routes: dict[tuple[str, str], list[Any]] = {}
        self.default: Any = requests.ConnectionError("backend offline")

    def route(self, method: str, path: str, *outcomes: Any) -> None:
        self._routes[(method.upper(), path)] = list(outcomes)

    def request(self, method, url, json=None, params=None, headers=None, timeout=None):
        path = url[len(BASE_URL):] if url.startswith(BASE_URL) else url
        self.calls.append(
            RecordedCall(method.upper(), path, json, params, dict(headers or {}), timeout)
        )
        outcomes = self._routes.get((method.upper(), path))
        if outcomes:
            outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        else:
            outcome = self.default
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def calls_to(self, method: str, path: str) -> list[RecordedCall]:
        return [c for c in self.calls if c.method == method.upper() and c.path == path]


@pytest.fixture
def http() -> FakeHttp:
    return FakeHttp()


@pytest.fixture
def sleeps() -> list[float]:
    """Delays requested by the retry loop, instead of real sleeping."""
    return []


@pytest.fixture
def api_client(store, http) -> ApiClient:
    return ApiClient(BASE_URL, store=store, http=http)


@pytest.fixture
def fetcher(api_client, store, sleeps) -> ResilientFetcher:
    return ResilientFetcher(
        api_client,
        RetryPolicy(attempts=3, base_delay=1.0, timeout=15.0),
        store=store,
        sleep=sleeps.append,
    )


# =============================================================================
# Sample entries
# =============================================================================

REFERENCE_INPUTS: dict[str, float] = {
    "open_sl": 8500,
    "supply": 15000,
    "overage_shortage_l": 0,
    "closing_sl": 6200,
    "open_sr": 125680,
    "closing_sr": 143280,
    "return_tt": 300,
    "rate": 15.85,
    "credit_sales": 14000,
    "advances": 5000,
    "shortage_momo": 2000,
    "repayment_shortage_momo": 1500,
    "repayment_advances": 3000,
    "received_from_debtors": 8000,
}


@pytest.fixture
def reference_entry() -> Entry:
    """The worked example: a valid Super entry in DRAFT."""
    return Entry(
        date=date(2024, 12, 15),
        product=Product.SUPER,
        station_id="accra-central",
        station_name="KTC Accra Central",
        bank_lodgement=265705.0,
        **{name: float(value) for name, value in REFERENCE_INPUTS.items()},
    )


@pytest.fixture
def submitted_entry(reference_entry) -> Entry:
    return derive_entry(
        replace(
            reference_entry,
            id="DS-001",
            status=EntryStatus.SUBMITTED,
            entered_by="Samuel Osei",
        )
    )


@pytest.fixture
def respond():
    """``make_response`` as a fixture: ``respond(200, {...})``."""
    return make_response
