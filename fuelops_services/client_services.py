"""
fuelops_services.client_services -- Central wiring of the client-core services.

Responsibility:
    Builds every service exactly once from a ``ClientConfig`` and wires
    them together: local store, session store, API client, resilient
    fetcher, connection monitor, and the per-user lifecycle, form, query
    and approval services.  No service constructs another service.

Architecture position:
    Services -- top of the service layer and the only module that reads
    ``ClientConfig``.  Everything below receives plain arguments.

Invariants enforced:
    - One ``LocalStore``, one ``ApiClient`` and one ``ResilientFetcher``
      per container; every service shares them.
    - Per-user services require a signed-in ``UserSession``.

Usage:
    from fuelops_config import get_active_config
    from fuelops_services.client_services import ClientServices

    services = ClientServices(get_active_config())
    services.sign_in(session)
    outcome = services.lifecycle.submit(entry)
"""

from __future__ import annotations

import time
from collections.abc import Callable

import requests
from sqlalchemy.orm import Session, sessionmaker

from fuelops_config.schema import ClientConfig
from fuelops_kernel.db.engine import create_tables, get_session_factory, init_engine_from_url
from fuelops_kernel.domain.clock import Clock, SystemClock
from fuelops_kernel.domain.session import UserSession
from fuelops_kernel.logging_config import get_logger
from fuelops_services.api_client import ApiClient
from fuelops_services.approvals import (
    PRICE_CHANGE_WORKFLOW,
    SUPPLY_WORKFLOW,
    UTILITY_BILL_WORKFLOW,
    RecordApprovalService,
    RecordWorkflow,
)
from fuelops_services.connectivity import ConnectionMonitor, ListPoller
from fuelops_services.entry_form import EntryFormSession
from fuelops_services.entry_lifecycle import EntryLifecycleService
from fuelops_services.entry_queries import EntryQueryService
from fuelops_services.local_store import LocalStore
from fuelops_services.resilient_fetch import ResilientFetcher, RetryPolicy
from fuelops_services.session_store import SessionStore

logger = get_logger("services.client_services")


class ClientServices:
    """
    DI container for one running client.

    Contract:
        Infrastructure services are available immediately.  Per-user
        services (``lifecycle``, ``queries``, ``new_entry_form``,
        ``approvals``) raise ``RuntimeError`` until a user is signed in.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        clock: Clock | None = None,
        http: requests.Session | None = None,
        session_factory: sessionmaker[Session] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.clock = clock or SystemClock()

        if session_factory is None:
            init_engine_from_url(
                config.local_store.database_url, echo=config.local_store.echo
            )
            create_tables()
            session_factory = get_session_factory()

        self.store = LocalStore(session_factory, self.clock)
        self.session_store = SessionStore(self.store)
        self.client = ApiClient(
            config.api.base_url,
            store=self.store,
            http=http,
            timeout=config.api.timeout_seconds,
        )
        self.fetcher = ResilientFetcher(
            self.client,
            RetryPolicy.from_settings(config.api),
            store=self.store,
            sleep=sleep,
        )
        self.monitor = ConnectionMonitor(
            self.client, self.clock, timeout=config.api.timeout_seconds
        )
        self._user = self.session_store.load()

        logger.info(
            "client_services_ready",
            extra={
                "base_url": config.api.base_url,
                "mock_fallback": config.api.mock_fallback,
                "restored_session": self._user is not None,
            },
        )

    # -- sign-in -------------------------------------------------------------

    @property
    def user(self) -> UserSession | None:
        return self._user

    def sign_in(self, session: UserSession) -> None:
        self.session_store.save(session)
        self._user = session

    def sign_out(self) -> None:
        self.session_store.clear(reason="logout")
        self._user = None

    def _require_user(self) -> UserSession:
        if self._user is None:
            raise RuntimeError("no user is signed in")
        return self._user

    # -- per-user services ---------------------------------------------------

    @property
    def lifecycle(self) -> EntryLifecycleService:
        return EntryLifecycleService(
            self.fetcher,
            self._require_user(),
            self.clock,
            rules=self.config.validation,
            mock_fallback=self.config.api.mock_fallback,
            store=self.store,
        )

    @property
    def queries(self) -> EntryQueryService:
        return EntryQueryService(
            self.fetcher,
            self._require_user(),
            clock=self.clock,
            mock_fallback=self.config.api.mock_fallback,
        )

    def new_entry_form(self) -> EntryFormSession:
        return EntryFormSession(
            self.fetcher,
            self._require_user(),
            self.config.validation,
            self.config.reference_rates,
            self.clock,
            lifecycle=self.lifecycle,
            store=self.store,
        )

    def approvals(self, workflow: RecordWorkflow) -> RecordApprovalService:
        return RecordApprovalService(
            workflow,
            self.fetcher,
            self._require_user(),
            self.clock,
            mock_fallback=self.config.api.mock_fallback,
        )

    @property
    def price_changes(self) -> RecordApprovalService:
        return self.approvals(PRICE_CHANGE_WORKFLOW)

    @property
    def supplies(self) -> RecordApprovalService:
        return self.approvals(SUPPLY_WORKFLOW)

    @property
    def utility_bills(self) -> RecordApprovalService:
        return self.approvals(UTILITY_BILL_WORKFLOW)

    # -- polling -------------------------------------------------------------

    def entries_poller(self, refresh: Callable[[], object]) -> ListPoller:
        return ListPoller(
            self.monitor, refresh, self.config.refresh.entries_seconds, name="entries"
        )

    def statistics_poller(self, refresh: Callable[[], object]) -> ListPoller:
        return ListPoller(
            self.monitor, refresh, self.config.refresh.statistics_seconds, name="statistics"
        )
