"""
fuelops_services.connectivity -- Backend health monitor and list poller.

Responsibility:
    Track whether the backend is reachable (``ConnectionMonitor``) and
    re-fetch a list on a fixed interval while it is (``ListPoller``).

Architecture position:
    Services.  The poller owns one daemon thread; everything it does per
    cycle is in ``tick()`` so tests drive it without threads or sleeps.

Invariants enforced:
    - ``ConnectionMonitor.status`` is always available, before the first
      check too (disconnected, never checked).
    - A mode change (connected <-> mock mode) is logged once per change.
    - Polling never refreshes while disconnected.
    - A failing refresh is logged and the loop continues.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime

from fuelops_kernel.domain.clock import Clock, SystemClock
from fuelops_kernel.logging_config import get_logger
from fuelops_services.api_client import HEALTH_PATH, ApiClient

logger = get_logger("services.connectivity")


@dataclass(frozen=True)
class ConnectionStatus:
    connected: bool = False
    last_checked: datetime | None = None
    endpoint: str = ""
    response_time_ms: float | None = None
    last_sync_time: datetime | None = None

    @property
    def mode(self) -> str:
        return "connected" if self.connected else "mock"


class ConnectionMonitor:
    """Health-check the backend and remember the result."""

    def __init__(
        self,
        client: ApiClient,
        clock: Clock | None = None,
        timeout: float | None = None,
    ):
        self._client = client
        self._clock = clock or SystemClock()
        self._timeout = timeout
        self._lock = threading.Lock()
        self._status = ConnectionStatus(endpoint=client.url_for(HEALTH_PATH))

    @property
    def status(self) -> ConnectionStatus:
        with self._lock:
            return self._status

    @property
    def connected(self) -> bool:
        return self.status.connected

    def check(self) -> bool:
        """One health call, no retries.  Returns the new connected state."""
        started = time.monotonic()
        ok = self._client.health(timeout=self._timeout)
        elapsed_ms = round((time.monotonic() - started) * 1000, 1)
        now = self._clock.now()

        with self._lock:
            previous = self._status
            self._status = replace(
                previous,
                connected=ok,
                last_checked=now,
                response_time_ms=elapsed_ms if ok else None,
            )

        if ok != previous.connected or previous.last_checked is None:
            logger.info(
                "connection_mode_changed",
                extra={
                    "connected": ok,
                    "mode": self._status.mode,
                    "endpoint": previous.endpoint,
                    "response_time_ms": elapsed_ms,
                },
            )
        return ok

    def mark_synced(self) -> None:
        with self._lock:
            self._status = replace(self._status, last_sync_time=self._clock.now())


class ListPoller:
    """
    Fixed-interval refresh while connected.

    Contract:
        ``tick()`` is one cycle: health check, then ``refresh()`` if
        connected.  ``start()`` runs ticks on a daemon thread until
        ``stop()``.
    """

    def __init__(
        self,
        monitor: ConnectionMonitor,
        refresh: Callable[[], object],
        interval: float,
        name: str = "list",
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._monitor = monitor
        self._refresh = refresh
        self.interval = interval
        self.name = name
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick(self) -> bool:
        """Run one cycle.  Returns True when a refresh ran and succeeded."""
        if not self._monitor.check():
            logger.debug("poll_paused", extra={"poller": self.name})
            return False
        try:
            self._refresh()
        except Exception:
            # Background loop boundary: log and keep polling.
            logger.exception("poll_refresh_failed", extra={"poller": self.name})
            return False
        self._monitor.mark_synced()
        return True

    def _run(self) -> None:
        logger.info("poller_started", extra={"poller": self.name, "interval_s": self.interval})
        while not self._stop.wait(self.interval):
            self.tick()
        logger.info("poller_stopped", extra={"poller": self.name})

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name=f"poller-{self.name}", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
