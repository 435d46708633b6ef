"""
fuelops_services.resilient_fetch -- Retry, cache and mock fallback for backend reads.

Responsibility:
    One generic read path for every list the dashboard shows:

    1. call the backend, retrying only connectivity failures with linear
       backoff;
    2. on success, cache the data and return it as LIVE;
    3. when the backend stays unreachable, return the last cached data
       (CACHE), else the caller's mock data (MOCK), else raise.

    Writes go through ``send``: the same retries, never a fallback.

Architecture position:
    Services -- wraps ``ApiClient``.  The lifecycle and approval services
    decide what a failed write means; this module only reports it.

Invariants enforced:
    - An ``ApiResponseError`` is never retried and never falls back.
    - Only LIVE results are written to the cache.
    - The delay before attempt n+1 is ``base_delay * n``.

Failure modes:
    - ``RetriesExhaustedError`` when every attempt failed to connect and
      no fallback applies.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from fuelops_kernel.exceptions import ConnectivityError, RetriesExhaustedError
from fuelops_kernel.logging_config import get_logger
from fuelops_services.api_client import ApiClient
from fuelops_services.local_store import LocalStore, cache_key

logger = get_logger("services.resilient_fetch")

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 3
    base_delay: float = 1.0
    timeout: float = 15.0

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError(f"attempts must be >= 1, got {self.attempts}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must be non-negative, got {self.base_delay}")

    def delay_before(self, attempt: int) -> float:
        """Seconds to wait before ``attempt`` (1-based); none before the first."""
        return self.base_delay * (attempt - 1)

    @classmethod
    def from_settings(cls, api: Any) -> "RetryPolicy":
        return cls(
            attempts=api.retry_attempts,
            base_delay=api.retry_delay_seconds,
            timeout=api.timeout_seconds,
        )


def call_with_retry(
    operation: Callable[[], T],
    policy: RetryPolicy,
    *,
    path: str = "",
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``operation`` up to ``policy.attempts`` times.

    Only ``ConnectivityError`` is retried.  Anything else propagates from
    the attempt that raised it.

    Raises:
        RetriesExhaustedError: every attempt raised ``ConnectivityError``.
    """
    last: ConnectivityError | None = None
    for attempt in range(1, policy.attempts + 1):
        if attempt > 1:
            sleep(policy.delay_before(attempt))
        try:
            return operation()
        except ConnectivityError as exc:
            last = exc
            logger.warning(
                "attempt_failed",
                extra={
                    "attempt": attempt,
                    "max_attempts": policy.attempts,
                    "reason": exc.reason,
                    "path": path or exc.path,
                },
            )
    # attempts >= 1, so ``last`` is set here.
    raise RetriesExhaustedError(path or last.path, policy.attempts, last.reason) from last


class FetchSource(str, Enum):
    LIVE = "live"
    CACHE = "cache"
    MOCK = "mock"


@dataclass(frozen=True)
class FetchResult:
    data: Any
    source: FetchSource

    @property
    def is_authoritative(self) -> bool:
        return self.source is FetchSource.LIVE


class ResilientFetcher:
    """
    Retrying reads with cache-then-mock fallback, and retrying writes.

    Contract:
        ``fetch`` never hides an explicit backend rejection.  It only
        substitutes data when the backend could not be reached.
    """

    def __init__(
        self,
        client: ApiClient,
        policy: RetryPolicy | None = None,
        store: LocalStore | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.policy = policy or RetryPolicy()
        self._store = store
        self._sleep = sleep

    def fetch(
        self,
        resource: str,
        path: str,
        params: dict[str, Any] | None = None,
        mock_provider: Callable[[], Any] | None = None,
    ) -> FetchResult:
        key = cache_key(resource, params)
        try:
            data = call_with_retry(
                lambda: self.client.get(path, params=params, timeout=self.policy.timeout),
                self.policy,
                path=path,
                sleep=self._sleep,
            )
        except RetriesExhaustedError as exc:
            if self._store is not None:
                cached = self._store.get(key)
                if cached is not None:
                    logger.warning(
                        "fetch_fell_back_to_cache",
                        extra={"resource": resource, "path": path},
                    )
                    return FetchResult(cached, FetchSource.CACHE)
            if mock_provider is not None:
                logger.warning(
                    "fetch_fell_back_to_mock",
                    extra={"resource": resource, "path": path, "reason": exc.reason},
                )
                return FetchResult(mock_provider(), FetchSource.MOCK)
            raise

        if self._store is not None and data is not None:
            self._store.set(key, data)
        return FetchResult(data, FetchSource.LIVE)

    def send(self, method: str, path: str, json: Any = None) -> Any:
        """Retrying write.  Raises ``RetriesExhaustedError`` or
        ``ApiResponseError``; never substitutes data."""
        return call_with_retry(
            lambda: self.client.request(method, path, json=json, timeout=self.policy.timeout),
            self.policy,
            path=path,
            sleep=self._sleep,
        )
