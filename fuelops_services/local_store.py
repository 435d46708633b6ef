"""
fuelops_services.local_store -- Keyed JSON state kept on the client.

Responsibility:
    Get, set and remove named JSON values in the SQLite client-state
    table: the auth token and profile, cached list responses used as a
    read fallback, and the companion product's cash-to-bank figure for the
    cash variance check.

Architecture position:
    Services -- thin I/O wrapper over ``fuelops_kernel.models.ClientStateItem``.
    Nothing in the kernel or the engines imports this module.

Invariants enforced:
    - One value per key; ``set`` replaces.
    - Values round-trip through JSON; dates and other non-JSON values
      come back as their ``str()`` form.

Non-goals:
    - No durability or sync guarantee.  Losing the store loses only
      convenience data.
"""

from __future__ import annotations

import json
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from fuelops_kernel.db.engine import session_scope
from fuelops_kernel.domain.clock import Clock, SystemClock
from fuelops_kernel.logging_config import get_logger
from fuelops_kernel.models.client_state import ClientStateItem

logger = get_logger("services.local_store")


def companion_cash_key(station_id: str | None, entry_date: Any, product: Any) -> str:
    """Key under which a product's cash-to-bank for a station-day is kept."""
    product_name = getattr(product, "value", product)
    return f"companion_cash_to_bank:{station_id}:{entry_date}:{product_name}"


def cache_key(resource: str, params: dict[str, Any] | None = None) -> str:
    """Stable key for a cached list response."""
    if not params:
        return f"cache:{resource}"
    encoded = json.dumps(params, sort_keys=True, default=str, separators=(",", ":"))
    return f"cache:{resource}:{encoded}"


class LocalStore:
    """Keyed JSON values in the client-state table."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()

    def get(self, key: str, default: Any = None) -> Any:
        with session_scope(self._session_factory) as session:
            item = session.get(ClientStateItem, key)
            if item is None:
                return default
            return json.loads(item.value)

    def set(self, key: str, value: Any) -> None:
        encoded = json.dumps(value, default=str)
        with session_scope(self._session_factory) as session:
            item = session.get(ClientStateItem, key)
            now = self._clock.now()
            if item is None:
                session.add(ClientStateItem(key=key, value=encoded, updated_at=now))
            else:
                item.value = encoded
                item.updated_at = now
        logger.debug("local_state_written", extra={"state_key": key})

    def remove(self, key: str) -> bool:
        with session_scope(self._session_factory) as session:
            result = session.execute(
                delete(ClientStateItem).where(ClientStateItem.key == key)
            )
            removed = result.rowcount > 0
        if removed:
            logger.debug("local_state_removed", extra={"state_key": key})
        return removed

    def keys(self, prefix: str = "") -> list[str]:
        with session_scope(self._session_factory) as session:
            stmt = select(ClientStateItem.key).order_by(ClientStateItem.key)
            if prefix:
                stmt = stmt.where(ClientStateItem.key.startswith(prefix, autoescape=True))
            return list(session.scalars(stmt))

    def __contains__(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING


_MISSING = object()
