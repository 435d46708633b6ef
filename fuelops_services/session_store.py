"""
fuelops_services.session_store -- Persisted login state.

Responsibility:
    Save, load and clear the bearer token and the minimal user profile in
    the local store (keys ``auth_token`` and ``auth_user``).  The API
    client reads the token from here on every request and clears both keys
    when the backend answers 401.
"""

from __future__ import annotations

from fuelops_kernel.domain.session import UserSession
from fuelops_kernel.logging_config import get_logger
from fuelops_services.local_store import LocalStore

logger = get_logger("services.session_store")

TOKEN_KEY = "auth_token"
PROFILE_KEY = "auth_user"


class SessionStore:
    def __init__(self, store: LocalStore):
        self._store = store

    @property
    def token(self) -> str | None:
        return self._store.get(TOKEN_KEY)

    def save(self, session: UserSession) -> None:
        if session.token is not None:
            self._store.set(TOKEN_KEY, session.token)
        self._store.set(PROFILE_KEY, session.to_profile())
        logger.info(
            "session_saved",
            extra={"actor_id": session.user_id, "role": session.role.value},
        )

    def load(self) -> UserSession | None:
        """The stored session, or None when no profile is stored."""
        profile = self._store.get(PROFILE_KEY)
        if profile is None:
            return None
        return UserSession.from_profile(profile, token=self.token)

    def clear(self, reason: str = "logout") -> None:
        self._store.remove(TOKEN_KEY)
        self._store.remove(PROFILE_KEY)
        logger.info("session_cleared", extra={"reason": reason})
