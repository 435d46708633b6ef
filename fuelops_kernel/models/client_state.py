"""
Module: fuelops_kernel.models.client_state
Responsibility: ORM model for one named piece of client-side state (auth
    token, user profile, cached list response, companion cash-to-bank value).
Architecture position: Kernel > Models.  Imports from db/base.py only.

Invariants enforced:
    - One row per key; writes replace the previous value.
    - ``value`` holds JSON text; callers never see the raw string
      (``fuelops_services.local_store`` encodes and decodes it).
"""

from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from fuelops_kernel.db.base import Base


class ClientStateItem(Base):
    """A keyed JSON value, the server-side counterpart of a localStorage slot."""

    __tablename__ = "client_state"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(nullable=False)
    updated_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<ClientStateItem {self.key} @ {self.updated_at.isoformat()}>"
