"""
Module: fuelops_kernel.db.base
Responsibility: Declarative base for the client-state ORM models and the type
    annotation map that keeps column types consistent.
Architecture position: Kernel > DB.  Lowest-level import target within the
    kernel.  MUST NOT import from models/, services/, domain/, or outer layers.

Invariants enforced:
    - Timestamps are stored timezone-aware.
    - Models choose their own primary keys; client state is keyed by name.
"""

from datetime import datetime
from typing import ClassVar

from sqlalchemy import DateTime, Text
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Declarative base for all client-state models.

    Guarantees:
        - datetime maps to DateTime(timezone=True).
        - str maps to Text (SQLite ignores lengths anyway).
    """

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
        str: Text,
    }
