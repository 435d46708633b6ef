"""
Client configuration schema.

Frozen dataclasses for every configuration section.  The loader parses
YAML into these types; ``ClientConfig`` is the only object the rest of
the system sees.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from fuelops_engines.validation import ValidationRules
from fuelops_kernel.domain.entry import Product

# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ApiSettings:
    """Backend location and request policy."""

    base_url: str
    timeout_seconds: float = 15.0
    retry_attempts: int = 3
    retry_delay_seconds: float = 1.0
    # When the backend is unreachable, apply writes locally instead of failing.
    mock_fallback: bool = True


@dataclass(frozen=True)
class RefreshSettings:
    """Polling intervals while connected."""

    entries_seconds: float = 300.0
    statistics_seconds: float = 600.0
    health_check_seconds: float = 120.0


@dataclass(frozen=True)
class LocalStoreSettings:
    database_url: str = "sqlite://"
    echo: bool = False


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ClientConfig:
    """The complete, validated client configuration."""

    api: ApiSettings
    refresh: RefreshSettings
    validation: ValidationRules
    reference_rates: dict[Product, float]
    local_store: LocalStoreSettings
    source: str = "defaults"
    checksum: str = ""
    overrides: tuple[str, ...] = field(default_factory=tuple)

    def reference_rate(self, product: Product) -> float | None:
        return self.reference_rates.get(product)
