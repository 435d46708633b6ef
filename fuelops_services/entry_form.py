"""
fuelops_services.entry_form -- The daily-entry screen without a UI.

Responsibility:
    Holds the entry a station manager is typing in.  Every edit is coerced,
    the product's reference rate is applied while the user has not typed a
    rate of their own, the derived fields are recomputed and the validator
    re-runs, so ``entry`` and ``validation_errors`` are always current.

    Also pre-fills the opening figures from the previous day's closing
    figures and the supply figures from the supply record for the day.

Architecture position:
    Services -- per-user state over the engines and the resilient fetcher.
    Submission is delegated to ``EntryLifecycleService``.

Invariants enforced:
    - ``entry`` is always the output of ``derive_entry`` on the current
      inputs; ``validation_errors`` is always ``validate_entry`` of it.
    - A rate the user typed is never overwritten by a product change; a
      blank or zero rate is refilled from the reference table.
    - An unreachable or empty previous-day answer clears the opening
      figures and marks the station/product as a first entry.  Only a
      live answer pre-fills; cached copies are never used.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from fuelops_engines.reconciliation import derive_entry
from fuelops_engines.validation import DEFAULT_RULES, ValidationRules, validate_entry
from fuelops_kernel.domain.clock import Clock, SystemClock
from fuelops_kernel.domain.entry import (
    REFERENCE_RATES,
    Entry,
    EntryBuilder,
    Product,
    attribute_name,
)
from fuelops_kernel.domain.session import UserSession
from fuelops_kernel.exceptions import RemoteError
from fuelops_kernel.logging_config import LogContext, get_logger
from fuelops_services.entry_lifecycle import (
    EntryLifecycleService,
    TransitionOutcome,
    stored_companion_cash,
)
from fuelops_services.local_store import LocalStore
from fuelops_services.resilient_fetch import ResilientFetcher

logger = get_logger("services.entry_form")

PREVIOUS_DAY_PATH = "/dailysales/latest/{station}/{product}"
SUPPLY_DATA_PATH = "/supply/supply-data/{station}/{date}/{product}"


def supply_overage(data: Mapping[str, Any]) -> float:
    """Signed overage/shortage litres from a supply answer."""
    if data.get("overage") is not None:
        return float(data["overage"])
    if data.get("shortage") is not None:
        return -float(data["shortage"])
    if data.get("overageShortageAmount") is not None:
        return float(data["overageShortageAmount"])
    return 0.0


class EntryFormSession:
    """
    One station manager's entry form.

    Contract:
        ``update`` returns the recomputed entry.  Field names may be
        snake_case attributes or camelCase wire keys.

    Non-goals:
        - Does NOT submit by itself; ``submit`` needs a lifecycle service.
    """

    def __init__(
        self,
        fetcher: ResilientFetcher,
        session: UserSession,
        rules: ValidationRules = DEFAULT_RULES,
        reference_rates: Mapping[Product, float] | None = None,
        clock: Clock | None = None,
        *,
        lifecycle: EntryLifecycleService | None = None,
        store: LocalStore | None = None,
    ):
        self._fetcher = fetcher
        self._session = session
        self._rules = rules
        self._rates = dict(reference_rates if reference_rates is not None else REFERENCE_RATES)
        self._clock = clock or SystemClock()
        self._lifecycle = lifecycle
        self._store = store
        self.reset()

    # -- state ---------------------------------------------------------------

    @property
    def entry(self) -> Entry:
        return self._entry

    @property
    def validation_errors(self) -> list[str]:
        return list(self._errors)

    @property
    def can_submit(self) -> bool:
        e = self._entry
        return (
            not self._errors
            and e.date is not None
            and e.product is not None
            and e.rate is not None
        )

    @property
    def has_required_fields(self) -> bool:
        e = self._entry
        return (
            e.open_sl is not None
            and e.closing_sl is not None
            and e.open_sr is not None
            and e.closing_sr is not None
            and bool(e.rate)
        )

    def reset(self) -> Entry:
        """Start a fresh DRAFT for today and the default product."""
        seed = Entry(
            date=self._clock.today(),
            product=Product.SUPER,
            station_id=self._session.station_id,
            station_name=self._session.station_name,
            entered_by=self._session.name,
        )
        self._builder = EntryBuilder(seed)
        self._rate_edited = False
        self.is_first_entry = False
        self.previous_day: dict[str, Any] | None = None
        self.supply_data: dict[str, Any] | None = None
        self._apply_reference_rate(Product.SUPER)
        return self._recompute()

    # -- edits ---------------------------------------------------------------

    def update(self, field: str, value: Any) -> Entry:
        """Set one editable field and recompute.

        Raises:
            UnknownEntryFieldError / ReadOnlyFieldError / InvalidFieldValueError.
        """
        self._builder.set(field, value)
        name = attribute_name(field)
        if name == "rate":
            # Clearing the rate (blank or 0) hands it back to the reference table.
            self._rate_edited = bool(self._builder.get("rate"))
        elif name == "product":
            self._apply_reference_rate(self._builder.get("product"))
        return self._recompute()

    def _apply_reference_rate(self, product: Product | None) -> None:
        if self._rate_edited or product is None:
            return
        rate = self._rates.get(product)
        if rate is not None:
            self._builder.set("rate", rate)

    def _recompute(self) -> Entry:
        self._entry = derive_entry(self._builder.build())
        self._errors = validate_entry(
            self._entry,
            companion_cash_to_bank=stored_companion_cash(self._store, self._rules, self._entry),
            rules=self._rules,
        )
        return self._entry

    # -- pre-fill ------------------------------------------------------------

    def load_previous_day(self) -> Entry:
        """Opening stock and reading from the previous day's closing figures."""
        with LogContext.bind_user(self._session), LogContext.bind_entry(self._entry):
            return self._load_previous_day()

    def _load_previous_day(self) -> Entry:
        station = self._session.station_name
        product = self._builder.get("product")
        if station is None or product is None:
            return self._entry

        path = PREVIOUS_DAY_PATH.format(station=station, product=product.value)
        data = None
        try:
            result = self._fetcher.fetch(f"previous_day:{station}:{product.value}", path)
        except RemoteError as exc:
            logger.warning(
                "previous_day_unavailable",
                extra={"path": path, "error": str(exc)},
            )
        else:
            # "Latest" moves every day; a cached answer may be days old.
            if result.is_authoritative:
                data = result.data
            else:
                logger.warning(
                    "previous_day_unavailable",
                    extra={"path": path, "source": result.source.value},
                )

        if isinstance(data, dict) and data:
            self.previous_day = data
            self.is_first_entry = False
            self._builder.set("open_sl", data.get("closingSL"))
            self._builder.set("open_sr", data.get("closingSR"))
        else:
            self.previous_day = None
            self.is_first_entry = True
            self._builder.unset("open_sl")
            self._builder.unset("open_sr")
            logger.info("first_entry_for_product")
        return self._recompute()

    def load_supply(self) -> Entry:
        """Supply and overage/shortage from the day's supply record."""
        with LogContext.bind_user(self._session), LogContext.bind_entry(self._entry):
            return self._load_supply()

    def _load_supply(self) -> Entry:
        station = self._session.station_name
        product = self._builder.get("product")
        entry_date = self._builder.get("date")
        if station is None or product is None or entry_date is None:
            return self._entry

        path = SUPPLY_DATA_PATH.format(
            station=station, date=entry_date.isoformat(), product=product.value
        )
        try:
            data = self._fetcher.fetch(
                f"supply_data:{station}:{entry_date.isoformat()}:{product.value}", path
            ).data
        except RemoteError as exc:
            logger.warning(
                "supply_data_unavailable",
                extra={"path": path, "error": str(exc)},
            )
            data = None

        if isinstance(data, dict) and data:
            self.supply_data = data
            self._builder.set("supply", data.get("qty") or 0)
            self._builder.set("overage_shortage_l", supply_overage(data))
        else:
            self.supply_data = None
            self._builder.set("supply", 0)
            self._builder.set("overage_shortage_l", 0)
        return self._recompute()

    # -- submission ----------------------------------------------------------

    def submit(self) -> TransitionOutcome:
        """Submit the current entry and start a fresh form on success.

        Raises:
            RuntimeError: no lifecycle service was given.
        """
        if self._lifecycle is None:
            raise RuntimeError("EntryFormSession.submit requires a lifecycle service")
        outcome = self._lifecycle.submit(self._entry)
        self.reset()
        return outcome
