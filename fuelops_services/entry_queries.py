"""
fuelops_services.entry_queries -- Listing, exporting and summarising sales entries.

Responsibility:
    - Choose the list endpoint for the signed-in role and selected station.
    - Translate filters and 1-based pagination into backend query params
      (the backend pages from 0).
    - Fall back to cached, then mock, entries when the backend is
      unreachable; mock entries are filtered and paged client-side with
      the same rules the backend applies.
    - Request an export and describe the file the backend produced.
    - Count entries by status for the summary cards.

Architecture position:
    Services -- read side of the entry workflow.  Writes live in
    ``fuelops_services.entry_lifecycle``.

Invariants enforced:
    - A station manager only ever lists their own station, whatever
      station is selected.
    - ``EntryPage.source`` says where the entries came from; only LIVE is
      authoritative.
"""

from __future__ import annotations

import functools
import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any

from fuelops_kernel.domain.clock import Clock, SystemClock
from fuelops_kernel.domain.entry import Entry, EntryStatus, Product
from fuelops_kernel.domain.session import Role, UserSession
from fuelops_kernel.exceptions import BackendUnavailableError, RetriesExhaustedError
from fuelops_kernel.logging_config import get_logger
from fuelops_services import mock_data
from fuelops_services.resilient_fetch import FetchSource, ResilientFetcher

logger = get_logger("services.entry_queries")

ALL_ENTRIES_PATH = "/dailysales/all"
STATION_ENTRIES_PATH = "/dailysales/station/{station}"
EXPORT_PATH = "/sales-entries/export"

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class StationRef:
    """The station picked in the station selector."""

    id: str
    name: str


@dataclass(frozen=True)
class EntryFilters:
    status: EntryStatus | None = None
    product: Product | None = None
    date_from: date | None = None
    date_to: date | None = None
    search: str | None = None

    def to_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {}
        if self.status is not None:
            params["status"] = self.status.value
        if self.product is not None:
            params["product"] = self.product.value
        if self.search:
            params["search"] = self.search
        if self.date_from is not None:
            params["dateFrom"] = self.date_from.isoformat()
        if self.date_to is not None:
            params["dateTo"] = self.date_to.isoformat()
        return params

    def matches(self, entry: Entry) -> bool:
        if self.status is not None and entry.status is not self.status:
            return False
        if self.product is not None and entry.product is not self.product:
            return False
        if self.date_from is not None and (entry.date is None or entry.date < self.date_from):
            return False
        if self.date_to is not None and (entry.date is None or entry.date > self.date_to):
            return False
        if self.search:
            needle = self.search.lower()
            haystack = (
                entry.product.value.lower() if entry.product else "",
                (entry.entered_by or "").lower(),
                entry.date.isoformat() if entry.date else "",
            )
            if not any(needle in text for text in haystack):
                return False
        return True


@dataclass(frozen=True)
class Pagination:
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    sort_by: str = "date"
    sort_order: str = "desc"

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page is 1-based")
        if not 1 <= self.page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
        if self.sort_order not in ("asc", "desc"):
            raise ValueError("sort_order must be 'asc' or 'desc'")

    def to_params(self) -> dict[str, Any]:
        return {
            "page": self.page - 1,
            "pageSize": self.page_size,
            "sortBy": self.sort_by,
            "sortOrder": self.sort_order,
        }


@dataclass(frozen=True)
class EntryPage:
    entries: tuple[Entry, ...]
    total_elements: int
    total_pages: int
    first: bool
    last: bool
    source: FetchSource

    @property
    def is_authoritative(self) -> bool:
        return self.source is FetchSource.LIVE


class ExportFormat(str, Enum):
    CSV = "CSV"
    EXCEL = "EXCEL"
    PDF = "PDF"

    @property
    def extension(self) -> str:
        return self.value.lower()


@dataclass(frozen=True)
class ExportDescriptor:
    file_name: str
    download_url: str | None
    format: ExportFormat
    applied_locally_only: bool


@dataclass(frozen=True)
class EntryStatistics:
    total_entries: int = 0
    draft_entries: int = 0
    submitted_entries: int = 0
    validated_entries: int = 0
    approved_entries: int = 0
    rejected_entries: int = 0
    pending_validation: int = 0
    pending_approval: int = 0
    total_sales_value: float = 0.0
    total_sales_volume: float = 0.0
    total_cash_sales: float = 0.0
    total_credit_sales: float = 0.0
    total_bank_lodgements: float = 0.0


def entry_statistics(entries: Iterable[Entry]) -> EntryStatistics:
    """Status counts and money totals; absent figures count as 0."""
    entries = list(entries)
    counts = {status: 0 for status in EntryStatus}
    for e in entries:
        counts[e.status] += 1

    def total(attr: str) -> float:
        return sum(getattr(e, attr) or 0.0 for e in entries)

    return EntryStatistics(
        total_entries=len(entries),
        draft_entries=counts[EntryStatus.DRAFT],
        submitted_entries=counts[EntryStatus.SUBMITTED],
        validated_entries=counts[EntryStatus.VALIDATED],
        approved_entries=counts[EntryStatus.APPROVED],
        rejected_entries=counts[EntryStatus.REJECTED],
        pending_validation=counts[EntryStatus.SUBMITTED],
        pending_approval=counts[EntryStatus.VALIDATED],
        total_sales_value=total("value"),
        total_sales_volume=total("sales_l"),
        total_cash_sales=total("cash_sales"),
        total_credit_sales=total("credit_sales"),
        total_bank_lodgements=total("bank_lodgement"),
    )


def station_slug(name: str | None) -> str:
    if not name:
        return "all-stations"
    return "-".join(name.split()).lower()


def _sort_key(attr: str) -> Callable[[Entry], tuple[bool, Any]]:
    def key(entry: Entry) -> tuple[bool, Any]:
        value = getattr(entry, attr, None)
        if isinstance(value, Enum):
            value = value.value
        # Absent values sort last in ascending order.
        return (value is None, value if value is not None else 0)

    return key


def page_locally(
    entries: Sequence[Entry],
    pagination: Pagination,
    source: FetchSource,
) -> EntryPage:
    """Sort and slice entries the way the backend pages them."""
    ordered = sorted(
        entries,
        key=_sort_key(pagination.sort_by),
        reverse=pagination.sort_order == "desc",
    )
    total = len(ordered)
    pages = math.ceil(total / pagination.page_size) if total else 0
    start = (pagination.page - 1) * pagination.page_size
    return EntryPage(
        entries=tuple(ordered[start:start + pagination.page_size]),
        total_elements=total,
        total_pages=pages,
        first=pagination.page == 1,
        last=pagination.page >= pages,
        source=source,
    )


class EntryQueryService:
    """
    Read access to daily sales entries for one signed-in user.

    Contract:
        ``list_entries`` returns a page or raises ``ApiResponseError`` /
        ``RetriesExhaustedError``; it falls back only for connectivity
        failures.
    """

    def __init__(
        self,
        fetcher: ResilientFetcher,
        session: UserSession,
        mock_provider: Callable[[str | None], list[dict[str, Any]]] | None = mock_data.sales_entries,
        clock: Clock | None = None,
        *,
        mock_fallback: bool = True,
    ):
        self._fetcher = fetcher
        self._session = session
        self._mock_provider = mock_provider
        self._clock = clock or SystemClock()
        self._mock_fallback = mock_fallback

    def endpoint_for(self, selected_station: StationRef | None = None) -> str:
        if self._session.role is Role.STATION_MANAGER and self._session.station_name:
            return STATION_ENTRIES_PATH.format(station=self._session.station_name)
        if self._session.role is not Role.STATION_MANAGER and selected_station is not None:
            return STATION_ENTRIES_PATH.format(station=selected_station.name)
        return ALL_ENTRIES_PATH

    def _scope_station_id(self, selected_station: StationRef | None) -> str | None:
        if self._session.role is Role.STATION_MANAGER:
            return self._session.station_id
        return selected_station.id if selected_station is not None else None

    def list_entries(
        self,
        filters: EntryFilters | None = None,
        pagination: Pagination | None = None,
        selected_station: StationRef | None = None,
    ) -> EntryPage:
        filters = filters or EntryFilters()
        pagination = pagination or Pagination()
        path = self.endpoint_for(selected_station)
        params = {**filters.to_params(), **pagination.to_params()}
        station_id = self._scope_station_id(selected_station)

        mock = None
        if self._mock_provider is not None:
            mock = functools.partial(self._mock_provider, station_id)

        result = self._fetcher.fetch("sales_entries", path, params=params, mock_provider=mock)

        if result.source is FetchSource.MOCK:
            entries = [Entry.from_wire(item) for item in result.data or []]
            matched = [e for e in entries if filters.matches(e)]
            logger.info(
                "entries_listed_from_mock",
                extra={"station_id": station_id, "count": len(matched)},
            )
            return page_locally(matched, pagination, result.source)

        return self._page_from_response(result.data, pagination, result.source)

    @staticmethod
    def _page_from_response(data: Any, pagination: Pagination, source: FetchSource) -> EntryPage:
        if isinstance(data, list):
            return page_locally([Entry.from_wire(item) for item in data], pagination, source)
        data = data or {}
        content = tuple(Entry.from_wire(item) for item in data.get("content") or [])
        total = data.get("totalElements", len(content))
        pages = data.get("totalPages", 1 if content else 0)
        return EntryPage(
            entries=content,
            total_elements=int(total),
            total_pages=int(pages),
            first=bool(data.get("first", pagination.page == 1)),
            last=bool(data.get("last", pagination.page >= pages)),
            source=source,
        )

    def export(
        self,
        format: ExportFormat | str,
        filters: EntryFilters | None = None,
        include_details: bool = True,
        selected_station: StationRef | None = None,
    ) -> ExportDescriptor:
        """Ask the backend for an export file of the filtered entries.

        Raises:
            ApiResponseError: the backend refused the export.
            BackendUnavailableError: unreachable and mock fallback disabled.
        """
        fmt = ExportFormat(str(getattr(format, "value", format)).upper())
        filters = filters or EntryFilters()
        payload = {
            "format": fmt.value,
            "filters": filters.to_params(),
            "dateRange": {
                "from": filters.date_from.isoformat() if filters.date_from else "",
                "to": filters.date_to.isoformat() if filters.date_to else "",
            },
            "includeDetails": include_details,
        }
        try:
            response = self._fetcher.send("POST", EXPORT_PATH, json=payload)
        except RetriesExhaustedError as exc:
            if not self._mock_fallback:
                raise BackendUnavailableError("export") from exc
            station_name = (
                self._session.station_name
                if self._session.role is Role.STATION_MANAGER or selected_station is None
                else selected_station.name
            )
            file_name = (
                f"sales-entries-{station_slug(station_name)}-"
                f"{self._clock.today().isoformat()}.{fmt.extension}"
            )
            logger.warning(
                "export_applied_locally",
                extra={"file_name": file_name, "reason": exc.last_reason},
            )
            return ExportDescriptor(file_name, None, fmt, True)

        response = response or {}
        logger.info("export_ready", extra={"file_name": response.get("fileName")})
        return ExportDescriptor(
            file_name=response.get("fileName", ""),
            download_url=response.get("downloadUrl"),
            format=fmt,
            applied_locally_only=False,
        )

    @staticmethod
    def statistics(entries: Iterable[Entry]) -> EntryStatistics:
        return entry_statistics(entries)
