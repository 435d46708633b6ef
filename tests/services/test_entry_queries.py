"""
Tests for entry listing, export and statistics.

Covers:
- Endpoint choice per role and selected station
- Query parameters (filters + 0-based paging)
- Spring-style page responses and plain lists
- Mock fallback with local filtering and paging
- Export, live and local-only
- Statistics
"""

from dataclasses import replace
from datetime import date

import pytest

from fuelops_kernel.domain.entry import Entry, EntryStatus, Product
from fuelops_kernel.exceptions import ApiResponseError, BackendUnavailableError
from fuelops_services.entry_queries import (
    EntryFilters,
    EntryQueryService,
    ExportFormat,
    Pagination,
    StationRef,
    entry_statistics,
    page_locally,
    station_slug,
)
from fuelops_services.resilient_fetch import FetchSource

MANAGER_PATH = "/dailysales/station/KTC Accra Central"
KUMASI = StationRef("kumasi-highway", "KTC Kumasi Highway")


@pytest.fixture
def manager_queries(fetcher, manager_session, clock):
    return EntryQueryService(fetcher, manager_session, clock=clock)


@pytest.fixture
def admin_queries(fetcher, admin_session, clock):
    return EntryQueryService(fetcher, admin_session, clock=clock)


class TestFiltersAndPaging:
    def test_filter_params(self):
        filters = EntryFilters(
            status=EntryStatus.SUBMITTED,
            product=Product.SUPER,
            date_from=date(2024, 12, 1),
            date_to=date(2024, 12, 31),
            search="osei",
        )
        assert filters.to_params() == {
            "status": "SUBMITTED",
            "product": "Super",
            "search": "osei",
            "dateFrom": "2024-12-01",
            "dateTo": "2024-12-31",
        }

    def test_empty_filters(self):
        assert EntryFilters().to_params() == {}

    def test_matches(self, submitted_entry):
        assert EntryFilters(status=EntryStatus.SUBMITTED).matches(submitted_entry)
        assert not EntryFilters(product=Product.DIESEL).matches(submitted_entry)
        assert EntryFilters(search="OSEI").matches(submitted_entry)
        assert EntryFilters(search="2024-12").matches(submitted_entry)
        assert not EntryFilters(search="kerosene").matches(submitted_entry)
        assert not EntryFilters(date_from=date(2024, 12, 16)).matches(submitted_entry)
        assert EntryFilters(date_to=date(2024, 12, 15)).matches(submitted_entry)

    def test_pagination_params_zero_based(self):
        assert Pagination(page=3, page_size=50).to_params() == {
            "page": 2,
            "pageSize": 50,
            "sortBy": "date",
            "sortOrder": "desc",
        }

    @pytest.mark.parametrize(
        "kwargs",
        [{"page": 0}, {"page_size": 0}, {"page_size": 101}, {"sort_order": "up"}],
    )
    def test_pagination_rejects_bad_values(self, kwargs):
        with pytest.raises(ValueError):
            Pagination(**kwargs)


class TestPageLocally:
    def setup_method(self):
        self.entries = [
            Entry(id=str(n), date=date(2024, 12, n)) for n in range(1, 6)
        ]

    def test_sorted_desc_and_sliced(self):
        page = page_locally(self.entries, Pagination(page=1, page_size=2), FetchSource.MOCK)
        assert [e.id for e in page.entries] == ["5", "4"]
        assert page.total_elements == 5
        assert page.total_pages == 3
        assert page.first and not page.last

    def test_last_page(self):
        page = page_locally(self.entries, Pagination(page=3, page_size=2), FetchSource.MOCK)
        assert [e.id for e in page.entries] == ["1"]
        assert page.last

    def test_ascending(self):
        page = page_locally(
            self.entries, Pagination(page_size=5, sort_order="asc"), FetchSource.LIVE
        )
        assert [e.id for e in page.entries] == ["1", "2", "3", "4", "5"]

    def test_empty(self):
        page = page_locally([], Pagination(), FetchSource.MOCK)
        assert page.total_pages == 0
        assert page.first and page.last


class TestEndpoints:
    def test_manager_always_own_station(self, manager_queries):
        assert manager_queries.endpoint_for(KUMASI) == MANAGER_PATH

    def test_admin_selected_station(self, admin_queries):
        assert admin_queries.endpoint_for(KUMASI) == "/dailysales/station/KTC Kumasi Highway"

    def test_admin_all_stations(self, admin_queries):
        assert admin_queries.endpoint_for() == "/dailysales/all"


class TestListEntries:
    def test_spring_page_response(self, manager_queries, http, respond, submitted_entry):
        http.route(
            "GET",
            MANAGER_PATH,
            respond(
                200,
                {
                    "content": [submitted_entry.to_wire()],
                    "totalElements": 41,
                    "totalPages": 3,
                    "first": False,
                    "last": False,
                },
            ),
        )
        page = manager_queries.list_entries(pagination=Pagination(page=2))

        assert page.source is FetchSource.LIVE
        assert page.is_authoritative
        assert page.entries == (submitted_entry,)
        assert page.total_elements == 41
        assert page.total_pages == 3
        assert not page.first

    def test_params_sent(self, admin_queries, http, respond):
        http.route("GET", "/dailysales/all", respond(200, {"content": []}))
        admin_queries.list_entries(
            EntryFilters(status=EntryStatus.VALIDATED), Pagination(page=1, page_size=10)
        )
        assert http.calls[0].params == {
            "status": "VALIDATED",
            "page": 0,
            "pageSize": 10,
            "sortBy": "date",
            "sortOrder": "desc",
        }

    def test_plain_list_response(self, admin_queries, http, respond, submitted_entry):
        http.route("GET", "/dailysales/all", respond(200, [submitted_entry.to_wire()]))
        page = admin_queries.list_entries()
        assert page.total_elements == 1
        assert page.entries[0].id == "DS-001"

    def test_mock_fallback_scoped_to_manager_station(self, manager_queries, captured_logs):
        page = manager_queries.list_entries()

        assert page.source is FetchSource.MOCK
        assert not page.is_authoritative
        assert {e.station_id for e in page.entries} == {"accra-central"}
        assert [e.id for e in page.entries] == ["DS-001", "DS-002"]
        assert any(r["message"] == "entries_listed_from_mock" for r in captured_logs())

    def test_mock_fallback_filters(self, admin_queries):
        page = admin_queries.list_entries(EntryFilters(product=Product.DIESEL))
        assert [e.id for e in page.entries] == ["DS-002"]

    def test_mock_fallback_date_range(self, admin_queries):
        page = admin_queries.list_entries(
            EntryFilters(date_from=date(2024, 12, 15), date_to=date(2024, 12, 15))
        )
        assert {e.date for e in page.entries} == {date(2024, 12, 15)}

    def test_mock_fallback_selected_station(self, admin_queries):
        page = admin_queries.list_entries(selected_station=KUMASI)
        assert {e.station_id for e in page.entries} == {"kumasi-highway"}

    def test_no_mock_provider_raises(self, fetcher, admin_session):
        from fuelops_kernel.exceptions import RetriesExhaustedError

        queries = EntryQueryService(fetcher, admin_session, mock_provider=None)
        with pytest.raises(RetriesExhaustedError):
            queries.list_entries()

    def test_backend_error_propagates(self, admin_queries, http, respond):
        http.route("GET", "/dailysales/all", respond(403, {"message": "Forbidden"}))
        with pytest.raises(ApiResponseError):
            admin_queries.list_entries()


class TestExport:
    def test_live_export(self, admin_queries, http, respond):
        http.route(
            "POST",
            "/sales-entries/export",
            respond(200, {"fileName": "entries.csv", "downloadUrl": "/files/entries.csv"}),
        )
        descriptor = admin_queries.export(
            "csv", EntryFilters(date_from=date(2024, 12, 1), date_to=date(2024, 12, 15))
        )

        assert descriptor.file_name == "entries.csv"
        assert descriptor.download_url == "/files/entries.csv"
        assert descriptor.format is ExportFormat.CSV
        assert not descriptor.applied_locally_only
        payload = http.calls[0].json
        assert payload["format"] == "CSV"
        assert payload["dateRange"] == {"from": "2024-12-01", "to": "2024-12-15"}
        assert payload["includeDetails"] is True

    def test_offline_export_name(self, manager_queries, captured_logs):
        descriptor = manager_queries.export(ExportFormat.EXCEL)

        assert descriptor.applied_locally_only
        assert descriptor.download_url is None
        assert descriptor.file_name == "sales-entries-ktc-accra-central-2024-12-15.excel"
        assert any(r["message"] == "export_applied_locally" for r in captured_logs())

    def test_offline_export_all_stations(self, admin_queries):
        descriptor = admin_queries.export(ExportFormat.PDF)
        assert descriptor.file_name == "sales-entries-all-stations-2024-12-15.pdf"

    def test_offline_export_without_fallback(self, fetcher, admin_session, clock):
        queries = EntryQueryService(fetcher, admin_session, clock=clock, mock_fallback=False)
        with pytest.raises(BackendUnavailableError):
            queries.export(ExportFormat.CSV)

    def test_unknown_format(self, admin_queries):
        with pytest.raises(ValueError):
            admin_queries.export("docx")


class TestStatistics:
    def test_counts_and_totals(self, submitted_entry):
        validated = replace(submitted_entry, id="DS-002", status=EntryStatus.VALIDATED)
        draft = Entry(status=EntryStatus.DRAFT)

        stats = entry_statistics([submitted_entry, validated, draft])

        assert stats.total_entries == 3
        assert stats.submitted_entries == 1
        assert stats.validated_entries == 1
        assert stats.draft_entries == 1
        assert stats.pending_validation == 1
        assert stats.pending_approval == 1
        assert stats.total_sales_volume == pytest.approx(34600.0)
        assert stats.total_bank_lodgements == pytest.approx(531410.0)
        assert stats.total_credit_sales == pytest.approx(28000.0)

    def test_empty(self):
        stats = EntryQueryService.statistics([])
        assert stats.total_entries == 0
        assert stats.total_sales_value == 0.0


class TestStationSlug:
    @pytest.mark.parametrize(
        "name, slug",
        [(None, "all-stations"), ("KTC Accra Central", "ktc-accra-central"), ("  A  B ", "a-b")],
    )
    def test_slug(self, name, slug):
        assert station_slug(name) == slug
