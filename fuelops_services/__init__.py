"""
fuelops_services -- Package init and public API.

Responsibility:
    Stateful services that compose the pure engines and domain rules with
    HTTP, the local client-state store and the clock.  This is the only
    layer that talks to the backend, reads the store or the wall clock.

Architecture position:
    Services -- stateful orchestration over engines + kernel.

    Dependency direction:
        fuelops_services/ -> fuelops_engines/  (allowed)
        fuelops_services/ -> fuelops_kernel/   (allowed)
        fuelops_services/ -> fuelops_config/   (client_services only)
        fuelops_engines/  -> fuelops_services/ (FORBIDDEN)
        fuelops_kernel/   -> fuelops_services/ (FORBIDDEN)

Invariants enforced:
    - DI transparency: all wiring is centralised in ``ClientServices``;
      no service self-constructs its dependencies.
"""

from fuelops_kernel.logging_config import get_logger

logger = get_logger("services")

from fuelops_services.api_client import ApiClient
from fuelops_services.approvals import (
    PRICE_CHANGE_WORKFLOW,
    SUPPLY_WORKFLOW,
    UTILITY_BILL_WORKFLOW,
    RecordApprovalService,
    RecordList,
    RecordWorkflow,
)
from fuelops_services.client_services import ClientServices
from fuelops_services.connectivity import ConnectionMonitor, ConnectionStatus, ListPoller
from fuelops_services.entry_form import EntryFormSession
from fuelops_services.entry_lifecycle import EntryLifecycleService, TransitionOutcome
from fuelops_services.entry_queries import (
    EntryFilters,
    EntryPage,
    EntryQueryService,
    EntryStatistics,
    ExportDescriptor,
    ExportFormat,
    Pagination,
    StationRef,
)
from fuelops_services.local_store import LocalStore
from fuelops_services.resilient_fetch import (
    FetchResult,
    FetchSource,
    ResilientFetcher,
    RetryPolicy,
    call_with_retry,
)
from fuelops_services.session_store import SessionStore

__all__ = [
    "ApiClient",
    "ClientServices",
    "ConnectionMonitor",
    "ConnectionStatus",
    "EntryFilters",
    "EntryFormSession",
    "EntryLifecycleService",
    "EntryPage",
    "EntryQueryService",
    "EntryStatistics",
    "ExportDescriptor",
    "ExportFormat",
    "FetchResult",
    "FetchSource",
    "ListPoller",
    "LocalStore",
    "PRICE_CHANGE_WORKFLOW",
    "Pagination",
    "RecordApprovalService",
    "RecordList",
    "RecordWorkflow",
    "ResilientFetcher",
    "RetryPolicy",
    "SUPPLY_WORKFLOW",
    "SessionStore",
    "StationRef",
    "TransitionOutcome",
    "UTILITY_BILL_WORKFLOW",
    "call_with_retry",
]
