"""
Typed Exception Hierarchy for the Fuel Operations client core.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

The dashboard has to tell three kinds of failure apart, and it must do so
without parsing message strings:

  - the backend could not be reached (retry, then mock/cached fallback)
  - the backend answered and said no (surface the message, never fall back)
  - the user's own data breaks a rule (list violations inline, send nothing)

Every exception therefore has a CODE class attribute (machine-readable) and
carries its context as attributes (structured data survives logging).

Example:
    try:
        outcome = lifecycle.approve(entry)
    except ApiResponseError as e:       # explicit rejection by the server
        notify_error(e.server_message)
    except BackendUnavailableError:     # unreachable and mock mode disabled
        notify_error("Server unreachable")

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    FuelOpsError (base)
    |
    +-- EntryError
    |   +-- UnknownEntryFieldError
    |   +-- ReadOnlyFieldError
    |   +-- InvalidFieldValueError
    |   +-- UnknownProductError
    |
    +-- LifecycleError
    |   +-- InvalidEntryTransitionError
    |   +-- UnauthorizedTransitionError
    |   +-- EntryValidationError
    |   +-- MissingRejectionReasonError
    |   +-- EditAlreadyRequestedError
    |   +-- MissingEditReasonError
    |   +-- InvalidRecordTransitionError
    |
    +-- RemoteError
    |   +-- ConnectivityError
    |   |   +-- RetriesExhaustedError
    |   +-- ApiResponseError
    |   |   +-- AuthenticationExpiredError
    |   +-- BackendUnavailableError
    |
    +-- ConfigError
        +-- ConfigValidationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category   | Code                        | When Raised
-----------|-----------------------------|-----------------------------------------
Entry      | UNKNOWN_ENTRY_FIELD         | Builder/update used a field name that does not exist
           | FIELD_NOT_SETTABLE          | Caller tried to set a derived or lifecycle field
           | INVALID_FIELD_VALUE         | Numeric field given a non-numeric value
           | UNKNOWN_PRODUCT             | Product name/alias not recognised
-----------|-----------------------------|-----------------------------------------
Lifecycle  | INVALID_ENTRY_TRANSITION    | Action not allowed from current status
           | UNAUTHORIZED_TRANSITION     | Actor role may not perform the action
           | ENTRY_VALIDATION_FAILED     | Submit blocked by validation violations
           | REJECTION_REASON_REQUIRED   | Reject without reason or comments
           | EDIT_ALREADY_REQUESTED      | Second edit request on the same entry
           | EDIT_REASON_REQUIRED        | Edit request without a reason
           | INVALID_RECORD_TRANSITION   | Price/supply/utility action not allowed
-----------|-----------------------------|-----------------------------------------
Remote     | CONNECTIVITY_ERROR          | Timeout or network failure on one attempt
           | RETRIES_EXHAUSTED           | All retry attempts failed to connect
           | API_RESPONSE_ERROR          | Backend answered with a non-2xx status
           | AUTHENTICATION_EXPIRED      | Backend answered 401
           | BACKEND_UNAVAILABLE         | Unreachable and no fallback permitted
-----------|-----------------------------|-----------------------------------------
Config     | CONFIG_VALIDATION_FAILED    | Configuration file failed validation
"""

from typing import Any


class FuelOpsError(Exception):
    """
    Base exception for all fuel operations errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "FUELOPS_ERROR"


# Entry construction exceptions


class EntryError(FuelOpsError):
    """Base exception for entry construction errors."""

    code: str = "ENTRY_ERROR"


class UnknownEntryFieldError(EntryError):
    """A field name that the Entry does not define."""

    code: str = "UNKNOWN_ENTRY_FIELD"

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Unknown entry field: {field_name}")


class ReadOnlyFieldError(EntryError):
    """Attempt to set a derived or lifecycle field directly."""

    code: str = "FIELD_NOT_SETTABLE"

    def __init__(self, field_name: str, kind: str):
        self.field_name = field_name
        self.kind = kind
        super().__init__(
            f"Field {field_name} is {kind} and cannot be set directly"
        )


class InvalidFieldValueError(EntryError):
    """A numeric input received a non-numeric or out-of-domain value."""

    code: str = "INVALID_FIELD_VALUE"

    def __init__(self, field_name: str, value: Any, reason: str = "not a number"):
        self.field_name = field_name
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid value for {field_name}: {value!r} ({reason})")


class UnknownProductError(EntryError):
    """Product name or legacy code not recognised."""

    code: str = "UNKNOWN_PRODUCT"

    def __init__(self, product: str):
        self.product = product
        super().__init__(f"Unknown product: {product}")


# Lifecycle exceptions


class LifecycleError(FuelOpsError):
    """Base exception for workflow transition errors."""

    code: str = "LIFECYCLE_ERROR"


class InvalidEntryTransitionError(LifecycleError):
    """The action is not defined for the entry's current status."""

    code: str = "INVALID_ENTRY_TRANSITION"

    def __init__(self, entry_id: str | None, action: str, current_status: str):
        self.entry_id = entry_id
        self.action = action
        self.current_status = current_status
        super().__init__(
            f"Cannot {action} entry {entry_id or '<new>'} "
            f"in status {current_status}"
        )


class UnauthorizedTransitionError(LifecycleError):
    """The actor's role may not perform the action."""

    code: str = "UNAUTHORIZED_TRANSITION"

    def __init__(self, action: str, role: str, allowed_roles: tuple[str, ...]):
        self.action = action
        self.role = role
        self.allowed_roles = allowed_roles
        super().__init__(
            f"Role {role} may not {action} "
            f"(allowed: {', '.join(allowed_roles)})"
        )


class EntryValidationError(LifecycleError):
    """Submission blocked by rule violations."""

    code: str = "ENTRY_VALIDATION_FAILED"

    def __init__(self, violations: list[str]):
        self.violations = list(violations)
        super().__init__(
            f"Entry failed validation with {len(self.violations)} "
            f"violation(s): {'; '.join(self.violations)}"
        )


class MissingRejectionReasonError(LifecycleError):
    """Rejection requires both a reason and comments."""

    code: str = "REJECTION_REASON_REQUIRED"

    def __init__(self, missing: tuple[str, ...]):
        self.missing = missing
        super().__init__(
            f"Rejection requires non-empty {' and '.join(missing)}"
        )


class EditAlreadyRequestedError(LifecycleError):
    """An edit request is already pending for the entry."""

    code: str = "EDIT_ALREADY_REQUESTED"

    def __init__(self, entry_id: str | None, requested_by: str | None):
        self.entry_id = entry_id
        self.requested_by = requested_by
        super().__init__(
            f"Edit already requested for entry {entry_id} by {requested_by}"
        )


class MissingEditReasonError(LifecycleError):
    """Edit requests need a free-text reason."""

    code: str = "EDIT_REASON_REQUIRED"

    def __init__(self, entry_id: str | None):
        self.entry_id = entry_id
        super().__init__(f"Edit request for entry {entry_id} needs a reason")


class InvalidRecordTransitionError(LifecycleError):
    """Price change, supply or utility bill action not allowed."""

    code: str = "INVALID_RECORD_TRANSITION"

    def __init__(
        self,
        record_type: str,
        record_id: str | None,
        action: str,
        current_status: str,
    ):
        self.record_type = record_type
        self.record_id = record_id
        self.action = action
        self.current_status = current_status
        super().__init__(
            f"Cannot {action} {record_type} {record_id} "
            f"in status {current_status}"
        )


# Remote (backend) exceptions


class RemoteError(FuelOpsError):
    """Base exception for backend interaction failures."""

    code: str = "REMOTE_ERROR"


class ConnectivityError(RemoteError):
    """The backend could not be reached (timeout or network failure)."""

    code: str = "CONNECTIVITY_ERROR"

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not reach backend for {path}: {reason}")


class RetriesExhaustedError(ConnectivityError):
    """All retry attempts failed to reach the backend."""

    code: str = "RETRIES_EXHAUSTED"

    def __init__(self, path: str, attempts: int, last_reason: str):
        self.attempts = attempts
        self.last_reason = last_reason
        super().__init__(path, f"{attempts} attempt(s) failed; last: {last_reason}")


class ApiResponseError(RemoteError):
    """The backend answered with a non-2xx status."""

    code: str = "API_RESPONSE_ERROR"

    def __init__(self, path: str, status_code: int, server_message: str):
        self.path = path
        self.status_code = status_code
        self.server_message = server_message
        super().__init__(f"API Error: {status_code} - {server_message}")


class AuthenticationExpiredError(ApiResponseError):
    """The backend rejected the bearer token."""

    code: str = "AUTHENTICATION_EXPIRED"

    def __init__(self, path: str):
        super().__init__(path, 401, "Authentication failed. Please login again.")


class BackendUnavailableError(RemoteError):
    """Backend unreachable and no local fallback is permitted."""

    code: str = "BACKEND_UNAVAILABLE"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            f"No connection to server for {operation}; "
            "check your connection and try again"
        )


# Configuration exceptions


class ConfigError(FuelOpsError):
    """Base exception for configuration errors."""

    code: str = "CONFIG_ERROR"


class ConfigValidationError(ConfigError):
    """Configuration failed structural validation."""

    code: str = "CONFIG_VALIDATION_FAILED"

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(
            "Configuration validation failed: " + "; ".join(self.errors)
        )
