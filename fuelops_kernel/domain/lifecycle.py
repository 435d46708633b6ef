"""
Entry lifecycle rules (``fuelops_kernel.domain.lifecycle``).

Responsibility
--------------
The entry state machine as data (``ENTRY_TRANSITIONS``,
``TRANSITION_ROLES``), the guard that checks one action against an entry
and a user session, and the pure function that stamps the entry when the
action is applied.

Architecture position
---------------------
**Kernel domain layer** -- pure.  ZERO I/O.  The validator is passed in as
a list of violations rather than imported, so the domain layer stays free
of engine imports.

Invariants enforced
-------------------
* ``ENTRY_TRANSITIONS`` defines the only valid status changes.  APPROVED
  and REJECTED have no outgoing edges.
* ``request_edit`` never changes ``status``.
* Guards are evaluated in a fixed order and the first failure raises; a
  failed guard leaves the entry untouched.

Failure modes
-------------
* ``InvalidEntryTransitionError`` -- action not allowed from the status.
* ``UnauthorizedTransitionError`` -- role not allowed to act.
* ``EntryValidationError`` -- submit with violations.
* ``MissingRejectionReasonError`` -- reject without reason or comments.
* ``EditAlreadyRequestedError`` / ``MissingEditReasonError``.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from enum import Enum

from fuelops_kernel.domain.entry import Entry, EntryStatus
from fuelops_kernel.domain.session import Role, UserSession
from fuelops_kernel.exceptions import (
    EditAlreadyRequestedError,
    EntryValidationError,
    InvalidEntryTransitionError,
    MissingEditReasonError,
    MissingRejectionReasonError,
    UnauthorizedTransitionError,
)


class EntryAction(str, Enum):
    SUBMIT = "submit"
    VALIDATE = "validate"
    REJECT = "reject"
    APPROVE = "approve"
    REQUEST_EDIT = "request_edit"


# action -> (allowed source statuses, target status or None for "unchanged")
ENTRY_TRANSITIONS: dict[EntryAction, tuple[frozenset[EntryStatus], EntryStatus | None]] = {
    EntryAction.SUBMIT: (
        frozenset({EntryStatus.DRAFT}),
        EntryStatus.SUBMITTED,
    ),
    EntryAction.VALIDATE: (
        frozenset({EntryStatus.SUBMITTED}),
        EntryStatus.VALIDATED,
    ),
    EntryAction.REJECT: (
        frozenset({EntryStatus.SUBMITTED, EntryStatus.VALIDATED}),
        EntryStatus.REJECTED,
    ),
    EntryAction.APPROVE: (
        frozenset({EntryStatus.VALIDATED}),
        EntryStatus.APPROVED,
    ),
    EntryAction.REQUEST_EDIT: (
        frozenset({EntryStatus.SUBMITTED, EntryStatus.VALIDATED}),
        None,
    ),
}

TRANSITION_ROLES: dict[EntryAction, frozenset[Role]] = {
    EntryAction.SUBMIT: frozenset({Role.STATION_MANAGER}),
    EntryAction.VALIDATE: frozenset({Role.ADMIN}),
    EntryAction.REJECT: frozenset({Role.ADMIN, Role.SUPER_ADMIN}),
    EntryAction.APPROVE: frozenset({Role.SUPER_ADMIN}),
    EntryAction.REQUEST_EDIT: frozenset({Role.STATION_MANAGER}),
}

TERMINAL_ENTRY_STATUSES: frozenset[EntryStatus] = frozenset({
    EntryStatus.APPROVED,
    EntryStatus.REJECTED,
})


def allowed_actions(status: EntryStatus) -> frozenset[EntryAction]:
    """Actions whose source set contains ``status``."""
    return frozenset(
        action
        for action, (sources, _target) in ENTRY_TRANSITIONS.items()
        if status in sources
    )


def _blank(text: str | None) -> bool:
    return text is None or not text.strip()


def check_transition(
    entry: Entry,
    action: EntryAction,
    session: UserSession,
    *,
    violations: list[str] | None = None,
    reason: str | None = None,
    comments: str | None = None,
) -> None:
    """Raise the typed error for the first failing guard, else return.

    Guard order: source status, role, then the action's own precondition
    (validation for submit, reason/comments for reject, edit-request
    state for request_edit).
    """
    sources, _target = ENTRY_TRANSITIONS[action]
    if entry.status not in sources:
        raise InvalidEntryTransitionError(
            entry.id, action.value, entry.status.value
        )

    allowed = TRANSITION_ROLES[action]
    if session.role not in allowed:
        raise UnauthorizedTransitionError(
            action.value,
            session.role.value,
            tuple(sorted(r.value for r in allowed)),
        )

    if action is EntryAction.SUBMIT:
        if violations:
            raise EntryValidationError(violations)
    elif action is EntryAction.REJECT:
        missing = tuple(
            name
            for name, text in (("reason", reason), ("comments", comments))
            if _blank(text)
        )
        if missing:
            raise MissingRejectionReasonError(missing)
    elif action is EntryAction.REQUEST_EDIT:
        if entry.edit_requested:
            raise EditAlreadyRequestedError(entry.id, entry.edit_requested_by)
        if _blank(reason):
            raise MissingEditReasonError(entry.id)


def apply_transition(
    entry: Entry,
    action: EntryAction,
    actor: str,
    at: datetime,
    *,
    reason: str | None = None,
    comments: str | None = None,
) -> Entry:
    """Return ``entry`` moved to the action's target and stamped.

    Assumes ``check_transition`` has passed.
    """
    _sources, target = ENTRY_TRANSITIONS[action]

    if action is EntryAction.SUBMIT:
        return replace(
            entry,
            status=target,
            submitted_at=at,
            entered_by=entry.entered_by or actor,
            entered_at=entry.entered_at or at,
        )
    if action is EntryAction.VALIDATE:
        return replace(entry, status=target, validated_by=actor, validated_at=at)
    if action is EntryAction.APPROVE:
        return replace(entry, status=target, approved_by=actor, approved_at=at)
    if action is EntryAction.REJECT:
        return replace(
            entry,
            status=target,
            rejected_by=actor,
            rejected_at=at,
            rejection_reason=reason,
            rejection_comments=comments,
        )
    return replace(
        entry,
        edit_requested=True,
        edit_requested_by=actor,
        edit_requested_at=at,
        edit_request_reason=reason,
    )
