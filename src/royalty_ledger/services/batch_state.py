"""Reconciliation batch state machine with transition validation."""

from __future__ import annotations

from royalty_ledger.reconciliation.completeness import BatchStatus


def _value(status: str | BatchStatus) -> str:
    return status.value if isinstance(status, BatchStatus) else status


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class BatchStateMachine:
    """State machine for reconciliation batch status transitions.

    Allowed transitions:
    - Pending → Imported
    - Pending → Processed
    - Imported → Processed
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        BatchStatus.PENDING.value: [BatchStatus.IMPORTED.value, BatchStatus.PROCESSED.value],
        BatchStatus.IMPORTED.value: [BatchStatus.PROCESSED.value],
        BatchStatus.PROCESSED.value: [],  # Terminal state
    }

    # Statuses where allocations may still be linked or unlinked
    ALLOCATIONS_MUTABLE = {
        BatchStatus.PENDING.value,
        BatchStatus.IMPORTED.value,
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(_value(from_status), [])
        return _value(to_status) in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(_value(from_status), _value(to_status))

    @classmethod
    def can_modify_allocations(cls, status: str) -> bool:
        return _value(status) in cls.ALLOCATIONS_MUTABLE

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return list(cls.VALID_TRANSITIONS.get(_value(current_status), []))
