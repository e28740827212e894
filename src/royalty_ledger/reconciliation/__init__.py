"""Reconciliation completeness evaluation."""

from royalty_ledger.reconciliation.completeness import (
    AllocationSnapshot,
    BatchEvaluation,
    BatchProcessError,
    BatchSnapshot,
    BatchStatus,
    ProcessErrorKind,
    ReconciliationStatus,
    allocations_for_batch,
    classify,
    compute_allocated_amount,
    evaluate_batch,
    validate_processing,
)

__all__ = [
    "AllocationSnapshot",
    "BatchEvaluation",
    "BatchProcessError",
    "BatchSnapshot",
    "BatchStatus",
    "ProcessErrorKind",
    "ReconciliationStatus",
    "allocations_for_batch",
    "classify",
    "compute_allocated_amount",
    "evaluate_batch",
    "validate_processing",
]
