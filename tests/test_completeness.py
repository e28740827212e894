"""Tests for batch reconciliation completeness."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from royalty_ledger.reconciliation.completeness import (
    AllocationSnapshot,
    BatchProcessError,
    BatchSnapshot,
    BatchStatus,
    ProcessErrorKind,
    ReconciliationStatus,
    allocations_for_batch,
    classify,
    compute_allocated_amount,
    compute_progress,
    evaluate_batch,
    validate_processing,
)


def make_batch(
    total: str = "1000",
    status: str = "Pending",
    linked_statement_id: str | None = None,
) -> BatchSnapshot:
    return BatchSnapshot(
        id=uuid4(),
        batch_id="BATCH-001",
        source="DSP",
        total_gross_amount=Decimal(total),
        status=status,
        date_received=date(2024, 4, 2),
        linked_statement_id=linked_statement_id,
    )


def allocation(amount: str, batch_id=None, statement_id=None, staging_record_id=None):
    return AllocationSnapshot(
        id=uuid4(),
        gross_royalty_amount=Decimal(amount),
        batch_id=batch_id,
        statement_id=statement_id,
        staging_record_id=staging_record_id,
    )


class TestClassify:
    """Completeness boundary and processability."""

    def test_one_percent_short_is_incomplete(self):
        """The tolerance boundary is exclusive."""
        evaluation = classify(make_batch("1000"), Decimal("990"))

        assert evaluation.progress == Decimal("0.99")
        assert evaluation.reconciliation_status == ReconciliationStatus.INCOMPLETE
        assert evaluation.can_process is False

    def test_half_percent_short_is_complete(self):
        evaluation = classify(make_batch("1000"), Decimal("995"))

        assert evaluation.reconciliation_status == ReconciliationStatus.COMPLETE
        assert evaluation.can_process is True

    def test_exact_allocation_is_complete(self):
        evaluation = classify(make_batch("1234.56"), Decimal("1234.56"))
        assert evaluation.reconciliation_status == ReconciliationStatus.COMPLETE

    def test_over_allocation_within_tolerance_is_complete(self):
        evaluation = classify(make_batch("1000"), Decimal("1005"))
        assert evaluation.reconciliation_status == ReconciliationStatus.COMPLETE

    def test_zero_gross_amount_never_divides(self):
        evaluation = classify(make_batch("0"), Decimal("0"))

        assert evaluation.progress == Decimal("0")
        assert evaluation.reconciliation_status == ReconciliationStatus.INCOMPLETE
        assert evaluation.can_process is False

    def test_processed_batch_cannot_be_processed_again(self):
        evaluation = classify(make_batch("1000", status="Processed"), Decimal("1000"))

        assert evaluation.reconciliation_status == ReconciliationStatus.PROCESSED
        assert evaluation.can_process is False

    def test_custom_tolerance(self):
        evaluation = classify(make_batch("1000"), Decimal("990"), tolerance=Decimal("0.02"))
        assert evaluation.reconciliation_status == ReconciliationStatus.COMPLETE

    def test_progress_percent_has_one_decimal(self):
        assert classify(make_batch("1000"), Decimal("995")).progress_percent == "99.5"
        assert classify(make_batch("3"), Decimal("1")).progress_percent == "33.3"
        assert classify(make_batch("0"), Decimal("0")).progress_percent == "0.0"

    def test_compute_progress(self):
        assert compute_progress(Decimal("200"), Decimal("50")) == Decimal("0.25")
        assert compute_progress(Decimal("0"), Decimal("50")) == Decimal("0")


class TestAllocatedAmount:
    """Summing allocations attributed to a batch."""

    def test_direct_allocations_only(self):
        batch = make_batch()
        pool = [
            allocation("600", batch_id=batch.id),
            allocation("300", batch_id=batch.id),
            allocation("999", batch_id=uuid4()),
        ]
        assert compute_allocated_amount(batch, pool) == Decimal("900")

    def test_statement_allocations_are_added(self):
        batch = make_batch(linked_statement_id="STMT-9")
        direct = [allocation("400", batch_id=batch.id)]
        via_statement = [
            allocation("350", statement_id="STMT-9"),
            allocation("250", staging_record_id="STMT-9"),
            allocation("1000", statement_id="STMT-OTHER"),
        ]
        assert compute_allocated_amount(batch, direct, via_statement) == Decimal("1000")

    def test_statement_allocations_ignored_without_link(self):
        batch = make_batch()
        via_statement = [allocation("350", statement_id="STMT-9")]
        assert compute_allocated_amount(batch, [], via_statement) == Decimal("0")

    def test_allocation_reachable_twice_counts_once(self):
        batch = make_batch(linked_statement_id="STMT-9")
        shared = allocation("500", batch_id=batch.id, statement_id="STMT-9")

        assert compute_allocated_amount(batch, [shared], [shared]) == Decimal("500")
        assert allocations_for_batch(batch, [shared], [shared]) == [shared]

    def test_evaluate_batch_from_one_pool(self):
        batch = make_batch("1000", linked_statement_id="STMT-9")
        pool = [
            allocation("500", batch_id=batch.id, statement_id="STMT-9"),
            allocation("495", statement_id="STMT-9"),
        ]

        evaluation = evaluate_batch(batch, pool)

        assert evaluation.allocated_amount == Decimal("995")
        assert evaluation.reconciliation_status == ReconciliationStatus.COMPLETE


class TestValidateProcessing:
    """Processing preconditions."""

    TODAY = date(2024, 5, 20)

    def test_incomplete_batch_is_not_ready(self):
        evaluation = classify(make_batch("1000"), Decimal("500"))

        with pytest.raises(BatchProcessError) as exc_info:
            validate_processing(evaluation, 2, 2024, today=self.TODAY)

        assert exc_info.value.kind == ProcessErrorKind.NOT_READY
        assert "50.0%" in exc_info.value.message

    def test_processed_batch_is_not_ready(self):
        evaluation = classify(make_batch("1000", status=BatchStatus.PROCESSED.value), Decimal("1000"))

        with pytest.raises(BatchProcessError) as exc_info:
            validate_processing(evaluation, 3, 2024, today=self.TODAY)

        assert exc_info.value.kind == ProcessErrorKind.NOT_READY

    def test_not_ready_is_reported_before_invalid_period(self):
        evaluation = classify(make_batch("1000"), Decimal("10"))

        with pytest.raises(BatchProcessError) as exc_info:
            validate_processing(evaluation, 1, 2020, today=self.TODAY)

        assert exc_info.value.kind == ProcessErrorKind.NOT_READY

    def test_past_quarter_is_invalid(self):
        evaluation = classify(make_batch("1000"), Decimal("1000"))

        with pytest.raises(BatchProcessError) as exc_info:
            validate_processing(evaluation, 1, 2024, today=self.TODAY)

        assert exc_info.value.kind == ProcessErrorKind.INVALID_PERIOD

    def test_past_year_is_invalid(self):
        evaluation = classify(make_batch("1000"), Decimal("1000"))

        with pytest.raises(BatchProcessError) as exc_info:
            validate_processing(evaluation, 4, 2023, today=self.TODAY)

        assert exc_info.value.kind == ProcessErrorKind.INVALID_PERIOD

    @pytest.mark.parametrize("quarter", [0, 5])
    def test_quarter_out_of_range_is_invalid(self, quarter):
        evaluation = classify(make_batch("1000"), Decimal("1000"))

        with pytest.raises(BatchProcessError) as exc_info:
            validate_processing(evaluation, quarter, 2025, today=self.TODAY)

        assert exc_info.value.kind == ProcessErrorKind.INVALID_PERIOD

    @pytest.mark.parametrize("quarter, year", [(2, 2024), (3, 2024), (1, 2025)])
    def test_current_and_future_quarters_are_allowed(self, quarter, year):
        evaluation = classify(make_batch("1000"), Decimal("1000"))
        validate_processing(evaluation, quarter, year, today=self.TODAY)
