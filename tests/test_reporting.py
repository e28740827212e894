"""Tests for ledger filtering, summaries and CSV export."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from royalty_ledger.ledger.export import CSV_HEADER, export_filename, export_to_csv, format_amount
from royalty_ledger.ledger.periods import period_label, quarter_end, quarter_of, quarter_start
from royalty_ledger.ledger.reporting import (
    BalanceStatus,
    account_summary,
    balance_status,
    filter_entries,
    summarize,
)
from royalty_ledger.ledger.types import EntrySource, QuarterlyBalanceEntry


def entry(
    payee_id=None,
    year: int = 2024,
    quarter: int = 1,
    opening: str = "0",
    royalties: str = "0",
    expenses: str = "0",
    payments: str = "0",
    closing: str = "0",
    payee_name: str | None = "Jane Writer",
    agreement_title: str | None = "Admin Deal 2022",
) -> QuarterlyBalanceEntry:
    return QuarterlyBalanceEntry(
        payee_id=payee_id or uuid4(),
        year=year,
        quarter=quarter,
        opening_balance=Decimal(opening),
        royalties_amount=Decimal(royalties),
        expenses_amount=Decimal(expenses),
        payments_amount=Decimal(payments),
        closing_balance=Decimal(closing),
        is_calculated=True,
        source=EntrySource.PERSISTED,
        payee_name=payee_name,
        agreement_title=agreement_title,
    )


class TestPeriods:
    def test_quarter_of(self):
        assert quarter_of(date(2024, 1, 1)) == (2024, 1)
        assert quarter_of(date(2024, 6, 30)) == (2024, 2)
        assert quarter_of(date(2024, 7, 1)) == (2024, 3)
        assert quarter_of(date(2024, 12, 31)) == (2024, 4)

    def test_quarter_bounds(self):
        assert quarter_start(2024, 3) == date(2024, 7, 1)
        assert quarter_end(2024, 1) == date(2024, 3, 31)
        assert quarter_end(2024, 4) == date(2024, 12, 31)

    def test_period_label(self):
        assert period_label(2024, 2) == "Q2 2024"
        assert entry(year=2023, quarter=4).period_label == "Q4 2023"


class TestBalanceStatus:
    @pytest.mark.parametrize(
        "balance, expected",
        [
            ("1000.01", BalanceStatus.HEALTHY),
            ("1000", BalanceStatus.LOW),
            ("0.01", BalanceStatus.LOW),
            ("0", BalanceStatus.ZERO),
            ("-0.01", BalanceStatus.DEFICIT),
        ],
    )
    def test_thresholds(self, balance, expected):
        assert balance_status(Decimal(balance)) == expected


class TestFilterEntries:
    def test_search_matches_payee_agreement_and_period(self):
        entries = [
            entry(payee_name="Jane Writer", agreement_title="Catalog A", quarter=1),
            entry(payee_name="Sam Publisher", agreement_title="Sub-Publishing", quarter=2),
            entry(payee_name=None, agreement_title=None, quarter=3),
        ]

        assert len(filter_entries(entries, search="jane")) == 1
        assert len(filter_entries(entries, search="SUB-pub")) == 1
        assert len(filter_entries(entries, search="q3 2024")) == 1
        assert len(filter_entries(entries, search="  ")) == 3

    def test_year_and_quarter_filters(self):
        entries = [
            entry(year=2023, quarter=4),
            entry(year=2024, quarter=1),
            entry(year=2024, quarter=2),
        ]

        assert len(filter_entries(entries, year=2024)) == 2
        assert len(filter_entries(entries, year=2024, quarter=2)) == 1
        assert filter_entries(entries, quarter=3) == []


class TestSummaries:
    def test_summarize_totals(self):
        entries = [
            entry(royalties="100.10", expenses="10", payments="50", closing="40.10"),
            entry(royalties="20.20", expenses="0", payments="0", closing="60.30"),
        ]

        summary = summarize(entries)

        assert summary.report_count == 2
        assert summary.total_royalties == Decimal("120.30")
        assert summary.total_expenses == Decimal("10.00")
        assert summary.total_payments == Decimal("50.00")
        assert summary.total_balance == Decimal("100.40")

    def test_summarize_empty(self):
        summary = summarize([])
        assert summary.report_count == 0
        assert summary.total_balance == Decimal("0")

    def test_account_summary_uses_latest_closing_per_payee(self):
        a, b = uuid4(), uuid4()
        entries = [
            entry(a, quarter=2, royalties="50", payments="0", opening="70", closing="120"),
            entry(a, quarter=1, royalties="100", payments="30", closing="70"),
            entry(b, quarter=1, royalties="10", payments="0", closing="10"),
        ]

        account = account_summary(entries)

        assert account.current_balance == Decimal("130.00")
        assert account.total_earned == Decimal("160.00")
        assert account.total_paid == Decimal("30.00")
        assert account.pending_amount == Decimal("130.00")


class TestCsvExport:
    def test_header_and_rows(self):
        entries = [
            entry(
                quarter=2,
                opening="0",
                royalties="1100",
                expenses="50",
                payments="0",
                closing="1050",
            )
        ]

        lines = export_to_csv(entries).splitlines()

        assert lines[0] == ",".join(CSV_HEADER)
        assert lines[0] == (
            "Period,Payee,Agreement,Opening Balance,Royalties,Expenses,Payments,Closing Balance"
        )
        assert lines[1] == "Q2 2024,Jane Writer,Admin Deal 2022,0.00,1100.00,50.00,0.00,1050.00"

    def test_missing_payee_and_agreement_defaults(self):
        csv_text = export_to_csv([entry(payee_name=None, agreement_title=None)])
        assert csv_text.splitlines()[1].startswith("Q1 2024,Unknown,N/A,")

    def test_fields_with_commas_are_quoted(self):
        csv_text = export_to_csv([entry(payee_name="Doe, Jane")])
        assert '"Doe, Jane"' in csv_text

    def test_empty_export_is_header_only(self):
        assert export_to_csv([]) == ",".join(CSV_HEADER)

    def test_no_newline_after_last_row(self):
        csv_text = export_to_csv([entry(quarter=1), entry(quarter=2)])

        assert not csv_text.endswith("\n")
        assert csv_text.count("\n") == 2

    def test_format_amount(self):
        assert format_amount(Decimal("1234.5")) == "1234.50"
        assert format_amount(Decimal("-0.005")) == "-0.01"
        assert format_amount(Decimal("2.675")) == "2.68"

    def test_export_filename(self):
        assert export_filename(date(2024, 7, 4)) == "quarterly_balance_reports_2024-07-04.csv"
