"""CSV export of quarterly balance entries."""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from royalty_ledger.ledger.types import QuarterlyBalanceEntry, round2

CSV_HEADER = [
    "Period",
    "Payee",
    "Agreement",
    "Opening Balance",
    "Royalties",
    "Expenses",
    "Payments",
    "Closing Balance",
]


def format_amount(value: Decimal) -> str:
    """Two decimal places, no thousands separator."""
    return f"{round2(value):.2f}"


def entry_to_row(entry: QuarterlyBalanceEntry) -> list[str]:
    return [
        entry.period_label,
        entry.payee_name or "Unknown",
        entry.agreement_title or "N/A",
        format_amount(entry.opening_balance),
        format_amount(entry.royalties_amount),
        format_amount(entry.expenses_amount),
        format_amount(entry.payments_amount),
        format_amount(entry.closing_balance),
    ]


def export_to_csv(entries: Iterable[QuarterlyBalanceEntry]) -> str:
    """Render entries as CSV text (header first, rows in the given order).

    Rows are separated by newlines; the last row has no terminator.
    """
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")

    writer.writerow(CSV_HEADER)
    for entry in entries:
        writer.writerow(entry_to_row(entry))

    return output.getvalue().removesuffix("\n")


def export_filename(today: date | None = None) -> str:
    today = today or date.today()
    return f"quarterly_balance_reports_{today.isoformat()}.csv"
