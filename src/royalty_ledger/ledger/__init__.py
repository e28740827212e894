"""Quarterly balance ledger."""

from royalty_ledger.ledger.builder import (
    build_ledger_from_payouts,
    find_divergent_payees,
    flatten_ledger,
    select_ledger_source,
    verify_ledger,
)
from royalty_ledger.ledger.export import export_to_csv
from royalty_ledger.ledger.types import (
    EntrySource,
    LedgerSelection,
    PayeeInfo,
    PayoutSnapshot,
    QuarterlyBalanceEntry,
)

__all__ = [
    "build_ledger_from_payouts",
    "find_divergent_payees",
    "flatten_ledger",
    "select_ledger_source",
    "verify_ledger",
    "export_to_csv",
    "EntrySource",
    "LedgerSelection",
    "PayeeInfo",
    "PayoutSnapshot",
    "QuarterlyBalanceEntry",
]
