"""Royalty ledger command line interface.

Provides back-office tools for:
- Viewing a user's quarterly balance ledger
- Exporting the ledger to CSV
- Regenerating persisted quarterly reports from payouts
- Listing reconciliation batches and processing complete ones

Usage:
    python -m royalty_ledger.cli ledger --user-id U [--year 2024 --quarter 2]
    python -m royalty_ledger.cli export --user-id U --output ledger.csv
    python -m royalty_ledger.cli regenerate --user-id U
    python -m royalty_ledger.cli batches --user-id U
    python -m royalty_ledger.cli process --user-id U --batch-id B --quarter 3 --year 2026
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from contextlib import AbstractAsyncContextManager
from typing import Any, Awaitable, Callable, TextIO
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from royalty_ledger.config import configure_logging
from royalty_ledger.database import dispose_db, get_session
from royalty_ledger.ledger.export import export_filename, export_to_csv, format_amount
from royalty_ledger.ledger.reporting import account_summary, filter_entries, summarize
from royalty_ledger.reconciliation.completeness import BatchProcessError
from royalty_ledger.services.ledger_service import LedgerService
from royalty_ledger.services.reconciliation_service import (
    BatchNotFoundError,
    ReconciliationService,
)

logger = logging.getLogger(__name__)

SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]


def parse_uuid(s: str) -> UUID:
    """Parse UUID string."""
    return UUID(s)


class LedgerCli:
    """Royalty ledger command line interface."""

    def __init__(
        self,
        session_scope: SessionScope | None = None,
        out: TextIO | None = None,
    ) -> None:
        self.session_scope = session_scope or get_session
        self.owns_engine = session_scope is None
        self.out = out or sys.stdout
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m royalty_ledger.cli",
            description="Royalty ledger back-office tools",
        )
        parser.add_argument(
            "--log-level",
            type=str,
            help="Override LOG_LEVEL for this run",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # ledger command
        ledger = subparsers.add_parser(
            "ledger",
            help="Show quarterly balances",
        )
        self._add_user_id(ledger)
        self._add_filters(ledger)
        ledger.add_argument(
            "--format",
            type=str,
            choices=["text", "json"],
            default="text",
            help="Output format",
        )

        # export command
        export = subparsers.add_parser(
            "export",
            help="Export quarterly balances to CSV",
        )
        self._add_user_id(export)
        self._add_filters(export)
        export.add_argument(
            "--output",
            type=str,
            help="Output file path, '-' for stdout (default: dated file name)",
        )

        # regenerate command
        regenerate = subparsers.add_parser(
            "regenerate",
            help="Rebuild persisted quarterly reports from payouts",
        )
        self._add_user_id(regenerate)

        # batches command
        batches = subparsers.add_parser(
            "batches",
            help="List reconciliation batches with allocation progress",
        )
        self._add_user_id(batches)

        # process command
        process = subparsers.add_parser(
            "process",
            help="Process a complete batch into payouts",
        )
        self._add_user_id(process)
        process.add_argument(
            "--batch-id",
            type=parse_uuid,
            required=True,
            help="Reconciliation batch ID",
        )
        process.add_argument("--quarter", type=int, required=True, help="Target quarter (1-4)")
        process.add_argument("--year", type=int, required=True, help="Target year")

        return parser

    @staticmethod
    def _add_user_id(parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--user-id",
            type=parse_uuid,
            required=True,
            help="Owning user ID",
        )

    @staticmethod
    def _add_filters(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--search", type=str, help="Match payee, agreement or period")
        parser.add_argument("--year", type=int, help="Only this year")
        parser.add_argument("--quarter", type=int, choices=[1, 2, 3, 4], help="Only this quarter")

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        configure_logging(parsed.log_level)

        handlers: dict[str, Callable[[AsyncSession, argparse.Namespace], Awaitable[int]]] = {
            "ledger": self._cmd_ledger,
            "export": self._cmd_export,
            "regenerate": self._cmd_regenerate,
            "batches": self._cmd_batches,
            "process": self._cmd_process,
        }

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        logger.debug("Running %s for user %s", parsed.command, parsed.user_id)
        return asyncio.run(self._execute(handler, parsed))

    async def _execute(
        self,
        handler: Callable[[AsyncSession, argparse.Namespace], Awaitable[int]],
        args: argparse.Namespace,
    ) -> int:
        try:
            async with self.session_scope() as session:
                return await handler(session, args)
        except BatchNotFoundError as e:
            print(str(e), file=sys.stderr)
            return 1
        except BatchProcessError as e:
            print(f"Cannot process batch: {e}", file=sys.stderr)
            return 2
        finally:
            if self.owns_engine:
                await dispose_db()

    def _print(self, text: str = "") -> None:
        print(text, file=self.out)

    async def _cmd_ledger(self, session: AsyncSession, args: argparse.Namespace) -> int:
        """Show quarterly balances."""
        selection = await LedgerService(session).get_ledger(args.user_id)
        entries = filter_entries(
            selection.entries, search=args.search, year=args.year, quarter=args.quarter
        )
        summary = summarize(entries)
        account = account_summary(selection.entries)

        if args.format == "json":
            payload: dict[str, Any] = {
                "source": selection.source.value,
                "reason": selection.reason,
                "entries": [
                    {
                        "period": e.period_label,
                        "payee_id": str(e.payee_id),
                        "payee": e.payee_name,
                        "opening_balance": format_amount(e.opening_balance),
                        "royalties": format_amount(e.royalties_amount),
                        "expenses": format_amount(e.expenses_amount),
                        "payments": format_amount(e.payments_amount),
                        "closing_balance": format_amount(e.closing_balance),
                    }
                    for e in entries
                ],
                "total_balance": format_amount(summary.total_balance),
                "account": {
                    "current_balance": format_amount(account.current_balance),
                    "total_earned": format_amount(account.total_earned),
                    "total_paid": format_amount(account.total_paid),
                    "pending_amount": format_amount(account.pending_amount),
                },
            }
            self._print(json.dumps(payload, indent=2))
            return 0

        self._print(f"Ledger for user: {args.user_id}")
        self._print(f"  Source: {selection.source.value} ({selection.reason})")
        self._print("=" * 96)
        self._print(
            f"{'Period':<8} {'Payee':<24} {'Opening':>12} {'Royalties':>12} "
            f"{'Expenses':>12} {'Payments':>12} {'Closing':>12}"
        )
        for e in entries:
            self._print(
                f"{e.period_label:<8} {(e.payee_name or 'Unknown')[:24]:<24} "
                f"{format_amount(e.opening_balance):>12} "
                f"{format_amount(e.royalties_amount):>12} "
                f"{format_amount(e.expenses_amount):>12} "
                f"{format_amount(e.payments_amount):>12} "
                f"{format_amount(e.closing_balance):>12}"
            )
        self._print("=" * 96)
        self._print(f"  Reports:       {summary.report_count}")
        self._print(f"  Total balance: {format_amount(summary.total_balance)}")
        self._print(f"  Current:       {format_amount(account.current_balance)}")
        self._print(f"  Pending:       {format_amount(account.pending_amount)}")
        return 0

    async def _cmd_export(self, session: AsyncSession, args: argparse.Namespace) -> int:
        """Export quarterly balances to CSV."""
        selection = await LedgerService(session).get_ledger(args.user_id)
        entries = filter_entries(
            selection.entries, search=args.search, year=args.year, quarter=args.quarter
        )
        content = export_to_csv(entries)

        if args.output == "-":
            self.out.write(content)
            return 0

        path = args.output or export_filename()
        with open(path, "w", newline="") as f:
            f.write(content)
        self._print(f"Exported {len(entries)} report(s) to {path}")
        return 0

    async def _cmd_regenerate(self, session: AsyncSession, args: argparse.Namespace) -> int:
        """Rebuild persisted reports."""
        written = await LedgerService(session).regenerate_reports(args.user_id)
        await session.commit()
        self._print(f"Regenerated {written} quarterly report(s) for user {args.user_id}")
        return 0

    async def _cmd_batches(self, session: AsyncSession, args: argparse.Namespace) -> int:
        """List batches with allocation progress."""
        evaluations = await ReconciliationService(session).evaluate_batches(args.user_id)

        self._print(f"Batches for user: {args.user_id}")
        self._print("=" * 80)
        for ev in evaluations:
            batch = ev.batch
            ready = "ready" if ev.can_process else "-"
            self._print(
                f"{batch.batch_id:<16} {batch.source:<8} {batch.status:<10} "
                f"{format_amount(ev.allocated_amount):>12} / "
                f"{format_amount(batch.total_gross_amount):>12} "
                f"{ev.progress_percent:>6}% {ev.reconciliation_status.value:<10} {ready}"
            )
        self._print("=" * 80)
        self._print(f"  Batches: {len(evaluations)}")
        return 0

    async def _cmd_process(self, session: AsyncSession, args: argparse.Namespace) -> int:
        """Process a complete batch."""
        result = await ReconciliationService(session).process_batch(
            args.user_id, args.batch_id, args.quarter, args.year
        )
        await session.commit()
        self._print(
            f"Processed batch {result.batch_id} into Q{result.quarter} {result.year}: "
            f"{result.payouts_created} payout(s) created"
        )
        return 0


def main() -> int:
    """CLI entry point."""
    cli = LedgerCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
