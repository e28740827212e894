"""Calendar quarter helpers."""

from __future__ import annotations

from datetime import date, timedelta


def quarter_of(d: date) -> tuple[int, int]:
    """Return (year, quarter) for a date."""
    return d.year, (d.month - 1) // 3 + 1


def quarter_start(year: int, quarter: int) -> date:
    """First day of a calendar quarter."""
    return date(year, (quarter - 1) * 3 + 1, 1)


def quarter_end(year: int, quarter: int) -> date:
    """Last day of a calendar quarter."""
    if quarter == 4:
        return date(year, 12, 31)
    return quarter_start(year, quarter + 1) - timedelta(days=1)


def period_label(year: int, quarter: int) -> str:
    return f"Q{quarter} {year}"
