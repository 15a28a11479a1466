"""General utilities for BalanceCast

Contents
--------
- Month arithmetic (month_start, month_end, add_months, months_between)
- Month keys and iteration (month_key, iter_months)
- Index builders (month_index)
- Formatting helpers (format_currency, format_percent)
"""

from __future__ import annotations

import calendar
from datetime import date
from typing import Iterator, Optional

import pandas as pd

__all__ = [
    # Months
    "month_start",
    "month_end",
    "add_months",
    "months_between",
    "month_key",
    "iter_months",
    # Index
    "month_index",
    # Formatting
    "format_currency",
    "format_percent",
]


# ---------------------------------------------------------------------------
# Month arithmetic
# ---------------------------------------------------------------------------

def month_start(d: date) -> date:
    """Return the first day of the month containing *d*."""
    return date(d.year, d.month, 1)


def month_end(d: date) -> date:
    """Return the last day of the month containing *d*."""
    return date(d.year, d.month, calendar.monthrange(d.year, d.month)[1])


def add_months(d: date, months: int) -> date:
    """Shift *d* by *months* calendar months, clamping the day to the target month."""
    total = d.year * 12 + (d.month - 1) + int(months)
    year, month = divmod(total, 12)
    day = min(d.day, calendar.monthrange(year, month + 1)[1])
    return date(year, month + 1, day)


def months_between(start: date, end: date) -> int:
    """
    Whole calendar months from *start* to *end*, ignoring the day of month.

    Can be negative if *end* falls in an earlier month than *start*.
    """
    return (end.year - start.year) * 12 + (end.month - start.month)


def month_key(d: date) -> str:
    """ISO year-month key, e.g. ``"2025-07"``."""
    return f"{d.year:04d}-{d.month:02d}"


def iter_months(start: date, horizon: date) -> Iterator[date]:
    """
    Yield the first day of every month from *start*'s month while it is <= *horizon*.

    Yields nothing when *horizon* falls before the first day of *start*'s month.
    """
    current = month_start(start)
    while current <= horizon:
        yield current
        current = add_months(current, 1)


# ---------------------------------------------------------------------------
# Index helpers
# ---------------------------------------------------------------------------

def month_index(start: Optional[date], months: int) -> pd.DatetimeIndex:
    """Construct a first-of-month DatetimeIndex for *months* periods.

    If *start* is None, uses the current month as the first period.
    """
    if months <= 0:
        return pd.DatetimeIndex([], dtype="datetime64[ns]")
    if start is None:
        today = pd.Timestamp.today().normalize()
        first = pd.Timestamp(today.year, today.month, 1)
    else:
        first = pd.Timestamp(start.year, start.month, 1)
    return pd.date_range(start=first, periods=months, freq="MS")


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def format_currency(value: float, decimals: int = 2, symbol: str = "€") -> str:
    """
    Format an amount for CLI tables.

    Examples
    --------
    >>> format_currency(1234.5)
    '1,234.50 €'
    >>> format_currency(-50, decimals=0)
    '-50 €'
    """
    return f"{value:,.{decimals}f} {symbol}"


def format_percent(value: float, decimals: int = 1) -> str:
    """Format a fraction (0.19) as a percentage string ('19.0%')."""
    return f"{value * 100:.{decimals}f}%"
