"""
Activity windows for recurring items.

A recurring income or expense may carry an optional ``start_date`` and
``end_date``. The item is active in every calendar month that its inclusive
``[start_date, end_date]`` interval touches, boundary months included:

- no dates at all → always active
- ``start_date`` after the last day of the month → not started yet
- ``end_date`` before the first day of the month → already finished

Example
-------
>>> from datetime import date
>>> from balancecast.income import RecurringIncome
>>> salary = RecurringIncome("s1", "Client A", 2_000.0, start_date=date(2024, 3, 15))
>>> is_active(salary, date(2024, 3, 1))
True
>>> is_active(salary, date(2024, 2, 1))
False
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Iterable, List, TypeVar, Union

from .utils import month_start, month_end

if TYPE_CHECKING:
    from .income import RecurringIncome
    from .expenses import RecurringExpense

__all__ = [
    "is_active",
    "active_items",
]

Item = TypeVar("Item")


def is_active(item: Union[RecurringIncome, RecurringExpense], month: date) -> bool:
    """
    Whether *item* applies to the calendar month containing *month*.

    Parameters
    ----------
    item : RecurringIncome or RecurringExpense
        Anything exposing optional ``start_date`` / ``end_date`` attributes.
    month : date
        Any day of the month being tested.

    Returns
    -------
    bool
        True if the item's activity interval overlaps the month.
    """
    if item.start_date is None and item.end_date is None:
        return True

    if item.start_date is not None and month_end(month) < item.start_date:
        return False
    if item.end_date is not None and month_start(month) > item.end_date:
        return False
    return True


def active_items(items: Iterable[Item], month: date) -> List[Item]:
    """Return the items of *items* active in *month*, preserving order."""
    return [item for item in items if is_active(item, month)]
