"""
Unit tests for activity.py module.

Tests the inclusive activity window of recurring items.
"""

from datetime import date

import pytest

from balancecast.activity import active_items, is_active
from balancecast.expenses import RecurringExpense
from balancecast.income import RecurringIncome


class TestIsActive:
    """Test is_active() boundaries."""

    def test_no_dates_always_active(self):
        item = RecurringIncome(id="i", title="Salary", amount=1)
        assert is_active(item, date(1999, 1, 1))
        assert is_active(item, date(2099, 12, 1))

    def test_start_mid_month(self):
        """Starting on the 15th counts for the whole month."""
        item = RecurringIncome(id="i", title="Contract", amount=1, start_date=date(2024, 3, 15))
        assert not is_active(item, date(2024, 2, 1))
        assert is_active(item, date(2024, 3, 1))
        assert is_active(item, date(2030, 6, 1))

    def test_end_mid_month(self):
        item = RecurringExpense(id="e", title="Gym", amount=1, end_date=date(2024, 3, 10))
        assert is_active(item, date(2020, 1, 1))
        assert is_active(item, date(2024, 3, 1))
        assert not is_active(item, date(2024, 4, 1))

    @pytest.mark.parametrize(
        "month, expected",
        [
            (date(2025, 1, 1), False),
            (date(2025, 2, 1), True),
            (date(2025, 4, 1), True),
            (date(2025, 5, 1), False),
        ],
    )
    def test_bounded_window(self, month, expected):
        item = RecurringExpense(
            id="e", title="Course", amount=1,
            start_date=date(2025, 2, 28), end_date=date(2025, 4, 1),
        )
        assert is_active(item, month) is expected

    def test_any_day_of_month_works(self):
        item = RecurringIncome(id="i", title="Contract", amount=1, start_date=date(2024, 3, 15))
        assert is_active(item, date(2024, 3, 2))


class TestActiveItems:
    """Test active_items() filtering."""

    def test_preserves_order(self):
        a = RecurringExpense(id="a", title="A", amount=1)
        b = RecurringExpense(id="b", title="B", amount=1, start_date=date(2026, 1, 1))
        c = RecurringExpense(id="c", title="C", amount=1)
        assert active_items([a, b, c], date(2025, 6, 1)) == [a, c]
        assert active_items([a, b, c], date(2026, 6, 1)) == [a, b, c]
