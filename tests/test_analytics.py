"""
Tests for spending analytics.
"""

from datetime import date
from decimal import Decimal

import pytest

from howsplit.analytics import (
    available_months,
    available_years,
    filter_expenses,
    summarize_spending,
)
from howsplit.analytics.spending import UNKNOWN_MEMBER_NAME
from howsplit.models.ledger import Expense, Member


@pytest.fixture
def members():
    return [Member(name="Alice"), Member(name="Bob")]


@pytest.fixture
def expenses(members):
    alice, bob = members

    def make(amount, payer, when):
        return Expense(
            description="Shared",
            amount=Decimal(amount),
            payer_id=payer.id,
            participant_ids=[alice.id, bob.id],
            expense_date=when,
        )

    return [
        make("120.00", alice, date(2023, 12, 30)),
        make("40.10", bob, date(2024, 1, 15)),
        make("9.90", alice, date(2024, 1, 20)),
        make("300.005", bob, date(2024, 3, 2)),
    ]


class TestPeriods:
    """Tests for the year/month pickers."""

    def test_available_years_newest_first(self, expenses):
        assert available_years(expenses) == [2024, 2023]

    def test_available_months_in_calendar_order(self, expenses):
        assert available_months(expenses, 2024) == [1, 3]
        assert available_months(expenses, 2022) == []

    def test_month_ignored_without_year(self, expenses):
        assert filter_expenses(expenses, month=1) == expenses

    def test_filter_by_year_and_month(self, expenses):
        selected = filter_expenses(expenses, year=2024, month=1)
        assert [e.amount for e in selected] == [Decimal("40.10"), Decimal("9.90")]


class TestSummarizeSpending:
    """Tests for spending totals."""

    def test_all_time(self, members, expenses):
        alice, bob = members
        summary = summarize_spending(members, expenses)

        assert summary.year is None
        assert summary.month is None
        assert summary.expense_count == 4
        assert summary.total_spending == Decimal("470.005")
        assert [(p.member_id, p.total_paid) for p in summary.by_payer] == [
            (bob.id, Decimal("340.11")),
            (alice.id, Decimal("129.90")),
        ]

    def test_single_month(self, members, expenses):
        summary = summarize_spending(members, expenses, year=2024, month=1)
        assert summary.expense_count == 2
        assert summary.total_spending == Decimal("50.00")
        assert summary.has_data

    def test_empty_period(self, members, expenses):
        summary = summarize_spending(members, expenses, year=2021)
        assert summary.has_data is False
        assert summary.total_spending == 0
        assert summary.by_payer == []

    def test_month_dropped_without_year(self, members, expenses):
        summary = summarize_spending(members, expenses, month=3)
        assert summary.month is None
        assert summary.expense_count == 4

    def test_invalid_month(self, members, expenses):
        with pytest.raises(ValueError):
            summarize_spending(members, expenses, year=2024, month=13)

    def test_removed_payer_shown_as_unknown(self, members, expenses):
        alice, _ = members
        summary = summarize_spending([alice], expenses)
        assert UNKNOWN_MEMBER_NAME in [p.name for p in summary.by_payer]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
