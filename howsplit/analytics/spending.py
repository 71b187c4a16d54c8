"""
Spending Analytics

Deterministic summaries over the expense history: how much the
household spent and who paid for it, optionally narrowed to a year
or a single month.

Settlement payments are not spending and are never counted here.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional
from uuid import UUID

from howsplit.models.ledger import CENT, Expense, Member
from howsplit.models.results import PayerSpending, SpendingSummary


UNKNOWN_MEMBER_NAME = "Unknown"


def available_years(expenses: Iterable[Expense]) -> list[int]:
    """Years that have at least one expense, newest first."""
    return sorted({e.expense_date.year for e in expenses}, reverse=True)


def available_months(expenses: Iterable[Expense], year: int) -> list[int]:
    """Months (1-12) of `year` that have at least one expense, in calendar order."""
    return sorted({e.expense_date.month for e in expenses if e.expense_date.year == year})


def filter_expenses(
    expenses: Iterable[Expense],
    year: Optional[int] = None,
    month: Optional[int] = None,
) -> list[Expense]:
    """
    Keep expenses in the given period.

    The month filter only applies together with a year.
    """
    selected = []
    for expense in expenses:
        if year is not None and expense.expense_date.year != year:
            continue
        if year is not None and month is not None and expense.expense_date.month != month:
            continue
        selected.append(expense)
    return selected


def summarize_spending(
    members: Iterable[Member],
    expenses: Iterable[Expense],
    year: Optional[int] = None,
    month: Optional[int] = None,
) -> SpendingSummary:
    """Total spending and spending per payer, largest payer first."""
    if year is None:
        month = None
    if month is not None and not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")

    names = {m.id: m.name for m in members}
    selected = filter_expenses(expenses, year, month)

    total = Decimal(0)
    by_payer: dict[UUID, Decimal] = {}
    for expense in selected:
        total += expense.amount
        by_payer[expense.payer_id] = by_payer.get(expense.payer_id, Decimal(0)) + expense.amount

    payers = [
        PayerSpending(
            member_id=payer_id,
            name=names.get(payer_id, UNKNOWN_MEMBER_NAME),
            total_paid=amount.quantize(CENT, rounding=ROUND_HALF_UP),
        )
        for payer_id, amount in by_payer.items()
    ]
    payers.sort(key=lambda p: p.total_paid, reverse=True)

    return SpendingSummary(
        year=year,
        month=month,
        expense_count=len(selected),
        total_spending=total,
        by_payer=payers,
    )
