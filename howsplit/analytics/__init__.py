"""Spending analytics package."""

from howsplit.analytics.spending import (
    available_months,
    available_years,
    filter_expenses,
    summarize_spending,
)

__all__ = [
    "available_months",
    "available_years",
    "filter_expenses",
    "summarize_spending",
]
