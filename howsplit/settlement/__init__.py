"""Balance aggregation and debt simplification."""

from howsplit.settlement.balances import compute_balances, count_skipped_expenses
from howsplit.settlement.simplifier import (
    BALANCE_EPSILON,
    DUST_THRESHOLD,
    compute_settlement,
    simplify_debts,
)

__all__ = [
    "BALANCE_EPSILON",
    "DUST_THRESHOLD",
    "compute_balances",
    "compute_settlement",
    "count_skipped_expenses",
    "simplify_debts",
]
