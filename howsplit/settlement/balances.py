"""
Balance Aggregation

Folds the full expense and payment history into one net balance per member.

Sign convention:
- positive: the member is owed money (creditor)
- negative: the member owes money (debtor)

Every expense credits the payer with the full amount and debits each
participant an equal share; every payment credits the sender and debits
the receiver. Both net to zero, so balances always sum to zero.

Pure function: no I/O, no retained state.
"""

from decimal import Decimal
from typing import Iterable
from uuid import UUID

from howsplit.models.ledger import Expense, Member, Payment


def compute_balances(
    members: Iterable[Member],
    expenses: Iterable[Expense],
    payments: Iterable[Payment],
) -> dict[UUID, Decimal]:
    """
    Compute each member's net balance from scratch.

    Members with no activity appear with a zero balance. Expenses with a
    non-positive amount or no participants are skipped, not raised.
    """
    balances: dict[UUID, Decimal] = {member.id: Decimal(0) for member in members}

    for expense in expenses:
        share = expense.share
        if share is None:
            continue

        balances[expense.payer_id] = balances.get(expense.payer_id, Decimal(0)) + expense.amount
        for participant_id in expense.participant_ids:
            balances[participant_id] = balances.get(participant_id, Decimal(0)) - share

    # A payment cancels part of the sender's debt and the receiver's claim
    for payment in payments:
        balances[payment.from_id] = balances.get(payment.from_id, Decimal(0)) + payment.amount
        balances[payment.to_id] = balances.get(payment.to_id, Decimal(0)) - payment.amount

    return balances


def count_skipped_expenses(expenses: Iterable[Expense]) -> int:
    """How many expenses compute_balances ignores as malformed."""
    return sum(1 for expense in expenses if not expense.is_splittable)
