"""
Debt Simplification

Turns net balances into a short, ordered list of transfers using the
classic greedy matching: the largest debtor pays the largest creditor
as much as one of them needs, then whoever is settled drops out.

Not guaranteed to find the minimum number of transfers, but simple,
at most (debtors + creditors - 1) transfers, and fully deterministic.

THRESHOLDS:
- BALANCE_EPSILON (0.001) decides who counts as a debtor or creditor.
- DUST_THRESHOLD (0.01) is the smallest transfer worth emitting and the
  point at which a partly settled balance is treated as done.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping
from uuid import UUID

from howsplit.models.ledger import (
    Expense,
    Member,
    Payment,
    SettlementSnapshot,
    Transfer,
)
from howsplit.settlement.balances import compute_balances


BALANCE_EPSILON = Decimal("0.001")
DUST_THRESHOLD = Decimal("0.01")


@dataclass
class _Position:
    """A member's outstanding balance while matching is in progress."""
    member: Member
    balance: Decimal


def simplify_debts(
    members: Iterable[Member],
    balances: Mapping[UUID, Decimal],
) -> list[Transfer]:
    """
    Compute the transfers that settle every balance.

    Only members in `members` take part; balances for unknown ids are
    ignored. Ties in balance keep the order members were given in.
    """
    debtors: list[_Position] = []
    creditors: list[_Position] = []

    for member in members:
        balance = balances.get(member.id, Decimal(0))
        if balance < -BALANCE_EPSILON:
            debtors.append(_Position(member, balance))
        elif balance > BALANCE_EPSILON:
            creditors.append(_Position(member, balance))

    debtors.sort(key=lambda p: p.balance)  # most negative first
    creditors.sort(key=lambda p: p.balance, reverse=True)  # most positive first

    transfers: list[Transfer] = []
    debtor_idx = 0
    creditor_idx = 0

    while debtor_idx < len(debtors) and creditor_idx < len(creditors):
        debtor = debtors[debtor_idx]
        creditor = creditors[creditor_idx]

        amount = min(-debtor.balance, creditor.balance)

        if amount < DUST_THRESHOLD:
            advanced = False
            if abs(debtor.balance) < DUST_THRESHOLD:
                debtor_idx += 1
                advanced = True
            if abs(creditor.balance) < DUST_THRESHOLD:
                creditor_idx += 1
                advanced = True
            # Neither side is dust on its own: drop the smaller one so the loop always moves
            if not advanced:
                if abs(debtor.balance) < abs(creditor.balance):
                    debtor_idx += 1
                else:
                    creditor_idx += 1
            continue

        transfers.append(Transfer(
            from_id=debtor.member.id,
            from_name=debtor.member.name,
            to_id=creditor.member.id,
            to_name=creditor.member.name,
            amount=amount,
        ))

        debtor.balance += amount
        creditor.balance -= amount

        if abs(debtor.balance) < DUST_THRESHOLD:
            debtor_idx += 1
        if abs(creditor.balance) < DUST_THRESHOLD:
            creditor_idx += 1

    return transfers


def compute_settlement(
    members: Iterable[Member],
    expenses: Iterable[Expense],
    payments: Iterable[Payment],
) -> SettlementSnapshot:
    """Run the whole pipeline: history -> balances -> transfers."""
    members = list(members)
    balances = compute_balances(members, expenses, payments)
    transfers = simplify_debts(members, balances)
    return SettlementSnapshot(balances=balances, transfers=transfers)
