"""
In-Memory Storage Implementation

Keeps the three collections in Python lists. Used by the test suite
and as the default backend when nothing else is configured.
Data is lost when the process exits.
"""

from typing import Optional, TypeVar
from uuid import UUID

from howsplit.models.ledger import Expense, Member, Payment
from howsplit.services.storage.interface import DuplicateError, LedgerStorageInterface


_T = TypeVar("_T", Member, Expense, Payment)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """In-memory implementation of ledger storage."""

    def __init__(
        self,
        members: Optional[list[Member]] = None,
        expenses: Optional[list[Expense]] = None,
        payments: Optional[list[Payment]] = None,
    ):
        self._members: list[Member] = list(members or [])
        self._expenses: list[Expense] = list(expenses or [])
        self._payments: list[Payment] = list(payments or [])

    @staticmethod
    def _append(items: list[_T], item: _T, kind: str) -> bool:
        if any(existing.id == item.id for existing in items):
            raise DuplicateError(f"{kind} already exists: {item.id}")
        items.append(item)
        return True

    @staticmethod
    def _remove(items: list[_T], item_id: UUID) -> bool:
        for idx, existing in enumerate(items):
            if existing.id == item_id:
                del items[idx]
                return True
        return False

    async def list_members(self) -> list[Member]:
        return list(self._members)

    async def list_expenses(self) -> list[Expense]:
        return list(self._expenses)

    async def list_payments(self) -> list[Payment]:
        return list(self._payments)

    async def save_member(self, member: Member) -> bool:
        return self._append(self._members, member, "Member")

    async def delete_member(self, member_id: UUID) -> bool:
        return self._remove(self._members, member_id)

    async def save_expense(self, expense: Expense) -> bool:
        return self._append(self._expenses, expense, "Expense")

    async def delete_expense(self, expense_id: UUID) -> bool:
        return self._remove(self._expenses, expense_id)

    async def save_payment(self, payment: Payment) -> bool:
        return self._append(self._payments, payment, "Payment")

    async def clear_transactions(self) -> tuple[int, int]:
        counts = (len(self._expenses), len(self._payments))
        self._expenses.clear()
        self._payments.clear()
        return counts
