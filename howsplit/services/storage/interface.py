"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep members, expenses and payments in memory, a JSON file or Google Sheets
2. Use in-memory storage for testing
3. Keep the ledger's rules decoupled from where the data lives

The interface is intentionally simple - three ordered collections
with append, delete-by-id and bulk clear. The ledger never asks the
storage layer for balances; those are always derived.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from howsplit.models.ledger import Expense, Member, Payment


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    Any storage implementation must implement these methods.
    List methods return items in insertion order.
    """

    @abstractmethod
    async def list_members(self) -> list[Member]:
        """Return all members in the order they were added."""
        pass

    @abstractmethod
    async def list_expenses(self) -> list[Expense]:
        """Return all expenses in the order they were added."""
        pass

    @abstractmethod
    async def list_payments(self) -> list[Payment]:
        """Return all payments in the order they were recorded."""
        pass

    @abstractmethod
    async def save_member(self, member: Member) -> bool:
        """
        Append a member.

        Raises:
            DuplicateError: If a member with the same ID exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def delete_member(self, member_id: UUID) -> bool:
        """
        Delete a member by ID.

        Returns:
            True if deleted, False if no such member
        """
        pass

    @abstractmethod
    async def save_expense(self, expense: Expense) -> bool:
        """
        Append an expense.

        Raises:
            DuplicateError: If an expense with the same ID exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: UUID) -> bool:
        """
        Delete an expense by ID.

        Returns:
            True if deleted, False if no such expense
        """
        pass

    @abstractmethod
    async def save_payment(self, payment: Payment) -> bool:
        """
        Append a payment.

        Raises:
            DuplicateError: If a payment with the same ID exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def clear_transactions(self) -> tuple[int, int]:
        """
        Delete every expense and payment. Members are kept.

        Returns:
            (expenses_deleted, payments_deleted)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
