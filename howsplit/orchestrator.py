"""
Main Orchestrator for HowSplit

This module ties together storage, validation, the settlement pipeline
and logging, and defines every mutation the household can make:

1. Members: add, remove (only when nothing references them)
2. Expenses: add, delete
3. Payments: record manually, settle one transfer, settle all
4. History: clear all expenses and payments

DESIGN DECISION: Balances and transfers are recomputed from the full
history after every accepted mutation. Nothing is updated incrementally,
so a read can never see stale numbers relative to the ledger's own writes.

DESIGN DECISION: Rejections are returned, not raised. The display layer
shows the message and the ledger stays unchanged. Only storage failures
propagate as exceptions.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from pydantic import ValidationError

from howsplit.activity import ActivityLogger, configure_log_level, create_correlation_id
from howsplit.config import LedgerSettings, get_settings
from howsplit.models.ledger import (
    Expense,
    Member,
    Payment,
    SettlementSnapshot,
    Transfer,
    utc_now,
)
from howsplit.models.results import (
    SettlementReport,
    SkippedTransfer,
    SpendingSummary,
    ValidationResult,
)
from howsplit.analytics import summarize_spending
from howsplit.services.storage import (
    GoogleSheetsLedgerStorage,
    InMemoryLedgerStorage,
    JsonFileLedgerStorage,
    LedgerStorageInterface,
    StorageConnectionError,
)
from howsplit.settlement import compute_settlement, count_skipped_expenses
from howsplit.validation import LedgerValidator, as_date, parse_amount
from howsplit.validation.validator import AmountInput


class HouseholdLedger:
    """
    The household's shared-expense ledger.

    Holds the last computed snapshot (balances + transfers) and the
    history it was computed from. Storage is the source of truth;
    call refresh() after changing storage behind the ledger's back.
    """

    def __init__(
        self,
        storage: Optional[LedgerStorageInterface] = None,
        validator: Optional[LedgerValidator] = None,
        activity_logger: Optional[ActivityLogger] = None,
        settings: Optional[LedgerSettings] = None,
    ):
        self._settings = settings or get_settings().ledger
        self._storage = storage or InMemoryLedgerStorage()
        self._validator = validator or LedgerValidator(self._settings)
        self._log = activity_logger or ActivityLogger()

        self._members: list[Member] = []
        self._expenses: list[Expense] = []
        self._payments: list[Payment] = []
        self._snapshot = SettlementSnapshot()

    @property
    def storage(self) -> LedgerStorageInterface:
        return self._storage

    @property
    def currency_code(self) -> str:
        return self._settings.currency_code

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def list_members(self) -> list[Member]:
        return list(self._members)

    def list_expenses(self) -> list[Expense]:
        return list(self._expenses)

    def list_payments(self) -> list[Payment]:
        return list(self._payments)

    def get_member(self, member_id: UUID) -> Optional[Member]:
        return next((m for m in self._members if m.id == member_id), None)

    def get_balances(self) -> dict[UUID, Decimal]:
        """Net balance per member from the latest recomputation."""
        return dict(self._snapshot.balances)

    def get_transfers(self) -> list[Transfer]:
        """Transfers that would settle every balance, in settlement order."""
        return list(self._snapshot.transfers)

    def get_snapshot(self) -> SettlementSnapshot:
        return self._snapshot.model_copy(deep=True)

    def spending_summary(
        self,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> SpendingSummary:
        return summarize_spending(self._members, self._expenses, year=year, month=month)

    # -------------------------------------------------------------------------
    # Recomputation
    # -------------------------------------------------------------------------

    async def _load_history(self) -> tuple[list[Member], list[Expense], list[Payment]]:
        members = await self._storage.list_members()
        expenses = await self._storage.list_expenses()
        payments = await self._storage.list_payments()
        return members, expenses, payments

    async def refresh(self) -> SettlementSnapshot:
        """Re-read the full history from storage and recompute everything."""
        self._members, self._expenses, self._payments = await self._load_history()
        self._snapshot = compute_settlement(self._members, self._expenses, self._payments)

        self._log.balances_recomputed(
            member_count=len(self._members),
            expense_count=len(self._expenses),
            skipped_expenses=count_skipped_expenses(self._expenses),
            payment_count=len(self._payments),
            transfer_count=len(self._snapshot.transfers),
        )
        return self.get_snapshot()

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

    async def add_member(self, name: Optional[str]) -> tuple[Optional[Member], ValidationResult]:
        """
        Add a housemate.

        Returns:
            (member, validation) - member is None when the name was rejected
        """
        members = await self._storage.list_members()
        validation = self._validator.validate_member_name(name, members)
        if validation.has_errors:
            self._log.validation_failed("add_member", validation.error_messages)
            return None, validation

        member = Member(name=name.strip())
        await self._storage.save_member(member)
        self._log.member_added(member.id, member.name, validation.warnings)

        await self.refresh()
        return member, validation

    async def remove_member(self, member_id: UUID) -> tuple[bool, str]:
        """
        Remove a housemate who has no expenses or payments.

        Returns:
            (removed, message)
        """
        members, expenses, payments = await self._load_history()
        member = next((m for m in members if m.id == member_id), None)
        if member is None:
            return False, "Housemate not found"

        can_remove, reason = self._validator.check_member_removal(member_id, expenses, payments)
        if not can_remove:
            self._log.member_removal_blocked(member_id, reason)
            return False, reason

        await self._storage.delete_member(member_id)
        self._log.member_removed(member_id, member.name)

        await self.refresh()
        return True, f"{member.name} has been removed."

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    async def add_expense(
        self,
        description: Optional[str],
        amount: AmountInput,
        payer_id: Optional[UUID],
        participant_ids: Optional[Iterable[UUID]],
        expense_date: Optional[date],
    ) -> tuple[Optional[Expense], ValidationResult]:
        """
        Add an expense split equally among participant_ids.

        Returns:
            (expense, validation) - expense is None when rejected
        """
        # Selecting the same person twice should not double their share
        participants = list(dict.fromkeys(participant_ids or []))
        expense_date = as_date(expense_date)

        members = await self._storage.list_members()
        validation = self._validator.validate_expense(
            description=description,
            amount=amount,
            payer_id=payer_id,
            participant_ids=participants,
            expense_date=expense_date,
            members=members,
        )
        if validation.has_errors:
            self._log.validation_failed("add_expense", validation.error_messages)
            return None, validation

        expense = Expense(
            description=description.strip(),
            amount=parse_amount(amount),
            payer_id=payer_id,
            participant_ids=participants,
            expense_date=expense_date,
        )
        await self._storage.save_expense(expense)
        self._log.expense_added(expense.id, expense.description, expense.amount, len(participants))

        await self.refresh()
        return expense, validation

    async def delete_expense(self, expense_id: UUID) -> bool:
        """Delete an expense. Returns False if it did not exist."""
        found = await self._storage.delete_expense(expense_id)
        self._log.expense_deleted(expense_id, found)

        await self.refresh()
        return found

    # -------------------------------------------------------------------------
    # Payments
    # -------------------------------------------------------------------------

    async def _save_payment(
        self,
        from_member: Member,
        to_member: Member,
        amount: Decimal,
        description: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> Payment:
        payment = Payment(
            from_id=from_member.id,
            to_id=to_member.id,
            amount=amount,
            payment_date=utc_now(),
            description=description or f"Settlement from {from_member.name} to {to_member.name}",
        )
        await self._storage.save_payment(payment)
        self._log.payment_recorded(
            payment.id,
            payment.from_id,
            payment.to_id,
            payment.amount,
            correlation_id=correlation_id,
        )
        return payment

    async def record_payment(
        self,
        from_id: Optional[UUID],
        to_id: Optional[UUID],
        amount: AmountInput,
        description: Optional[str] = None,
    ) -> tuple[Optional[Payment], ValidationResult]:
        """
        Record money handed from one housemate to another.

        Returns:
            (payment, validation) - payment is None when rejected
        """
        members = await self._storage.list_members()
        validation = self._validator.validate_payment(from_id, to_id, amount, members)
        if validation.has_errors:
            self._log.validation_failed("record_payment", validation.error_messages)
            return None, validation

        by_id = {m.id: m for m in members}
        payment = await self._save_payment(
            by_id[from_id],
            by_id[to_id],
            parse_amount(amount),
            description,
        )

        await self.refresh()
        return payment, validation

    async def settle_transfer(self, transfer: Transfer) -> tuple[Optional[Payment], ValidationResult]:
        """Mark one computed transfer as settled by recording it as a payment."""
        return await self.record_payment(transfer.from_id, transfer.to_id, transfer.amount)

    async def settle_all(self) -> SettlementReport:
        """
        Record a payment for every currently computed transfer.

        A transfer whose housemate has since been removed is skipped and
        reported; the rest of the batch still goes through.
        """
        correlation_id = create_correlation_id()
        transfers = self.get_transfers()
        report = SettlementReport(correlation_id=correlation_id)
        self._log.settlement_started(correlation_id, len(transfers))

        members = {m.id: m for m in await self._storage.list_members()}

        for transfer in transfers:
            missing = [
                name for member_id, name in (
                    (transfer.from_id, transfer.from_name),
                    (transfer.to_id, transfer.to_name),
                )
                if member_id not in members
            ]
            if missing:
                reason = f"Housemate no longer exists: {', '.join(missing)}"
                self._log.transfer_skipped(correlation_id, transfer.from_id, transfer.to_id, reason)
                report.skipped.append(SkippedTransfer(transfer=transfer, reason=reason))
                continue

            payment = await self._save_payment(
                members[transfer.from_id],
                members[transfer.to_id],
                transfer.amount,
                None,
                correlation_id=correlation_id,
            )
            report.recorded.append(payment)

        self._log.settlement_finished(correlation_id, len(report.recorded), len(report.skipped))

        await self.refresh()
        return report

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    async def clear_history(self) -> None:
        """Discard every expense and payment. Housemates are kept."""
        expense_count, payment_count = await self._storage.clear_transactions()
        self._log.history_cleared(expense_count, payment_count)

        await self.refresh()


def build_storage(settings: LedgerSettings) -> LedgerStorageInterface:
    """Create the storage backend named by settings.storage_backend."""
    if settings.storage_backend == "json":
        return JsonFileLedgerStorage(settings.data_file)
    if settings.storage_backend == "google_sheets":
        return GoogleSheetsLedgerStorage()
    return InMemoryLedgerStorage()


async def create_ledger(
    storage: Optional[LedgerStorageInterface] = None,
    settings: Optional[LedgerSettings] = None,
) -> HouseholdLedger:
    """
    Factory function to create a ready-to-use ledger.

    Args:
        storage: Explicit storage backend. If None, the configured
                backend is used, falling back to in-memory storage
                when it is not configured or cannot be reached.
        settings: Ledger settings. If None, loaded from the environment.

    Raises:
        StorageError: If the configured backend is reachable but its
                data cannot be read

    Returns:
        A ledger whose balances and transfers are already computed
    """
    settings = settings or get_settings().ledger
    configure_log_level(settings.log_level)
    activity_logger = ActivityLogger()

    if storage is None:
        try:
            storage = build_storage(settings)
            ledger = HouseholdLedger(storage=storage, activity_logger=activity_logger, settings=settings)
            await ledger.refresh()
            return ledger
        except (ValidationError, StorageConnectionError) as e:
            # Backend not configured or unreachable - continue without it
            activity_logger.storage_fallback(settings.storage_backend, str(e))
            storage = InMemoryLedgerStorage()

    ledger = HouseholdLedger(storage=storage, activity_logger=activity_logger, settings=settings)
    await ledger.refresh()
    return ledger
