"""
Flow tests for HouseholdLedger.

All tests run against in-memory storage unless they say otherwise.
"""

import asyncio
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from howsplit.config import LedgerSettings
from howsplit.orchestrator import HouseholdLedger, create_ledger
from howsplit.services.storage import (
    InMemoryLedgerStorage,
    JsonFileLedgerStorage,
    StorageError,
)


def run_async(coro):
    """Helper to run ledger coroutines from synchronous tests."""
    return asyncio.run(coro)


def new_ledger() -> HouseholdLedger:
    return HouseholdLedger(storage=InMemoryLedgerStorage(), settings=LedgerSettings())


async def household(ledger: HouseholdLedger, *names: str):
    members = []
    for name in names:
        member, _ = await ledger.add_member(name)
        members.append(member)
    return members


class TestMembers:
    """Tests for adding and removing housemates."""

    def test_add_member(self):
        async def scenario():
            ledger = new_ledger()
            member, validation = await ledger.add_member("  Alice ")
            return ledger, member, validation

        ledger, member, validation = run_async(scenario())
        assert member is not None
        assert member.name == "Alice"
        assert validation.is_valid
        assert ledger.list_members() == [member]
        assert ledger.get_balances() == {member.id: Decimal(0)}

    def test_blank_member_rejected(self):
        async def scenario():
            ledger = new_ledger()
            member, validation = await ledger.add_member("   ")
            return ledger, member, validation

        ledger, member, validation = run_async(scenario())
        assert member is None
        assert validation.has_errors
        assert ledger.list_members() == []

    def test_duplicate_name_added_with_warning(self):
        async def scenario():
            ledger = new_ledger()
            await ledger.add_member("Alice")
            return ledger, await ledger.add_member("alice")

        ledger, (member, validation) = run_async(scenario())
        assert member is not None
        assert validation.warnings
        assert len(ledger.list_members()) == 2

    def test_remove_unreferenced_member(self):
        async def scenario():
            ledger = new_ledger()
            alice, bob = await household(ledger, "Alice", "Bob")
            removed, message = await ledger.remove_member(bob.id)
            return ledger, alice, removed, message

        ledger, alice, removed, message = run_async(scenario())
        assert removed is True
        assert "Bob" in message
        assert ledger.list_members() == [alice]

    def test_remove_referenced_member_blocked(self):
        async def scenario():
            ledger = new_ledger()
            alice, bob = await household(ledger, "Alice", "Bob")
            await ledger.add_expense("Pizza", "20", alice.id, [alice.id, bob.id], date(2024, 4, 1))
            blocked_payer = await ledger.remove_member(alice.id)
            blocked_participant = await ledger.remove_member(bob.id)
            return ledger, blocked_payer, blocked_participant

        ledger, blocked_payer, blocked_participant = run_async(scenario())
        assert blocked_payer[0] is False
        assert blocked_participant[0] is False
        assert len(ledger.list_members()) == 2

    def test_remove_member_blocked_by_payment(self):
        async def scenario():
            ledger = new_ledger()
            alice, bob = await household(ledger, "Alice", "Bob")
            await ledger.record_payment(alice.id, bob.id, "5")
            return await ledger.remove_member(bob.id)

        removed, message = run_async(scenario())
        assert removed is False
        assert "received a payment" in message

    def test_remove_unknown_member(self):
        removed, message = run_async(new_ledger().remove_member(uuid4()))
        assert removed is False
        assert message == "Housemate not found"


class TestExpenses:
    """Tests for adding and deleting expenses."""

    def test_add_expense_updates_balances_and_transfers(self):
        async def scenario():
            ledger = new_ledger()
            a, b, c = await household(ledger, "A", "B", "C")
            expense, validation = await ledger.add_expense(
                "Groceries", 90, a.id, [a.id, b.id, c.id], date(2024, 4, 2)
            )
            return ledger, (a, b, c), expense, validation

        ledger, (a, b, c), expense, validation = run_async(scenario())
        assert expense is not None
        assert expense.amount == Decimal("90")
        assert validation.is_valid
        assert ledger.get_balances() == {
            a.id: Decimal("60"),
            b.id: Decimal("-30"),
            c.id: Decimal("-30"),
        }
        assert [(t.from_name, t.to_name, t.amount) for t in ledger.get_transfers()] == [
            ("B", "A", Decimal("30")),
            ("C", "A", Decimal("30")),
        ]

    def test_invalid_expense_changes_nothing(self):
        async def scenario():
            ledger = new_ledger()
            a, b = await household(ledger, "A", "B")
            results = [
                await ledger.add_expense("", "10", a.id, [b.id], date(2024, 4, 2)),
                await ledger.add_expense("Cake", "0", a.id, [b.id], date(2024, 4, 2)),
                await ledger.add_expense("Cake", "10", None, [b.id], date(2024, 4, 2)),
                await ledger.add_expense("Cake", "10", a.id, [], date(2024, 4, 2)),
                await ledger.add_expense("Cake", "10", a.id, [b.id], None),
                await ledger.add_expense("Cake", "10", uuid4(), [b.id], date(2024, 4, 2)),
            ]
            stored = await ledger.storage.list_expenses()
            return ledger, results, stored

        ledger, results, stored = run_async(scenario())
        assert all(expense is None for expense, _ in results)
        assert all(validation.has_errors for _, validation in results)
        assert stored == []
        assert ledger.get_transfers() == []

    def test_repeated_participant_counted_once(self):
        async def scenario():
            ledger = new_ledger()
            a, b = await household(ledger, "A", "B")
            expense, _ = await ledger.add_expense("Taxi", "30", a.id, [b.id, b.id, a.id], date(2024, 4, 3))
            return ledger, a, b, expense

        ledger, a, b, expense = run_async(scenario())
        assert expense.participant_ids == [b.id, a.id]
        assert ledger.get_balances()[b.id] == Decimal("-15")

    def test_datetime_expense_date_is_stored_as_date(self):
        async def scenario():
            ledger = new_ledger()
            a, b = await household(ledger, "A", "B")
            return await ledger.add_expense("Movie", "18", a.id, [b.id], datetime(2024, 4, 3, 21, 15))

        expense, validation = run_async(scenario())
        assert validation.is_valid
        assert expense.expense_date == date(2024, 4, 3)

    def test_delete_expense_recomputes(self):
        async def scenario():
            ledger = new_ledger()
            a, b = await household(ledger, "A", "B")
            expense, _ = await ledger.add_expense("Tickets", "40", a.id, [b.id], date(2024, 4, 4))
            before = ledger.get_transfers()
            deleted = await ledger.delete_expense(expense.id)
            missing = await ledger.delete_expense(expense.id)
            return ledger, before, deleted, missing

        ledger, before, deleted, missing = run_async(scenario())
        assert len(before) == 1
        assert deleted is True
        assert missing is False
        assert ledger.get_transfers() == []
        assert all(value == 0 for value in ledger.get_balances().values())


class TestPayments:
    """Tests for recording and settling payments."""

    def test_record_payment(self):
        async def scenario():
            ledger = new_ledger()
            a, b = await household(ledger, "A", "B")
            await ledger.add_expense("Rent", "100", a.id, [a.id, b.id], date(2024, 4, 5))
            payment, validation = await ledger.record_payment(b.id, a.id, "50")
            return ledger, payment, validation

        ledger, payment, validation = run_async(scenario())
        assert validation.is_valid
        assert payment.amount == Decimal("50")
        assert payment.description == "Settlement from B to A"
        assert payment.payment_date.tzinfo is not None
        assert ledger.get_transfers() == []
        assert all(value == 0 for value in ledger.get_balances().values())

    def test_record_payment_rejects_unknown_member(self):
        async def scenario():
            ledger = new_ledger()
            (a,) = await household(ledger, "A")
            result = await ledger.record_payment(a.id, uuid4(), "5")
            return ledger, result

        ledger, (payment, validation) = run_async(scenario())
        assert payment is None
        assert validation.has_errors
        assert ledger.list_payments() == []

    def test_record_payment_rejects_non_positive_amount(self):
        async def scenario():
            ledger = new_ledger()
            a, b = await household(ledger, "A", "B")
            return await ledger.record_payment(a.id, b.id, "-1")

        payment, validation = run_async(scenario())
        assert payment is None
        assert validation.has_errors

    def test_settle_single_transfer(self):
        async def scenario():
            ledger = new_ledger()
            a, b, c = await household(ledger, "A", "B", "C")
            await ledger.add_expense("Groceries", "90", a.id, [a.id, b.id, c.id], date(2024, 4, 6))
            first = ledger.get_transfers()[0]
            payment, _ = await ledger.settle_transfer(first)
            return ledger, first, payment

        ledger, first, payment = run_async(scenario())
        assert payment.from_id == first.from_id
        assert payment.amount == first.amount
        assert len(ledger.get_transfers()) == 1

    def test_settle_all(self):
        async def scenario():
            ledger = new_ledger()
            a, b, c = await household(ledger, "A", "B", "C")
            await ledger.add_expense("Power bill", "100", a.id, [a.id, b.id, c.id], date(2024, 4, 7))
            await ledger.add_expense("Internet", "45.50", b.id, [a.id, b.id, c.id], date(2024, 4, 8))
            transfers = ledger.get_transfers()
            report = await ledger.settle_all()
            return ledger, transfers, report

        ledger, transfers, report = run_async(scenario())
        assert report.fully_settled
        assert len(report.recorded) == len(transfers)
        assert all(p.description.startswith("Settlement from") for p in report.recorded)
        assert ledger.get_transfers() == []
        assert all(abs(value) <= Decimal("0.001") for value in ledger.get_balances().values())

    def test_settle_all_skips_removed_member(self):
        """A transfer whose housemate vanished is skipped; the rest go through."""
        async def scenario():
            ledger = new_ledger()
            a, b, c = await household(ledger, "A", "B", "C")
            await ledger.add_expense("Groceries", "90", a.id, [a.id, b.id, c.id], date(2024, 4, 9))
            # Someone else removes C directly in storage after transfers were computed
            await ledger.storage.delete_member(c.id)
            report = await ledger.settle_all()
            return ledger, (a, b, c), report

        ledger, (a, b, c), report = run_async(scenario())
        assert [(p.from_id, p.to_id, p.amount) for p in report.recorded] == [
            (b.id, a.id, Decimal("30")),
        ]
        assert len(report.skipped) == 1
        assert report.skipped[0].transfer.from_id == c.id
        assert "C" in report.skipped[0].reason
        assert report.fully_settled is False

    def test_settle_all_with_nothing_owed(self):
        report = run_async(new_ledger().settle_all())
        assert report.recorded == []
        assert report.skipped == []


class TestHistory:
    """Tests for clearing history and refreshing."""

    def test_clear_history_keeps_members(self):
        async def scenario():
            ledger = new_ledger()
            a, b = await household(ledger, "A", "B")
            await ledger.add_expense("Snacks", "12", a.id, [a.id, b.id], date(2024, 4, 10))
            await ledger.record_payment(b.id, a.id, "2")
            await ledger.clear_history()
            return ledger

        ledger = run_async(scenario())
        assert len(ledger.list_members()) == 2
        assert ledger.list_expenses() == []
        assert ledger.list_payments() == []
        assert ledger.get_transfers() == []
        assert all(value == 0 for value in ledger.get_balances().values())

    def test_refresh_picks_up_external_changes(self):
        async def scenario():
            storage = InMemoryLedgerStorage()
            ledger = HouseholdLedger(storage=storage, settings=LedgerSettings())
            a, b = await household(ledger, "A", "B")
            other = HouseholdLedger(storage=storage, settings=LedgerSettings())
            await other.refresh()
            await other.add_expense("Coffee", "8", a.id, [b.id], date(2024, 4, 11))
            stale = ledger.get_transfers()
            await ledger.refresh()
            return stale, ledger.get_transfers()

        stale, fresh = run_async(scenario())
        assert stale == []
        assert len(fresh) == 1
        assert fresh[0].amount == Decimal("8")

    def test_spending_summary(self):
        async def scenario():
            ledger = new_ledger()
            a, b = await household(ledger, "A", "B")
            await ledger.add_expense("Rent", "900", a.id, [a.id, b.id], date(2024, 3, 1))
            await ledger.add_expense("Food", "50.25", b.id, [a.id, b.id], date(2024, 4, 1))
            return ledger.spending_summary(year=2024, month=4)

        summary = run_async(scenario())
        assert summary.expense_count == 1
        assert summary.total_spending == Decimal("50.25")
        assert [p.name for p in summary.by_payer] == ["B"]

    def test_transfers_read_in_configured_currency(self):
        async def scenario():
            ledger = HouseholdLedger(
                storage=InMemoryLedgerStorage(),
                settings=LedgerSettings(currency_code="eur"),
            )
            a, b = await household(ledger, "Alice", "Bob")
            await ledger.add_expense("Train", "25.5", a.id, [b.id], date(2024, 4, 12))
            return ledger, a, b

        ledger, alice, bob = run_async(scenario())
        assert ledger.currency_code == "EUR"
        [transfer] = ledger.get_transfers()
        assert transfer.describe(ledger.currency_code) == "Bob pays Alice €25.50"
        assert ledger.get_member(transfer.to_id) == alice
        assert ledger.get_member(uuid4()) is None


class TestCreateLedger:
    """Tests for the ledger factory."""

    def test_explicit_storage(self):
        storage = InMemoryLedgerStorage()
        ledger = run_async(create_ledger(storage=storage, settings=LedgerSettings()))
        assert ledger.storage is storage
        assert ledger.get_transfers() == []

    def test_json_backend_from_settings(self, tmp_path):
        settings = LedgerSettings(storage_backend="json", data_file=str(tmp_path / "ledger.json"))

        async def scenario():
            ledger = await create_ledger(settings=settings)
            a, b = await household(ledger, "A", "B")
            await ledger.add_expense("Lamp", "20", a.id, [b.id], date(2024, 4, 12))
            reopened = await create_ledger(settings=settings)
            return ledger, reopened

        ledger, reopened = run_async(scenario())
        assert isinstance(ledger.storage, JsonFileLedgerStorage)
        assert reopened.get_transfers() == ledger.get_transfers()
        assert reopened.get_balances() == ledger.get_balances()

    def test_unconfigured_backend_falls_back_to_memory(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
        from howsplit.config import get_settings
        get_settings.cache_clear()

        settings = LedgerSettings(storage_backend="google_sheets")
        ledger = run_async(create_ledger(settings=settings))
        assert isinstance(ledger.storage, InMemoryLedgerStorage)

    def test_unreadable_ledger_file_is_not_replaced(self, tmp_path):
        """A corrupt ledger file raises instead of silently switching to memory."""
        path = tmp_path / "ledger.json"
        path.write_text("{not json", encoding="utf-8")
        settings = LedgerSettings(storage_backend="json", data_file=str(path))

        with pytest.raises(StorageError):
            run_async(create_ledger(settings=settings))
        assert path.read_text(encoding="utf-8") == "{not json"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
