"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a shared backend because:
1. Housemates can look at the raw history directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (we're fine for a household)
- No transactions (the ledger writes one row per mutation)
- Limited query capabilities (we read whole sheets and filter in Python)

One worksheet per collection, one entity per row, row 1 is the header.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from howsplit.config import GoogleSheetsSettings, get_settings
from howsplit.models.ledger import Expense, Member, Payment
from howsplit.services.storage.interface import (
    DuplicateError,
    LedgerStorageInterface,
    StorageConnectionError,
    StorageError,
)


MEMBER_COLUMNS = ["id", "name"]

EXPENSE_COLUMNS = [
    "id",
    "description",
    "amount",
    "payer_id",
    "participant_ids_json",
    "expense_date",
]

PAYMENT_COLUMNS = [
    "id",
    "from_id",
    "to_id",
    "amount",
    "payment_date",
    "description",
]

_write_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_not_exception_type(DuplicateError),
    reraise=True,
)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise StorageConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(self, title: str, columns: list[str]) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_members_sheet(self) -> gspread.Worksheet:
        """Get or create the Members worksheet."""
        return self._get_or_create_sheet(self._settings.members_sheet_name, MEMBER_COLUMNS)

    def get_expenses_sheet(self) -> gspread.Worksheet:
        """Get or create the Expenses worksheet."""
        return self._get_or_create_sheet(self._settings.expenses_sheet_name, EXPENSE_COLUMNS)

    def get_payments_sheet(self) -> gspread.Worksheet:
        """Get or create the Payments worksheet."""
        return self._get_or_create_sheet(self._settings.payments_sheet_name, PAYMENT_COLUMNS)


def _safe_get(row: list, index: int, default: str = "") -> str:
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


def member_to_row(member: Member) -> list:
    return [str(member.id), member.name]


def row_to_member(row: list) -> Member:
    return Member(id=UUID(_safe_get(row, 0)), name=_safe_get(row, 1))


def expense_to_row(expense: Expense) -> list:
    return [
        str(expense.id),
        expense.description,
        str(expense.amount),
        str(expense.payer_id),
        json.dumps([str(pid) for pid in expense.participant_ids]),
        expense.expense_date.isoformat(),
    ]


def row_to_expense(row: list) -> Expense:
    participants_json = _safe_get(row, 4)
    return Expense(
        id=UUID(_safe_get(row, 0)),
        description=_safe_get(row, 1),
        amount=Decimal(_safe_get(row, 2, "0")),
        payer_id=UUID(_safe_get(row, 3)),
        participant_ids=[UUID(pid) for pid in json.loads(participants_json)] if participants_json else [],
        expense_date=date.fromisoformat(_safe_get(row, 5)),
    )


def payment_to_row(payment: Payment) -> list:
    return [
        str(payment.id),
        str(payment.from_id),
        str(payment.to_id),
        str(payment.amount),
        payment.payment_date.isoformat(),
        payment.description or "",
    ]


def row_to_payment(row: list) -> Payment:
    return Payment(
        id=UUID(_safe_get(row, 0)),
        from_id=UUID(_safe_get(row, 1)),
        to_id=UUID(_safe_get(row, 2)),
        amount=Decimal(_safe_get(row, 3, "0")),
        payment_date=datetime.fromisoformat(_safe_get(row, 4)),
        description=_safe_get(row, 5) or None,
    )


class GoogleSheetsLedgerStorage(LedgerStorageInterface):
    """
    Google Sheets implementation of ledger storage.

    Participant lists are JSON-serialized into a single cell.
    Amounts are written as decimal strings, dates as ISO-8601.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        # Ids whose append raised on our side; the row may still have landed
        self._unconfirmed_ids: set[str] = set()

    @staticmethod
    def _read_rows(sheet: gspread.Worksheet, parse) -> list:
        items = []
        for row in sheet.get_all_values()[1:]:  # Skip header
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                items.append(parse(row))
            except Exception:
                continue  # Skip malformed rows
        return items

    def _append_row(self, sheet: gspread.Worksheet, entity_id: UUID, row: list) -> bool:
        """
        Append one entity row, refusing ids that are already stored.

        If a previous attempt for the same id failed client-side but the
        row is present now, that attempt succeeded and this is not a duplicate.
        """
        key = str(entity_id)
        existing_ids = {r[0] for r in sheet.get_all_values()[1:] if r}
        if key in existing_ids:
            if key in self._unconfirmed_ids:
                self._unconfirmed_ids.discard(key)
                return True
            raise DuplicateError(f"Already stored: {entity_id}")

        self._unconfirmed_ids.add(key)
        sheet.append_row(row, value_input_option="RAW")
        self._unconfirmed_ids.discard(key)
        return True

    @staticmethod
    def _delete_row(sheet: gspread.Worksheet, entity_id: UUID) -> bool:
        all_rows = sheet.get_all_values()
        for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is the header
            if row and row[0] == str(entity_id):
                sheet.delete_rows(idx)
                return True
        return False

    @staticmethod
    def _reset_sheet(sheet: gspread.Worksheet, columns: list[str]) -> int:
        count = sum(1 for row in sheet.get_all_values()[1:] if row and row[0])
        sheet.clear()
        sheet.append_row(columns)
        return count

    async def list_members(self) -> list[Member]:
        try:
            return self._read_rows(self._client.get_members_sheet(), row_to_member)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list members: {e}")

    async def list_expenses(self) -> list[Expense]:
        try:
            return self._read_rows(self._client.get_expenses_sheet(), row_to_expense)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list expenses: {e}")

    async def list_payments(self) -> list[Payment]:
        try:
            return self._read_rows(self._client.get_payments_sheet(), row_to_payment)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list payments: {e}")

    @_write_retry
    async def save_member(self, member: Member) -> bool:
        try:
            return self._append_row(self._client.get_members_sheet(), member.id, member_to_row(member))
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save member: {e}")

    @_write_retry
    async def delete_member(self, member_id: UUID) -> bool:
        try:
            return self._delete_row(self._client.get_members_sheet(), member_id)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete member: {e}")

    @_write_retry
    async def save_expense(self, expense: Expense) -> bool:
        try:
            return self._append_row(self._client.get_expenses_sheet(), expense.id, expense_to_row(expense))
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save expense: {e}")

    @_write_retry
    async def delete_expense(self, expense_id: UUID) -> bool:
        try:
            return self._delete_row(self._client.get_expenses_sheet(), expense_id)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete expense: {e}")

    @_write_retry
    async def save_payment(self, payment: Payment) -> bool:
        try:
            return self._append_row(self._client.get_payments_sheet(), payment.id, payment_to_row(payment))
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save payment: {e}")

    @_write_retry
    async def clear_transactions(self) -> tuple[int, int]:
        try:
            expenses = self._reset_sheet(self._client.get_expenses_sheet(), EXPENSE_COLUMNS)
            payments = self._reset_sheet(self._client.get_payments_sheet(), PAYMENT_COLUMNS)
            return expenses, payments
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to clear history: {e}")
