"""
JSON File Storage Implementation

Stores the three collections in one JSON document, each under its own
key (the same layout the browser version kept in local storage):

    {
      "howsplit_housemates": [...],
      "howsplit_expenses": [...],
      "howsplit_payments": [...]
    }

Dates are written as ISO-8601 strings and amounts as decimal strings,
so everything round-trips without loss.

TRADEOFFS:
- The whole file is re-read and re-written on every change (fine for a household)
- Single writer only; writes go through a temp file and an atomic rename
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Union
from uuid import UUID

from pydantic import BaseModel, TypeAdapter, ValidationError

from howsplit.models.ledger import Expense, Member, Payment
from howsplit.services.storage.interface import (
    DuplicateError,
    LedgerStorageInterface,
    StorageError,
)


MEMBERS_KEY = "howsplit_housemates"
EXPENSES_KEY = "howsplit_expenses"
PAYMENTS_KEY = "howsplit_payments"

_ADAPTERS: dict[str, TypeAdapter] = {
    MEMBERS_KEY: TypeAdapter(Member),
    EXPENSES_KEY: TypeAdapter(Expense),
    PAYMENTS_KEY: TypeAdapter(Payment),
}


class JsonFileLedgerStorage(LedgerStorageInterface):
    """
    JSON file implementation of ledger storage.

    A missing file is treated as an empty ledger and created on first write.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_document(self) -> dict[str, list[Any]]:
        if not self._path.exists():
            return {key: [] for key in _ADAPTERS}
        try:
            with self._path.open("r", encoding="utf-8") as fh:
                document = json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read ledger file {self._path}: {e}")
        if not isinstance(document, dict):
            raise StorageError(f"Ledger file {self._path} is not a JSON object")
        return {key: list(document.get(key) or []) for key in _ADAPTERS}

    def _write_document(self, document: dict[str, list[Any]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=self._path.name,
                suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self._path)
        except OSError as e:
            raise StorageError(f"Failed to write ledger file {self._path}: {e}")

    def _load(self, key: str) -> list:
        adapter = _ADAPTERS[key]
        items = []
        for raw in self._read_document()[key]:
            try:
                items.append(adapter.validate_python(raw))
            except ValidationError:
                continue  # Skip malformed rows
        return items

    def _append(self, key: str, item: BaseModel) -> bool:
        document = self._read_document()
        if any(str(raw.get("id")) == str(item.id) for raw in document[key] if isinstance(raw, dict)):
            raise DuplicateError(f"Already stored: {item.id}")
        document[key].append(item.model_dump(mode="json"))
        self._write_document(document)
        return True

    def _remove(self, key: str, item_id: UUID) -> bool:
        document = self._read_document()
        kept = [
            raw for raw in document[key]
            if not (isinstance(raw, dict) and str(raw.get("id")) == str(item_id))
        ]
        if len(kept) == len(document[key]):
            return False
        document[key] = kept
        self._write_document(document)
        return True

    async def list_members(self) -> list[Member]:
        return self._load(MEMBERS_KEY)

    async def list_expenses(self) -> list[Expense]:
        return self._load(EXPENSES_KEY)

    async def list_payments(self) -> list[Payment]:
        return self._load(PAYMENTS_KEY)

    async def save_member(self, member: Member) -> bool:
        return self._append(MEMBERS_KEY, member)

    async def delete_member(self, member_id: UUID) -> bool:
        return self._remove(MEMBERS_KEY, member_id)

    async def save_expense(self, expense: Expense) -> bool:
        return self._append(EXPENSES_KEY, expense)

    async def delete_expense(self, expense_id: UUID) -> bool:
        return self._remove(EXPENSES_KEY, expense_id)

    async def save_payment(self, payment: Payment) -> bool:
        return self._append(PAYMENTS_KEY, payment)

    async def clear_transactions(self) -> tuple[int, int]:
        document = self._read_document()
        counts = (len(document[EXPENSES_KEY]), len(document[PAYMENTS_KEY]))
        document[EXPENSES_KEY] = []
        document[PAYMENTS_KEY] = []
        self._write_document(document)
        return counts
