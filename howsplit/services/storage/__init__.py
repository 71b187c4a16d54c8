"""
Storage Services Package

Provides the abstract storage interface and its implementations.
In-memory and JSON file storage need no setup; Google Sheets needs
service-account credentials.
"""

from howsplit.services.storage.interface import (
    DuplicateError,
    LedgerStorageInterface,
    StorageConnectionError,
    StorageError,
)
from howsplit.services.storage.memory import InMemoryLedgerStorage
from howsplit.services.storage.json_file import JsonFileLedgerStorage
from howsplit.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
)

__all__ = [
    # Interface
    "LedgerStorageInterface",
    # Exceptions
    "DuplicateError",
    "StorageConnectionError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStorage",
    "InMemoryLedgerStorage",
    "JsonFileLedgerStorage",
]
