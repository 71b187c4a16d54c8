"""
Data Models Package

This package contains all Pydantic models used by HowSplit.
Everything stored or returned by the ledger conforms to these schemas.
"""

from howsplit.models.ledger import (
    Expense,
    Member,
    Payment,
    SettlementSnapshot,
    Transfer,
    format_amount,
    utc_now,
)
from howsplit.models.results import (
    PayerSpending,
    SettlementReport,
    SkippedTransfer,
    SpendingSummary,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    # Ledger models
    "Expense",
    "Member",
    "Payment",
    "SettlementSnapshot",
    "Transfer",
    "format_amount",
    "utc_now",
    # Result models
    "PayerSpending",
    "SettlementReport",
    "SkippedTransfer",
    "SpendingSummary",
    "ValidationIssue",
    "ValidationResult",
]
