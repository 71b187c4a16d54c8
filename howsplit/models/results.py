"""
Result Models

What the ledger hands back to the caller after a mutation or a report.
Failures are returned as data, not raised, so the display layer can
show them to the user and carry on.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from howsplit.models.ledger import Payment, Transfer, utc_now


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'unknown_member')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of validating one submitted mutation.

    Errors block the mutation. Warnings are shown but do not block.
    """

    validated_at: datetime = Field(
        default_factory=utc_now
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def is_valid(self) -> bool:
        """True when nothing blocks the mutation."""
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]

    @property
    def error_messages(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "error"]


# =============================================================================
# SETTLEMENT MODELS
# =============================================================================

class SkippedTransfer(BaseModel):
    """A transfer that could not be recorded during a bulk settlement."""

    transfer: Transfer
    reason: str


class SettlementReport(BaseModel):
    """
    Outcome of "settle all".

    Partial success is normal: a transfer whose member disappeared is
    skipped and listed here while the rest of the batch goes through.
    """

    correlation_id: UUID
    recorded: list[Payment] = Field(default_factory=list)
    skipped: list[SkippedTransfer] = Field(default_factory=list)

    @property
    def fully_settled(self) -> bool:
        return not self.skipped

    @property
    def recorded_total(self) -> Decimal:
        return sum((payment.amount for payment in self.recorded), Decimal(0))


# =============================================================================
# ANALYTICS MODELS
# =============================================================================

class PayerSpending(BaseModel):
    """Total paid by one member over a period."""

    member_id: UUID
    name: str
    total_paid: Decimal


class SpendingSummary(BaseModel):
    """
    Spending over a period.

    year/month echo the filter that was applied; None means "all".
    """

    year: Optional[int] = None
    month: Optional[int] = Field(default=None, ge=1, le=12)
    expense_count: int = Field(ge=0)
    total_spending: Decimal
    by_payer: list[PayerSpending] = Field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return self.expense_count > 0
