"""
Mutation Validation

DESIGN DECISION: Every mutation is validated BEFORE anything is written.
A rejected mutation leaves no partial state behind.

Two kinds of findings:
- ERRORS block the mutation (blank name, non-positive amount,
  no participants, unknown members, missing date)
- WARNINGS are reported but do not block (duplicate member name,
  unusually large amount, date far in the future)

Referential checks (can this member be removed?) live here too, so
that every rule about what the ledger accepts is in one place.

IMPORTANT: Validation never fixes input. It reports issues and the
caller decides what to tell the user.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional, Union
from uuid import UUID

from howsplit.config import LedgerSettings, get_settings
from howsplit.models.ledger import Expense, Member, Payment
from howsplit.models.results import ValidationIssue, ValidationResult


AmountInput = Union[Decimal, int, float, str, None]


def parse_amount(value: AmountInput) -> Optional[Decimal]:
    """
    Convert user input to Decimal.

    Floats go through str() so 0.1 becomes Decimal("0.1"), not its
    binary approximation. Returns None for missing or non-numeric input.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


def as_date(value: Optional[date]) -> Optional[date]:
    """Drop the time part of a datetime; plain dates and None pass through."""
    if isinstance(value, datetime):
        return value.date()
    return value


class LedgerValidator:
    """Validates submitted mutations against the current ledger contents."""

    def __init__(self, settings: Optional[LedgerSettings] = None):
        self._settings = settings or get_settings().ledger

    def _check_amount(self, value: AmountInput, issues: list[ValidationIssue]) -> Optional[Decimal]:
        amount = parse_amount(value)
        if amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing" if value in (None, "") else "invalid_format",
                message="Please enter a valid amount",
                severity="error",
            ))
        elif amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
            ))
        return amount

    def validate_member_name(
        self,
        name: Optional[str],
        members: Iterable[Member],
    ) -> ValidationResult:
        """Check a new member's name."""
        issues = []
        cleaned = (name or "").strip()

        if not cleaned:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Housemate name cannot be empty",
                severity="error",
            ))
        elif len(cleaned) > 100:
            issues.append(ValidationIssue(
                field="name",
                issue_type="too_long",
                message="Housemate name must be at most 100 characters",
                severity="error",
            ))
        elif any(m.name.lower() == cleaned.lower() for m in members):
            issues.append(ValidationIssue(
                field="name",
                issue_type="duplicate",
                message=f"A housemate named {cleaned} already exists",
                severity="warning",
                suggested_fix="Use a distinct name so transfers are easy to tell apart",
            ))

        return ValidationResult(issues=issues)

    def validate_expense(
        self,
        description: Optional[str],
        amount: AmountInput,
        payer_id: Optional[UUID],
        participant_ids: Optional[Iterable[UUID]],
        expense_date: Optional[date],
        members: Iterable[Member],
    ) -> ValidationResult:
        """
        Check a submitted expense.

        Checks:
        - Description present
        - Amount numeric and positive
        - Payer chosen and known
        - At least one participant, all known
        - Date present (warning when far in the future)
        """
        issues = []
        member_ids = {m.id for m in members}
        participants = list(participant_ids or [])
        expense_date = as_date(expense_date)

        cleaned_description = (description or "").strip()
        if not cleaned_description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description cannot be empty",
                severity="error",
            ))
        elif len(cleaned_description) > 200:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message="Description must be at most 200 characters",
                severity="error",
            ))

        parsed = self._check_amount(amount, issues)
        if parsed is not None and parsed > Decimal(str(self._settings.max_expense_amount)):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount {parsed} is unusually large",
                severity="warning",
                suggested_fix="Please double-check the amount",
            ))

        if payer_id is None:
            issues.append(ValidationIssue(
                field="payer_id",
                issue_type="missing",
                message="Please select who paid",
                severity="error",
            ))
        elif payer_id not in member_ids:
            issues.append(ValidationIssue(
                field="payer_id",
                issue_type="unknown_member",
                message="The selected payer is not a housemate",
                severity="error",
            ))

        if not participants:
            issues.append(ValidationIssue(
                field="participant_ids",
                issue_type="missing",
                message="Please select at least one participant",
                severity="error",
            ))
        elif any(pid not in member_ids for pid in participants):
            issues.append(ValidationIssue(
                field="participant_ids",
                issue_type="unknown_member",
                message="One or more participants are not housemates",
                severity="error",
            ))

        if expense_date is None:
            issues.append(ValidationIssue(
                field="expense_date",
                issue_type="missing",
                message="Please select a date for the expense",
                severity="error",
            ))
        else:
            tolerance = timedelta(days=self._settings.future_date_tolerance_days)
            if expense_date > date.today() + tolerance:
                issues.append(ValidationIssue(
                    field="expense_date",
                    issue_type="future_date",
                    message=f"Expense date ({expense_date}) is in the future",
                    severity="warning",
                    suggested_fix="Please verify the date is correct",
                ))

        return ValidationResult(issues=issues)

    def validate_payment(
        self,
        from_id: Optional[UUID],
        to_id: Optional[UUID],
        amount: AmountInput,
        members: Iterable[Member],
    ) -> ValidationResult:
        """Check a payment: positive amount, both ends are existing members."""
        issues = []
        member_ids = {m.id for m in members}

        self._check_amount(amount, issues)

        for field, member_id, role in (("from_id", from_id, "payer"), ("to_id", to_id, "recipient")):
            if member_id is None or member_id not in member_ids:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="unknown_member",
                    message=f"Invalid housemate for payment {role}",
                    severity="error",
                ))

        return ValidationResult(issues=issues)

    @staticmethod
    def find_member_references(
        member_id: UUID,
        expenses: Iterable[Expense],
        payments: Iterable[Payment],
    ) -> list[str]:
        """List the ways a member is referenced by history (empty if none)."""
        expenses = list(expenses)
        payments = list(payments)
        references = []
        if any(e.payer_id == member_id for e in expenses):
            references.append("paid for an expense")
        if any(member_id in e.participant_ids for e in expenses):
            references.append("shares an expense")
        if any(p.from_id == member_id for p in payments):
            references.append("sent a payment")
        if any(p.to_id == member_id for p in payments):
            references.append("received a payment")
        return references

    def check_member_removal(
        self,
        member_id: UUID,
        expenses: Iterable[Expense],
        payments: Iterable[Payment],
    ) -> tuple[bool, str]:
        """
        Decide whether a member can be removed.

        Returns:
            (can_remove, message)
        """
        references = self.find_member_references(member_id, expenses, payments)
        if references:
            return False, (
                "This housemate is involved in existing expenses or payments "
                f"({', '.join(references)}). Settle debts or remove related "
                "transactions first."
            )
        return True, "Housemate can be removed"
