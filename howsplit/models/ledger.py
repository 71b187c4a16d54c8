"""
Core Data Models for HowSplit

These models define the schemas for everything the ledger stores or derives.
They are designed to:
1. Be immutable once created (history is appended, never edited)
2. Serialize losslessly for storage (dates as ISO-8601)
3. Load historical data even when it is malformed

DESIGN DECISION: Money is Decimal, not float.
Repeated division and addition on floats drifts; Decimal keeps the
zero-sum invariant tight and makes test expectations exact.

DESIGN DECISION: The stored entities (Expense, Payment) do NOT enforce
business rules like "amount > 0". Those are checked by LedgerValidator
when a mutation is submitted. Bad rows already in history must still
load so the balance computation can skip them instead of crashing.
"""

from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from howsplit.config.settings import CURRENCY_SYMBOLS, DEFAULT_CURRENCY_CODE


CENT = Decimal("0.01")


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_amount(amount: Decimal, currency_code: str = DEFAULT_CURRENCY_CODE) -> str:
    """
    Format an amount for display, e.g. "$12.50" or "-€3.00".

    Rounds half-up to cents. Never converts between currencies.
    """
    symbol = CURRENCY_SYMBOLS.get(currency_code.upper(), currency_code.upper() + " ")
    rounded = Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol}{abs(rounded):,.2f}"


# =============================================================================
# STORED ENTITIES
# =============================================================================

class Member(BaseModel):
    """
    A housemate taking part in shared expenses.

    Created by an explicit add action and never edited afterwards.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique member ID"
    )
    name: str = Field(
        ...,
        max_length=100,
        description="Display name"
    )


class Expense(BaseModel):
    """
    Something one member paid for on behalf of a group.

    The amount is split equally among participant_ids. The payer may
    or may not be one of the participants.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique expense ID"
    )
    description: str = Field(
        ...,
        max_length=200,
        description="What the money was spent on"
    )
    amount: Decimal = Field(
        ...,
        description="Total amount paid"
    )
    payer_id: UUID = Field(
        ...,
        description="Member who paid"
    )
    participant_ids: list[UUID] = Field(
        default_factory=list,
        description="Members who benefit (equal split)"
    )
    expense_date: date = Field(
        ...,
        description="Date of the expense"
    )

    @property
    def is_splittable(self) -> bool:
        """Only positive expenses with at least one participant affect balances."""
        return self.amount > 0 and len(self.participant_ids) > 0

    @property
    def share(self) -> Optional[Decimal]:
        """Amount owed by each participant, or None for malformed expenses."""
        if not self.is_splittable:
            return None
        return self.amount / len(self.participant_ids)


class Payment(BaseModel):
    """
    A settlement payment from one member to another.

    Created by a manual settlement or by marking a computed transfer
    as settled. Payments are only ever removed by clearing history.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique payment ID"
    )
    from_id: UUID = Field(
        ...,
        description="Member who paid"
    )
    to_id: UUID = Field(
        ...,
        description="Member who received"
    )
    amount: Decimal = Field(
        ...,
        description="Amount paid"
    )
    payment_date: datetime = Field(
        default_factory=utc_now,
        description="When the payment was recorded (UTC)"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=200,
        description="Optional note"
    )


# =============================================================================
# DERIVED VALUES (recomputed on every change, never persisted)
# =============================================================================

class Transfer(BaseModel):
    """
    One recommended payment that reduces outstanding debt.

    Transfers have no identity: the whole list is rebuilt from
    scratch every time the history changes.
    """
    model_config = ConfigDict(frozen=True)

    from_id: UUID
    from_name: str
    to_id: UUID
    to_name: str
    amount: Decimal = Field(..., gt=0)

    def describe(self, currency_code: str = DEFAULT_CURRENCY_CODE) -> str:
        """Human-readable line, e.g. "Bob pays Alice $30.00"."""
        return f"{self.from_name} pays {self.to_name} {format_amount(self.amount, currency_code)}"


class SettlementSnapshot(BaseModel):
    """Balances and transfers produced by one pass of the pipeline."""

    balances: dict[UUID, Decimal] = Field(default_factory=dict)
    transfers: list[Transfer] = Field(default_factory=list)

    @property
    def is_settled(self) -> bool:
        """True when nobody owes anybody anything."""
        return not self.transfers

    def balance_of(self, member_id: UUID) -> Decimal:
        return self.balances.get(member_id, Decimal(0))
