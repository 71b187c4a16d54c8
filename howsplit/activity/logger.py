"""
Activity Logger

DESIGN DECISION: Every ledger mutation emits one structured log line.
This provides:
1. A readable trace of what happened to the household's history
2. Debugging capability when balances look wrong
3. Correlation of the payments recorded by one "settle all"

Logging is local only. Nothing here is persisted as an audit trail;
the expense and payment history itself is the record.
"""

import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_log_level(level: str) -> None:
    """Route stdlib logging (and therefore structlog) at the given level."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))


class ActivityLogger:
    """
    Central logging service for ledger activity.

    One method per event keeps event names and fields consistent
    across the codebase.
    """

    def __init__(self, name: str = "howsplit"):
        self._logger = structlog.get_logger(name)

    def member_added(self, member_id: UUID, name: str, warnings: list[str]) -> None:
        self._logger.info(
            "member_added",
            member_id=str(member_id),
            name=name,
            warnings=warnings,
        )

    def member_removed(self, member_id: UUID, name: str) -> None:
        self._logger.info("member_removed", member_id=str(member_id), name=name)

    def member_removal_blocked(self, member_id: UUID, reason: str) -> None:
        self._logger.warning(
            "member_removal_blocked",
            member_id=str(member_id),
            reason=reason,
        )

    def expense_added(
        self,
        expense_id: UUID,
        description: str,
        amount: Decimal,
        participant_count: int,
    ) -> None:
        self._logger.info(
            "expense_added",
            expense_id=str(expense_id),
            description=description,
            amount=str(amount),
            participant_count=participant_count,
        )

    def expense_deleted(self, expense_id: UUID, found: bool) -> None:
        if found:
            self._logger.info("expense_deleted", expense_id=str(expense_id))
        else:
            self._logger.warning("expense_delete_missing", expense_id=str(expense_id))

    def payment_recorded(
        self,
        payment_id: UUID,
        from_id: UUID,
        to_id: UUID,
        amount: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self._logger.info(
            "payment_recorded",
            payment_id=str(payment_id),
            from_id=str(from_id),
            to_id=str(to_id),
            amount=str(amount),
            correlation_id=str(correlation_id) if correlation_id else None,
        )

    def validation_failed(self, action: str, errors: list[str]) -> None:
        self._logger.warning("validation_failed", action=action, errors=errors)

    def settlement_started(self, correlation_id: UUID, transfer_count: int) -> None:
        self._logger.info(
            "settlement_started",
            correlation_id=str(correlation_id),
            transfer_count=transfer_count,
        )

    def transfer_skipped(
        self,
        correlation_id: UUID,
        from_id: UUID,
        to_id: UUID,
        reason: str,
    ) -> None:
        self._logger.warning(
            "transfer_skipped",
            correlation_id=str(correlation_id),
            from_id=str(from_id),
            to_id=str(to_id),
            reason=reason,
        )

    def settlement_finished(
        self,
        correlation_id: UUID,
        recorded: int,
        skipped: int,
    ) -> None:
        log = self._logger.warning if skipped else self._logger.info
        log(
            "settlement_finished",
            correlation_id=str(correlation_id),
            recorded=recorded,
            skipped=skipped,
        )

    def history_cleared(self, expense_count: int, payment_count: int) -> None:
        self._logger.info(
            "history_cleared",
            expense_count=expense_count,
            payment_count=payment_count,
        )

    def balances_recomputed(
        self,
        member_count: int,
        expense_count: int,
        skipped_expenses: int,
        payment_count: int,
        transfer_count: int,
    ) -> None:
        if skipped_expenses:
            self._logger.warning(
                "malformed_expenses_skipped",
                skipped_expenses=skipped_expenses,
            )
        self._logger.debug(
            "balances_recomputed",
            member_count=member_count,
            expense_count=expense_count,
            payment_count=payment_count,
            transfer_count=transfer_count,
        )

    def storage_fallback(self, backend: str, error: str) -> None:
        self._logger.warning("storage_fallback", backend=backend, error=error)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a batch action (e.g., settle all).
    Pass it through all subsequent operations.
    """
    return uuid4()
