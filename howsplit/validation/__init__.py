"""Mutation validation package."""

from howsplit.validation.validator import LedgerValidator, as_date, parse_amount

__all__ = ["LedgerValidator", "as_date", "parse_amount"]
