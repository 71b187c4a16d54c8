"""Configuration package."""

from howsplit.config.settings import (
    CURRENCY_SYMBOLS,
    DEFAULT_CURRENCY_CODE,
    GoogleSheetsSettings,
    LedgerSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "CURRENCY_SYMBOLS",
    "DEFAULT_CURRENCY_CODE",
    "GoogleSheetsSettings",
    "LedgerSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
