"""Activity logging package."""

from howsplit.activity.logger import (
    ActivityLogger,
    configure_log_level,
    create_correlation_id,
)

__all__ = ["ActivityLogger", "configure_log_level", "create_correlation_id"]
