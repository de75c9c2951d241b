"""Realtime change feed package."""

from expensetracker.services.realtime.feed import (
    ChangeFeed,
    QueueChangeFeed,
    SupabaseChangeFeed,
    parse_change_payload,
)

__all__ = [
    "ChangeFeed",
    "QueueChangeFeed",
    "SupabaseChangeFeed",
    "parse_change_payload",
]
