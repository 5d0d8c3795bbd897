"""
XP System - Daily Bonus
=======================

Flat bonus on a user's first chat message of each calendar day.

The calendar is a single fixed timezone (Europe/Berlin by default) so every
member rolls over at the same instant, wherever they are.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from src.core.constants import DAILY_BONUS_XP

if TYPE_CHECKING:
    from .ledger import UserLedgerEntry


class DailyBonusGate:
    """Grants DAILY_BONUS_XP at most once per calendar day per entry."""

    def __init__(self, timezone: ZoneInfo, amount: float = DAILY_BONUS_XP) -> None:
        self.timezone = timezone
        self.amount = amount

    def calendar_date(self, now_ms: int) -> str:
        """YYYY-MM-DD for an epoch-ms instant in the gate's timezone."""
        return datetime.fromtimestamp(now_ms / 1000, tz=self.timezone).strftime("%Y-%m-%d")

    def try_grant(self, entry: "UserLedgerEntry", today: str) -> bool:
        if entry.last_daily_bonus == today:
            return False
        entry.last_daily_bonus = today
        return True
