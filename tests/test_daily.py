"""
Tests for the daily bonus gate.
"""

from zoneinfo import ZoneInfo

from src.services.xp.daily import DailyBonusGate
from src.services.xp.ledger import UserLedgerEntry

from helpers import BERLIN, NOON_MS

# Midnight 2024-06-16 in Berlin (22:00 UTC on the 15th)
BERLIN_MIDNIGHT_MS = 1718488800000


class TestCalendarDate:
    """Dates come from the configured zone, not UTC or the host."""

    def test_noon(self):
        assert DailyBonusGate(BERLIN).calendar_date(NOON_MS) == "2024-06-15"

    def test_rollover_at_local_midnight(self):
        gate = DailyBonusGate(BERLIN)
        assert gate.calendar_date(BERLIN_MIDNIGHT_MS - 1) == "2024-06-15"
        assert gate.calendar_date(BERLIN_MIDNIGHT_MS) == "2024-06-16"

    def test_other_zone_differs(self):
        utc = DailyBonusGate(ZoneInfo("UTC"))
        assert utc.calendar_date(BERLIN_MIDNIGHT_MS) == "2024-06-15"


class TestTryGrant:
    """Once per calendar date."""

    def test_grants_once_per_day(self):
        gate = DailyBonusGate(BERLIN)
        entry = UserLedgerEntry()
        assert gate.try_grant(entry, "2024-06-15") is True
        assert entry.last_daily_bonus == "2024-06-15"
        assert gate.try_grant(entry, "2024-06-15") is False
        assert gate.try_grant(entry, "2024-06-16") is True

    def test_amount(self):
        assert DailyBonusGate(BERLIN).amount == 10.0
