"""
Shared fixtures for the XP tests.
"""

import pytest

from helpers import BERLIN, NOON_MS
from src.services.xp.daily import DailyBonusGate
from src.services.xp.ledger import XPLedger
from src.utils.clock import ManualClock


@pytest.fixture
def clock():
    return ManualClock(NOON_MS)


@pytest.fixture
def ledger(clock):
    return XPLedger(gate=DailyBonusGate(BERLIN), clock=clock)
