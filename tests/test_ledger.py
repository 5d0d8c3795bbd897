"""
Tests for the XP ledger accrual transaction.
"""

import asyncio
import unittest

import pytest

from src.services.xp.daily import DailyBonusGate
from src.services.xp.ledger import (
    ActivityKind,
    ActivityState,
    GuildLedger,
    UserLedgerEntry,
    XPLedger,
)
from src.utils.clock import ManualClock

from helpers import BERLIN, GUILD, HOUR_MS, MINUTE_MS, NOON_MS, USER

TODAY = "2024-06-15"


def seed(ledger, xp=0.0, bonus_taken=True, **activity):
    """Put a user in the ledger with today's bonus already used."""
    entry = UserLedgerEntry(
        username="ember",
        xp=xp,
        level=ledger.curve.level_for(xp),
        last_daily_bonus=TODAY if bonus_taken else None,
    )
    for key, state in activity.items():
        entry.activity[ActivityKind(key)] = state
    ledger.guild(GUILD).users[USER] = entry
    return entry


class TestChatAccrual:
    """apply_chat_activity."""

    def test_first_message_ever(self, ledger):
        """10 words, no badge, bonus not yet taken: 1.0 + 10."""
        result = ledger.apply_chat_activity(GUILD, USER, 10, False, NOON_MS, "ember")
        assert result.xp_gain == 11.0
        assert result.total_xp == 11.0
        assert result.level == 1
        assert result.leveled_up is False
        assert result.old_level == 1

        entry = ledger.entry(GUILD, USER)
        assert entry.username == "ember"
        assert entry.message_count == 1
        assert entry.last_daily_bonus == TODAY
        assert entry.activity[ActivityKind.CHAT].last_timestamp == NOON_MS
        assert entry.activity[ActivityKind.CHAT].saturation == 0

    def test_level_up(self, ledger):
        """1931 XP + 1.5 crosses the level 20 threshold."""
        seed(ledger, xp=1931)
        result = ledger.apply_chat_activity(GUILD, USER, 15, False, NOON_MS)
        assert result.xp_gain == 1.5
        assert result.total_xp == 1932.5
        assert result.level == 20
        assert result.leveled_up is True
        assert result.old_level == 19

    def test_saturation_reaches_floor(self, ledger):
        """After 30 rapid messages the rate is pinned at the floor."""
        seed(ledger)
        now = NOON_MS
        result = None
        for _ in range(30):
            result = ledger.apply_chat_activity(GUILD, USER, 10, False, now)
            now += 1000
        assert ledger.modifier(GUILD, USER, ActivityKind.CHAT, now) == 0.001
        assert result.xp_gain == 0.001

    def test_recovery_after_idle_hours(self, ledger):
        """Saturation 5, three idle hours: charged at 2."""
        seed(ledger, chat=ActivityState(last_timestamp=NOON_MS - 3 * HOUR_MS, saturation=5))
        result = ledger.apply_chat_activity(GUILD, USER, 10, False, NOON_MS)
        assert result.xp_gain == 0.01
        assert ledger.entry(GUILD, USER).activity[ActivityKind.CHAT].saturation == 2

    def test_status_doubles_gain(self, clock):
        gains = []
        for status in (False, True):
            ledger = XPLedger(gate=DailyBonusGate(BERLIN), clock=clock)
            seed(ledger, chat=ActivityState(last_timestamp=NOON_MS - MINUTE_MS, saturation=1))
            gains.append(ledger.apply_chat_activity(GUILD, USER, 10, status, NOON_MS).xp_gain)
        assert gains[1] == 2 * gains[0]

    def test_daily_bonus_once_per_day(self, ledger):
        seed(ledger, bonus_taken=False)
        first = ledger.apply_chat_activity(GUILD, USER, 1, False, NOON_MS)
        second = ledger.apply_chat_activity(GUILD, USER, 1, False, NOON_MS + 2 * HOUR_MS)
        next_day = ledger.apply_chat_activity(GUILD, USER, 1, False, NOON_MS + 24 * HOUR_MS)
        assert first.xp_gain >= 10
        assert second.xp_gain < 10
        assert next_day.xp_gain >= 10

    def test_xp_never_decreases(self, ledger):
        now = NOON_MS
        previous = 0.0
        for i in range(50):
            result = ledger.apply_chat_activity(GUILD, USER, i % 7, i % 3 == 0, now)
            assert result.total_xp >= previous
            previous = result.total_xp
            now += (i % 4) * 20 * MINUTE_MS

    def test_zero_words_still_earns_minimum(self, ledger):
        seed(ledger)
        assert ledger.apply_chat_activity(GUILD, USER, 0, False, NOON_MS).xp_gain == 0.0001

    def test_clock_going_backwards_grants_no_recovery(self, ledger):
        seed(ledger, chat=ActivityState(last_timestamp=NOON_MS, saturation=3))
        ledger.apply_chat_activity(GUILD, USER, 10, False, NOON_MS - 5 * HOUR_MS)
        assert ledger.entry(GUILD, USER).activity[ActivityKind.CHAT].saturation == 4

    def test_guilds_are_independent(self, ledger):
        ledger.apply_chat_activity(GUILD, USER, 10, False, NOON_MS)
        ledger.apply_chat_activity(GUILD + 1, USER, 10, False, NOON_MS)
        assert ledger.entry(GUILD, USER).xp == ledger.entry(GUILD + 1, USER).xp
        assert ledger.entry(GUILD, USER) is not ledger.entry(GUILD + 1, USER)


class TestVoiceAccrual:
    """apply_voice_tick."""

    def test_first_minute(self, ledger):
        result = ledger.apply_voice_tick(GUILD, USER, False, NOON_MS)
        assert result.xp_gain == 1.0
        state = ledger.entry(GUILD, USER).activity[ActivityKind.VOICE]
        assert state.saturation == 1

    def test_no_daily_bonus_or_message_count(self, ledger):
        ledger.apply_voice_tick(GUILD, USER, False, NOON_MS)
        entry = ledger.entry(GUILD, USER)
        assert entry.last_daily_bonus is None
        assert entry.message_count == 0

    def test_halves_after_five_minutes(self, ledger):
        now = NOON_MS
        gains = []
        for _ in range(6):
            gains.append(ledger.apply_voice_tick(GUILD, USER, False, now).xp_gain)
            now += MINUTE_MS
        assert gains[:4] == [1.0] * 4
        assert gains[4:] == [0.5, 0.5]

    def test_saturation_capped_at_fifty(self, ledger):
        now = NOON_MS
        for _ in range(200):
            ledger.apply_voice_tick(GUILD, USER, False, now)
            assert ledger.entry(GUILD, USER).activity[ActivityKind.VOICE].saturation <= 50
            now += MINUTE_MS
        assert ledger.entry(GUILD, USER).activity[ActivityKind.VOICE].saturation == 50

    def test_status_doubles_gain(self, ledger):
        plain = ledger.apply_voice_tick(GUILD, USER, False, NOON_MS).xp_gain
        tagged = ledger.apply_voice_tick(GUILD, USER + 1, True, NOON_MS).xp_gain
        assert tagged == 2 * plain

    def test_chat_and_voice_are_separate(self, ledger):
        now = NOON_MS
        for _ in range(10):
            ledger.apply_voice_tick(GUILD, USER, False, now)
            now += MINUTE_MS
        assert ledger.modifier(GUILD, USER, ActivityKind.CHAT, now) == 1.0


class TestDiagnostics:
    """Read-only views used by /level and /voicecooldown."""

    def test_unknown_user(self, ledger):
        assert ledger.entry(GUILD, USER) is None
        assert ledger.modifier(GUILD, USER, ActivityKind.VOICE, NOON_MS) == 1.0
        assert ledger.voice_penalty_minutes(GUILD, USER, NOON_MS) == 0
        # Reads never create entries
        assert USER not in ledger.guild(GUILD).users

    def test_voice_penalty_recovers(self, ledger):
        seed(ledger, voice=ActivityState(last_timestamp=NOON_MS, saturation=20))
        assert ledger.voice_penalty_minutes(GUILD, USER, NOON_MS) == 20
        assert ledger.voice_penalty_minutes(GUILD, USER, NOON_MS + 2 * HOUR_MS) == 10
        assert ledger.modifier(GUILD, USER, ActivityKind.VOICE, NOON_MS + 2 * HOUR_MS) == 0.25

    def test_import_entry_does_not_overwrite(self, ledger):
        assert ledger.import_entry(GUILD, USER, "ember", 1932) is True
        assert ledger.entry(GUILD, USER).level == 20
        assert ledger.import_entry(GUILD, USER, "ember", 5) is False
        assert ledger.entry(GUILD, USER).xp == 1932


class TestSerialization:
    """GuildLedger dict round-trip and tolerant loading."""

    def test_round_trip(self, ledger):
        ledger.apply_chat_activity(GUILD, USER, 10, False, NOON_MS, "ember")
        ledger.apply_voice_tick(GUILD, USER, False, NOON_MS)
        guild = ledger.guild(GUILD)
        guild.levelboard_channel_id = 5
        guild.levelboard_message_id = 6

        restored = GuildLedger.from_dict(guild.to_dict())
        assert restored.to_dict() == guild.to_dict()
        assert restored.users[USER].activity[ActivityKind.VOICE].saturation == 1

    def test_level_recomputed_on_load(self):
        data = {"users": {str(USER): {"xp": 1932.5, "level": 99}}}
        assert GuildLedger.from_dict(data).users[USER].level == 20

    def test_bad_fields_fall_back(self):
        data = {
            "users": {
                "not-an-id": {"xp": 5},
                str(USER): {"xp": -3, "message_count": None, "activity": {"smoke": {}, "chat": "x"}},
                "333": "garbage",
            },
            "levelboard_channel_id": "oops",
        }
        ledger = GuildLedger.from_dict(data)
        assert list(ledger.users) == [USER]
        entry = ledger.users[USER]
        assert entry.xp == 0
        assert entry.level == 1
        assert entry.message_count == 0
        assert entry.activity == {}
        assert ledger.levelboard_channel_id is None

    def test_loader_used_once(self, clock):
        calls = []

        def loader(guild_id):
            calls.append(guild_id)
            return GuildLedger(users={USER: UserLedgerEntry(xp=30, level=2)})

        ledger = XPLedger(gate=DailyBonusGate(BERLIN), clock=clock, loader=loader)
        assert ledger.entry(GUILD, USER).xp == 30
        ledger.guild(GUILD)
        assert calls == [GUILD]
        assert ledger.guild_ids() == (GUILD,)


class TestConcurrentAccrual(unittest.IsolatedAsyncioTestCase):
    """accrue_* serialize per (guild, user, kind) across the status await."""

    def setUp(self):
        self.clock = ManualClock(NOON_MS)
        self.ledger = XPLedger(gate=DailyBonusGate(BERLIN), clock=self.clock)

    async def test_second_call_sees_first_saturation(self):
        async def slow_check():
            await asyncio.sleep(0.05)
            return False

        async def fast_check():
            return False

        first, second = await asyncio.gather(
            self.ledger.accrue_chat(GUILD, USER, 10, slow_check),
            self.ledger.accrue_chat(GUILD, USER, 10, fast_check),
        )

        # First commits with the bonus at saturation 0, second is charged at 1
        self.assertEqual(first.xp_gain, 11.0)
        self.assertEqual(second.xp_gain, 0.1)
        entry = self.ledger.entry(GUILD, USER)
        self.assertEqual(entry.message_count, 2)
        self.assertEqual(entry.activity[ActivityKind.CHAT].saturation, 1)
        self.assertEqual(len(self.ledger._locks), 0)

    async def test_clock_read_after_status_check(self):
        async def check():
            self.clock.advance(HOUR_MS)
            return True

        await self.ledger.accrue_voice(GUILD, USER, check)
        state = self.ledger.entry(GUILD, USER).activity[ActivityKind.VOICE]
        self.assertEqual(state.last_timestamp, NOON_MS + HOUR_MS)

    async def test_different_users_do_not_block(self):
        gate = asyncio.Event()

        async def blocked():
            await gate.wait()
            return False

        async def free():
            return False

        slow = asyncio.create_task(self.ledger.accrue_chat(GUILD, USER, 10, blocked))
        await asyncio.sleep(0)
        result = await asyncio.wait_for(self.ledger.accrue_chat(GUILD, USER + 1, 10, free), timeout=1)
        self.assertEqual(result.xp_gain, 11.0)

        gate.set()
        await slow
