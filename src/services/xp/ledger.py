"""
XP System - Ledger
==================

Per-guild XP records and the accrual transaction.

Every XP change goes through ``apply_chat_activity`` or ``apply_voice_tick``.
Both run start to finish without awaiting, so a single event loop can never
interleave two of them. The async ``accrue_*`` wrappers add a per
(guild, user, kind) lock around the status lookup that precedes the
transaction: a second message from the same user waits for the first one to
commit and then reads its saturation.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Hashable, Optional, Tuple

from src.core.constants import RESULT_PRECISION

from .curve import LEVEL_CURVE, LevelCurve
from .daily import DailyBonusGate
from .decay import CHAT_DECAY, VOICE_DECAY, ChatDecay, VoiceDecay, apply_gain, elapsed_since, status_multiplier


StatusCheck = Callable[[], Awaitable[bool]]


class ActivityKind(str, Enum):
    CHAT = "chat"
    VOICE = "voice"


# =============================================================================
# Records
# =============================================================================

@dataclass
class ActivityState:
    """Saturation bookkeeping for one user on one activity channel."""

    last_timestamp: int = 0  # epoch ms, 0 = never
    saturation: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"last_timestamp": self.last_timestamp, "saturation": self.saturation}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ActivityState":
        return cls(
            last_timestamp=max(0, int(data.get("last_timestamp", 0) or 0)),
            saturation=max(0, int(data.get("saturation", 0) or 0)),
        )


@dataclass
class UserLedgerEntry:
    """One user's XP record in one guild."""

    username: str = ""
    xp: float = 0.0
    level: int = 1
    message_count: int = 0
    last_daily_bonus: Optional[str] = None
    activity: Dict[ActivityKind, ActivityState] = field(default_factory=dict)

    def state(self, kind: ActivityKind) -> ActivityState:
        """Activity state for a channel kind, created on first use."""
        if kind not in self.activity:
            self.activity[kind] = ActivityState()
        return self.activity[kind]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "xp": self.xp,
            "level": self.level,
            "message_count": self.message_count,
            "last_daily_bonus": self.last_daily_bonus,
            "activity": {kind.value: state.to_dict() for kind, state in self.activity.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], curve: LevelCurve = LEVEL_CURVE) -> "UserLedgerEntry":
        xp = max(0.0, float(data.get("xp", 0) or 0))
        activity = {}
        for key, value in (data.get("activity") or {}).items():
            try:
                kind = ActivityKind(key)
            except ValueError:
                continue
            if isinstance(value, dict):
                activity[kind] = ActivityState.from_dict(value)

        return cls(
            username=str(data.get("username") or ""),
            xp=xp,
            level=curve.level_for(xp),  # Cached value, never trusted from disk
            message_count=max(0, int(data.get("message_count", 0) or 0)),
            last_daily_bonus=data.get("last_daily_bonus") or None,
            activity=activity,
        )


@dataclass
class GuildLedger:
    """All XP records for one guild, plus where its boards live."""

    users: Dict[int, UserLedgerEntry] = field(default_factory=dict)
    levelboard_channel_id: Optional[int] = None
    levelboard_message_id: Optional[int] = None
    recovery_channel_id: Optional[int] = None
    recovery_message_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "users": {str(user_id): entry.to_dict() for user_id, entry in self.users.items()},
            "levelboard_channel_id": self.levelboard_channel_id,
            "levelboard_message_id": self.levelboard_message_id,
            "recovery_channel_id": self.recovery_channel_id,
            "recovery_message_id": self.recovery_message_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], curve: LevelCurve = LEVEL_CURVE) -> "GuildLedger":
        users = {}
        for user_id, entry in (data.get("users") or {}).items():
            if not isinstance(entry, dict):
                continue
            try:
                users[int(user_id)] = UserLedgerEntry.from_dict(entry, curve)
            except (TypeError, ValueError):
                continue

        return cls(
            users=users,
            levelboard_channel_id=_optional_id(data.get("levelboard_channel_id")),
            levelboard_message_id=_optional_id(data.get("levelboard_message_id")),
            recovery_channel_id=_optional_id(data.get("recovery_channel_id")),
            recovery_message_id=_optional_id(data.get("recovery_message_id")),
        )


def _optional_id(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class AccrualResult:
    """Outcome of one accrual event, rounded for display."""

    xp_gain: float
    total_xp: float
    level: int
    leveled_up: bool
    old_level: int


# =============================================================================
# Locks
# =============================================================================

class KeyedLocks:
    """asyncio locks created on demand and dropped once nobody holds or waits."""

    def __init__(self) -> None:
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._users: Dict[Hashable, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]


# =============================================================================
# Ledger
# =============================================================================

class XPLedger:
    """Single in-process authority over every guild's XP records."""

    def __init__(
        self,
        gate: DailyBonusGate,
        clock: Any,
        curve: LevelCurve = LEVEL_CURVE,
        loader: Optional[Callable[[int], Optional[GuildLedger]]] = None,
        chat_decay: ChatDecay = CHAT_DECAY,
        voice_decay: VoiceDecay = VOICE_DECAY,
    ) -> None:
        self.gate = gate
        self.clock = clock
        self.curve = curve
        self.chat_decay = chat_decay
        self.voice_decay = voice_decay
        self._loader = loader
        self._guilds: Dict[int, GuildLedger] = {}
        self._locks = KeyedLocks()

    # -------------------------------------------------------------------------
    # Guild access
    # -------------------------------------------------------------------------

    def guild(self, guild_id: int) -> GuildLedger:
        """Guild ledger, loaded or created on first access."""
        ledger = self._guilds.get(guild_id)
        if ledger is None:
            ledger = (self._loader(guild_id) if self._loader else None) or GuildLedger()
            self._guilds[guild_id] = ledger
        return ledger

    def guild_ids(self) -> Tuple[int, ...]:
        return tuple(self._guilds)

    def entry(self, guild_id: int, user_id: int) -> Optional[UserLedgerEntry]:
        """Existing entry or None; never creates one."""
        return self.guild(guild_id).users.get(user_id)

    def _ensure_entry(self, guild_id: int, user_id: int, username: Optional[str]) -> UserLedgerEntry:
        users = self.guild(guild_id).users
        entry = users.get(user_id)
        if entry is None:
            entry = UserLedgerEntry(username=username or "")
            users[user_id] = entry
        elif username:
            entry.username = username
        return entry

    def import_entry(self, guild_id: int, user_id: int, username: str, xp: float) -> bool:
        """
        Seed a user's XP from an external record (levelboard recovery).

        Existing entries are never overwritten. Activity history starts empty.
        """
        users = self.guild(guild_id).users
        if user_id in users:
            return False
        xp = max(0.0, float(xp))
        users[user_id] = UserLedgerEntry(username=username, xp=xp, level=self.curve.level_for(xp))
        return True

    # -------------------------------------------------------------------------
    # Accrual transaction
    # -------------------------------------------------------------------------

    def apply_chat_activity(
        self,
        guild_id: int,
        user_id: int,
        word_count: int,
        status_active: bool,
        now: int,
        username: Optional[str] = None,
    ) -> AccrualResult:
        """Award XP for one chat message."""
        entry = self._ensure_entry(guild_id, user_id, username)
        state = entry.state(ActivityKind.CHAT)

        saturation = self.chat_decay.transition(state.saturation, elapsed_since(now, state.last_timestamp))
        reduction = self.chat_decay.reduction(saturation)
        xp_gain = apply_gain(self.chat_decay.base_xp(word_count), reduction, status_multiplier(status_active))

        if self.gate.try_grant(entry, self.gate.calendar_date(now)):
            xp_gain += self.gate.amount

        result = self._commit(entry, xp_gain)
        entry.message_count += 1

        state.last_timestamp = now
        state.saturation = saturation
        return result

    def apply_voice_tick(
        self,
        guild_id: int,
        user_id: int,
        status_active: bool,
        now: int,
        username: Optional[str] = None,
    ) -> AccrualResult:
        """Award XP for one minute connected to voice."""
        entry = self._ensure_entry(guild_id, user_id, username)
        state = entry.state(ActivityKind.VOICE)

        saturation = self.voice_decay.transition(state.saturation, elapsed_since(now, state.last_timestamp))
        reduction = self.voice_decay.reduction(saturation)
        xp_gain = apply_gain(self.voice_decay.base_xp(), reduction, status_multiplier(status_active))

        result = self._commit(entry, xp_gain)

        state.last_timestamp = now
        state.saturation = saturation
        return result

    def _commit(self, entry: UserLedgerEntry, xp_gain: float) -> AccrualResult:
        old_level = entry.level
        entry.xp += xp_gain
        entry.level = self.curve.level_for(entry.xp)
        return AccrualResult(
            xp_gain=round(xp_gain, RESULT_PRECISION),
            total_xp=round(entry.xp, RESULT_PRECISION),
            level=entry.level,
            leveled_up=entry.level > old_level,
            old_level=old_level,
        )

    # -------------------------------------------------------------------------
    # Serialized entry points
    # -------------------------------------------------------------------------

    async def accrue_chat(
        self,
        guild_id: int,
        user_id: int,
        word_count: int,
        status_check: StatusCheck,
        username: Optional[str] = None,
    ) -> AccrualResult:
        async with self._locks.hold((guild_id, user_id, ActivityKind.CHAT)):
            status_active = await status_check()
            now = self.clock.now_ms()
            return self.apply_chat_activity(guild_id, user_id, word_count, status_active, now, username)

    async def accrue_voice(
        self,
        guild_id: int,
        user_id: int,
        status_check: StatusCheck,
        username: Optional[str] = None,
    ) -> AccrualResult:
        async with self._locks.hold((guild_id, user_id, ActivityKind.VOICE)):
            status_active = await status_check()
            now = self.clock.now_ms()
            return self.apply_voice_tick(guild_id, user_id, status_active, now, username)

    # -------------------------------------------------------------------------
    # Diagnostics (read-only)
    # -------------------------------------------------------------------------

    def modifier(self, guild_id: int, user_id: int, kind: ActivityKind, now: int) -> float:
        """
        Rate multiplier the next event on a channel would receive.

        Excludes the status bonus. Users with no history on the channel get 1.0.
        """
        entry = self.entry(guild_id, user_id)
        if entry is None or kind not in entry.activity:
            return 1.0

        state = entry.activity[kind]
        decay = self.chat_decay if kind is ActivityKind.CHAT else self.voice_decay
        saturation = decay.peek(state.saturation, elapsed_since(now, state.last_timestamp))
        return decay.reduction(saturation)

    def voice_penalty_minutes(self, guild_id: int, user_id: int, now: int) -> int:
        """Recovered voice saturation, in minutes, as currently stored."""
        entry = self.entry(guild_id, user_id)
        if entry is None or ActivityKind.VOICE not in entry.activity:
            return 0
        state = entry.activity[ActivityKind.VOICE]
        return self.voice_decay.peek(state.saturation, elapsed_since(now, state.last_timestamp))
