"""
XP System - Decay / Recovery Model
==================================

Diminishing returns for dense activity, recovered with idle time.

Chat and voice share one shape:

    saturation' = transition(saturation, elapsed_ms)
    reduction   = reduction(saturation')
    xp          = max(MIN_XP_GAIN, base_xp(magnitude) * reduction * status)

Chat saturation counts messages sent less than five minutes apart. It drops
by one for every full idle hour, checked only when the next message arrives,
so the rate climbs back towards 1.0 in steps.

Voice saturation counts recent minutes in voice. Each minute adds one (capped
at 50), each full idle hour removes five, and every five minutes of saturation
halves the rate.

Elapsed time is clamped at zero: a clock that steps backwards never counts as
idle time.
"""

from dataclasses import dataclass

from src.core.constants import (
    CHAT_REDUCTION_BASE,
    CHAT_REDUCTION_FLOOR,
    CHAT_RECOVERY_PERIOD_MS,
    CHAT_SPAM_WINDOW_MS,
    CHAT_XP_PER_WORD,
    MIN_XP_GAIN,
    STATUS_BONUS_MULTIPLIER,
    VOICE_MINUTE_CAP,
    VOICE_RECOVERY_MINUTES,
    VOICE_RECOVERY_PERIOD_MS,
    VOICE_REDUCTION_BASE,
    VOICE_REDUCTION_FLOOR,
    VOICE_WINDOW_MINUTES,
    VOICE_XP_PER_MINUTE,
)


def status_multiplier(status_active: bool) -> float:
    """XP multiplier for displaying the guild's server tag."""
    return STATUS_BONUS_MULTIPLIER if status_active else 1.0


@dataclass(frozen=True)
class ChatDecay:
    """Saturation rules for chat messages."""

    xp_per_word: float = CHAT_XP_PER_WORD
    spam_window_ms: int = CHAT_SPAM_WINDOW_MS
    recovery_period_ms: int = CHAT_RECOVERY_PERIOD_MS
    reduction_base: float = CHAT_REDUCTION_BASE
    floor: float = CHAT_REDUCTION_FLOOR

    def base_xp(self, word_count: int) -> float:
        return word_count * self.xp_per_word

    def transition(self, saturation: int, elapsed_ms: int) -> int:
        """Saturation this message is charged at."""
        elapsed_ms = max(0, elapsed_ms)
        if elapsed_ms < self.spam_window_ms:
            return saturation + 1
        periods = elapsed_ms // self.recovery_period_ms
        return max(0, saturation - periods)

    def peek(self, saturation: int, elapsed_ms: int) -> int:
        """Saturation the next message would be charged at."""
        return self.transition(saturation, elapsed_ms)

    def reduction(self, saturation: int) -> float:
        return max(self.floor, self.reduction_base ** saturation)


@dataclass(frozen=True)
class VoiceDecay:
    """Saturation rules for voice minutes."""

    xp_per_minute: float = VOICE_XP_PER_MINUTE
    recovery_period_ms: int = VOICE_RECOVERY_PERIOD_MS
    recovery_minutes: int = VOICE_RECOVERY_MINUTES
    window_minutes: int = VOICE_WINDOW_MINUTES
    minute_cap: int = VOICE_MINUTE_CAP
    reduction_base: float = VOICE_REDUCTION_BASE
    floor: float = VOICE_REDUCTION_FLOOR

    def base_xp(self, minutes: int = 1) -> float:
        return minutes * self.xp_per_minute

    def recovered(self, saturation: int, elapsed_ms: int) -> int:
        """Saturation left after idle recovery, before counting a new minute."""
        periods = max(0, elapsed_ms) // self.recovery_period_ms
        return max(0, saturation - periods * self.recovery_minutes)

    def transition(self, saturation: int, elapsed_ms: int) -> int:
        """Saturation including the minute being awarded now."""
        return min(self.minute_cap, self.recovered(saturation, elapsed_ms) + 1)

    def peek(self, saturation: int, elapsed_ms: int) -> int:
        # Diagnostics read the stored value, so no new minute and no cap
        return self.recovered(saturation, elapsed_ms)

    def reduction(self, saturation: int) -> float:
        windows = saturation // self.window_minutes
        return max(self.floor, self.reduction_base ** windows)


CHAT_DECAY = ChatDecay()
VOICE_DECAY = VoiceDecay()


def apply_gain(base_xp: float, reduction: float, multiplier: float) -> float:
    """Final per-event XP before any flat bonus."""
    return max(MIN_XP_GAIN, base_xp * reduction * multiplier)


def elapsed_since(now: int, last: int) -> int:
    """Milliseconds between two epoch-ms instants, never negative."""
    return max(0, now - last)
