"""
Scoreboard - Board
==================

Survival run leaderboard: one best-known run per user per difficulty.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


DIFFICULTIES = ("MISERY", "INTERLOPER", "STALKER", "VOYAGEUR", "PILGRIM", "CUSTOM")

MINUTES_PER_DAY = 24 * 60


class ScoreValidationError(ValueError):
    """Raised when a submitted score is out of range."""
    pass


@dataclass
class ScoreEntry:
    user_id: int
    username: str
    day: int
    hour: int
    minute: int
    difficulty: str

    @property
    def total_minutes(self) -> int:
        return self.day * MINUTES_PER_DAY + self.hour * 60 + self.minute

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "username": self.username,
            "day": self.day,
            "hour": self.hour,
            "minute": self.minute,
            "difficulty": self.difficulty,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScoreEntry":
        return cls(
            user_id=int(data["user_id"]),
            username=str(data.get("username") or ""),
            day=int(data["day"]),
            hour=int(data["hour"]),
            minute=int(data["minute"]),
            difficulty=str(data["difficulty"]).upper(),
        )


@dataclass
class Scoreboard:
    """A guild's submitted runs and where its board message lives."""

    entries: List[ScoreEntry] = field(default_factory=list)
    channel_id: Optional[int] = None
    message_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entries": [entry.to_dict() for entry in self.entries],
            "channel_id": self.channel_id,
            "message_id": self.message_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Scoreboard":
        entries = []
        for raw in data.get("entries") or []:
            try:
                entries.append(ScoreEntry.from_dict(raw))
            except (KeyError, TypeError, ValueError):
                continue
        return cls(
            entries=entries,
            channel_id=data.get("channel_id"),
            message_id=data.get("message_id"),
        )


def validate_score(day: int, hour: int, minute: int, difficulty: str) -> str:
    """
    Check a submission before it touches the board.

    Returns:
        The normalized (upper-case) difficulty

    Raises:
        ScoreValidationError: If any field is out of range
    """
    if day < 0:
        raise ScoreValidationError("Day must be 0 or more")
    if not 0 <= hour <= 23:
        raise ScoreValidationError("Hour must be between 0 and 23")
    if not 0 <= minute <= 59:
        raise ScoreValidationError("Minute must be between 0 and 59")

    normalized = (difficulty or "").strip().upper()
    if normalized not in DIFFICULTIES:
        raise ScoreValidationError(f"Unknown difficulty: {difficulty}")
    return normalized


def upsert_entry(
    board: Scoreboard,
    user_id: int,
    username: str,
    day: int,
    hour: int,
    minute: int,
    difficulty: str,
) -> ScoreEntry:
    """Replace the user's run on this difficulty with a new one."""
    difficulty = validate_score(day, hour, minute, difficulty)
    board.entries = [
        e for e in board.entries
        if not (e.user_id == user_id and e.difficulty == difficulty)
    ]
    entry = ScoreEntry(
        user_id=user_id,
        username=username,
        day=day,
        hour=hour,
        minute=minute,
        difficulty=difficulty,
    )
    board.entries.append(entry)
    return entry


def group_entries(board: Scoreboard) -> Dict[str, List[ScoreEntry]]:
    """Entries per difficulty, longest run first. Unknown difficulties are dropped."""
    grouped: Dict[str, List[ScoreEntry]] = {diff: [] for diff in DIFFICULTIES}
    for entry in board.entries:
        if entry.difficulty in grouped:
            grouped[entry.difficulty].append(entry)
    for entries in grouped.values():
        entries.sort(key=lambda e: e.total_minutes, reverse=True)
    return grouped


def format_scoreboard(board: Scoreboard, names: Optional[Dict[int, str]] = None) -> str:
    """Render the board as a code block, one section per difficulty."""
    names = names or {}
    grouped = group_entries(board)

    # Column widths are shared by every section
    day_width = max([1] + [len(str(e.day)) for e in board.entries])
    hour_width = max([1] + [len(str(e.hour)) for e in board.entries])
    minute_width = max([1] + [len(str(e.minute)) for e in board.entries])

    lines = ["```"]
    for diff in DIFFICULTIES:
        lines.append(f"{diff}:")
        for e in grouped[diff]:
            username = names.get(e.user_id) or e.username or str(e.user_id)
            lines.append(
                f"{str(e.day).rjust(day_width)}D "
                f"{str(e.hour).rjust(hour_width)}H "
                f"{str(e.minute).rjust(minute_width)}M | {username}"
            )
        lines.append("")
    lines.append("```")
    return "\n".join(lines)


def looks_like_scoreboard(content: str) -> bool:
    """True for message content produced by format_scoreboard."""
    return "```" in content and "MISERY:" in content and "INTERLOPER:" in content
