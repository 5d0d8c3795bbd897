"""
XP System - Leaderboard
=======================

Read-only ranked views of a guild ledger and their text rendering.

Two orders exist on purpose:
    - the levelboard ranks by level, then XP, and shows the top rows
    - /level ranks a single user by XP alone across everyone
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from src.core.constants import LEVELBOARD_HEADER

from .ledger import UserLedgerEntry


EMPTY_LEVELBOARD = (
    f"```\n{LEVELBOARD_HEADER}\n\n"
    "No users have gained XP yet!\n"
    "Start chatting to appear on the scoreboard.\n```"
)

# "  7 |  1,234 XP | username"
_ROW_PATTERN = re.compile(r"^\s*(\d+)\s*\|\s*([\d,]+)\s*XP\s*\|\s*(.+?)\s*$")


@dataclass(frozen=True)
class LeaderboardRow:
    rank: int
    user_id: int
    username: str
    level: int
    xp: float


def project_leaderboard(
    entries: Mapping[int, UserLedgerEntry],
    top_n: int = 15,
) -> List[LeaderboardRow]:
    """Top rows ordered by level, then cumulative XP, highest first."""
    ordered = sorted(entries.items(), key=lambda item: (-item[1].level, -item[1].xp))

    return [
        LeaderboardRow(
            rank=i + 1,
            user_id=user_id,
            username=entry.username,
            level=entry.level,
            xp=entry.xp,
        )
        for i, (user_id, entry) in enumerate(ordered[:top_n])
    ]


def rank_of(entries: Mapping[int, UserLedgerEntry], user_id: int) -> Optional[int]:
    """1-based position of a user when everyone is ordered by XP alone."""
    if user_id not in entries:
        return None
    ordered = sorted(entries.items(), key=lambda item: -item[1].xp)
    for i, (uid, _) in enumerate(ordered):
        if uid == user_id:
            return i + 1
    return None


def format_levelboard(
    rows: List[LeaderboardRow],
    names: Optional[Dict[int, str]] = None,
) -> str:
    """
    Render rows as a code block with right-aligned level and XP columns.

    Args:
        rows: Output of project_leaderboard
        names: Current display names by user id; stored usernames are the fallback

    Returns:
        Message content ready to send or edit
    """
    if not rows:
        return EMPTY_LEVELBOARD

    names = names or {}
    level_width = max(len(str(row.level)) for row in rows)
    xp_width = max(len(f"{int(row.xp):,}") for row in rows)

    lines = ["```", LEVELBOARD_HEADER]
    for row in rows:
        level = str(row.level).rjust(level_width)
        xp = f"{int(row.xp):,}".rjust(xp_width)
        username = names.get(row.user_id) or row.username or str(row.user_id)
        lines.append(f"{level} | {xp} XP | {username}")
    lines.append("```")

    return "\n".join(lines)


def parse_levelboard(text: str) -> List[Tuple[int, int, str]]:
    """
    Read a rendered levelboard back into (level, xp, username) tuples.

    XP on the board is floored, so recovered totals can be short by under 1 XP.
    Lines that are not rows (fences, header, empty-state text) are skipped.
    """
    if LEVELBOARD_HEADER not in text:
        return []

    rows = []
    for line in text.splitlines():
        match = _ROW_PATTERN.match(line)
        if not match:
            continue
        level, xp, username = match.groups()
        rows.append((int(level), int(xp.replace(",", "")), username))
    return rows
