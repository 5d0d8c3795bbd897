"""
Tests for leaderboard projection, rendering and parsing.
"""

from src.core.constants import LEVELBOARD_HEADER
from src.services.xp.leaderboard import (
    EMPTY_LEVELBOARD,
    format_levelboard,
    parse_levelboard,
    project_leaderboard,
    rank_of,
)
from src.services.xp.ledger import UserLedgerEntry


def make_entries():
    return {
        1: UserLedgerEntry(username="ash", xp=30.0, level=2),
        2: UserLedgerEntry(username="birch", xp=1932.5, level=20),
        3: UserLedgerEntry(username="cedar", xp=40.0, level=2),
        4: UserLedgerEntry(username="dune", xp=5.0, level=1),
    }


class TestProjection:
    """Level-then-XP ordering for the board."""

    def test_order(self):
        rows = project_leaderboard(make_entries())
        assert [row.user_id for row in rows] == [2, 3, 1, 4]
        assert [row.rank for row in rows] == [1, 2, 3, 4]

    def test_truncates(self):
        rows = project_leaderboard(make_entries(), top_n=2)
        assert [row.user_id for row in rows] == [2, 3]

    def test_level_beats_xp(self):
        # A stale cached level would be a bug elsewhere; ordering still trusts it first
        entries = {
            1: UserLedgerEntry(username="a", xp=100.0, level=3),
            2: UserLedgerEntry(username="b", xp=90.0, level=4),
        }
        assert project_leaderboard(entries)[0].user_id == 2

    def test_empty(self):
        assert project_leaderboard({}) == []


class TestRankOf:
    """XP-only rank used by /level."""

    def test_rank(self):
        entries = make_entries()
        assert rank_of(entries, 2) == 1
        assert rank_of(entries, 3) == 2
        assert rank_of(entries, 4) == 4

    def test_absent(self):
        assert rank_of(make_entries(), 99) is None


class TestFormat:
    """Code-block rendering."""

    def test_empty_state(self):
        assert format_levelboard([]) == EMPTY_LEVELBOARD
        assert LEVELBOARD_HEADER in EMPTY_LEVELBOARD

    def test_rows_aligned_and_floored(self):
        text = format_levelboard(project_leaderboard(make_entries()))
        lines = text.splitlines()
        assert lines[0] == "```"
        assert lines[1] == LEVELBOARD_HEADER
        assert lines[2] == "20 | 1,932 XP | birch"
        assert lines[3] == " 2 |    40 XP | cedar"
        assert lines[-1] == "```"

    def test_current_names_win(self):
        text = format_levelboard(project_leaderboard(make_entries()), names={2: "birch_renamed"})
        assert "| birch_renamed" in text

    def test_unknown_name_falls_back_to_id(self):
        entries = {77: UserLedgerEntry(xp=1.0, level=1)}
        assert "| 77" in format_levelboard(project_leaderboard(entries))


class TestParse:
    """Reading a posted board back for recovery."""

    def test_parse_rendered_board(self):
        text = format_levelboard(project_leaderboard(make_entries()))
        assert parse_levelboard(text) == [
            (20, 1932, "birch"),
            (2, 40, "cedar"),
            (2, 30, "ash"),
            (1, 5, "dune"),
        ]

    def test_names_with_pipes_and_spaces(self):
        text = f"```\n{LEVELBOARD_HEADER}\n3 | 60 XP | camp fire | x\n```"
        assert parse_levelboard(text) == [(3, 60, "camp fire | x")]

    def test_empty_and_foreign_text(self):
        assert parse_levelboard(EMPTY_LEVELBOARD) == []
        assert parse_levelboard("1 | 2 XP | nope") == []
