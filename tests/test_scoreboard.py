"""
Tests for the survival scoreboard.
"""

import pytest

from src.services.scoreboard.board import (
    DIFFICULTIES,
    ScoreValidationError,
    Scoreboard,
    format_scoreboard,
    group_entries,
    looks_like_scoreboard,
    upsert_entry,
    validate_score,
)


class TestValidation:
    """Range checks before anything is stored."""

    def test_valid(self):
        assert validate_score(0, 0, 0, "misery") == "MISERY"
        assert validate_score(120, 23, 59, " Pilgrim ") == "PILGRIM"

    @pytest.mark.parametrize("day,hour,minute", [(-1, 0, 0), (0, 24, 0), (0, -1, 0), (0, 0, 60)])
    def test_out_of_range(self, day, hour, minute):
        with pytest.raises(ScoreValidationError):
            validate_score(day, hour, minute, "STALKER")

    def test_unknown_difficulty(self):
        with pytest.raises(ScoreValidationError):
            validate_score(1, 1, 1, "NIGHTMARE")

    def test_is_value_error(self):
        assert issubclass(ScoreValidationError, ValueError)


class TestUpsert:
    """One run per user per difficulty."""

    def test_replaces_same_difficulty(self):
        board = Scoreboard()
        upsert_entry(board, 1, "ember", 10, 0, 0, "stalker")
        upsert_entry(board, 1, "ember", 3, 0, 0, "STALKER")
        assert len(board.entries) == 1
        assert board.entries[0].day == 3

    def test_keeps_other_difficulties_and_users(self):
        board = Scoreboard()
        upsert_entry(board, 1, "ember", 10, 0, 0, "stalker")
        upsert_entry(board, 1, "ember", 2, 0, 0, "misery")
        upsert_entry(board, 2, "ash", 5, 0, 0, "stalker")
        assert len(board.entries) == 3

    def test_invalid_leaves_board_untouched(self):
        board = Scoreboard()
        upsert_entry(board, 1, "ember", 10, 0, 0, "stalker")
        with pytest.raises(ScoreValidationError):
            upsert_entry(board, 1, "ember", 10, 99, 0, "stalker")
        assert board.entries[0].day == 10


class TestFormat:
    """Grouped, sorted, padded rendering."""

    def make_board(self):
        board = Scoreboard()
        upsert_entry(board, 1, "ember", 5, 2, 7, "stalker")
        upsert_entry(board, 2, "ash", 105, 23, 30, "stalker")
        upsert_entry(board, 3, "birch", 5, 10, 0, "stalker")
        upsert_entry(board, 1, "ember", 1, 0, 0, "custom")
        return board

    def test_group_order(self):
        grouped = group_entries(self.make_board())
        assert list(grouped) == list(DIFFICULTIES)
        assert [e.user_id for e in grouped["STALKER"]] == [2, 3, 1]

    def test_layout(self):
        lines = format_scoreboard(self.make_board()).splitlines()
        assert lines[0] == "```"
        assert lines[-1] == "```"
        stalker = lines.index("STALKER:")
        assert lines[stalker + 1] == "105D 23H 30M | ash"
        assert lines[stalker + 2] == "  5D 10H  0M | birch"
        assert lines[stalker + 3] == "  5D  2H  7M | ember"
        assert lines[stalker + 4] == ""

    def test_every_section_present(self):
        text = format_scoreboard(Scoreboard())
        for diff in DIFFICULTIES:
            assert f"{diff}:" in text

    def test_current_names(self):
        text = format_scoreboard(self.make_board(), names={2: "ash_renamed"})
        assert "| ash_renamed" in text

    def test_recognized(self):
        assert looks_like_scoreboard(format_scoreboard(Scoreboard()))
        assert not looks_like_scoreboard("MISERY: hello")
