"""
CampfireBot - Storage Scoreboard Mixin
======================================

Survival scoreboards in scoreboard.json, keyed by guild id.
"""

from src.services.scoreboard.board import Scoreboard


class ScoreboardMixin:
    """Mixin for survival scoreboard persistence."""

    def load_scoreboard(self, guild_id: int) -> Scoreboard:
        raw = self._read(self.scoreboard_path).get(str(guild_id))
        if not isinstance(raw, dict):
            return Scoreboard()
        return Scoreboard.from_dict(raw)

    def save_scoreboard(self, guild_id: int, board: Scoreboard) -> bool:
        data = dict(self._read(self.scoreboard_path))
        data[str(guild_id)] = board.to_dict()
        return self._write(self.scoreboard_path, data)
