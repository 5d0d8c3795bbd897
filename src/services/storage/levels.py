"""
CampfireBot - Storage Levels Mixin
==================================

Guild XP ledgers in levels.json, keyed by guild id.
"""

from typing import Optional

from src.core.logger import log
from src.services.xp.ledger import GuildLedger


class LevelsMixin:
    """Mixin for XP ledger persistence."""

    def load_guild_ledger(self, guild_id: int) -> Optional[GuildLedger]:
        """Stored ledger for a guild, or None if there is none (or it is unreadable)."""
        raw = self._read(self.levels_path).get(str(guild_id))
        if raw is None:
            return None
        if not isinstance(raw, dict):
            log.tree("Guild Ledger Unreadable", [
                ("Guild ID", str(guild_id)),
                ("Type", type(raw).__name__),
                ("Action", "Starting empty"),
            ], emoji="⚠️")
            return None
        return GuildLedger.from_dict(raw)

    def save_guild_ledger(self, guild_id: int, ledger: GuildLedger) -> bool:
        """Write one guild's ledger back. Returns False if the write failed."""
        data = dict(self._read(self.levels_path))
        data[str(guild_id)] = ledger.to_dict()
        return self._write(self.levels_path, data)
