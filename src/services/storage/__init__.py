"""
CampfireBot - Storage Module
============================

JSON persistence for all bot features.

Structure:
    - core.py: Base class with file I/O, atomic writes and corruption backups
    - levels.py: Guild XP ledgers (levels.json)
    - scoreboard.py: Survival scoreboards (scoreboard.json)
"""

from .core import StorageCore
from .levels import LevelsMixin
from .scoreboard import ScoreboardMixin


class Storage(
    LevelsMixin,
    ScoreboardMixin,
    StorageCore,
):
    """
    Complete store combining all mixins.

    The order matters - StorageCore must be last so its __init__ runs.
    """
    pass


# Global singleton instance
storage = Storage()

__all__ = ["Storage", "storage"]
