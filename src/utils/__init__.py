"""CampfireBot - Utils Package."""

from src.utils.clock import ManualClock, SystemClock
from src.utils.dedup import InteractionCache, OperationGuard
from src.utils.text import count_words, format_xp, progress_bar

__all__ = [
    "ManualClock",
    "SystemClock",
    "InteractionCache",
    "OperationGuard",
    "count_words",
    "format_xp",
    "progress_bar",
]
