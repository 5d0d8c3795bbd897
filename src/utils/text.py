"""
CampfireBot - Text Utilities
============================

Shared text processing functions.
"""


def count_words(content: str) -> int:
    """Number of whitespace-separated words in a message."""
    return len(content.split())


def progress_bar(progress: float, length: int = 20) -> str:
    """
    Create a text progress bar.

    Args:
        progress: Float between 0.0 and 1.0
        length: Number of characters in the bar

    Returns:
        String like "████████░░" for 80% progress
    """
    progress = min(1.0, max(0.0, progress))
    filled = int(progress * length)
    return "█" * filled + "░" * (length - filled)


def format_xp(xp: float) -> str:
    """Format XP with comma separators and two decimals."""
    return f"{xp:,.2f}"
