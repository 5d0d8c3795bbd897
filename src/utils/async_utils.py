"""
CampfireBot - Async Utilities
=============================

Utilities for handling async operations with proper error logging.

Usage:
    from src.utils.async_utils import with_deadline

    message = await with_deadline(channel.fetch_message(mid), 15, "Recovery Fetch")
"""

import asyncio
from typing import Awaitable, Optional, TypeVar

from src.core.logger import log


T = TypeVar("T")


# =============================================================================
# Deadlines
# =============================================================================

async def with_deadline(
    awaitable: Awaitable[T],
    timeout: float,
    name: str,
) -> Optional[T]:
    """
    Await something for at most `timeout` seconds.

    Returns:
        The result, or None if the deadline passed (logged).
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        log.tree("Operation Timed Out", [
            ("Operation", name),
            ("Deadline", f"{timeout:g}s"),
        ], emoji="⏱️")
        return None


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "with_deadline",
]
