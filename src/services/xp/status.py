"""
XP System - Server Tag Lookup
=============================

Checks whether a member displays this guild's server tag (2x XP).

The tag lives on the user's primary guild profile. Partial user objects,
older gateway payloads and API hiccups all count as "no tag": a failed
lookup only costs the bonus for that one event.
"""

from typing import Any

from src.core.logger import log


def has_status_badge(user: Any, guild_id: int) -> bool:
    """True if the user's primary guild is this one and its tag is shown."""
    primary = getattr(user, "primary_guild", None)
    if primary is None:
        return False
    if not getattr(primary, "identity_enabled", False):
        return False
    return getattr(primary, "id", None) == guild_id


class StatusLookup:
    """Async-capable, fail-open wrapper around has_status_badge."""

    async def has_status_badge(self, user: Any, guild_id: int) -> bool:
        try:
            return has_status_badge(user, guild_id)
        except Exception as e:
            log.tree("Server Tag Lookup Failed", [
                ("User", str(getattr(user, "name", "Unknown"))),
                ("ID", str(getattr(user, "id", "Unknown"))),
                ("Guild ID", str(guild_id)),
                ("Error", str(e)[:50]),
            ], emoji="⚠️")
            return False

    def check_for(self, user: Any, guild_id: int):
        """Zero-argument coroutine factory for XPLedger.accrue_*."""
        async def check() -> bool:
            return await self.has_status_badge(user, guild_id)
        return check
