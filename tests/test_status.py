"""
Tests for the server tag lookup.
"""

import asyncio
from types import SimpleNamespace

from src.services.xp.status import StatusLookup, has_status_badge

GUILD = 111


def user_with(primary):
    return SimpleNamespace(id=1, name="ember", primary_guild=primary)


class TestHasStatusBadge:
    """Tag shown for this guild."""

    def test_tag_for_this_guild(self):
        assert has_status_badge(user_with(SimpleNamespace(id=GUILD, identity_enabled=True)), GUILD)

    def test_tag_for_other_guild(self):
        assert not has_status_badge(user_with(SimpleNamespace(id=999, identity_enabled=True)), GUILD)

    def test_tag_hidden(self):
        assert not has_status_badge(user_with(SimpleNamespace(id=GUILD, identity_enabled=False)), GUILD)

    def test_no_primary_guild(self):
        assert not has_status_badge(user_with(None), GUILD)
        assert not has_status_badge(SimpleNamespace(id=1), GUILD)


class ExplodingUser:
    id = 1
    name = "ember"

    @property
    def primary_guild(self):
        raise RuntimeError("payload missing")


class TestStatusLookup:
    """Lookup failures never block accrual."""

    def test_failure_counts_as_no_tag(self):
        assert asyncio.run(StatusLookup().has_status_badge(ExplodingUser(), GUILD)) is False

    def test_check_for(self):
        user = user_with(SimpleNamespace(id=GUILD, identity_enabled=True))
        check = StatusLookup().check_for(user, GUILD)
        assert asyncio.run(check()) is True


class TestDiscordUserModel:
    """The installed discord.py exposes the tag the lookup reads."""

    def test_user_has_primary_guild(self):
        import discord

        assert hasattr(discord.User, "primary_guild")
