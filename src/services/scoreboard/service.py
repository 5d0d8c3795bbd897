"""
CampfireBot - Scoreboard Service
================================

Keeps each guild's survival scoreboard message in sync with submitted runs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterable, Optional

import discord

from src.core.constants import SCOREBOARD_SCAN_LIMIT
from src.core.logger import log
from src.services.storage import Storage

from .board import ScoreEntry, Scoreboard, format_scoreboard, looks_like_scoreboard, upsert_entry

if TYPE_CHECKING:
    from src.bot import CampfireBot


class ScoreboardService:
    """Survival scoreboards: submissions, rendering and the board message."""

    def __init__(self, bot: "CampfireBot", store: Storage) -> None:
        self.bot = bot
        self.storage = store
        self._boards: Dict[int, Scoreboard] = {}

    async def setup(self) -> None:
        """Load boards and rediscover board messages that lost their pointer."""
        found = 0
        for guild in self.bot.guilds:
            board = self.board(guild.id)
            if board.message_id:
                continue
            if await self.discover(guild):
                found += 1

        log.tree("Scoreboard Service Started", [
            ("Guilds", str(len(self._boards))),
            ("Rediscovered", str(found)),
        ], emoji="🏕️")

    def board(self, guild_id: int) -> Scoreboard:
        board = self._boards.get(guild_id)
        if board is None:
            board = self.storage.load_scoreboard(guild_id)
            self._boards[guild_id] = board
        return board

    def persist(self, guild_id: int) -> bool:
        ok = self.storage.save_scoreboard(guild_id, self.board(guild_id))
        if not ok:
            log.tree("Scoreboard Save Failed", [
                ("Guild ID", str(guild_id)),
            ], emoji="⚠️")
        return ok

    # =========================================================================
    # Submissions
    # =========================================================================

    async def submit(
        self,
        guild_id: int,
        user: discord.abc.User,
        day: int,
        hour: int,
        minute: int,
        difficulty: str,
    ) -> ScoreEntry:
        """
        Record a run and refresh the board message.

        Raises:
            ScoreValidationError: If the run is out of range
        """
        entry = upsert_entry(self.board(guild_id), user.id, user.name, day, hour, minute, difficulty)
        self.persist(guild_id)

        log.tree("Score Submitted", [
            ("User", user.name),
            ("ID", str(user.id)),
            ("Run", f"{entry.day}D {entry.hour}H {entry.minute}M"),
            ("Difficulty", entry.difficulty),
        ], emoji="🏕️")

        await self.refresh(guild_id)
        return entry

    # =========================================================================
    # Board Message
    # =========================================================================

    def _names(self, guild_id: int, user_ids: Iterable[int]) -> Dict[int, str]:
        guild = self.bot.get_guild(guild_id)
        names = {}
        for user_id in user_ids:
            member = guild.get_member(user_id) if guild else None
            user = member or self.bot.get_user(user_id)
            if user:
                names[user_id] = user.name
        return names

    def render(self, guild_id: int) -> str:
        board = self.board(guild_id)
        return format_scoreboard(board, self._names(guild_id, {e.user_id for e in board.entries}))

    async def _board_message(self, guild_id: int) -> Optional[discord.Message]:
        board = self.board(guild_id)
        if not (board.channel_id and board.message_id):
            return None
        try:
            channel = self.bot.get_channel(board.channel_id) or await self.bot.fetch_channel(board.channel_id)
            return await channel.fetch_message(board.message_id)
        except (discord.NotFound, discord.Forbidden):
            log.tree("Scoreboard Reference Cleared", [
                ("Guild ID", str(guild_id)),
                ("Channel ID", str(board.channel_id)),
                ("Message ID", str(board.message_id)),
            ], emoji="🧹")
            board.channel_id = None
            board.message_id = None
            self.persist(guild_id)
            return None

    async def refresh(self, guild_id: int) -> bool:
        """Edit the board message in place, if there is one."""
        try:
            message = await self._board_message(guild_id)
            if message is None:
                return False
            await message.edit(content=self.render(guild_id))
            return True
        except discord.HTTPException as e:
            log.tree("Scoreboard Edit Failed", [
                ("Guild ID", str(guild_id)),
                ("Error", str(e)[:50]),
            ], emoji="⚠️")
            return False

    async def create(self, channel: discord.abc.Messageable, guild_id: int) -> Optional[discord.Message]:
        """
        Post the guild's scoreboard.

        Returns:
            The new message, or None if the guild already has a live board
        """
        if await self._board_message(guild_id) is not None:
            return None

        message = await channel.send(self.render(guild_id))
        board = self.board(guild_id)
        board.channel_id = channel.id
        board.message_id = message.id
        self.persist(guild_id)
        return message

    async def discover(self, guild: discord.Guild) -> bool:
        """Find a previously posted board among recent bot messages."""
        me = guild.me
        for channel in guild.text_channels:
            if me is not None and not channel.permissions_for(me).read_message_history:
                continue
            try:
                async for message in channel.history(limit=SCOREBOARD_SCAN_LIMIT):
                    if message.author.id != self.bot.user.id:
                        continue
                    if looks_like_scoreboard(message.content):
                        board = self.board(guild.id)
                        board.channel_id = channel.id
                        board.message_id = message.id
                        self.persist(guild.id)
                        log.tree("Scoreboard Rediscovered", [
                            ("Guild", guild.name),
                            ("Channel", channel.name),
                            ("Message ID", str(message.id)),
                        ], emoji="🔎")
                        return True
            except discord.HTTPException as e:
                log.tree("Scoreboard Scan Failed", [
                    ("Guild", guild.name),
                    ("Channel", channel.name),
                    ("Error", str(e)[:50]),
                ], emoji="⚠️")
        return False
