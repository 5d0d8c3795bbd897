"""
CampfireBot - XP Service
========================

Main XP service handling message and voice XP gains, the auto-updating
levelboard, level roles and levelboard recovery.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Dict, Iterable, Optional

import discord
from discord.ext import tasks

from src.core.config import config
from src.core.constants import LEVEL_ROLE_PREFIX
from src.core.logger import log
from src.services.storage import Storage
from src.utils.async_utils import with_deadline
from src.utils.clock import SystemClock
from src.utils.dedup import OperationGuard
from src.utils.text import count_words

from .daily import DailyBonusGate
from .leaderboard import format_levelboard, parse_levelboard, project_leaderboard
from .ledger import AccrualResult, XPLedger
from .scheduler import VoiceTickScheduler
from .status import StatusLookup

if TYPE_CHECKING:
    from src.bot import CampfireBot


LEVEL_UP_REACTION = "🎉"


def levelboard_key(guild_id: int) -> str:
    return f"levelboard_{guild_id}"


class XPService:
    """Manages XP gains from messages and voice activity."""

    def __init__(self, bot: "CampfireBot", store: Storage) -> None:
        """Initialize XP service with bot reference, ledger and voice timers."""
        self.bot = bot
        self.storage = store
        self.status = StatusLookup()
        self.ledger = XPLedger(
            gate=DailyBonusGate(config.timezone),
            clock=SystemClock(),
            loader=store.load_guild_ledger,
        )
        self.voice = VoiceTickScheduler(self._voice_tick, interval=config.VOICE_TICK_SECONDS)
        self.operations = OperationGuard()

    async def setup(self) -> None:
        """Load ledgers, recover empty ones, and start voice tracking and refreshes."""
        for guild in self.bot.guilds:
            ledger = self.ledger.guild(guild.id)
            if not ledger.users:
                await self.recover_from_remote(guild)

        # Members already in voice when the bot starts
        resumed = 0
        for guild in self.bot.guilds:
            for vc in guild.voice_channels:
                for member in vc.members:
                    if not member.bot and self.voice.start(guild.id, member.id, member.name):
                        resumed += 1

        self.refresh_levelboards.change_interval(seconds=config.LEVELBOARD_INTERVAL)
        self.refresh_levelboards.start()

        log.tree("XP Service Started", [
            ("Guilds", str(len(self.ledger.guild_ids()))),
            ("Voice Sessions", str(resumed)),
            ("Voice Tick", f"{config.VOICE_TICK_SECONDS:g}s"),
            ("Levelboard Refresh", f"{config.LEVELBOARD_INTERVAL}s"),
            ("Daily Bonus Zone", config.TIMEZONE_NAME),
            ("Level Roles", "Enabled" if config.LEVEL_ROLES_ENABLED else "Disabled"),
        ], emoji="⬆️")

    async def stop(self) -> None:
        """Cancel timers and flush every ledger."""
        self.refresh_levelboards.cancel()
        stopped = await self.voice.stop_all()

        failed = [gid for gid in self.ledger.guild_ids() if not self.persist(gid)]

        log.tree("XP Service Stopped", [
            ("Voice Sessions Cancelled", str(stopped)),
            ("Ledgers Saved", str(len(self.ledger.guild_ids()) - len(failed))),
            ("Save Failures", str(len(failed))),
        ], emoji="🛑")

    def persist(self, guild_id: int) -> bool:
        """Save a guild ledger; failures are reported, never raised."""
        ok = self.storage.save_guild_ledger(guild_id, self.ledger.guild(guild_id))
        if not ok:
            log.tree("XP Save Failed", [
                ("Guild ID", str(guild_id)),
                ("Note", "In-memory XP is kept and retried on next save"),
            ], emoji="⚠️")
        return ok

    # =========================================================================
    # Message XP
    # =========================================================================

    async def on_message(self, message: discord.Message) -> Optional[AccrualResult]:
        """Handle message for XP gain."""
        if message.author.bot or not message.guild:
            return None

        word_count = count_words(message.content)
        if word_count == 0:
            return None  # No words, no XP

        member = message.author
        guild_id = message.guild.id

        result = await self.ledger.accrue_chat(
            guild_id,
            member.id,
            word_count,
            self.status.check_for(member, guild_id),
            username=member.name,
        )
        self.persist(guild_id)

        if result.leveled_up:
            log.tree("Level Up!", [
                ("User", f"{member.name} ({member.display_name})"),
                ("ID", str(member.id)),
                ("Level", f"{result.old_level} -> {result.level}"),
                ("XP", f"{result.total_xp:,.2f}"),
                ("Source", "Chat"),
            ], emoji="🎉")
            try:
                await message.add_reaction(LEVEL_UP_REACTION)
            except discord.HTTPException as e:
                log.tree("Level Up Reaction Failed", [
                    ("User", member.name),
                    ("Error", str(e)[:50]),
                ], emoji="⚠️")

        return result

    # =========================================================================
    # Voice XP
    # =========================================================================

    async def on_voice_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState
    ) -> None:
        """Track voice channel joins/leaves for XP."""
        if member.bot:
            return

        guild_id = member.guild.id

        if not before.channel and after.channel:
            self.voice.start(guild_id, member.id, member.name)
            log.tree("Voice XP Session Started", [
                ("User", f"{member.name} ({member.display_name})"),
                ("ID", str(member.id)),
                ("Channel", after.channel.name),
            ], emoji="🎤")

        elif before.channel and not after.channel:
            session = await self.voice.stop(guild_id, member.id)
            if session:
                log.tree("Voice XP Session Ended", [
                    ("User", f"{member.name} ({member.display_name})"),
                    ("ID", str(member.id)),
                    ("Channel", before.channel.name),
                    ("Duration", f"{session.minutes} min"),
                    ("Ticks", str(session.ticks)),
                ], emoji="🔇")

        elif before.channel and after.channel and before.channel.id != after.channel.id:
            # Still in voice, the running timer carries on
            log.tree("Voice Channel Switched", [
                ("User", member.name),
                ("From", before.channel.name),
                ("To", after.channel.name),
            ], emoji="🔀")

    async def _voice_tick(self, guild_id: int, user_id: int) -> None:
        """Award one voice minute (scheduler callback)."""
        guild = self.bot.get_guild(guild_id)
        member = guild.get_member(user_id) if guild else None
        if member is None:
            return

        result = await self.ledger.accrue_voice(
            guild_id,
            user_id,
            self.status.check_for(member, guild_id),
            username=member.name,
        )
        self.persist(guild_id)

        if result.leveled_up:
            log.tree("Level Up!", [
                ("User", f"{member.name} ({member.display_name})"),
                ("ID", str(member.id)),
                ("Level", f"{result.old_level} -> {result.level}"),
                ("XP", f"{result.total_xp:,.2f}"),
                ("Source", "Voice"),
            ], emoji="🎉")

    # =========================================================================
    # Levelboard
    # =========================================================================

    def _names(self, guild: Optional[discord.Guild], user_ids: Iterable[int]) -> Dict[int, str]:
        """Current usernames for users still reachable from the cache."""
        names = {}
        for user_id in user_ids:
            member = guild.get_member(user_id) if guild else None
            user = member or self.bot.get_user(user_id)
            if user:
                names[user_id] = user.name
        return names

    def render_levelboard(self, guild_id: int) -> str:
        ledger = self.ledger.guild(guild_id)
        rows = project_leaderboard(ledger.users, config.LEVELBOARD_SIZE)
        names = self._names(self.bot.get_guild(guild_id), (row.user_id for row in rows))
        return format_levelboard(rows, names)

    async def _fetch_message(self, channel_id: int, message_id: int) -> Optional[discord.Message]:
        try:
            channel = self.bot.get_channel(channel_id) or await self.bot.fetch_channel(channel_id)
            return await channel.fetch_message(message_id)
        except (discord.NotFound, discord.Forbidden):
            return None
        except discord.HTTPException as e:
            log.tree("Message Fetch Failed", [
                ("Channel ID", str(channel_id)),
                ("Message ID", str(message_id)),
                ("Error", str(e)[:50]),
            ], emoji="⚠️")
            return None

    async def create_levelboard(self, channel: discord.abc.Messageable, guild_id: int) -> discord.Message:
        """Post a fresh levelboard and make it the one that auto-updates."""
        ledger = self.ledger.guild(guild_id)
        ledger.levelboard_channel_id = None
        ledger.levelboard_message_id = None

        message = await channel.send(self.render_levelboard(guild_id))

        ledger.levelboard_channel_id = channel.id
        ledger.levelboard_message_id = message.id
        self.persist(guild_id)
        return message

    async def refresh_levelboard(self, guild_id: int) -> bool:
        """Edit the guild's levelboard in place. A vanished message clears the pointer."""
        ledger = self.ledger.guild(guild_id)
        if not (ledger.levelboard_channel_id and ledger.levelboard_message_id):
            return False

        message = await self._fetch_message(ledger.levelboard_channel_id, ledger.levelboard_message_id)
        if message is not None:
            try:
                await message.edit(content=self.render_levelboard(guild_id))
                return True
            except discord.HTTPException as e:
                log.tree("Levelboard Edit Failed", [
                    ("Guild ID", str(guild_id)),
                    ("Error", str(e)[:50]),
                ], emoji="⚠️")

        log.tree("Levelboard Reference Cleared", [
            ("Guild ID", str(guild_id)),
            ("Channel ID", str(ledger.levelboard_channel_id)),
            ("Message ID", str(ledger.levelboard_message_id)),
        ], emoji="🧹")
        ledger.levelboard_channel_id = None
        ledger.levelboard_message_id = None
        self.persist(guild_id)
        return False

    @tasks.loop(seconds=300)
    async def refresh_levelboards(self) -> None:
        """Refresh every levelboard and sync level roles."""
        updated = 0
        for guild_id in self.ledger.guild_ids():
            # Skip if a manual rebuild is in progress
            if self.operations.is_running(levelboard_key(guild_id)):
                continue

            try:
                if await self.refresh_levelboard(guild_id):
                    updated += 1
            except Exception as e:
                log.error_tree("Levelboard Refresh Error", e, [("Guild ID", str(guild_id))])

            guild = self.bot.get_guild(guild_id)
            if guild and config.LEVEL_ROLES_ENABLED:
                try:
                    await self.sync_level_roles(guild)
                except Exception as e:
                    log.error_tree("Level Role Sync Error", e, [("Guild", guild.name)])

        if updated:
            log.tree("Levelboards Refreshed", [
                ("Updated", str(updated)),
            ], emoji="🔄")

    @refresh_levelboards.before_loop
    async def before_refresh_levelboards(self) -> None:
        """Wait for bot to be ready before starting refreshes."""
        await self.bot.wait_until_ready()

    # =========================================================================
    # Level Roles
    # =========================================================================

    async def sync_level_roles(self, guild: discord.Guild) -> int:
        """
        Give every tracked member exactly one "Level N" role.

        Missing roles are created on demand. Returns how many members changed.
        """
        ledger = self.ledger.guild(guild.id)
        fixed_count = 0

        for user_id, entry in list(ledger.users.items()):
            member = guild.get_member(user_id)
            if member is None:
                continue

            target_name = f"{LEVEL_ROLE_PREFIX}{entry.level}"
            role = discord.utils.get(guild.roles, name=target_name)

            try:
                if role is None:
                    role = await guild.create_role(
                        name=target_name,
                        color=discord.Color.random(),
                        reason=f"Auto-created level role for level {entry.level} users",
                    )
                    log.tree("Level Role Created", [
                        ("Guild", guild.name),
                        ("Role", target_name),
                    ], emoji="🆕")

                roles_to_remove = [
                    r for r in member.roles
                    if r.name.startswith(LEVEL_ROLE_PREFIX) and r.id != role.id
                ]
                needs_role = role not in member.roles
                if not roles_to_remove and not needs_role:
                    continue

                if roles_to_remove:
                    await member.remove_roles(*roles_to_remove, reason="Level role sync - removing old roles")
                if needs_role:
                    await member.add_roles(role, reason=f"Level role sync - level {entry.level}")

                fixed_count += 1
                log.tree("Level Role Synced", [
                    ("User", member.name),
                    ("ID", str(member.id)),
                    ("Added", role.name if needs_role else "None"),
                    ("Removed", ", ".join(r.name for r in roles_to_remove) or "None"),
                ], emoji="🔧")

                # Small delay to avoid rate limits
                await asyncio.sleep(0.5)

            except discord.HTTPException as e:
                log.tree("Level Role Sync Failed", [
                    ("User", member.name),
                    ("ID", str(member.id)),
                    ("Error", str(e)[:50]),
                ], emoji="⚠️")

        return fixed_count

    # =========================================================================
    # Remote Recovery
    # =========================================================================

    def set_recovery_source(self, guild_id: int, channel_id: int, message_id: int) -> bool:
        ledger = self.ledger.guild(guild_id)
        ledger.recovery_channel_id = channel_id
        ledger.recovery_message_id = message_id
        return self.persist(guild_id)

    async def recover_from_remote(self, guild: discord.Guild) -> int:
        """
        Rebuild an empty ledger from a previously posted levelboard.

        Only members whose current username matches a board row can be
        restored. Bounded by RECOVERY_TIMEOUT; on expiry the local (empty)
        ledger stays as it is.

        Returns:
            Number of entries restored
        """
        ledger = self.ledger.guild(guild.id)
        channel_id = ledger.recovery_channel_id or ledger.levelboard_channel_id
        message_id = ledger.recovery_message_id or ledger.levelboard_message_id
        if ledger.users or not (channel_id and message_id):
            return 0

        message = await with_deadline(
            self._fetch_message(channel_id, message_id),
            config.RECOVERY_TIMEOUT,
            "Levelboard Recovery",
        )
        if message is None:
            log.tree("Levelboard Recovery Skipped", [
                ("Guild", guild.name),
                ("Reason", "Source message unavailable"),
            ], emoji="ℹ️")
            return 0

        members_by_name = {m.name: m for m in guild.members if not m.bot}
        rows = parse_levelboard(message.content)
        restored = 0
        unmatched = 0
        for _, xp, username in rows:
            member = members_by_name.get(username)
            if member is None:
                unmatched += 1
                continue
            if self.ledger.import_entry(guild.id, member.id, username, float(xp)):
                restored += 1

        if restored:
            self.persist(guild.id)

        log.tree("Levelboard Recovery Complete", [
            ("Guild", guild.name),
            ("Rows", str(len(rows))),
            ("Restored", str(restored)),
            ("Unmatched", str(unmatched)),
        ], emoji="♻️")
        return restored

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def voice_penalty_minutes(self, guild_id: int, user_id: int) -> int:
        return self.ledger.voice_penalty_minutes(guild_id, user_id, self.ledger.clock.now_ms())
