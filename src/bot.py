"""
CampfireBot - Main Bot
======================

Discord bot with chat/voice XP, levelboards and survival scoreboards.
"""

import discord
from discord import app_commands
from discord.ext import commands
from typing import Optional

from src.core.logger import log
from src.services.scoreboard.service import ScoreboardService
from src.services.storage import storage
from src.services.xp.service import XPService
from src.utils.dedup import InteractionCache


class CampfireCommandTree(app_commands.CommandTree):
    """Command tree that drops redelivered interactions."""

    def __init__(self, client: discord.Client) -> None:
        super().__init__(client)
        self.seen = InteractionCache()

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        name = interaction.command.name if interaction.command else "unknown"
        if self.seen.claim(f"{interaction.id}_{name}"):
            return True
        log.tree("Duplicate Interaction Ignored", [
            ("User", interaction.user.name),
            ("Command", name),
            ("Interaction ID", str(interaction.id)),
        ], emoji="♻️")
        return False

    async def on_error(
        self,
        interaction: discord.Interaction,
        error: app_commands.AppCommandError
    ) -> None:
        if isinstance(error, app_commands.CheckFailure):
            return

        name = interaction.command.name if interaction.command else "unknown"
        log.error_tree("Command Error", error, [
            ("Command", name),
            ("User", f"{interaction.user.name} ({interaction.user.display_name})"),
            ("User ID", str(interaction.user.id)),
        ])

        try:
            if not interaction.response.is_done():
                await interaction.response.send_message("❌ Something went wrong", ephemeral=True)
            else:
                await interaction.followup.send("❌ Something went wrong", ephemeral=True)
        except discord.HTTPException:
            pass


class CampfireBot(commands.Bot):
    """Main bot class for CampfireBot."""

    def __init__(self):
        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True
        intents.voice_states = True

        super().__init__(
            command_prefix="!",
            intents=intents,
            help_command=None,
            tree_cls=CampfireCommandTree,
        )

        # Services
        self.xp: Optional[XPService] = None
        self.scoreboard: Optional[ScoreboardService] = None

    async def setup_hook(self) -> None:
        """Called when the bot is starting up."""
        # Load handlers
        await self.load_extension("src.handlers.ready")
        await self.load_extension("src.handlers.voice")
        await self.load_extension("src.handlers.message")

        # Load commands
        await self.load_extension("src.commands.score")
        await self.load_extension("src.commands.level")
        await self.load_extension("src.commands.levelboard")
        await self.load_extension("src.commands.admin")

    async def _init_services(self) -> None:
        """Initialize bot services."""
        # Scoreboard
        self.scoreboard = ScoreboardService(self, storage)
        await self.scoreboard.setup()

        # XP
        self.xp = XPService(self, storage)
        await self.xp.setup()

    async def close(self) -> None:
        """Clean up when bot is shutting down."""
        log.info("Bot shutting down...")
        if self.xp:
            await self.xp.stop()
        await super().close()
