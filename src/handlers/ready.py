"""
CampfireBot - Ready Handler
===========================

Handles bot startup events.
"""

import discord
from discord.ext import commands

from src.core.logger import log


class ReadyHandler(commands.Cog):
    """Handles bot ready event."""

    def __init__(self, bot):
        self.bot = bot
        self._initialized = False

    @commands.Cog.listener()
    async def on_ready(self):
        """Called when the bot is ready (and again after every reconnect)."""
        log.tree("Bot Ready", [
            ("User", str(self.bot.user)),
            ("ID", str(self.bot.user.id)),
            ("Guilds", str(len(self.bot.guilds))),
        ], emoji="🚀")

        if self._initialized:
            return
        self._initialized = True

        # Initialize services
        await self.bot._init_services()

        # Sync slash commands
        try:
            synced = await self.bot.tree.sync()
            log.tree("Commands Synced", [
                ("Count", str(len(synced))),
            ], emoji="🔄")
        except discord.HTTPException as e:
            log.error_tree("Command Sync Failed", e)

        # Set presence
        await self.bot.change_presence(
            activity=discord.Game(name="/score to add!")
        )


async def setup(bot):
    await bot.add_cog(ReadyHandler(bot))
