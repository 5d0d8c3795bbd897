"""
CampfireBot - Message Handler
=============================

Handles message events for chat XP.
"""

import discord
from discord.ext import commands

from src.core.logger import log


class MessageHandler(commands.Cog):
    """Handles message events."""

    def __init__(self, bot):
        self.bot = bot

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        """Called for every message the bot can see."""
        if message.author.bot or not message.guild:
            return

        if not self.bot.xp:
            return

        try:
            await self.bot.xp.on_message(message)
        except Exception as e:
            log.error_tree("Message XP Error", e, [
                ("User", str(message.author)),
                ("ID", str(message.author.id)),
                ("Guild", message.guild.name),
            ])


async def setup(bot):
    await bot.add_cog(MessageHandler(bot))
