"""
CampfireBot - Levelboard Command
================================

Posts the auto-updating levelboard.
"""

import discord
from discord import app_commands
from discord.ext import commands

from src.core.logger import log
from src.services.xp.service import levelboard_key


class LevelboardCog(commands.Cog):
    """Levelboard admin command."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    @app_commands.command(name="levelboard", description="Post the level scoreboard (Admin only)")
    @app_commands.default_permissions(administrator=True)
    @app_commands.guild_only()
    async def levelboard(self, interaction: discord.Interaction) -> None:
        """Post a new levelboard here; it replaces the previous one for updates."""
        guild_id = interaction.guild.id
        xp = self.bot.xp

        with xp.operations.hold(levelboard_key(guild_id)) as acquired:
            if not acquired:
                await interaction.response.send_message(
                    "A levelboard is already being built, try again in a moment.",
                    ephemeral=True,
                )
                return

            await interaction.response.defer(ephemeral=True)
            try:
                message = await xp.create_levelboard(interaction.channel, guild_id)
            except discord.HTTPException as e:
                log.error_tree("Levelboard Create Failed", e, [
                    ("Guild", interaction.guild.name),
                    ("Channel", interaction.channel.name),
                ])
                await interaction.followup.send("❌ Couldn't post the levelboard here.", ephemeral=True)
                return

        log.tree("Levelboard Created", [
            ("Guild", interaction.guild.name),
            ("Channel", interaction.channel.name),
            ("Message ID", str(message.id)),
            ("By", interaction.user.name),
        ], emoji="🏆")
        await interaction.followup.send("Levelboard created.", ephemeral=True)


async def setup(bot: commands.Bot) -> None:
    """Load the cog."""
    await bot.add_cog(LevelboardCog(bot))
    log.tree("Command Loaded", [("Name", "levelboard")], emoji="✅")
