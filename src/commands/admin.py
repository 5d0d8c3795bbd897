"""
CampfireBot - Admin Commands
============================

Diagnostics and maintenance for the XP system.
"""

import discord
from discord import app_commands
from discord.ext import commands

from src.core.colors import COLOR_EMBER, COLOR_ERROR, COLOR_SUCCESS
from src.core.constants import VOICE_WINDOW_MINUTES
from src.core.logger import log


class AdminCog(commands.Cog):
    """XP admin commands."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    @app_commands.command(name="voicecooldown", description="Show a user's voice XP penalty (Admin only)")
    @app_commands.describe(user="User to inspect")
    @app_commands.default_permissions(administrator=True)
    @app_commands.guild_only()
    async def voicecooldown(self, interaction: discord.Interaction, user: discord.Member) -> None:
        minutes = self.bot.xp.voice_penalty_minutes(interaction.guild.id, user.id)
        halvings = minutes // VOICE_WINDOW_MINUTES

        embed = discord.Embed(
            description=(
                f"**{user.display_name}** has **{minutes}** penalty minutes\n"
                f"Voice XP halved {halvings} time{'s' if halvings != 1 else ''}"
            ),
            color=COLOR_EMBER,
        )
        await interaction.response.send_message(embed=embed, ephemeral=True)

        log.tree("Voice Cooldown Checked", [
            ("By", interaction.user.name),
            ("Target", user.name),
            ("Minutes", str(minutes)),
        ], emoji="🎤")

    @app_commands.command(name="recoverysource", description="Set the levelboard used to restore lost XP (Admin only)")
    @app_commands.describe(
        channel="Channel holding the levelboard message",
        message_id="ID of the levelboard message",
    )
    @app_commands.default_permissions(administrator=True)
    @app_commands.guild_only()
    async def recoverysource(
        self,
        interaction: discord.Interaction,
        channel: discord.TextChannel,
        message_id: str,
    ) -> None:
        if not message_id.isdigit():
            embed = discord.Embed(description="❌ Message ID must be a number", color=COLOR_ERROR)
            await interaction.response.send_message(embed=embed, ephemeral=True)
            return

        saved = self.bot.xp.set_recovery_source(interaction.guild.id, channel.id, int(message_id))
        if saved:
            embed = discord.Embed(description=f"✅ Recovery source set to {channel.mention}", color=COLOR_SUCCESS)
        else:
            embed = discord.Embed(description="❌ Couldn't save the recovery source", color=COLOR_ERROR)
        await interaction.response.send_message(embed=embed, ephemeral=True)

        log.tree("Recovery Source Set", [
            ("Guild", interaction.guild.name),
            ("Channel", channel.name),
            ("Message ID", message_id),
            ("Saved", "Yes" if saved else "No"),
        ], emoji="♻️")


async def setup(bot: commands.Bot) -> None:
    """Load the cog."""
    await bot.add_cog(AdminCog(bot))
    log.tree("Command Loaded", [("Name", "admin")], emoji="✅")
