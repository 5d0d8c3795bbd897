"""
CampfireBot - Score Commands
============================

Survival scoreboard: submit a run and post the board.
"""

import discord
from discord import app_commands
from discord.ext import commands

from src.core.colors import COLOR_ERROR, COLOR_SUCCESS
from src.core.logger import log
from src.services.scoreboard.board import DIFFICULTIES, ScoreValidationError


DIFFICULTY_CHOICES = [app_commands.Choice(name=d.title(), value=d) for d in DIFFICULTIES]


class ScoreCog(commands.Cog):
    """Survival scoreboard commands."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    @app_commands.command(name="score", description="Add your survival time to the scoreboard")
    @app_commands.describe(
        day="Days survived",
        hour="Hours (0-23)",
        minute="Minutes (0-59)",
        difficulty="Difficulty the run was played on",
    )
    @app_commands.choices(difficulty=DIFFICULTY_CHOICES)
    @app_commands.guild_only()
    async def score(
        self,
        interaction: discord.Interaction,
        day: int,
        hour: int,
        minute: int,
        difficulty: app_commands.Choice[str],
    ) -> None:
        """Upsert the caller's run for one difficulty."""
        try:
            entry = await self.bot.scoreboard.submit(
                interaction.guild.id,
                interaction.user,
                day,
                hour,
                minute,
                difficulty.value,
            )
        except ScoreValidationError as e:
            log.tree("Score Rejected", [
                ("User", interaction.user.name),
                ("ID", str(interaction.user.id)),
                ("Reason", str(e)),
            ], emoji="⚠️")
            embed = discord.Embed(description=f"❌ {e}", color=COLOR_ERROR)
            await interaction.response.send_message(embed=embed, ephemeral=True)
            return

        embed = discord.Embed(
            description=(
                f"✅ Saved **{entry.day}D {entry.hour}H {entry.minute}M** "
                f"on **{entry.difficulty.title()}**"
            ),
            color=COLOR_SUCCESS,
        )
        await interaction.response.send_message(embed=embed, ephemeral=True)

    @app_commands.command(name="scoreboard", description="Post the survival scoreboard (Admin only)")
    @app_commands.default_permissions(administrator=True)
    @app_commands.guild_only()
    async def scoreboard(self, interaction: discord.Interaction) -> None:
        """Post the guild's scoreboard in this channel."""
        await interaction.response.defer(ephemeral=True)

        message = await self.bot.scoreboard.create(interaction.channel, interaction.guild.id)
        if message is None:
            await interaction.followup.send("A scoreboard already exists in this server.", ephemeral=True)
            return

        log.tree("Scoreboard Created", [
            ("Guild", interaction.guild.name),
            ("Channel", interaction.channel.name),
            ("By", interaction.user.name),
        ], emoji="🏕️")
        await interaction.followup.send("Scoreboard created.", ephemeral=True)


async def setup(bot: commands.Bot) -> None:
    """Load the cog."""
    await bot.add_cog(ScoreCog(bot))
    log.tree("Command Loaded", [("Name", "score")], emoji="✅")
