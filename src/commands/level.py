"""
CampfireBot - Level Command
===========================

View XP and level information.
"""

from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from src.core.colors import COLOR_ERROR, COLOR_LEVEL
from src.core.constants import CHAT_XP_PER_WORD, VOICE_XP_PER_MINUTE
from src.core.logger import log
from src.services.xp.decay import status_multiplier
from src.services.xp.leaderboard import rank_of
from src.services.xp.ledger import ActivityKind
from src.utils.text import format_xp, progress_bar


class LevelCog(commands.Cog):
    """XP and level commands."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    @app_commands.command(name="level", description="View your XP and level")
    @app_commands.describe(user="User to check (defaults to yourself)")
    @app_commands.guild_only()
    async def level(
        self,
        interaction: discord.Interaction,
        user: Optional[discord.Member] = None
    ) -> None:
        """Display the level profile for a user."""
        member = user or interaction.user
        guild_id = interaction.guild.id
        xp = self.bot.xp
        entry = xp.ledger.entry(guild_id, member.id)

        if entry is None:
            embed = discord.Embed(
                description=f"❌ {member.display_name} has no XP yet",
                color=COLOR_ERROR,
            )
            await interaction.response.send_message(embed=embed, ephemeral=True)
            return

        now = xp.ledger.clock.now_ms()
        progress = xp.ledger.curve.progress(entry.xp)
        rank = rank_of(xp.ledger.guild(guild_id).users, member.id)
        chat_mod = xp.ledger.modifier(guild_id, member.id, ActivityKind.CHAT, now)
        voice_mod = xp.ledger.modifier(guild_id, member.id, ActivityKind.VOICE, now)
        multiplier = status_multiplier(await xp.status.has_status_badge(member, guild_id))

        embed = discord.Embed(color=COLOR_LEVEL)
        embed.set_author(
            name=f"{member.display_name}'s Level",
            icon_url=member.display_avatar.url,
        )

        embed.add_field(name="Level", value=f"**{entry.level}**", inline=True)
        embed.add_field(name="Total XP", value=f"**{format_xp(entry.xp)}**", inline=True)
        embed.add_field(name="Rank", value=f"**#{rank}**", inline=True)
        embed.add_field(name="Messages", value=f"**{entry.message_count:,}**", inline=True)
        embed.add_field(name="Chat Modifier", value=f"**{chat_mod:.4g}x**", inline=True)
        embed.add_field(name="Voice Modifier", value=f"**{voice_mod:.4g}x**", inline=True)

        rate_lines = [
            f"Chat: {CHAT_XP_PER_WORD * chat_mod * multiplier:.4g} XP / word",
            f"Voice: {VOICE_XP_PER_MINUTE * voice_mod * multiplier:.4g} XP / minute",
        ]
        if multiplier > 1:
            rate_lines.append(f"Server tag: **{multiplier:g}x**")
        embed.add_field(name="XP Rate", value="\n".join(rate_lines), inline=False)

        bar = progress_bar(progress.fraction)
        embed.add_field(
            name="Progress to Next Level",
            value=(
                f"`{bar}` {round(progress.fraction * 100)}%\n"
                f"{format_xp(progress.into_level)} / {format_xp(progress.needed)} XP"
            ),
            inline=False,
        )

        embed.set_thumbnail(url=member.display_avatar.url)
        await interaction.response.send_message(embed=embed)

        log.tree("Level Command", [
            ("User", interaction.user.name),
            ("Target", member.name),
            ("Level", str(entry.level)),
            ("XP", format_xp(entry.xp)),
        ], emoji="📊")


async def setup(bot: commands.Bot) -> None:
    """Load the cog."""
    await bot.add_cog(LevelCog(bot))
    log.tree("Command Loaded", [("Name", "level")], emoji="✅")
