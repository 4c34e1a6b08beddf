from __future__ import annotations

import logging

import discord
from discord import app_commands
from discord.ext import commands

from echo_ai.errors import EchoError

from .. import register_cog

logger = logging.getLogger(__name__)


@register_cog
class Forget(commands.Cog):
    """Drop a user's conversation history and remembered context."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @app_commands.command(
        name="forget",
        description="Clear your conversation history and saved environment details.",
    )
    async def forget(self, interaction: discord.Interaction) -> None:
        # Clearing waits for the user's in-flight request, which can outlast
        # Discord's acknowledgement window.
        await interaction.response.defer(ephemeral=True, thinking=True)
        try:
            await self.bot.orchestrator.clear_history(interaction.user.id)
        except EchoError as exc:
            await interaction.followup.send(exc.user_message(), ephemeral=True)
            return

        await interaction.followup.send(
            "Done. I've forgotten our conversation and your saved details.", ephemeral=True
        )
