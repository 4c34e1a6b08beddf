from __future__ import annotations

import logging

import discord
from discord import app_commands
from discord.ext import commands

from echo_ai.errors import EchoError
from echo_ai.formatter import deliver

from .. import register_cog

logger = logging.getLogger(__name__)


@register_cog
class Regenerate(commands.Cog):
    """Re-answer or revise the caller's most recent exchange."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @app_commands.command(name="regenerate", description="Answer your last question again.")
    async def regenerate(self, interaction: discord.Interaction) -> None:
        await interaction.response.defer(thinking=True)
        try:
            reply = await self.bot.orchestrator.regenerate(interaction.user.id)
        except EchoError as exc:
            await interaction.followup.send(exc.user_message(), ephemeral=True)
            return
        await deliver(interaction.followup.send, reply)

    @app_commands.command(name="refine", description="Revise my last answer using your feedback.")
    @app_commands.describe(feedback="What should change in the previous answer?")
    async def refine(self, interaction: discord.Interaction, feedback: str) -> None:
        await interaction.response.defer(thinking=True)
        try:
            reply = await self.bot.orchestrator.refine(interaction.user.id, feedback)
        except EchoError as exc:
            await interaction.followup.send(exc.user_message(), ephemeral=True)
            return
        await deliver(interaction.followup.send, reply)
