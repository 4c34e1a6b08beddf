from __future__ import annotations

import logging
import textwrap

import discord
from discord import app_commands
from discord.ext import commands

from echo_ai.errors import EchoError

from .. import register_cog

logger = logging.getLogger(__name__)


@register_cog
class Knowledge(commands.Cog):
    """Contribute to and curate the knowledge base used to ground answers."""

    kb = app_commands.Group(name="kb", description="Knowledge base entries.")

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @property
    def repo(self):
        return self.bot.orchestrator.knowledge

    @kb.command(name="add", description="Suggest a knowledge base entry (reviewed before use).")
    @app_commands.describe(tags="Comma separated keywords")
    async def add(
        self,
        interaction: discord.Interaction,
        title: str,
        content: str,
        category: str = "general",
        tags: str = "",
    ) -> None:
        try:
            entry_id = await self.repo.save_entry(
                title, content, category, tags.split(","), str(interaction.user.id)
            )
        except EchoError as exc:
            await interaction.response.send_message(exc.user_message(), ephemeral=True)
            return
        logger.info("User %s added knowledge entry %d", interaction.user.id, entry_id)
        await interaction.response.send_message(
            f"Saved entry #{entry_id}. It will be used once a moderator verifies it.",
            ephemeral=True,
        )

    @kb.command(name="verify", description="Mark an entry as verified.")
    @app_commands.default_permissions(manage_guild=True)
    async def verify(self, interaction: discord.Interaction, entry_id: int) -> None:
        try:
            found = await self.repo.verify_entry(entry_id)
        except EchoError as exc:
            await interaction.response.send_message(exc.user_message(), ephemeral=True)
            return
        text = f"Verified entry #{entry_id}." if found else f"No entry #{entry_id}."
        await interaction.response.send_message(text, ephemeral=True)

    @kb.command(name="rate", description="Rate an entry from 1 to 5.")
    async def rate(
        self,
        interaction: discord.Interaction,
        entry_id: int,
        rating: app_commands.Range[int, 1, 5],
    ) -> None:
        try:
            average = await self.repo.rate_entry(entry_id, rating)
        except KeyError:
            await interaction.response.send_message(f"No entry #{entry_id}.", ephemeral=True)
            return
        except EchoError as exc:
            await interaction.response.send_message(exc.user_message(), ephemeral=True)
            return
        await interaction.response.send_message(
            f"Thanks! Entry #{entry_id} now averages {average:.1f}.", ephemeral=True
        )

    @kb.command(name="popular", description="List the most used entries.")
    async def popular(self, interaction: discord.Interaction, category: str | None = None) -> None:
        try:
            entries = await self.repo.popular_entries(category)
        except EchoError as exc:
            await interaction.response.send_message(exc.user_message(), ephemeral=True)
            return
        if not entries:
            await interaction.response.send_message("No entries yet.", ephemeral=True)
            return
        lines = [
            f"#{entry.id} **{entry.title}** ({entry.category}, {entry.rating:.1f}): "
            + textwrap.shorten(entry.content, width=80, placeholder="…")
            for entry in entries
        ]
        await interaction.response.send_message("\n".join(lines), ephemeral=True)
