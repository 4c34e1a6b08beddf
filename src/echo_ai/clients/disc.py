"""Discord bot bootstrap utilities."""

from __future__ import annotations

import logging

import discord
from discord.ext import commands as discord_commands

from echo_ai import commands as echo_commands
from echo_ai.config import core
from echo_ai.event_hooks import message_hook, ready_hook
from echo_ai.memory.sql.db import wal_checkpoint_truncate
from echo_ai.response import ResponseOrchestrator, build_orchestrator

logger = logging.getLogger(__name__)

# --- Intents --------------------------------------------------------------- #
intents = discord.Intents.default()
intents.message_content = True


class EchoBot(discord_commands.Bot):
    """Discord bot answering mentions and DMs, with slash command support."""

    def __init__(self, *, orchestrator: ResponseOrchestrator | None = None) -> None:
        super().__init__(command_prefix=discord_commands.when_mentioned, intents=intents)
        self.orchestrator = orchestrator

    async def setup_hook(self) -> None:
        """Build the response orchestrator, register slash commands and sync them."""

        if self.orchestrator is None:
            self.orchestrator = await build_orchestrator()

        await echo_commands.setup(self)

        try:
            synced = await self.tree.sync()
            logger.info("Synced %d application command(s)", len(synced))
        except discord.HTTPException:
            logger.exception("Failed to sync application commands")

    async def on_ready(self) -> None:
        await ready_hook.handle(self)

    async def on_message(self, message: discord.Message) -> None:
        await message_hook.handle(self, message)

    async def close(self) -> None:
        await super().close()
        conn = getattr(getattr(self.orchestrator, "history", None), "conn", None)
        if conn is not None:
            wal_checkpoint_truncate(conn)
            conn.close()


def run() -> None:
    """Start the Discord bot using configuration from the environment."""

    if not core.DISCORD_API_TOKEN:
        logger.error("No DISCORD_API_TOKEN configured. Cannot run client.")
        return

    bot = EchoBot()
    try:
        bot.run(core.DISCORD_API_TOKEN, log_handler=None)
    except discord.LoginFailure as exc:
        logger.error("Login failed: %s", exc)
