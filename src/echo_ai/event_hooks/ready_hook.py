import logging

import discord

logger = logging.getLogger(__name__)


async def handle(client: discord.Client):
    """Log the identity and reachable guilds once the gateway is ready."""
    logger.info(f"Logged in as {client.user.name} (ID: {client.user.id})")
    logger.info("Serving %d guild(s)", len(client.guilds))

    orchestrator = getattr(client, "orchestrator", None)
    if orchestrator is not None:
        logger.info("Cache state at startup: %s", orchestrator.caches.metrics())
