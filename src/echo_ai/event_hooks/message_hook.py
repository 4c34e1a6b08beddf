import logging
import re

import discord

from echo_ai.errors import EchoError
from echo_ai.formatter import deliver

logger = logging.getLogger(__name__)


def strip_mention(content: str, bot_id: int) -> str:
    """Remove ``<@id>`` / ``<@!id>`` mentions of the bot from ``content``."""

    return re.sub(rf"<@!?{bot_id}>", "", content).strip()


async def handle(client: discord.Client, message: discord.Message):
    """Answer messages that mention the bot or arrive by DM."""

    # 1) Never answer bots, including ourselves
    if message.author.bot:
        return

    bot_user = client.user
    is_dm = message.guild is None
    bot_mentioned = bot_user in message.mentions if bot_user else False
    if not (is_dm or bot_mentioned):
        return

    content = strip_mention(message.content, bot_user.id) if bot_user else message.content
    if not content:
        await message.reply("Ask me something! Try `/help` to see what I can do.")
        return

    logger.info(
        "Question from user %s in %s",
        message.author.id,
        "DM" if is_dm else getattr(message.channel, "name", message.channel.id),
    )

    # 2) Generate and deliver the answer
    try:
        async with message.channel.typing():
            reply = await client.orchestrator.generate_response(content, message.author.id)
    except EchoError as exc:
        await message.reply(exc.user_message())
        return

    await deliver(message.channel.send, reply)
