"""Send a reply (single string or ordered parts) through a transport callable."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Sequence

logger = logging.getLogger(__name__)

DISCORD_MESSAGE_LIMIT = 2000


async def deliver(
    send: Callable[[str], Awaitable[object]],
    reply: str | Sequence[str],
) -> int:
    """
    Send ``reply`` in order and return how many messages went out.

    Empty parts are skipped.
    """
    parts = [reply] if isinstance(reply, str) else list(reply)
    sent = 0
    for part in parts:
        if not part:
            continue
        if len(part) > DISCORD_MESSAGE_LIMIT:
            logger.warning("Sending a %d character part, above the transport limit", len(part))
        await send(part)
        sent += 1
    return sent


__all__ = ["deliver", "DISCORD_MESSAGE_LIMIT"]
