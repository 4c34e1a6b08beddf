"""
Echo's slash commands.

Each module in ``commands/handlers`` defines one cog and marks it with
:func:`register_cog`. Importing this package imports every handler, and
:func:`setup` adds the collected cogs to the bot. Cogs reach the
:class:`~echo_ai.response.ResponseOrchestrator` through ``bot.orchestrator``,
so ``setup`` runs from ``EchoBot.setup_hook`` once the orchestrator is built.
"""

from __future__ import annotations

import logging
from importlib import import_module
from pathlib import Path
from pkgutil import iter_modules
from typing import Dict, Optional, Type

from discord.ext import commands as commands_ext

logger = logging.getLogger(__name__)

_HANDLERS_DIR = Path(__file__).resolve().parent / "handlers"
_COGS: Dict[str, Type[commands_ext.Cog]] = {}


def register_cog(cls: Optional[Type[commands_ext.Cog]] = None):
    """Collect a handler's cog; the first class registered under a name wins."""

    def _register(cog_cls: Type[commands_ext.Cog]):
        if not issubclass(cog_cls, commands_ext.Cog):
            raise TypeError(f"{cog_cls!r} is not a discord.ext.commands.Cog")
        _COGS.setdefault(cog_cls.__name__, cog_cls)
        return cog_cls

    if cls is None:
        return _register
    return _register(cls)


async def setup(bot: commands_ext.Bot) -> None:
    """Add every collected cog that ``bot`` does not have yet."""

    if not _COGS:
        logger.warning("No command handlers found in %s", _HANDLERS_DIR)
        return

    for name, cog_cls in _COGS.items():
        if bot.get_cog(name) is None:
            await bot.add_cog(cog_cls(bot))
    logger.info("Slash command cogs ready: %s", ", ".join(_COGS))


def _import_handlers() -> None:
    for module in iter_modules([str(_HANDLERS_DIR)]):
        if not module.name.startswith("_"):
            import_module(f"{__name__}.handlers.{module.name}")


_import_handlers()


__all__ = ["register_cog", "setup"]
