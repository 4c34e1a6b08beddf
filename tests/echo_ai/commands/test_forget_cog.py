import types
from unittest.mock import AsyncMock, MagicMock

import pytest

from echo_ai.commands.handlers.forget import Forget
from echo_ai.errors import DatabaseError


def _setup(clear_history):
    calls = []
    orchestrator = MagicMock()
    orchestrator.clear_history = AsyncMock(
        side_effect=lambda user_id: calls.append("clear") or clear_history(user_id)
    )
    cog = Forget(types.SimpleNamespace(orchestrator=orchestrator))

    interaction = MagicMock()
    interaction.user = types.SimpleNamespace(id=7)
    interaction.response.defer = AsyncMock(side_effect=lambda **kw: calls.append("defer"))
    interaction.response.send_message = AsyncMock()
    interaction.followup.send = AsyncMock()
    return cog, orchestrator, interaction, calls


@pytest.mark.asyncio
async def test_forget_acknowledges_before_clearing():
    cog, orchestrator, interaction, calls = _setup(lambda user_id: None)

    await Forget.forget.callback(cog, interaction)

    assert calls == ["defer", "clear"]
    orchestrator.clear_history.assert_awaited_once_with(7)
    interaction.response.send_message.assert_not_awaited()
    assert "forgotten" in interaction.followup.send.await_args.args[0]
    assert interaction.followup.send.await_args.kwargs["ephemeral"] is True


@pytest.mark.asyncio
async def test_forget_reports_storage_errors_through_followup():
    def fail(user_id):
        raise DatabaseError("locked")

    cog, _, interaction, calls = _setup(fail)

    await Forget.forget.callback(cog, interaction)

    assert calls == ["defer", "clear"]
    assert interaction.followup.send.await_args.args[0] == DatabaseError("locked").user_message()
