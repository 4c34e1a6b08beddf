from unittest.mock import AsyncMock

import pytest

from echo_ai.formatter import deliver


@pytest.mark.asyncio
async def test_single_string_is_sent_once():
    send = AsyncMock()

    sent = await deliver(send, "hello")

    assert sent == 1
    send.assert_awaited_once_with("hello")


@pytest.mark.asyncio
async def test_parts_are_sent_in_order_and_empty_skipped():
    send = AsyncMock()

    sent = await deliver(send, ["[Part 1/2]\na", "", "[Part 2/2]\nb"])

    assert sent == 2
    assert [call.args[0] for call in send.await_args_list] == ["[Part 1/2]\na", "[Part 2/2]\nb"]
