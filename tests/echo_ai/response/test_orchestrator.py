import asyncio
from unittest.mock import AsyncMock

import pytest

from echo_ai.config.cache import Cache
from echo_ai.config.generation import Generation
from echo_ai.errors import (
    ContextError,
    DatabaseError,
    ErrorKind,
    NetworkError,
    ParsingError,
    RateLimitError,
    StepTimeoutError,
)
from echo_ai.formatter.chunker import OutputChunker
from echo_ai.interfaces import DecodingParams, KnowledgeEntry, SearchResult
from echo_ai.memory.cache import CacheRegistry
from echo_ai.memory.context import ContextGate
from echo_ai.memory.context.rules import QUESTION_SUFFIX
from echo_ai.response.orchestrator import ResponseOrchestrator
from echo_ai.response.prompt import PromptBuilder


class FakeHistory:
    def __init__(self):
        self.rows: dict[str, list[dict[str, str]]] = {}
        self.fail_reads = False

    async def get_recent_history(self, user_id, limit=10):
        if self.fail_reads:
            raise DatabaseError("history lookup failed")
        return list(self.rows.get(user_id, []))[-limit:]

    async def save_message(self, user_id, content, is_assistant=False):
        role = "assistant" if is_assistant else "user"
        self.rows.setdefault(user_id, []).append({"role": role, "content": content})

    async def clear_history(self, user_id):
        return len(self.rows.pop(user_id, []))


class FakeModel:
    def __init__(self, reply="Here is your answer."):
        self.reply = reply
        self.calls = []

    async def complete(self, messages, params):
        self.calls.append((list(messages), params))
        if isinstance(self.reply, BaseException):
            raise self.reply
        return self.reply


class FakeKnowledge:
    async def search_knowledge(self, query):
        return []


def make_orchestrator(*, model=None, history=None, knowledge=None, web_search=None, limit=1900, settings=None):
    return ResponseOrchestrator(
        gate=ContextGate(),
        history=history or FakeHistory(),
        knowledge=knowledge or FakeKnowledge(),
        model=model or FakeModel(),
        params=DecodingParams(model="test-model", temperature=0.7, max_tokens=1500),
        builder=PromptBuilder("You are Echo."),
        chunker=OutputChunker(limit),
        caches=CacheRegistry.from_config(Cache({})),
        settings=settings or Generation({}),
        web_search=web_search,
    )


@pytest.mark.asyncio
async def test_clarifying_question_skips_model_and_history():
    model = FakeModel()
    history = FakeHistory()
    orch = make_orchestrator(model=model, history=history)

    reply = await orch.generate_response("How do I fix error X on install?", "u1")

    assert reply.endswith(QUESTION_SUFFIX)
    assert "operating system" in reply
    assert model.calls == []
    assert history.rows == {}
    assert orch.gate.pending("u1").original_question == "How do I fix error X on install?"


@pytest.mark.asyncio
async def test_answer_resolves_pending_and_answers_original_question():
    model = FakeModel()
    history = FakeHistory()
    orch = make_orchestrator(model=model, history=history)

    await orch.generate_response("How do I fix error X on install?", "u1")
    reply = await orch.generate_response("Windows 11", "u1")

    assert reply == "Here is your answer."
    assert len(model.calls) == 1
    messages, params = model.calls[0]
    assert messages[0]["role"] == "system"
    assert "- os: Windows 11" in messages[0]["content"]
    assert messages[-1] == {"role": "user", "content": "How do I fix error X on install?"}
    assert params.model == "test-model"
    assert orch.gate.pending("u1") is None
    assert orch.gate.user_context("u1") == {"os": "Windows 11"}
    assert history.rows["u1"] == [
        {"role": "user", "content": "How do I fix error X on install?"},
        {"role": "assistant", "content": "Here is your answer."},
    ]


@pytest.mark.asyncio
async def test_explicit_context_bypasses_gate():
    model = FakeModel()
    orch = make_orchestrator(model=model)

    reply = await orch.generate_response("how do I install this", "u1", {"os": "Linux"})

    assert reply == "Here is your answer."
    assert "- os: Linux" in model.calls[0][0][0]["content"]
    assert orch.gate.pending("u1") is None


@pytest.mark.asyncio
async def test_unmatched_message_is_answered_directly():
    model = FakeModel()
    orch = make_orchestrator(model=model)

    assert await orch.generate_response("tell me a joke", 42) == "Here is your answer."
    assert len(model.calls) == 1


@pytest.mark.asyncio
async def test_history_is_replayed_between_system_and_user():
    model = FakeModel()
    history = FakeHistory()
    history.rows["u1"] = [
        {"role": "user", "content": "earlier"},
        {"role": "assistant", "content": "earlier reply"},
    ]
    orch = make_orchestrator(model=model, history=history)

    await orch.generate_response("what about now", "u1")

    roles = [m["role"] for m in model.calls[0][0]]
    assert roles == ["system", "user", "assistant", "user"]


@pytest.mark.asyncio
async def test_long_reply_is_chunked():
    model = FakeModel(reply="\n\n".join(["word " * 30] * 4))
    orch = make_orchestrator(model=model, limit=200)

    reply = await orch.generate_response("tell me a story", "u1")

    assert isinstance(reply, list)
    assert reply[0].startswith("[Part 1/")


@pytest.mark.asyncio
async def test_knowledge_results_are_cached():
    knowledge = AsyncMock()
    knowledge.search_knowledge.return_value = [KnowledgeEntry("Guide", "Do the thing", "docs")]
    model = FakeModel()
    orch = make_orchestrator(model=model, knowledge=knowledge)

    await orch.generate_response("tell me about Guides", "u1")
    await orch.generate_response("  TELL me about   guides", "u1")

    knowledge.search_knowledge.assert_awaited_once()
    assert "Guide" in model.calls[1][0][0]["content"]
    assert orch.caches.knowledge.metrics()["hits"] == 1


@pytest.mark.asyncio
async def test_knowledge_failure_degrades_to_plain_prompt():
    knowledge = AsyncMock()
    knowledge.search_knowledge.side_effect = DatabaseError("locked")
    model = FakeModel()
    orch = make_orchestrator(model=model, knowledge=knowledge)

    assert await orch.generate_response("tell me a joke", "u1") == "Here is your answer."
    assert "### Knowledge Base" not in model.calls[0][0][0]["content"]


@pytest.mark.asyncio
async def test_web_search_only_for_matching_messages_and_soft_fails():
    web = AsyncMock()
    web.search.side_effect = NetworkError("offline")
    model = FakeModel()
    orch = make_orchestrator(model=model, web_search=web)

    await orch.generate_response("good morning", "u1")
    web.search.assert_not_awaited()

    reply = await orch.generate_response("I have a problem with my cat", "u1")
    assert reply == "Here is your answer."
    web.search.assert_awaited_once()


@pytest.mark.asyncio
async def test_web_results_reach_prompt():
    web = AsyncMock()
    web.search.return_value = [SearchResult("Fix", "https://fix.example", "restart it")]
    model = FakeModel()
    orch = make_orchestrator(model=model, web_search=web)

    await orch.generate_response("my problem persists", "u1", {})

    system = model.calls[0][0][0]["content"]
    assert "https://fix.example" in system


@pytest.mark.asyncio
async def test_model_failure_propagates_and_is_counted():
    history = FakeHistory()
    orch = make_orchestrator(model=FakeModel(reply=RateLimitError("slow down")), history=history)

    with pytest.raises(RateLimitError) as excinfo:
        await orch.generate_response("tell me a joke", "u1")

    assert excinfo.value.recoverable is False
    stats = orch.metrics()["requests"]
    assert stats["errors_by_kind"] == {ErrorKind.RATE_LIMIT.value: 1}
    assert stats["in_flight"] == 0
    assert history.rows == {}


@pytest.mark.asyncio
async def test_history_failure_is_hard():
    history = FakeHistory()
    history.fail_reads = True
    model = FakeModel()
    orch = make_orchestrator(model=model, history=history)

    with pytest.raises(DatabaseError):
        await orch.generate_response("tell me a joke", "u1")
    assert model.calls == []


@pytest.mark.asyncio
async def test_empty_model_reply_is_a_parsing_error():
    orch = make_orchestrator(model=FakeModel(reply="   "))

    with pytest.raises(ParsingError):
        await orch.generate_response("tell me a joke", "u1")
    assert orch.metrics()["requests"]["errors_by_kind"] == {"parsing_error": 1}


@pytest.mark.asyncio
async def test_slow_model_times_out():
    class SlowModel:
        async def complete(self, messages, params):
            await asyncio.sleep(1)
            return "late"

    settings = Generation({})
    settings.MODEL_TIMEOUT = 0.01
    orch = make_orchestrator(model=SlowModel(), settings=settings)

    with pytest.raises(StepTimeoutError) as excinfo:
        await orch.generate_response("tell me a joke", "u1")
    assert excinfo.value.kind is ErrorKind.NETWORK


@pytest.mark.asyncio
async def test_empty_message_is_rejected():
    orch = make_orchestrator()

    with pytest.raises(ContextError):
        await orch.generate_response("   ", "u1")


@pytest.mark.asyncio
async def test_concurrent_messages_from_one_user_are_serialized():
    model = FakeModel()
    orch = make_orchestrator(model=model)

    first, second = await asyncio.gather(
        orch.generate_response("How do I install it?", "u1"),
        orch.generate_response("Ubuntu", "u1"),
    )

    # The first sets the pending question, the second answers it.
    assert first.endswith(QUESTION_SUFFIX)
    assert second == "Here is your answer."
    assert len(model.calls) == 1
    assert model.calls[0][0][-1]["content"] == "How do I install it?"


@pytest.mark.asyncio
async def test_regenerate_reuses_last_user_message():
    model = FakeModel()
    history = FakeHistory()
    orch = make_orchestrator(model=model, history=history)
    await orch.generate_response("tell me a joke", "u1")

    await orch.regenerate("u1")

    assert model.calls[-1][0][-1] == {"role": "user", "content": "tell me a joke"}


@pytest.mark.asyncio
async def test_refine_combines_previous_answer_and_feedback():
    model = FakeModel()
    orch = make_orchestrator(model=model)
    await orch.generate_response("tell me a joke", "u1")

    await orch.refine("u1", "make it shorter")

    prompt = model.calls[-1][0][-1]["content"]
    assert "Here is your answer." in prompt
    assert "make it shorter" in prompt


@pytest.mark.asyncio
async def test_regenerate_without_history_is_a_context_error():
    orch = make_orchestrator()

    with pytest.raises(ContextError):
        await orch.regenerate("nobody")
    with pytest.raises(ContextError):
        await orch.refine("nobody", "better")


@pytest.mark.asyncio
async def test_clear_history_forgets_context_and_log():
    history = FakeHistory()
    orch = make_orchestrator(history=history)
    await orch.generate_response("install please", "u1")
    await orch.generate_response("Windows 11", "u1")

    await orch.clear_history("u1")

    assert orch.gate.user_context("u1") == {}
    assert "u1" not in history.rows
    reply = await orch.generate_response("install please", "u1")
    assert reply.endswith(QUESTION_SUFFIX)


@pytest.mark.asyncio
async def test_metrics_include_caches_and_requests():
    orch = make_orchestrator()
    await orch.generate_response("tell me a joke", "u1")

    metrics = orch.metrics()

    assert metrics["requests"]["total_requests"] == 1
    assert set(metrics["caches"]) == {"knowledge", "research"}


class OverlapCountingModel:
    def __init__(self):
        self.active = 0
        self.max_active = 0

    async def complete(self, messages, params):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(0.05)
        finally:
            self.active -= 1
        return "done"


@pytest.mark.asyncio
async def test_clear_history_keeps_requests_of_one_user_serialized():
    model = OverlapCountingModel()
    orch = make_orchestrator(model=model)

    first = asyncio.create_task(orch.generate_response("tell me a joke", "u1"))
    await asyncio.sleep(0)
    clearing = asyncio.create_task(orch.clear_history("u1"))
    queued = asyncio.create_task(orch.generate_response("tell me another joke", "u1"))
    await clearing
    late = asyncio.create_task(orch.generate_response("tell me a story", "u1"))

    assert await asyncio.gather(first, queued, late) == ["done", "done", "done"]
    assert model.max_active == 1


@pytest.mark.asyncio
async def test_regenerate_and_refine_leave_a_pending_question_alone():
    model = FakeModel()
    orch = make_orchestrator(model=model)
    await orch.generate_response("tell me a joke", "u1")
    await orch.generate_response("How do I install it?", "u1")

    with pytest.raises(ContextError):
        await orch.regenerate("u1")
    with pytest.raises(ContextError):
        await orch.refine("u1", "shorter please")

    assert orch.gate.pending("u1").original_question == "How do I install it?"
    assert orch.gate.user_context("u1") == {}
    assert len(model.calls) == 1


@pytest.mark.asyncio
async def test_history_failure_cancels_knowledge_lookup():
    class FailingHistory(FakeHistory):
        async def get_recent_history(self, user_id, limit=10):
            await asyncio.sleep(0.01)
            raise DatabaseError("history lookup failed")

    class SlowKnowledge:
        def __init__(self):
            self.cancelled = asyncio.Event()

        async def search_knowledge(self, query):
            try:
                await asyncio.sleep(1)
            except asyncio.CancelledError:
                self.cancelled.set()
                raise
            return [KnowledgeEntry("Guide", "Do the thing", "docs")]

    knowledge = SlowKnowledge()
    orch = make_orchestrator(history=FailingHistory(), knowledge=knowledge)

    with pytest.raises(DatabaseError):
        await orch.generate_response("tell me a joke", "u1")

    await asyncio.wait_for(knowledge.cancelled.wait(), timeout=0.5)
    assert orch.caches.knowledge.metrics()["size"] == 0
