"""Tests for context window assembly and agent resolution."""

import pytest

from kbagent.agent.context import ContextAssembler, build_context_window
from kbagent.errors import ConfigurationError, NotFoundError
from kbagent.inference.types import Message
from kbagent.store.models import ThreadDetails


def _history(n: int) -> list[Message]:
    return [Message.user(f"m{i}") for i in range(1, n + 1)]


class TestBuildContextWindow:

    def test_short_history_keeps_system_message(self):
        system = Message.system("prompt")
        new = Message.user("new")
        prior = _history(2)

        window = build_context_window(system, prior, new)

        assert window == [system, prior[0], prior[1], new]

    def test_empty_history(self):
        system = Message.system("prompt")
        new = Message.user("new")

        assert build_context_window(system, [], new) == [system, new]

    def test_eight_prior_messages_fill_window_exactly(self):
        system = Message.system("prompt")
        new = Message.user("new")
        prior = _history(8)

        window = build_context_window(system, prior, new)

        assert len(window) == 10
        assert window[0] is system
        assert window[-1] is new

    def test_nine_prior_messages_drop_system_message(self):
        system = Message.system("prompt")
        new = Message.user("new")
        prior = _history(9)

        window = build_context_window(system, prior, new)

        assert window == prior + [new]
        assert system not in window

    def test_long_history_keeps_last_nine_and_new(self):
        system = Message.system("prompt")
        new = Message.user("new")
        prior = _history(20)

        window = build_context_window(system, prior, new)

        assert len(window) == 10
        assert [m.content for m in window] == [f"m{i}" for i in range(12, 21)] + ["new"]

    def test_custom_limits(self):
        system = Message.system("prompt")
        new = Message.user("new")
        prior = _history(5)

        window = build_context_window(system, prior, new, history_limit=2, window_limit=4)

        assert window == [system, prior[3], prior[4], new]


class TestResolveAgent:

    @pytest.mark.asyncio
    async def test_named_agent_wins_over_default(self, store):
        assembler = ContextAssembler(store)
        thread = await store.get_thread_details_by_id("T1")

        agent = await assembler.resolve_agent(thread, "researcher")

        assert agent.id == "A2"

    @pytest.mark.asyncio
    async def test_default_agent_used_without_name(self, store):
        assembler = ContextAssembler(store)
        thread = await store.get_thread_details_by_id("T1")

        agent = await assembler.resolve_agent(thread)

        assert agent.id == "A1"

    @pytest.mark.asyncio
    async def test_unknown_agent_name(self, store):
        assembler = ContextAssembler(store)
        thread = await store.get_thread_details_by_id("T1")

        with pytest.raises(NotFoundError):
            await assembler.resolve_agent(thread, "nobody")

    @pytest.mark.asyncio
    async def test_missing_default_agent_record(self, store):
        assembler = ContextAssembler(store)
        thread = ThreadDetails(id="T9", default_agent_id="A404")

        with pytest.raises(NotFoundError):
            await assembler.resolve_agent(thread)

    @pytest.mark.asyncio
    async def test_no_agent_at_all(self, store):
        assembler = ContextAssembler(store)
        thread = await store.get_thread_details_by_id("T2")

        with pytest.raises(ConfigurationError, match="no default agent"):
            await assembler.resolve_agent(thread)


@pytest.mark.asyncio
async def test_assemble_uses_agent_prompt_and_history(store):
    await store.add_messages_to_thread("T1", [Message.user("earlier"), Message.assistant("reply")])
    assembler = ContextAssembler(store)
    thread = await store.get_thread_details_by_id("T1")
    agent = await store.get_agent_by_id("A1")
    new = Message.user("now")

    context = await assembler.assemble(thread, agent, new)

    assert context.system_message.role == "system"
    assert context.system_message.content == "You are helpful."
    assert [m.content for m in context.messages] == ["You are helpful.", "earlier", "reply", "now"]
    assert context.history_size == 2
