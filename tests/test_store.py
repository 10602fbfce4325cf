"""Tests for ThreadStore."""

import asyncio

import pytest

from kbagent.errors import ConfigurationError, NotFoundError, PersistenceError
from kbagent.inference.types import Message, ToolCall
from kbagent.knowledge.types import KnowledgeBase
from kbagent.store import ThreadStore
from kbagent.store.models import AgentConfig, ToolRecord


@pytest.mark.asyncio
async def test_lookups(store):
    assert (await store.get_thread_details_by_id("T1")).default_agent_id == "A1"
    assert await store.get_thread_details_by_id("nope") is None
    assert (await store.get_agent_by_name("researcher")).id == "A2"
    assert await store.get_agent_by_name("nope") is None
    assert (await store.get_agent_by_id("A1")).name == "helper"
    assert await store.get_agent_by_id("nope") is None


@pytest.mark.asyncio
async def test_agent_tools_in_attachment_order(store):
    store.add_tool(ToolRecord(id="tool-2", name="second", description="", endpoint="https://x"))
    agent = store.add_agent(AgentConfig(
        id="A5", name="two-tools", prompt="", primary_model="m", tool_ids=["tool-2", "tool-1"],
    ))

    records = await store.get_agent_tools(agent.id)

    assert [r.name for r in records] == ["second", "lookup"]


@pytest.mark.asyncio
async def test_agent_tools_errors(store):
    store.add_agent(AgentConfig(id="A6", name="broken", prompt="", primary_model="m", tool_ids=["ghost"]))

    with pytest.raises(ConfigurationError, match="ghost"):
        await store.get_agent_tools("A6")
    with pytest.raises(NotFoundError):
        await store.get_agent_tools("A404")


@pytest.mark.asyncio
async def test_append_preserves_order_and_returns_copies(store):
    first = [Message.user("a"), Message.assistant("b")]
    await store.add_messages_to_thread("T1", first)
    await store.add_messages_to_thread("T1", [Message.user("c")])

    log = await store.get_messages_by_thread_id("T1")
    assert [m.content for m in log] == ["a", "b", "c"]

    log.clear()
    assert len(await store.get_messages_by_thread_id("T1")) == 3


@pytest.mark.asyncio
async def test_append_to_unknown_thread(store):
    with pytest.raises(PersistenceError):
        await store.add_messages_to_thread("T404", [Message.user("a")])


@pytest.mark.asyncio
async def test_concurrent_appends_do_not_interleave(store):
    batches = [[Message.user(f"{n}-{i}") for i in range(3)] for n in range(5)]

    await asyncio.gather(*(store.add_messages_to_thread("T1", batch) for batch in batches))

    log = await store.get_messages_by_thread_id("T1")
    assert len(log) == 15
    for start in range(0, 15, 3):
        prefixes = {m.content.split("-")[0] for m in log[start:start + 3]}
        assert len(prefixes) == 1


@pytest.mark.asyncio
async def test_json_persistence_round_trip(tmp_path):
    path = tmp_path / "threads.json"
    kb = KnowledgeBase(name="docs", embedding_model="m", database_provider="local")

    store = ThreadStore(path)
    store.add_tool(ToolRecord(id="t1", name="lookup", description="d", endpoint="https://x", method="GET"))
    store.add_agent(AgentConfig(id="A1", name="helper", prompt="p", primary_model="m",
                                knowledge_bases=[kb], tool_ids=["t1"]))
    store.create_thread(default_agent_id="A1", title="Support", thread_id="T1")
    call = ToolCall(id="c1", name="lookup", arguments='{"q": 1}')
    await store.add_messages_to_thread("T1", [
        Message.user("hi"),
        Message.assistant(None, [call]),
        Message.tool_result("c1", "lookup", "result"),
    ])

    reloaded = ThreadStore(path)

    thread = await reloaded.get_thread_details_by_id("T1")
    assert thread.title == "Support"
    agent = await reloaded.get_agent_by_name("helper")
    assert agent.knowledge_bases == [kb]
    assert (await reloaded.get_agent_tools("A1"))[0].method == "GET"
    log = await reloaded.get_messages_by_thread_id("T1")
    assert [m.role for m in log] == ["user", "assistant", "tool"]
    assert log[1].tool_calls == [call]
    assert log[2].tool_call_id == "c1"


@pytest.mark.asyncio
async def test_failed_save_rolls_back_append(tmp_path, monkeypatch):
    store = ThreadStore(tmp_path / "threads.json")
    store.create_thread(thread_id="T1")
    await store.add_messages_to_thread("T1", [Message.user("kept")])

    def failing_save(snapshot):
        raise PersistenceError("disk full")

    monkeypatch.setattr(store, "_save_sync", failing_save)

    with pytest.raises(PersistenceError, match="disk full"):
        await store.add_messages_to_thread("T1", [Message.user("lost")])

    assert [m.content for m in await store.get_messages_by_thread_id("T1")] == ["kept"]


def test_corrupt_store_file(tmp_path):
    path = tmp_path / "threads.json"
    path.write_text("{not json")

    with pytest.raises(PersistenceError):
        ThreadStore(path)


def test_list_knowledge_bases_once_per_name(store, docs_kb):
    store.add_agent(AgentConfig(id="A7", name="also-docs", prompt="", primary_model="m",
                                knowledge_bases=[docs_kb]))

    assert [kb.name for kb in store.list_knowledge_bases()] == ["docs"]
