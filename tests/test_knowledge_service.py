"""Tests for KnowledgeService and LocalKnowledgeProvider."""

import json

import pytest

from kbagent.errors import ConfigurationError, NotFoundError
from kbagent.knowledge import KnowledgeService
from kbagent.knowledge.types import KnowledgeBase
from kbagent.tools import make_knowledge_tool

from conftest import EMBEDDING_MODEL, FakeEmbeddings


async def _seed(provider):
    await provider.add_document("Rotate your API key every 90 days", {"source": "faq.md"}, doc_id="keys")
    await provider.add_document("Invoices are sent on the first of the month", {"source": "billing.md"},
                                doc_id="billing")
    await provider.add_document("Deploy with the release pipeline", {"source": "ops.md"}, doc_id="deploy")


def test_register_unsupported_provider(knowledge):
    kb = KnowledgeBase(name="remote", embedding_model=EMBEDDING_MODEL, database_provider="pinecone")

    with pytest.raises(ConfigurationError, match="pinecone"):
        knowledge.register(kb)


def test_register_is_idempotent(knowledge, docs_kb):
    assert knowledge.register(docs_kb) is knowledge.register(docs_kb)
    assert knowledge.names == ["docs"]


@pytest.mark.asyncio
async def test_search_unknown_knowledge_base(knowledge):
    with pytest.raises(NotFoundError):
        await knowledge.search_knowledge_base("missing", "anything", 2)


@pytest.mark.asyncio
async def test_search_returns_closest_documents(knowledge, docs_kb):
    await _seed(knowledge.register(docs_kb))

    results = await knowledge.search_knowledge_base("docs", "how do I rotate a key", 2)

    assert len(results) == 2
    assert results[0].id == "keys"
    assert results[0].metadata == {"source": "faq.md"}
    assert results[0].model == EMBEDDING_MODEL
    assert results[0].similarity > results[1].similarity


@pytest.mark.asyncio
async def test_search_k_larger_than_collection(knowledge, docs_kb):
    await _seed(knowledge.register(docs_kb))

    results = await knowledge.search_knowledge_base("docs", "billing invoice", 10)

    assert len(results) == 3
    assert results[0].id == "billing"


@pytest.mark.asyncio
async def test_update_document_reembeds_changed_content(knowledge, docs_kb, fake_embeddings):
    provider = knowledge.register(docs_kb)
    await _seed(provider)
    calls_before = len(fake_embeddings.calls)

    await provider.update_document("deploy", metadata={"source": "ops-v2.md"})
    assert len(fake_embeddings.calls) == calls_before

    updated = await provider.update_document("deploy", content="Check the weather before deploy")
    assert updated.metadata == {"source": "ops-v2.md"}
    assert len(fake_embeddings.calls) == calls_before + 1

    results = await knowledge.search_knowledge_base("docs", "weather", 1)
    assert results[0].id == "deploy"


@pytest.mark.asyncio
async def test_update_missing_document(knowledge, docs_kb):
    provider = knowledge.register(docs_kb)

    with pytest.raises(NotFoundError):
        await provider.update_document("ghost", content="x")


@pytest.mark.asyncio
async def test_get_and_remove_documents(knowledge, docs_kb):
    provider = knowledge.register(docs_kb)
    await _seed(provider)

    assert [d.id for d in provider.get_documents()] == ["keys", "billing", "deploy"]
    assert [d.id for d in provider.get_documents({"source": "ops.md"})] == ["deploy"]

    assert provider.remove_document("billing") is True
    assert provider.remove_document("billing") is False
    assert [d.id for d in provider.get_documents()] == ["keys", "deploy"]


@pytest.mark.asyncio
async def test_documents_survive_restart(tmp_path, docs_kb):
    first = KnowledgeService(tmp_path, embeddings_factory=lambda model: FakeEmbeddings(model))
    await _seed(first.register(docs_kb))

    second = KnowledgeService(tmp_path, embeddings_factory=lambda model: FakeEmbeddings(model))
    second.register(docs_kb)

    results = await second.search_knowledge_base("docs", "deploy", 1)
    assert results[0].id == "deploy"


@pytest.mark.asyncio
async def test_unregister_and_delete(knowledge, docs_kb, tmp_path):
    await _seed(knowledge.register(docs_kb))

    knowledge.unregister("docs", delete_data=True)

    assert knowledge.names == []
    assert not (tmp_path / "knowledge" / "docs").exists()
    with pytest.raises(NotFoundError):
        await knowledge.search_knowledge_base("docs", "deploy", 1)


@pytest.mark.asyncio
async def test_search_tool_accepts_integral_float_k(knowledge, docs_kb):
    await _seed(knowledge.register(docs_kb))
    tool = make_knowledge_tool(docs_kb, knowledge.search_knowledge_base)

    output = await tool.call('{"query": "rotate key", "k": 2.0}')

    results = json.loads(output)
    assert len(results) == 2
    assert results[0]["metadata"] == {"source": "faq.md"}
