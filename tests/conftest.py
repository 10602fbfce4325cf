"""Shared test fixtures for kbagent tests."""

import os

import pytest

os.environ.setdefault("OPENAI_API_KEY", "test")

from kbagent.knowledge import KnowledgeService
from kbagent.knowledge.types import KnowledgeBase, SearchResult
from kbagent.store import ThreadStore
from kbagent.store.models import AgentConfig, ToolRecord

EMBEDDING_MODEL = "fake-embedding"

# Each vocabulary word is one embedding dimension
VOCABULARY = ["key", "rotate", "invoice", "billing", "deploy", "weather"]


class FakeEmbeddings:
    """Bag-of-words embeddings over a tiny fixed vocabulary."""

    def __init__(self, model: str = EMBEDDING_MODEL) -> None:
        self.model = model
        self.calls: list[str] = []

    async def generate(self, text: str) -> list[float]:
        self.calls.append(text)
        words = text.lower().split()
        return [float(sum(word.startswith(v) for word in words)) for v in VOCABULARY] + [0.1]

    async def generate_batch(self, texts: list[str]) -> list[list[float]]:
        return [await self.generate(text) for text in texts]


class RecordingSearch:
    """Knowledge search stand-in that records calls and returns fixed results."""

    def __init__(self, results: list[SearchResult] | None = None, error: Exception | None = None) -> None:
        self.results = results or []
        self.error = error
        self.calls: list[tuple[str, str, int]] = []

    async def __call__(self, kb_name: str, query: str, k: int) -> list[SearchResult]:
        self.calls.append((kb_name, query, k))
        if self.error is not None:
            raise self.error
        return self.results[:k]


@pytest.fixture
def docs_kb():
    return KnowledgeBase(name="docs", embedding_model=EMBEDDING_MODEL, database_provider="local")


@pytest.fixture
def store(docs_kb):
    """In-memory store with two agents, one declared tool and two threads.

    - A1 "helper": no tools, no knowledge bases
    - A2 "researcher": knowledge base "docs" and declared tool "lookup"
    - T1 defaults to A1, T2 has no default agent
    """
    store = ThreadStore()
    store.add_tool(ToolRecord(
        id="tool-1",
        name="lookup",
        description="Look up an order",
        endpoint="https://tools.example.com/lookup",
        parameters={
            "type": "object",
            "properties": {"order_id": {"type": "string"}},
            "required": ["order_id"],
        },
    ))
    store.add_agent(AgentConfig(
        id="A1", name="helper", prompt="You are helpful.", primary_model="gpt-4o-mini",
    ))
    store.add_agent(AgentConfig(
        id="A2",
        name="researcher",
        prompt="Answer from the docs.",
        primary_model="gpt-4o",
        knowledge_bases=[docs_kb],
        tool_ids=["tool-1"],
    ))
    store.create_thread(default_agent_id="A1", thread_id="T1")
    store.create_thread(thread_id="T2")
    return store


@pytest.fixture
def fake_embeddings():
    return FakeEmbeddings()


@pytest.fixture
def knowledge(tmp_path, fake_embeddings):
    return KnowledgeService(tmp_path / "knowledge", embeddings_factory=lambda model: fake_embeddings)
