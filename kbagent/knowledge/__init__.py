"""
Knowledge Bases
===============

Semantic search over named document collections.

Instead of loading every document into the model's context, each agent
gets one search tool per attached knowledge base. When the model calls it:

1. The query is embedded with the knowledge base's embedding model
2. The closest documents are found by cosine similarity
3. Only the top ``k`` documents are returned to the model

Components:
- types.py: KnowledgeBase, Document and SearchResult records
- embeddings.py: Generate vector embeddings from text
- vectorstore.py: Store and search vectors on disk
- provider.py: One knowledge base on the local filesystem

Providers:
    A knowledge base's ``database_provider`` picks where its vectors live.
    Only ``"local"`` is built in; any other value is a configuration error.
"""

from pathlib import Path
from typing import Callable

from kbagent.errors import ConfigurationError, NotFoundError
from kbagent.knowledge.embeddings import EmbeddingGenerator
from kbagent.knowledge.provider import LocalKnowledgeProvider
from kbagent.knowledge.types import Document, KnowledgeBase, SearchResult
from kbagent.utils.logger import Logger

logger = Logger("Knowledge")

LOCAL_PROVIDER = "local"

# model name -> embedding generator
EmbeddingsFactory = Callable[[str], EmbeddingGenerator]


class KnowledgeService:
    """
    Registry of knowledge bases and entry point for searching them.

    Example:
        knowledge = KnowledgeService(Path("data/knowledge"), api_key="sk-...")
        knowledge.register(KnowledgeBase(
            name="docs",
            embedding_model="text-embedding-3-small",
            database_provider="local"
        ))

        await knowledge.provider("docs").add_document("Keys rotate every 90 days")
        results = await knowledge.search_knowledge_base("docs", "key rotation", 2)
    """

    def __init__(
        self,
        directory: Path,
        api_key: str | None = None,
        embeddings_factory: EmbeddingsFactory | None = None
    ):
        """
        Args:
            directory: Root directory for local knowledge bases
            api_key: OpenAI API key for the default embeddings factory
            embeddings_factory: Builds an embedding generator for a model name
        """
        self.directory = directory
        self._embeddings_factory = embeddings_factory or (
            lambda model: EmbeddingGenerator(api_key=api_key, model=model)
        )
        # One generator per embedding model, shared across knowledge bases
        self._embeddings: dict[str, EmbeddingGenerator] = {}
        self._providers: dict[str, LocalKnowledgeProvider] = {}

    def _embeddings_for(self, model: str) -> EmbeddingGenerator:
        if model not in self._embeddings:
            self._embeddings[model] = self._embeddings_factory(model)
        return self._embeddings[model]

    def register(self, kb: KnowledgeBase) -> LocalKnowledgeProvider:
        """
        Register a knowledge base and open its storage.

        Registering an already known name returns the existing provider.

        Raises:
            ConfigurationError: If the knowledge base names an unknown provider
        """
        if kb.name in self._providers:
            return self._providers[kb.name]

        if kb.database_provider != LOCAL_PROVIDER:
            raise ConfigurationError(
                f"Knowledge base '{kb.name}' uses unsupported provider '{kb.database_provider}'"
            )

        provider = LocalKnowledgeProvider(kb, self.directory, self._embeddings_for(kb.embedding_model))
        provider.initialize()
        self._providers[kb.name] = provider

        logger.info(f"Registered knowledge base {kb.name}", {"model": kb.embedding_model})
        return provider

    def provider(self, kb_name: str) -> LocalKnowledgeProvider:
        """
        Get the provider for a registered knowledge base.

        Raises:
            NotFoundError: If no knowledge base has this name
        """
        provider = self._providers.get(kb_name)
        if provider is None:
            raise NotFoundError(f"Knowledge base '{kb_name}' not found")
        return provider

    def unregister(self, kb_name: str, delete_data: bool = False) -> None:
        """Forget a knowledge base, optionally deleting its documents."""
        provider = self.provider(kb_name)
        if delete_data:
            provider.delete()
        del self._providers[kb_name]

    @property
    def names(self) -> list[str]:
        return list(self._providers)

    async def search_knowledge_base(self, kb_name: str, query: str, k: int) -> list[SearchResult]:
        """
        Search a knowledge base by name.

        Args:
            kb_name: Registered knowledge base name
            query: Search text
            k: Maximum number of results

        Returns:
            Results sorted by similarity, highest first

        Raises:
            NotFoundError: If the knowledge base is not registered
            UpstreamError: If embedding the query fails
        """
        return await self.provider(kb_name).search(query, k)


__all__ = [
    "KnowledgeService",
    "LocalKnowledgeProvider",
    "EmbeddingGenerator",
    "KnowledgeBase",
    "Document",
    "SearchResult",
]
