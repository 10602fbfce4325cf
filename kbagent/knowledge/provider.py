"""
Local Knowledge Provider
========================

Stores one knowledge base on the local filesystem.

Each knowledge base gets its own directory holding a ``VectorStore``.
Documents are embedded with the knowledge base's embedding model when they
are added or updated, and queries are embedded with the same model at
search time.

Lifecycle:
    provider = LocalKnowledgeProvider(kb, Path("data/knowledge"), embeddings)
    provider.initialize()
    await provider.add_document("Keys rotate every 90 days", {"source": "faq.md"})
    results = await provider.search("key rotation", k=2)
    provider.delete()
"""

import uuid
from pathlib import Path
from typing import Any

from kbagent.errors import NotFoundError
from kbagent.knowledge.embeddings import EmbeddingGenerator
from kbagent.knowledge.types import Document, KnowledgeBase, SearchResult
from kbagent.knowledge.vectorstore import VectorDocument, VectorStore
from kbagent.utils.logger import Logger

logger = Logger("LocalKnowledge")


class LocalKnowledgeProvider:
    """
    File-backed knowledge base provider.

    Attributes:
        kb: The knowledge base this provider serves
        embeddings: Embedding generator bound to ``kb.embedding_model``
        storage_path: Directory holding this knowledge base's files
    """

    def __init__(self, kb: KnowledgeBase, directory: Path, embeddings: EmbeddingGenerator):
        self.kb = kb
        self.embeddings = embeddings
        self.storage_path = directory / kb.name
        self._store: VectorStore | None = None
        self._log = logger.child(kb.name)

    @property
    def store(self) -> VectorStore:
        if self._store is None:
            self.initialize()
        return self._store

    def initialize(self) -> None:
        """Open (or create) the knowledge base's storage."""
        if self._store is None:
            self._store = VectorStore(self.storage_path)
            self._log.debug(f"Initialized with {len(self._store)} documents")

    async def add_document(
        self,
        content: str,
        metadata: dict[str, Any] | None = None,
        doc_id: str | None = None
    ) -> Document:
        """
        Embed and store a new document.

        Args:
            content: Document text
            metadata: Optional metadata returned with search results
            doc_id: Optional ID (a UUID is generated otherwise)
        """
        embedding = await self.embeddings.generate(content)
        doc = VectorDocument(
            id=doc_id or str(uuid.uuid4()),
            content=content,
            model=self.kb.embedding_model,
            embedding=embedding,
            metadata=metadata or {},
        )
        self.store.add(doc)
        self._log.info(f"Added document {doc.id}")
        return self._to_document(doc)

    async def update_document(
        self,
        doc_id: str,
        content: str | None = None,
        metadata: dict[str, Any] | None = None
    ) -> Document:
        """
        Replace a document's content and/or metadata.

        The document is re-embedded only when its content changes.

        Raises:
            NotFoundError: If no document has this ID
        """
        existing = self.store.get(doc_id)
        if existing is None:
            raise NotFoundError(f"Document '{doc_id}' not found in knowledge base '{self.kb.name}'")

        if content is not None and content != existing.content:
            embedding = await self.embeddings.generate(content)
            model = self.kb.embedding_model
        else:
            content = existing.content
            embedding = existing.embedding
            model = existing.model

        doc = VectorDocument(
            id=doc_id,
            content=content,
            model=model,
            embedding=embedding,
            metadata=metadata if metadata is not None else existing.metadata,
        )
        self.store.add(doc)
        self._log.info(f"Updated document {doc_id}")
        return self._to_document(doc)

    def remove_document(self, doc_id: str) -> bool:
        """Remove a document. Returns False if it did not exist."""
        removed = self.store.delete(doc_id)
        if removed:
            self._log.info(f"Removed document {doc_id}")
        return removed

    def get_documents(self, filter: dict[str, Any] | None = None) -> list[Document]:
        """
        List documents, optionally only those whose metadata matches ``filter``.
        """
        docs = self.store.all()
        if filter:
            docs = [
                doc for doc in docs
                if all(doc.metadata.get(k) == v for k, v in filter.items())
            ]
        return [self._to_document(doc) for doc in docs]

    def delete(self) -> None:
        """Delete the knowledge base and all of its documents."""
        self.store.destroy()
        self._store = None

    async def search(
        self,
        query: str,
        k: int,
        model_filter: str | None = None
    ) -> list[SearchResult]:
        """
        Find the ``k`` documents most similar to ``query``.

        Args:
            query: Search text
            k: Maximum number of results
            model_filter: Only match documents embedded with this model
                (defaults to the knowledge base's embedding model)

        Returns:
            Results sorted by similarity, highest first
        """
        query_vector = await self.embeddings.generate(query)
        matches = self.store.search(
            query_vector,
            top_k=k,
            model_filter=model_filter or self.kb.embedding_model,
        )
        self._log.debug(f"Search returned {len(matches)} results", {"query": query[:50], "k": k})

        return [
            SearchResult(
                id=match.id,
                content=match.content,
                model=match.model,
                similarity=match.score,
                metadata=match.metadata,
            )
            for match in matches
        ]

    @staticmethod
    def _to_document(doc: VectorDocument) -> Document:
        return Document(id=doc.id, content=doc.content, model=doc.model, metadata=doc.metadata)
