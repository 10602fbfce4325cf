"""
Vector Store
============

A file-based vector store for one knowledge base.

Documents live in ``documents.json`` and their embeddings in
``embeddings.npy`` (one row per document, same order). The whole index is
held in memory and searched with cosine similarity:

    cos(A, B) = (A · B) / (||A|| * ||B||)

    - 1 means identical direction (most similar)
    - 0 means unrelated
    - -1 means opposite direction

Sufficient for thousands of documents per knowledge base; larger corpora
belong in a dedicated provider.
"""

import json
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np

from kbagent.errors import PersistenceError
from kbagent.utils.logger import Logger

logger = Logger("VectorStore")


@dataclass
class VectorDocument:
    """
    A document stored in the vector store.

    Attributes:
        id: Unique identifier for the document
        content: The original text content
        model: Embedding model that produced ``embedding``
        embedding: The vector embedding
        metadata: Additional data (source, section, etc.)
        score: Similarity score (set during search)
    """
    id: str
    content: str
    model: str
    embedding: list[float]
    metadata: dict[str, Any] = field(default_factory=dict)
    score: float | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization (embedding stored separately)."""
        return {
            "id": self.id,
            "content": self.content,
            "model": self.model,
            "metadata": self.metadata,
        }


class VectorStore:
    """
    File-based vector store with cosine similarity search.

    Example:
        store = VectorStore(Path("data/knowledge/docs"))

        store.add(VectorDocument(
            id="faq-1",
            content="Keys rotate every 90 days",
            model="text-embedding-3-small",
            embedding=[0.1, -0.2, ...],
            metadata={"source": "faq.md"}
        ))

        results = store.search(query_vector, top_k=2)
    """

    def __init__(self, storage_path: Path):
        """
        Args:
            storage_path: Directory to store data files
        """
        self.storage_path = storage_path
        self.documents_file = storage_path / "documents.json"
        self.embeddings_file = storage_path / "embeddings.npy"

        self._documents: dict[str, VectorDocument] = {}
        # Row i of _embeddings belongs to _ids[i]
        self._ids: list[str] = []
        self._embeddings: np.ndarray | None = None

        storage_path.mkdir(parents=True, exist_ok=True)
        self._load()

        logger.debug(f"Vector store at {storage_path} holds {len(self._documents)} documents")

    def _load(self) -> None:
        """Load existing data from disk."""
        if not self.documents_file.exists():
            return

        try:
            with open(self.documents_file) as f:
                docs_data = json.load(f)
            embeddings = np.load(self.embeddings_file) if self.embeddings_file.exists() else None
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Could not load vector store at {self.storage_path}: {e}") from e

        if not docs_data:
            return

        # One embedding row per document, in document order
        if embeddings is None or len(embeddings) != len(docs_data):
            raise PersistenceError(
                f"Vector store at {self.storage_path} has {len(docs_data)} documents "
                f"but {0 if embeddings is None else len(embeddings)} embeddings"
            )

        for i, doc_data in enumerate(docs_data):
            doc = VectorDocument(
                id=doc_data["id"],
                content=doc_data["content"],
                model=doc_data.get("model", ""),
                embedding=embeddings[i].tolist(),
                metadata=doc_data.get("metadata") or {},
            )
            self._documents[doc.id] = doc
            self._ids.append(doc.id)

        self._embeddings = embeddings

    def _save(self) -> None:
        """Save data to disk."""
        try:
            docs_list = [self._documents[doc_id].to_dict() for doc_id in self._ids]
            with open(self.documents_file, "w") as f:
                json.dump(docs_list, f)

            if self._embeddings is not None:
                np.save(self.embeddings_file, self._embeddings)
            elif self.embeddings_file.exists():
                self.embeddings_file.unlink()
        except OSError as e:
            raise PersistenceError(f"Could not save vector store at {self.storage_path}: {e}") from e

    def _insert(self, document: VectorDocument) -> None:
        embedding = np.array(document.embedding, dtype=float)

        if document.id in self._documents:
            idx = self._ids.index(document.id)
            self._embeddings[idx] = embedding
        elif self._embeddings is None:
            self._embeddings = embedding.reshape(1, -1)
            self._ids.append(document.id)
        else:
            self._embeddings = np.vstack([self._embeddings, embedding])
            self._ids.append(document.id)

        self._documents[document.id] = document

    def add(self, document: VectorDocument) -> None:
        """
        Add a document to the store, replacing any document with the same ID.
        """
        self._insert(document)
        self._save()

    def add_batch(self, documents: list[VectorDocument]) -> None:
        """Add multiple documents and save once."""
        for doc in documents:
            self._insert(doc)
        self._save()
        logger.debug(f"Added batch of {len(documents)} documents")

    def search(
        self,
        query_vector: list[float],
        top_k: int = 10,
        model_filter: str | None = None,
        filter_metadata: dict[str, Any] | None = None
    ) -> list[VectorDocument]:
        """
        Search for similar documents.

        Args:
            query_vector: The query embedding
            top_k: Number of results to return
            model_filter: Only consider documents embedded with this model
            filter_metadata: Only consider documents whose metadata matches

        Returns:
            List of VectorDocuments sorted by similarity (highest first)
        """
        if self._embeddings is None or not self._ids or top_k <= 0:
            return []

        query = np.array(query_vector, dtype=float)

        query_norm = np.linalg.norm(query) or 1.0
        doc_norms = np.linalg.norm(self._embeddings, axis=1)
        doc_norms = np.where(doc_norms == 0, 1, doc_norms)

        similarities = np.dot(self._embeddings, query) / (doc_norms * query_norm)

        results: list[tuple[VectorDocument, float]] = []
        for i, doc_id in enumerate(self._ids):
            doc = self._documents[doc_id]
            if model_filter and doc.model != model_filter:
                continue
            if filter_metadata and not all(
                doc.metadata.get(k) == v for k, v in filter_metadata.items()
            ):
                continue
            results.append((doc, float(similarities[i])))

        results.sort(key=lambda x: x[1], reverse=True)

        return [
            VectorDocument(
                id=doc.id,
                content=doc.content,
                model=doc.model,
                embedding=doc.embedding,
                metadata=doc.metadata,
                score=score
            )
            for doc, score in results[:top_k]
        ]

    def delete(self, doc_id: str) -> bool:
        """
        Delete a document by ID.

        Returns:
            True if the document was found and deleted
        """
        if doc_id not in self._documents:
            return False

        idx = self._ids.index(doc_id)
        del self._documents[doc_id]
        del self._ids[idx]

        if self._ids:
            self._embeddings = np.delete(self._embeddings, idx, axis=0)
        else:
            self._embeddings = None

        self._save()
        return True

    def get(self, doc_id: str) -> VectorDocument | None:
        """Get a document by ID."""
        return self._documents.get(doc_id)

    def all(self) -> list[VectorDocument]:
        """All documents in insertion order."""
        return [self._documents[doc_id] for doc_id in self._ids]

    def destroy(self) -> None:
        """Remove every document and the storage directory itself."""
        self._documents.clear()
        self._ids.clear()
        self._embeddings = None
        shutil.rmtree(self.storage_path, ignore_errors=True)
        logger.info(f"Vector store at {self.storage_path} deleted")

    def __len__(self) -> int:
        return len(self._documents)
