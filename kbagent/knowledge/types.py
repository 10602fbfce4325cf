"""
Knowledge Types
===============

Records describing knowledge bases and their documents.

A knowledge base is a named store of embedded documents. Its
``embedding_model`` selects the model used to embed documents and queries,
and its ``database_provider`` selects where the vectors live.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class KnowledgeBase:
    """
    A named, searchable document collection.

    Attributes:
        name: Unique knowledge base name (also names its search tool)
        embedding_model: Embedding model identifier
        database_provider: Storage provider identifier (e.g., "local")
        description: Optional description shown to the model
    """
    name: str
    embedding_model: str
    database_provider: str
    description: str | None = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "embedding_model": self.embedding_model,
            "database_provider": self.database_provider,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "KnowledgeBase":
        return cls(
            name=data["name"],
            embedding_model=data["embedding_model"],
            database_provider=data["database_provider"],
            description=data.get("description"),
        )


@dataclass
class Document:
    """A document stored in a knowledge base."""
    id: str
    content: str
    model: str
    metadata: dict[str, Any] | None = None


@dataclass
class SearchResult:
    """
    A document returned by a similarity search.

    Attributes:
        id: Document ID
        content: Document text
        model: Embedding model the document was indexed with
        metadata: Document metadata
        similarity: Cosine similarity to the query (higher is closer)
    """
    id: str
    content: str
    model: str
    similarity: float
    metadata: dict[str, Any] | None = field(default=None)
