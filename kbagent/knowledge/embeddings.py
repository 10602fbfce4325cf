"""
Embedding Generation
====================

Generates vector embeddings from text using OpenAI's embedding models.

Each knowledge base names its own embedding model; documents and queries
for that knowledge base must be embedded with the same model or their
vectors are not comparable.

Caching:
    Embeddings are cached per generator to avoid repeated API calls for the
    same text (repeated queries, re-indexed documents).
"""

import hashlib
from typing import Sequence

from openai import AsyncOpenAI, OpenAIError

from kbagent.errors import UpstreamError
from kbagent.utils.logger import Logger

logger = Logger("Embeddings")


class EmbeddingGenerator:
    """
    Generates text embeddings using OpenAI's API.

    Example:
        generator = EmbeddingGenerator(api_key="sk-...", model="text-embedding-3-small")

        vector = await generator.generate("How do I rotate API keys?")
        vectors = await generator.generate_batch(["First doc", "Second doc"])
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "text-embedding-3-small",
        client: AsyncOpenAI | None = None
    ):
        """
        Args:
            api_key: OpenAI API key (ignored when ``client`` is given)
            model: Embedding model to use
            client: Optional preconfigured OpenAI client
        """
        self.client = client or AsyncOpenAI(api_key=api_key)
        self.model = model

        # Key: hash of text, Value: embedding vector
        self._cache: dict[str, list[float]] = {}

        logger.debug(f"Embedding generator initialized with model: {model}")

    def _hash_text(self, text: str) -> str:
        return hashlib.md5(text.encode()).hexdigest()

    async def _embed(self, texts: str | list[str]):
        try:
            return await self.client.embeddings.create(model=self.model, input=texts)
        except OpenAIError as e:
            raise UpstreamError(f"Embedding request failed ({self.model}): {e}") from e

    async def generate(self, text: str) -> list[float]:
        """
        Generate an embedding for a single text.

        Raises:
            UpstreamError: If the embeddings API call fails
        """
        cache_key = self._hash_text(text)
        if cache_key in self._cache:
            logger.debug("Embedding cache hit")
            return self._cache[cache_key]

        response = await self._embed(text)
        embedding = response.data[0].embedding

        self._cache[cache_key] = embedding

        logger.debug(f"Generated embedding (dim={len(embedding)})")
        return embedding

    async def generate_batch(self, texts: Sequence[str]) -> list[list[float]]:
        """
        Generate embeddings for multiple texts in one API call.

        Cached texts are not sent again.

        Returns:
            List of embedding vectors (same order as input)
        """
        if not texts:
            return []

        results: list[list[float] | None] = []
        texts_to_generate: list[tuple[int, str]] = []

        for i, text in enumerate(texts):
            cache_key = self._hash_text(text)
            if cache_key in self._cache:
                results.append(self._cache[cache_key])
            else:
                results.append(None)
                texts_to_generate.append((i, text))

        if texts_to_generate:
            logger.debug(f"Generating {len(texts_to_generate)} embeddings (batch)")
            response = await self._embed([text for _, text in texts_to_generate])

            for (original_index, text), embedding_data in zip(texts_to_generate, response.data):
                embedding = embedding_data.embedding
                results[original_index] = embedding
                self._cache[self._hash_text(text)] = embedding

        return [r for r in results if r is not None]
