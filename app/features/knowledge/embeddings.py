"""
Embedding gateway - text in, fixed-dimension vectors out.

Wraps the OpenAI embeddings endpoint. The configured dimensionality is a
collection-wide invariant, so a provider answer of any other length is
treated as a configuration error rather than silently stored.
"""

import logging
from typing import List, Optional

import openai
from openai import AsyncOpenAI

from app.core.config import EmbeddingConfig
from app.services.openai_client import get_openai_client
from app.shared.errors import ConfigurationError, ProviderUnavailable, ValidationError

logger = logging.getLogger("Memora.Knowledge.Embeddings")


class EmbeddingGateway:
    """Order-preserving batch embedding over an injected OpenAI client."""

    def __init__(self, config: EmbeddingConfig, client: Optional[AsyncOpenAI] = None):
        self.config = config
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = get_openai_client(self.config.api_key)
        return self._client

    @property
    def dimensions(self) -> int:
        return self.config.dimensions

    async def embed(self, text: str) -> List[float]:
        """Embed a single text."""
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """
        Embed texts, returning one vector per input in the same order.

        Inputs are sent in sub-batches of `batch_size` and truncated to
        `max_input_chars`.

        Raises:
            ValidationError: An input is empty
            ProviderUnavailable: The provider failed or returned a short answer
            ConfigurationError: A vector has the wrong dimensionality
        """
        if not texts:
            return []

        inputs = []
        for text in texts:
            if not text or not text.strip():
                raise ValidationError("Cannot embed empty text")
            inputs.append(text[: self.config.max_input_chars])

        vectors: List[List[float]] = []
        for offset in range(0, len(inputs), self.config.batch_size):
            batch = inputs[offset: offset + self.config.batch_size]
            vectors.extend(await self._embed_request(batch))

        logger.debug(f"Embedded {len(vectors)} texts with {self.config.model}")
        return vectors

    async def _embed_request(self, batch: List[str]) -> List[List[float]]:
        kwargs = {"model": self.config.model, "input": batch}
        # Only the v3 models accept a requested dimensionality
        if self.config.model.startswith("text-embedding-3"):
            kwargs["dimensions"] = self.config.dimensions

        try:
            response = await self.client.embeddings.create(**kwargs)
        except openai.OpenAIError as e:
            logger.warning(f"Embedding request failed ({len(batch)} inputs): {e}")
            raise ProviderUnavailable("openai", str(e)) from e

        data = sorted(response.data, key=lambda item: item.index)
        if len(data) != len(batch):
            raise ProviderUnavailable(
                "openai",
                f"expected {len(batch)} embeddings, got {len(data)}",
            )

        vectors = [list(item.embedding) for item in data]
        for vector in vectors:
            if len(vector) != self.config.dimensions:
                raise ConfigurationError(
                    f"Embedding model {self.config.model} returned {len(vector)} dimensions, "
                    f"expected {self.config.dimensions}",
                )
        return vectors
