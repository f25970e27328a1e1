"""
Semantic search - the "read" side.

Answers a query against one container. When the embedding provider or the
vector database is down or misconfigured, the response says so (`available=False`) instead of
raising, so callers can still render the container's Sources.
"""

import logging

from app.features.knowledge.embeddings import EmbeddingGateway
from app.features.knowledge.models import SearchResponse
from app.features.knowledge.vector_index import VectorIndexService
from app.shared.errors import ConfigurationError, MemoraError, ValidationError

logger = logging.getLogger("Memora.Knowledge.Retriever")

MAX_TOP_K = 50


class SemanticSearchService:

    def __init__(self, vector_index: VectorIndexService, embeddings: EmbeddingGateway):
        self.vector_index = vector_index
        self.embeddings = embeddings

    async def search(self, container_id: int, query: str, top_k: int = 5) -> SearchResponse:
        """
        Rank a container's fragments against `query`.

        Raises:
            ValidationError: empty query or top_k outside [1, 50]
        """
        if not query or not query.strip():
            raise ValidationError("Search query is empty")
        if not 1 <= top_k <= MAX_TOP_K:
            raise ValidationError(f"top_k must be between 1 and {MAX_TOP_K}")

        try:
            query_vector = await self.embeddings.embed(query.strip())
        except MemoraError as e:
            log = logger.error if isinstance(e, ConfigurationError) else logger.warning
            log(f"Search unavailable for space {container_id}: {e}")
            return SearchResponse(available=False, error=str(e))

        result = await self.vector_index.search(container_id, query_vector, top_k)
        if not result.ok:
            logger.warning(f"Search unavailable for space {container_id}: {result.error}")
            return SearchResponse(available=False, error=str(result.error))

        hits = result.unwrap()
        logger.info(f"Search in space {container_id} returned {len(hits)} hits")
        return SearchResponse(available=True, hits=hits)
