"""
Indexing coordinator - the "write" side of semantic search.

One run indexes exactly one Source:

    received -> collection_ensured -> stale_removed -> chunked
             -> embedded -> upserted -> done

with `failed` reachable from every step. Runs are not persisted; a run that
fails is simply re-run from scratch. Because stale fragments are deleted
before the new ones are written, and point IDs depend only on
(source_id, position), repeated runs for the same content converge to the
same set of points.
"""

import logging
from typing import Any, Dict, Optional

from app.core.config import ChunkingConfig
from app.core.tracing import get_tracer
from app.features.knowledge.chunker import split
from app.features.knowledge.embeddings import EmbeddingGateway
from app.features.knowledge.models import IndexResult, IndexStage
from app.features.knowledge.vector_index import VectorIndexService
from app.shared.constants import PARTITION_SIZE
from app.shared.errors import FragmentLimitExceeded, MemoraError

logger = logging.getLogger("Memora.Knowledge.Indexer")
tracer = get_tracer("Memora.Knowledge.Indexer")


class IndexingCoordinator:
    """Chunk, embed and upsert one Source into its container's collection."""

    def __init__(
        self,
        vector_index: VectorIndexService,
        embeddings: EmbeddingGateway,
        chunking: ChunkingConfig,
    ):
        self.vector_index = vector_index
        self.embeddings = embeddings
        self.chunking = chunking

    async def index(
        self,
        container_id: int,
        source_id: int,
        content: Optional[str],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> IndexResult:
        """
        Index a Source's content.

        Domain failures (provider outage, dimension drift, too many fragments)
        come back as `success=False` with the stage they happened after.
        Anything else is a bug and propagates to the dispatcher.

        Args:
            container_id: Knowledge container (one collection each)
            source_id: Source being (re)indexed
            content: Full text; empty means nothing to index
            metadata: `kind` and `name` are copied into every fragment's payload

        Returns:
            IndexResult with the number of fragments written
        """
        with tracer.start_as_current_span("index_source") as span:
            span.set_attribute("memora.container_id", container_id)
            span.set_attribute("memora.source_id", source_id)

            if not content or not content.strip():
                logger.info(f"Source {source_id} has no content, nothing to index")
                return IndexResult(success=True, fragment_count=0)

            stage = IndexStage.RECEIVED
            try:
                (await self.vector_index.ensure_collection(container_id)).unwrap()
                stage = IndexStage.COLLECTION_ENSURED

                (await self.vector_index.delete_by_source(container_id, source_id)).unwrap()
                stage = IndexStage.STALE_REMOVED

                fragments = split(
                    content,
                    target_size=self.chunking.target_size,
                    overlap=self.chunking.overlap,
                    boundary_window=self.chunking.boundary_window,
                )
                if len(fragments) > PARTITION_SIZE:
                    raise FragmentLimitExceeded(source_id, len(fragments), PARTITION_SIZE)
                stage = IndexStage.CHUNKED

                vectors = await self.embeddings.embed_batch([f.text for f in fragments])
                stage = IndexStage.EMBEDDED

                written = (await self.vector_index.upsert(
                    container_id, source_id, fragments, vectors, metadata,
                )).unwrap()
                stage = IndexStage.UPSERTED

            except MemoraError as e:
                logger.warning(
                    f"Indexing source {source_id} in space {container_id} failed after {stage.value}: {e}"
                )
                span.set_attribute("memora.index.failed_at", stage.value)
                return IndexResult(
                    success=False,
                    fragment_count=0,
                    error=str(e),
                    stage=IndexStage.FAILED,
                    failed_at=stage,
                )

            span.set_attribute("memora.fragment_count", written)
            logger.info(f"Indexed source {source_id} in space {container_id}: {written} fragments")
            return IndexResult(success=True, fragment_count=written)
