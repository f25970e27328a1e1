"""
Vector index service - one Qdrant collection per knowledge container.

Point IDs are derived from (source_id, position) alone, so every fragment of
a Source can be located, replaced or deleted without a lookup table.

The vector database is an optional-availability dependency: every method
returns a Result, and a Qdrant outage surfaces as a failed Result carrying a
ProviderUnavailable rather than an exception.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from qdrant_client import AsyncQdrantClient, models

from app.core.config import QdrantConfig
from app.features.knowledge.models import Fragment, SearchHit
from app.shared.constants import COLLECTION_PREFIX, PARTITION_SIZE
from app.shared.errors import ConfigurationError, MemoraError, ProviderUnavailable
from app.shared.result import Result

logger = logging.getLogger("Memora.Knowledge.VectorIndex")


def collection_name(container_id: int) -> str:
    return f"{COLLECTION_PREFIX}{container_id}"


def point_id(source_id: int, position: int) -> int:
    """
    Stable point ID for a fragment.

    Raises:
        ValueError: position outside [0, PARTITION_SIZE) or negative source_id
    """
    if source_id < 0:
        raise ValueError(f"source_id must be non-negative, got {source_id}")
    if not 0 <= position < PARTITION_SIZE:
        raise ValueError(f"position must be in [0, {PARTITION_SIZE}), got {position}")
    return source_id * PARTITION_SIZE + position


def _source_filter(source_id: int) -> models.Filter:
    return models.Filter(
        must=[models.FieldCondition(key="source_id", match=models.MatchValue(value=source_id))]
    )


def _unavailable(action: str, error: Exception) -> Result:
    if isinstance(error, MemoraError):
        return Result.failure(error)
    logger.warning(f"Qdrant {action} failed: {error}")
    return Result.failure(ProviderUnavailable("qdrant", f"{action} failed: {error}"))


class VectorIndexService:
    """Collection lifecycle, upsert, delete-by-source and similarity search."""

    def __init__(self, config: QdrantConfig, client: AsyncQdrantClient):
        self.config = config
        self.client = client

    @classmethod
    def from_config(cls, config: QdrantConfig) -> "VectorIndexService":
        client = AsyncQdrantClient(url=config.url, api_key=config.api_key, timeout=config.timeout)
        return cls(config, client)

    async def close(self) -> None:
        await self.client.close()

    async def ensure_collection(self, container_id: int) -> Result[bool]:
        """
        Create the container's collection if absent.

        Returns Result(True) if it was created, Result(False) if it already
        existed. An existing collection with a different vector size is a
        ConfigurationError; it is never recreated.
        """
        name = collection_name(container_id)
        try:
            if await self.client.collection_exists(name):
                return self._check_dimensions(name, await self.client.get_collection(name))

            await self.client.create_collection(
                collection_name=name,
                vectors_config=models.VectorParams(
                    size=self.config.dimensions,
                    distance=models.Distance.COSINE,
                ),
            )
            await self.client.create_payload_index(
                collection_name=name,
                field_name="source_id",
                field_schema=models.PayloadSchemaType.INTEGER,
            )
            logger.info(f"Created collection {name} ({self.config.dimensions} dims)")
            return Result.success(True)
        except Exception as e:
            return _unavailable(f"ensure_collection({name})", e)

    def _check_dimensions(self, name: str, info: models.CollectionInfo) -> Result[bool]:
        vectors = info.config.params.vectors
        size = getattr(vectors, "size", None)
        if size is not None and size != self.config.dimensions:
            return Result.failure(ConfigurationError(
                f"Collection {name} has {size}-dimensional vectors, "
                f"configured embeddings are {self.config.dimensions}",
                details={"collection": name, "existing": size, "configured": self.config.dimensions},
            ))
        return Result.success(False)

    async def delete_by_source(self, container_id: int, source_id: int) -> Result[None]:
        """Remove every point belonging to `source_id`. A missing collection has nothing to delete."""
        name = collection_name(container_id)
        try:
            if not await self.client.collection_exists(name):
                return Result.success()
            await self.client.delete(
                collection_name=name,
                points_selector=models.FilterSelector(filter=_source_filter(source_id)),
                wait=True,
            )
            logger.debug(f"Deleted fragments of source {source_id} from {name}")
            return Result.success()
        except Exception as e:
            return _unavailable(f"delete_by_source({name}, {source_id})", e)

    async def upsert(
        self,
        container_id: int,
        source_id: int,
        fragments: Sequence[Fragment],
        vectors: Sequence[List[float]],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Result[int]:
        """Insert-or-replace one point per fragment. Returns the number of points written."""
        if len(fragments) != len(vectors):
            raise ValueError(f"{len(fragments)} fragments but {len(vectors)} vectors")

        metadata = metadata or {}
        name = collection_name(container_id)
        points = [
            models.PointStruct(
                id=point_id(source_id, fragment.position),
                vector=list(vector),
                payload={
                    "source_id": source_id,
                    "container_id": container_id,
                    "kind": metadata.get("kind"),
                    "name": metadata.get("name"),
                    "position": fragment.position,
                    "text": fragment.text,
                },
            )
            for fragment, vector in zip(fragments, vectors)
        ]

        try:
            batch_size = self.config.upsert_batch_size
            for offset in range(0, len(points), batch_size):
                await self.client.upsert(
                    collection_name=name,
                    points=points[offset: offset + batch_size],
                    wait=True,
                )
        except Exception as e:
            return _unavailable(f"upsert({name}, {source_id})", e)

        logger.debug(f"Upserted {len(points)} points for source {source_id} into {name}")
        return Result.success(len(points))

    async def search(
        self,
        container_id: int,
        query_vector: List[float],
        top_k: int = 5,
    ) -> Result[List[SearchHit]]:
        """Nearest fragments above the score threshold, best first."""
        name = collection_name(container_id)
        try:
            if not await self.client.collection_exists(name):
                return Result.success([])
            response = await self.client.query_points(
                collection_name=name,
                query=query_vector,
                limit=top_k,
                score_threshold=self.config.score_threshold,
                with_payload=True,
            )
        except Exception as e:
            return _unavailable(f"search({name})", e)

        hits = []
        for point in response.points:
            payload = point.payload or {}
            hits.append(SearchHit(
                source_id=payload.get("source_id"),
                container_id=payload.get("container_id", container_id),
                kind=payload.get("kind"),
                name=payload.get("name"),
                position=payload.get("position", 0),
                text=payload.get("text", ""),
                score=point.score,
            ))
        return Result.success(hits)

    async def delete_collection(self, container_id: int) -> Result[bool]:
        """Drop the container's collection. Returns Result(False) if there was none."""
        name = collection_name(container_id)
        try:
            if not await self.client.collection_exists(name):
                return Result.success(False)
            await self.client.delete_collection(collection_name=name)
            logger.info(f"Deleted collection {name}")
            return Result.success(True)
        except Exception as e:
            return _unavailable(f"delete_collection({name})", e)
