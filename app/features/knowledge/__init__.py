"""
Knowledge - chunking, embedding, vector indexing and semantic search.

Design for modularity:
- The chunker is a pure function
- Gateways and the vector index take their config and client at construction
- The coordinator only talks to them through their public methods
"""

from app.features.knowledge.chunker import split
from app.features.knowledge.embeddings import EmbeddingGateway
from app.features.knowledge.indexer import IndexingCoordinator
from app.features.knowledge.models import (
    Fragment,
    IndexResult,
    IndexStage,
    SearchHit,
    SearchResponse,
)
from app.features.knowledge.retriever import SemanticSearchService
from app.features.knowledge.vector_index import (
    VectorIndexService,
    collection_name,
    point_id,
)

__all__ = [
    "split",
    "EmbeddingGateway",
    "IndexingCoordinator",
    "SemanticSearchService",
    "VectorIndexService",
    "collection_name",
    "point_id",
    "Fragment",
    "IndexResult",
    "IndexStage",
    "SearchHit",
    "SearchResponse",
]
