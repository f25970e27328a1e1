"""Data carried between the chunker, the vector index and the indexing coordinator."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


@dataclass(frozen=True)
class Fragment:
    """A slice of a Source's text. `position` is zero-based and contiguous."""

    text: str
    position: int


class IndexStage(str, Enum):
    """Steps of one indexing run, in order. FAILED is reachable from any of them."""

    RECEIVED = "received"
    COLLECTION_ENSURED = "collection_ensured"
    STALE_REMOVED = "stale_removed"
    CHUNKED = "chunked"
    EMBEDDED = "embedded"
    UPSERTED = "upserted"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class IndexResult:
    success: bool
    fragment_count: int = 0
    error: Optional[str] = None
    stage: IndexStage = IndexStage.DONE
    # Last stage reached before the failure
    failed_at: Optional[IndexStage] = None


@dataclass(frozen=True)
class SearchHit:
    source_id: int
    container_id: int
    kind: Optional[str]
    name: Optional[str]
    position: int
    text: str
    score: float


@dataclass(frozen=True)
class SearchResponse:
    """Ranked hits, or `available=False` with a reason when search is degraded."""

    available: bool
    hits: List[SearchHit] = field(default_factory=list)
    error: Optional[str] = None
