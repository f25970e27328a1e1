"""Shared pytest fixtures and in-memory collaborators."""

import asyncio
import hashlib
import math
from dataclasses import replace
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from qdrant_client import AsyncQdrantClient

from app.core.config import ChunkingConfig, EmbeddingConfig, QdrantConfig
from app.features.database.repositories.sources import SourceRecord
from app.features.knowledge.embeddings import EmbeddingGateway
from app.features.knowledge.indexer import IndexingCoordinator
from app.features.knowledge.vector_index import VectorIndexService
from app.features.transcription.base import SpeechToTextProvider
from app.features.transcription.normalizer import TranscriptionResult
from app.shared.constants import BOT_ID_KEY, IndexStatus, SourceKind, TranscriptionStatus
from app.shared.errors import NotFound

DIMENSIONS = 8


def fake_vector(text: str) -> List[float]:
    """Deterministic unit vector derived from the text's hash."""
    digest = hashlib.sha256(text.encode()).digest()
    values = [(b - 127.5) / 127.5 for b in digest[:DIMENSIONS]]
    norm = math.sqrt(sum(v * v for v in values)) or 1.0
    return [v / norm for v in values]


def fake_openai_client() -> MagicMock:
    """AsyncOpenAI stand-in whose embeddings.create hashes each input."""

    async def create(model, input, **kwargs):
        return SimpleNamespace(
            data=[SimpleNamespace(index=i, embedding=fake_vector(text)) for i, text in enumerate(input)]
        )

    client = MagicMock()
    client.embeddings.create = AsyncMock(side_effect=create)
    return client


class FakeSourcesRepository:
    """In-memory SourcesRepository with a log of transcription statuses."""

    def __init__(self):
        self.records: Dict[int, SourceRecord] = {}
        self.status_history: Dict[int, List[TranscriptionStatus]] = {}
        self._next_id = 1

    def add(self, record: SourceRecord) -> SourceRecord:
        self.records[record.id] = record
        self._next_id = max(self._next_id, record.id + 1)
        return record

    async def get(self, source_id: int) -> Optional[SourceRecord]:
        return self.records.get(source_id)

    async def require(self, source_id: int) -> SourceRecord:
        if source_id not in self.records:
            raise NotFound(f"Source {source_id} not found", resource_type="source", resource_id=source_id)
        return self.records[source_id]

    async def create(
        self,
        container_id: int,
        kind: SourceKind,
        name: str,
        content: Optional[str] = None,
        file_ref: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        transcription_status: TranscriptionStatus = TranscriptionStatus.NONE,
    ) -> SourceRecord:
        record = SourceRecord(
            id=self._next_id,
            container_id=container_id,
            kind=kind,
            name=name,
            content=content,
            file_ref=file_ref,
            metadata=dict(metadata or {}),
            transcription_status=transcription_status,
        )
        return self.add(record)

    def _set(self, source_id: int, **changes) -> None:
        self.records[source_id] = replace(self.records[source_id], **changes)

    async def update_content(self, source_id: int, content: str) -> None:
        self._set(source_id, content=content)

    async def set_file_ref(self, source_id: int, file_ref: str) -> None:
        self._set(source_id, file_ref=file_ref)

    async def set_transcription_status(self, source_id, status, error=None) -> None:
        self.status_history.setdefault(source_id, []).append(status)
        self._set(source_id, transcription_status=status, transcription_error=error)

    async def save_transcript(self, source_id, content, duration_seconds, language, speakers, word_count, provider):
        self.status_history.setdefault(source_id, []).append(TranscriptionStatus.DONE)
        self._set(
            source_id,
            content=content,
            duration_seconds=duration_seconds,
            language=language,
            speakers=speakers,
            word_count=word_count,
            transcription_status=TranscriptionStatus.DONE,
            transcription_error=None,
        )

    async def record_index_result(self, source_id, success, fragment_count, error=None) -> None:
        self._set(
            source_id,
            index_status=IndexStatus.INDEXED if success else IndexStatus.FAILED,
            fragment_count=fragment_count,
            index_error=error,
        )

    async def update_metadata(self, source_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        merged = {**self.records[source_id].metadata, **updates}
        self._set(source_id, metadata=merged)
        return merged

    async def find_by_bot_id(self, bot_id: str) -> Optional[SourceRecord]:
        for record in self.records.values():
            if record.metadata.get(BOT_ID_KEY) == bot_id:
                return record
        return None


class FakeStorage:
    async def get_readable_url(self, file_ref: str, expires_in: Optional[int] = None) -> str:
        if file_ref.startswith(("http://", "https://")):
            return file_ref
        return f"https://storage.test/signed/{file_ref}"


class FakeTranscriber(SpeechToTextProvider):
    """Returns a canned result, raises a canned error, or hangs until cancelled."""

    def __init__(self, result: Optional[TranscriptionResult] = None, error: Exception = None, hang: bool = False):
        self.result = result
        self.error = error
        self.hang = hang
        self.calls: List[Dict[str, Any]] = []

    @property
    def name(self) -> str:
        return "fake"

    async def transcribe(self, media, language=None, diarize=True, mime_type=None, timeout=None):
        self.calls.append({"media": media, "language": language, "diarize": diarize, "timeout": timeout})
        if self.hang:
            await asyncio.Event().wait()
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def qdrant_config():
    return QdrantConfig(dimensions=DIMENSIONS, score_threshold=0.3)


@pytest.fixture
def qdrant_client():
    return AsyncQdrantClient(location=":memory:")


@pytest.fixture
def vector_index(qdrant_config, qdrant_client):
    return VectorIndexService(qdrant_config, qdrant_client)


@pytest.fixture
def openai_client():
    return fake_openai_client()


@pytest.fixture
def embeddings(openai_client):
    return EmbeddingGateway(EmbeddingConfig(api_key="test", dimensions=DIMENSIONS), client=openai_client)


@pytest.fixture
def chunking():
    return ChunkingConfig(target_size=40, overlap=5, boundary_window=20)


@pytest.fixture
def indexer(vector_index, embeddings, chunking):
    return IndexingCoordinator(vector_index, embeddings, chunking)


@pytest.fixture
def sources():
    return FakeSourcesRepository()
