"""
Sources Repository - persistence for ingested content items.

A Source row carries the raw content (pasted text or transcript), the stored
file reference for media, and the status fields the ingestion pipeline
writes as it progresses:
- transcription_status / transcription_error for audio and video
- index_status / fragment_count / index_error for the last indexing run
- metadata (JSON) for capture-bot bookkeeping
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app.shared.constants import (
    BOT_ID_KEY,
    IndexStatus,
    SourceKind,
    TranscriptionStatus,
)
from app.shared.errors import NotFound, ProviderUnavailable

logger = logging.getLogger("Memora.Database.Sources")

TABLE = "sources"


@dataclass
class SourceRecord:
    id: int
    container_id: int
    kind: SourceKind
    name: str
    content: Optional[str] = None
    file_ref: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    transcription_status: TranscriptionStatus = TranscriptionStatus.NONE
    transcription_error: Optional[str] = None
    duration_seconds: Optional[float] = None
    language: Optional[str] = None
    speakers: List[str] = field(default_factory=list)
    word_count: Optional[int] = None
    index_status: IndexStatus = IndexStatus.NONE
    fragment_count: int = 0
    index_error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "SourceRecord":
        return cls(
            id=row["id"],
            container_id=row["space_id"],
            kind=SourceKind(row.get("type") or SourceKind.TEXT.value),
            name=row.get("name") or "",
            content=row.get("content"),
            file_ref=row.get("file_key"),
            file_size=row.get("file_size"),
            mime_type=row.get("mime_type"),
            transcription_status=TranscriptionStatus(row.get("transcription_status") or "none"),
            transcription_error=row.get("transcription_error"),
            duration_seconds=row.get("duration_seconds"),
            language=row.get("language"),
            speakers=row.get("speakers") or [],
            word_count=row.get("word_count"),
            index_status=IndexStatus(row.get("index_status") or "none"),
            fragment_count=row.get("fragment_count") or 0,
            index_error=row.get("index_error"),
            metadata=row.get("metadata") or {},
        )


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SourcesRepository:
    """Repository for Source rows, backed by the async Supabase client."""

    def __init__(self, client):
        """Initialize with an async Supabase client."""
        self.client = client

    async def _execute(self, query, action: str):
        try:
            return await query.execute()
        except Exception as e:
            logger.error(f"Error {action}: {e}")
            raise ProviderUnavailable("supabase", f"error {action}") from e

    async def _update(self, source_id: int, payload: Dict[str, Any], action: str) -> None:
        payload["updated_at"] = _now()
        await self._execute(
            self.client.table(TABLE).update(payload).eq("id", source_id),
            action,
        )

    async def get(self, source_id: int) -> Optional[SourceRecord]:
        """Fetch a Source by ID, or None if it does not exist."""
        result = await self._execute(
            self.client.table(TABLE).select("*").eq("id", source_id).limit(1),
            f"fetching source {source_id}",
        )
        return SourceRecord.from_row(result.data[0]) if result.data else None

    async def require(self, source_id: int) -> SourceRecord:
        """Fetch a Source by ID, raising NotFound if it does not exist."""
        record = await self.get(source_id)
        if record is None:
            raise NotFound(f"Source {source_id} not found", resource_type="source", resource_id=source_id)
        return record

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
        """Insert a Source row and return it."""
        payload: Dict[str, Any] = {
            "space_id": container_id,
            "type": kind.value,
            "name": name,
            "transcription_status": transcription_status.value,
            "metadata": metadata or {},
        }
        if content is not None:
            payload["content"] = content
        if file_ref:
            payload["file_key"] = file_ref

        result = await self._execute(self.client.table(TABLE).insert(payload), "creating source")
        record = SourceRecord.from_row(result.data[0])
        logger.info(f"Source created: {record.id} ({kind.value}) in space {container_id}")
        return record

    async def update_content(self, source_id: int, content: str) -> None:
        await self._update(source_id, {"content": content}, f"updating content of source {source_id}")

    async def set_file_ref(self, source_id: int, file_ref: str) -> None:
        await self._update(source_id, {"file_key": file_ref}, f"updating file of source {source_id}")

    async def set_transcription_status(
        self,
        source_id: int,
        status: TranscriptionStatus,
        error: Optional[str] = None,
    ) -> None:
        """Move a Source through the transcription lifecycle; `error` is cleared unless given."""
        await self._update(
            source_id,
            {"transcription_status": status.value, "transcription_error": error},
            f"setting transcription status of source {source_id}",
        )

    async def save_transcript(
        self,
        source_id: int,
        content: str,
        duration_seconds: Optional[float],
        language: Optional[str],
        speakers: List[str],
        word_count: int,
        provider: str,
    ) -> None:
        """Persist a finished transcript, replacing any previous one, and mark it done."""
        await self._update(
            source_id,
            {
                "content": content,
                "duration_seconds": duration_seconds,
                "language": language,
                "speakers": speakers,
                "word_count": word_count,
                "transcription_provider": provider,
                "transcription_status": TranscriptionStatus.DONE.value,
                "transcription_error": None,
            },
            f"saving transcript of source {source_id}",
        )
        logger.info(f"Transcript saved for source {source_id} ({word_count} words)")

    async def record_index_result(
        self,
        source_id: int,
        success: bool,
        fragment_count: int,
        error: Optional[str] = None,
    ) -> None:
        status = IndexStatus.INDEXED if success else IndexStatus.FAILED
        await self._update(
            source_id,
            {"index_status": status.value, "fragment_count": fragment_count, "index_error": error},
            f"recording index result of source {source_id}",
        )

    async def update_metadata(self, source_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge `updates` into the Source's metadata and return the merged dict.

        Read-modify-write: only the capture watcher writes bot keys, one task per bot.
        """
        record = await self.require(source_id)
        merged = {**record.metadata, **updates}
        await self._update(source_id, {"metadata": merged}, f"updating metadata of source {source_id}")
        return merged

    async def find_by_bot_id(self, bot_id: str) -> Optional[SourceRecord]:
        """Find the meeting Source created for a capture bot."""
        result = await self._execute(
            self.client.table(TABLE).select("*").eq(f"metadata->>{BOT_ID_KEY}", bot_id).limit(1),
            f"looking up source for bot {bot_id}",
        )
        return SourceRecord.from_row(result.data[0]) if result.data else None
