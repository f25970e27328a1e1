"""
Ingestion Service - the entry points the rest of Memora calls.

Persistence happens before returning; transcription and indexing are
dispatched to the background and report through the Source's status fields.

Usage:
    service = await get_ingestion_service()
    await service.ingest_text(space_id, source_id, "Meeting notes ...")
    response = await service.search(space_id, "budget decisions", top_k=5)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from app.core.config import Config, settings
from app.core.database import get_supabase
from app.features.capture.bot import BotState, BotStatus, CaptureBotService, detect_platform
from app.features.capture.watcher import CaptureWatcher
from app.features.database.repositories.sources import SourceRecord, SourcesRepository
from app.features.documents.extractor import DocumentExtractor
from app.features.ingestion.dispatcher import TaskDispatcher
from app.features.knowledge.embeddings import EmbeddingGateway
from app.features.knowledge.indexer import IndexingCoordinator
from app.features.knowledge.models import IndexResult, SearchResponse
from app.features.knowledge.retriever import SemanticSearchService
from app.features.knowledge.vector_index import VectorIndexService
from app.features.transcription.pipeline import TranscriptionPipeline
from app.services.deepgram import DeepgramClient
from app.services.http_client import http_client_manager
from app.services.recall import RecallClient
from app.services.storage import SupabaseStorage
from app.shared.constants import (
    BOT_ID_KEY,
    BOT_MEETING_URL_KEY,
    BOT_PLATFORM_KEY,
    BOT_STATE_KEY,
    SourceKind,
    TranscriptionStatus,
)
from app.shared.errors import MemoraError, NotFound, ValidationError

logger = logging.getLogger("Memora.Ingestion.Service")


@dataclass(frozen=True)
class CaptureSession:
    bot_id: str
    source_id: int
    platform: str


@dataclass(frozen=True)
class CaptureStatus:
    bot_id: str
    state: BotState
    code: Optional[str] = None
    message: Optional[str] = None
    source_id: Optional[int] = None
    transcription_status: Optional[TranscriptionStatus] = None


class IngestionService:

    def __init__(
        self,
        sources: SourcesRepository,
        indexer: IndexingCoordinator,
        search_service: SemanticSearchService,
        vector_index: VectorIndexService,
        pipeline: TranscriptionPipeline,
        bots: CaptureBotService,
        dispatcher: TaskDispatcher,
        config: Config,
    ):
        self.sources = sources
        self.indexer = indexer
        self.search_service = search_service
        self.vector_index = vector_index
        self.pipeline = pipeline
        self.bots = bots
        self.dispatcher = dispatcher
        self.config = config
        self.watcher = CaptureWatcher(
            bots,
            sources,
            on_recording=self._ingest_recording,
            poll_interval=config.dispatch.bot_poll_interval,
            max_wait=config.dispatch.bot_max_wait,
        )

    # =========================================================================
    # INGESTION
    # =========================================================================

    async def _source_in(self, container_id: int, source_id: int) -> SourceRecord:
        record = await self.sources.require(source_id)
        if record.container_id != container_id:
            raise NotFound(
                f"Source {source_id} not found in space {container_id}",
                resource_type="source",
                resource_id=source_id,
            )
        return record

    async def ingest_text(self, container_id: int, source_id: int, text: str) -> None:
        """Persist `text` as the Source's content and index it in the background."""
        if text is None:
            raise ValidationError("Text is required")
        record = await self._source_in(container_id, source_id)
        await self.sources.update_content(source_id, text)
        self._dispatch_index(record, text)

    async def ingest_media(
        self,
        container_id: int,
        source_id: int,
        file_ref: Optional[str] = None,
        language: Optional[str] = None,
    ) -> None:
        """
        Transcribe the Source's media in the background, then index it.

        `file_ref` defaults to the file already stored on the Source; a new
        reference replaces it.
        """
        record = await self._source_in(container_id, source_id)
        file_ref = (file_ref or record.file_ref or "").strip()
        if not file_ref:
            raise ValidationError(f"Source {source_id} has no media file to transcribe")

        if file_ref != record.file_ref:
            await self.sources.set_file_ref(source_id, file_ref)
        await self.sources.set_transcription_status(source_id, TranscriptionStatus.PENDING)

        self.dispatcher.dispatch(
            f"transcribe-{source_id}",
            self.pipeline.run(
                container_id,
                source_id,
                file_ref,
                record.name,
                kind=record.kind,
                language=language,
                file_size=record.file_size,
            ),
        )

    async def ingest_document(
        self,
        container_id: int,
        source_id: int,
        file_bytes: bytes,
        filename: str,
        mime_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Extract a document's text, store it as the Source's content and index it.

        Returns:
            Extraction metadata (format, page count, title...)

        Raises:
            ValidationError: unsupported or empty document
        """
        record = await self._source_in(container_id, source_id)
        text, metadata = await asyncio.to_thread(DocumentExtractor.extract, file_bytes, filename, mime_type)
        await self.sources.update_content(source_id, text)
        self._dispatch_index(record, text)
        return metadata

    async def retranscribe(self, source_id: int) -> None:
        record = await self.sources.require(source_id)
        if not record.file_ref:
            raise ValidationError(f"Source {source_id} has no media file to transcribe")
        await self.ingest_media(record.container_id, source_id, record.file_ref, language=record.language)

    async def reindex(self, source_id: int) -> None:
        record = await self.sources.require(source_id)
        self._dispatch_index(record, record.content or "")

    def _dispatch_index(self, record: SourceRecord, content: str) -> None:
        self.dispatcher.dispatch(
            f"index-{record.id}",
            self._index_source(record.container_id, record.id, content, record.kind, record.name),
        )

    async def _index_source(
        self,
        container_id: int,
        source_id: int,
        content: str,
        kind: SourceKind,
        name: str,
    ) -> IndexResult:
        try:
            result = await self.indexer.index(container_id, source_id, content, {"kind": kind.value, "name": name})
        except Exception:
            await self._record_index_result(source_id, False, 0, "Internal error during indexing")
            raise
        await self._record_index_result(source_id, result.success, result.fragment_count, result.error)
        return result

    async def _record_index_result(
        self, source_id: int, success: bool, fragment_count: int, error: Optional[str],
    ) -> None:
        try:
            await self.sources.record_index_result(source_id, success, fragment_count, error)
        except MemoraError as e:
            logger.error(f"Could not record index result for source {source_id}: {e}")

    # =========================================================================
    # LIVE CAPTURE
    # =========================================================================

    async def capture_live_meeting(
        self,
        container_id: int,
        meeting_url: str,
        display_name: Optional[str] = None,
        title: Optional[str] = None,
    ) -> CaptureSession:
        """
        Send a bot to a live meeting and create the meeting Source it will fill.

        A background watcher follows the bot and ingests its recording.
        """
        bot_id = await self.bots.create_bot(meeting_url, display_name)
        platform = detect_platform(meeting_url)

        try:
            record = await self.sources.create(
                container_id,
                SourceKind.MEETING,
                title or f"Meeting ({platform})",
                metadata={
                    BOT_ID_KEY: bot_id,
                    BOT_MEETING_URL_KEY: meeting_url.strip(),
                    BOT_PLATFORM_KEY: platform,
                    BOT_STATE_KEY: BotState.CREATED.value,
                },
                transcription_status=TranscriptionStatus.PENDING,
            )
        except MemoraError:
            # Nothing would ever collect this bot's recording
            await self._stop_quietly(bot_id)
            raise

        self.dispatcher.dispatch(
            f"capture-{bot_id}",
            self.watcher.watch(bot_id, container_id, record.id),
            limited=False,
        )
        logger.info(f"Capture started: bot {bot_id} ({platform}) -> source {record.id}")
        return CaptureSession(bot_id=bot_id, source_id=record.id, platform=platform)

    async def get_capture_status(self, bot_id: str) -> CaptureStatus:
        status: BotStatus = await self.bots.poll_status(bot_id)
        record = await self.sources.find_by_bot_id(bot_id)
        return CaptureStatus(
            bot_id=bot_id,
            state=status.state,
            code=status.code,
            message=status.message,
            source_id=record.id if record else None,
            transcription_status=record.transcription_status if record else None,
        )

    async def stop_capture(self, bot_id: str) -> None:
        await self.bots.stop(bot_id)

    async def fetch_bot_transcript(self, bot_id: str) -> str:
        return await self.bots.fetch_transcript(bot_id)

    async def _ingest_recording(self, container_id: int, source_id: int, url: str) -> None:
        await self.ingest_media(container_id, source_id, url)

    async def _stop_quietly(self, bot_id: str) -> None:
        try:
            await self.bots.stop(bot_id)
        except MemoraError as e:
            logger.warning(f"Could not stop bot {bot_id}: {e}")

    # =========================================================================
    # SEARCH AND REMOVAL
    # =========================================================================

    async def search(self, container_id: int, query: str, top_k: int = 5) -> SearchResponse:
        return await self.search_service.search(container_id, query, top_k)

    async def remove_source(self, container_id: int, source_id: int) -> None:
        """Delete a Source's fragments from its container's collection."""
        (await self.vector_index.delete_by_source(container_id, source_id)).unwrap()
        logger.info(f"Removed fragments of source {source_id} from space {container_id}")

    async def remove_container(self, container_id: int) -> bool:
        """Drop a container's collection. Returns False if it never had one."""
        return (await self.vector_index.delete_collection(container_id)).unwrap()

    async def close(self, grace: Optional[float] = None) -> None:
        await self.dispatcher.shutdown(grace if grace is not None else self.config.dispatch.shutdown_grace)
        await self.vector_index.close()


def build_ingestion_service(config: Config, supabase_client, http_client) -> IngestionService:
    """Wire every collaborator from explicit config and clients."""
    sources = SourcesRepository(supabase_client)
    vector_index = VectorIndexService.from_config(config.qdrant)
    embeddings = EmbeddingGateway(config.embedding)
    indexer = IndexingCoordinator(vector_index, embeddings, config.chunking)
    pipeline = TranscriptionPipeline(
        sources,
        SupabaseStorage(supabase_client, config.storage),
        DeepgramClient(config.deepgram, http_client),
        indexer,
        config.transcription,
    )
    bots = CaptureBotService(RecallClient(config.recall, http_client), default_name=config.recall.bot_name)
    return IngestionService(
        sources=sources,
        indexer=indexer,
        search_service=SemanticSearchService(vector_index, embeddings),
        vector_index=vector_index,
        pipeline=pipeline,
        bots=bots,
        dispatcher=TaskDispatcher(config.dispatch.max_concurrency),
        config=config,
    )


_service: Optional[IngestionService] = None


async def get_ingestion_service() -> IngestionService:
    """Get the process-wide ingestion service, building it on first call."""
    global _service
    if _service is None:
        _service = build_ingestion_service(
            settings,
            await get_supabase(settings.storage),
            await http_client_manager.get_client(),
        )
        logger.info("Ingestion service initialized")
    return _service


async def shutdown_ingestion_service() -> None:
    global _service
    if _service is not None:
        await _service.close()
        _service = None
