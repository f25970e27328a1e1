"""
Transcription pipeline for audio and video Sources.

    pending -> processing -> done | error

1. Mark the Source processing
2. Resolve the stored file to a provider-readable URL
3. Transcribe (bounded by a size-proportional timeout)
4. Normalize to `[mm:ss] Speaker N: text`
5. Persist text, duration, language, speakers, word count (status done)
6. Index the normalized text

Any failure in 2-5 sets the Source to `error` with a readable reason and
stops; the previous transcript, if any, is left as it was. Indexing failures
after step 5 are recorded on the Source's index status and do not undo the
transcript. Re-running the pipeline overwrites the transcript and re-indexes.
"""

import asyncio
import logging
import time
from typing import Optional

from app.core.config import TranscriptionConfig
from app.core.tracing import get_tracer
from app.features.database.repositories.sources import SourcesRepository
from app.features.knowledge.indexer import IndexingCoordinator
from app.features.knowledge.models import IndexResult
from app.features.transcription import normalizer
from app.features.transcription.base import SpeechToTextProvider
from app.services.storage import SupabaseStorage
from app.shared.constants import SourceKind, TranscriptionStatus
from app.shared.errors import MemoraError, ProviderUnavailable
from app.shared.result import Result

logger = logging.getLogger("Memora.Transcription.Pipeline")
tracer = get_tracer("Memora.Transcription.Pipeline")


class EmptyTranscript(MemoraError):
    """The provider answered but recognised no speech."""


class TranscriptionPipeline:

    def __init__(
        self,
        sources: SourcesRepository,
        storage: SupabaseStorage,
        provider: SpeechToTextProvider,
        indexer: IndexingCoordinator,
        config: TranscriptionConfig,
    ):
        self.sources = sources
        self.storage = storage
        self.provider = provider
        self.indexer = indexer
        self.config = config

    async def run(
        self,
        container_id: int,
        source_id: int,
        file_ref: str,
        name: str,
        kind: SourceKind = SourceKind.MEETING,
        language: Optional[str] = None,
        file_size: Optional[int] = None,
    ) -> Result[IndexResult]:
        """
        Transcribe one Source and index the result.

        Returns:
            Result carrying the IndexResult on success, or the error that
            stopped the transcription. Domain errors never propagate.
        """
        started = time.monotonic()
        with tracer.start_as_current_span("transcribe_source") as span:
            span.set_attribute("memora.container_id", container_id)
            span.set_attribute("memora.source_id", source_id)
            span.set_attribute("memora.provider", self.provider.name)

            logger.info(f"Transcription started for source {source_id} (space {container_id})")
            try:
                text = await self._transcribe(source_id, file_ref, language, file_size)
            except MemoraError as e:
                elapsed = time.monotonic() - started
                logger.warning(f"Transcription of source {source_id} failed after {elapsed:.1f}s: {e}")
                span.set_attribute("memora.transcription.error", str(e))
                await self._mark_error(source_id, str(e))
                return Result.failure(e)
            except Exception:
                await self._mark_error(source_id, "Internal error during transcription")
                raise

            index_result = await self._index(container_id, source_id, text, kind, name)
            logger.info(
                f"Transcription pipeline for source {source_id} finished in "
                f"{time.monotonic() - started:.1f}s ({index_result.fragment_count} fragments)"
            )
            return Result.success(index_result)

    async def _transcribe(
        self,
        source_id: int,
        file_ref: str,
        language: Optional[str],
        file_size: Optional[int],
    ) -> str:
        await self.sources.set_transcription_status(source_id, TranscriptionStatus.PROCESSING)

        url = await self.storage.get_readable_url(file_ref)

        timeout = self.config.timeout_for(file_size)
        try:
            result = await asyncio.wait_for(
                self.provider.transcribe(
                    url,
                    language=language or self.config.language,
                    diarize=True,
                    timeout=timeout,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise ProviderUnavailable(
                self.provider.name,
                f"transcription timed out after {timeout:.0f}s",
            ) from e

        text = normalizer.to_text(result)
        if not text:
            raise EmptyTranscript("Transcription returned no text")

        speakers = normalizer.speakers(result)
        words = normalizer.word_count(result)
        logger.info(
            f"Source {source_id}: {len(text)} chars, {result.duration_seconds}s, "
            f"{len(speakers)} speaker(s)"
        )
        await self.sources.save_transcript(
            source_id,
            content=text,
            duration_seconds=result.duration_seconds,
            language=result.detected_language,
            speakers=speakers,
            word_count=words,
            provider=self.provider.name,
        )
        return text

    async def _index(
        self,
        container_id: int,
        source_id: int,
        text: str,
        kind: SourceKind,
        name: str,
    ) -> IndexResult:
        try:
            result = await self.indexer.index(
                container_id, source_id, text, {"kind": kind.value, "name": name},
            )
        except Exception:
            await self._record_index_result(source_id, IndexResult(
                success=False, fragment_count=0, error="Internal error during indexing",
            ))
            raise
        await self._record_index_result(source_id, result)
        return result

    async def _record_index_result(self, source_id: int, result: IndexResult) -> None:
        try:
            await self.sources.record_index_result(
                source_id, result.success, result.fragment_count, result.error,
            )
        except MemoraError as e:
            logger.error(f"Could not record index result for source {source_id}: {e}")

    async def _mark_error(self, source_id: int, reason: str) -> None:
        try:
            await self.sources.set_transcription_status(source_id, TranscriptionStatus.ERROR, error=reason)
        except MemoraError as e:
            logger.error(f"Could not mark source {source_id} as failed: {e}")
