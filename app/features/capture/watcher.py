"""
Capture watcher - polls a meeting bot until it finishes, then hands the
recording to the media ingestion path.

Runs as a background task per bot. State changes are written to the meeting
Source's metadata so the UI can show them; a failed bot or a watch that
exceeds `max_wait` puts the Source's transcription status in `error`, as does
a bot the provider no longer knows or a recording that cannot be ingested.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from app.features.capture.bot import BotState, BotStatus, CaptureBotService
from app.features.database.repositories.sources import SourcesRepository
from app.shared.constants import BOT_STATE_KEY, TranscriptionStatus
from app.shared.errors import CaptureTimeout, MemoraError, ProviderUnavailable

logger = logging.getLogger("Memora.Capture.Watcher")

# (container_id, source_id, recording_url)
RecordingHandler = Callable[[int, int, str], Awaitable[None]]


class CaptureWatcher:

    def __init__(
        self,
        bots: CaptureBotService,
        sources: SourcesRepository,
        on_recording: RecordingHandler,
        poll_interval: float = 5.0,
        max_wait: float = 4 * 60 * 60,
    ):
        self.bots = bots
        self.sources = sources
        self.on_recording = on_recording
        self.poll_interval = poll_interval
        self.max_wait = max_wait

    async def watch(self, bot_id: str, container_id: int, source_id: int) -> BotState:
        """
        Poll until the bot is terminal, then ingest or fail the Source.

        Returns:
            The last observed state (UNKNOWN if the provider never answered)
        """
        try:
            status = await self._poll_until_terminal(bot_id, source_id)
        except CaptureTimeout as e:
            logger.warning(str(e))
            await self._stop_quietly(bot_id)
            await self._fail(source_id, str(e))
            return BotState.UNKNOWN
        except MemoraError as e:
            logger.warning(f"Bot {bot_id}: watch aborted: {e}")
            await self._stop_quietly(bot_id)
            await self._fail(source_id, f"Capture bot lost: {e}")
            return BotState.UNKNOWN

        if status.state is BotState.FAILED:
            reason = f"Capture bot failed ({status.code})"
            if status.message:
                reason += f": {status.message}"
            await self._fail(source_id, reason)
            return status.state

        try:
            url = await self.bots.fetch_recording_url(bot_id)
        except MemoraError as e:
            await self._fail(source_id, str(e))
            return status.state

        logger.info(f"Bot {bot_id}: recording available, ingesting into source {source_id}")
        try:
            await self.on_recording(container_id, source_id, url)
        except MemoraError as e:
            logger.error(f"Bot {bot_id}: could not ingest recording into source {source_id}: {e}")
            await self._fail(source_id, f"Recording could not be ingested: {e}")
        return status.state

    async def _poll_until_terminal(self, bot_id: str, source_id: int) -> BotStatus:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.max_wait
        last_state: Optional[BotState] = None

        while True:
            try:
                status = await self.bots.poll_status(bot_id)
            except ProviderUnavailable as e:
                # Transient; keep polling until the deadline
                logger.warning(f"Bot {bot_id}: status poll failed: {e}")
                status = None

            if status is not None:
                if status.state is not last_state:
                    logger.info(f"Bot {bot_id}: {last_state.value if last_state else '-'} -> {status.state.value}")
                    last_state = status.state
                    await self._record_state(source_id, status.state)
                if status.state.is_terminal:
                    return status

            if loop.time() >= deadline:
                raise CaptureTimeout(
                    f"Bot {bot_id} did not finish within {self.max_wait:.0f}s",
                    details={"bot_id": bot_id, "last_state": last_state.value if last_state else None},
                )
            await asyncio.sleep(self.poll_interval)

    async def _record_state(self, source_id: int, state: BotState) -> None:
        try:
            await self.sources.update_metadata(source_id, {BOT_STATE_KEY: state.value})
        except MemoraError as e:
            logger.warning(f"Could not record bot state on source {source_id}: {e}")

    async def _fail(self, source_id: int, reason: str) -> None:
        try:
            await self.sources.set_transcription_status(source_id, TranscriptionStatus.ERROR, error=reason)
        except MemoraError as e:
            logger.error(f"Could not mark source {source_id} as failed: {e}")

    async def _stop_quietly(self, bot_id: str) -> None:
        try:
            await self.bots.stop(bot_id)
        except MemoraError as e:
            logger.warning(f"Could not stop bot {bot_id}: {e}")
