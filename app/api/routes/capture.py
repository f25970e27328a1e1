"""Live-meeting capture endpoints: start a bot, poll it, stop it, read its transcript."""

import logging

from fastapi import APIRouter, Depends

from app.api.dependencies import get_service
from app.api.models import (
    BotTranscriptResponse,
    CaptureRequest,
    CaptureSessionResponse,
    CaptureStatusResponse,
)
from app.features.ingestion import IngestionService

logger = logging.getLogger("Memora.API.Capture")
router = APIRouter(tags=["capture"])


@router.post("/spaces/{space_id}/capture", status_code=201, response_model=CaptureSessionResponse)
async def start_capture(
    space_id: int,
    request: CaptureRequest,
    service: IngestionService = Depends(get_service),
):
    session = await service.capture_live_meeting(
        space_id, request.meeting_url, request.display_name, request.title,
    )
    return CaptureSessionResponse(bot_id=session.bot_id, source_id=session.source_id, platform=session.platform)


@router.get("/capture/{bot_id}", response_model=CaptureStatusResponse)
async def capture_status(bot_id: str, service: IngestionService = Depends(get_service)):
    """Current bot state; the UI polls this every few seconds."""
    status = await service.get_capture_status(bot_id)
    return CaptureStatusResponse(
        bot_id=bot_id,
        state=status.state.value,
        is_terminal=status.state.is_terminal,
        code=status.code,
        message=status.message,
        source_id=status.source_id,
        transcription_status=status.transcription_status.value if status.transcription_status else None,
    )


@router.post("/capture/{bot_id}/stop", status_code=202)
async def stop_capture(bot_id: str, service: IngestionService = Depends(get_service)):
    await service.stop_capture(bot_id)
    return {"status": "stopping", "bot_id": bot_id}


@router.get("/capture/{bot_id}/transcript", response_model=BotTranscriptResponse)
async def bot_transcript(bot_id: str, service: IngestionService = Depends(get_service)):
    return BotTranscriptResponse(bot_id=bot_id, transcript=await service.fetch_bot_transcript(bot_id))
