"""
Ingestion endpoints.

Each call persists synchronously and returns 202; transcription and indexing
continue in the background and report through the Source's status fields.
"""

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile
from typing import Optional

from app.api.dependencies import get_service
from app.api.models import (
    AcceptedResponse,
    DocumentIngestResponse,
    IngestMediaRequest,
    IngestTextRequest,
)
from app.features.ingestion import IngestionService

logger = logging.getLogger("Memora.API.Ingestion")
router = APIRouter(tags=["ingestion"])


@router.post("/spaces/{space_id}/sources/{source_id}/text", status_code=202, response_model=AcceptedResponse)
async def ingest_text(
    space_id: int,
    source_id: int,
    request: IngestTextRequest,
    service: IngestionService = Depends(get_service),
):
    await service.ingest_text(space_id, source_id, request.text)
    return AcceptedResponse(source_id=source_id, operation="index")


@router.post("/spaces/{space_id}/sources/{source_id}/media", status_code=202, response_model=AcceptedResponse)
async def ingest_media(
    space_id: int,
    source_id: int,
    request: IngestMediaRequest,
    service: IngestionService = Depends(get_service),
):
    await service.ingest_media(space_id, source_id, request.file_ref, language=request.language)
    return AcceptedResponse(source_id=source_id, operation="transcribe")


@router.post(
    "/spaces/{space_id}/sources/{source_id}/document",
    status_code=202,
    response_model=DocumentIngestResponse,
)
async def ingest_document(
    space_id: int,
    source_id: int,
    file: UploadFile = File(...),
    mime_type: Optional[str] = Form(None),
    service: IngestionService = Depends(get_service),
):
    """Extract text from an uploaded PDF, DOCX, Markdown or text file and index it."""
    content = await file.read()
    metadata = await service.ingest_document(
        space_id,
        source_id,
        content,
        file.filename or "document",
        mime_type or file.content_type,
    )
    return DocumentIngestResponse(source_id=source_id, operation="index", metadata=metadata)


@router.post("/sources/{source_id}/retranscribe", status_code=202, response_model=AcceptedResponse)
async def retranscribe(source_id: int, service: IngestionService = Depends(get_service)):
    await service.retranscribe(source_id)
    return AcceptedResponse(source_id=source_id, operation="transcribe")


@router.post("/sources/{source_id}/reindex", status_code=202, response_model=AcceptedResponse)
async def reindex(source_id: int, service: IngestionService = Depends(get_service)):
    await service.reindex(source_id)
    return AcceptedResponse(source_id=source_id, operation="index")
