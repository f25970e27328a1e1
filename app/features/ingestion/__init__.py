"""
Ingestion - entry points for text, documents, media and live capture.

Usage:
    from app.features.ingestion import get_ingestion_service

    service = await get_ingestion_service()
    await service.ingest_media(space_id, source_id)
"""

from app.features.ingestion.dispatcher import TaskDispatcher
from app.features.ingestion.service import (
    CaptureSession,
    CaptureStatus,
    IngestionService,
    build_ingestion_service,
    get_ingestion_service,
    shutdown_ingestion_service,
)

__all__ = [
    "TaskDispatcher",
    "CaptureSession",
    "CaptureStatus",
    "IngestionService",
    "build_ingestion_service",
    "get_ingestion_service",
    "shutdown_ingestion_service",
]
