"""
Database Feature Module - persistence for Sources.

Usage:
    from app.features.database import SourcesRepository

    sources = SourcesRepository(await get_supabase())
    await sources.set_transcription_status(42, TranscriptionStatus.PROCESSING)
"""

from app.features.database.repositories.sources import SourceRecord, SourcesRepository

__all__ = [
    "SourceRecord",
    "SourcesRepository",
]
