"""Database Repositories - Organized data access."""

from app.features.database.repositories.sources import SourceRecord, SourcesRepository

__all__ = [
    "SourceRecord",
    "SourcesRepository",
]
