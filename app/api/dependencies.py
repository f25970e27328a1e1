from app.features.ingestion import IngestionService, get_ingestion_service


async def get_service() -> IngestionService:
    """Provide the shared ingestion service to request handlers."""
    return await get_ingestion_service()
