from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """Liveness only; does not touch Supabase, Qdrant or any provider."""
    return {"status": "healthy", "service": "memora-ingestion-service"}
