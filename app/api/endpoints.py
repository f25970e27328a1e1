from fastapi import APIRouter

from app.api.routes import capture, health, ingestion, knowledge


router = APIRouter()

router.include_router(ingestion.router)
router.include_router(capture.router)
router.include_router(knowledge.router)
router.include_router(health.router)
