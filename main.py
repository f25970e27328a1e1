import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from app.api.endpoints import router
from app.core.tracing import instrument_app, setup_tracing, shutdown_tracing
from app.features.ingestion import shutdown_ingestion_service
from app.services.http_client import http_client_manager
from app.shared.correlation import CorrelationMiddleware
from app.shared.errors import MemoraError, exception_response, get_correlation_id, internal_error
from app.shared.logging_config import setup_logging

SERVICE_NAME = "memora-ingestion-service"

setup_logging(service_name=SERVICE_NAME)
logger = logging.getLogger("Memora.Main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_tracing(SERVICE_NAME)
    await http_client_manager.startup()
    yield
    # Let in-flight ingestion finish before the HTTP pool goes away
    await shutdown_ingestion_service()
    await http_client_manager.shutdown()
    shutdown_tracing()


app = FastAPI(
    title="Memora Ingestion Service",
    description="Transcription, indexing and semantic search for Memora knowledge spaces",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(CorrelationMiddleware)
instrument_app(app)


@app.exception_handler(MemoraError)
async def memora_error_handler(request: Request, exc: MemoraError):
    if exc.status_code >= 500:
        logger.warning(f"{request.method} {request.url.path} failed: {exc}")
    return exception_response(exc, correlation_id=get_correlation_id(request))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return internal_error(correlation_id=get_correlation_id(request))


app.include_router(router, prefix="/api/v1")


@app.get("/")
async def root():
    return {"message": "Memora Ingestion Service Running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
