"""
Knowledge endpoints: semantic search and index removal.

Search never fails because the vector database or the embedding provider is
down; it answers 200 with `available=false` so the page can still render.
"""

import logging

from fastapi import APIRouter, Depends, Response

from app.api.dependencies import get_service
from app.api.models import SearchHitModel, SearchRequest, SearchResponseModel
from app.features.ingestion import IngestionService

logger = logging.getLogger("Memora.API.Knowledge")
router = APIRouter(tags=["knowledge"])


@router.post("/spaces/{space_id}/search", response_model=SearchResponseModel)
async def search(
    space_id: int,
    request: SearchRequest,
    service: IngestionService = Depends(get_service),
):
    response = await service.search(space_id, request.query, request.top_k)
    results = [
        SearchHitModel(
            source_id=hit.source_id,
            kind=hit.kind,
            name=hit.name,
            position=hit.position,
            text=hit.text,
            score=hit.score,
        )
        for hit in response.hits
    ]
    return SearchResponseModel(
        query=request.query,
        available=response.available,
        results=results,
        total=len(results),
        error=response.error,
    )


@router.delete("/spaces/{space_id}/sources/{source_id}/index", status_code=204)
async def remove_source_index(space_id: int, source_id: int, service: IngestionService = Depends(get_service)):
    await service.remove_source(space_id, source_id)
    return Response(status_code=204)


@router.delete("/spaces/{space_id}/index", status_code=204)
async def remove_space_index(space_id: int, service: IngestionService = Depends(get_service)):
    await service.remove_container(space_id)
    return Response(status_code=204)
