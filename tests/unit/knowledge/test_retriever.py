"""Tests for SemanticSearchService."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import openai
import pytest

from app.core.config import ChunkingConfig
from app.features.knowledge.indexer import IndexingCoordinator
from app.features.knowledge.retriever import SemanticSearchService
from app.features.knowledge.vector_index import VectorIndexService
from app.shared.errors import ValidationError

CONTENT = "The budget was approved. Hiring starts in March. The offsite moves to Lyon."


@pytest.fixture
def search_service(vector_index, embeddings):
    return SemanticSearchService(vector_index, embeddings)


async def index_content(vector_index, embeddings):
    coordinator = IndexingCoordinator(vector_index, embeddings, ChunkingConfig(target_size=25, overlap=0, boundary_window=10))
    result = await coordinator.index(1, 5, CONTENT, {"kind": "meeting", "name": "Planning"})
    assert result.success


@pytest.mark.asyncio
async def test_exact_fragment_text_is_top_hit(search_service, vector_index, embeddings):
    await index_content(vector_index, embeddings)

    response = await search_service.search(1, "Hiring starts in March.", top_k=3)

    assert response.available
    assert response.hits[0].text == "Hiring starts in March."
    assert response.hits[0].source_id == 5
    assert response.hits[0].kind == "meeting"
    assert len(response.hits) <= 3


@pytest.mark.asyncio
async def test_query_is_stripped_before_embedding(search_service, vector_index, embeddings):
    await index_content(vector_index, embeddings)

    response = await search_service.search(1, "  Hiring starts in March.  ")

    assert response.hits[0].text == "Hiring starts in March."


@pytest.mark.asyncio
async def test_unknown_container_returns_no_hits(search_service):
    response = await search_service.search(404, "anything")

    assert response.available
    assert response.hits == []


@pytest.mark.asyncio
@pytest.mark.parametrize("query,top_k", [("", 5), ("   ", 5), ("ok", 0), ("ok", 51)])
async def test_invalid_requests(search_service, query, top_k):
    with pytest.raises(ValidationError):
        await search_service.search(1, query, top_k=top_k)


@pytest.mark.asyncio
async def test_embedding_outage_degrades(vector_index, embeddings, openai_client):
    openai_client.embeddings.create.side_effect = openai.OpenAIError("down")

    response = await SemanticSearchService(vector_index, embeddings).search(1, "budget")

    assert not response.available
    assert response.hits == []
    assert "openai" in response.error


@pytest.mark.asyncio
async def test_vector_database_outage_degrades(qdrant_config, embeddings):
    client = MagicMock()
    client.collection_exists = AsyncMock(side_effect=ConnectionError("connection refused"))

    response = await SemanticSearchService(VectorIndexService(qdrant_config, client), embeddings).search(1, "budget")

    assert not response.available
    assert "qdrant" in response.error


@pytest.mark.asyncio
async def test_embedding_dimension_drift_degrades(vector_index, embeddings, openai_client):
    openai_client.embeddings.create.side_effect = None
    openai_client.embeddings.create.return_value = SimpleNamespace(
        data=[SimpleNamespace(index=0, embedding=[0.5, 0.5, 0.5, 0.5])]
    )

    response = await SemanticSearchService(vector_index, embeddings).search(1, "budget", top_k=3)

    assert not response.available
    assert response.hits == []
    assert "4 dimensions" in response.error
