"""Tests for VectorIndexService against an in-memory Qdrant."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from qdrant_client import models

from app.core.config import QdrantConfig
from app.features.knowledge.models import Fragment
from app.features.knowledge.vector_index import VectorIndexService, collection_name, point_id
from app.shared.errors import ConfigurationError, ProviderUnavailable

from conftest import DIMENSIONS, fake_vector


def fragments(*texts):
    return [Fragment(text=t, position=i) for i, t in enumerate(texts)]


async def stored_ids(client, container_id):
    points, _ = await client.scroll(collection_name=collection_name(container_id), limit=100)
    return {p.id for p in points}


# --- point ids ---

def test_point_id_layout():
    assert [point_id(42, p) for p in range(3)] == [420000, 420001, 420002]
    assert point_id(0, 0) == 0


def test_point_ids_never_collide_across_sources():
    ids = {point_id(s, p) for s in range(5) for p in (0, 1, 9999)}
    assert len(ids) == 15


@pytest.mark.parametrize("position", [-1, 10_000, 12_345])
def test_point_id_rejects_out_of_range_positions(position):
    with pytest.raises(ValueError):
        point_id(42, position)


def test_collection_name():
    assert collection_name(7) == "memora-space-7"


# --- collection lifecycle ---

@pytest.mark.asyncio
async def test_ensure_collection_is_idempotent(vector_index):
    first = await vector_index.ensure_collection(1)
    second = await vector_index.ensure_collection(1)

    assert first.ok and first.value is True
    assert second.ok and second.value is False


@pytest.mark.asyncio
async def test_ensure_collection_rejects_dimension_drift(qdrant_config, qdrant_client):
    await qdrant_client.create_collection(
        collection_name=collection_name(3),
        vectors_config=models.VectorParams(size=DIMENSIONS * 2, distance=models.Distance.COSINE),
    )
    service = VectorIndexService(qdrant_config, qdrant_client)

    result = await service.ensure_collection(3)

    assert not result.ok
    assert isinstance(result.error, ConfigurationError)


@pytest.mark.asyncio
async def test_delete_collection(vector_index, qdrant_client):
    await vector_index.ensure_collection(5)

    assert (await vector_index.delete_collection(5)).value is True
    assert (await vector_index.delete_collection(5)).value is False
    assert not await qdrant_client.collection_exists(collection_name(5))


# --- upsert / delete ---

@pytest.mark.asyncio
async def test_upsert_writes_payload_and_stable_ids(vector_index, qdrant_client):
    await vector_index.ensure_collection(1)
    frags = fragments("alpha", "beta")

    result = await vector_index.upsert(1, 42, frags, [fake_vector(f.text) for f in frags], {"kind": "text", "name": "Notes"})

    assert result.value == 2
    points = await qdrant_client.retrieve(collection_name(1), ids=[420001], with_payload=True)
    assert points[0].payload == {
        "source_id": 42,
        "container_id": 1,
        "kind": "text",
        "name": "Notes",
        "position": 1,
        "text": "beta",
    }


@pytest.mark.asyncio
async def test_upsert_in_batches(qdrant_client):
    config = QdrantConfig(dimensions=DIMENSIONS, upsert_batch_size=2)
    service = VectorIndexService(config, qdrant_client)
    await service.ensure_collection(1)
    frags = fragments("a", "b", "c", "d", "e")

    result = await service.upsert(1, 9, frags, [fake_vector(f.text) for f in frags])

    assert result.value == 5
    assert await stored_ids(qdrant_client, 1) == {90000, 90001, 90002, 90003, 90004}


@pytest.mark.asyncio
async def test_upsert_rejects_mismatched_vectors(vector_index):
    with pytest.raises(ValueError):
        await vector_index.upsert(1, 1, fragments("a", "b"), [fake_vector("a")])


@pytest.mark.asyncio
async def test_delete_by_source_only_touches_that_source(vector_index, qdrant_client):
    await vector_index.ensure_collection(1)
    await vector_index.upsert(1, 1, fragments("one"), [fake_vector("one")])
    await vector_index.upsert(1, 2, fragments("two", "three"), [fake_vector("two"), fake_vector("three")])

    result = await vector_index.delete_by_source(1, 2)

    assert result.ok
    assert await stored_ids(qdrant_client, 1) == {10000}


@pytest.mark.asyncio
async def test_delete_by_source_on_missing_collection_succeeds(vector_index):
    result = await vector_index.delete_by_source(99, 1)
    assert result.ok


# --- search ---

@pytest.mark.asyncio
async def test_search_on_missing_collection_is_empty(vector_index):
    result = await vector_index.search(99, fake_vector("anything"))
    assert result.ok
    assert result.value == []


@pytest.mark.asyncio
async def test_search_ranks_exact_match_first(vector_index):
    await vector_index.ensure_collection(1)
    frags = fragments("budget review", "hiring plan", "offsite logistics")
    await vector_index.upsert(1, 4, frags, [fake_vector(f.text) for f in frags], {"kind": "meeting", "name": "Weekly"})

    result = await vector_index.search(1, fake_vector("hiring plan"), top_k=3)

    hits = result.unwrap()
    assert hits[0].text == "hiring plan"
    assert hits[0].source_id == 4
    assert hits[0].position == 1
    assert hits[0].name == "Weekly"
    assert hits[0].score == pytest.approx(1.0, abs=1e-4)
    assert [h.score for h in hits] == sorted((h.score for h in hits), reverse=True)
    assert all(h.score >= 0.3 for h in hits)


# --- outages ---

def unreachable_client():
    client = MagicMock()
    client.collection_exists = AsyncMock(side_effect=ConnectionError("connection refused"))
    return client


@pytest.mark.asyncio
@pytest.mark.parametrize("call", [
    lambda s: s.ensure_collection(1),
    lambda s: s.delete_by_source(1, 1),
    lambda s: s.search(1, fake_vector("q")),
    lambda s: s.delete_collection(1),
])
async def test_outage_becomes_failed_result(qdrant_config, call):
    service = VectorIndexService(qdrant_config, unreachable_client())

    result = await call(service)

    assert not result.ok
    assert isinstance(result.error, ProviderUnavailable)
    assert result.error.provider == "qdrant"
