"""Integration tests against a live Redis server.

Set ``REDIS_URL`` (for example ``redis://localhost:6379/15``) to run them.
"""

import asyncio
import os
import uuid

import pytest
import pytest_asyncio
import redis.asyncio as aioredis
from redis.asyncio.retry import Retry
from redis.backoff import NoBackoff
from redis.exceptions import ConnectionError as RedisConnectionError

from queue_fetcher.core.fetcher import InfrastructureError, RedisFetcher
from queue_fetcher.core.transcoder import JsonTranscoder

REDIS_URL = os.getenv("REDIS_URL")

pytestmark = pytest.mark.skipif(not REDIS_URL, reason="REDIS_URL not set")


@pytest_asyncio.fixture
async def redis_client():
    """Provide a live client; closed after the test."""
    client = aioredis.from_url(REDIS_URL, decode_responses=True)
    await client.ping()
    yield client
    await client.aclose()


@pytest.fixture
def queue_key():
    """Provide a unique list key per test."""
    return f"fetcher.domain.com::{uuid.uuid4().hex}"


@pytest.mark.asyncio
async def test_success_fetch(redis_client, queue_key):
    transcoder = JsonTranscoder()
    fetcher = RedisFetcher(client=redis_client, transcoder=transcoder)
    tasks = [{"id": 1, "data": "task1"}, {"id": 2, "data": "task2"}, {"id": 3, "data": "task3"}]
    for task in tasks:
        await redis_client.rpush(queue_key, transcoder.encode(task))

    assert await fetcher.fetch(queue_key) == tasks
    assert await redis_client.exists(queue_key) == 0


@pytest.mark.asyncio
async def test_empty_list(redis_client, queue_key):
    fetcher = RedisFetcher(client=redis_client)

    assert await fetcher.fetch(queue_key) == []


@pytest.mark.asyncio
async def test_malformed_then_valid(redis_client, queue_key):
    fetcher = RedisFetcher(client=redis_client)
    await redis_client.rpush(queue_key, "{broken", '{"id":2}')

    assert await fetcher.fetch(queue_key) == [{"id": 2}]
    assert await redis_client.llen(queue_key) == 0


@pytest.mark.asyncio
async def test_batch_limit_and_concurrency(redis_client, queue_key):
    fetcher = RedisFetcher(client=redis_client, batch_size=9)
    await redis_client.rpush(queue_key, *[str(n) for n in range(60)])

    batches = await asyncio.gather(*(fetcher.fetch(queue_key) for _ in range(10)))

    seen = [item for batch in batches for item in batch]
    assert all(len(batch) <= 9 for batch in batches)
    assert sorted(seen) == list(range(60))


@pytest.mark.asyncio
async def test_script_reloaded_after_flush(redis_client, queue_key):
    fetcher = RedisFetcher(client=redis_client)
    await redis_client.script_flush()
    await redis_client.rpush(queue_key, '"only"')

    assert await fetcher.fetch(queue_key) == ["only"]


@pytest.mark.asyncio
async def test_unreachable_server():
    client = aioredis.Redis(
        host="127.0.0.1", port=1, socket_connect_timeout=0.5, retry=Retry(NoBackoff(), 0)
    )
    fetcher = RedisFetcher(client=client)

    try:
        with pytest.raises(RedisConnectionError) as exc_info:
            await fetcher.fetch("fetcher.domain.com::unreachable", timeout=5)
        assert isinstance(exc_info.value, InfrastructureError)
    finally:
        await client.aclose()
