"""Minimal hello-world demo: push typed jobs to Redis and drain them in batches.

Needs a running Redis server; set REDIS_URL to point at it
(default: redis://localhost:6379/0).
"""

from __future__ import annotations

import asyncio
import os
import sys
from dataclasses import dataclass
from pathlib import Path

# Allow running directly from the repo without installing the package.
REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

import redis.asyncio as aioredis  # noqa: E402

from queue_fetcher.core.fetcher import RedisFetcher  # noqa: E402
from queue_fetcher.core.transcoder import JsonTranscoder  # noqa: E402

QUEUE_KEY = "hello_fetcher::jobs"


@dataclass
class Job:
    """Work item produced by the demo."""

    id: int
    sentence: str


async def main() -> int:
    client = aioredis.from_url(os.getenv("REDIS_URL", "redis://localhost:6379/0"), decode_responses=True)
    transcoder = JsonTranscoder(Job)
    fetcher = RedisFetcher(client=client, transcoder=transcoder, batch_size=2)

    try:
        sentences = ["Dario ha i capelli biondi", "Dario ha gli occhi verdi", "Fine"]
        print(f"[hello] pushing {len(sentences)} jobs and one malformed entry")
        for index, sentence in enumerate(sentences, start=1):
            await client.rpush(QUEUE_KEY, transcoder.encode(Job(id=index, sentence=sentence)))
        await client.rpush(QUEUE_KEY, "{not a job")

        while True:
            result = await fetcher.fetch_result(QUEUE_KEY, timeout=2.0)
            if result.is_empty:
                break
            for job in result.items:
                print(f'[batch] job {job.id}: "{job.sentence}"')
            if result.skipped:
                print(f"[batch] dropped {result.skipped} malformed entr(y/ies)")
    finally:
        await client.aclose()

    print("[done] queue drained")
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
