"""Test helpers and shared constants."""

import asyncio
import hashlib
from collections import deque

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import NoScriptError

TEST_KEY = "fetcher.domain.com::test_tasks"


class FakeAsyncRedis:
    """In-process stand-in for ``redis.asyncio.Redis`` list and script commands.

    ``evalsha`` plays the role of the server running the pop-batch script:
    it pops up to ``ARGV[1]`` entries across ``KEYS`` while holding a lock,
    so concurrent calls never interleave. Unknown digests raise
    ``NoScriptError`` like a real server with an empty script cache.
    """

    def __init__(self, *, as_bytes: bool = False, latency: float = 0.0):
        """Create an empty stand-in.

        Args:
            as_bytes: Return bytes replies, like a client without decode_responses.
            latency: Seconds to sleep before each script evaluation.
        """
        self.lists: dict[str, deque[str]] = {}
        self.scripts: dict[str, str] = {}
        self.as_bytes = as_bytes
        self.latency = latency
        self.closed = False
        self.evalsha_calls = 0
        self.script_load_calls = 0
        self._lock = asyncio.Lock()

    async def rpush(self, key: str, *values: str) -> int:
        self._ensure_open()
        queue = self.lists.setdefault(key, deque())
        queue.extend(values)
        return len(queue)

    async def llen(self, key: str) -> int:
        self._ensure_open()
        return len(self.lists.get(key, ()))

    async def script_load(self, source: str) -> str:
        self._ensure_open()
        self.script_load_calls += 1
        sha = hashlib.sha1(source.encode("utf-8")).hexdigest()
        self.scripts[sha] = source
        return sha

    async def evalsha(self, sha: str, numkeys: int, *keys_and_args):
        self._ensure_open()
        self.evalsha_calls += 1
        if sha not in self.scripts:
            raise NoScriptError("No matching script. Please use EVAL.")
        keys = keys_and_args[:numkeys]
        max_count = int(keys_and_args[numkeys])

        if self.latency:
            await asyncio.sleep(self.latency)
        else:
            await asyncio.sleep(0)

        async with self._lock:
            popped: list[str] = []
            for key in keys:
                queue = self.lists.get(key)
                while queue and len(popped) < max_count:
                    popped.append(queue.popleft())
                if len(popped) >= max_count:
                    break
        if self.as_bytes:
            return [entry.encode("utf-8") for entry in popped]
        return popped

    async def aclose(self) -> None:
        self.closed = True

    def _ensure_open(self) -> None:
        if self.closed:
            raise RedisConnectionError("Connection closed by server.")
