"""Batch-extraction commands executed atomically by Redis.

A command pops at most ``max_count`` elements from the head of the given
lists in a single server-side step, so two concurrent callers never receive
the same element.
"""

from __future__ import annotations

import hashlib
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from redis.exceptions import NoScriptError

logger = logging.getLogger(__name__)

RawEntry = str

# KEYS: lists to drain, in order. ARGV[1]: max elements across all keys.
POP_BATCH_SCRIPT = """
local max_tasks = tonumber(ARGV[1])
local tasks = {}

if not max_tasks or max_tasks <= 0 then
    return tasks
end

for _, key in ipairs(KEYS) do
    while #tasks < max_tasks do
        local task = redis.call('LPOP', key)
        if not task then
            break
        end
        table.insert(tasks, task)
    end
    if #tasks >= max_tasks then
        break
    end
end

return tasks
"""


class BaseExtractCommand(ABC):
    """Abstract atomic "pop up to N" operation."""

    async def run(self, client: Any, keys: Sequence[str], max_count: int) -> list[RawEntry]:
        """Pop up to ``max_count`` raw entries from ``keys``.

        Returns an empty list without touching the server when there is
        nothing to ask for. Server and connection errors propagate as-is.
        """
        if max_count <= 0 or not keys:
            return []
        reply = await self._execute(client, list(keys), max_count)
        return self._normalize(reply)

    @abstractmethod
    async def _execute(self, client: Any, keys: list[str], max_count: int) -> Any:
        """Run the pop operation and return the raw server reply."""

    @staticmethod
    def _normalize(reply: Any) -> list[RawEntry]:
        if not reply:
            return []
        if not isinstance(reply, (list, tuple)):
            logger.debug("Unexpected extract reply type %s; ignoring.", type(reply).__name__)
            return []
        entries: list[RawEntry] = []
        undecodable = 0
        for entry in reply:
            if isinstance(entry, bytes):
                # Clients built without decode_responses=True reply with bytes.
                try:
                    entry = entry.decode("utf-8")
                except UnicodeDecodeError:
                    undecodable += 1
                    continue
            if isinstance(entry, str):
                entries.append(entry)
        if undecodable:
            logger.warning("Dropped %d popped entries that are not valid UTF-8.", undecodable)
        return entries


class LuaExtractCommand(BaseExtractCommand):
    """Runs a Lua pop script through ``EVALSHA``.

    The digest is computed locally; when the server does not know the script
    yet (fresh server, ``SCRIPT FLUSH``, failover) it is loaded and the call
    is retried once. Custom sources must honour the same contract: ``KEYS``
    are the lists, ``ARGV[1]`` the maximum count, and the reply an array.
    """

    def __init__(self, source: str = POP_BATCH_SCRIPT):
        """Create a command for the given Lua source.

        Args:
            source: Lua script body.

        Raises:
            ValueError: If the source is empty.
        """
        if not isinstance(source, str) or not source.strip():
            raise ValueError("Lua extract script must be a non-empty string")
        self._source = source
        self._sha = hashlib.sha1(source.encode("utf-8")).hexdigest()

    @classmethod
    def from_file(cls, path: str | Path) -> LuaExtractCommand:
        """Load a custom Lua script from ``path``."""
        source = Path(path).read_text(encoding="utf-8")
        logger.debug("Loaded extract script from %s", path)
        return cls(source)

    @property
    def source(self) -> str:
        return self._source

    @property
    def sha(self) -> str:
        return self._sha

    async def _execute(self, client: Any, keys: list[str], max_count: int) -> Any:
        try:
            return await client.evalsha(self._sha, len(keys), *keys, max_count)
        except NoScriptError:
            logger.warning("Extract script %s missing from server cache; loading it.", self._sha)
            await client.script_load(self._source)
            return await client.evalsha(self._sha, len(keys), *keys, max_count)

    def __repr__(self) -> str:
        return f"LuaExtractCommand(sha={self._sha[:12]})"


DEFAULT_EXTRACT_COMMAND = LuaExtractCommand()
