"""Fetchers - drain bounded batches of typed tasks from Redis lists.

A fetch pops up to ``batch_size`` raw entries in one atomic server-side step,
then decodes them in pop order. Entries that fail to decode are dropped:
they are already gone from Redis and are neither re-queued nor reported as
errors. Connection, command, timeout and cancellation failures propagate
unchanged and no partial result is returned.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from queue_fetcher.core.extractor import DEFAULT_EXTRACT_COMMAND, BaseExtractCommand, LuaExtractCommand
from queue_fetcher.core.fetcher.errors import ConfigurationError, MissingClientError
from queue_fetcher.core.fetcher.fetch_models import FetchResult
from queue_fetcher.core.settings.settings import Settings
from queue_fetcher.core.transcoder import BaseTranscoder, DecodingError, JsonTranscoder

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 1000


@dataclass(frozen=True, slots=True)
class FetcherConfig:
    """Immutable wiring of a fetcher, validated once by :meth:`build`."""

    client: Any
    transcoder: BaseTranscoder
    extract_command: BaseExtractCommand
    batch_size: int = DEFAULT_BATCH_SIZE
    timeout: float | None = None

    @classmethod
    def build(
        cls,
        *,
        client: Any = None,
        transcoder: BaseTranscoder | None = None,
        extract_command: BaseExtractCommand | None = None,
        batch_size: int | None = None,
        timeout: float | None = None,
    ) -> FetcherConfig:
        """Validate options and fill defaults.

        Args:
            client: Async Redis client (``redis.asyncio.Redis`` or cluster). Mandatory.
            transcoder: Decoder for stored entries. Defaults to ``JsonTranscoder()``.
            extract_command: Atomic pop operation. Defaults to the built-in Lua pop loop.
            batch_size: Max items per fetch. ``None`` or non-positive means 1000.
            timeout: Default deadline in seconds for a fetch. ``None`` or
                non-positive means no deadline.

        Raises:
            MissingClientError: If ``client`` is None.
            ConfigurationError: If ``batch_size`` or ``timeout`` is not a number.
            TypeError: If the transcoder or command does not implement its base class.
        """
        if client is None:
            raise MissingClientError("Redis client is empty")

        if transcoder is None:
            transcoder = JsonTranscoder()
        elif not isinstance(transcoder, BaseTranscoder):
            raise TypeError("Transcoder does not implement BaseTranscoder")

        if extract_command is None:
            extract_command = DEFAULT_EXTRACT_COMMAND
        elif not isinstance(extract_command, BaseExtractCommand):
            raise TypeError("Extract command does not implement BaseExtractCommand")

        if batch_size is not None and (isinstance(batch_size, bool) or not isinstance(batch_size, int)):
            raise ConfigurationError(f"Batch size must be an integer, got {batch_size!r}")
        if batch_size is None or batch_size <= 0:
            batch_size = DEFAULT_BATCH_SIZE

        if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, (int, float))):
            raise ConfigurationError(f"Timeout must be a number of seconds, got {timeout!r}")
        if timeout is not None and timeout <= 0:
            timeout = None

        return cls(
            client=client,
            transcoder=transcoder,
            extract_command=extract_command,
            batch_size=batch_size,
            timeout=timeout,
        )


class BaseFetcher(ABC, Generic[T]):
    """Contract for components that pull tasks of type ``T`` from a source."""

    @abstractmethod
    async def fetch(self, keys: str | Sequence[str], *, timeout: float | None = None) -> list[T]:
        """Retrieve a batch of tasks from the lists identified by ``keys``."""


class RedisFetcher(BaseFetcher[T]):
    """Redis-list backed fetcher.

    The instance is immutable after construction and can be shared by any
    number of concurrent tasks. The client belongs to the caller and is never
    closed here.

    Example:
        >>> client = redis.asyncio.Redis(decode_responses=True)
        >>> fetcher = RedisFetcher(client=client, transcoder=JsonTranscoder(Job))
        >>> jobs = await fetcher.fetch("jobs:pending", timeout=2.0)
    """

    def __init__(
        self,
        *,
        client: Any,
        transcoder: BaseTranscoder[T] | None = None,
        extract_command: BaseExtractCommand | None = None,
        batch_size: int | None = None,
        timeout: float | None = None,
    ):
        self._config = FetcherConfig.build(
            client=client,
            transcoder=transcoder,
            extract_command=extract_command,
            batch_size=batch_size,
            timeout=timeout,
        )
        logger.debug(
            "RedisFetcher created (batch_size=%d, transcoder=%r, command=%r).",
            self._config.batch_size,
            self._config.transcoder,
            self._config.extract_command,
        )

    @classmethod
    def from_settings(
        cls,
        client: Any,
        settings: Settings | None = None,
        *,
        transcoder: BaseTranscoder[T] | None = None,
    ) -> RedisFetcher[T]:
        """Build a fetcher from the ``fetcher`` configuration section.

        Args:
            client: Async Redis client owned by the caller.
            settings: Configuration source. A fresh ``Settings()`` reading
                the environment is used when omitted.
            transcoder: Optional transcoder; configuration cannot express one.
        """
        settings = settings or Settings()
        script_path = settings.get_fetcher_config("script_path")
        extract_command = LuaExtractCommand.from_file(script_path) if script_path else None
        return cls(
            client=client,
            transcoder=transcoder,
            extract_command=extract_command,
            batch_size=settings.get_fetcher_config("batch_size"),
            timeout=settings.get_fetcher_config("timeout"),
        )

    @property
    def config(self) -> FetcherConfig:
        return self._config

    @property
    def batch_size(self) -> int:
        return self._config.batch_size

    @property
    def transcoder(self) -> BaseTranscoder[T]:
        return self._config.transcoder

    async def fetch(self, keys: str | Sequence[str], *, timeout: float | None = None) -> list[T]:
        """Pop and decode up to ``batch_size`` tasks, oldest first.

        Args:
            keys: One list key or several, drained in the given order.
            timeout: Deadline in seconds for the Redis round trip; defaults to
                the configured timeout.

        Returns:
            Decoded tasks in pop order. Empty when the lists are empty or
            every popped entry was malformed.

        Raises:
            ValueError: If no key is given.
            TimeoutError: If the deadline expires before Redis answers.
            asyncio.CancelledError: If the calling task is cancelled.
            redis.exceptions.RedisError: On connection or script failures.
            Exception: Whatever the transcoder raises other than
                ``DecodingError``; the popped batch is lost in that case.
        """
        result = await self.fetch_result(keys, timeout=timeout)
        return result.items

    async def fetch_result(
        self, keys: str | Sequence[str], *, timeout: float | None = None
    ) -> FetchResult[T]:
        """Like :meth:`fetch`, also reporting how many entries were dropped."""
        key_list = self._normalize_keys(keys)
        deadline = timeout if timeout is not None else self._config.timeout

        async with asyncio.timeout(deadline):
            raw_entries = await self._config.extract_command.run(
                self._config.client, key_list, self._config.batch_size
            )

        result: FetchResult[T] = FetchResult(popped=len(raw_entries))
        transcoder = self._config.transcoder
        for raw in raw_entries:
            try:
                result.items.append(transcoder.decode(raw))
            except DecodingError:
                # Entry is already popped; one bad payload must not cost the batch.
                result.skipped += 1

        if result.skipped:
            logger.warning(
                "Dropped %d of %d entries popped from %s that failed to decode.",
                result.skipped,
                result.popped,
                key_list,
            )
        logger.debug("Fetched %d/%d entries from %s.", result.decoded, result.popped, key_list)
        return result

    @staticmethod
    def _normalize_keys(keys: str | Sequence[str]) -> list[str]:
        if isinstance(keys, str):
            keys = [keys]
        key_list = list(keys)
        if not key_list:
            raise ValueError("At least one queue key is required")
        for key in key_list:
            if not isinstance(key, str) or not key:
                raise ValueError(f"Invalid queue key: {key!r}")
        return key_list
