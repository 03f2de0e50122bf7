"""Batch fetcher for Redis-backed task queues."""

from queue_fetcher.core.fetcher.errors import (
    ConfigurationError,
    FetcherError,
    InfrastructureError,
    MissingClientError,
)
from queue_fetcher.core.fetcher.fetch_models import FetchResult
from queue_fetcher.core.fetcher.fetcher import (
    DEFAULT_BATCH_SIZE,
    BaseFetcher,
    FetcherConfig,
    RedisFetcher,
)

__all__ = [
    "BaseFetcher",
    "ConfigurationError",
    "DEFAULT_BATCH_SIZE",
    "FetchResult",
    "FetcherConfig",
    "FetcherError",
    "InfrastructureError",
    "MissingClientError",
    "RedisFetcher",
]
