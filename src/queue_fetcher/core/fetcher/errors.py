"""Errors for the fetcher subsystem."""

from redis.exceptions import RedisError


class FetcherError(Exception):
    """Base class for fetcher errors."""


class ConfigurationError(FetcherError):
    """Raised when a fetcher cannot be assembled from the given options."""


class MissingClientError(ConfigurationError):
    """Raised when no Redis client is supplied."""


# Connectivity and command failures surface as the client's own exceptions.
# The alias lets callers catch that category without importing redis.
InfrastructureError = RedisError
