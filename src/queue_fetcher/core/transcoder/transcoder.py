"""Transcoders - bidirectional conversion between values and stored strings.

Redis stores list elements as strings, so the contract is string based.
Implementations decide the format (JSON, msgpack + base64, compressed, ...);
the only law is that ``decode(encode(v)) == v`` for a single instance.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, PydanticSerializationUnexpectedValue

from queue_fetcher.core.transcoder.exceptions import DecodingError, EncodingError

T = TypeVar("T")


def _has_non_finite(data: Any) -> bool:
    """Return True if ``data`` holds NaN or an infinity anywhere."""
    if isinstance(data, float):
        return not math.isfinite(data)
    if isinstance(data, dict):
        return any(_has_non_finite(item) for item in data.values())
    if isinstance(data, (list, tuple, set, frozenset)):
        return any(_has_non_finite(item) for item in data)
    return False


class BaseTranscoder(ABC, Generic[T]):
    """Abstract encode/decode strategy for values of type ``T``.

    Implementations must be stateless once constructed so a single instance
    can be shared by concurrent fetches.
    """

    @abstractmethod
    def encode(self, value: T) -> str:
        """Convert ``value`` into a string suitable for storage.

        Raises:
            EncodingError: If the value cannot be represented.
        """

    @abstractmethod
    def decode(self, raw: str) -> T:
        """Rebuild a value from a string produced by :meth:`encode`.

        Raises:
            DecodingError: On malformed input or type mismatch. This is the
                only failure a fetcher treats as item-local; any other
                exception aborts the fetch and propagates.
        """


class JsonTranscoder(BaseTranscoder[T]):
    """Default transcoder: compact, human-readable JSON via pydantic.

    The target type can be anything pydantic validates (primitives,
    containers, dataclasses, TypedDicts, models). Without a target type
    values are plain JSON data.

    Example:
        >>> transcoder = JsonTranscoder(int)
        >>> transcoder.encode(42)
        '42'
        >>> transcoder.decode("42")
        42
    """

    def __init__(self, target: Any = Any):
        """Build the transcoder for ``target``.

        Args:
            target: Type to validate decoded payloads against.
        """
        self._target = target
        self._adapter: TypeAdapter[T] = TypeAdapter(target)

    @property
    def target(self) -> Any:
        """Type decoded values are validated against."""
        return self._target

    def encode(self, value: T) -> str:
        """Serialize ``value``, refusing anything :meth:`decode` could not restore.

        Type mismatches against the target and non-finite floats (which JSON
        would store as ``null``) raise ``EncodingError``.
        """
        context = {"target": repr(self._target)}
        try:
            plain = self._adapter.dump_python(value, warnings="error")
            if _has_non_finite(plain):
                raise EncodingError("Cannot encode NaN or infinite float", context=context)
            return self._adapter.dump_json(value, warnings="error").decode("utf-8")
        except (
            PydanticSerializationError,
            PydanticSerializationUnexpectedValue,
            TypeError,
            ValueError,
        ) as e:
            raise EncodingError(
                f"Cannot encode value of type {type(value).__name__}", context=context
            ) from e

    def decode(self, raw: str) -> T:
        try:
            return self._adapter.validate_json(raw)
        except ValidationError as e:
            raise DecodingError(
                f"Cannot decode payload as {self._target!r}",
                context={"errors": e.error_count()},
            ) from e

    def __repr__(self) -> str:
        return f"JsonTranscoder({self._target!r})"
