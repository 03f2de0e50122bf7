"""Result models for the fetcher subsystem."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(slots=True)
class FetchResult(Generic[T]):
    """Outcome of one fetch call.

    ``popped`` counts entries removed from Redis; ``skipped`` the ones that
    failed to decode and were dropped. Dropped entries are gone from the
    queue for good.
    """

    items: list[T] = field(default_factory=list)
    popped: int = 0
    skipped: int = 0

    @property
    def decoded(self) -> int:
        return len(self.items)

    @property
    def is_empty(self) -> bool:
        return self.popped == 0
