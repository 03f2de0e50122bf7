"""Extractor module.

Provides the atomic batch-pop primitive run against Redis lists.
"""

from queue_fetcher.core.extractor.extract_command import (
    DEFAULT_EXTRACT_COMMAND,
    POP_BATCH_SCRIPT,
    BaseExtractCommand,
    LuaExtractCommand,
    RawEntry,
)

__all__ = [
    "BaseExtractCommand",
    "LuaExtractCommand",
    "DEFAULT_EXTRACT_COMMAND",
    "POP_BATCH_SCRIPT",
    "RawEntry",
]
