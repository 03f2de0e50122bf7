"""Exception classes for transcoder operations.

Both errors are raised per value. The fetcher treats ``DecodingError`` as an
expected, item-local condition and never lets it escape a fetch call.
"""


class TranscoderError(Exception):
    """Base exception for transcoder errors."""

    def __init__(self, message: str, *, context: dict | None = None):
        """Initialize the exception.

        Args:
            message: Error description.
            context: Optional diagnostic context for tracing.
        """
        super().__init__(message)
        self.context = context or {}


class EncodingError(TranscoderError):
    """Raised when a value cannot be represented as a string."""


class DecodingError(TranscoderError):
    """Raised when a stored string cannot be turned back into a value.

    Covers both syntax errors and type mismatches.
    """
