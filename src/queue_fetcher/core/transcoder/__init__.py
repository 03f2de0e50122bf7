"""Transcoder module.

Converts queued values to and from their stored string form.
"""

from queue_fetcher.core.transcoder.exceptions import DecodingError, EncodingError, TranscoderError
from queue_fetcher.core.transcoder.transcoder import BaseTranscoder, JsonTranscoder

__all__ = [
    "BaseTranscoder",
    "JsonTranscoder",
    "TranscoderError",
    "EncodingError",
    "DecodingError",
]
