"""Dify stream decoding and conversion."""

from difystream.stream.coordinator import StreamCoordinator, normalize_usage
from difystream.stream.events import (
    DecodedEvent,
    DecodeFailure,
    DifyEvent,
    aiter_sse_events,
    decode_event,
    iter_sse_events,
)
from difystream.stream.generate import CompletionResponse, convert_completion

__all__ = [
    "CompletionResponse",
    "DecodeFailure",
    "DecodedEvent",
    "DifyEvent",
    "StreamCoordinator",
    "aiter_sse_events",
    "convert_completion",
    "decode_event",
    "iter_sse_events",
    "normalize_usage",
]
