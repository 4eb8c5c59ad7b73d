"""Core primitives for difystream."""

from difystream.core.errors import DifyStreamError, ErrorKind
from difystream.core.results import ErrorPayload, GenerateResult, SessionIds, StreamPart, ToolCall, Usage
from difystream.core.settings import StreamSettings
from difystream.core.telemetry import instrument_difystream, span

__all__ = [
    "DifyStreamError",
    "ErrorKind",
    "ErrorPayload",
    "GenerateResult",
    "SessionIds",
    "StreamPart",
    "StreamSettings",
    "ToolCall",
    "Usage",
    "instrument_difystream",
    "span",
]
