"""difystream public API."""

from difystream.__about__ import __version__
from difystream.core import (
    DifyStreamError,
    ErrorKind,
    ErrorPayload,
    GenerateResult,
    SessionIds,
    StreamPart,
    StreamSettings,
    ToolCall,
    Usage,
    instrument_difystream,
)
from difystream.parsing import Segment, ThinkTagLexer, extract_tool_calls
from difystream.stream import (
    DecodeFailure,
    StreamCoordinator,
    convert_completion,
    decode_event,
    iter_sse_events,
)
from difystream.tools import ToolSpec, ToolsPrompt, format_tools_prompt, normalize_tools, tool_names

__all__ = [
    "DecodeFailure",
    "DifyStreamError",
    "ErrorKind",
    "ErrorPayload",
    "GenerateResult",
    "Segment",
    "SessionIds",
    "StreamCoordinator",
    "StreamPart",
    "StreamSettings",
    "ThinkTagLexer",
    "ToolCall",
    "ToolSpec",
    "ToolsPrompt",
    "Usage",
    "__version__",
    "convert_completion",
    "decode_event",
    "extract_tool_calls",
    "format_tools_prompt",
    "instrument_difystream",
    "iter_sse_events",
    "normalize_tools",
    "tool_names",
]
