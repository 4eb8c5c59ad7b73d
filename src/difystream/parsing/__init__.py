"""Text parsing helpers for difystream."""

from difystream.parsing.think import LexerState, Segment, ThinkTagLexer
from difystream.parsing.tool_calls import ExtractionResult, extract_tool_calls, iter_json_object_spans

__all__ = [
    "ExtractionResult",
    "LexerState",
    "Segment",
    "ThinkTagLexer",
    "extract_tool_calls",
    "iter_json_object_spans",
]
