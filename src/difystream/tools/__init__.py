"""Tool declarations and prompt rendering for difystream."""

from difystream.tools.prompt import ToolsPrompt, format_tools_prompt
from difystream.tools.schema import ToolInput, ToolSpec, normalize_tools, tool_names

__all__ = [
    "ToolInput",
    "ToolSpec",
    "ToolsPrompt",
    "format_tools_prompt",
    "normalize_tools",
    "tool_names",
]
