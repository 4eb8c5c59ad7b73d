"""Render declared tools as a prompt section for models without native tool calling."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from difystream.tools.schema import ToolInput, ToolSpec, normalize_tools

PROMPT_HEADER = "\n\n# Tools\nCall tools with JSON format:\n\n"

SHORT_DESCRIPTIONS: dict[str, str] = {
    "question": "Ask the user a question",
    "bash": "Execute a bash command",
    "read": "Read a file",
    "glob": "Find files by pattern",
    "grep": "Search file contents with regex",
    "edit": "Edit a file with string replacement",
    "write": "Write/create a file",
    "task": "Launch a sub-agent for complex tasks",
    "webfetch": "Fetch content from a URL",
    "todowrite": "Create/manage a task list",
    "skill": "Load a specialized skill",
}

_MAX_DESCRIPTION = 60
_MAX_NESTED_PROPERTIES = 3
_SENTENCE_END = re.compile(r"[.!?。]")
_LINE_BREAKS = re.compile(r"[\r\n]+")


@dataclass(frozen=True)
class ToolsPrompt:
    prompt_text: str
    tool_names: list[str]


def placeholder(schema: Any) -> str:
    """Example JSON value for a parameter schema."""
    if not isinstance(schema, dict):
        return '"..."'
    schema_type = schema.get("type")
    if schema_type == "array":
        return f"[{placeholder(schema.get('items'))}]"
    if schema_type == "object":
        properties = schema.get("properties")
        if not isinstance(properties, dict) or not properties:
            return "{}"
        entries = list(properties.items())[:_MAX_NESTED_PROPERTIES]
        return "{" + ", ".join(f'"{key}": {placeholder(value)}' for key, value in entries) + "}"
    if schema_type in ("number", "integer"):
        return "0"
    if schema_type == "boolean":
        return "true"
    return '"..."'


def short_description(name: str, description: str | None = None) -> str:
    if name in SHORT_DESCRIPTIONS:
        return SHORT_DESCRIPTIONS[name]
    if not description:
        return name
    first_sentence = _SENTENCE_END.split(_LINE_BREAKS.sub(" ", description), maxsplit=1)[0]
    return first_sentence.strip()[:_MAX_DESCRIPTION] or name


def _describe(spec: ToolSpec) -> str:
    properties = spec.parameters.get("properties")
    params = ""
    if isinstance(properties, dict):
        params = ", ".join(f'"{key}": {placeholder(value)}' for key, value in properties.items())
    summary = short_description(spec.name, spec.description)
    return f'- {spec.name}: {summary}\n  {{"name": "{spec.name}", "arguments": {{{params}}}}}'


def format_tools_prompt(tools: ToolInput) -> ToolsPrompt:
    specs = normalize_tools(tools, strict=False)
    if not specs:
        return ToolsPrompt(prompt_text="", tool_names=[])
    body = "\n".join(_describe(spec) for spec in specs)
    return ToolsPrompt(prompt_text=PROMPT_HEADER + body, tool_names=[spec.name for spec in specs])
