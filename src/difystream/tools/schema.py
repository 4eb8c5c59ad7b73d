"""Tool declarations for difystream."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, NoReturn, TypeVar

from pydantic import BaseModel

from difystream.core.errors import DifyStreamError, ErrorKind

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _to_snake_case(name: str) -> str:
    return "".join(["_" + c.lower() if c.isupper() else c for c in name]).lstrip("_")


def _raise_invalid(message: str) -> NoReturn:
    raise DifyStreamError(ErrorKind.INVALID_INPUT, message)


@dataclass(frozen=True)
class ToolSpec:
    """A tool the model may call by emitting ``{"name": ..., "arguments": ...}``."""

    name: str
    description: str = ""
    parameters: dict[str, Any] = field(default_factory=dict)

    def schema(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    @classmethod
    def from_model(
        cls,
        model: type[ModelT],
        *,
        name: str | None = None,
        description: str | None = None,
    ) -> ToolSpec:
        """Declare a tool whose arguments are described by a Pydantic model."""
        tool_name = name or _to_snake_case(model.__name__)
        tool_description = description if description is not None else (model.__doc__ or "")
        return cls(name=tool_name, description=tool_description.strip(), parameters=model.model_json_schema())


ToolInput = Sequence[Any] | None


def _spec_from_mapping(item: Mapping[str, Any]) -> ToolSpec | None:
    tool_type = item.get("type", "function")
    if tool_type != "function":
        logger.debug("Skipping non-function tool declaration of type %r", tool_type)
        return None

    function = item.get("function")
    if isinstance(function, Mapping):
        # OpenAI chat-completions shape.
        source: Mapping[str, Any] = function
        parameters = function.get("parameters")
    else:
        source = item
        parameters = item.get("inputSchema", item.get("parameters"))

    name = source.get("name")
    if not isinstance(name, str):
        _raise_invalid("Tool declaration must include a string name.")
    description = source.get("description")
    return ToolSpec(
        name=name,
        description=description if isinstance(description, str) else "",
        parameters=dict(parameters) if isinstance(parameters, Mapping) else {},
    )


def _normalize_tool_item(item: Any) -> ToolSpec | None:
    if isinstance(item, ToolSpec):
        return item
    if isinstance(item, Mapping):
        return _spec_from_mapping(item)
    if isinstance(item, type) and issubclass(item, BaseModel):
        return ToolSpec.from_model(item)
    _raise_invalid(f"Unsupported tool type: {type(item)}")


def normalize_tools(tools: ToolInput, *, strict: bool = True) -> list[ToolSpec]:
    """Normalize tool-like objects into ToolSpec records, preserving order.

    With ``strict=False`` unreadable declarations are skipped with a warning
    and duplicate names are kept instead of raising.
    """
    if not tools:
        return []
    if isinstance(tools, (str, bytes, Mapping)):
        if not strict:
            logger.warning("Ignoring tools given as %s instead of a sequence", type(tools).__name__)
            return []
        _raise_invalid("Tools must be a sequence of tool declarations.")

    specs: list[ToolSpec] = []
    seen_names: set[str] = set()
    for item in tools:
        try:
            spec = _normalize_tool_item(item)
            if spec is not None and not spec.name.strip():
                _raise_invalid("Tool name cannot be empty.")
        except DifyStreamError as exc:
            if strict:
                raise
            logger.warning("Skipping tool declaration: %s", exc.message)
            continue
        if spec is None:
            continue
        if spec.name in seen_names and strict:
            _raise_invalid(f"Duplicate tool name: {spec.name}")
        seen_names.add(spec.name)
        specs.append(spec)
    return specs


def tool_names(tools: ToolInput) -> list[str]:
    """Ordered allow-list of declared tool names."""
    return [spec.name for spec in normalize_tools(tools)]
