from __future__ import annotations

import pytest
from pydantic import BaseModel

from difystream import DifyStreamError, ErrorKind
from difystream.tools import ToolSpec, normalize_tools, tool_names


class GetWeather(BaseModel):
    """Look up the weather for a city."""

    city: str
    days: int = 1


def test_normalize_accepts_every_declaration_shape() -> None:
    tools = [
        ToolSpec("alpha", "first"),
        {"type": "function", "function": {"name": "beta", "description": "second", "parameters": {"type": "object"}}},
        {"type": "function", "name": "gamma", "inputSchema": {"type": "object", "properties": {}}},
        {"name": "delta", "parameters": {"type": "object"}},
        GetWeather,
    ]
    specs = normalize_tools(tools)
    assert [spec.name for spec in specs] == ["alpha", "beta", "gamma", "delta", "get_weather"]
    assert specs[1].description == "second"
    assert specs[2].parameters == {"type": "object", "properties": {}}
    assert specs[4].description == "Look up the weather for a city."
    assert specs[4].parameters["properties"]["city"]["type"] == "string"


def test_from_model_overrides() -> None:
    spec = ToolSpec.from_model(GetWeather, name="weather", description="")
    assert spec.name == "weather"
    assert spec.description == ""
    assert spec.schema()["function"]["name"] == "weather"


def test_tool_names_preserve_declaration_order() -> None:
    assert tool_names([ToolSpec("b"), ToolSpec("a")]) == ["b", "a"]
    assert tool_names(None) == []


def test_duplicate_names_are_rejected() -> None:
    with pytest.raises(DifyStreamError) as exc_info:
        normalize_tools([ToolSpec("same"), {"name": "same"}])
    assert exc_info.value.kind == ErrorKind.INVALID_INPUT


def test_missing_or_empty_names_are_rejected() -> None:
    with pytest.raises(DifyStreamError):
        normalize_tools([{"type": "function", "description": "nameless"}])
    with pytest.raises(DifyStreamError):
        normalize_tools([ToolSpec("  ")])


def test_unsupported_items_are_rejected() -> None:
    with pytest.raises(DifyStreamError) as exc_info:
        normalize_tools([42])
    assert "Unsupported tool type" in str(exc_info.value)
    with pytest.raises(DifyStreamError):
        normalize_tools({"name": "not-a-list"})
