"""Structured results and stream parts for difystream."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from difystream.core.errors import ErrorKind

FinishReason = Literal["stop", "tool-calls"]

PartKind = Literal[
    "text_start",
    "text_delta",
    "text_end",
    "reasoning_start",
    "reasoning_delta",
    "reasoning_end",
    "tool_call_start",
    "tool_call_delta",
    "tool_call_end",
    "tool_call",
    "response_metadata",
    "finish",
    "error",
]


@dataclass(frozen=True)
class ErrorPayload:
    kind: ErrorKind
    message: str
    details: dict[str, Any] | None = None

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.details:
            payload["details"] = self.details
        return payload


@dataclass(frozen=True)
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass(frozen=True)
class ToolCall:
    """A tool invocation found in the answer text.

    ``input`` is the compact JSON serialization of the call arguments.
    """

    id: str
    name: str
    input: str

    def as_dict(self) -> dict[str, str]:
        return {"id": self.id, "name": self.name, "input": self.input}


@dataclass(frozen=True)
class SessionIds:
    conversation_id: str | None = None
    message_id: str | None = None
    task_id: str | None = None

    def as_dict(self) -> dict[str, str]:
        data = {
            "conversation_id": self.conversation_id,
            "message_id": self.message_id,
            "task_id": self.task_id,
        }
        return {key: value for key, value in data.items() if value}


@dataclass(frozen=True)
class StreamPart:
    kind: PartKind
    data: dict[str, Any]
    ids: SessionIds = field(default_factory=SessionIds)

    @property
    def block_id(self) -> str | None:
        return self.data.get("id")

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"kind": self.kind, **self.data}
        ids = self.ids.as_dict()
        if ids:
            payload["ids"] = ids
        return payload


@dataclass(frozen=True)
class GenerateResult:
    """Outcome of converting one blocking-mode response."""

    content: list[dict[str, Any]]
    finish_reason: FinishReason
    usage: Usage
    ids: SessionIds
    response_id: str | None = None

    @property
    def text(self) -> str:
        return "".join(part["text"] for part in self.content if part["type"] == "text")

    @property
    def reasoning(self) -> str:
        return "".join(part["text"] for part in self.content if part["type"] == "reasoning")

    @property
    def tool_calls(self) -> list[ToolCall]:
        return [part["call"] for part in self.content if part["type"] == "tool_call"]
