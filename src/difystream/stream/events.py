"""Typed Dify stream events and their decoding."""

from __future__ import annotations

import json
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError

from difystream.core.errors import DifyStreamError, ErrorKind


class DifyEventBase(BaseModel):
    """Fields shared by every stream event; unknown fields are kept."""

    model_config = ConfigDict(extra="allow")

    event: str
    conversation_id: str | None = None
    message_id: str | None = None
    task_id: str | None = None
    created_at: float | None = None


class MessageEvent(DifyEventBase):
    event: Literal["message"]
    id: str | None = None
    answer: str
    from_variable_selector: list[str] | None = None


class AgentMessageEvent(DifyEventBase):
    event: Literal["agent_message"]
    id: str | None = None
    answer: str


class MessageReplaceEvent(DifyEventBase):
    event: Literal["message_replace"]
    answer: str


class UsageBreakdown(BaseModel):
    model_config = ConfigDict(extra="allow")

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class MessageEndMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    usage: UsageBreakdown | None = None


class MessageEndEvent(DifyEventBase):
    event: Literal["message_end"]
    id: str | None = None
    metadata: MessageEndMetadata | None = None
    files: list[Any] | None = None


class MessageFileEvent(DifyEventBase):
    event: Literal["message_file"]
    id: str | None = None
    type: str | None = None
    url: str | None = None
    belongs_to: str | None = None


class AgentThoughtEvent(DifyEventBase):
    event: Literal["agent_thought"]
    id: str | None = None
    position: int | None = None
    thought: str = ""
    observation: str = ""
    tool: str = ""
    tool_labels: dict[str, Any] = {}
    tool_input: str = ""
    message_files: list[Any] = []


class WorkflowData(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    workflow_id: str | None = None
    created_at: float | None = None


class WorkflowFinishedData(WorkflowData):
    total_tokens: int | None = None


class NodeData(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    node_id: str | None = None
    node_type: str | None = None


class WorkflowStartedEvent(DifyEventBase):
    event: Literal["workflow_started"]
    workflow_run_id: str | None = None
    data: WorkflowData | None = None


class WorkflowFinishedEvent(DifyEventBase):
    event: Literal["workflow_finished"]
    workflow_run_id: str | None = None
    data: WorkflowFinishedData | None = None


class NodeStartedEvent(DifyEventBase):
    event: Literal["node_started"]
    workflow_run_id: str | None = None
    data: NodeData | None = None


class NodeFinishedEvent(DifyEventBase):
    event: Literal["node_finished"]
    workflow_run_id: str | None = None
    data: NodeData | None = None


class TtsMessageEvent(DifyEventBase):
    event: Literal["tts_message"]
    audio: str = ""


class TtsMessageEndEvent(DifyEventBase):
    event: Literal["tts_message_end"]
    audio: str = ""


class PingEvent(DifyEventBase):
    event: Literal["ping"]


class ErrorEvent(DifyEventBase):
    event: Literal["error"]
    status: int | None = None
    code: str | None = None
    message: str = ""


class UnknownEvent(DifyEventBase):
    """Any event whose tag is not modelled above."""


DifyEvent = (
    MessageEvent
    | AgentMessageEvent
    | MessageReplaceEvent
    | MessageEndEvent
    | MessageFileEvent
    | AgentThoughtEvent
    | WorkflowStartedEvent
    | WorkflowFinishedEvent
    | NodeStartedEvent
    | NodeFinishedEvent
    | TtsMessageEvent
    | TtsMessageEndEvent
    | PingEvent
    | ErrorEvent
    | UnknownEvent
)

EVENT_MODELS: dict[str, type[DifyEventBase]] = {
    "message": MessageEvent,
    "agent_message": AgentMessageEvent,
    "message_replace": MessageReplaceEvent,
    "message_end": MessageEndEvent,
    "message_file": MessageFileEvent,
    "agent_thought": AgentThoughtEvent,
    "workflow_started": WorkflowStartedEvent,
    "workflow_finished": WorkflowFinishedEvent,
    "node_started": NodeStartedEvent,
    "node_finished": NodeFinishedEvent,
    "tts_message": TtsMessageEvent,
    "tts_message_end": TtsMessageEndEvent,
    "ping": PingEvent,
    "error": ErrorEvent,
}


@dataclass(frozen=True)
class DecodeFailure:
    """A wire payload that could not be decoded into a DifyEvent."""

    error: DifyStreamError
    raw: Any = None


DecodedEvent = DifyEvent | DecodeFailure


def _failure(message: str, raw: Any, cause: Exception | None = None) -> DecodeFailure:
    return DecodeFailure(error=DifyStreamError(ErrorKind.DECODE, message, cause), raw=raw)


def decode_event(raw: str | bytes | Mapping[str, Any]) -> DecodedEvent:
    """Decode one wire payload. Never raises; failures come back as DecodeFailure."""
    if isinstance(raw, (str, bytes)):
        try:
            payload = json.loads(raw)
        except (ValueError, RecursionError) as exc:
            # ValueError covers JSONDecodeError, UnicodeDecodeError and the
            # integer digit limit; RecursionError covers runaway nesting.
            return _failure(f"Invalid JSON in stream event: {exc}", raw, exc)
    else:
        payload = raw

    if not isinstance(payload, Mapping):
        return _failure(f"Stream event must be a JSON object, got {type(payload).__name__}.", raw)

    tag = payload.get("event")
    model = EVENT_MODELS.get(tag, UnknownEvent) if isinstance(tag, str) else UnknownEvent
    try:
        return model.model_validate(dict(payload))
    except ValidationError as exc:
        return _failure(f"Invalid {tag!r} stream event: {exc.error_count()} validation error(s).", raw, exc)


def _sse_data(line: str | bytes) -> str | None:
    if isinstance(line, bytes):
        line = line.decode("utf-8", errors="replace")
    line = line.rstrip("\r\n")
    if not line.startswith("data:"):
        return None
    data = line[len("data:") :]
    if data.startswith(" "):
        data = data[1:]
    return data


def iter_sse_events(lines: Iterable[str | bytes]) -> Iterator[DecodedEvent]:
    """Decode the ``data:`` payloads of a server-sent-events line stream."""
    for line in lines:
        data = _sse_data(line)
        if data is None or not data.strip():
            continue
        yield decode_event(data)


async def aiter_sse_events(lines: AsyncIterable[str | bytes]) -> AsyncIterator[DecodedEvent]:
    async for line in lines:
        data = _sse_data(line)
        if data is None or not data.strip():
            continue
        yield decode_event(data)
