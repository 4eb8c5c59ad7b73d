from __future__ import annotations

from typing import Any

from difystream.core.results import StreamPart
from difystream.stream.events import (
    AgentThoughtEvent,
    ErrorEvent,
    MessageEndEvent,
    MessageEvent,
    MessageReplaceEvent,
    PingEvent,
    WorkflowFinishedEvent,
    decode_event,
)


def make_message(answer: str, *, event_id: str | None = None, **ids: Any) -> MessageEvent:
    payload: dict[str, Any] = {"event": "message", "answer": answer, **ids}
    if event_id is not None:
        payload["id"] = event_id
    return MessageEvent.model_validate(payload)


def make_replace(answer: str, **ids: Any) -> MessageReplaceEvent:
    return MessageReplaceEvent.model_validate({"event": "message_replace", "answer": answer, **ids})


def make_message_end(prompt: int, completion: int, total: int, **ids: Any) -> MessageEndEvent:
    usage = {"prompt_tokens": prompt, "completion_tokens": completion, "total_tokens": total}
    return MessageEndEvent.model_validate({"event": "message_end", "id": "msg_end", "metadata": {"usage": usage}, **ids})


def make_workflow_finished(total: int | None, **ids: Any) -> WorkflowFinishedEvent:
    data: dict[str, Any] = {"id": "wf1", "workflow_id": "wfid1", "created_at": 1625097600000}
    if total is not None:
        data["total_tokens"] = total
    return WorkflowFinishedEvent.model_validate(
        {"event": "workflow_finished", "workflow_run_id": "wfr1", "data": data, **ids}
    )


def make_error(message: str, *, code: str | None = None, status: int | None = None) -> ErrorEvent:
    return ErrorEvent.model_validate({"event": "error", "message": message, "code": code, "status": status})


def make_agent_thought(thought: str) -> AgentThoughtEvent:
    return AgentThoughtEvent.model_validate({"event": "agent_thought", "thought": thought, "position": 1})


def make_ping() -> PingEvent:
    return PingEvent.model_validate({"event": "ping"})


def make_undecodable():
    return decode_event("not-json")


def compact_parts(parts: list[StreamPart]) -> list[tuple[str, Any]]:
    compact: list[tuple[str, Any]] = []
    for part in parts:
        if part.kind in ("text_delta", "reasoning_delta", "tool_call_delta"):
            compact.append((part.kind, part.data["delta"]))
        elif part.kind == "tool_call":
            call = part.data["call"]
            compact.append((part.kind, (call.id, call.name, call.input)))
        elif part.kind == "finish":
            compact.append((part.kind, (part.data["finish_reason"], part.data["usage"].as_dict())))
        elif part.kind == "error":
            compact.append((part.kind, part.data["error"].kind.value))
        else:
            compact.append((part.kind, part.data.get("id")))
    return compact


def kinds(parts: list[StreamPart]) -> list[str]:
    return [part.kind for part in parts]


def assert_well_formed(parts: list[StreamPart]) -> None:
    """Every block start is closed before another block starts, and nothing dangles."""
    open_channel: str | None = None
    for part in parts:
        channel, _, phase = part.kind.partition("_")
        if channel not in ("text", "reasoning"):
            continue
        if phase == "start":
            assert open_channel is None, f"{part.kind} while {open_channel} is open"
            open_channel = channel
        elif phase == "delta":
            assert open_channel == channel, f"{part.kind} outside its block"
        elif phase == "end":
            assert open_channel == channel, f"{part.kind} without matching start"
            open_channel = None
    assert open_channel is None, f"{open_channel} block left open"
