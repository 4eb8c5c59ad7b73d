"""Blocking-mode (non-streaming) response conversion."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from difystream.core.errors import DifyStreamError, ErrorKind
from difystream.core.results import GenerateResult, SessionIds, Usage
from difystream.core.settings import StreamSettings
from difystream.core.telemetry import span
from difystream.parsing.think import ThinkTagLexer
from difystream.parsing.tool_calls import extract_tool_calls
from difystream.stream.events import UsageBreakdown


class CompletionMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    usage: UsageBreakdown


class CompletionResponse(BaseModel):
    """Body of a ``response_mode="blocking"`` chat-messages reply."""

    model_config = ConfigDict(extra="allow")

    id: str
    answer: str
    task_id: str
    conversation_id: str
    message_id: str
    metadata: CompletionMetadata


def convert_completion(
    payload: Mapping[str, Any] | str | bytes,
    tool_names: Iterable[str] = (),
    *,
    settings: StreamSettings | None = None,
    id_generator: Callable[[], str] | None = None,
) -> GenerateResult:
    """Split a blocking answer into reasoning, text and tool calls."""
    try:
        if isinstance(payload, (str, bytes)):
            response = CompletionResponse.model_validate_json(payload)
        else:
            response = CompletionResponse.model_validate(dict(payload))
    except ValidationError as exc:
        raise DifyStreamError(ErrorKind.DECODE, "Invalid blocking completion response.", exc) from exc

    settings = settings or StreamSettings()
    with span("convert_completion", message_id=response.message_id):
        lexer = ThinkTagLexer(settings.open_tag, settings.close_tag)
        segments = lexer.reset(response.answer) + lexer.flush()
        reasoning = "".join(segment.content for segment in segments if segment.kind == "reasoning")
        extraction = extract_tool_calls(lexer.accumulated_text, tool_names, id_generator)

    content: list[dict[str, Any]] = []
    if reasoning:
        content.append({"type": "reasoning", "text": reasoning})
    if extraction.cleaned_text:
        content.append({"type": "text", "text": extraction.cleaned_text})
    for call in extraction.calls:
        content.append({"type": "tool_call", "call": call})

    usage = response.metadata.usage
    return GenerateResult(
        content=content,
        finish_reason="tool-calls" if extraction.calls else "stop",
        usage=Usage(
            input_tokens=usage.prompt_tokens,
            output_tokens=usage.completion_tokens,
            total_tokens=usage.total_tokens,
        ),
        ids=SessionIds(response.conversation_id, response.message_id, response.task_id),
        response_id=response.id,
    )
