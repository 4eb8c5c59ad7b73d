"""Convert decoded Dify stream events into normalized stream parts."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator, Callable, Iterable, Iterator
from typing import Any

from difystream.core.errors import ErrorKind
from difystream.core.results import ErrorPayload, PartKind, SessionIds, StreamPart, Usage
from difystream.core.settings import StreamSettings
from difystream.core.telemetry import span
from difystream.parsing.common import as_token_count, field, generate_id
from difystream.parsing.think import Segment, ThinkTagLexer
from difystream.parsing.tool_calls import extract_tool_calls
from difystream.stream.events import (
    AgentMessageEvent,
    DecodedEvent,
    DecodeFailure,
    DifyEventBase,
    ErrorEvent,
    MessageEndEvent,
    MessageEvent,
    MessageReplaceEvent,
    WorkflowFinishedEvent,
)

logger = logging.getLogger(__name__)


def normalize_usage(event: MessageEndEvent | WorkflowFinishedEvent) -> Usage:
    """Reconcile the two end-of-turn usage shapes.

    ``workflow_finished`` reports one aggregate count, attributed to output;
    ``message_end`` reports prompt/completion/total separately.
    """
    if isinstance(event, WorkflowFinishedEvent):
        total = as_token_count(field(event.data, "total_tokens"))
        return Usage(input_tokens=0, output_tokens=total, total_tokens=total)

    usage = field(event.metadata, "usage")
    return Usage(
        input_tokens=as_token_count(field(usage, "prompt_tokens")),
        output_tokens=as_token_count(field(usage, "completion_tokens")),
        total_tokens=as_token_count(field(usage, "total_tokens")),
    )


class StreamCoordinator:
    """Per-request state machine turning upstream events into stream parts.

    One coordinator serves exactly one in-flight request. Feed it events in
    arrival order through :meth:`process_event`; each call returns the parts
    that event produced. ``process_event`` never raises.
    """

    def __init__(
        self,
        tool_names: Iterable[str] = (),
        *,
        settings: StreamSettings | None = None,
        id_generator: Callable[[], str] | None = None,
    ) -> None:
        self._settings = settings or StreamSettings()
        self._tool_names = list(tool_names)
        self._id_generator = id_generator or generate_id
        self._lexer = ThinkTagLexer(self._settings.open_tag, self._settings.close_tag)
        self.conversation_id: str | None = None
        self.message_id: str | None = None
        self.task_id: str | None = None
        self.text_open = False
        self.reasoning_open = False
        self.ever_opened = False
        self.finished = False

    @property
    def tool_names(self) -> list[str]:
        return list(self._tool_names)

    @property
    def ids(self) -> SessionIds:
        return SessionIds(self.conversation_id, self.message_id, self.task_id)

    def process_event(self, event: DecodedEvent) -> list[StreamPart]:
        parts: list[StreamPart] = []
        try:
            self._dispatch(event, parts)
        except Exception as exc:
            logger.warning("Failed to process stream event: %r", exc)
            parts.append(self._error_part(ErrorPayload(ErrorKind.UNKNOWN, f"Failed to process stream event: {exc}")))
        return parts

    def abort(self) -> list[StreamPart]:
        """Handle an upstream feed that ended without a terminal event.

        Lenient by default: nothing is emitted, an open block stays open and
        buffered tag text is dropped. With ``close_on_abort`` the lexer is
        flushed and the open block is closed, without a finish part.
        """
        if self.finished:
            return []
        if not self._settings.close_on_abort:
            if self._lexer.pending:
                logger.debug("Feed ended early; dropping buffered tag text %r", self._lexer.pending)
            return []
        parts: list[StreamPart] = []
        for segment in self._lexer.flush():
            self._apply_segment(segment, parts)
        self._close_open_block(parts)
        return parts

    def stream_parts(self, events: Iterable[DecodedEvent]) -> Iterator[StreamPart]:
        for event in events:
            yield from self.process_event(event)
        if not self.finished:
            yield from self.abort()

    async def astream_parts(self, events: AsyncIterable[DecodedEvent]) -> AsyncIterator[StreamPart]:
        async for event in events:
            for part in self.process_event(event):
                yield part
        if not self.finished:
            for part in self.abort():
                yield part

    def _dispatch(self, event: DecodedEvent, parts: list[StreamPart]) -> None:
        if isinstance(event, DecodeFailure):
            logger.warning("Undecodable stream event: %s", event.error)
            details = {"cause": repr(event.error.cause)} if event.error.cause else None
            parts.append(self._error_part(ErrorPayload(ErrorKind.DECODE, event.error.message, details)))
            return
        if not isinstance(event, DifyEventBase):
            raise TypeError(f"Unsupported stream event type: {type(event).__name__}")

        self._capture_ids(event)
        if self.finished and isinstance(event, (MessageEvent, AgentMessageEvent, MessageReplaceEvent)):
            logger.debug("Ignoring %r after the session already finished", event.event)
        elif isinstance(event, (MessageEvent, AgentMessageEvent)):
            self._on_delta(event, parts)
        elif isinstance(event, MessageReplaceEvent):
            self._on_replace(event, parts)
        elif isinstance(event, (MessageEndEvent, WorkflowFinishedEvent)):
            self._on_terminal(event, parts)
        elif isinstance(event, ErrorEvent):
            self._on_error(event, parts)
        else:
            # agent_thought repeats streamed content; ping, files, tts and
            # workflow progress carry nothing to emit.
            logger.debug("Ignoring %r stream event", event.event)

    def _capture_ids(self, event: DifyEventBase) -> None:
        if event.conversation_id:
            self.conversation_id = event.conversation_id
        if event.message_id:
            self.message_id = event.message_id
        if event.task_id:
            self.task_id = event.task_id

    def _on_delta(self, event: MessageEvent | AgentMessageEvent, parts: list[StreamPart]) -> None:
        if event.answer:
            for segment in self._lexer.feed(event.answer):
                self._apply_segment(segment, parts)
        if event.id:
            parts.append(self._part("response_metadata", {"id": event.id}))

    def _on_replace(self, event: MessageReplaceEvent, parts: list[StreamPart]) -> None:
        self._lexer.reset(event.answer)
        self._close_open_block(parts)
        self._open_text(parts)
        if event.answer:
            parts.append(self._part("text_delta", {"id": self._settings.text_block_id, "delta": event.answer}))

    def _on_error(self, event: ErrorEvent, parts: list[StreamPart]) -> None:
        details: dict[str, Any] = {}
        if event.code:
            details["code"] = event.code
        if event.status is not None:
            details["status"] = event.status
        message = event.message or "Upstream reported an error."
        if event.code:
            message = f"{message} (code={event.code})"
        logger.warning("Upstream stream error: %s", message)
        parts.append(self._error_part(ErrorPayload(ErrorKind.UPSTREAM, message, details or None)))

    def _on_terminal(self, event: MessageEndEvent | WorkflowFinishedEvent, parts: list[StreamPart]) -> None:
        if self.finished:
            logger.debug("Ignoring %r after the session already finished", event.event)
            return

        with span("finalize", terminal_event=event.event, tool_count=len(self._tool_names)):
            for segment in self._lexer.flush():
                self._apply_segment(segment, parts)

            extraction = extract_tool_calls(self._lexer.accumulated_text, self._tool_names, self._id_generator)
            self._close_open_block(parts)
            if not self.ever_opened and not extraction.calls:
                self._open_text(parts)
                self._close_open_block(parts)

            for call in extraction.calls:
                parts.append(self._part("tool_call_start", {"id": call.id, "tool_name": call.name}))
                parts.append(self._part("tool_call_delta", {"id": call.id, "delta": call.input}))
                parts.append(self._part("tool_call_end", {"id": call.id}))
                parts.append(self._part("tool_call", {"id": call.id, "call": call}))

            usage = normalize_usage(event)
            parts.append(
                self._part(
                    "finish",
                    {
                        "finish_reason": "tool-calls" if extraction.calls else "stop",
                        "usage": usage,
                        "text": extraction.cleaned_text,
                    },
                )
            )
            self.finished = True

    def _apply_segment(self, segment: Segment, parts: list[StreamPart]) -> None:
        if not segment.content:
            return
        if segment.kind == "reasoning":
            if self.text_open:
                self._close_text(parts)
            if not self.reasoning_open:
                self._open_reasoning(parts)
            parts.append(
                self._part("reasoning_delta", {"id": self._settings.reasoning_block_id, "delta": segment.content})
            )
            return

        if self.reasoning_open:
            self._close_reasoning(parts)
        if not self.text_open:
            self._open_text(parts)
        parts.append(self._part("text_delta", {"id": self._settings.text_block_id, "delta": segment.content}))

    def _open_text(self, parts: list[StreamPart]) -> None:
        self.text_open = True
        self.ever_opened = True
        parts.append(self._part("text_start", {"id": self._settings.text_block_id}))

    def _close_text(self, parts: list[StreamPart]) -> None:
        self.text_open = False
        parts.append(self._part("text_end", {"id": self._settings.text_block_id}))

    def _open_reasoning(self, parts: list[StreamPart]) -> None:
        self.reasoning_open = True
        self.ever_opened = True
        parts.append(self._part("reasoning_start", {"id": self._settings.reasoning_block_id}))

    def _close_reasoning(self, parts: list[StreamPart]) -> None:
        self.reasoning_open = False
        parts.append(self._part("reasoning_end", {"id": self._settings.reasoning_block_id}))

    def _close_open_block(self, parts: list[StreamPart]) -> None:
        if self.text_open:
            self._close_text(parts)
        if self.reasoning_open:
            self._close_reasoning(parts)

    def _part(self, kind: PartKind, data: dict[str, Any]) -> StreamPart:
        return StreamPart(kind, data, self.ids)

    def _error_part(self, error: ErrorPayload) -> StreamPart:
        return self._part("error", {"error": error})
