"""Incremental lexer separating reasoning markup from answer text."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

from difystream.__about__ import DEFAULT_CLOSE_TAG, DEFAULT_OPEN_TAG

SegmentKind = Literal["plain", "reasoning"]


class LexerState(Enum):
    PLAIN = "plain"
    OPEN_CANDIDATE = "open_candidate"
    REASONING = "reasoning"
    CLOSE_CANDIDATE = "close_candidate"


@dataclass(frozen=True)
class Segment:
    """A classified run of characters."""

    kind: SegmentKind
    content: str


class ThinkTagLexer:
    """Split a chunked text stream into plain and reasoning segments.

    The lexer is fed arbitrary chunks of one answer. A single reasoning block,
    delimited by ``open_tag`` and ``close_tag``, is recognized; once it closes,
    later opening tags are ordinary text. Tags may be split across chunks.

    Text inside double-quoted strings is never scanned for tags, so JSON
    payloads whose string values mention the tag literals pass through intact.
    A leading run of whitespace before the first visible character is dropped.
    """

    def __init__(self, open_tag: str = DEFAULT_OPEN_TAG, close_tag: str = DEFAULT_CLOSE_TAG) -> None:
        self._open_tag = open_tag
        self._close_tag = close_tag
        self._clear()

    def _clear(self) -> None:
        self._state = LexerState.PLAIN
        self._buffer = ""
        self._started = False
        self._closed = False
        self._in_string = False
        self._escape = False
        self._plain_parts: list[str] = []

    @property
    def state(self) -> LexerState:
        return self._state

    @property
    def pending(self) -> str:
        """Text held back while a tag match is in progress."""
        return self._buffer

    @property
    def accumulated_text(self) -> str:
        """All plain text emitted so far, trimmed."""
        return "".join(self._plain_parts).strip()

    def feed(self, chunk: str) -> list[Segment]:
        segments: list[Segment] = []
        for char in chunk:
            if not self._started:
                if char.isspace():
                    continue
                self._started = True
            self._step(char, segments)
        self._record_plain(segments)
        return segments

    def flush(self) -> list[Segment]:
        """Release a partially matched tag as content of the current kind."""
        if not self._buffer:
            return []
        segments: list[Segment] = []
        self._release_buffer(segments)
        self._record_plain(segments)
        return segments

    def reset(self, text: str) -> list[Segment]:
        """Forget everything and lex ``text`` as a fresh answer."""
        self._clear()
        return self.feed(text)

    def _current_kind(self) -> SegmentKind:
        if self._state in (LexerState.REASONING, LexerState.CLOSE_CANDIDATE):
            return "reasoning"
        return "plain"

    def _step(self, char: str, segments: list[Segment]) -> None:
        if self._in_string:
            if self._escape:
                self._escape = False
            elif char == "\\":
                self._escape = True
            elif char == '"':
                self._in_string = False
            _append(segments, self._current_kind(), char)
            return

        if char == '"':
            if self._buffer:
                self._release_buffer(segments)
            self._in_string = True
            _append(segments, self._current_kind(), char)
            return

        state = self._state
        if state is LexerState.PLAIN:
            if char == self._open_tag[0] and not self._closed:
                self._state = LexerState.OPEN_CANDIDATE
                self._buffer = char
            else:
                _append(segments, "plain", char)
        elif state is LexerState.REASONING:
            if char == self._close_tag[0]:
                self._state = LexerState.CLOSE_CANDIDATE
                self._buffer = char
            else:
                _append(segments, "reasoning", char)
        elif state is LexerState.OPEN_CANDIDATE:
            self._extend_match(char, self._open_tag, LexerState.REASONING, segments)
        else:
            self._extend_match(char, self._close_tag, LexerState.PLAIN, segments)

    def _extend_match(self, char: str, tag: str, target: LexerState, segments: list[Segment]) -> None:
        candidate = self._buffer + char
        if not tag.startswith(candidate):
            # The held text was not a tag; release it and rescan this character.
            self._release_buffer(segments)
            self._step(char, segments)
            return
        if candidate != tag:
            self._buffer = candidate
            return
        self._buffer = ""
        self._state = target
        if target is LexerState.PLAIN:
            self._closed = True

    def _release_buffer(self, segments: list[Segment]) -> None:
        kind = self._current_kind()
        _append(segments, kind, self._buffer)
        self._buffer = ""
        self._state = LexerState.REASONING if kind == "reasoning" else LexerState.PLAIN

    def _record_plain(self, segments: list[Segment]) -> None:
        for segment in segments:
            if segment.kind == "plain":
                self._plain_parts.append(segment.content)


def _append(segments: list[Segment], kind: SegmentKind, text: str) -> None:
    if not text:
        return
    if segments and segments[-1].kind == kind:
        segments[-1] = Segment(kind, segments[-1].content + text)
    else:
        segments.append(Segment(kind, text))
