"""Tool-call extraction from free-form answer text."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from difystream.core.results import ToolCall
from difystream.parsing.common import generate_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractionResult:
    calls: list[ToolCall]
    cleaned_text: str


def iter_json_object_spans(text: str) -> Iterator[tuple[int, int]]:
    """Yield ``(start, end)`` of every balanced top-level ``{...}`` block.

    Braces inside double-quoted strings do not count, and a stray closing
    brace never drives the depth below zero.
    """
    depth = 0
    in_string = False
    escape = False
    start = -1
    for index, char in enumerate(text):
        if escape:
            escape = False
            continue
        if char == "\\":
            escape = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue

        if char == "{":
            if depth == 0:
                start = index
            depth += 1
        elif char == "}":
            depth = max(depth - 1, 0)
            if depth == 0 and start != -1:
                yield start, index + 1
                start = -1


def extract_tool_calls(
    text: str,
    allowed_names: Iterable[str],
    id_generator: Callable[[], str] | None = None,
) -> ExtractionResult:
    """Find ``{"name": ..., "arguments": ...}`` objects naming an allowed tool.

    Names match case-insensitively and are reported with the allow-list's
    casing. Matched blocks are cut out of the returned ``cleaned_text``.
    """
    canonical: dict[str, str] = {}
    for name in allowed_names:
        canonical.setdefault(name.lower(), name)
    if not canonical:
        return ExtractionResult(calls=[], cleaned_text=text.strip())

    make_id = id_generator or generate_id
    calls: list[ToolCall] = []
    spans: list[tuple[int, int]] = []
    for start, end in iter_json_object_spans(text):
        call = _parse_candidate(text[start:end], canonical, make_id)
        if call is None:
            continue
        calls.append(call)
        spans.append((start, end))

    return ExtractionResult(calls=calls, cleaned_text=_remove_spans(text, spans).strip())


def _parse_candidate(
    candidate: str,
    canonical: dict[str, str],
    make_id: Callable[[], str],
) -> ToolCall | None:
    try:
        parsed: Any = json.loads(candidate)
    except (ValueError, RecursionError) as exc:
        # JSONDecodeError, oversized integer literals and runaway nesting alike.
        logger.debug("Skipping non-JSON brace block (%d chars): %s", len(candidate), type(exc).__name__)
        return None
    if not isinstance(parsed, dict) or "name" not in parsed or "arguments" not in parsed:
        return None

    name = parsed["name"]
    if not isinstance(name, str):
        return None
    resolved = canonical.get(name.lower())
    if resolved is None:
        logger.debug("Skipping tool-call candidate for undeclared tool %r", name)
        return None

    arguments = json.dumps(parsed["arguments"], separators=(",", ":"), ensure_ascii=False)
    return ToolCall(id=make_id(), name=resolved, input=arguments)


def _remove_spans(text: str, spans: list[tuple[int, int]]) -> str:
    if not spans:
        return text
    pieces: list[str] = []
    cursor = 0
    for start, end in spans:
        pieces.append(text[cursor:start])
        cursor = end
    pieces.append(text[cursor:])
    return "".join(pieces)
