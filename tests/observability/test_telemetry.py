from __future__ import annotations

from contextlib import nullcontext

import pytest

from difystream import StreamCoordinator, __version__
from difystream.core import DifyStreamError, ErrorKind, instrument_difystream, span

from ..fakes import make_message, make_message_end


class RecordingLogfire:
    def __init__(self) -> None:
        self.spans: list[tuple[str, dict]] = []

    def span(self, name: str, **attributes):
        self.spans.append((name, attributes))
        return nullcontext()


class TestTelemetry:
    def test_span_noop_when_logfire_missing(self, monkeypatch):
        monkeypatch.setattr("difystream.core.telemetry.logfire", None)
        with span("finalize", terminal_event="message_end") as instrumented:
            assert instrumented is None

    def test_span_noop_until_instrumented(self, monkeypatch):
        recorder = RecordingLogfire()
        monkeypatch.setattr("difystream.core.telemetry.logfire", recorder)
        monkeypatch.setattr("difystream.core.telemetry._INSTRUMENTED", False)
        with span("finalize"):
            pass
        assert recorder.spans == []

    def test_instrument_difystream_requires_logfire(self, monkeypatch):
        monkeypatch.setattr("difystream.core.telemetry.logfire", None)

        with pytest.raises(DifyStreamError) as exc_info:
            instrument_difystream()
        assert exc_info.value.kind == ErrorKind.CONFIG

    def test_finalization_is_traced(self, monkeypatch):
        recorder = RecordingLogfire()
        monkeypatch.setattr("difystream.core.telemetry.logfire", recorder)
        monkeypatch.setattr("difystream.core.telemetry._INSTRUMENTED", False)
        instrument_difystream()

        coordinator = StreamCoordinator(["lookup"])
        coordinator.process_event(make_message("hi"))
        coordinator.process_event(make_message_end(1, 1, 2))

        assert recorder.spans == [
            (
                "difystream.finalize",
                {"difystream_version": __version__, "terminal_event": "message_end", "tool_count": 1},
            )
        ]
