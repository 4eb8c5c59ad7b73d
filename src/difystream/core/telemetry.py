"""Observability helpers for difystream."""

from __future__ import annotations

from contextlib import nullcontext
from typing import Any

try:  # pragma: no cover - optional dependency
    import logfire  # type: ignore[import-not-found]
except ImportError:  # pragma: no cover - optional dependency
    logfire = None

from difystream.__about__ import __version__
from difystream.core.errors import DifyStreamError, ErrorKind

SPAN_PREFIX = "difystream"

_INSTRUMENTED = False


def span(operation: str, **attributes: Any):
    """Open a ``difystream.<operation>`` span tagged with the library version.

    A no-op context until :func:`instrument_difystream` has been called.
    """
    if not _INSTRUMENTED or logfire is None:
        return nullcontext()
    return logfire.span(f"{SPAN_PREFIX}.{operation}", difystream_version=__version__, **attributes)


def instrument_difystream() -> None:
    """Enable difystream's Logfire spans after users configure Logfire themselves."""
    if logfire is None:
        raise DifyStreamError(
            ErrorKind.CONFIG,
            "Logfire is not installed. Install with 'difystream[observability]' to enable tracing.",
        )
    global _INSTRUMENTED
    _INSTRUMENTED = True
