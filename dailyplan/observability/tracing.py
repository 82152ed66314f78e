"""Opik tracing for plan generation: one trace per request, one span per step."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional

from dailyplan.observability import client as opik_client

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from opik.api_objects.span.span_client import Span
    from opik.api_objects.trace.trace_client import Trace
else:  # pragma: no cover - typing helper
    Span = Trace = object  # type: ignore[assignment,misc]

logger = logging.getLogger(__name__)


def get_opik_client():
    return opik_client.get_opik_client()


@contextmanager
def trace(
    name: str,
    metadata: Optional[Dict[str, Any]] = None,
    user_id: Optional[str] = None,
    request_id: Optional[str] = None,
) -> Iterator[Optional["Trace"]]:
    """
    Open an Opik trace for the duration of the block.

    Yields None when Opik is disabled, so callers guard updates with
    ``if trace_obj:``. Exceptions are attached to the trace and re-raised.
    """
    client = get_opik_client()
    opik_trace: Optional["Trace"] = None

    if client:
        trace_metadata = dict(metadata or {})
        if user_id:
            trace_metadata.setdefault("user_id", str(user_id))
        if request_id:
            trace_metadata.setdefault("request_id", request_id)
        opik_trace = _open(name, lambda: client.trace(name=name, metadata=trace_metadata or None))

    with _closing(name, opik_trace):
        yield opik_trace


@contextmanager
def step(parent: Optional["Trace"], name: str, metadata: Optional[Dict[str, Any]] = None) -> Iterator[Optional["Span"]]:
    """Record one orchestration step (advisor call, fallback, ...) as a span of ``parent``."""
    span: Optional["Span"] = None
    if parent:
        span = _open(name, lambda: parent.span(name=name, metadata=metadata or None))

    with _closing(name, span):
        yield span


def _open(name: str, factory):
    try:
        return factory()
    except Exception as exc:  # pragma: no cover - depends on Opik backend
        logger.debug("Unable to start Opik trace %s: %s", name, exc)
        return None


@contextmanager
def _closing(name: str, handle) -> Iterator[None]:
    try:
        yield
    except Exception as exc:
        if handle:
            try:
                handle.update(error_info={"exception_type": type(exc).__name__, "message": str(exc)})
            except Exception:  # pragma: no cover
                logger.debug("Failed to attach error info to %s", name, exc_info=True)
        raise
    finally:
        if handle:
            try:
                handle.end()
            except Exception:  # pragma: no cover
                logger.debug("Failed to close %s cleanly", name, exc_info=True)
