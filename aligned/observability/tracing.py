"""Tracing helpers wrapping Opik."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from time import perf_counter
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional

from aligned.core.context import get_request_id, get_user_id
from aligned.observability.client import get_opik_client

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from opik.api_objects.trace.trace_client import Trace
else:  # pragma: no cover - typing helper
    Trace = object  # type: ignore[assignment]

logger = logging.getLogger(__name__)


def _trace_metadata(metadata: Optional[Dict[str, Any]], user_id: Optional[str]) -> Dict[str, Any]:
    payload = dict(metadata or {})
    resolved_user = user_id or get_user_id()
    if resolved_user:
        payload.setdefault("user_id", str(resolved_user))
    request_id = get_request_id()
    if request_id:
        payload.setdefault("request_id", request_id)
    return payload


@contextmanager
def trace(
    name: str,
    metadata: Optional[Dict[str, Any]] = None,
    user_id: Optional[str] = None,
) -> Iterator[Optional["Trace"]]:
    """
    Open an Opik trace around a pipeline step.

    Request and user ids come from the logging context when not passed explicitly.
    The elapsed time is attached as ``duration_ms`` when the block exits. With
    Opik disabled the context yields ``None`` and records nothing.
    """
    client = get_opik_client()
    opik_trace: Optional["Trace"] = None
    started = perf_counter()

    if client:
        try:
            opik_trace = client.trace(name=name, metadata=_trace_metadata(metadata, user_id) or None)
        except Exception as exc:  # pragma: no cover - SDK failure must not break the pipeline
            logger.debug("Could not open trace %s: %s", name, exc)
            opik_trace = None

    try:
        yield opik_trace
    except Exception as exc:
        if opik_trace:
            try:
                opik_trace.update(error_info={"exception_type": type(exc).__name__, "message": str(exc)})
            except Exception:  # pragma: no cover
                logger.debug("Could not attach error to trace %s", name, exc_info=True)
        raise
    finally:
        if opik_trace:
            try:
                opik_trace.update(metadata={"duration_ms": round((perf_counter() - started) * 1000, 1)})
            except Exception:  # pragma: no cover
                logger.debug("Could not attach duration to trace %s", name, exc_info=True)
            try:
                opik_trace.end()
            except Exception:  # pragma: no cover
                logger.debug("Could not close trace %s", name, exc_info=True)
