"""Opik SDK client lifecycle."""
from __future__ import annotations

import logging
from threading import Lock
from typing import Optional

from aligned.core.config import settings

try:
    from opik import Opik
except ImportError:  # pragma: no cover
    Opik = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

_state_lock = Lock()
_client: Optional["Opik"] = None
_resolved = False


def init_opik() -> Optional["Opik"]:
    """Create the process-wide Opik client on first use; later calls reuse the outcome."""
    global _client, _resolved

    with _state_lock:
        if _resolved:
            return _client
        _resolved = True

        if Opik is None or not settings.opik_enabled:
            logger.debug("Opik tracing disabled")
            return None
        if not settings.opik_api_key:
            logger.warning("OPIK_ENABLED is set without OPIK_API_KEY; plan traces will not be exported.")
            return None

        try:
            _client = Opik(project_name=settings.opik_project, api_key=settings.opik_api_key)
        except Exception as exc:  # pragma: no cover - SDK raises assorted errors
            logger.warning("Opik client could not start (%s); continuing without tracing.", exc)
            _client = None
            return None

    logger.info("Opik tracing enabled for project %s", settings.opik_project)
    return _client


def get_opik_client() -> Optional["Opik"]:
    if _client is not None:
        return _client
    return init_opik()


def reset_opik_client() -> None:
    """Forget the cached client so the next call re-reads settings."""
    global _client, _resolved
    with _state_lock:
        _client = None
        _resolved = False
