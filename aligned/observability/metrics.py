"""Counter-style metrics recorded as Opik traces."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from aligned.observability.tracing import trace

logger = logging.getLogger(__name__)


def log_metric(name: str, value: float | int, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Record ``name=value``; a no-op unless Opik is enabled."""
    payload: Dict[str, Any] = {"value": value, **(metadata or {})}
    logger.debug("metric %s=%s", name, value)
    with trace(f"metric:{name}", metadata=payload):
        pass
