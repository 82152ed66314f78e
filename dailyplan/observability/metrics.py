"""Lightweight metrics helpers."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from dailyplan.observability import tracing

logger = logging.getLogger(__name__)


def log_metric(name: str, value: float | int, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Record a metric as a short-lived Opik trace when Opik is enabled."""
    payload: Dict[str, Any] = {"value": value}
    if metadata:
        payload.update(metadata)

    try:
        with tracing.trace(f"metric:{name}", metadata=payload):
            pass
    except Exception as exc:  # pragma: no cover - depends on Opik backend
        logger.debug("Unable to record metric %s: %s", name, exc)
