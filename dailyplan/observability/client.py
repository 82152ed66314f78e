"""Process-wide Opik client for plan generation traces."""
from __future__ import annotations

import logging
from threading import Lock
from typing import Optional

from opik import Opik

from dailyplan.core.config import settings

logger = logging.getLogger(__name__)

_client: Optional[Opik] = None
_client_lock = Lock()
_init_attempted = False


def init_opik() -> Optional[Opik]:
    """Create the client on first call; later calls return the cached result, even a failed one."""
    global _client, _init_attempted

    with _client_lock:
        if _client is not None or _init_attempted:
            return _client
        _init_attempted = True

        if not settings.opik_enabled:
            logger.debug("Opik disabled; plan traces are not exported.")
            return None
        if not settings.opik_api_key:
            logger.warning("OPIK_ENABLED is true but OPIK_API_KEY is missing; plan traces are not exported.")
            return None

        try:
            _client = Opik(project_name=settings.opik_project, api_key=settings.opik_api_key)
        except Exception as exc:  # pragma: no cover - depends on Opik backend
            logger.warning("Failed to initialize Opik, plan traces are not exported: %s", exc)
            return None

    logger.info("Exporting plan traces to Opik project %s.", settings.opik_project)
    return _client


def get_opik_client() -> Optional[Opik]:
    if _client is not None:
        return _client
    return init_opik()


def shutdown_opik() -> None:
    """Flush pending traces and forget the client so the next init starts fresh."""
    global _client, _init_attempted

    with _client_lock:
        client, _client, _init_attempted = _client, None, False
    if client is None:
        return
    try:
        client.flush()
    except Exception as exc:  # pragma: no cover - depends on Opik backend
        logger.warning("Failed to flush Opik traces on shutdown: %s", exc)
