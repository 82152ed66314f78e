"""Request and plan-run context carried into log records."""
from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from datetime import date
from typing import Iterator
from uuid import UUID

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
plan_scope_ctx_var: ContextVar[str | None] = ContextVar("plan_scope", default=None)


def get_request_id() -> str | None:
    """Return the current request id if available."""
    return request_id_ctx_var.get()


def get_plan_scope() -> str | None:
    return plan_scope_ctx_var.get()


@contextmanager
def plan_scope(user_id: UUID | str, target_date: date) -> Iterator[str]:
    """Tag every log record emitted inside the block with the plan being generated."""
    scope = f"user={user_id} date={target_date.isoformat()}"
    token = plan_scope_ctx_var.set(scope)
    try:
        yield scope
    finally:
        plan_scope_ctx_var.reset(token)
