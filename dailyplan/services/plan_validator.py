"""Validation and repair of candidate daily plans."""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

from dailyplan.api.schemas.daily_plan import TIME_PATTERN, GeneratedPlan, GeneratedPlanItem
from dailyplan.core.errors import InvalidPlanError
from dailyplan.services.planning_context import PlanningContext

logger = logging.getLogger(__name__)

_TIME_RE = re.compile(TIME_PATTERN)


def validate_plan(raw: Any, context: PlanningContext) -> GeneratedPlan:
    """
    Turn an untrusted plan payload into a GeneratedPlan or reject it.

    Rejects when ``tasks`` is missing or empty, when ``reasoning`` is not a
    non-empty string, or when any task id is unknown (one hallucinated id
    discards the whole plan). Missing or non-positive orders fall back to the
    item position, malformed times are dropped, and the list is cut down to the
    daily task limit.
    """
    if not isinstance(raw, dict):
        raise InvalidPlanError("Invalid plan: expected a JSON object")

    tasks = raw.get("tasks")
    if not isinstance(tasks, list) or not tasks:
        raise InvalidPlanError("Invalid plan: missing or empty tasks array")

    reasoning = raw.get("reasoning")
    if not isinstance(reasoning, str) or not reasoning.strip():
        raise InvalidPlanError("Invalid plan: missing or invalid reasoning")

    known_ids = context.task_ids
    drafts: List[Dict[str, Any]] = []
    for index, entry in enumerate(tasks):
        if not isinstance(entry, dict):
            raise InvalidPlanError(f"Invalid plan: task entry {index + 1} is not an object")
        task_id = entry.get("taskId")
        if not isinstance(task_id, str) or task_id not in known_ids:
            raise InvalidPlanError(f"Invalid task ID in plan: {task_id}", details={"task_id": task_id})
        drafts.append(
            {
                "task_id": task_id,
                "order": _coerce_order(entry.get("order"), index + 1),
                "start_time": _coerce_time(entry.get("recommendedStartTime")),
                "end_time": _coerce_time(entry.get("recommendedEndTime")),
                "advice": _coerce_advice(entry.get("aiAdvice")),
            }
        )

    drafts = drafts[: max(context.daily_task_limit, 0)]
    # Stable sort: explicit orders win, ties keep their array position.
    drafts.sort(key=lambda draft: draft["order"])
    items = [
        GeneratedPlanItem(
            task_id=draft["task_id"],
            order=position,
            start_time=draft["start_time"],
            end_time=draft["end_time"],
            advice=draft["advice"],
        )
        for position, draft in enumerate(drafts, start=1)
    ]
    if len(tasks) > len(items):
        logger.info("Truncated plan from %d to %d tasks", len(tasks), len(items))
    return GeneratedPlan(items=items, reasoning=reasoning.strip())


def ensure_plan_invariants(plan: GeneratedPlan, context: PlanningContext) -> GeneratedPlan:
    """Check a typed plan against the delivery invariants; an empty item list is allowed."""
    if len(plan.items) > context.daily_task_limit:
        raise InvalidPlanError(
            f"Plan has {len(plan.items)} tasks, limit is {context.daily_task_limit}",
        )
    known_ids = context.task_ids
    for position, item in enumerate(plan.items, start=1):
        if item.task_id not in known_ids:
            raise InvalidPlanError(f"Invalid task ID in plan: {item.task_id}", details={"task_id": item.task_id})
        if item.order != position:
            raise InvalidPlanError(f"Task {item.task_id} has order {item.order}, expected {position}")
        for value in (item.start_time, item.end_time):
            if value is not None and not _TIME_RE.match(value):
                raise InvalidPlanError(f"Task {item.task_id} has malformed time {value!r}")
    if not plan.reasoning or not plan.reasoning.strip():
        raise InvalidPlanError("Invalid plan: missing or invalid reasoning")
    return plan


def _coerce_order(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int) and value > 0:
        return value
    if isinstance(value, float) and value.is_integer() and value > 0:
        return int(value)
    return default


def _coerce_time(value: Any) -> Optional[str]:
    if isinstance(value, str) and _TIME_RE.match(value):
        return value
    return None


def _coerce_advice(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
