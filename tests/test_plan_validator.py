from __future__ import annotations

import pytest

from dailyplan.api.schemas.daily_plan import GeneratedPlan, GeneratedPlanItem
from dailyplan.core.errors import InvalidPlanError
from dailyplan.services.plan_validator import ensure_plan_invariants, validate_plan
from dailyplan.services.planning_context import CandidateTask, PlanningContext, ProjectSummary


def _context(task_ids, *, limit: int = 5) -> PlanningContext:
    return PlanningContext(
        daily_task_limit=limit,
        preferred_projects_per_day=2,
        projects=(ProjectSummary(id="p1", priority="HIGH", category="WORK"),),
        available_tasks=tuple(
            CandidateTask(id=task_id, project_id="p1", priority=3, complexity="MEDIUM", energy_type="ROUTINE")
            for task_id in task_ids
        ),
    )


def _entry(task_id: str, order=1, start="09:00", end="10:00", advice="Go"):
    return {
        "taskId": task_id,
        "order": order,
        "recommendedStartTime": start,
        "recommendedEndTime": end,
        "aiAdvice": advice,
    }


def test_valid_plan_is_accepted() -> None:
    raw = {"tasks": [_entry("a", 1), _entry("b", 2, "10:00", "10:30")], "reasoning": "Start steady."}

    plan = validate_plan(raw, _context(["a", "b"]))

    assert plan.task_ids == ["a", "b"]
    assert plan.items[1].start_time == "10:00"
    assert plan.items[1].end_time == "10:30"
    assert plan.reasoning == "Start steady."


@pytest.mark.parametrize(
    "raw",
    [
        {"reasoning": "ok"},
        {"tasks": [], "reasoning": "ok"},
        {"tasks": "a", "reasoning": "ok"},
        {"tasks": [_entry("a")]},
        {"tasks": [_entry("a")], "reasoning": "   "},
        {"tasks": [_entry("a")], "reasoning": 42},
        ["not", "an", "object"],
    ],
)
def test_malformed_plans_are_rejected(raw) -> None:
    with pytest.raises(InvalidPlanError):
        validate_plan(raw, _context(["a"]))


def test_single_unknown_task_id_rejects_whole_plan() -> None:
    raw = {"tasks": [_entry("a", 1), _entry("ghost", 2)], "reasoning": "ok"}

    with pytest.raises(InvalidPlanError) as exc_info:
        validate_plan(raw, _context(["a", "b"]))

    assert exc_info.value.details == {"task_id": "ghost"}
    assert exc_info.value.code == "INVALID_PLAN"


def test_missing_task_id_is_rejected() -> None:
    raw = {"tasks": [{"order": 1}], "reasoning": "ok"}

    with pytest.raises(InvalidPlanError):
        validate_plan(raw, _context(["a"]))


def test_malformed_times_are_dropped() -> None:
    raw = {
        "tasks": [
            _entry("a", 1, start="9:00", end="24:00"),
            _entry("b", 2, start="12:60", end=900),
            _entry("c", 3, start="23:59", end=None),
        ],
        "reasoning": "ok",
    }

    plan = validate_plan(raw, _context(["a", "b", "c"]))

    assert [(item.start_time, item.end_time) for item in plan.items] == [
        (None, None),
        (None, None),
        ("23:59", None),
    ]


def test_missing_or_invalid_order_defaults_to_position() -> None:
    raw = {
        "tasks": [
            {"taskId": "a"},
            {"taskId": "b", "order": 0},
            {"taskId": "c", "order": "third"},
        ],
        "reasoning": "ok",
    }

    plan = validate_plan(raw, _context(["a", "b", "c"]))

    assert plan.task_ids == ["a", "b", "c"]
    assert [item.order for item in plan.items] == [1, 2, 3]
    assert all(item.advice is None for item in plan.items)


def test_items_are_sorted_by_order_and_renumbered() -> None:
    raw = {"tasks": [_entry("a", 7), _entry("b", 3)], "reasoning": "ok"}

    plan = validate_plan(raw, _context(["a", "b"]))

    assert plan.task_ids == ["b", "a"]
    assert [item.order for item in plan.items] == [1, 2]


def test_plan_is_truncated_to_daily_limit() -> None:
    raw = {"tasks": [_entry(task_id, idx + 1) for idx, task_id in enumerate("abcde")], "reasoning": "ok"}

    plan = validate_plan(raw, _context(list("abcde"), limit=3))

    assert plan.task_ids == ["a", "b", "c"]


def test_invariants_allow_empty_plan() -> None:
    plan = GeneratedPlan(items=[], reasoning="Nothing to do today.")

    assert ensure_plan_invariants(plan, _context([])) is plan


def test_invariants_reject_plan_over_limit() -> None:
    plan = GeneratedPlan(
        items=[GeneratedPlanItem(task_id=task_id, order=idx + 1) for idx, task_id in enumerate("ab")],
        reasoning="ok",
    )

    with pytest.raises(InvalidPlanError):
        ensure_plan_invariants(plan, _context(["a", "b"], limit=1))


def test_invariants_reject_unknown_task_and_gapped_order() -> None:
    unknown = GeneratedPlan(items=[GeneratedPlanItem(task_id="zzz", order=1)], reasoning="ok")
    gapped = GeneratedPlan(items=[GeneratedPlanItem(task_id="a", order=2)], reasoning="ok")

    with pytest.raises(InvalidPlanError):
        ensure_plan_invariants(unknown, _context(["a"]))
    with pytest.raises(InvalidPlanError):
        ensure_plan_invariants(gapped, _context(["a"]))
