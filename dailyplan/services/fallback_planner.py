"""Deterministic daily planner used when the advisory service is unavailable."""
from __future__ import annotations

from datetime import time
from typing import Dict, List, Optional, Sequence, Tuple

from dailyplan.api.schemas.daily_plan import GeneratedPlan, GeneratedPlanItem
from dailyplan.services.planning_context import (
    CandidateTask,
    PlanningContext,
    ProjectSummary,
    complexity_bucket,
)

DEFAULT_DAY_START = time(hour=9, minute=0)
MINUTES_PER_DAY = 24 * 60

PROJECT_PRIORITY_RANK = {"HIGH": 0, "MEDIUM": 1, "LOW": 2}

# Medium first, then the smaller/larger neighbours, extremes last.
COMPLEXITY_RANK = {
    "MEDIUM": 1,
    "SMALL": 2,
    "LARGE": 3,
    "VERY_SMALL": 4,
    "VERY_LARGE": 5,
}

COMPLEXITY_MINUTES = {
    "VERY_SMALL": 15,
    "SMALL": 30,
    "MEDIUM": 60,
    "LARGE": 90,
    "VERY_LARGE": 120,
}

ENERGY_ADVICE = {
    "CREATIVE": "Find a quiet space with minimal distractions for this creative task.",
    "ROUTINE": "Consider using a timer to stay on track with this routine task.",
    "COMMUNICATION": "Prepare key points in advance for this communication task.",
    "PHYSICAL": "Make sure to take short breaks during this physical task.",
}
DEFAULT_ADVICE = "Break this task into smaller steps if it feels overwhelming."

# After a heavy task reach for something light, after a light one for something heavy.
NEXT_BUCKET_PREFERENCE = {
    "medium": ("easy", "medium", "complex"),
    "complex": ("easy", "medium", "complex"),
    "easy": ("complex", "medium", "easy"),
}
SEED_BUCKET_PREFERENCE = ("medium", "easy", "complex")

EMPTY_PLAN_REASONING = (
    "No open tasks were found in your active projects, so there is nothing to schedule today. "
    "Add a task to one of your active projects, or reactivate a paused project, and generate the plan again."
)


def plan_fallback(context: PlanningContext, *, day_start: time = DEFAULT_DAY_START) -> GeneratedPlan:
    """
    Build a plan without the advisory service.

    Projects are ranked by hard deadline, priority, then soft deadline; the top
    tasks of the chosen projects are alternated between light and heavy work and
    laid out back to back from ``day_start``. Never raises.
    """
    selected_projects = rank_projects(context.projects)[: max(context.preferred_projects_per_day, 0)]
    # Pool in project-rank order: full ties between tasks favour the higher-ranked project.
    pool = [
        task
        for project in selected_projects
        for task in context.available_tasks
        if task.project_id == project.id
    ]
    selected_tasks = rank_tasks(pool)[: max(context.daily_task_limit, 0)]

    if not selected_tasks:
        return GeneratedPlan(items=[], reasoning=EMPTY_PLAN_REASONING)

    ordered = alternate_by_complexity(selected_tasks)
    slots = time_box(ordered, day_start=day_start)
    items = [
        GeneratedPlanItem(
            task_id=task.id,
            order=index + 1,
            start_time=start,
            end_time=end,
            advice=advice_for(task.energy_type),
        )
        for index, (task, (start, end)) in enumerate(zip(ordered, slots))
    ]
    return GeneratedPlan(items=items, reasoning=_build_reasoning(len(items), len(selected_projects), day_start))


def rank_projects(projects: Sequence[ProjectSummary]) -> List[ProjectSummary]:
    """Stable ranking: earliest hard deadline, then priority, then earliest soft deadline."""

    def sort_key(project: ProjectSummary) -> Tuple:
        return (
            project.hard_deadline is None,
            project.hard_deadline.toordinal() if project.hard_deadline else 0,
            PROJECT_PRIORITY_RANK.get(project.priority, len(PROJECT_PRIORITY_RANK)),
            project.soft_deadline is None,
            project.soft_deadline.toordinal() if project.soft_deadline else 0,
        )

    return sorted(projects, key=sort_key)


def rank_tasks(tasks: Sequence[CandidateTask]) -> List[CandidateTask]:
    """Stable ranking: priority descending, then the medium-anchored complexity rank."""
    return sorted(
        tasks,
        key=lambda task: (-task.priority, COMPLEXITY_RANK.get(task.complexity, len(COMPLEXITY_RANK) + 1)),
    )


def alternate_by_complexity(tasks: Sequence[CandidateTask]) -> List[CandidateTask]:
    """
    Order tasks so heavy and light work alternate.

    Seeds with a medium task (else easy, else complex). After a medium or
    complex task the next one comes from the easy bucket when possible; after an
    easy task it comes from the complex bucket when possible.
    """
    buckets: Dict[str, List[CandidateTask]] = {"easy": [], "medium": [], "complex": []}
    for task in tasks:
        buckets[complexity_bucket(task.complexity)].append(task)

    ordered: List[CandidateTask] = []
    preference: Tuple[str, ...] = SEED_BUCKET_PREFERENCE
    while any(buckets.values()):
        bucket_name = next(name for name in preference if buckets[name])
        ordered.append(buckets[bucket_name].pop(0))
        preference = NEXT_BUCKET_PREFERENCE[bucket_name]
    return ordered


def time_box(
    tasks: Sequence[CandidateTask],
    *,
    day_start: time = DEFAULT_DAY_START,
) -> List[Tuple[Optional[str], Optional[str]]]:
    """
    Lay tasks out back to back from ``day_start``.

    Blocks that would run past the end of the day are left unscheduled, as is
    every block after them.
    """
    slots: List[Tuple[Optional[str], Optional[str]]] = []
    cursor = day_start.hour * 60 + day_start.minute
    overflowed = False
    for task in tasks:
        end = cursor + task_minutes(task)
        if overflowed or end >= MINUTES_PER_DAY:
            overflowed = True
            slots.append((None, None))
            continue
        slots.append((_format_minutes(cursor), _format_minutes(end)))
        cursor = end
    return slots


def task_minutes(task: CandidateTask) -> int:
    return COMPLEXITY_MINUTES.get(task.complexity, COMPLEXITY_MINUTES["MEDIUM"])


def advice_for(energy_type: str) -> str:
    return ENERGY_ADVICE.get(energy_type, DEFAULT_ADVICE)


def _format_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def _build_reasoning(task_count: int, project_count: int, day_start: time) -> str:
    task_label = "task" if task_count == 1 else "tasks"
    project_label = "project" if project_count == 1 else "projects"
    return (
        "This plan was generated by the built-in planner because the AI service was unavailable.\n"
        f"It includes {task_count} {task_label} from {project_count} {project_label}, prioritizing:\n"
        "1. Projects with upcoming deadlines\n"
        "2. High priority tasks\n"
        "3. A balance of task complexity (starting with a medium task, then alternating between "
        "simpler and more complex tasks)\n"
        "4. Variety in task types to maintain engagement\n\n"
        f"The plan starts at {day_start.strftime('%H:%M')} and uses time blocks estimated from each "
        "task's complexity. Try to follow the suggested order, but feel free to adjust it to your energy levels."
    )
