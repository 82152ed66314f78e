"""Immutable planning context and the builder that assembles it."""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from dailyplan.core.config import settings
from dailyplan.core.errors import NotFoundError
from dailyplan.services.data_provider import PlanningDataProvider, ProjectRecord

logger = logging.getLogger(__name__)

OPEN_TASK_STATUSES = {"NOT_STARTED", "IN_PROGRESS"}
EASY_COMPLEXITIES = {"VERY_SMALL", "SMALL"}
MEDIUM_COMPLEXITIES = {"MEDIUM"}
COMPLEX_COMPLEXITIES = {"LARGE", "VERY_LARGE"}


@dataclass(frozen=True)
class ProjectSummary:
    id: str
    priority: str
    category: str
    soft_deadline: Optional[date] = None
    hard_deadline: Optional[date] = None
    name: str = ""
    goal: Optional[str] = None


@dataclass(frozen=True)
class CandidateTask:
    id: str
    project_id: str
    priority: int
    complexity: str
    energy_type: str
    tags: Tuple[str, ...] = ()
    name: str = ""


@dataclass(frozen=True)
class DailyOutcome:
    date: date
    planned: int
    completed: int


@dataclass(frozen=True)
class PlanningContext:
    daily_task_limit: int
    preferred_projects_per_day: int
    peak_hours: Optional[Tuple[str, Optional[str]]] = None
    goals: Tuple[str, ...] = ()
    projects: Tuple[ProjectSummary, ...] = ()
    available_tasks: Tuple[CandidateTask, ...] = ()
    recent_outcomes: Tuple[DailyOutcome, ...] = ()

    @property
    def task_ids(self) -> frozenset[str]:
        return frozenset(task.id for task in self.available_tasks)

    def project(self, project_id: str) -> Optional[ProjectSummary]:
        for project in self.projects:
            if project.id == project_id:
                return project
        return None

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready snapshot, used when recording AI history."""
        return json.loads(json.dumps(asdict(self), default=str))


class PlanningContextBuilder:
    """Assemble a PlanningContext for one user and target date."""

    def __init__(self, provider: PlanningDataProvider, *, outcome_days: int | None = None) -> None:
        self.provider = provider
        self.outcome_days = outcome_days if outcome_days is not None else settings.recent_outcome_days

    def build(self, user_id: UUID | str, target_date: date) -> PlanningContext:
        preferences = self.provider.get_preferences(user_id)
        if preferences is None:
            raise NotFoundError("User preferences not found", details={"user_id": str(user_id)})

        projects: List[ProjectSummary] = []
        tasks: List[CandidateTask] = []
        for record in self.provider.get_active_projects_with_tasks(user_id):
            if (record.status or "").upper() != "ACTIVE":
                continue
            open_tasks = [task for task in record.tasks if (task.status or "").upper() in OPEN_TASK_STATUSES]
            if not open_tasks:
                continue
            projects.append(_summarize_project(record))
            tasks.extend(
                CandidateTask(
                    id=str(task.id),
                    project_id=str(record.id),
                    priority=int(task.priority),
                    complexity=(task.complexity or "").upper(),
                    energy_type=(task.energy_type or "").upper(),
                    tags=tuple(str(tag) for tag in (task.tags or [])),
                    name=task.name or "",
                )
                for task in open_tasks
            )

        since = target_date - timedelta(days=self.outcome_days)
        outcomes = [
            DailyOutcome(date=entry.date, planned=entry.planned, completed=entry.completed)
            for entry in self.provider.get_recent_outcomes(user_id, since)
            if since <= entry.date < target_date
        ]
        outcomes.sort(key=lambda entry: entry.date, reverse=True)

        peak_hours = None
        if preferences.peak_productivity_start:
            peak_hours = (preferences.peak_productivity_start, preferences.peak_productivity_end)

        context = PlanningContext(
            daily_task_limit=max(0, int(preferences.max_tasks_per_day)),
            preferred_projects_per_day=max(0, int(preferences.preferred_projects_per_day)),
            peak_hours=peak_hours,
            goals=_coerce_goals(preferences.short_term_goals),
            projects=tuple(projects),
            available_tasks=tuple(tasks),
            recent_outcomes=tuple(outcomes),
        )
        logger.debug(
            "Built planning context user=%s date=%s projects=%d tasks=%d",
            user_id,
            target_date,
            len(context.projects),
            len(context.available_tasks),
        )
        return context


def complexity_bucket(complexity: str) -> str:
    """Return the alternation bucket ("easy", "medium", "complex") for a complexity."""
    if complexity in EASY_COMPLEXITIES:
        return "easy"
    if complexity in COMPLEX_COMPLEXITIES:
        return "complex"
    return "medium"


def _summarize_project(record: ProjectRecord) -> ProjectSummary:
    return ProjectSummary(
        id=str(record.id),
        priority=(record.priority or "MEDIUM").upper(),
        category=record.category or "",
        soft_deadline=record.soft_deadline,
        hard_deadline=record.hard_deadline,
        name=record.name or "",
        goal=record.goal,
    )


def _coerce_goals(raw: Any) -> Tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        return (raw.strip(),) if raw.strip() else ()
    if isinstance(raw, dict):
        raw = list(raw.values())
    if isinstance(raw, (list, tuple)):
        return tuple(str(goal).strip() for goal in raw if goal is not None and str(goal).strip())
    return (str(raw),)
