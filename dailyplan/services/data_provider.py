"""Data providers feeding the planning context builder."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from dailyplan.db.models.daily_plan import DailyPlan
from dailyplan.db.models.project import Project
from dailyplan.db.models.user_preferences import UserPreferences

PROJECT_PRIORITY_ORDER = {"HIGH": 0, "MEDIUM": 1, "LOW": 2}


@dataclass
class PreferencesRecord:
    max_tasks_per_day: int
    preferred_projects_per_day: int
    max_work_hours_per_day: int = 8
    peak_productivity_start: Optional[str] = None
    peak_productivity_end: Optional[str] = None
    short_term_goals: Any = None


@dataclass
class TaskRecord:
    id: str
    project_id: str
    name: str = ""
    priority: int = 3
    complexity: str = "MEDIUM"
    energy_type: str = "ROUTINE"
    status: str = "NOT_STARTED"
    tags: List[str] = field(default_factory=list)


@dataclass
class ProjectRecord:
    id: str
    name: str = ""
    priority: str = "MEDIUM"
    category: str = "PERSONAL"
    status: str = "ACTIVE"
    goal: Optional[str] = None
    soft_deadline: Optional[date] = None
    hard_deadline: Optional[date] = None
    tasks: List[TaskRecord] = field(default_factory=list)


@dataclass
class OutcomeRecord:
    date: date
    planned: int
    completed: int


class PlanningDataProvider:
    """Read-only access to the planning-relevant state of a user."""

    def get_preferences(self, user_id: UUID | str) -> Optional[PreferencesRecord]:
        raise NotImplementedError

    def get_active_projects_with_tasks(self, user_id: UUID | str) -> List[ProjectRecord]:
        raise NotImplementedError

    def get_recent_outcomes(self, user_id: UUID | str, since_date: date) -> List[OutcomeRecord]:
        raise NotImplementedError


class InMemoryPlanningDataProvider(PlanningDataProvider):
    """Provider backed by per-instance dictionaries, for tests and local runs."""

    def __init__(self) -> None:
        self._preferences: Dict[str, PreferencesRecord] = {}
        self._projects: Dict[str, List[ProjectRecord]] = {}
        self._outcomes: Dict[str, List[OutcomeRecord]] = {}

    def set_preferences(self, user_id: UUID | str, preferences: PreferencesRecord) -> None:
        self._preferences[str(user_id)] = preferences

    def add_project(self, user_id: UUID | str, project: ProjectRecord) -> None:
        self._projects.setdefault(str(user_id), []).append(project)

    def add_outcome(self, user_id: UUID | str, outcome: OutcomeRecord) -> None:
        self._outcomes.setdefault(str(user_id), []).append(outcome)

    def get_preferences(self, user_id: UUID | str) -> Optional[PreferencesRecord]:
        return self._preferences.get(str(user_id))

    def get_active_projects_with_tasks(self, user_id: UUID | str) -> List[ProjectRecord]:
        return [
            replace(project, tasks=list(project.tasks))
            for project in self._projects.get(str(user_id), [])
            if project.status == "ACTIVE"
        ]

    def get_recent_outcomes(self, user_id: UUID | str, since_date: date) -> List[OutcomeRecord]:
        outcomes = [entry for entry in self._outcomes.get(str(user_id), []) if entry.date >= since_date]
        return sorted(outcomes, key=lambda entry: entry.date, reverse=True)


class SqlAlchemyPlanningDataProvider(PlanningDataProvider):
    """Provider reading preferences, projects, tasks and past plans from the database."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_preferences(self, user_id: UUID | str) -> Optional[PreferencesRecord]:
        row = (
            self.db.query(UserPreferences)
            .filter(UserPreferences.user_id == as_uuid(user_id))
            .one_or_none()
        )
        if not row:
            return None
        return PreferencesRecord(
            max_tasks_per_day=row.max_tasks_per_day,
            max_work_hours_per_day=row.max_work_hours_per_day,
            preferred_projects_per_day=row.preferred_projects_per_day,
            peak_productivity_start=row.peak_productivity_start,
            peak_productivity_end=row.peak_productivity_end,
            short_term_goals=row.short_term_goals,
        )

    def get_active_projects_with_tasks(self, user_id: UUID | str) -> List[ProjectRecord]:
        rows = (
            self.db.query(Project)
            .options(selectinload(Project.tasks))
            .filter(Project.user_id == as_uuid(user_id), Project.status == "ACTIVE")
            .order_by(Project.updated_at.desc())
            .all()
        )
        # Stable sort keeps most-recently-updated first within a priority band.
        rows = sorted(rows, key=lambda row: PROJECT_PRIORITY_ORDER.get(row.priority, len(PROJECT_PRIORITY_ORDER)))
        return [
            ProjectRecord(
                id=str(row.id),
                name=row.name,
                priority=row.priority,
                category=row.category,
                status=row.status,
                goal=row.goal,
                soft_deadline=row.soft_deadline,
                hard_deadline=row.hard_deadline,
                tasks=[
                    TaskRecord(
                        id=str(task.id),
                        project_id=str(task.project_id),
                        name=task.name,
                        priority=task.priority,
                        complexity=task.complexity,
                        energy_type=task.energy_type,
                        status=task.status,
                        tags=list(task.tags or []),
                    )
                    for task in row.tasks
                ],
            )
            for row in rows
        ]

    def get_recent_outcomes(self, user_id: UUID | str, since_date: date) -> List[OutcomeRecord]:
        plans = (
            self.db.query(DailyPlan)
            .options(selectinload(DailyPlan.tasks))
            .filter(DailyPlan.user_id == as_uuid(user_id), DailyPlan.date >= since_date)
            .order_by(DailyPlan.date.desc())
            .all()
        )
        return [
            OutcomeRecord(
                date=plan.date,
                planned=len(plan.tasks),
                completed=sum(1 for entry in plan.tasks if entry.is_completed),
            )
            for plan in plans
        ]


def as_uuid(value: UUID | str) -> UUID:
    """Accept ids as UUID objects or their string form."""
    return value if isinstance(value, UUID) else UUID(str(value))
