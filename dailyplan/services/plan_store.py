"""Sinks receiving generated plans: plan persistence and AI history."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from dailyplan.api.schemas.daily_plan import GeneratedPlan, GeneratedPlanItem
from dailyplan.core.errors import NotFoundError
from dailyplan.db.models.ai_history import AIHistory
from dailyplan.db.models.daily_plan import DailyPlan, DailyPlanTask
from dailyplan.services.data_provider import as_uuid
from dailyplan.services.planning_context import PlanningContext

logger = logging.getLogger(__name__)


@dataclass
class StoredPlan:
    user_id: str
    date: date
    source: Optional[str]
    plan: GeneratedPlan
    is_completed: bool = False
    completed_task_ids: List[str] = field(default_factory=list)


@dataclass
class TaskCompletion:
    task_id: str
    is_completed: bool
    completed_at: Optional[datetime]
    plan_completed: bool


class PlanStore:
    """Persistence sink for delivered plans."""

    def save_plan(
        self,
        user_id: UUID | str,
        target_date: date,
        plan: GeneratedPlan,
        *,
        source: Optional[str] = None,
    ) -> None:
        raise NotImplementedError

    def load_plan(self, user_id: UUID | str, target_date: date) -> Optional[StoredPlan]:
        raise NotImplementedError

    def set_task_completion(
        self,
        user_id: UUID | str,
        target_date: date,
        task_id: str,
        is_completed: bool,
    ) -> TaskCompletion:
        """
        Mark one planned task done or not done.

        The plan counts as completed while every task in it is completed.
        Raises NotFoundError when the plan or the task within it does not exist.
        """
        raise NotImplementedError


class HistoryRecorder:
    """Best-effort audit sink for the context/plan pair of each generation."""

    def record(self, user_id: UUID | str, context: PlanningContext, plan: GeneratedPlan) -> None:
        raise NotImplementedError


class InMemoryPlanStore(PlanStore):
    def __init__(self) -> None:
        self.plans: Dict[Tuple[str, date], StoredPlan] = {}

    def save_plan(
        self,
        user_id: UUID | str,
        target_date: date,
        plan: GeneratedPlan,
        *,
        source: Optional[str] = None,
    ) -> None:
        self.plans[(str(user_id), target_date)] = StoredPlan(str(user_id), target_date, source, plan)

    def load_plan(self, user_id: UUID | str, target_date: date) -> Optional[StoredPlan]:
        return self.plans.get((str(user_id), target_date))

    def set_task_completion(
        self,
        user_id: UUID | str,
        target_date: date,
        task_id: str,
        is_completed: bool,
    ) -> TaskCompletion:
        key = (str(user_id), target_date)
        stored = self.plans.get(key)
        if not stored:
            raise NotFoundError("Plan not found", details={"date": target_date.isoformat()})
        if task_id not in stored.plan.task_ids:
            raise NotFoundError("Task not found in this plan", details={"task_id": task_id})

        done = [entry for entry in stored.completed_task_ids if entry != task_id]
        if is_completed:
            done.append(task_id)
        plan_completed = bool(stored.plan.items) and set(done) == set(stored.plan.task_ids)
        self.plans[key] = replace(stored, completed_task_ids=done, is_completed=plan_completed)
        return TaskCompletion(
            task_id=task_id,
            is_completed=is_completed,
            completed_at=datetime.now(timezone.utc) if is_completed else None,
            plan_completed=plan_completed,
        )


class InMemoryHistoryRecorder(HistoryRecorder):
    def __init__(self) -> None:
        self.entries: List[Dict[str, object]] = []

    def record(self, user_id: UUID | str, context: PlanningContext, plan: GeneratedPlan) -> None:
        self.entries.append(
            {"user_id": str(user_id), "request_data": context.to_dict(), "response_data": plan.to_wire()}
        )


class SqlAlchemyPlanStore(PlanStore):
    """Store one DailyPlan per user and date, replacing any earlier plan for that date."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def save_plan(
        self,
        user_id: UUID | str,
        target_date: date,
        plan: GeneratedPlan,
        *,
        source: Optional[str] = None,
    ) -> None:
        owner = as_uuid(user_id)
        existing = self._find(owner, target_date)
        if existing:
            logger.info("Replacing stored plan %s for user=%s date=%s", existing.id, owner, target_date)
            self.db.delete(existing)
            self.db.flush()

        record = DailyPlan(user_id=owner, date=target_date, ai_reasoning=plan.reasoning, source=source)
        record.tasks = [
            DailyPlanTask(
                task_id=as_uuid(item.task_id),
                order=item.order,
                recommended_start_time=item.start_time,
                recommended_end_time=item.end_time,
                ai_advice=item.advice,
            )
            for item in plan.items
        ]
        self.db.add(record)
        self.db.commit()

    def load_plan(self, user_id: UUID | str, target_date: date) -> Optional[StoredPlan]:
        owner = as_uuid(user_id)
        record = self._find(owner, target_date)
        if not record:
            return None
        items = [
            GeneratedPlanItem(
                task_id=str(entry.task_id),
                order=entry.order,
                start_time=entry.recommended_start_time,
                end_time=entry.recommended_end_time,
                advice=entry.ai_advice,
            )
            for entry in record.tasks
        ]
        return StoredPlan(
            user_id=str(owner),
            date=record.date,
            source=record.source,
            plan=GeneratedPlan(items=items, reasoning=record.ai_reasoning or ""),
            is_completed=bool(record.is_completed),
            completed_task_ids=[str(entry.task_id) for entry in record.tasks if entry.is_completed],
        )

    def set_task_completion(
        self,
        user_id: UUID | str,
        target_date: date,
        task_id: str,
        is_completed: bool,
    ) -> TaskCompletion:
        record = self._find(as_uuid(user_id), target_date)
        if not record:
            raise NotFoundError("Plan not found", details={"date": target_date.isoformat()})
        entry = next((entry for entry in record.tasks if str(entry.task_id) == str(task_id)), None)
        if entry is None:
            raise NotFoundError("Task not found in this plan", details={"task_id": str(task_id)})

        if is_completed and not entry.is_completed:
            entry.completed_at = datetime.now(timezone.utc)
        elif not is_completed:
            entry.completed_at = None
        entry.is_completed = is_completed
        record.is_completed = all(item.is_completed for item in record.tasks)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Plan task %s for user=%s date=%s marked %s",
            entry.task_id,
            record.user_id,
            target_date,
            "completed" if is_completed else "open",
        )
        return TaskCompletion(
            task_id=str(entry.task_id),
            is_completed=entry.is_completed,
            completed_at=entry.completed_at,
            plan_completed=record.is_completed,
        )

    def _find(self, user_id: UUID, target_date: date) -> Optional[DailyPlan]:
        return (
            self.db.query(DailyPlan)
            .options(selectinload(DailyPlan.tasks))
            .filter(DailyPlan.user_id == user_id, DailyPlan.date == target_date)
            .one_or_none()
        )


class SqlAlchemyHistoryRecorder(HistoryRecorder):
    def __init__(self, db: Session) -> None:
        self.db = db

    def record(self, user_id: UUID | str, context: PlanningContext, plan: GeneratedPlan) -> None:
        try:
            self.db.add(
                AIHistory(
                    user_id=as_uuid(user_id),
                    request_data=context.to_dict(),
                    response_data=plan.to_wire(),
                )
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
