"""Daily plan generation endpoints."""
from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.orm import Session

from dailyplan.api.schemas.daily_plan import (
    DailyPlanGenerateRequest,
    DailyPlanResponse,
    PlanTaskCompletionRequest,
    PlanTaskCompletionResponse,
)
from dailyplan.core.config import settings
from dailyplan.core.errors import PlanningError
from dailyplan.db.deps import get_db
from dailyplan.observability.metrics import log_metric
from dailyplan.observability.tracing import trace
from dailyplan.services.data_provider import SqlAlchemyPlanningDataProvider
from dailyplan.services.plan_advisor import PlanAdvisor
from dailyplan.services.plan_orchestrator import PlanOrchestrator
from dailyplan.services.plan_store import SqlAlchemyHistoryRecorder, SqlAlchemyPlanStore, StoredPlan
from dailyplan.services.planning_context import PlanningContextBuilder
from dailyplan.services.text_generation.base import TextGenerator
from dailyplan.services.text_generation.factory import get_text_generator

router = APIRouter()


def get_plan_orchestrator(
    db: Session = Depends(get_db),
    generator: TextGenerator = Depends(get_text_generator),
) -> PlanOrchestrator:
    return PlanOrchestrator(
        PlanningContextBuilder(SqlAlchemyPlanningDataProvider(db)),
        PlanAdvisor(generator),
        SqlAlchemyPlanStore(db),
        SqlAlchemyHistoryRecorder(db) if settings.history_enabled else None,
    )


@router.post(
    "/daily-plans/generate",
    response_model=DailyPlanResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["daily-plans"],
)
def generate_daily_plan(
    request: Request,
    payload: DailyPlanGenerateRequest,
    orchestrator: PlanOrchestrator = Depends(get_plan_orchestrator),
) -> DailyPlanResponse:
    """Generate, store and return the plan for the requested date (today by default)."""
    request_id = getattr(request.state, "request_id", None)
    return _generate(orchestrator, payload.user_id, payload.target_date or date.today(), request_id)


@router.get("/daily-plans/today", response_model=DailyPlanResponse, tags=["daily-plans"])
def get_or_generate_today_plan(
    request: Request,
    response: Response,
    user_id: UUID = Query(..., description="User ID"),
    db: Session = Depends(get_db),
    orchestrator: PlanOrchestrator = Depends(get_plan_orchestrator),
) -> DailyPlanResponse:
    """Return today's stored plan, generating it first (201) when there is none yet."""
    request_id = getattr(request.state, "request_id", None)
    today = date.today()
    stored = SqlAlchemyPlanStore(db).load_plan(user_id, today)
    if stored:
        log_metric("daily_plan.today.cached", 1, metadata={"user_id": str(user_id)})
        return _stored_response(user_id, stored, request_id)

    response.status_code = status.HTTP_201_CREATED
    return _generate(orchestrator, user_id, today, request_id)


@router.get("/daily-plans/{plan_date}", response_model=DailyPlanResponse, tags=["daily-plans"])
def get_daily_plan(
    plan_date: date,
    request: Request,
    user_id: UUID = Query(..., description="User ID"),
    db: Session = Depends(get_db),
) -> DailyPlanResponse:
    request_id = getattr(request.state, "request_id", None)
    metadata = {"user_id": str(user_id), "date": plan_date.isoformat(), "request_id": request_id}
    with trace("daily_plan.get", metadata=metadata, user_id=str(user_id), request_id=request_id):
        stored = SqlAlchemyPlanStore(db).load_plan(user_id, plan_date)
        if not stored:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"No plan found for date {plan_date.isoformat()}",
            )

    log_metric("daily_plan.get.success", 1, metadata={"user_id": str(user_id)})
    return _stored_response(user_id, stored, request_id)


@router.patch(
    "/daily-plans/{plan_date}/tasks/{task_id}",
    response_model=PlanTaskCompletionResponse,
    tags=["daily-plans"],
)
def update_plan_task(
    plan_date: date,
    task_id: str,
    payload: PlanTaskCompletionRequest,
    request: Request,
    user_id: UUID = Query(..., description="User ID"),
    db: Session = Depends(get_db),
) -> PlanTaskCompletionResponse:
    """Mark a planned task completed or reopen it; feeds the completion history of later plans."""
    request_id = getattr(request.state, "request_id", None)
    metadata = {"date": plan_date.isoformat(), "task_id": task_id, "is_completed": payload.is_completed}
    with trace("daily_plan.task.update", metadata=metadata, user_id=str(user_id), request_id=request_id):
        try:
            completion = SqlAlchemyPlanStore(db).set_task_completion(
                user_id, plan_date, task_id, payload.is_completed
            )
        except PlanningError as exc:
            raise HTTPException(status_code=exc.status_code, detail=exc.to_dict()) from exc

    log_metric(
        "daily_plan.task.completed",
        1 if completion.is_completed else 0,
        metadata={"user_id": str(user_id), "plan_completed": completion.plan_completed},
    )
    return PlanTaskCompletionResponse(
        user_id=user_id,
        target_date=plan_date,
        task_id=completion.task_id,
        is_completed=completion.is_completed,
        completed_at=completion.completed_at,
        plan_completed=completion.plan_completed,
        request_id=request_id or "",
    )


def _generate(
    orchestrator: PlanOrchestrator,
    user_id: UUID,
    target_date: date,
    request_id: str | None,
) -> DailyPlanResponse:
    try:
        result = orchestrator.generate(user_id, target_date, request_id=request_id)
    except PlanningError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.to_dict()) from exc

    return DailyPlanResponse(
        user_id=user_id,
        target_date=target_date,
        source=result.source,
        plan=result.plan,
        request_id=request_id or "",
    )


def _stored_response(user_id: UUID, stored: StoredPlan, request_id: str | None) -> DailyPlanResponse:
    return DailyPlanResponse(
        user_id=user_id,
        target_date=stored.date,
        source=stored.source,
        plan=stored.plan,
        is_completed=stored.is_completed,
        completed_task_ids=stored.completed_task_ids,
        request_id=request_id or "",
    )
