"""Schemas for generated daily plans."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

TIME_PATTERN = r"^([01]\d|2[0-3]):([0-5]\d)$"


class GeneratedPlanItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    task_id: str = Field(..., alias="taskId")
    order: int = Field(..., ge=1)
    start_time: Optional[str] = Field(default=None, alias="recommendedStartTime", pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(default=None, alias="recommendedEndTime", pattern=TIME_PATTERN)
    advice: Optional[str] = Field(default=None, alias="aiAdvice")


class GeneratedPlan(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: List[GeneratedPlanItem] = Field(default_factory=list, alias="tasks")
    reasoning: str

    def to_wire(self) -> Dict[str, Any]:
        """Serialize using the camelCase field names of the public contract."""
        return self.model_dump(by_alias=True, mode="json")

    @property
    def task_ids(self) -> List[str]:
        return [item.task_id for item in self.items]


class DailyPlanGenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: UUID
    target_date: Optional[date] = Field(default=None, alias="date")


class DailyPlanResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: UUID
    target_date: date = Field(..., alias="date")
    source: Optional[Literal["advisor", "fallback"]] = None
    plan: GeneratedPlan
    is_completed: bool = False
    completed_task_ids: List[str] = Field(default_factory=list)
    request_id: str


class PlanTaskCompletionRequest(BaseModel):
    is_completed: bool


class PlanTaskCompletionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: UUID
    target_date: date = Field(..., alias="date")
    task_id: str
    is_completed: bool
    completed_at: Optional[datetime] = None
    plan_completed: bool
    request_id: str
