from __future__ import annotations

import json
from datetime import date

import pytest

from dailyplan.core.errors import (
    InternalError,
    InvalidPlanError,
    InvalidResponseError,
    ServiceUnavailableError,
)
from dailyplan.services.plan_advisor import SYSTEM_INSTRUCTION, PlanAdvisor, build_prompt
from dailyplan.services.planning_context import (
    CandidateTask,
    DailyOutcome,
    PlanningContext,
    ProjectSummary,
)
from dailyplan.services.text_generation.base import GenerationError, GeneratorNotConfigured, TextGenerator


class FakeGenerator(TextGenerator):
    def __init__(self, reply: str = "", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls = []

    def generate(self, system_instruction, user_prompt, *, json_mode=True, timeout=None):
        self.calls.append(
            {"system": system_instruction, "prompt": user_prompt, "json_mode": json_mode, "timeout": timeout}
        )
        if self.error:
            raise self.error
        return self.reply


def _context() -> PlanningContext:
    return PlanningContext(
        daily_task_limit=3,
        preferred_projects_per_day=2,
        peak_hours=("09:00", "11:00"),
        goals=("Ship the thesis draft",),
        projects=(
            ProjectSummary(
                id="p1",
                priority="HIGH",
                category="WORK",
                hard_deadline=date(2030, 5, 1),
                name="Thesis",
                goal="Finish chapter three",
            ),
        ),
        available_tasks=(
            CandidateTask(
                id="task-1",
                project_id="p1",
                priority=5,
                complexity="MEDIUM",
                energy_type="CREATIVE",
                tags=("writing",),
                name="Draft intro",
            ),
            CandidateTask(
                id="task-2",
                project_id="p1",
                priority=2,
                complexity="VERY_SMALL",
                energy_type="ROUTINE",
                name="Rename figures",
            ),
        ),
        recent_outcomes=(DailyOutcome(date=date(2030, 4, 1), planned=4, completed=3),),
    )


def _reply(*task_ids: str, reasoning: str = "Momentum first.") -> str:
    return json.dumps(
        {
            "tasks": [
                {
                    "taskId": task_id,
                    "order": index + 1,
                    "recommendedStartTime": "09:00",
                    "recommendedEndTime": "10:00",
                    "aiAdvice": "Start with a two minute warm up.",
                }
                for index, task_id in enumerate(task_ids)
            ],
            "reasoning": reasoning,
        }
    )


def test_advisor_returns_validated_plan() -> None:
    generator = FakeGenerator(_reply("task-2", "task-1"))

    plan = PlanAdvisor(generator).advise(_context(), timeout=12.5)

    assert plan.task_ids == ["task-2", "task-1"]
    assert plan.reasoning == "Momentum first."
    assert len(generator.calls) == 1
    call = generator.calls[0]
    assert call["system"] == SYSTEM_INSTRUCTION
    assert call["json_mode"] is True
    assert call["timeout"] == 12.5


@pytest.mark.parametrize("status", [429, 500, 502, 503])
def test_capacity_failures_are_service_unavailable(status) -> None:
    generator = FakeGenerator(error=GenerationError("boom", status=status))

    with pytest.raises(ServiceUnavailableError) as exc_info:
        PlanAdvisor(generator).advise(_context())

    assert exc_info.value.details == {"status": status}
    assert len(generator.calls) == 1


@pytest.mark.parametrize("status", [400, 401, 404, None])
def test_other_transport_failures_are_internal(status) -> None:
    generator = FakeGenerator(error=GenerationError("bad request", status=status))

    with pytest.raises(InternalError) as exc_info:
        PlanAdvisor(generator).advise(_context())

    assert not isinstance(exc_info.value, ServiceUnavailableError)


def test_missing_credentials_are_service_unavailable() -> None:
    generator = FakeGenerator(error=GeneratorNotConfigured("no key"))

    with pytest.raises(ServiceUnavailableError):
        PlanAdvisor(generator).advise(_context())


@pytest.mark.parametrize("reply", ["", "   ", "Sure! Here is your plan.", "{not json"])
def test_unparseable_reply_is_invalid_response(reply) -> None:
    with pytest.raises(InvalidResponseError):
        PlanAdvisor(FakeGenerator(reply)).advise(_context())


def test_hallucinated_task_id_is_invalid_plan() -> None:
    generator = FakeGenerator(_reply("task-1", "task-99"))

    with pytest.raises(InvalidPlanError):
        PlanAdvisor(generator).advise(_context())


def test_reply_without_reasoning_is_invalid_plan() -> None:
    generator = FakeGenerator(_reply("task-1", reasoning=""))

    with pytest.raises(InvalidPlanError):
        PlanAdvisor(generator).advise(_context())


def test_prompt_renders_context() -> None:
    prompt = build_prompt(_context())

    assert "Maximum tasks per day: 3" in prompt
    assert "Preferred projects per day: 2" in prompt
    assert "Peak productivity hours: 09:00 - 11:00" in prompt
    assert '"Ship the thesis draft"' in prompt
    assert '- Project: "Thesis" (HIGH priority, WORK)' in prompt
    assert "Hard deadline: 2030-05-01" in prompt
    assert "Available tasks: 2" in prompt
    assert "ID: task-1" in prompt
    assert "Complexity: 1 hour" in prompt
    assert "Complexity: 15 min" in prompt
    assert "Energy type: Creative energy" in prompt
    assert "Tags: writing" in prompt
    assert "- 2030-04-01: 3/4 tasks completed" in prompt
    assert '"taskId"' in prompt


def test_prompt_handles_empty_context() -> None:
    prompt = build_prompt(PlanningContext(daily_task_limit=0, preferred_projects_per_day=0))

    assert "Peak productivity hours: Not specified" in prompt
    assert "No active projects." in prompt
    assert "No available tasks." in prompt
    assert "No recent completion history available." in prompt
