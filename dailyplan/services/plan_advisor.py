"""LLM-backed daily plan advisor."""
from __future__ import annotations

import json
import logging
from typing import List, Optional

from dailyplan.api.schemas.daily_plan import GeneratedPlan
from dailyplan.core.errors import InternalError, InvalidResponseError, ServiceUnavailableError
from dailyplan.services.plan_validator import validate_plan
from dailyplan.services.planning_context import PlanningContext
from dailyplan.services.text_generation.base import GenerationError, GeneratorNotConfigured, TextGenerator

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You are an AI assistant specialized in task planning for people with ADHD. "
    "You understand the unique challenges they face with executive function, task initiation, "
    "and maintaining focus. Your goal is to create balanced, achievable daily plans that maintain "
    "interest and momentum."
)

COMPLEXITY_LABELS = {
    "VERY_SMALL": "15 min",
    "SMALL": "30 min",
    "MEDIUM": "1 hour",
    "LARGE": "2 hours",
    "VERY_LARGE": "2+ hours",
}

ENERGY_LABELS = {
    "CREATIVE": "Creative energy",
    "ROUTINE": "Routine/administrative energy",
    "COMMUNICATION": "Social/communication energy",
    "PHYSICAL": "Physical energy",
}

ADHD_CONSIDERATIONS = (
    "1. Switching between different projects helps maintain interest and motivation\n"
    "2. Balance complex tasks with simpler ones to avoid cognitive fatigue\n"
    "3. Match task energy types to different parts of the day (creative work during peak hours)\n"
    "4. Group similar tasks when possible for efficiency\n"
    "5. Include small wins early in the day to build momentum\n"
    "6. Consider task deadlines\n"
    "7. Limit total number of tasks to prevent overwhelm"
)

RESPONSE_FORMAT = """{
  "tasks": [
    {
      "taskId": "task-id-here",
      "order": 1,
      "recommendedStartTime": "09:00",
      "recommendedEndTime": "09:30",
      "aiAdvice": "Brief advice for this specific task"
    }
  ],
  "reasoning": "Why these tasks were selected and arranged in this order"
}"""


class PlanAdvisor:
    """Ask a generative service for a plan and accept only a valid one."""

    def __init__(self, generator: TextGenerator) -> None:
        self.generator = generator

    def advise(self, context: PlanningContext, *, timeout: Optional[float] = None) -> GeneratedPlan:
        """
        Request a plan for the given context.

        Raises ServiceUnavailableError for rate limiting (429), provider outages
        (5xx) or a missing API key; InternalError for every other transport
        failure; InvalidResponseError when the reply is not a JSON object; and
        InvalidPlanError when the parsed plan fails validation.
        """
        prompt = build_prompt(context)
        try:
            content = self.generator.generate(SYSTEM_INSTRUCTION, prompt, json_mode=True, timeout=timeout)
        except GeneratorNotConfigured as exc:
            raise ServiceUnavailableError(str(exc)) from exc
        except GenerationError as exc:
            raise classify_generation_error(exc) from exc

        if not content or not content.strip():
            raise InvalidResponseError("Empty response from advisory service")
        try:
            payload = json.loads(content)
        except json.JSONDecodeError as exc:
            logger.error("Advisory response is not valid JSON: %s", exc)
            raise InvalidResponseError("Failed to parse advisory response") from exc

        return validate_plan(payload, context)


def classify_generation_error(exc: GenerationError) -> Exception:
    """Map a failed generation call onto the planning error taxonomy."""
    status = exc.status
    if status == 429:
        return ServiceUnavailableError("Rate limit exceeded with advisory service", details={"status": status})
    if status is not None and status >= 500:
        return ServiceUnavailableError("Advisory service is currently unavailable", details={"status": status})
    return InternalError("Failed to generate plan with advisory service", details={"status": status})


def build_prompt(context: PlanningContext) -> str:
    """Render the planning context into the advisory prompt."""
    peak_hours = "Not specified"
    if context.peak_hours:
        start, end = context.peak_hours
        peak_hours = f"{start} - {end}" if end else start

    return (
        "You are a personal planner for someone with ADHD. "
        "Create a daily plan that is balanced, engaging, and achievable.\n\n"
        "USER CONTEXT:\n"
        f"- Maximum tasks per day: {context.daily_task_limit}\n"
        f"- Preferred projects per day: {context.preferred_projects_per_day}\n"
        f"- Peak productivity hours: {peak_hours}\n"
        f"- Current goals: {json.dumps(list(context.goals))}\n\n"
        "ACTIVE PROJECTS:\n"
        f"{_projects_block(context)}\n\n"
        "AVAILABLE TASKS:\n"
        f"{_tasks_block(context)}\n\n"
        "HISTORY:\n"
        f"{_history_block(context)}\n\n"
        "ADHD CONSIDERATIONS:\n"
        f"{ADHD_CONSIDERATIONS}\n\n"
        "INSTRUCTIONS:\n"
        "Create a daily plan with the following:\n"
        f"1. A selection of {context.daily_task_limit} tasks maximum\n"
        f"2. Tasks from {context.preferred_projects_per_day} different projects\n"
        "3. A mix of complexity levels and energy types\n"
        "4. A suggested order of completion\n"
        "5. Recommended time blocks for each task (24-hour HH:MM)\n"
        "6. Brief advice for approaching each task\n"
        "Only use task IDs from the AVAILABLE TASKS list.\n\n"
        "RESPONSE FORMAT:\n"
        "Provide your response as a JSON object with the following structure:\n"
        f"{RESPONSE_FORMAT}\n"
    )


def _projects_block(context: PlanningContext) -> str:
    if not context.projects:
        return "No active projects."
    lines: List[str] = []
    for project in context.projects:
        if project.hard_deadline:
            deadline = f"Hard deadline: {project.hard_deadline.isoformat()}"
        elif project.soft_deadline:
            deadline = f"Soft deadline: {project.soft_deadline.isoformat()}"
        else:
            deadline = "No deadline"
        task_count = sum(1 for task in context.available_tasks if task.project_id == project.id)
        lines.append(
            f'- Project: "{project.name or project.id}" ({project.priority} priority, {project.category})\n'
            f"  Goal: {project.goal or 'Not specified'}\n"
            f"  {deadline}\n"
            f"  Available tasks: {task_count}"
        )
    return "\n\n".join(lines)


def _tasks_block(context: PlanningContext) -> str:
    if not context.available_tasks:
        return "No available tasks."
    lines: List[str] = []
    for task in context.available_tasks:
        project = context.project(task.project_id)
        project_name = (project.name or project.id) if project else task.project_id
        lines.append(
            f'- Task: "{task.name or task.id}" (Project: {project_name})\n'
            f"  Priority: {task.priority}/5\n"
            f"  Complexity: {COMPLEXITY_LABELS.get(task.complexity, task.complexity)}\n"
            f"  Energy type: {ENERGY_LABELS.get(task.energy_type, task.energy_type)}\n"
            f"  Tags: {', '.join(task.tags) or 'None'}\n"
            f"  ID: {task.id}"
        )
    return "\n\n".join(lines)


def _history_block(context: PlanningContext) -> str:
    if not context.recent_outcomes:
        return "No recent completion history available."
    rows = "\n".join(
        f"- {outcome.date.isoformat()}: {outcome.completed}/{outcome.planned} tasks completed"
        for outcome in context.recent_outcomes
    )
    return f"Recent completion history:\n{rows}"
