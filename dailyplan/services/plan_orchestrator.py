"""Daily plan orchestration: context, advisor or fallback, validation, delivery."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from time import perf_counter
from typing import Callable, List, Optional
from uuid import UUID

from dailyplan.api.schemas.daily_plan import GeneratedPlan
from dailyplan.core.context import get_request_id, plan_scope
from dailyplan.core.errors import InternalError, PlanningError, ServiceUnavailableError
from dailyplan.observability.metrics import log_metric
from dailyplan.observability.tracing import Trace, step, trace
from dailyplan.services.fallback_planner import plan_fallback
from dailyplan.services.plan_advisor import PlanAdvisor
from dailyplan.services.plan_store import HistoryRecorder, PlanStore
from dailyplan.services.plan_validator import ensure_plan_invariants
from dailyplan.services.planning_context import PlanningContext, PlanningContextBuilder

logger = logging.getLogger(__name__)


class PlanState(str, Enum):
    BUILDING_CONTEXT = "building_context"
    ADVISING = "advising"
    FALLING_BACK = "falling_back"
    VALIDATING = "validating"
    DONE = "done"
    FAILED = "failed"


ALLOWED_TRANSITIONS = {
    None: {PlanState.BUILDING_CONTEXT},
    PlanState.BUILDING_CONTEXT: {PlanState.ADVISING, PlanState.FAILED},
    PlanState.ADVISING: {PlanState.VALIDATING, PlanState.FALLING_BACK, PlanState.FAILED},
    PlanState.FALLING_BACK: {PlanState.VALIDATING, PlanState.FAILED},
    PlanState.VALIDATING: {PlanState.DONE, PlanState.FAILED},
    PlanState.DONE: set(),
    PlanState.FAILED: set(),
}


@dataclass
class PlanGenerationResult:
    plan: GeneratedPlan
    source: str
    context: PlanningContext
    states: List[PlanState] = field(default_factory=list)


class PlanGenerationRun:
    """State machine for a single generation request."""

    def __init__(self, user_id: UUID | str, target_date: date) -> None:
        self.user_id = user_id
        self.target_date = target_date
        self.state: Optional[PlanState] = None
        self.states: List[PlanState] = []
        self.source: Optional[str] = None

    def transition(self, new_state: PlanState) -> None:
        if new_state not in ALLOWED_TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal plan transition {self.state} -> {new_state}")
        logger.debug("Plan run user=%s date=%s: %s -> %s", self.user_id, self.target_date, self.state, new_state)
        self.state = new_state
        self.states.append(new_state)


class PlanOrchestrator:
    """
    Generate and deliver one daily plan per call.

    The advisor is tried exactly once. Only ServiceUnavailableError sends the
    run to the heuristic fallback; every other error (including a rejected
    advisor plan) fails the run and propagates. History recording is best
    effort and never blocks delivery.
    """

    def __init__(
        self,
        context_builder: PlanningContextBuilder,
        advisor: PlanAdvisor,
        plan_store: PlanStore,
        history_recorder: Optional[HistoryRecorder] = None,
        *,
        fallback: Callable[[PlanningContext], GeneratedPlan] = plan_fallback,
    ) -> None:
        self.context_builder = context_builder
        self.advisor = advisor
        self.plan_store = plan_store
        self.history_recorder = history_recorder
        self.fallback = fallback

    def generate(
        self,
        user_id: UUID | str,
        target_date: date,
        *,
        request_id: Optional[str] = None,
        timeout: Optional[float] = None,
        run: Optional[PlanGenerationRun] = None,
    ) -> PlanGenerationResult:
        run = run or PlanGenerationRun(user_id, target_date)
        request_id = request_id or get_request_id()
        metadata = {"target_date": target_date.isoformat()}
        start = perf_counter()

        with plan_scope(user_id, target_date), trace(
            "daily_plan.generate",
            metadata=metadata,
            user_id=str(user_id),
            request_id=request_id,
        ) as generation_trace:
            try:
                result = self._execute(run, timeout=timeout, parent=generation_trace)
            except PlanningError:
                self._fail(run)
                raise
            except Exception as exc:
                self._fail(run)
                logger.exception("Unexpected failure generating plan for user=%s", user_id)
                raise InternalError("Unexpected failure while generating the daily plan") from exc

            if generation_trace:
                generation_trace.update(
                    metadata={
                        "source": result.source,
                        "task_count": len(result.plan.items),
                        "states": [state.value for state in result.states],
                    }
                )

        latency_ms = (perf_counter() - start) * 1000
        log_metric("daily_plan.generate.success", 1, metadata={"user_id": str(user_id), "source": result.source})
        log_metric("daily_plan.generate.latency_ms", latency_ms, metadata={"user_id": str(user_id)})
        return result

    def _execute(
        self,
        run: PlanGenerationRun,
        *,
        timeout: Optional[float],
        parent: Optional[Trace] = None,
    ) -> PlanGenerationResult:
        run.transition(PlanState.BUILDING_CONTEXT)
        with step(parent, "build_context"):
            context = self.context_builder.build(run.user_id, run.target_date)

        run.transition(PlanState.ADVISING)
        try:
            with step(parent, "advise", metadata={"task_pool": len(context.available_tasks)}):
                plan = self.advisor.advise(context, timeout=timeout)
            run.source = "advisor"
        except ServiceUnavailableError as exc:
            logger.warning("Advisory service unavailable (%s); using fallback planner", exc)
            log_metric("daily_plan.fallback.used", 1, metadata={"user_id": str(run.user_id)})
            run.transition(PlanState.FALLING_BACK)
            with step(parent, "fallback"):
                plan = self.fallback(context)
            run.source = "fallback"

        run.transition(PlanState.VALIDATING)
        plan = ensure_plan_invariants(plan, context)

        # DONE means delivered: only entered once the store has accepted the plan.
        self.plan_store.save_plan(run.user_id, run.target_date, plan, source=run.source)
        run.transition(PlanState.DONE)
        self._record_history(run, context, plan)
        return PlanGenerationResult(plan=plan, source=run.source, context=context, states=list(run.states))

    def _fail(self, run: PlanGenerationRun) -> None:
        if run.state is not PlanState.FAILED:
            run.transition(PlanState.FAILED)
        log_metric("daily_plan.generate.success", 0, metadata={"user_id": str(run.user_id)})

    def _record_history(self, run: PlanGenerationRun, context: PlanningContext, plan: GeneratedPlan) -> None:
        if not self.history_recorder:
            return
        try:
            self.history_recorder.record(run.user_id, context, plan)
        except Exception:
            logger.exception("Failed to record plan history for user=%s", run.user_id)
