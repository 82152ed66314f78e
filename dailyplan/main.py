"""Main FastAPI application for the DailyPlan backend."""
from fastapi import FastAPI, Request

from dailyplan import __version__
from dailyplan.api.routes.daily_plan import router as daily_plan_router
from dailyplan.core.config import settings
from dailyplan.core.logging import configure_logging
from dailyplan.core.middleware import RequestIDMiddleware
from dailyplan.observability.client import init_opik, shutdown_opik
from dailyplan.observability.tracing import trace

configure_logging(log_level=settings.log_level)

app = FastAPI(title=settings.app_name, version=__version__)
app.add_middleware(RequestIDMiddleware)
app.include_router(daily_plan_router)


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.on_event("shutdown")
async def shutdown_observability() -> None:
    """Flush plan traces before the process exits."""
    shutdown_opik()


@app.get("/health", tags=["health"], summary="Readiness check")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can check the API is up."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
