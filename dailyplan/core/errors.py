"""Error taxonomy for daily plan generation."""
from __future__ import annotations


class PlanningError(Exception):
    """Base class for errors raised by the planning engine."""

    code = "INTERNAL_SERVER_ERROR"
    status_code = 500

    def __init__(self, message: str, *, details: object | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        payload = {"code": self.code, "message": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class NotFoundError(PlanningError):
    """A required record (e.g. user preferences) does not exist."""

    code = "NOT_FOUND"
    status_code = 404


class ServiceUnavailableError(PlanningError):
    """The advisory service is rate limited, down, or not configured.

    Only this error routes a request to the heuristic fallback; it never
    leaves the orchestrator.
    """

    code = "SERVICE_UNAVAILABLE"
    status_code = 503


class InvalidPlanError(PlanningError):
    """A candidate plan failed structural validation."""

    code = "INVALID_PLAN"
    status_code = 502


class InternalError(PlanningError):
    """Transport failures other than capacity, and unexpected faults."""

    code = "INTERNAL_SERVER_ERROR"
    status_code = 500


class InvalidResponseError(InternalError):
    """The advisory service replied, but not with a JSON object."""
