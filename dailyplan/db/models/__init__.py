"""ORM models exposed for metadata discovery."""
from dailyplan.db.models.ai_history import AIHistory
from dailyplan.db.models.daily_plan import DailyPlan, DailyPlanTask
from dailyplan.db.models.project import Project
from dailyplan.db.models.task import Task
from dailyplan.db.models.user import User
from dailyplan.db.models.user_preferences import UserPreferences

__all__ = [
    "AIHistory",
    "DailyPlan",
    "DailyPlanTask",
    "Project",
    "Task",
    "User",
    "UserPreferences",
]
