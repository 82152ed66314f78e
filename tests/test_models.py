from dailyplan.db.base import Base
from dailyplan.db import models  # noqa: F401  ensure models are loaded


def test_metadata_contains_planning_tables() -> None:
    table_names = set(Base.metadata.tables.keys())
    expected = {
        "users",
        "user_preferences",
        "projects",
        "tasks",
        "daily_plans",
        "daily_plan_tasks",
        "ai_history",
    }

    assert expected.issubset(table_names)


def test_daily_plan_is_unique_per_user_and_date() -> None:
    table = Base.metadata.tables["daily_plans"]
    unique_columns = [
        sorted(column.name for column in constraint.columns)
        for constraint in table.constraints
        if constraint.__class__.__name__ == "UniqueConstraint"
    ]

    assert ["date", "user_id"] in unique_columns
