"""Database utilities and models."""

from dailyplan.db.base import Base
from dailyplan.db import models  # noqa: F401  (imported for side effects)

__all__ = ["Base"]
