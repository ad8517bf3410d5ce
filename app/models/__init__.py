from app.models.base import Base, TimestampMixin, utcnow
from app.models.user import User
from app.models.daily_task import DailyTask, TaskLevel, LevelConfig, LEVEL_CONFIG
from app.models.submission import Submission, SubmissionStatus, SUBMITTABLE_STATUSES
from app.models.achievement import UserAchievement
from app.models.weekly_challenge import WeeklyChallenge

__all__ = [
    "Base",
    "TimestampMixin",
    "utcnow",
    "User",
    "DailyTask",
    "TaskLevel",
    "LevelConfig",
    "LEVEL_CONFIG",
    "Submission",
    "SubmissionStatus",
    "SUBMITTABLE_STATUSES",
    "UserAchievement",
    "WeeklyChallenge",
]
