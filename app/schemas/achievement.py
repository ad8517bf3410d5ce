from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class AchievementProgress(BaseModel):
    id: str
    title: str
    description: str
    category: str
    difficulty: str
    points: int
    progress: int
    max_progress: int
    unlocked: bool
    unlocked_at: Optional[datetime] = None
    requirements: list[str] = []


class AchievementStats(BaseModel):
    total_tasks: int
    perfect_scores: int
    current_streak: int


class AchievementsResponse(BaseModel):
    achievements: list[AchievementProgress]
    stats: AchievementStats
