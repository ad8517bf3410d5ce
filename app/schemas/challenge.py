from datetime import date
from typing import Optional

from pydantic import BaseModel

from app.models.daily_task import TaskLevel


class WeeklyChallengeResponse(BaseModel):
    model_config = {"from_attributes": True}
    id: int
    title: str
    description: str
    level: Optional[TaskLevel]
    target_count: int
    points: int
    start_date: date
    end_date: date
    progress: int = 0  # populated dynamically
    completed: bool = False  # populated dynamically


class WeeklyChallengesResponse(BaseModel):
    challenges: list[WeeklyChallengeResponse]
