from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from app.models.daily_task import TaskLevel

TimeRange = Literal["1month", "3months", "6months", "1year"]


class MonthlyPoint(BaseModel):
    month: str
    score: int
    tasks: int


class SkillSummary(BaseModel):
    score: int
    tasks: int
    trend: Literal["up", "down", "stable"]


class RecentResult(BaseModel):
    date: datetime
    task_title: str
    score: int
    level: TaskLevel


class PerformanceResponse(BaseModel):
    total_tasks: int
    average_score: int
    improvement_rate: int
    skill_breakdown: dict[str, SkillSummary]
    monthly_data: list[MonthlyPoint]
    recent_performance: list[RecentResult]
