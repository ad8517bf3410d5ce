"""Score analytics over a user's scored submissions."""

import calendar
import re
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.crud import crud_submission
from app.models.base import utcnow
from app.models.daily_task import DailyTask, TaskLevel
from app.models.submission import Submission, SubmissionStatus
from app.schemas.performance import (
    MonthlyPoint,
    PerformanceResponse,
    RecentResult,
    SkillSummary,
)

TIME_RANGE_MONTHS = {"1month": 1, "3months": 3, "6months": 6, "1year": 12}
DEFAULT_TIME_RANGE = "3months"
RECENT_LIMIT = 10
TREND_THRESHOLD = 5

# First match wins
SKILL_KEYWORDS: list[tuple[str, re.Pattern]] = [
    ("JavaScript", re.compile(r"javascript|\bjs\b")),
    ("React", re.compile(r"react|component")),
    ("Node.js", re.compile(r"node|\bapi\b|server")),
    ("Database", re.compile(r"database|sql|query")),
]
SKILLS = ["JavaScript", "React", "Node.js", "Database", "Algorithms"]


def months_ago(now: datetime, months: int) -> datetime:
    month_index = now.year * 12 + (now.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(now.day, calendar.monthrange(year, month)[1])
    return now.replace(year=year, month=month, day=day)


def classify_skill(task: DailyTask) -> str:
    title = task.title.lower()
    for skill, pattern in SKILL_KEYWORDS:
        if pattern.search(title):
            return skill
    if task.level == TaskLevel.pro:
        return "Algorithms"
    return "JavaScript"


def _mean(values: list[int]) -> float:
    return sum(values) / len(values) if values else 0.0


def _trend(scores: list[int]) -> str:
    half = len(scores) // 2
    if half == 0:
        return "stable"
    earlier = _mean(scores[:half])
    recent = _mean(scores[half:])
    if recent > earlier + TREND_THRESHOLD:
        return "up"
    if recent < earlier - TREND_THRESHOLD:
        return "down"
    return "stable"


def summarize(
    history: list[tuple[Submission, DailyTask]], now: datetime
) -> PerformanceResponse:
    """Build analytics from scored (submission, task) pairs in ascending update order."""
    scores = [s.score or 0 for s, _ in history]

    monthly: dict[tuple[int, int], list[int]] = {}
    labels: dict[tuple[int, int], str] = {}
    skills: dict[str, list[int]] = {skill: [] for skill in SKILLS}
    for submission, task in history:
        key = (submission.updated_at.year, submission.updated_at.month)
        monthly.setdefault(key, []).append(submission.score or 0)
        labels[key] = submission.updated_at.strftime("%b")
        skills[classify_skill(task)].append(submission.score or 0)

    last_month_start = months_ago(now, 1)
    previous_month_start = months_ago(now, 2)
    last_month = [s.score or 0 for s, _ in history if s.updated_at >= last_month_start]
    previous_month = [
        s.score or 0
        for s, _ in history
        if previous_month_start <= s.updated_at < last_month_start
    ]
    previous_avg = _mean(previous_month)
    improvement = (
        round((_mean(last_month) - previous_avg) / previous_avg * 100) if previous_avg > 0 else 0
    )

    return PerformanceResponse(
        total_tasks=len(history),
        average_score=round(_mean(scores)),
        improvement_rate=improvement,
        skill_breakdown={
            skill: SkillSummary(score=round(_mean(values)), tasks=len(values), trend=_trend(values))
            for skill, values in skills.items()
        },
        monthly_data=[
            MonthlyPoint(month=labels[key], score=round(_mean(values)), tasks=len(values))
            for key, values in sorted(monthly.items())
        ],
        recent_performance=[
            RecentResult(
                date=submission.updated_at,
                task_title=task.title,
                score=submission.score or 0,
                level=task.level,
            )
            for submission, task in reversed(history[-RECENT_LIMIT:])
        ],
    )


async def get_performance(
    db: AsyncSession,
    user_id: int,
    time_range: str = DEFAULT_TIME_RANGE,
    now: Optional[datetime] = None,
) -> PerformanceResponse:
    now = now or utcnow()
    months = TIME_RANGE_MONTHS.get(time_range, TIME_RANGE_MONTHS[DEFAULT_TIME_RANGE])
    history = await crud_submission.list_with_tasks(
        db,
        user_id,
        status=SubmissionStatus.scored,
        updated_since=months_ago(now, months),
    )
    return summarize(history, now)
