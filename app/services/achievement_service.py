"""Achievement progress derived from submission history."""

import logging
from datetime import date, datetime, timedelta
from typing import NamedTuple, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud import crud_submission, crud_user_achievement
from app.models.achievement import UserAchievement
from app.models.base import utcnow
from app.models.daily_task import DailyTask, TaskLevel
from app.models.submission import Submission, SubmissionStatus
from app.schemas.achievement import AchievementProgress, AchievementStats, AchievementsResponse

logger = logging.getLogger(__name__)

STREAK_WINDOW_DAYS = 7


class AchievementDef(NamedTuple):
    title: str
    description: str
    category: str
    difficulty: str
    points: int
    metric: str
    max_progress: int
    requirement: str


ACHIEVEMENT_CATALOGUE: dict[str, AchievementDef] = {
    "first-task": AchievementDef(
        "First Steps", "Complete your first coding task", "milestone", "bronze", 100,
        "total_scored", 1, "Complete 1 task",
    ),
    "perfect-score": AchievementDef(
        "Perfect Score", "Score 100% on any task", "performance", "silver", 250,
        "perfect_scores", 1, "Score 100% on a task",
    ),
    "week-warrior": AchievementDef(
        "Week Warrior", "Complete tasks for 7 consecutive days", "consistency", "gold", 500,
        "streak_days", 7, "7 day streak",
    ),
    "algorithm-master": AchievementDef(
        "Algorithm Master", "Complete 50 algorithm-based tasks", "coding", "platinum", 1000,
        "pro_scored", 50, "50 algorithm tasks",
    ),
    "century-club": AchievementDef(
        "Century Club", "Complete 100 tasks", "milestone", "gold", 750,
        "total_scored", 100, "100 completed tasks",
    ),
}


class HistoryStats(NamedTuple):
    total_scored: int
    perfect_scores: int
    streak_days: int
    pro_scored: int


def compute_stats(
    history: list[tuple[Submission, DailyTask]], today: date
) -> HistoryStats:
    """Pure counters over a user's history; only ``scored`` submissions count."""
    scored = [(s, t) for s, t in history if s.status == SubmissionStatus.scored]
    window_start = today - timedelta(days=STREAK_WINDOW_DAYS - 1)
    recent_days = {
        s.updated_at.date()
        for s, _ in scored
        if window_start <= s.updated_at.date() <= today
    }
    return HistoryStats(
        total_scored=len(scored),
        perfect_scores=sum(1 for s, _ in scored if s.score == 100),
        streak_days=len(recent_days),
        pro_scored=sum(1 for _, t in scored if t.level == TaskLevel.pro),
    )


async def compute_achievements(
    db: AsyncSession, user_id: int, now: Optional[datetime] = None
) -> AchievementsResponse:
    """
    Evaluate every catalogue achievement against the user's history.

    The only write is a UserAchievement row the first time an achievement
    unlocks; once stored it stays unlocked even if the metric later drops
    (e.g. the streak window moves on).
    """
    now = now or utcnow()
    try:
        return await _evaluate(db, user_id, now)
    except IntegrityError:
        # A concurrent request stored the same unlock first; re-read its row
        logger.info("Achievement unlock race for user %d, re-reading", user_id)
        await db.rollback()
        return await _evaluate(db, user_id, now)


async def _evaluate(db: AsyncSession, user_id: int, now: datetime) -> AchievementsResponse:
    history = await crud_submission.list_with_tasks(db, user_id)
    stats = compute_stats(history, now.date())

    unlocked_rows = {
        row.achievement_key: row
        for row in await crud_user_achievement.get_by_user(db, user_id)
    }

    achievements: list[AchievementProgress] = []
    for key, definition in ACHIEVEMENT_CATALOGUE.items():
        value = getattr(stats, definition.metric)
        row = unlocked_rows.get(key)
        cap = definition.max_progress
        if row is None and value >= cap:
            row = UserAchievement(
                user_id=user_id, achievement_key=key, unlocked_at=now,
                created_at=now, updated_at=now,
            )
            db.add(row)
            unlocked_rows[key] = row

        achievements.append(
            AchievementProgress(
                id=key,
                title=definition.title,
                description=definition.description,
                category=definition.category,
                difficulty=definition.difficulty,
                points=definition.points,
                progress=cap if row is not None else min(value, cap),
                max_progress=cap,
                unlocked=row is not None,
                unlocked_at=row.unlocked_at if row is not None else None,
                requirements=[definition.requirement],
            )
        )
    await db.flush()

    return AchievementsResponse(
        achievements=achievements,
        stats=AchievementStats(
            total_tasks=stats.total_scored,
            perfect_scores=stats.perfect_scores,
            current_streak=stats.streak_days,
        ),
    )
