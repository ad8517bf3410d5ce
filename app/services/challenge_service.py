"""Weekly challenges with progress derived from scored submissions."""

from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.crud import crud_submission, crud_weekly_challenge
from app.models.base import utcnow
from app.models.submission import SubmissionStatus
from app.schemas.challenge import WeeklyChallengeResponse


async def list_weekly_challenges(
    db: AsyncSession, user_id: int, now: Optional[datetime] = None
) -> list[WeeklyChallengeResponse]:
    now = now or utcnow()
    today = now.date()
    challenges = await crud_weekly_challenge.get_active_on(db, today)
    if not challenges:
        return []

    scored = await crud_submission.list_with_tasks(db, user_id, status=SubmissionStatus.scored)

    result = []
    for challenge in challenges:
        progress = sum(
            1
            for submission, task in scored
            if challenge.start_date <= submission.updated_at.date() <= challenge.end_date
            and (challenge.level is None or task.level == challenge.level)
        )
        item = WeeklyChallengeResponse.model_validate(challenge)
        item.progress = min(progress, challenge.target_count)
        item.completed = progress >= challenge.target_count
        result.append(item)
    return result
