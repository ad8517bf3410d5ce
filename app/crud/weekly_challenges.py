from datetime import date
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.weekly_challenge import WeeklyChallenge


class CRUDWeeklyChallenge(CRUDBase[WeeklyChallenge]):
    async def get_active_on(self, db: AsyncSession, day: date) -> Sequence[WeeklyChallenge]:
        result = await db.execute(
            select(WeeklyChallenge)
            .where(WeeklyChallenge.start_date <= day, WeeklyChallenge.end_date >= day)
            .order_by(WeeklyChallenge.created_at.desc(), WeeklyChallenge.id.desc())
        )
        return result.scalars().all()


crud_weekly_challenge = CRUDWeeklyChallenge(WeeklyChallenge)
