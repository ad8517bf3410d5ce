from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.achievement import UserAchievement


class CRUDUserAchievement(CRUDBase[UserAchievement]):
    async def get_by_user(self, db: AsyncSession, user_id: int) -> Sequence[UserAchievement]:
        result = await db.execute(
            select(UserAchievement).where(UserAchievement.user_id == user_id)
        )
        return result.scalars().all()


crud_user_achievement = CRUDUserAchievement(UserAchievement)
