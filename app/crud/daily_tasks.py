from datetime import datetime
from typing import Sequence

from sqlalchemy import case, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.daily_task import LEVEL_CONFIG, DailyTask

_level_order = case(
    {level: cfg.sort_order for level, cfg in LEVEL_CONFIG.items()},
    value=DailyTask.level,
)


class CRUDDailyTask(CRUDBase[DailyTask]):
    async def get_active_in_window(
        self, db: AsyncSession, day_start: datetime, day_end: datetime, now: datetime
    ) -> Sequence[DailyTask]:
        """Unexpired tasks created inside [day_start, day_end), easiest first."""
        result = await db.execute(
            select(DailyTask)
            .where(
                DailyTask.expires_at > now,
                DailyTask.created_at >= day_start,
                DailyTask.created_at < day_end,
            )
            .order_by(_level_order, DailyTask.id)
        )
        return result.scalars().all()


crud_daily_task = CRUDDailyTask(DailyTask)
