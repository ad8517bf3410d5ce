from fastapi import APIRouter

from app.api.v1.deps import CurrentUserId, DbSession
from app.schemas.achievement import AchievementsResponse
from app.services import achievement_service

router = APIRouter(prefix="/achievements", tags=["achievements"])


@router.get("", response_model=AchievementsResponse)
async def get_achievements(db: DbSession, user_id: CurrentUserId):
    return await achievement_service.compute_achievements(db, user_id)
