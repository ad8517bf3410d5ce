from fastapi import APIRouter

from app.api.v1.deps import CurrentUserId, DbSession
from app.schemas.challenge import WeeklyChallengesResponse
from app.services import challenge_service

router = APIRouter(prefix="/challenges", tags=["challenges"])


@router.get("/weekly", response_model=WeeklyChallengesResponse)
async def get_weekly_challenges(db: DbSession, user_id: CurrentUserId):
    challenges = await challenge_service.list_weekly_challenges(db, user_id)
    return WeeklyChallengesResponse(challenges=challenges)
