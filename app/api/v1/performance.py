from fastapi import APIRouter

from app.api.v1.deps import CurrentUserId, DbSession
from app.schemas.performance import PerformanceResponse
from app.services import performance_service

router = APIRouter(prefix="/performance", tags=["performance"])


@router.get("", response_model=PerformanceResponse)
async def get_performance(
    db: DbSession,
    user_id: CurrentUserId,
    time_range: str = performance_service.DEFAULT_TIME_RANGE,
):
    """Unknown ranges fall back to the default three months."""
    return await performance_service.get_performance(db, user_id, time_range)
