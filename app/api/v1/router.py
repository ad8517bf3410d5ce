"""Aggregates all v1 routers."""
from fastapi import APIRouter
from app.api.v1.tasks import router as tasks_router
from app.api.v1.submissions import router as submissions_router
from app.api.v1.achievements import router as achievements_router
from app.api.v1.challenges import router as challenges_router
from app.api.v1.performance import router as performance_router

router = APIRouter()
router.include_router(tasks_router)
router.include_router(submissions_router)
router.include_router(achievements_router)
router.include_router(challenges_router)
router.include_router(performance_router)
