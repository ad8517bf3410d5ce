"""Daily task endpoints: list, generate, choose."""

from typing import Optional

from fastapi import APIRouter

from app.api.v1.deps import CurrentUserId, DbSession
from app.crud import crud_daily_task
from app.models.base import utcnow
from app.schemas.submission import (
    ChooseTaskRequest,
    ChooseTaskResponse,
    SubmissionResponse,
    TodayTasksResponse,
)
from app.schemas.task import GenerateTasksRequest, TaskResponse
from app.services import submission_service, task_catalog

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("/today", response_model=TodayTasksResponse)
async def get_today_tasks(db: DbSession, user_id: CurrentUserId):
    now = utcnow()
    tasks, submission = await task_catalog.list_today_tasks(db, user_id, now=now)
    user_submission = None
    if submission is not None:
        task = next((t for t in tasks if t.id == submission.task_id), None)
        if task is None:
            task = await crud_daily_task.get(db, submission.task_id)
        user_submission = SubmissionResponse.build(
            submission, task.expires_at, task.time_limit_minutes, now
        )
    return TodayTasksResponse(
        tasks=[TaskResponse.model_validate(t) for t in tasks],
        user_submission=user_submission,
    )


@router.post("/generate", status_code=201)
async def generate_tasks(
    db: DbSession,
    user_id: CurrentUserId,
    body: Optional[GenerateTasksRequest] = None,
):
    body = body or GenerateTasksRequest()
    distribution = task_catalog.resolve_distribution(body.distribution, body.preset)
    tasks = await task_catalog.generate_tasks(db, distribution)
    return {"tasks": [TaskResponse.model_validate(t) for t in tasks]}


@router.post("/choose", response_model=ChooseTaskResponse)
async def choose_task(body: ChooseTaskRequest, db: DbSession, user_id: CurrentUserId):
    now = utcnow()
    submission = await submission_service.choose_task(db, user_id, body.task_id, now=now)
    task = await crud_daily_task.get(db, submission.task_id)
    return ChooseTaskResponse(
        submission=SubmissionResponse.build(
            submission, task.expires_at, task.time_limit_minutes, now
        )
    )
