"""Submission endpoints: submit code, poll result, history."""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.api.v1.deps import CurrentUserId, DbSession
from app.database import get_session_factory
from app.models.base import utcnow
from app.schemas.submission import (
    SubmissionResponse,
    SubmitAck,
    SubmitCodeRequest,
    TaskResultResponse,
)
from app.schemas.task import TaskResponse
from app.services import submission_service

router = APIRouter(prefix="/submissions", tags=["submissions"])


@router.get("", response_model=list[SubmissionResponse])
async def list_submissions(db: DbSession, user_id: CurrentUserId):
    now = utcnow()
    history = await submission_service.list_history(db, user_id)
    return [
        SubmissionResponse.build(submission, task.expires_at, task.time_limit_minutes, now)
        for submission, task in history
    ]


@router.post("/{submission_id}/submit", response_model=SubmitAck, status_code=202)
async def submit_for_evaluation(
    submission_id: int,
    body: SubmitCodeRequest,
    background_tasks: BackgroundTasks,
    db: DbSession,
    user_id: CurrentUserId,
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
):
    """Accept code and schedule scoring; clients poll the result endpoint."""
    submission = await submission_service.submit_for_evaluation(
        db, user_id, submission_id, body.submission_code
    )
    # The scoring job reads the row in its own session, so it must be committed first
    await db.commit()
    background_tasks.add_task(submission_service.run_scoring_job, session_factory, submission.id)
    return SubmitAck(submission_id=submission.id, status=submission.status)


@router.get("/{submission_id}/result", response_model=TaskResultResponse)
async def get_task_result(submission_id: int, db: DbSession, user_id: CurrentUserId):
    submission, task = await submission_service.get_result(db, user_id, submission_id)
    return TaskResultResponse(
        submission=SubmissionResponse.build(
            submission, task.expires_at, task.time_limit_minutes, utcnow()
        ),
        task=TaskResponse.model_validate(task),
    )
