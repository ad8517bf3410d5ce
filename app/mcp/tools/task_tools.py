"""Task lifecycle MCP tools (role: authenticated user)."""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.crud import crud_daily_task
from app.database import AsyncSessionLocal
from app.exceptions import ScoringFailed
from app.mcp.auth import resolve_user_id
from app.mcp.server import mcp
from app.models.base import utcnow
from app.models.submission import Submission, SubmissionStatus
from app.schemas.submission import SubmissionResponse
from app.schemas.task import TaskResponse
from app.services import achievement_service, submission_service, task_catalog

logger = logging.getLogger(__name__)


async def _submission_dict(db: AsyncSession, submission: Submission) -> dict:
    task = await crud_daily_task.get(db, submission.task_id)
    return SubmissionResponse.build(
        submission, task.expires_at, task.time_limit_minutes, utcnow()
    ).model_dump(mode="json")


async def submit_and_score(
    db: AsyncSession,
    session_factory: async_sessionmaker[AsyncSession],
    user_id: int,
    submission_id: int,
    code: str,
) -> dict:
    """Move to scoring and score inline; MCP callers have no polling loop.

    Any failure after the move to ``scoring`` leaves the row in ``error`` so the
    caller can resubmit.
    """
    submission = await submission_service.submit_for_evaluation(db, user_id, submission_id, code)
    await db.commit()
    try:
        await submission_service.score_submission(db, submission)
        await db.commit()
    except Exception:
        logger.exception("Inline scoring failed for submission %d", submission_id)
        await db.rollback()
        await submission_service.mark_scoring_error(session_factory, submission_id)
        raise ScoringFailed(details="status: error")
    if submission.status == SubmissionStatus.error:
        raise ScoringFailed(details="status: error")
    return await _submission_dict(db, submission)


@mcp.tool()
async def list_today_tasks(access_token: Optional[str] = None) -> dict:
    """List today's coding tasks and the caller's submission for today, if any."""
    async with AsyncSessionLocal() as db:
        user_id = await resolve_user_id(db, access_token)
        tasks, submission = await task_catalog.list_today_tasks(db, user_id)
        result = {
            "tasks": [TaskResponse.model_validate(t).model_dump(mode="json") for t in tasks],
            "user_submission": await _submission_dict(db, submission) if submission else None,
        }
        await db.commit()
        return result


@mcp.tool()
async def choose_task(task_id: int, access_token: Optional[str] = None) -> dict:
    """Choose today's task. Only one task may be chosen per day."""
    async with AsyncSessionLocal() as db:
        user_id = await resolve_user_id(db, access_token)
        submission = await submission_service.choose_task(db, user_id, task_id)
        await db.commit()
        return await _submission_dict(db, submission)


@mcp.tool()
async def submit_task(
    submission_id: int, submission_code: str, access_token: Optional[str] = None
) -> dict:
    """Submit code for the chosen task and return the scored submission."""
    async with AsyncSessionLocal() as db:
        user_id = await resolve_user_id(db, access_token)
        return await submit_and_score(
            db, AsyncSessionLocal, user_id, submission_id, submission_code
        )


@mcp.tool()
async def get_task_result(submission_id: int, access_token: Optional[str] = None) -> dict:
    """Return the scored submission with its task. Fails until scoring has finished."""
    async with AsyncSessionLocal() as db:
        user_id = await resolve_user_id(db, access_token)
        submission, task = await submission_service.get_result(db, user_id, submission_id)
        return {
            "submission": await _submission_dict(db, submission),
            "task": TaskResponse.model_validate(task).model_dump(mode="json"),
        }


@mcp.tool()
async def get_achievements(access_token: Optional[str] = None) -> dict:
    """Return achievement progress and summary stats for the caller."""
    async with AsyncSessionLocal() as db:
        user_id = await resolve_user_id(db, access_token)
        result = await achievement_service.compute_achievements(db, user_id)
        await db.commit()
        return result.model_dump(mode="json")
