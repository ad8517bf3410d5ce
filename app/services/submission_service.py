"""Submission lifecycle: chosen -> scoring -> scored (or error).

Every transition is a status-guarded UPDATE, so a stale or duplicate request
can never move a submission backwards or score it twice.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.crud import crud_daily_task, crud_submission
from app.exceptions import (
    AlreadyChosenToday,
    AlreadyScored,
    EmptySubmission,
    NotReady,
    ScoringFailed,
    SubmissionInProgress,
    SubmissionNotFound,
    TaskExpired,
    TaskNotFound,
)
from app.models.base import utcnow
from app.models.daily_task import DailyTask
from app.models.submission import SUBMITTABLE_STATUSES, Submission, SubmissionStatus
from app.services import evaluation_service
from app.services.llm_service import LLMNotConfiguredError

logger = logging.getLogger(__name__)


async def choose_task(
    db: AsyncSession, user_id: int, task_id: int, now: Optional[datetime] = None
) -> Submission:
    """Create the caller's single submission for today in ``chosen`` state."""
    now = now or utcnow()
    today = now.date()

    if await crud_submission.get_for_user_on_day(db, user_id, today):
        raise AlreadyChosenToday()

    task = await crud_daily_task.get(db, task_id)
    if task is None:
        raise TaskNotFound()
    if task.is_expired(now):
        raise TaskExpired()

    submission = Submission(
        user_id=user_id,
        task_id=task_id,
        submission_day=today,
        chosen_at=now,
        status=SubmissionStatus.chosen,
        created_at=now,
        updated_at=now,
    )
    db.add(submission)
    try:
        await db.flush()
    except IntegrityError:
        # Lost a race with a concurrent choose for the same user and day
        await db.rollback()
        raise AlreadyChosenToday()

    logger.info("User %d chose task %d (submission %d)", user_id, task_id, submission.id)
    return submission


async def submit_for_evaluation(
    db: AsyncSession,
    user_id: int,
    submission_id: int,
    code: str,
    now: Optional[datetime] = None,
) -> Submission:
    """Store the code and move to ``scoring``. Scoring itself runs separately."""
    if not code or not code.strip():
        raise EmptySubmission()

    submission = await crud_submission.get_owned(db, submission_id, user_id)
    if submission is None:
        raise SubmissionNotFound()
    _ensure_submittable(submission)

    moved = await crud_submission.transition(
        db,
        submission,
        SUBMITTABLE_STATUSES,
        SubmissionStatus.scoring,
        submission_code=code,
        submitted_at=now or utcnow(),
        score=None,
        ai_feedback=None,
    )
    if not moved:
        await db.refresh(submission)
        _ensure_submittable(submission)
        raise SubmissionInProgress()

    logger.info("Submission %d moved to scoring", submission.id)
    return submission


def _ensure_submittable(submission: Submission) -> None:
    if submission.status == SubmissionStatus.scored:
        raise AlreadyScored()
    if submission.status == SubmissionStatus.scoring:
        raise SubmissionInProgress()


async def score_submission(db: AsyncSession, submission: Submission) -> Submission:
    """Evaluate a ``scoring`` submission and record the outcome.

    Model failures are absorbed by the evaluation service (fallback feedback);
    only a missing LLM configuration ends in ``error``.
    """
    task = await crud_daily_task.get(db, submission.task_id)
    try:
        feedback = await evaluation_service.evaluate(task, submission.submission_code or "")
    except LLMNotConfiguredError as exc:
        logger.error("Cannot score submission %d: %s", submission.id, exc)
        await crud_submission.transition(
            db, submission, [SubmissionStatus.scoring], SubmissionStatus.error
        )
        return submission

    moved = await crud_submission.transition(
        db,
        submission,
        [SubmissionStatus.scoring],
        SubmissionStatus.scored,
        score=feedback.overall_score,
        ai_feedback=feedback.to_storage(),
    )
    if moved:
        logger.info("Submission %d scored %d", submission.id, feedback.overall_score)
    else:
        logger.warning("Submission %d left scoring before its result was saved", submission.id)
    return submission


async def run_scoring_job(
    session_factory: async_sessionmaker[AsyncSession], submission_id: int
) -> None:
    """Background entry point: score one submission in its own session."""
    async with session_factory() as db:
        try:
            submission = await crud_submission.get(db, submission_id)
            if submission is None or submission.status != SubmissionStatus.scoring:
                logger.info("Skipping scoring for submission %d: not in scoring", submission_id)
                return
            await score_submission(db, submission)
            await db.commit()
            return
        except Exception:
            logger.exception("Scoring failed for submission %d", submission_id)
            await db.rollback()

    await mark_scoring_error(session_factory, submission_id)


async def mark_scoring_error(
    session_factory: async_sessionmaker[AsyncSession], submission_id: int
) -> None:
    """Move a submission stuck in ``scoring`` to ``error`` in a fresh session."""
    async with session_factory() as db:
        try:
            submission = await crud_submission.get(db, submission_id)
            if submission is not None:
                await crud_submission.transition(
                    db, submission, [SubmissionStatus.scoring], SubmissionStatus.error
                )
                await db.commit()
        except SQLAlchemyError:
            logger.exception("Could not mark submission %d as error", submission_id)


async def get_result(
    db: AsyncSession, user_id: int, submission_id: int
) -> tuple[Submission, DailyTask]:
    """Return the scored submission with its task.

    ``NotReady`` while chosen or scoring; ``ScoringFailed`` once scoring hit an
    infrastructure error (the caller may resubmit).
    """
    submission = await crud_submission.get_owned(db, submission_id, user_id)
    if submission is None:
        raise SubmissionNotFound(message="Submission not found or access denied")
    if submission.status == SubmissionStatus.error:
        raise ScoringFailed(details="status: error")
    if submission.status != SubmissionStatus.scored:
        raise NotReady(details=f"status: {submission.status.value}")
    task = await crud_daily_task.get(db, submission.task_id)
    return submission, task


async def list_history(
    db: AsyncSession, user_id: int
) -> list[tuple[Submission, DailyTask]]:
    return await crud_submission.list_with_tasks(db, user_id, newest_first=True)
