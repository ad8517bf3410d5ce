from datetime import date, datetime
from typing import Any, Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.base import utcnow
from app.models.daily_task import DailyTask
from app.models.submission import Submission, SubmissionStatus


class CRUDSubmission(CRUDBase[Submission]):
    async def get_for_user_on_day(
        self, db: AsyncSession, user_id: int, day: date
    ) -> Optional[Submission]:
        result = await db.execute(
            select(Submission).where(
                Submission.user_id == user_id, Submission.submission_day == day
            )
        )
        return result.scalar_one_or_none()

    async def get_owned(
        self, db: AsyncSession, submission_id: int, user_id: int
    ) -> Optional[Submission]:
        """Return the submission only if ``user_id`` owns it."""
        result = await db.execute(
            select(Submission).where(
                Submission.id == submission_id, Submission.user_id == user_id
            )
        )
        return result.scalar_one_or_none()

    async def transition(
        self,
        db: AsyncSession,
        submission: Submission,
        from_statuses: Iterable[SubmissionStatus],
        to_status: SubmissionStatus,
        **values: Any,
    ) -> bool:
        """Status-guarded update. Returns False when another writer moved the row first."""
        result = await db.execute(
            update(Submission)
            .where(
                Submission.id == submission.id,
                Submission.status.in_(list(from_statuses)),
            )
            .values(status=to_status, updated_at=utcnow(), **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        await db.refresh(submission)
        return True

    async def list_with_tasks(
        self,
        db: AsyncSession,
        user_id: int,
        *,
        status: Optional[SubmissionStatus] = None,
        updated_since: Optional[datetime] = None,
        newest_first: bool = False,
    ) -> list[tuple[Submission, DailyTask]]:
        query = (
            select(Submission, DailyTask)
            .join(DailyTask, Submission.task_id == DailyTask.id)
            .where(Submission.user_id == user_id)
        )
        if status is not None:
            query = query.where(Submission.status == status)
        if updated_since is not None:
            query = query.where(Submission.updated_at >= updated_since)
        if newest_first:
            query = query.order_by(Submission.updated_at.desc(), Submission.id.desc())
        else:
            query = query.order_by(Submission.updated_at, Submission.id)
        result = await db.execute(query)
        return [(row[0], row[1]) for row in result.all()]


crud_submission = CRUDSubmission(Submission)
