"""Submission state machine: chosen -> scoring -> scored | error."""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select

from app.crud import crud_submission
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
from app.models.daily_task import TaskLevel
from app.models.submission import Submission, SubmissionStatus
from app.schemas.submission import SubmissionResponse
from app.services import submission_service
from conftest import GOOD_EVALUATION, make_task

CODE = "def solve(xs):\n    return sum(xs)\n"


async def _count_submissions(db, user_id: int) -> int:
    return await db.scalar(
        select(func.count()).select_from(Submission).where(Submission.user_id == user_id)
    )


def _patch_llm(**kwargs):
    kwargs.setdefault("return_value", (GOOD_EVALUATION, 100, 200))
    return patch(
        "app.services.evaluation_service.llm_service.chat_complete",
        new_callable=AsyncMock,
        **kwargs,
    )


# ---------------------------------------------------------------------------
# choose
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_choose_creates_chosen_submission(db, user):
    now = utcnow()
    task = await make_task(db, created_at=now)

    submission = await submission_service.choose_task(db, user.id, task.id, now=now)

    assert submission.status == SubmissionStatus.chosen
    assert submission.submission_day == now.date()
    assert submission.chosen_at == now
    assert submission.score is None


@pytest.mark.asyncio
async def test_only_one_choice_per_day(db, user):
    now = utcnow()
    first = await make_task(db, created_at=now)
    second = await make_task(db, level=TaskLevel.pro, created_at=now)
    await submission_service.choose_task(db, user.id, first.id, now=now)

    with pytest.raises(AlreadyChosenToday):
        await submission_service.choose_task(db, user.id, first.id, now=now)
    with pytest.raises(AlreadyChosenToday):
        await submission_service.choose_task(db, user.id, second.id, now=now)


@pytest.mark.asyncio
async def test_choose_again_next_day(db, user):
    now = utcnow()
    task = await make_task(db, created_at=now, ttl_hours=72)
    await submission_service.choose_task(db, user.id, task.id, now=now)

    tomorrow = await submission_service.choose_task(
        db, user.id, task.id, now=now + timedelta(days=1)
    )
    assert tomorrow.submission_day == (now + timedelta(days=1)).date()


@pytest.mark.asyncio
async def test_concurrent_choose_same_day_maps_to_already_chosen(db, user, monkeypatch):
    now = utcnow()
    user_id = user.id
    task = await make_task(db, created_at=now)
    task_id = task.id
    await submission_service.choose_task(db, user_id, task_id, now=now)
    await db.commit()

    # The other request passed the existence check before this row committed
    monkeypatch.setattr(
        crud_submission, "get_for_user_on_day", AsyncMock(return_value=None)
    )
    with pytest.raises(AlreadyChosenToday):
        await submission_service.choose_task(db, user_id, task_id, now=now)

    assert await _count_submissions(db, user_id) == 1


@pytest.mark.asyncio
async def test_choose_unknown_task(db, user):
    with pytest.raises(TaskNotFound):
        await submission_service.choose_task(db, user.id, 9999)


@pytest.mark.asyncio
async def test_choose_expired_task(db, user):
    now = utcnow()
    task = await make_task(db, created_at=now - timedelta(hours=25))

    with pytest.raises(TaskExpired):
        await submission_service.choose_task(db, user.id, task.id, now=now)

    assert await _count_submissions(db, user.id) == 0


# ---------------------------------------------------------------------------
# submit
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_submit_moves_to_scoring(db, user):
    now = utcnow()
    task = await make_task(db, created_at=now)
    submission = await submission_service.choose_task(db, user.id, task.id, now=now)

    await submission_service.submit_for_evaluation(
        db, user.id, submission.id, CODE, now=now + timedelta(minutes=10)
    )

    assert submission.status == SubmissionStatus.scoring
    assert submission.submission_code == CODE
    assert submission.submitted_at == now + timedelta(minutes=10)


@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["", "   \n\t"])
async def test_blank_code_rejected_without_state_change(db, user, code):
    task = await make_task(db)
    submission = await submission_service.choose_task(db, user.id, task.id)

    with pytest.raises(EmptySubmission):
        await submission_service.submit_for_evaluation(db, user.id, submission.id, code)

    await db.refresh(submission)
    assert submission.status == SubmissionStatus.chosen
    assert submission.submission_code is None


@pytest.mark.asyncio
async def test_submit_someone_elses_submission(db, user, other_user):
    task = await make_task(db)
    submission = await submission_service.choose_task(db, user.id, task.id)

    with pytest.raises(SubmissionNotFound):
        await submission_service.submit_for_evaluation(db, other_user.id, submission.id, CODE)


@pytest.mark.asyncio
async def test_double_submit_while_scoring_rejected(db, user):
    task = await make_task(db)
    submission = await submission_service.choose_task(db, user.id, task.id)
    await submission_service.submit_for_evaluation(db, user.id, submission.id, CODE)

    with pytest.raises(SubmissionInProgress):
        await submission_service.submit_for_evaluation(db, user.id, submission.id, "other")

    await db.refresh(submission)
    assert submission.submission_code == CODE


@pytest.mark.asyncio
async def test_late_submission_is_accepted_and_flagged(db, user):
    now = utcnow()
    task = await make_task(db, level=TaskLevel.basic, created_at=now)
    submission = await submission_service.choose_task(db, user.id, task.id, now=now)

    await submission_service.submit_for_evaluation(
        db, user.id, submission.id, CODE, now=now + timedelta(minutes=45)
    )

    assert submission.status == SubmissionStatus.scoring
    view = SubmissionResponse.build(submission, task.expires_at, task.time_limit_minutes, now)
    assert view.is_late is True


# ---------------------------------------------------------------------------
# score
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_scoring_records_score_and_feedback(db, user):
    task = await make_task(db)
    submission = await submission_service.choose_task(db, user.id, task.id)
    await submission_service.submit_for_evaluation(db, user.id, submission.id, CODE)

    with _patch_llm():
        await submission_service.score_submission(db, submission)

    assert submission.status == SubmissionStatus.scored
    assert submission.score == 76
    assert submission.ai_feedback["overallScore"] == 76
    assert submission.ai_feedback["strengths"] == ["Clear naming"]


@pytest.mark.asyncio
async def test_model_failure_still_scores_with_fallback(db, user):
    task = await make_task(db)
    submission = await submission_service.choose_task(db, user.id, task.id)
    await submission_service.submit_for_evaluation(db, user.id, submission.id, CODE)

    with _patch_llm(side_effect=RuntimeError("timeout")):
        await submission_service.score_submission(db, submission)

    assert submission.status == SubmissionStatus.scored
    assert submission.score == 75


@pytest.mark.asyncio
async def test_scored_submission_cannot_be_resubmitted(db, user):
    task = await make_task(db)
    submission = await submission_service.choose_task(db, user.id, task.id)
    await submission_service.submit_for_evaluation(db, user.id, submission.id, CODE)
    with _patch_llm():
        await submission_service.score_submission(db, submission)

    with pytest.raises(AlreadyScored):
        await submission_service.submit_for_evaluation(db, user.id, submission.id, "again")

    await db.refresh(submission)
    assert submission.score == 76
    assert submission.submission_code == CODE


@pytest.mark.asyncio
async def test_missing_llm_config_ends_in_error_and_allows_retry(db, user):
    task = await make_task(db)
    submission = await submission_service.choose_task(db, user.id, task.id)
    await submission_service.submit_for_evaluation(db, user.id, submission.id, CODE)

    await submission_service.score_submission(db, submission)
    assert submission.status == SubmissionStatus.error
    assert submission.score is None

    await submission_service.submit_for_evaluation(db, user.id, submission.id, "retry")
    assert submission.status == SubmissionStatus.scoring
    assert submission.submission_code == "retry"


@pytest.mark.asyncio
async def test_background_job_scores_committed_submission(db, user, session_factory):
    task = await make_task(db)
    submission = await submission_service.choose_task(db, user.id, task.id)
    await submission_service.submit_for_evaluation(db, user.id, submission.id, CODE)
    await db.commit()

    with _patch_llm():
        await submission_service.run_scoring_job(session_factory, submission.id)

    await db.refresh(submission)
    assert submission.status == SubmissionStatus.scored
    assert submission.score == 76


@pytest.mark.asyncio
async def test_background_job_unexpected_error_ends_in_error(db, user, session_factory):
    task = await make_task(db)
    submission = await submission_service.choose_task(db, user.id, task.id)
    await submission_service.submit_for_evaluation(db, user.id, submission.id, CODE)
    await db.commit()

    with patch(
        "app.services.submission_service.evaluation_service.evaluate",
        new_callable=AsyncMock,
        side_effect=KeyError("overallScore"),
    ):
        await submission_service.run_scoring_job(session_factory, submission.id)

    await db.refresh(submission)
    assert submission.status == SubmissionStatus.error
    assert submission.score is None


@pytest.mark.asyncio
async def test_background_job_ignores_submission_not_in_scoring(db, user, session_factory):
    task = await make_task(db)
    submission = await submission_service.choose_task(db, user.id, task.id)
    await db.commit()

    with _patch_llm() as chat:
        await submission_service.run_scoring_job(session_factory, submission.id)

    chat.assert_not_awaited()
    await db.refresh(submission)
    assert submission.status == SubmissionStatus.chosen


# ---------------------------------------------------------------------------
# result
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_result_not_ready_until_scored(db, user):
    task = await make_task(db)
    submission = await submission_service.choose_task(db, user.id, task.id)

    with pytest.raises(NotReady) as exc_info:
        await submission_service.get_result(db, user.id, submission.id)
    assert exc_info.value.details == "status: chosen"


@pytest.mark.asyncio
async def test_result_reports_failed_scoring(db, user):
    task = await make_task(db)
    submission = await submission_service.choose_task(db, user.id, task.id)
    await submission_service.submit_for_evaluation(db, user.id, submission.id, CODE)
    await submission_service.score_submission(db, submission)

    with pytest.raises(ScoringFailed) as exc_info:
        await submission_service.get_result(db, user.id, submission.id)
    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_result_hidden_from_other_users(db, user, other_user):
    task = await make_task(db)
    submission = await submission_service.choose_task(db, user.id, task.id)

    with pytest.raises(SubmissionNotFound) as exc_info:
        await submission_service.get_result(db, other_user.id, submission.id)
    assert exc_info.value.message == "Submission not found or access denied"


@pytest.mark.asyncio
async def test_result_returns_submission_and_task(db, user):
    task = await make_task(db)
    submission = await submission_service.choose_task(db, user.id, task.id)
    await submission_service.submit_for_evaluation(db, user.id, submission.id, CODE)
    with _patch_llm():
        await submission_service.score_submission(db, submission)

    scored, scored_task = await submission_service.get_result(db, user.id, submission.id)
    assert scored.id == submission.id
    assert scored_task.id == task.id


# ---------------------------------------------------------------------------
# read-time status
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_unscored_submission_reads_expired_after_task_expiry(db, user):
    now = utcnow()
    task = await make_task(db, created_at=now)
    submission = await submission_service.choose_task(db, user.id, task.id, now=now)

    assert submission.status_at(task.expires_at, now) == "chosen"
    assert submission.status_at(task.expires_at, task.expires_at) == "expired"
    assert submission.status == SubmissionStatus.chosen


@pytest.mark.asyncio
async def test_scored_submission_never_reads_expired(db, user):
    task = await make_task(db)
    submission = await submission_service.choose_task(db, user.id, task.id)
    await submission_service.submit_for_evaluation(db, user.id, submission.id, CODE)
    with _patch_llm():
        await submission_service.score_submission(db, submission)

    later = task.expires_at + timedelta(days=3)
    assert submission.status_at(task.expires_at, later) == "scored"
