from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from app.models.submission import Submission, SubmissionStatus
from app.schemas.task import TaskResponse


class ChooseTaskRequest(BaseModel):
    task_id: int


class SubmitCodeRequest(BaseModel):
    submission_code: str = Field(..., max_length=100_000)


class SubmissionResponse(BaseModel):
    model_config = {"from_attributes": True}
    id: int
    user_id: int
    task_id: int
    chosen_at: datetime
    submitted_at: Optional[datetime]
    submission_code: Optional[str]
    status: SubmissionStatus
    effective_status: str = ""  # populated dynamically
    is_late: bool = False  # populated dynamically
    score: Optional[int]
    ai_feedback: Optional[dict[str, Any]]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def build(cls, submission: Submission, task_expires_at: datetime,
              time_limit_minutes: int, now: datetime) -> "SubmissionResponse":
        data = cls.model_validate(submission)
        data.effective_status = submission.status_at(task_expires_at, now)
        data.is_late = submission.submitted_late(time_limit_minutes)
        return data


class ChooseTaskResponse(BaseModel):
    submission: SubmissionResponse
    message: str = "Task chosen successfully"


class SubmitAck(BaseModel):
    success: bool = True
    submission_id: int
    status: SubmissionStatus
    message: str = "Submission received; scoring in progress"


class TaskResultResponse(BaseModel):
    submission: SubmissionResponse
    task: TaskResponse


class TodayTasksResponse(BaseModel):
    tasks: list[TaskResponse]
    user_submission: Optional[SubmissionResponse] = None
