"""Domain errors raised by the task lifecycle services.

Each error carries the HTTP status it maps to; ``app.main`` renders them as
``{"error": message, "details": ...}``. MCP tools surface the same message.
"""

from typing import Optional


class TaskLifecycleError(Exception):
    status_code = 400
    message = "Request could not be completed"

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class AuthenticationError(TaskLifecycleError):
    status_code = 401
    message = "Unauthorized"


class TaskNotFound(TaskLifecycleError):
    status_code = 404
    message = "Task not found"


class TaskExpired(TaskLifecycleError):
    status_code = 410
    message = "Task has expired"


class AlreadyChosenToday(TaskLifecycleError):
    status_code = 409
    message = "You have already chosen a task for today"


class SubmissionNotFound(TaskLifecycleError):
    status_code = 404
    message = "Submission not found"


class AlreadyScored(TaskLifecycleError):
    status_code = 409
    message = "Task already scored"


class SubmissionInProgress(TaskLifecycleError):
    status_code = 409
    message = "Submission is already being scored"


class EmptySubmission(TaskLifecycleError):
    status_code = 422
    message = "Submission code is required"


class NotReady(TaskLifecycleError):
    status_code = 409
    message = "Submission not yet scored"


class InvalidDistribution(TaskLifecycleError):
    status_code = 422
    message = "Invalid task distribution"


class ScoringFailed(TaskLifecycleError):
    status_code = 503
    message = "Scoring failed; please resubmit"
