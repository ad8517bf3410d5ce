from app.schemas.feedback import AIFeedback
from app.schemas.task import TaskResponse, TaskDistribution, GenerateTasksRequest
from app.schemas.submission import (
    ChooseTaskRequest,
    SubmitCodeRequest,
    SubmissionResponse,
    ChooseTaskResponse,
    SubmitAck,
    TaskResultResponse,
    TodayTasksResponse,
)
from app.schemas.achievement import AchievementProgress, AchievementStats, AchievementsResponse
from app.schemas.challenge import WeeklyChallengeResponse, WeeklyChallengesResponse
from app.schemas.performance import PerformanceResponse
