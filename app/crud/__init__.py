from app.crud.users import crud_user
from app.crud.daily_tasks import crud_daily_task
from app.crud.submissions import crud_submission
from app.crud.achievements import crud_user_achievement
from app.crud.weekly_challenges import crud_weekly_challenge

__all__ = [
    "crud_user",
    "crud_daily_task",
    "crud_submission",
    "crud_user_achievement",
    "crud_weekly_challenge",
]
