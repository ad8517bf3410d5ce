import enum
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    SmallInteger,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, utcnow

if TYPE_CHECKING:
    from app.models.daily_task import DailyTask
    from app.models.user import User


class SubmissionStatus(str, enum.Enum):
    chosen = "chosen"
    scoring = "scoring"
    scored = "scored"
    error = "error"


# Statuses a submit request may move to `scoring`. `error` is accepted so a
# user can retry after an infrastructure failure.
SUBMITTABLE_STATUSES = (SubmissionStatus.chosen, SubmissionStatus.error)


class Submission(Base, TimestampMixin):
    __tablename__ = "user_submissions"
    __table_args__ = (
        UniqueConstraint("user_id", "submission_day", name="uq_submission_user_day"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    task_id: Mapped[int] = mapped_column(Integer, ForeignKey("daily_tasks.id"), nullable=False)
    submission_day: Mapped[date] = mapped_column(Date, nullable=False)
    chosen_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    submission_code: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[SubmissionStatus] = mapped_column(
        Enum(SubmissionStatus), nullable=False, default=SubmissionStatus.chosen
    )
    score: Mapped[Optional[int]] = mapped_column(SmallInteger, nullable=True)  # 0-100
    ai_feedback: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="submissions")
    task: Mapped["DailyTask"] = relationship("DailyTask", back_populates="submissions")

    def status_at(self, task_expires_at: datetime, now: datetime) -> str:
        """Stored status, or ``expired`` when the task lapsed before scoring."""
        if (
            self.status in (SubmissionStatus.chosen, SubmissionStatus.scoring)
            and task_expires_at <= now
        ):
            return "expired"
        return self.status.value

    def submitted_late(self, time_limit_minutes: int) -> bool:
        if self.submitted_at is None:
            return False
        return self.submitted_at > self.chosen_at + timedelta(minutes=time_limit_minutes)
