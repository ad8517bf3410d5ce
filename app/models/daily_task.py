import enum
from datetime import datetime
from typing import TYPE_CHECKING, Any, NamedTuple, Optional

from sqlalchemy import JSON, DateTime, Enum, Integer, SmallInteger, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from app.models.submission import Submission


class TaskLevel(str, enum.Enum):
    basic = "basic"
    intermediate = "intermediate"
    pro = "pro"


class LevelConfig(NamedTuple):
    label: str
    time_limit_minutes: int
    sort_order: int


LEVEL_CONFIG: dict[TaskLevel, LevelConfig] = {
    TaskLevel.basic: LevelConfig("Easy", 30, 0),
    TaskLevel.intermediate: LevelConfig("Medium", 60, 1),
    TaskLevel.pro: LevelConfig("Hard", 120, 2),
}


class DailyTask(Base, TimestampMixin):
    __tablename__ = "daily_tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    level: Mapped[TaskLevel] = mapped_column(Enum(TaskLevel), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    time_limit_minutes: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    expected_output_format: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSON, nullable=True
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)

    # Relationships
    submissions: Mapped[list["Submission"]] = relationship("Submission", back_populates="task")

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now
