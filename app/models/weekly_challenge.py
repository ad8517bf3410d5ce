from datetime import date
from typing import Optional

from sqlalchemy import Date, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin
from app.models.daily_task import TaskLevel


class WeeklyChallenge(Base, TimestampMixin):
    __tablename__ = "weekly_challenges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    # When set, only scored submissions at this level count toward progress
    level: Mapped[Optional[TaskLevel]] = mapped_column(Enum(TaskLevel), nullable=True)
    target_count: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
