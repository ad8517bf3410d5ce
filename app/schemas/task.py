from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from app.models.daily_task import TaskLevel


class TaskResponse(BaseModel):
    model_config = {"from_attributes": True}
    id: int
    level: TaskLevel
    title: str
    description: str
    time_limit_minutes: int
    expected_output_format: Optional[dict[str, Any]] = None
    created_at: datetime
    expires_at: datetime


class TaskDistribution(BaseModel):
    basic: int = Field(1, ge=0)
    intermediate: int = Field(1, ge=0)
    pro: int = Field(1, ge=0)

    @property
    def total(self) -> int:
        return self.basic + self.intermediate + self.pro

    def counts(self) -> dict[TaskLevel, int]:
        return {
            TaskLevel.basic: self.basic,
            TaskLevel.intermediate: self.intermediate,
            TaskLevel.pro: self.pro,
        }


class GenerateTasksRequest(BaseModel):
    distribution: Optional[TaskDistribution] = None
    preset: Optional[str] = None

    @model_validator(mode="after")
    def one_source(self) -> "GenerateTasksRequest":
        if self.distribution is not None and self.preset is not None:
            raise ValueError("Provide either distribution or preset, not both")
        return self
