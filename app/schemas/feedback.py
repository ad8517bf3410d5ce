"""Structured AI evaluation result stored on a submission."""

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SCORE_FIELDS = ("codeQuality", "efficiency", "readability", "correctness")


def _clamp_score(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("score must be numeric")
    if isinstance(value, str):
        value = value.strip().rstrip("%")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"score must be numeric, got {value!r}") from None
    if not math.isfinite(number):
        raise ValueError("score must be a finite number")
    return max(0, min(100, round(number)))


class AIFeedback(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    overall: str = Field(..., min_length=1)
    code_quality: int = Field(..., alias="codeQuality", ge=0, le=100)
    efficiency: int = Field(..., ge=0, le=100)
    readability: int = Field(..., ge=0, le=100)
    correctness: int = Field(..., ge=0, le=100)
    suggestions: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    overall_score: int = Field(..., alias="overallScore", ge=0, le=100)

    @model_validator(mode="before")
    @classmethod
    def derive_overall_score(cls, data: Any) -> Any:
        """Fill a missing overallScore with the rounded mean of the components."""
        if not isinstance(data, dict):
            return data
        if data.get("overallScore") is None and data.get("overall_score") is None:
            try:
                components = [_clamp_score(data[key]) for key in SCORE_FIELDS]
            except (KeyError, TypeError, ValueError):
                return data
            data = {**data, "overallScore": round(sum(components) / len(components))}
        return data

    @field_validator(
        "code_quality", "efficiency", "readability", "correctness", "overall_score",
        mode="before",
    )
    @classmethod
    def clamp(cls, v: Any) -> int:
        return _clamp_score(v)

    @field_validator("overall", mode="before")
    @classmethod
    def strip_overall(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("suggestions", "strengths", "improvements", mode="before")
    @classmethod
    def as_string_list(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v.strip() else []
        if not isinstance(v, list):
            raise ValueError("expected a list of strings")
        return [str(item).strip() for item in v if str(item).strip()]

    def to_storage(self) -> dict:
        """JSON-ready dict with the camelCase keys clients read."""
        return self.model_dump(by_alias=True)
