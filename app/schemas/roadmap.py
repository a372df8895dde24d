"""
Pydantic schemas for roadmap generation (delegate output and API).
"""
from datetime import datetime
from typing import Any, List, Optional

from pydantic import AliasChoices, Field, field_validator, model_validator

from app.schemas.base import CamelModel

DURATION_UNITS = ("hours", "days", "weeks", "months")


def _wrap_bare_list(data: Any, key: str) -> Any:
    """Models sometimes return the list itself instead of {"key": [...]}."""
    if isinstance(data, list):
        return {key: data}
    return data


# ---------------------------------------------------------------------------
# Delegate output
# ---------------------------------------------------------------------------

class MilestonePlan(CamelModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    duration: int = Field(
        1,
        ge=1,
        le=52,
        validation_alias=AliasChoices("duration", "duration_weeks", "durationWeeks", "duration_days", "durationDays"),
    )
    duration_unit: str = "weeks"
    estimated_hours: Optional[int] = Field(None, ge=0)
    difficulty: Optional[str] = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return (v or "").strip()

    @field_validator("duration", mode="before")
    @classmethod
    def coerce_duration(cls, v):
        try:
            return max(1, min(52, int(float(v))))
        except (TypeError, ValueError):
            return 1

    @field_validator("estimated_hours", mode="before")
    @classmethod
    def coerce_hours(cls, v):
        if v is None or v == "":
            return None
        try:
            return max(0, int(round(float(v))))
        except (TypeError, ValueError):
            return None

    @field_validator("duration_unit", mode="before")
    @classmethod
    def normalize_unit(cls, v):
        unit = str(v or "weeks").strip().lower()
        if not unit.endswith("s"):
            unit += "s"
        return unit if unit in DURATION_UNITS else "weeks"


class RoadmapPlan(CamelModel):
    milestones: List[MilestonePlan] = Field(..., min_length=1)

    @model_validator(mode="before")
    @classmethod
    def accept_bare_list(cls, data):
        return _wrap_bare_list(data, "milestones")


class QuizQuestion(CamelModel):
    question: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=4, max_length=4)
    correct_index: int = Field(
        ...,
        ge=0,
        le=3,
        validation_alias=AliasChoices("correctIndex", "correct_index", "correctAnswer", "correct_answer"),
    )
    explanation: str = ""
    difficulty: Optional[str] = None

    @field_validator("options", mode="before")
    @classmethod
    def stringify_options(cls, v):
        if isinstance(v, list):
            return [str(option).strip() for option in v]
        return v

    @field_validator("explanation", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or ""


class QuizSet(CamelModel):
    questions: List[QuizQuestion] = Field(..., min_length=1)

    @model_validator(mode="before")
    @classmethod
    def accept_bare_list(cls, data):
        return _wrap_bare_list(data, "questions")


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------

class RoadmapGenerateRequest(CamelModel):
    goal: str = Field(..., min_length=1, max_length=500, description="Learning goal, optionally time-boxed")
    user_id: str = Field(..., min_length=1, description="Owner of the roadmap")

    @field_validator("goal", "user_id")
    @classmethod
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    class Config:
        json_schema_extra = {"example": {"goal": "Learn Go in 3 days", "userId": "user_2abc"}}


class RoadmapGenerateResponse(CamelModel):
    success: bool = True
    roadmap_id: int


class ResourceOut(CamelModel):
    id: int
    title: str
    url: str
    type: str
    relevance_score: Optional[float] = None

    class Config:
        from_attributes = True


class QuizOut(CamelModel):
    id: int
    question: str
    options: List[str]
    difficulty: Optional[str] = None
    correct_index: Optional[int] = Field(None, description="Only revealed once the user has attempted the quiz")
    explanation: Optional[str] = None


class MilestoneOut(CamelModel):
    id: int
    title: str
    description: str
    order: int
    week: int
    duration: int
    duration_unit: str
    estimated_hours: Optional[int] = None
    difficulty: Optional[str] = None
    status: str = "not_started"
    time_spent_mins: int = 0
    resources_viewed: List[int] = Field(default_factory=list)
    resources: List[ResourceOut] = Field(default_factory=list)
    quizzes: List[QuizOut] = Field(default_factory=list)


class RoadmapOut(CamelModel):
    id: int
    title: str
    goal: str
    duration_unit: str
    total_duration: int
    is_intensive: bool
    is_completed: bool
    completion_percentage: int = 0
    created_at: Optional[datetime] = None
    milestones: List[MilestoneOut] = Field(default_factory=list)
