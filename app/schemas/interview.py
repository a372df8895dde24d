"""
Pydantic schemas for interview endpoints and interview delegate output.
"""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, field_validator

from app.core import config
from app.schemas.base import CamelModel, cap_list, clamp_score, clean_strings

INTERVIEW_CATEGORIES = ("TECHNICAL", "BEHAVIORAL", "SYSTEM_DESIGN", "MIXED")
SENIORITY_LEVELS = ("JUNIOR", "MID", "SENIOR", "STAFF")
HIRING_TIERS = ("Strong Hire", "Hire", "No Hire", "Strong No Hire")

HiringTier = Literal["Strong Hire", "Hire", "No Hire", "Strong No Hire"]


def _normalize_choice(value: Any, allowed: tuple, default: str) -> str:
    if value is None or str(value).strip() == "":
        return default
    normalized = str(value).strip().upper().replace("-", "_").replace(" ", "_")
    if normalized not in allowed:
        raise ValueError(f"must be one of {', '.join(allowed)}")
    return normalized


class InterviewConfigMixin(CamelModel):
    role: str = Field("Software Engineer", description="Target role")
    category: str = Field("TECHNICAL", description="TECHNICAL, BEHAVIORAL, SYSTEM_DESIGN or MIXED")
    seniority: str = Field("MID", description="JUNIOR, MID, SENIOR or STAFF")

    @field_validator("role", mode="before")
    @classmethod
    def default_role(cls, v):
        return (v or "").strip() or "Software Engineer"

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v):
        return _normalize_choice(v, INTERVIEW_CATEGORIES, "TECHNICAL")

    @field_validator("seniority", mode="before")
    @classmethod
    def normalize_seniority(cls, v):
        return _normalize_choice(v, SENIORITY_LEVELS, "MID")


# ---------------------------------------------------------------------------
# Delegate output
# ---------------------------------------------------------------------------

class TurnEvaluation(CamelModel):
    """One evaluated answer as returned by the interview delegate."""
    feedback: str = Field(..., description="Feedback on the candidate's answer")
    score: float = Field(..., ge=0, le=100, description="Answer score 0-100")
    better_answer: str = Field("", description="Model answer")
    next_question: str = Field("", description="Next question to ask, empty when over")
    is_interview_over: bool = Field(False, description="True when the interview should end")
    topics_covered: List[str] = Field(default_factory=list, description="Skills assessed by this answer")

    @field_validator("score", mode="before")
    @classmethod
    def clamp(cls, v):
        return clamp_score(v)

    @field_validator("topics_covered", mode="before")
    @classmethod
    def normalize_topics(cls, v):
        if isinstance(v, str):
            v = [v]
        return clean_strings(v)

    @field_validator("better_answer", "next_question", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or ""


class HintResult(CamelModel):
    hint: str = Field(..., min_length=1, description="Short guidance for the current question")


class TopicScore(CamelModel):
    topic: str
    score: float = Field(..., ge=0, le=100)

    @field_validator("score", mode="before")
    @classmethod
    def clamp(cls, v):
        return clamp_score(v)


class FinalReport(CamelModel):
    """End-of-interview assessment."""
    overall_score: float = Field(..., ge=0, le=100)
    strengths: List[str] = Field(..., min_length=2, max_length=5)
    weaknesses: List[str] = Field(..., min_length=2, max_length=5)
    topic_breakdown: List[TopicScore] = Field(default_factory=list)
    recommendation: str = Field(..., min_length=1)
    next_steps: List[str] = Field(..., min_length=3, max_length=5)
    hiring_suggestion: HiringTier

    @field_validator("overall_score", mode="before")
    @classmethod
    def clamp(cls, v):
        return clamp_score(v)

    @field_validator("strengths", "weaknesses", "next_steps", mode="before")
    @classmethod
    def trim_lists(cls, v):
        if isinstance(v, list):
            v = clean_strings(v)
        return cap_list(v, 5)


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------

class TurnRequest(InterviewConfigMixin):
    """Request model for one interview turn."""
    session_id: Optional[str] = Field(None, max_length=64, description="Session id; generated when absent")
    focus_topics: Optional[str] = Field(None, description="Optional comma-separated focus topics")
    current_question: str = Field("Introduction", description="Question being answered")
    user_answer: str = Field(..., min_length=1, description="Candidate's answer")
    question_index: Optional[int] = Field(None, ge=0, description="Client's view of answered questions")
    max_questions: int = Field(config.INTERVIEW_DEFAULT_MAX_QUESTIONS, ge=1, le=50)
    hint_used: bool = Field(False, description="Client reports a hint was shown for this question")

    @field_validator("user_answer")
    @classmethod
    def answer_not_blank(cls, v):
        if not v.strip():
            raise ValueError("userAnswer must not be blank")
        return v

    @field_validator("current_question", mode="before")
    @classmethod
    def default_question(cls, v):
        return (v or "").strip() or "Introduction"

    class Config:
        json_schema_extra = {
            "example": {
                "sessionId": "3b0c3a52-6d3f-4c1b-9a55-0f8f1c7c2d11",
                "role": "Backend Engineer",
                "category": "TECHNICAL",
                "seniority": "MID",
                "currentQuestion": "How does a hash map handle collisions?",
                "userAnswer": "Chaining with linked lists or open addressing...",
                "questionIndex": 0,
                "maxQuestions": 5,
                "hintUsed": False,
            }
        }


class TurnResponse(CamelModel):
    feedback: str
    score: float
    better_answer: str = ""
    next_question: str = ""
    is_interview_over: bool
    topics_covered: List[str] = Field(default_factory=list)
    session_id: str
    question_index: int = Field(..., description="Questions answered so far")
    final_report: Optional[Dict[str, Any]] = None


class HintRequest(InterviewConfigMixin):
    session_id: Optional[str] = Field(None, max_length=64)
    current_question: str = Field(..., min_length=1)


class HintResponse(CamelModel):
    hint: str
    session_id: Optional[str] = None
    question_number: Optional[int] = Field(None, description="Question the hint was recorded against")


class TranscriptEntry(CamelModel):
    position: int
    sender: str
    content: str
    question_index: int
    is_hint: bool = False
    metrics: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SessionResponse(CamelModel):
    session_id: str
    role: str
    category: str
    seniority: str
    focus_topics: Optional[str] = None
    status: str
    question_index: int
    max_questions: int
    is_over: bool
    topics_covered: List[str] = Field(default_factory=list)
    final_report: Optional[Dict[str, Any]] = None
    transcript: List[TranscriptEntry] = Field(default_factory=list)
