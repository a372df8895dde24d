"""
Pydantic schemas for resume extraction, skill-gap analysis, project scaffolds
and topic quizzes.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, field_validator, model_validator

from app.schemas.base import CamelModel, cap_list, clamp_score
from app.schemas.roadmap import QuizQuestion

SKILL_CATEGORIES = ("languages", "frameworks", "tools", "databases", "cloud", "other")


# ---------------------------------------------------------------------------
# Resume profile
# ---------------------------------------------------------------------------

class Skill(CamelModel):
    name: str = Field(..., min_length=1)
    category: str = "other"

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v):
        value = str(v or "other").strip().lower()
        return value if value in SKILL_CATEGORIES else "other"


class ExperienceItem(CamelModel):
    company: str = ""
    title: str = ""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    highlights: List[str] = Field(default_factory=list)


class ProjectItem(CamelModel):
    name: str = ""
    description: str = ""
    tech_stack: List[str] = Field(default_factory=list)


class EducationItem(CamelModel):
    institution: str = ""
    degree: str = ""
    year: Optional[str] = None


class ResumeProfile(CamelModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
    summary: Optional[str] = None
    skills: List[Skill] = Field(default_factory=list)
    experience: List[ExperienceItem] = Field(default_factory=list)
    projects: List[ProjectItem] = Field(default_factory=list)
    education: List[EducationItem] = Field(default_factory=list)

    @field_validator("skills", mode="before")
    @classmethod
    def accept_plain_names(cls, v):
        if isinstance(v, list):
            return [{"name": item} if isinstance(item, str) else item for item in v]
        return v


# ---------------------------------------------------------------------------
# Skill gap
# ---------------------------------------------------------------------------

class MissingSkill(CamelModel):
    skill: str = Field(..., min_length=1)
    reason: str = ""


class RoadmapResource(CamelModel):
    title: str
    url: str = ""


class RoadmapWeek(CamelModel):
    week: int = Field(..., ge=1)
    focus: str
    resources: List[RoadmapResource] = Field(default_factory=list)

    @field_validator("resources", mode="before")
    @classmethod
    def trim(cls, v):
        return cap_list(v, 3)


class AtsFix(CamelModel):
    original: str
    improved: str


class ProjectIdea(CamelModel):
    title: str
    description: str = ""
    tech_stack: List[str] = Field(default_factory=list)


class InterviewPrep(CamelModel):
    question: str
    tip: str = ""


class SkillGapAnalysis(CamelModel):
    score: float = Field(..., ge=0, le=100)
    status: Literal["Strong", "Good", "Weak"]
    summary: str = ""
    missing_skills: List[MissingSkill] = Field(default_factory=list)
    recommended_stack: List[str] = Field(default_factory=list)
    mini_roadmap: List[RoadmapWeek] = Field(default_factory=list)
    ats_fixes: List[AtsFix] = Field(default_factory=list)
    project_idea: Optional[ProjectIdea] = None
    interview_prep: Optional[InterviewPrep] = None

    @field_validator("score", mode="before")
    @classmethod
    def clamp(cls, v):
        return clamp_score(v)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return str(v or "").strip().capitalize()

    @field_validator("missing_skills", mode="before")
    @classmethod
    def trim_missing(cls, v):
        return cap_list(v, 5)


# ---------------------------------------------------------------------------
# Project scaffold
# ---------------------------------------------------------------------------

STEP_TYPES = ("command", "code", "file_structure")


class ScaffoldStep(CamelModel):
    id: str = ""
    title: str = Field(..., min_length=1)
    description: str = ""
    type: str = "command"
    content: str = ""
    file_path: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v):
        return "" if v is None else str(v).strip()

    @field_validator("description", "content", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or ""

    @model_validator(mode="after")
    def normalize_type(self):
        step_type = (self.type or "").strip().lower().replace("-", "_").replace(" ", "_")
        if step_type not in STEP_TYPES:
            step_type = "code" if self.file_path else "command"
        self.type = step_type
        return self


class ProjectScaffold(CamelModel):
    project_name: str = Field(..., min_length=1)
    tech_stack: str = ""
    summary: str = ""
    file_tree: str = ""
    steps: List[ScaffoldStep] = Field(..., min_length=1)

    @field_validator("tech_stack", mode="before")
    @classmethod
    def join_stack(cls, v):
        # Some replies list the stack instead of describing it
        if isinstance(v, list):
            return ", ".join(str(item) for item in v)
        return v or ""


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------

class ResumeParseResponse(CamelModel):
    text: str
    characters: int


class ResumeExtractRequest(CamelModel):
    resume_text: str = Field(..., min_length=20, max_length=50000)


class SkillGapRequest(CamelModel):
    user_id: Optional[str] = Field(None, description="Defaults to the caller")
    resume_text: str = Field(..., min_length=20, max_length=50000)
    job_description: str = Field(..., min_length=20, max_length=50000)
    job_role: str = Field(..., min_length=1, max_length=200)


class SkillGapResponse(CamelModel):
    analysis_id: int
    created_at: Optional[datetime] = None
    analysis: SkillGapAnalysis


class ScaffoldRequest(CamelModel):
    tech_stack: str = Field(..., min_length=1, max_length=500)
    project_idea: str = Field(..., min_length=1, max_length=2000)


class TopicQuizRequest(CamelModel):
    topic: str = Field(..., min_length=1, max_length=200)
    job_role: str = Field(..., min_length=1, max_length=200)


class TopicQuizResponse(CamelModel):
    topic: str
    job_role: str
    questions: List[QuizQuestion]
