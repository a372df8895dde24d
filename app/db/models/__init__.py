"""
Database models module.

This module imports all database models to ensure they are registered with SQLAlchemy's Base.metadata
before table creation.

All models must be imported here to be included in database migrations and table creation.
"""
from app.db.models.user import User
from app.db.models.ai_run import AiRun
from app.db.models.interview_session import InterviewSession, InterviewMessage, SessionStatus, Sender
from app.db.models.roadmap import Roadmap, Milestone, Resource, Quiz, ResourceType
from app.db.models.progress import MilestoneProgress, QuizAttempt, LearningStats, UserAchievement, DailyGoal
from app.db.models.analysis_result import AnalysisResult

# Explicitly export all models for clarity
__all__ = [
    "User",
    "AiRun",
    "InterviewSession",
    "InterviewMessage",
    "SessionStatus",
    "Sender",
    "Roadmap",
    "Milestone",
    "Resource",
    "Quiz",
    "ResourceType",
    "MilestoneProgress",
    "QuizAttempt",
    "LearningStats",
    "UserAchievement",
    "DailyGoal",
    "AnalysisResult",
]
