"""
Pydantic schemas for progress and gamification endpoints.
"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.base import CamelModel


class AchievementOut(CamelModel):
    badge_id: str
    badge_name: str
    badge_icon: Optional[str] = None
    description: Optional[str] = None
    earned_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ActivityResponse(CamelModel):
    """Result of a progress action."""
    success: bool = True
    xp_gained: int = 0
    total_xp: int = 0
    level: int = 1
    achievements: List[AchievementOut] = Field(default_factory=list, description="Achievements earned by this action")


class MilestoneStartResponse(ActivityResponse):
    milestone_id: int
    status: str


class MilestoneCompleteResponse(ActivityResponse):
    milestone_id: int
    time_spent_mins: int
    already_completed: bool = False
    roadmap_completed: bool = False


class QuizSubmitRequest(CamelModel):
    selected_index: int = Field(..., ge=0, le=3)


class QuizSubmitResponse(ActivityResponse):
    is_correct: bool
    correct_index: int
    explanation: str = ""


class ResourceViewRequest(CamelModel):
    milestone_id: int
    resource_id: int


class ResourceViewResponse(ActivityResponse):
    newly_viewed: bool


class DailyProgressRequest(CamelModel):
    mins_spent: int = Field(..., ge=1, le=24 * 60)


class DailyGoalOut(CamelModel):
    day: Optional[date] = None
    target_mins: int = 30
    target_quizzes: int = 3
    mins_completed: int = 0
    quizzes_solved: int = 0
    is_completed: bool = False
    progress_percentage: int = 0


class DailyProgressResponse(ActivityResponse):
    goal: DailyGoalOut


class StatsOut(CamelModel):
    total_xp: int = 0
    total_points: int = 0
    level: int = 1
    next_level_xp: int = 100
    xp_to_next_level: int = 100
    current_streak: int = 0
    longest_streak: int = 0
    milestones_completed: int = 0
    quizzes_passed: int = 0
    total_time_spent_mins: int = 0
    badge_count: int = 0


class ProgressStatsResponse(CamelModel):
    stats: StatsOut
    achievements: List[AchievementOut] = Field(default_factory=list)
    daily_goal: DailyGoalOut


class LeaderboardEntry(CamelModel):
    rank: int
    user_id: str
    user_name: str
    level: int
    total_xp: int
    current_streak: int
