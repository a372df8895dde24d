"""
Progress and gamification endpoints. All act on the authenticated user.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_current_user_id, get_db
from app.core.errors import NotFoundError, PersistenceError
from app.schemas.progress import (
    AchievementOut,
    DailyProgressRequest,
    DailyProgressResponse,
    LeaderboardEntry,
    MilestoneCompleteResponse,
    MilestoneStartResponse,
    ProgressStatsResponse,
    QuizSubmitRequest,
    QuizSubmitResponse,
    ResourceViewRequest,
    ResourceViewResponse,
)
from app.services import progress_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/progress", tags=["Progress"])


def _failed(action: str, e: Exception) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    if isinstance(e, PersistenceError):
        logger.error(f"Progress update failed ({action}): {e.message}")
    else:
        logger.error(f"Error in progress endpoint ({action}): {e}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}"
    )


@router.post("/milestones/{milestone_id}/start", response_model=MilestoneStartResponse)
def start_milestone(
    milestone_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    try:
        return MilestoneStartResponse(**progress_service.start_milestone(db, user_id, milestone_id))
    except Exception as e:
        raise _failed("start milestone", e)


@router.post("/milestones/{milestone_id}/complete", response_model=MilestoneCompleteResponse)
def complete_milestone(
    milestone_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    try:
        return MilestoneCompleteResponse(**progress_service.complete_milestone(db, user_id, milestone_id))
    except Exception as e:
        raise _failed("complete milestone", e)


@router.post("/quizzes/{quiz_id}/submit", response_model=QuizSubmitResponse)
def submit_quiz(
    quiz_id: int,
    request: QuizSubmitRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    try:
        return QuizSubmitResponse(**progress_service.submit_quiz(db, user_id, quiz_id, request.selected_index))
    except Exception as e:
        raise _failed("submit quiz", e)


@router.post("/resources/view", response_model=ResourceViewResponse)
def mark_resource_viewed(
    request: ResourceViewRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    try:
        result = progress_service.mark_resource_viewed(db, user_id, request.milestone_id, request.resource_id)
        return ResourceViewResponse(**result)
    except Exception as e:
        raise _failed("mark resource viewed", e)


@router.post("/daily", response_model=DailyProgressResponse)
def update_daily_progress(
    request: DailyProgressRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    try:
        return DailyProgressResponse(**progress_service.update_daily_progress(db, user_id, request.mins_spent))
    except Exception as e:
        raise _failed("update daily progress", e)


@router.get("/stats", response_model=ProgressStatsResponse)
def get_stats(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    result = progress_service.get_stats(db, user_id)
    return ProgressStatsResponse(
        stats=result["stats"],
        achievements=[AchievementOut.model_validate(a) for a in result["achievements"]],
        daily_goal=result["daily_goal"],
    )


@router.get("/leaderboard", response_model=list[LeaderboardEntry])
def get_leaderboard(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return [LeaderboardEntry(**row) for row in progress_service.get_leaderboard(db, limit)]
