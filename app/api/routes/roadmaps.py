"""
Roadmap endpoints: generation and read-back.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import ensure_same_user, get_current_user_id, get_db
from app.core.errors import PersistenceError, ValidationError
from app.core.providers import get_llm_runner, get_search_provider
from app.core.rate_limit import generation_rate_limit
from app.llm.runner import LLMRunner
from app.schemas.roadmap import RoadmapGenerateRequest, RoadmapGenerateResponse, RoadmapOut
from app.search.provider import SearchProvider
from app.services.quiz_service import QuizGenerator
from app.services.resource_service import ResourceEnricher
from app.services.roadmap_planner import RoadmapPlanner
from app.services.roadmap_service import RoadmapPipeline, list_roadmaps

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/roadmaps", tags=["Roadmaps"])


@router.post("/generate", response_model=RoadmapGenerateResponse, dependencies=[Depends(generation_rate_limit)])
def generate_roadmap(
    request: RoadmapGenerateRequest,
    db: Session = Depends(get_db),
    runner: LLMRunner = Depends(get_llm_runner),
    search: SearchProvider = Depends(get_search_provider),
    current_user_id: str = Depends(get_current_user_id),
):
    """
    Generate a learning roadmap for a goal.

    Delegate failures degrade to fallback content, so this only fails on bad
    input or a storage error. Fetch the result with GET /roadmaps/user/{user_id}.
    """
    ensure_same_user(current_user_id, request.user_id)
    try:
        pipeline = RoadmapPipeline(
            db,
            planner=RoadmapPlanner(runner),
            enricher=ResourceEnricher(search),
            quiz_generator=QuizGenerator(runner),
        )
        roadmap = pipeline.generate(request.goal, request.user_id)
        return RoadmapGenerateResponse(success=True, roadmap_id=roadmap.id)

    except HTTPException:
        raise
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except PersistenceError as e:
        logger.error(f"Roadmap generation failed: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate roadmap"
        )
    except Exception as e:
        logger.error(f"Error in roadmap generate endpoint: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate roadmap"
        )


@router.get("/user/{user_id}", response_model=list[RoadmapOut])
def get_user_roadmaps(
    user_id: str,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    ensure_same_user(current_user_id, user_id)
    return [RoadmapOut(**roadmap) for roadmap in list_roadmaps(db, user_id)]
