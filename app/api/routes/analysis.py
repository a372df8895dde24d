"""
Resume parsing, skill-gap analysis, project scaffold and topic quiz endpoints.
"""
import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import ensure_same_user, get_current_user_id, get_db
from app.core.errors import DelegateUnavailable, PersistenceError, ValidationError
from app.core.providers import get_llm_runner
from app.core.rate_limit import generation_rate_limit
from app.llm.runner import LLMRunner
from app.schemas.analysis import (
    ProjectScaffold,
    ResumeExtractRequest,
    ResumeParseResponse,
    ResumeProfile,
    ScaffoldRequest,
    SkillGapRequest,
    SkillGapResponse,
    TopicQuizRequest,
    TopicQuizResponse,
)
from app.services.quiz_service import generate_topic_quiz
from app.services.resume_parser import parse_resume
from app.services.scaffold_service import generate_scaffold
from app.services.skill_gap_service import analyze_application, extract_resume_profile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analysis", tags=["Analysis"])


@router.post("/resume/parse", response_model=ResumeParseResponse)
async def parse_resume_upload(
    file: UploadFile = File(...),
    current_user_id: str = Depends(get_current_user_id),
):
    """Extract text from an uploaded PDF resume."""
    data = await file.read()
    try:
        text = parse_resume(data)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    logger.info(f"Resume parsed for user {current_user_id}: {len(text)} characters")
    return ResumeParseResponse(text=text, characters=len(text))


@router.post("/resume/extract", response_model=ResumeProfile)
def extract_resume(
    request: ResumeExtractRequest,
    runner: LLMRunner = Depends(get_llm_runner),
    current_user_id: str = Depends(get_current_user_id),
):
    """Turn resume text into a structured profile."""
    try:
        return extract_resume_profile(runner, request.resume_text, user_id=current_user_id)
    except DelegateUnavailable as e:
        logger.error(f"Resume extraction failed: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process resume structure"
        )


@router.post("/skill-gap", response_model=SkillGapResponse, dependencies=[Depends(generation_rate_limit)])
def skill_gap(
    request: SkillGapRequest,
    db: Session = Depends(get_db),
    runner: LLMRunner = Depends(get_llm_runner),
    current_user_id: str = Depends(get_current_user_id),
):
    """
    Compare a resume with a job description.

    Returns a match score, the missing skills, a short study plan, resume
    bullet fixes, a project idea and an interview question. The result is
    stored.
    """
    if request.user_id:
        ensure_same_user(current_user_id, request.user_id)
    try:
        result, analysis = analyze_application(
            db,
            runner,
            resume_text=request.resume_text,
            job_description=request.job_description,
            job_role=request.job_role,
            user_id=current_user_id,
        )
        return SkillGapResponse(analysis_id=result.id, created_at=result.created_at, analysis=analysis)

    except HTTPException:
        raise
    except (DelegateUnavailable, PersistenceError) as e:
        logger.error(f"Skill-gap analysis failed: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to analyze application"
        )
    except Exception as e:
        logger.error(f"Error in skill-gap endpoint: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to analyze application"
        )


@router.post("/scaffold", response_model=ProjectScaffold, dependencies=[Depends(generation_rate_limit)])
def scaffold_project(
    request: ScaffoldRequest,
    runner: LLMRunner = Depends(get_llm_runner),
    current_user_id: str = Depends(get_current_user_id),
):
    """Generate a step-by-step build guide for a project idea."""
    try:
        return generate_scaffold(runner, request.tech_stack, request.project_idea, user_id=current_user_id)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except DelegateUnavailable as e:
        logger.error(f"Scaffold generation failed: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate project scaffold"
        )


@router.post("/quiz", response_model=TopicQuizResponse, dependencies=[Depends(generation_rate_limit)])
def topic_quiz(
    request: TopicQuizRequest,
    runner: LLMRunner = Depends(get_llm_runner),
    current_user_id: str = Depends(get_current_user_id),
):
    try:
        questions = generate_topic_quiz(runner, request.topic, request.job_role, user_id=current_user_id)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except DelegateUnavailable as e:
        logger.error(f"Topic quiz generation failed: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate quiz"
        )
    return TopicQuizResponse(topic=request.topic, job_role=request.job_role, questions=questions)
