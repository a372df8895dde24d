"""
Resume structuring and resume-vs-job skill-gap analysis.

Both are single delegate calls with no local fallback: a failure propagates
as DelegateUnavailable.
"""
import logging
from typing import Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import PersistenceError
from app.db.models.analysis_result import AnalysisResult
from app.llm.runner import LLMRunner
from app.schemas.analysis import ResumeProfile, SkillGapAnalysis
from app.services.user_service import ensure_user

logger = logging.getLogger(__name__)

RESUME_EXTRACT_CHARS = 25000
GAP_RESUME_CHARS = 15000
GAP_JOB_DESCRIPTION_CHARS = 3000


def extract_resume_profile(runner: LLMRunner, resume_text: str, user_id: Optional[str] = None) -> ResumeProfile:
    return runner.run(
        "resume_extract",
        {"resume_text": resume_text[:RESUME_EXTRACT_CHARS]},
        ResumeProfile,
        user_id=user_id,
    )


def analyze_application(
    db: Session,
    runner: LLMRunner,
    resume_text: str,
    job_description: str,
    job_role: str,
    user_id: Optional[str] = None,
) -> Tuple[AnalysisResult, SkillGapAnalysis]:
    """
    Compare a resume with a job description and store the result.

    Raises:
        DelegateUnavailable: the analysis could not be produced
        PersistenceError: the result could not be stored
    """
    analysis = runner.run(
        "skill_gap",
        {
            "job_role": job_role,
            "job_description": job_description[:GAP_JOB_DESCRIPTION_CHARS],
            "resume_text": resume_text[:GAP_RESUME_CHARS],
        },
        SkillGapAnalysis,
        user_id=user_id,
    )

    try:
        if user_id:
            ensure_user(db, user_id)
        result = AnalysisResult(
            user_id=user_id,
            role=job_role,
            job_description=job_description,
            resume_text=resume_text,
            score=analysis.score,
            status=analysis.status,
            feedback=analysis.model_dump(by_alias=True),
        )
        db.add(result)
        db.commit()
        db.refresh(result)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to store analysis result: {e}", exc_info=True)
        raise PersistenceError("Failed to store analysis") from e

    logger.info(f"Skill-gap analysis stored: id={result.id}, role={job_role!r}, score={analysis.score}")
    return result, analysis
