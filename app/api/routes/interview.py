"""
Interview endpoints: turn submission, hints and session read-back.

Sessions may be anonymous; when a bearer token is sent the session is tied to
that user and only that user can read it back.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.core.auth_dependency import get_db, get_optional_user_id
from app.core.errors import DelegateUnavailable, PersistenceError, ValidationError
from app.core.providers import get_llm_runner
from app.core.rate_limit import generation_rate_limit
from app.llm.runner import LLMRunner
from app.schemas.interview import (
    HintRequest,
    HintResponse,
    SessionResponse,
    TranscriptEntry,
    TurnRequest,
    TurnResponse,
)
from app.services.interview_evaluator import TurnEvaluator
from app.services.interview_hint_service import HintProvider
from app.services.interview_report_service import ReportSynthesizer
from app.services.interview_session_service import InterviewSessionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/interview", tags=["Interview"])


def get_session_service(
    db: Session = Depends(get_db),
    runner: LLMRunner = Depends(get_llm_runner),
) -> InterviewSessionService:
    return InterviewSessionService(
        db,
        evaluator=TurnEvaluator(runner),
        hint_provider=HintProvider(runner),
        reporter=ReportSynthesizer(runner),
    )


def _check_owner(session_user_id: Optional[str], user_id: Optional[str]) -> None:
    if session_user_id and session_user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


@router.post("/turn", response_model=TurnResponse, dependencies=[Depends(generation_rate_limit)])
def submit_turn(
    request: TurnRequest,
    service: InterviewSessionService = Depends(get_session_service),
    user_id: Optional[str] = Depends(get_optional_user_id),
):
    """
    Submit one answer.

    Returns the evaluation and the next question. On the last question the
    final report is attached and the session is closed; later submissions to
    a closed session return the stored report.
    """
    try:
        if request.session_id:
            existing = service.get_session(request.session_id)
            if existing is not None:
                _check_owner(existing.user_id, user_id)

        outcome = service.submit_answer(request, user_id=user_id)
        evaluation = outcome.evaluation
        return TurnResponse(
            feedback=evaluation.feedback,
            score=evaluation.score,
            better_answer=evaluation.better_answer,
            next_question=evaluation.next_question,
            is_interview_over=outcome.session.is_over,
            topics_covered=evaluation.topics_covered,
            session_id=outcome.session.id,
            question_index=outcome.session.question_index,
            final_report=outcome.final_report,
        )

    except HTTPException:
        raise
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except StaleDataError:
        logger.warning(f"Concurrent update on interview session {request.session_id}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Session was updated by another request, please retry"
        )
    except (DelegateUnavailable, PersistenceError) as e:
        logger.error(f"Interview turn failed: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process interview turn"
        )
    except Exception as e:
        logger.error(f"Error in interview turn endpoint: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process interview turn"
        )


@router.post("/hint", response_model=HintResponse)
def request_hint(
    request: HintRequest,
    service: InterviewSessionService = Depends(get_session_service),
    user_id: Optional[str] = Depends(get_optional_user_id),
):
    """Get a hint for the current question. Repeat requests for the same question return the same hint."""
    try:
        if request.session_id:
            existing = service.get_session(request.session_id)
            if existing is not None:
                _check_owner(existing.user_id, user_id)

        hint, question_number = service.request_hint(
            request.current_question,
            role=request.role,
            category=request.category,
            seniority=request.seniority,
            session_id=request.session_id,
            user_id=user_id,
        )
        return HintResponse(hint=hint, session_id=request.session_id, question_number=question_number)

    except HTTPException:
        raise
    except StaleDataError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Session was updated by another request, please retry"
        )
    except Exception as e:
        logger.error(f"Error in hint endpoint: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate hint"
        )


@router.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session(
    session_id: str,
    service: InterviewSessionService = Depends(get_session_service),
    user_id: Optional[str] = Depends(get_optional_user_id),
):
    session = service.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    _check_owner(session.user_id, user_id)

    return SessionResponse(
        session_id=session.id,
        role=session.role,
        category=session.category,
        seniority=session.seniority,
        focus_topics=session.focus_topics,
        status=session.status,
        question_index=session.question_index,
        max_questions=session.max_questions,
        is_over=session.is_over,
        topics_covered=session.topics_covered or [],
        final_report=session.final_report,
        transcript=[TranscriptEntry.model_validate(m) for m in session.messages],
    )
