"""
Session Accumulator: the interview turn state machine.

NOT_STARTED -> IN_PROGRESS -> COMPLETE. Every answer appends a USER record,
runs the Turn Evaluator, appends an AI record carrying the metrics and bumps
question_index. The turn that ends the interview is committed with is_over set
before the Report Synthesizer runs, so a failed report is retried on the next
submission without re-evaluating.

One turn at a time per session: a process-local lock keyed by session id plus
the row's version_id for writers in other processes.
"""
import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.core import config
from app.core.errors import DelegateUnavailable, PersistenceError
from app.db.models.interview_session import InterviewMessage, InterviewSession, Sender, SessionStatus
from app.db.upsert import insert_ignore
from app.schemas.interview import TurnEvaluation, TurnRequest
from app.services.interview_evaluator import TurnConfig, TurnEvaluator
from app.services.interview_hint_service import HintProvider
from app.services.interview_report_service import ReportSynthesizer
from app.services.user_service import ensure_user

logger = logging.getLogger(__name__)


class _SessionLockEntry:
    __slots__ = ("lock", "holders")

    def __init__(self):
        self.lock = threading.Lock()
        self.holders = 0


# session id -> lock entry; an entry lives only while someone holds or waits on it
_SESSION_LOCKS: Dict[str, _SessionLockEntry] = {}
_SESSION_LOCKS_GUARD = threading.Lock()


@contextmanager
def session_lock(session_id: str):
    with _SESSION_LOCKS_GUARD:
        entry = _SESSION_LOCKS.get(session_id)
        if entry is None:
            entry = _SESSION_LOCKS[session_id] = _SessionLockEntry()
        entry.holders += 1
    try:
        with entry.lock:
            yield
    finally:
        with _SESSION_LOCKS_GUARD:
            entry.holders -= 1
            if entry.holders == 0:
                del _SESSION_LOCKS[session_id]


def merge_topics(existing: Optional[Iterable[str]], new: Optional[Iterable[str]]) -> List[str]:
    """Set union of topic labels (case-insensitive), first spelling wins."""
    merged: List[str] = []
    seen = set()
    for topic in list(existing or []) + list(new or []):
        label = (topic or "").strip()
        key = label.casefold()
        if label and key not in seen:
            seen.add(key)
            merged.append(label)
    return merged


def score_series(messages: Iterable[InterviewMessage], fallback: float) -> List[float]:
    """
    Scores of evaluated AI turns, in transcript order.

    Turns without a positive score are skipped; when none remain the series is
    [fallback] so the report always has something to average.
    """
    scores = []
    for message in messages:
        if message.sender != Sender.AI or message.is_hint or not message.metrics:
            continue
        value = message.metrics.get("score")
        try:
            value = float(value)
        except (TypeError, ValueError):
            continue
        if value > 0:
            scores.append(value)
    return scores or [float(fallback or 0)]


@dataclass
class TurnOutcome:
    session: InterviewSession
    evaluation: TurnEvaluation
    final_report: Optional[dict] = None


class InterviewSessionService:
    def __init__(
        self,
        db: Session,
        evaluator: TurnEvaluator,
        hint_provider: HintProvider,
        reporter: ReportSynthesizer,
        history_window: int = config.INTERVIEW_HISTORY_WINDOW,
    ):
        self.db = db
        self.evaluator = evaluator
        self.hint_provider = hint_provider
        self.reporter = reporter
        self.history_window = history_window

    # ------------------------------------------------------------------
    # Session rows
    # ------------------------------------------------------------------

    def get_session(self, session_id: str) -> Optional[InterviewSession]:
        return self.db.get(InterviewSession, session_id)

    def ensure_session(
        self,
        session_id: str,
        *,
        role: str,
        category: str,
        seniority: str,
        focus_topics: Optional[str] = None,
        max_questions: int = config.INTERVIEW_DEFAULT_MAX_QUESTIONS,
        user_id: Optional[str] = None,
    ) -> InterviewSession:
        """
        Create the session row if missing and return it. Does not commit.

        A session that has not started yet takes the latest settings, so a
        hint requested before the first answer does not pin the defaults.
        """
        if user_id:
            ensure_user(self.db, user_id)
        insert_ignore(
            self.db,
            InterviewSession.__table__,
            {
                "id": session_id,
                "user_id": user_id,
                "role": role,
                "category": category,
                "seniority": seniority,
                "focus_topics": focus_topics,
                "question_index": 0,
                "max_questions": max_questions,
                "status": SessionStatus.NOT_STARTED,
                "is_over": False,
                "topics_covered": [],
                "version_id": 1,
            },
            conflict_columns=["id"],
        )
        session = self.db.get(InterviewSession, session_id)
        if session.status == SessionStatus.NOT_STARTED:
            session.role = role
            session.category = category
            session.seniority = seniority
            session.focus_topics = focus_topics
            session.max_questions = max_questions
            if user_id and not session.user_id:
                session.user_id = user_id
        return session

    def _append(
        self,
        session: InterviewSession,
        sender: str,
        content: str,
        question_index: int,
        metrics: Optional[dict] = None,
        is_hint: bool = False,
    ) -> InterviewMessage:
        message = InterviewMessage(
            position=len(session.messages) + 1,
            sender=sender,
            content=content or "",
            metrics=metrics,
            question_index=question_index,
            is_hint=is_hint,
        )
        session.messages.append(message)
        return message

    def _recorded_hint(self, session: InterviewSession, question_number: int) -> Optional[InterviewMessage]:
        for message in session.messages:
            if message.is_hint and message.question_index == question_number:
                return message
        return None

    def _recent_history(self, session: InterviewSession) -> List[str]:
        return [m.as_history_line() for m in session.messages[-self.history_window:]]

    def _last_evaluation(self, session: InterviewSession) -> TurnEvaluation:
        """Rebuild the latest evaluation from the stored AI record."""
        for message in reversed(session.messages):
            if message.sender == Sender.AI and not message.is_hint and message.metrics:
                metrics = message.metrics
                return TurnEvaluation(
                    feedback=metrics.get("feedback") or "",
                    score=metrics.get("score") or 0,
                    better_answer=metrics.get("betterAnswer") or "",
                    next_question=message.content,
                    is_interview_over=session.is_over,
                    topics_covered=metrics.get("topicsCovered") or [],
                )
        return TurnEvaluation(feedback="", score=0, is_interview_over=session.is_over)

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    def submit_answer(self, turn: TurnRequest, user_id: Optional[str] = None) -> TurnOutcome:
        """
        Process one answer.

        Raises:
            DelegateUnavailable: evaluator or report delegate failed
            PersistenceError: the turn could not be stored
            StaleDataError: another process updated the session concurrently
        """
        session_id = turn.session_id or str(uuid.uuid4())
        with session_lock(session_id):
            session, evaluation = self._evaluate_turn(session_id, turn, user_id)
            if session.status == SessionStatus.COMPLETE:
                return TurnOutcome(session=session, evaluation=evaluation, final_report=session.final_report)
            if session.is_over:
                report = self._finalize(session, evaluation)
                return TurnOutcome(session=session, evaluation=evaluation, final_report=report)
            return TurnOutcome(session=session, evaluation=evaluation)

    def _evaluate_turn(
        self, session_id: str, turn: TurnRequest, user_id: Optional[str]
    ) -> Tuple[InterviewSession, TurnEvaluation]:
        try:
            session = self.ensure_session(
                session_id,
                role=turn.role,
                category=turn.category,
                seniority=turn.seniority,
                focus_topics=turn.focus_topics,
                max_questions=turn.max_questions,
                user_id=user_id,
            )

            if session.status == SessionStatus.COMPLETE:
                logger.info(f"Answer submitted to completed session {session_id}, returning stored report")
                self.db.rollback()
                return session, self._last_evaluation(session)

            if session.is_over:
                logger.info(f"Session {session_id} ended without a report, retrying report only")
                self.db.rollback()
                return session, self._last_evaluation(session)

            question_number = session.question_index + 1
            if turn.question_index is not None and turn.question_index != session.question_index:
                logger.warning(
                    f"Client question index {turn.question_index} differs from stored "
                    f"{session.question_index} for session {session_id}; using stored value"
                )
            hint_used = turn.hint_used or self._recorded_hint(session, question_number) is not None

            self._append(session, Sender.USER, turn.user_answer, question_number)
            history = self._recent_history(session)

            evaluation = self.evaluator.evaluate(
                question=turn.current_question,
                answer=turn.user_answer,
                history=history,
                turn_config=TurnConfig(
                    role=session.role,
                    category=session.category,
                    seniority=session.seniority,
                    focus_topics=session.focus_topics,
                    question_index=question_number,
                    max_questions=session.max_questions,
                    hint_used=hint_used,
                ),
                user_id=session.user_id,
            )

            metrics = {
                "score": evaluation.score,
                "feedback": evaluation.feedback,
                "betterAnswer": evaluation.better_answer,
                "topicsCovered": evaluation.topics_covered,
                "hintUsed": hint_used,
                "questionIndex": question_number,
            }
            self._append(session, Sender.AI, evaluation.next_question, question_number, metrics=metrics)

            session.question_index = question_number
            session.topics_covered = merge_topics(session.topics_covered, evaluation.topics_covered)
            session.status = SessionStatus.IN_PROGRESS
            if evaluation.is_interview_over:
                session.is_over = True

            self.db.commit()
            self.db.refresh(session)
        except (DelegateUnavailable, StaleDataError):
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to store turn for session {session_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to store interview turn") from e

        logger.info(
            f"Turn stored: session={session_id}, question={session.question_index}/{session.max_questions}, "
            f"score={evaluation.score}, over={session.is_over}"
        )
        return session, evaluation

    def _finalize(self, session: InterviewSession, evaluation: TurnEvaluation) -> dict:
        """Synthesize the report once and close the session."""
        transcript = [m.as_history_line() for m in session.messages]
        scores = score_series(session.messages, fallback=evaluation.score)
        report = self.reporter.summarize(
            transcript,
            scores,
            role=session.role,
            category=session.category,
            seniority=session.seniority,
            user_id=session.user_id,
        )

        try:
            session.final_report = report.model_dump(by_alias=True)
            session.status = SessionStatus.COMPLETE
            session.completed_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(session)
        except StaleDataError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to store final report for session {session.id}: {e}", exc_info=True)
            raise PersistenceError("Failed to store final report") from e

        logger.info(f"Interview complete: session={session.id}, suggestion={report.hiring_suggestion}")
        return session.final_report

    # ------------------------------------------------------------------
    # Hints
    # ------------------------------------------------------------------

    def request_hint(
        self,
        question: str,
        role: str,
        category: str,
        seniority: str,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Tuple[str, Optional[int]]:
        """
        Return (hint, question number it was recorded against).

        Without a session id the hint is not tracked. Within a session the
        Hint Provider is asked at most once per question; repeat requests get
        the recorded hint.
        """
        if not session_id:
            return self.hint_provider.hint(question, role, category, seniority, user_id=user_id).hint, None

        with session_lock(session_id):
            try:
                session = self.ensure_session(
                    session_id, role=role, category=category, seniority=seniority, user_id=user_id
                )
                if session.status == SessionStatus.COMPLETE or session.is_over:
                    self.db.rollback()
                    return self.hint_provider.hint(question, role, category, seniority, user_id=user_id).hint, None

                question_number = session.question_index + 1
                recorded = self._recorded_hint(session, question_number)
                if recorded is not None:
                    self.db.rollback()
                    logger.info(f"Hint already given for question {question_number} of session {session_id}")
                    return recorded.content, question_number

                result = self.hint_provider.hint(
                    question, session.role, session.category, session.seniority, user_id=session.user_id
                )
                self._append(session, Sender.AI, result.hint, question_number, is_hint=True)
                self.db.commit()
            except StaleDataError:
                self.db.rollback()
                raise
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Failed to record hint for session {session_id}: {e}", exc_info=True)
                raise PersistenceError("Failed to record hint") from e

        return result.hint, question_number
