"""
Turn Evaluator: scores one answer and proposes the next question.

The delegate's reply is trusted except for two local clamps: a turn answered
after a hint scores at most HINT_SCORE_CAP, and the last allowed question always
ends the interview.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from app.core.errors import DelegateUnavailable
from app.llm.runner import LLMRunner
from app.schemas.interview import TurnEvaluation

logger = logging.getLogger(__name__)

FEATURE = "interview_turn"
HINT_SCORE_CAP = 75

TYPE_GUIDANCE = {
    "TECHNICAL": "Ask about concepts, coding approaches, debugging and trade-offs. Probe depth on the answers given.",
    "BEHAVIORAL": "Ask situational questions answered with the STAR method. Look for ownership, conflict handling and impact.",
    "SYSTEM_DESIGN": "Ask the candidate to design systems. Probe scalability, data modelling, consistency and failure handling.",
    "MIXED": "Alternate between technical depth, design reasoning and behavioral questions.",
}

DIFFICULTY_GUIDANCE = {
    "JUNIOR": "Focus on fundamentals and learning ability. Be encouraging.",
    "MID": "Expect working knowledge and practical experience with common trade-offs.",
    "SENIOR": "Expect depth, architectural judgment and mentoring experience.",
    "STAFF": "Expect cross-team technical leadership, strategy and organisation-wide impact.",
}


@dataclass
class TurnConfig:
    role: str
    category: str
    seniority: str
    focus_topics: Optional[str]
    question_index: int  # 1-based number of the question being answered
    max_questions: int
    hint_used: bool = False


def apply_turn_rules(evaluation: TurnEvaluation, turn_config: TurnConfig) -> TurnEvaluation:
    """Enforce the hint score cap and the question-count termination rule."""
    updates = {}
    if turn_config.hint_used and evaluation.score > HINT_SCORE_CAP:
        logger.info(f"Capping hinted answer score {evaluation.score} -> {HINT_SCORE_CAP}")
        updates["score"] = float(HINT_SCORE_CAP)

    if turn_config.question_index >= turn_config.max_questions and not evaluation.is_interview_over:
        logger.info(
            f"Forcing interview end at question {turn_config.question_index}/{turn_config.max_questions}"
        )
        updates["is_interview_over"] = True

    is_over = updates.get("is_interview_over", evaluation.is_interview_over)
    if not is_over and not evaluation.next_question.strip():
        raise DelegateUnavailable("Evaluator continued the interview without a next question", feature=FEATURE)
    if is_over and evaluation.next_question:
        updates["next_question"] = ""

    return evaluation.model_copy(update=updates) if updates else evaluation


class TurnEvaluator:
    def __init__(self, runner: LLMRunner):
        self.runner = runner

    def evaluate(
        self,
        question: str,
        answer: str,
        history: Sequence[str],
        turn_config: TurnConfig,
        user_id: Optional[str] = None,
    ) -> TurnEvaluation:
        """
        Evaluate one answer.

        Raises:
            DelegateUnavailable: the delegate failed or replied with invalid JSON
        """
        context = {
            "role": turn_config.role,
            "category": turn_config.category,
            "seniority": turn_config.seniority,
            "type_guidance": TYPE_GUIDANCE.get(turn_config.category, TYPE_GUIDANCE["TECHNICAL"]),
            "difficulty_guidance": DIFFICULTY_GUIDANCE.get(turn_config.seniority, DIFFICULTY_GUIDANCE["MID"]),
            "focus_topics": turn_config.focus_topics or "General topics for the role",
            "question_number": turn_config.question_index,
            "max_questions": turn_config.max_questions,
            "hint_used": "yes" if turn_config.hint_used else "no",
            "history": "\n".join(history) or "No prior conversation.",
            "question": question,
            "answer": answer,
        }
        evaluation = self.runner.run(FEATURE, context, TurnEvaluation, user_id=user_id)
        return apply_turn_rules(evaluation, turn_config)
