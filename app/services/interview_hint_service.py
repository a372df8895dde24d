"""
Hint Provider. Best-effort: a delegate failure yields a static hint.
"""
import logging
from typing import Optional

from app.core.errors import DelegateUnavailable
from app.llm.runner import LLMRunner
from app.schemas.interview import HintResult

logger = logging.getLogger(__name__)

FEATURE = "interview_hint"

FALLBACK_HINT = (
    "Break the question into smaller parts, state your assumptions, "
    "and walk through a concrete example before generalising."
)


class HintProvider:
    def __init__(self, runner: LLMRunner):
        self.runner = runner

    def hint(
        self,
        question: str,
        role: str,
        category: str,
        seniority: str,
        user_id: Optional[str] = None,
    ) -> HintResult:
        context = {
            "question": question,
            "role": role,
            "category": category,
            "seniority": seniority,
        }
        try:
            return self.runner.run(FEATURE, context, HintResult, user_id=user_id)
        except DelegateUnavailable as e:
            logger.warning(f"Hint generation failed, using static hint: {e.message}")
            return HintResult(hint=FALLBACK_HINT)
