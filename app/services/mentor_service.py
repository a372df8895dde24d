"""
Mentor chat: NDJSON event stream in three modes.

Events, one JSON object per line:
  {"type": "content"}                  text follows
  {"type": "data", "content": "..."}   text chunk
  {"type": "quiz", "data": {...}}      one quiz question
  {"type": "error", "message": "..."}  stream failed
"""
import json
import logging
from typing import Iterator, List, Optional

from app.core.errors import DelegateUnavailable
from app.llm.runner import LLMRunner
from app.schemas.mentor import ChatTurn
from app.schemas.roadmap import QuizQuestion

logger = logging.getLogger(__name__)

HISTORY_WINDOW = 6


def _event(payload: dict) -> str:
    return json.dumps(payload) + "\n"


def fallback_mentor_quiz(context: str) -> QuizQuestion:
    return QuizQuestion(
        question=f"What is a key part of mastering {context}?",
        options=[
            "Understanding the fundamental principles",
            "Memorising syntax",
            "Copying code examples",
            "Skipping documentation",
        ],
        correct_index=0,
        explanation="Understanding fundamentals is what makes the rest stick.",
    )


class MentorService:
    def __init__(self, runner: LLMRunner):
        self.runner = runner

    def stream(
        self,
        mode: str,
        context: str,
        message: str = "",
        history: Optional[List[ChatTurn]] = None,
        user_id: Optional[str] = None,
    ) -> Iterator[str]:
        try:
            if mode == "quiz":
                yield self._quiz(context, user_id)
            elif mode == "explain":
                yield from self._text("mentor_explain", context, [])
            else:
                messages = [
                    {"role": turn.role, "content": turn.text}
                    for turn in (history or [])[-HISTORY_WINDOW:]
                ]
                messages.append({"role": "user", "content": message or context})
                yield from self._text("mentor_chat", context, messages)
        except DelegateUnavailable as e:
            logger.error(f"Mentor stream failed: mode={mode}: {e.message}")
            yield _event({"type": "error", "message": "Failed to generate response"})

    def _text(self, feature: str, context: str, messages: list) -> Iterator[str]:
        yield _event({"type": "content"})
        for chunk in self.runner.stream(feature, {"context": context}, history=messages):
            yield _event({"type": "data", "content": chunk})

    def _quiz(self, context: str, user_id: Optional[str]) -> str:
        try:
            quiz = self.runner.run("mentor_quiz", {"context": context}, QuizQuestion, user_id=user_id)
        except DelegateUnavailable as e:
            logger.warning(f"Mentor quiz failed for context={context!r}, using fallback: {e.message}")
            quiz = fallback_mentor_quiz(context)
        return _event({"type": "quiz", "data": quiz.model_dump(by_alias=True)})
