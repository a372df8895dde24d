"""
Quiz stage: multiple-choice questions per milestone, with a fixed fallback,
and standalone topic quizzes.
"""
import logging
from typing import List, Optional

from app.core.errors import DelegateUnavailable, ValidationError
from app.llm.runner import LLMRunner
from app.schemas.roadmap import QuizQuestion, QuizSet

logger = logging.getLogger(__name__)

FEATURE = "roadmap_quiz"
QUESTIONS_PER_MILESTONE = 2


def fallback_quiz(topic: str) -> QuizQuestion:
    return QuizQuestion(
        question=f"What is the most effective way to make progress with {topic}?",
        options=[
            "Read about it once and move on",
            "Practice it hands-on and review what went wrong",
            "Memorise definitions without writing code",
            "Skip it and come back later",
        ],
        correct_index=1,
        explanation="Deliberate practice with feedback builds lasting understanding.",
        difficulty="easy",
    )


class QuizGenerator:
    def __init__(self, runner: LLMRunner, questions_per_milestone: int = QUESTIONS_PER_MILESTONE):
        self.runner = runner
        self.questions_per_milestone = questions_per_milestone

    def generate(
        self,
        topic: str,
        description: str = "",
        goal: str = "",
        user_id: Optional[str] = None,
    ) -> List[QuizQuestion]:
        context = {
            "topic": topic,
            "description": description or topic,
            "goal": goal or topic,
            "question_count": self.questions_per_milestone,
        }
        try:
            quiz_set = self.runner.run(FEATURE, context, QuizSet, user_id=user_id)
        except DelegateUnavailable as e:
            logger.warning(f"Quiz generation failed for topic={topic!r}, using fallback question: {e.message}")
            return [fallback_quiz(topic)]

        questions = quiz_set.questions
        if len(questions) < self.questions_per_milestone:
            logger.warning(
                f"Quiz delegate returned {len(questions)} of {self.questions_per_milestone} "
                f"questions for topic={topic!r}; keeping the partial set"
            )
        return questions[:self.questions_per_milestone]


TOPIC_QUIZ_FEATURE = "topic_quiz"
TOPIC_QUIZ_QUESTIONS = 5


def generate_topic_quiz(
    runner: LLMRunner,
    topic: str,
    job_role: str,
    user_id: Optional[str] = None,
) -> List[QuizQuestion]:
    """
    Hard questions on a topic for a role. Unlike milestone quizzes there is no
    fallback question.

    Raises:
        ValidationError: topic or role is blank
        DelegateUnavailable: the questions could not be produced
    """
    topic = (topic or "").strip()
    job_role = (job_role or "").strip()
    if not topic:
        raise ValidationError("Topic is required", field="topic")
    if not job_role:
        raise ValidationError("Job role is required", field="jobRole")

    quiz_set = runner.run(
        TOPIC_QUIZ_FEATURE,
        {"topic": topic, "job_role": job_role, "question_count": TOPIC_QUIZ_QUESTIONS},
        QuizSet,
        user_id=user_id,
    )

    questions = quiz_set.questions[:TOPIC_QUIZ_QUESTIONS]
    if len(questions) < TOPIC_QUIZ_QUESTIONS:
        logger.warning(
            f"Topic quiz delegate returned {len(questions)} of {TOPIC_QUIZ_QUESTIONS} "
            f"questions for topic={topic!r}; keeping the partial set"
        )
    return [q if q.difficulty else q.model_copy(update={"difficulty": "hard"}) for q in questions]
