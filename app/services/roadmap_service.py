"""
Roadmap generation pipeline: plan -> enrich -> quiz -> persist.

Stages run one after another, milestone by milestone. Persistence writes the
owner row, the roadmap and all children in a single transaction.
"""
import logging
from typing import Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.core.errors import PersistenceError, ValidationError
from app.db.models.progress import QuizAttempt
from app.db.models.roadmap import Milestone, Quiz, Resource, Roadmap
from app.services import progress_service
from app.services.quiz_service import QuizGenerator
from app.services.resource_service import EnrichedMilestone, ResourceEnricher
from app.services.roadmap_planner import PlannedRoadmap, RoadmapPlanner
from app.services.user_service import ensure_user

logger = logging.getLogger(__name__)


class RoadmapPipeline:
    def __init__(
        self,
        db: Session,
        planner: RoadmapPlanner,
        enricher: ResourceEnricher,
        quiz_generator: QuizGenerator,
    ):
        self.db = db
        self.planner = planner
        self.enricher = enricher
        self.quiz_generator = quiz_generator

    def generate(self, goal: str, user_id: str) -> Roadmap:
        """
        Build and store a roadmap for a goal.

        Delegate failures inside the stages degrade to fallback content; only
        invalid input or a failed write makes this raise.

        Raises:
            ValidationError: goal or user id missing
            PersistenceError: the roadmap could not be stored
        """
        if not (goal or "").strip():
            raise ValidationError("Goal is required", field="goal")
        if not (user_id or "").strip():
            raise ValidationError("User id is required", field="userId")

        planned = self.planner.plan(goal, user_id=user_id)
        enriched = self.enricher.enrich(planned.milestones, planned.goal, intensive=planned.is_intensive)
        quizzes = [
            self.quiz_generator.generate(
                item.topic, item.plan.description, goal=planned.goal, user_id=user_id
            )
            for item in enriched
        ]
        return self.persist(user_id, goal.strip(), planned, enriched, quizzes)

    def persist(
        self,
        user_id: str,
        raw_goal: str,
        planned: PlannedRoadmap,
        enriched: List[EnrichedMilestone],
        quizzes: List[list],
    ) -> Roadmap:
        try:
            ensure_user(self.db, user_id)
            roadmap = Roadmap(
                user_id=user_id,
                title=planned.goal,
                goal=raw_goal,
                duration_unit=planned.duration_unit,
                is_intensive=planned.is_intensive,
                difficulty=enriched[0].plan.difficulty if enriched else None,
            )

            position = 1
            for order, (item, questions) in enumerate(zip(enriched, quizzes), start=1):
                plan = item.plan
                milestone = Milestone(
                    title=plan.title,
                    description=plan.description,
                    order=order,
                    week=position,
                    duration=plan.duration,
                    duration_unit=plan.duration_unit,
                    estimated_hours=plan.estimated_hours,
                    difficulty=plan.difficulty,
                )
                position += plan.duration
                milestone.resources = [
                    Resource(position=i, title=r.title, url=r.url, type=r.type, relevance_score=r.score)
                    for i, r in enumerate(item.resources)
                ]
                milestone.quizzes = [
                    Quiz(
                        position=i,
                        question=q.question,
                        options=list(q.options),
                        correct_index=q.correct_index,
                        explanation=q.explanation,
                        difficulty=q.difficulty,
                    )
                    for i, q in enumerate(questions)
                ]
                roadmap.milestones.append(milestone)
            roadmap.total_duration = position - 1

            self.db.add(roadmap)
            self.db.commit()
            self.db.refresh(roadmap)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to store roadmap for user {user_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to store roadmap") from e

        logger.info(
            f"Roadmap stored: id={roadmap.id}, user={user_id}, milestones={len(enriched)}, "
            f"fallback_plan={planned.used_fallback}"
        )
        return roadmap


def list_roadmaps(db: Session, user_id: str) -> List[Dict]:
    """
    The user's roadmaps, newest first, with their progress.

    A quiz's correct answer is only included once the user has attempted it.
    """
    roadmaps = (
        db.query(Roadmap)
        .options(
            selectinload(Roadmap.milestones).selectinload(Milestone.resources),
            selectinload(Roadmap.milestones).selectinload(Milestone.quizzes),
        )
        .filter(Roadmap.user_id == user_id)
        .order_by(Roadmap.created_at.desc(), Roadmap.id.desc())
        .all()
    )

    quiz_ids = [q.id for r in roadmaps for m in r.milestones for q in m.quizzes]
    attempted = set()
    if quiz_ids:
        attempted = {
            quiz_id for (quiz_id,) in db.query(QuizAttempt.quiz_id).filter(
                QuizAttempt.user_id == user_id,
                QuizAttempt.quiz_id.in_(quiz_ids),
            ).distinct()
        }

    return [_roadmap_dict(db, user_id, roadmap, attempted) for roadmap in roadmaps]


def _roadmap_dict(db: Session, user_id: str, roadmap: Roadmap, attempted: set) -> Dict:
    progress = progress_service.roadmap_progress(db, user_id, roadmap)
    completed = sum(1 for p in progress.values() if p.status == progress_service.STATUS_COMPLETED)

    milestones = []
    for milestone in roadmap.milestones:
        row = progress.get(milestone.id)
        milestones.append({
            "id": milestone.id,
            "title": milestone.title,
            "description": milestone.description,
            "order": milestone.order,
            "week": milestone.week,
            "duration": milestone.duration,
            "duration_unit": milestone.duration_unit,
            "estimated_hours": milestone.estimated_hours,
            "difficulty": milestone.difficulty,
            "status": row.status if row else progress_service.STATUS_NOT_STARTED,
            "time_spent_mins": row.time_spent_mins if row else 0,
            "resources_viewed": list(row.resources_viewed or []) if row else [],
            "resources": [
                {"id": r.id, "title": r.title, "url": r.url, "type": r.type, "relevance_score": r.relevance_score}
                for r in milestone.resources
            ],
            "quizzes": [
                {
                    "id": quiz.id,
                    "question": quiz.question,
                    "options": quiz.options,
                    "difficulty": quiz.difficulty,
                    "correct_index": quiz.correct_index if quiz.id in attempted else None,
                    "explanation": quiz.explanation if quiz.id in attempted else None,
                }
                for quiz in milestone.quizzes
            ],
        })

    return {
        "id": roadmap.id,
        "title": roadmap.title,
        "goal": roadmap.goal,
        "duration_unit": roadmap.duration_unit,
        "total_duration": roadmap.total_duration,
        "is_intensive": roadmap.is_intensive,
        "is_completed": roadmap.is_completed,
        "completion_percentage": progress_service.completion_percentage(len(roadmap.milestones), completed),
        "created_at": roadmap.created_at,
        "milestones": milestones,
    }
