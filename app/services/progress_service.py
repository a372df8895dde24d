"""
Progress and gamification service.

XP, levels, streaks, achievements and daily goals. Every public operation is
one transaction; stats rows are created on demand.
"""
import logging
import math
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import CoachError, NotFoundError, PersistenceError
from app.db.models.progress import DailyGoal, LearningStats, MilestoneProgress, QuizAttempt, UserAchievement
from app.db.models.roadmap import Milestone, Quiz, Resource, Roadmap
from app.db.models.user import User
from app.db.upsert import insert_ignore
from app.services.user_service import ensure_user

logger = logging.getLogger(__name__)

XP_REWARDS = {
    "milestone_start": 10,
    "milestone_complete": 100,
    "quiz_pass": 25,
    "quiz_fail": 5,
    "resource_view": 5,
    "daily_goal": 50,
    "streak_day": 15,
}
ACHIEVEMENT_BONUS_XP = 200

QUIZ_MASTER_THRESHOLD = 10
WEEK_STREAK_DAYS = 7
SPEED_LEARNER_MINUTES = 72 * 60
DEDICATED_MINUTES = 600

DEFAULT_TARGET_MINS = 30
DEFAULT_TARGET_QUIZZES = 3

STATUS_NOT_STARTED = "not_started"
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"


@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    icon: str
    description: str


ACHIEVEMENTS = {
    a.id: a for a in (
        Achievement("first_milestone", "Getting Started", "🎯", "Complete your first milestone"),
        Achievement("quiz_master", "Quiz Master", "🧠", "Pass 10 quizzes"),
        Achievement("week_streak", "Week Warrior", "🔥", "Maintain a 7-day streak"),
        Achievement("speed_learner", "Speed Learner", "⚡", "Complete a milestone in under 3 days"),
        Achievement("dedicated", "Dedicated Learner", "💎", "Study for 10 hours total"),
        Achievement("roadmap_complete", "Mission Complete", "🏆", "Complete an entire roadmap"),
    )
}


# ---------------------------------------------------------------------------
# Pure rules
# ---------------------------------------------------------------------------

def calculate_xp(action: str) -> int:
    return XP_REWARDS.get(action, 0)


def calculate_level(total_xp: int) -> int:
    """level = floor(sqrt(total_xp / 100)) + 1"""
    return int(math.floor(math.sqrt(max(total_xp, 0) / 100))) + 1


def next_level_xp(level: int) -> int:
    return level * level * 100


def xp_to_next_level(total_xp: int) -> int:
    return next_level_xp(calculate_level(total_xp)) - total_xp


def daily_goal_percentage(mins_completed: int, quizzes_solved: int,
                          target_mins: int = DEFAULT_TARGET_MINS,
                          target_quizzes: int = DEFAULT_TARGET_QUIZZES) -> int:
    time_part = (mins_completed / target_mins) * 50 if target_mins else 50
    quiz_part = (quizzes_solved / target_quizzes) * 50 if target_quizzes else 50
    return min(100, int(round(time_part + quiz_part)))


def completion_percentage(total_milestones: int, completed_milestones: int) -> int:
    if total_milestones <= 0:
        return 0
    return int(round(completed_milestones / total_milestones * 100))


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


# ---------------------------------------------------------------------------
# Row helpers (no commit)
# ---------------------------------------------------------------------------

@contextmanager
def _transaction(db: Session, action: str):
    try:
        yield
        db.commit()
    except CoachError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to {action}: {e}", exc_info=True)
        raise PersistenceError(f"Failed to {action}") from e


def get_or_create_stats(db: Session, user_id: str) -> LearningStats:
    ensure_user(db, user_id)
    insert_ignore(db, LearningStats.__table__, {"user_id": user_id}, conflict_columns=["user_id"])
    return db.get(LearningStats, user_id)


def _get_or_create_daily_goal(db: Session, user_id: str, day: date) -> DailyGoal:
    insert_ignore(
        db,
        DailyGoal.__table__,
        {"user_id": user_id, "date": day},
        conflict_columns=["user_id", "date"],
    )
    return db.query(DailyGoal).filter(DailyGoal.user_id == user_id, DailyGoal.date == day).one()


def _get_progress(db: Session, user_id: str, milestone_id: int) -> Optional[MilestoneProgress]:
    return db.query(MilestoneProgress).filter(
        MilestoneProgress.user_id == user_id,
        MilestoneProgress.milestone_id == milestone_id,
    ).first()


def _owned_milestone(db: Session, user_id: str, milestone_id: int) -> Milestone:
    milestone = db.get(Milestone, milestone_id)
    if milestone is None or milestone.roadmap.user_id != user_id:
        raise NotFoundError("Milestone not found")
    return milestone


def add_xp(stats: LearningStats, amount: int) -> int:
    stats.total_xp = (stats.total_xp or 0) + amount
    stats.total_points = (stats.total_points or 0) + amount
    stats.level = calculate_level(stats.total_xp)
    return amount


def award_achievement(db: Session, stats: LearningStats, achievement_id: str) -> Optional[Achievement]:
    """Grant an achievement once per user; returns it only when newly granted."""
    achievement = ACHIEVEMENTS[achievement_id]
    existing = db.query(UserAchievement).filter(
        UserAchievement.user_id == stats.user_id,
        UserAchievement.badge_id == achievement.id,
    ).first()
    if existing:
        return None

    db.add(UserAchievement(
        user_id=stats.user_id,
        badge_id=achievement.id,
        badge_name=achievement.name,
        badge_icon=achievement.icon,
        description=achievement.description,
    ))
    db.flush()
    stats.badge_count = (stats.badge_count or 0) + 1
    add_xp(stats, ACHIEVEMENT_BONUS_XP)
    logger.info(f"Achievement earned: user={stats.user_id}, badge={achievement.id}")
    return achievement


def update_streak(db: Session, stats: LearningStats, now: datetime) -> List[Achievement]:
    """
    Record activity for today.

    Same day: unchanged. Next day: streak + 1 and streak XP. Longer gap or
    first activity: streak restarts at 1.
    """
    today = now.date()
    last_active = _naive_utc(stats.last_active_date)
    if last_active is not None and last_active.date() == today:
        return []

    if last_active is not None and (today - last_active.date()).days == 1:
        stats.current_streak = (stats.current_streak or 0) + 1
        add_xp(stats, calculate_xp("streak_day"))
    else:
        stats.current_streak = 1
    stats.longest_streak = max(stats.longest_streak or 0, stats.current_streak)
    stats.last_active_date = now

    earned = []
    if stats.current_streak >= WEEK_STREAK_DAYS:
        achievement = award_achievement(db, stats, "week_streak")
        if achievement:
            earned.append(achievement)
    return earned


def _check_daily_goal(goal: DailyGoal, stats: LearningStats) -> int:
    """Mark the goal complete (once) when both targets are met; returns XP granted."""
    if goal.is_completed:
        return 0
    if goal.mins_completed >= goal.target_mins and goal.quizzes_solved >= goal.target_quizzes:
        goal.is_completed = True
        return add_xp(stats, calculate_xp("daily_goal"))
    return 0


def _activity(stats: LearningStats, xp_gained: int, earned: List[Achievement]) -> Dict:
    return {
        "xp_gained": xp_gained,
        "total_xp": stats.total_xp,
        "level": stats.level,
        "achievements": [achievement_dict(a) for a in earned],
    }


def achievement_dict(achievement: Achievement) -> Dict:
    return {
        "badge_id": achievement.id,
        "badge_name": achievement.name,
        "badge_icon": achievement.icon,
        "description": achievement.description,
    }


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

def start_milestone(db: Session, user_id: str, milestone_id: int, now: Optional[datetime] = None) -> Dict:
    now = now or datetime.utcnow()
    with _transaction(db, "start milestone"):
        _owned_milestone(db, user_id, milestone_id)
        stats = get_or_create_stats(db, user_id)
        earned = update_streak(db, stats, now)

        insert_ignore(
            db,
            MilestoneProgress.__table__,
            {"user_id": user_id, "milestone_id": milestone_id, "status": STATUS_NOT_STARTED, "resources_viewed": []},
            conflict_columns=["user_id", "milestone_id"],
        )
        progress = _get_progress(db, user_id, milestone_id)

        xp_gained = 0
        if progress.status == STATUS_NOT_STARTED:
            progress.status = STATUS_IN_PROGRESS
            progress.started_at = now
            xp_gained = add_xp(stats, calculate_xp("milestone_start"))
        result = {"milestone_id": milestone_id, "status": progress.status, **_activity(stats, xp_gained, earned)}

    logger.info(f"Milestone started: user={user_id}, milestone={milestone_id}, xp={xp_gained}")
    return result


def complete_milestone(db: Session, user_id: str, milestone_id: int, now: Optional[datetime] = None) -> Dict:
    """
    Complete a started milestone.

    Raises:
        NotFoundError: unknown milestone, or one the user never started
    """
    now = now or datetime.utcnow()
    with _transaction(db, "complete milestone"):
        milestone = _owned_milestone(db, user_id, milestone_id)
        progress = _get_progress(db, user_id, milestone_id)
        if progress is None or progress.status == STATUS_NOT_STARTED:
            raise NotFoundError("Milestone has not been started")

        stats = get_or_create_stats(db, user_id)
        if progress.status == STATUS_COMPLETED:
            result = {
                "milestone_id": milestone_id,
                "time_spent_mins": progress.time_spent_mins,
                "already_completed": True,
                "roadmap_completed": bool(milestone.roadmap.is_completed),
                **_activity(stats, 0, []),
            }
            return result

        earned = update_streak(db, stats, now)
        started_at = _naive_utc(progress.started_at) or now
        elapsed_mins = max(0, int((now - started_at).total_seconds() // 60))

        progress.status = STATUS_COMPLETED
        progress.completed_at = now
        progress.time_spent_mins = elapsed_mins

        stats.milestones_completed = (stats.milestones_completed or 0) + 1
        stats.total_time_spent_mins = (stats.total_time_spent_mins or 0) + elapsed_mins
        xp_gained = add_xp(stats, calculate_xp("milestone_complete"))

        if stats.milestones_completed == 1:
            earned.append(award_achievement(db, stats, "first_milestone"))
        if stats.total_time_spent_mins >= DEDICATED_MINUTES:
            earned.append(award_achievement(db, stats, "dedicated"))
        if elapsed_mins < SPEED_LEARNER_MINUTES:
            earned.append(award_achievement(db, stats, "speed_learner"))

        db.flush()
        roadmap = milestone.roadmap
        milestone_ids = [m.id for m in roadmap.milestones]
        completed = db.query(MilestoneProgress).filter(
            MilestoneProgress.user_id == user_id,
            MilestoneProgress.milestone_id.in_(milestone_ids),
            MilestoneProgress.status == STATUS_COMPLETED,
        ).count()
        roadmap_completed = completed == len(milestone_ids)
        if roadmap_completed and not roadmap.is_completed:
            roadmap.is_completed = True
            roadmap.completed_at = now
            earned.append(award_achievement(db, stats, "roadmap_complete"))

        earned = [a for a in earned if a is not None]
        result = {
            "milestone_id": milestone_id,
            "time_spent_mins": elapsed_mins,
            "roadmap_completed": roadmap_completed,
            **_activity(stats, xp_gained, earned),
        }

    logger.info(
        f"Milestone completed: user={user_id}, milestone={milestone_id}, "
        f"minutes={elapsed_mins}, roadmap_completed={roadmap_completed}"
    )
    return result


def submit_quiz(db: Session, user_id: str, quiz_id: int, selected_index: int, now: Optional[datetime] = None) -> Dict:
    """
    Record a quiz attempt.

    Only the first correct attempt on a quiz counts toward quizzes_passed and
    pass XP; retries of a passed quiz earn nothing.
    """
    now = now or datetime.utcnow()
    with _transaction(db, "submit quiz"):
        quiz = db.get(Quiz, quiz_id)
        if quiz is None or quiz.milestone.roadmap.user_id != user_id:
            raise NotFoundError("Quiz not found")

        stats = get_or_create_stats(db, user_id)
        earned = update_streak(db, stats, now)

        already_passed = db.query(QuizAttempt).filter(
            QuizAttempt.user_id == user_id,
            QuizAttempt.quiz_id == quiz_id,
            QuizAttempt.is_correct.is_(True),
        ).first() is not None

        is_correct = selected_index == quiz.correct_index
        db.add(QuizAttempt(user_id=user_id, quiz_id=quiz_id, selected_index=selected_index, is_correct=is_correct))

        xp_gained = 0
        if is_correct and not already_passed:
            stats.quizzes_passed = (stats.quizzes_passed or 0) + 1
            xp_gained += add_xp(stats, calculate_xp("quiz_pass"))
            if stats.quizzes_passed >= QUIZ_MASTER_THRESHOLD:
                achievement = award_achievement(db, stats, "quiz_master")
                if achievement:
                    earned.append(achievement)
        elif not already_passed:
            xp_gained += add_xp(stats, calculate_xp("quiz_fail"))

        goal = _get_or_create_daily_goal(db, user_id, now.date())
        goal.quizzes_solved += 1
        xp_gained += _check_daily_goal(goal, stats)

        result = {
            "is_correct": is_correct,
            "correct_index": quiz.correct_index,
            "explanation": quiz.explanation or "",
            **_activity(stats, xp_gained, earned),
        }

    logger.info(f"Quiz submitted: user={user_id}, quiz={quiz_id}, correct={is_correct}")
    return result


def mark_resource_viewed(db: Session, user_id: str, milestone_id: int, resource_id: int) -> Dict:
    """
    Record that a resource was opened; XP only the first time.

    Raises:
        NotFoundError: unknown resource, or the milestone was never started
    """
    with _transaction(db, "mark resource viewed"):
        resource = db.get(Resource, resource_id)
        if resource is None or resource.milestone_id != milestone_id:
            raise NotFoundError("Resource not found")
        _owned_milestone(db, user_id, milestone_id)

        progress = _get_progress(db, user_id, milestone_id)
        if progress is None:
            raise NotFoundError("Milestone has not been started")

        stats = get_or_create_stats(db, user_id)
        viewed = list(progress.resources_viewed or [])
        newly_viewed = resource_id not in viewed
        xp_gained = 0
        if newly_viewed:
            progress.resources_viewed = viewed + [resource_id]
            xp_gained = add_xp(stats, calculate_xp("resource_view"))
        result = {"newly_viewed": newly_viewed, **_activity(stats, xp_gained, [])}
    return result


def daily_goal_dict(goal: Optional[DailyGoal], day: date) -> Dict:
    if goal is None:
        return {
            "day": day,
            "target_mins": DEFAULT_TARGET_MINS,
            "target_quizzes": DEFAULT_TARGET_QUIZZES,
            "mins_completed": 0,
            "quizzes_solved": 0,
            "is_completed": False,
            "progress_percentage": 0,
        }
    return {
        "day": goal.date,
        "target_mins": goal.target_mins,
        "target_quizzes": goal.target_quizzes,
        "mins_completed": goal.mins_completed,
        "quizzes_solved": goal.quizzes_solved,
        "is_completed": goal.is_completed,
        "progress_percentage": daily_goal_percentage(
            goal.mins_completed, goal.quizzes_solved, goal.target_mins, goal.target_quizzes
        ),
    }


def update_daily_progress(db: Session, user_id: str, mins_spent: int, now: Optional[datetime] = None) -> Dict:
    now = now or datetime.utcnow()
    with _transaction(db, "update daily progress"):
        stats = get_or_create_stats(db, user_id)
        earned = update_streak(db, stats, now)
        goal = _get_or_create_daily_goal(db, user_id, now.date())
        goal.mins_completed += mins_spent
        xp_gained = _check_daily_goal(goal, stats)
        result = {"goal": daily_goal_dict(goal, now.date()), **_activity(stats, xp_gained, earned)}
    return result


def get_stats(db: Session, user_id: str, today: Optional[date] = None) -> Dict:
    """Stats, achievements (newest first) and today's goal. Read-only."""
    today = today or datetime.utcnow().date()
    stats = db.get(LearningStats, user_id)
    total_xp = stats.total_xp if stats else 0
    level = calculate_level(total_xp)

    achievements = db.query(UserAchievement).filter(
        UserAchievement.user_id == user_id
    ).order_by(UserAchievement.earned_at.desc(), UserAchievement.id.desc()).all()
    goal = db.query(DailyGoal).filter(DailyGoal.user_id == user_id, DailyGoal.date == today).first()

    return {
        "stats": {
            "total_xp": total_xp,
            "total_points": stats.total_points if stats else 0,
            "level": level,
            "next_level_xp": next_level_xp(level),
            "xp_to_next_level": xp_to_next_level(total_xp),
            "current_streak": stats.current_streak if stats else 0,
            "longest_streak": stats.longest_streak if stats else 0,
            "milestones_completed": stats.milestones_completed if stats else 0,
            "quizzes_passed": stats.quizzes_passed if stats else 0,
            "total_time_spent_mins": stats.total_time_spent_mins if stats else 0,
            "badge_count": stats.badge_count if stats else 0,
        },
        "achievements": achievements,
        "daily_goal": daily_goal_dict(goal, today),
    }


def get_leaderboard(db: Session, limit: int = 10) -> List[Dict]:
    rows = (
        db.query(LearningStats, User)
        .join(User, User.id == LearningStats.user_id)
        .order_by(LearningStats.total_xp.desc(), LearningStats.level.desc(), LearningStats.user_id)
        .limit(limit)
        .all()
    )
    return [
        {
            "rank": index,
            "user_id": stats.user_id,
            "user_name": user.full_name or "Anonymous",
            "level": stats.level,
            "total_xp": stats.total_xp,
            "current_streak": stats.current_streak,
        }
        for index, (stats, user) in enumerate(rows, start=1)
    ]


def roadmap_progress(db: Session, user_id: str, roadmap: Roadmap) -> Dict[int, MilestoneProgress]:
    """The user's progress rows for a roadmap, keyed by milestone id."""
    milestone_ids = [m.id for m in roadmap.milestones]
    if not milestone_ids:
        return {}
    rows = db.query(MilestoneProgress).filter(
        MilestoneProgress.user_id == user_id,
        MilestoneProgress.milestone_id.in_(milestone_ids),
    ).all()
    return {row.milestone_id: row for row in rows}
