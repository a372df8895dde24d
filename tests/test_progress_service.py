"""
Tests for XP, levels, streaks, achievements and daily goals.
"""
from datetime import datetime, timedelta

import pytest

from app.core.errors import NotFoundError
from app.db.models.progress import LearningStats, MilestoneProgress, UserAchievement
from app.db.models.roadmap import Milestone, Quiz, Resource, Roadmap
from app.services import progress_service
from app.services.user_service import ensure_user

DAY_1 = datetime(2026, 3, 2, 9, 0, 0)


def make_roadmap(db, user_id="user_1", milestones=1, quizzes_per_milestone=1):
    ensure_user(db, user_id)
    roadmap = Roadmap(user_id=user_id, title="Learn Go", goal="Learn Go")
    for i in range(milestones):
        milestone = Milestone(
            title=f"Milestone {i + 1}", description="", order=i + 1, week=i + 1, duration=1, duration_unit="weeks"
        )
        milestone.resources = [Resource(position=0, title="Tour", url=f"https://go.dev/tour/{i}", type="DOCS")]
        milestone.quizzes = [
            Quiz(position=j, question=f"Q{j}?", options=["a", "b", "c", "d"], correct_index=2, explanation="c it is")
            for j in range(quizzes_per_milestone)
        ]
        roadmap.milestones.append(milestone)
    db.add(roadmap)
    db.commit()
    db.refresh(roadmap)
    return roadmap


# ---------------------------------------------------------------------------
# Pure rules
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("xp, level", [(0, 1), (99, 1), (100, 2), (399, 2), (400, 3), (900, 4), (-5, 1)])
def test_calculate_level(xp, level):
    assert progress_service.calculate_level(xp) == level


def test_xp_to_next_level():
    assert progress_service.next_level_xp(2) == 400
    assert progress_service.xp_to_next_level(150) == 250


def test_daily_goal_percentage():
    assert progress_service.daily_goal_percentage(15, 0) == 25
    assert progress_service.daily_goal_percentage(30, 3) == 100
    assert progress_service.daily_goal_percentage(90, 9) == 100


def test_completion_percentage():
    assert progress_service.completion_percentage(0, 0) == 0
    assert progress_service.completion_percentage(3, 1) == 33
    assert progress_service.completion_percentage(4, 4) == 100


def test_unknown_action_earns_nothing():
    assert progress_service.calculate_xp("teleport") == 0


# ---------------------------------------------------------------------------
# Milestones
# ---------------------------------------------------------------------------

def test_start_milestone_awards_xp_once(db):
    roadmap = make_roadmap(db)
    milestone_id = roadmap.milestones[0].id

    first = progress_service.start_milestone(db, "user_1", milestone_id, now=DAY_1)
    second = progress_service.start_milestone(db, "user_1", milestone_id, now=DAY_1)

    assert first["status"] == progress_service.STATUS_IN_PROGRESS
    assert first["xp_gained"] == 10
    assert second["xp_gained"] == 0
    assert second["total_xp"] == 10
    assert db.get(LearningStats, "user_1").current_streak == 1


def test_complete_requires_start(db):
    roadmap = make_roadmap(db)

    with pytest.raises(NotFoundError):
        progress_service.complete_milestone(db, "user_1", roadmap.milestones[0].id, now=DAY_1)


def test_other_users_milestone_is_not_found(db):
    roadmap = make_roadmap(db, user_id="owner")

    with pytest.raises(NotFoundError):
        progress_service.start_milestone(db, "intruder", roadmap.milestones[0].id, now=DAY_1)
    with pytest.raises(NotFoundError):
        progress_service.start_milestone(db, "owner", 9999, now=DAY_1)


def test_complete_single_milestone_roadmap(db):
    roadmap = make_roadmap(db)
    milestone_id = roadmap.milestones[0].id
    progress_service.start_milestone(db, "user_1", milestone_id, now=DAY_1)

    result = progress_service.complete_milestone(db, "user_1", milestone_id, now=DAY_1 + timedelta(minutes=45))

    assert result["time_spent_mins"] == 45
    assert result["roadmap_completed"] is True
    assert result["xp_gained"] == 100
    badges = {a["badge_id"] for a in result["achievements"]}
    assert badges == {"first_milestone", "speed_learner", "roadmap_complete"}
    # 10 start + 100 complete + 3 x 200 achievement bonus
    assert result["total_xp"] == 710
    assert result["level"] == 3

    stats = db.get(LearningStats, "user_1")
    assert stats.milestones_completed == 1
    assert stats.total_time_spent_mins == 45
    assert stats.badge_count == 3
    assert db.get(Roadmap, roadmap.id).is_completed is True


def test_complete_is_idempotent(db):
    roadmap = make_roadmap(db)
    milestone_id = roadmap.milestones[0].id
    progress_service.start_milestone(db, "user_1", milestone_id, now=DAY_1)
    progress_service.complete_milestone(db, "user_1", milestone_id, now=DAY_1 + timedelta(minutes=5))

    again = progress_service.complete_milestone(db, "user_1", milestone_id, now=DAY_1 + timedelta(minutes=50))

    assert again["already_completed"] is True
    assert again["xp_gained"] == 0
    assert again["time_spent_mins"] == 5
    assert db.get(LearningStats, "user_1").milestones_completed == 1


def test_roadmap_completes_only_after_every_milestone(db):
    roadmap = make_roadmap(db, milestones=2)
    first, second = [m.id for m in roadmap.milestones]
    for milestone_id in (first, second):
        progress_service.start_milestone(db, "user_1", milestone_id, now=DAY_1)

    partial = progress_service.complete_milestone(db, "user_1", first, now=DAY_1 + timedelta(hours=1))
    done = progress_service.complete_milestone(db, "user_1", second, now=DAY_1 + timedelta(hours=2))

    assert partial["roadmap_completed"] is False
    assert done["roadmap_completed"] is True
    assert [a["badge_id"] for a in done["achievements"]] == ["roadmap_complete"]


def test_slow_completion_is_not_speed_learner(db):
    roadmap = make_roadmap(db)
    milestone_id = roadmap.milestones[0].id
    progress_service.start_milestone(db, "user_1", milestone_id, now=DAY_1)

    result = progress_service.complete_milestone(db, "user_1", milestone_id, now=DAY_1 + timedelta(days=4))

    badges = {a["badge_id"] for a in result["achievements"]}
    assert "speed_learner" not in badges
    assert "dedicated" in badges


# ---------------------------------------------------------------------------
# Quizzes
# ---------------------------------------------------------------------------

def test_only_first_correct_attempt_counts(db):
    roadmap = make_roadmap(db, quizzes_per_milestone=2)
    quiz_a, quiz_b = [q.id for q in roadmap.milestones[0].quizzes]

    passed = progress_service.submit_quiz(db, "user_1", quiz_a, 2, now=DAY_1)
    retry = progress_service.submit_quiz(db, "user_1", quiz_a, 2, now=DAY_1)
    failed = progress_service.submit_quiz(db, "user_1", quiz_b, 0, now=DAY_1)

    assert passed["is_correct"] is True
    assert passed["xp_gained"] == 25
    assert retry["is_correct"] is True
    assert retry["xp_gained"] == 0
    assert failed["is_correct"] is False
    assert failed["xp_gained"] == 5
    assert failed["correct_index"] == 2
    assert failed["explanation"] == "c it is"
    assert db.get(LearningStats, "user_1").quizzes_passed == 1


def test_quiz_master_after_ten_passes(db):
    roadmap = make_roadmap(db, quizzes_per_milestone=10)
    quiz_ids = [q.id for q in roadmap.milestones[0].quizzes]

    results = [progress_service.submit_quiz(db, "user_1", quiz_id, 2, now=DAY_1) for quiz_id in quiz_ids]

    assert all(not r["achievements"] for r in results[:9])
    assert [a["badge_id"] for a in results[9]["achievements"]] == ["quiz_master"]


def test_unknown_quiz_is_not_found(db):
    make_roadmap(db)

    with pytest.raises(NotFoundError):
        progress_service.submit_quiz(db, "user_1", 4242, 0, now=DAY_1)


# ---------------------------------------------------------------------------
# Streaks and daily goals
# ---------------------------------------------------------------------------

def test_streak_grows_on_consecutive_days_and_resets_after_gap(db):
    progress_service.update_daily_progress(db, "user_1", 5, now=DAY_1)
    progress_service.update_daily_progress(db, "user_1", 5, now=DAY_1 + timedelta(days=1))

    stats = db.get(LearningStats, "user_1")
    assert stats.current_streak == 2
    assert stats.total_xp == 15

    progress_service.update_daily_progress(db, "user_1", 5, now=DAY_1 + timedelta(days=3))

    db.refresh(stats)
    assert stats.current_streak == 1
    assert stats.longest_streak == 2


def test_same_day_activity_does_not_extend_streak(db):
    progress_service.update_daily_progress(db, "user_1", 5, now=DAY_1)
    progress_service.update_daily_progress(db, "user_1", 5, now=DAY_1 + timedelta(hours=5))

    assert db.get(LearningStats, "user_1").current_streak == 1


def test_week_streak_achievement(db):
    results = [
        progress_service.update_daily_progress(db, "user_1", 5, now=DAY_1 + timedelta(days=day))
        for day in range(7)
    ]

    assert [a["badge_id"] for a in results[6]["achievements"]] == ["week_streak"]
    assert all(not r["achievements"] for r in results[:6])


def test_daily_goal_needs_minutes_and_quizzes(db):
    roadmap = make_roadmap(db, quizzes_per_milestone=3)
    quiz_ids = [q.id for q in roadmap.milestones[0].quizzes]

    minutes = progress_service.update_daily_progress(db, "user_1", 30, now=DAY_1)
    assert minutes["goal"]["is_completed"] is False
    assert minutes["goal"]["progress_percentage"] == 50

    results = [progress_service.submit_quiz(db, "user_1", quiz_id, 2, now=DAY_1) for quiz_id in quiz_ids]

    assert results[1]["xp_gained"] == 25
    assert results[2]["xp_gained"] == 25 + 50

    more = progress_service.update_daily_progress(db, "user_1", 10, now=DAY_1)
    assert more["xp_gained"] == 0
    assert more["goal"]["is_completed"] is True
    assert more["goal"]["mins_completed"] == 40


# ---------------------------------------------------------------------------
# Resources, stats and leaderboard
# ---------------------------------------------------------------------------

def test_resource_view_awards_xp_once(db):
    roadmap = make_roadmap(db)
    milestone = roadmap.milestones[0]
    resource_id = milestone.resources[0].id
    progress_service.start_milestone(db, "user_1", milestone.id, now=DAY_1)

    first = progress_service.mark_resource_viewed(db, "user_1", milestone.id, resource_id)
    second = progress_service.mark_resource_viewed(db, "user_1", milestone.id, resource_id)

    assert first["newly_viewed"] is True
    assert first["xp_gained"] == 5
    assert second["newly_viewed"] is False
    assert second["xp_gained"] == 0
    progress = db.query(MilestoneProgress).filter(MilestoneProgress.milestone_id == milestone.id).one()
    assert progress.resources_viewed == [resource_id]


def test_resource_view_requires_started_milestone(db):
    roadmap = make_roadmap(db)
    milestone = roadmap.milestones[0]

    with pytest.raises(NotFoundError):
        progress_service.mark_resource_viewed(db, "user_1", milestone.id, milestone.resources[0].id)


def test_stats_for_new_user_are_defaults_and_read_only(db):
    result = progress_service.get_stats(db, "nobody", today=DAY_1.date())

    assert result["stats"]["total_xp"] == 0
    assert result["stats"]["level"] == 1
    assert result["stats"]["xp_to_next_level"] == 100
    assert result["achievements"] == []
    assert result["daily_goal"]["is_completed"] is False
    assert db.query(LearningStats).count() == 0


def test_stats_include_achievements_and_todays_goal(db):
    roadmap = make_roadmap(db)
    milestone_id = roadmap.milestones[0].id
    progress_service.start_milestone(db, "user_1", milestone_id, now=DAY_1)
    progress_service.complete_milestone(db, "user_1", milestone_id, now=DAY_1 + timedelta(minutes=20))
    progress_service.update_daily_progress(db, "user_1", 15, now=DAY_1)

    result = progress_service.get_stats(db, "user_1", today=DAY_1.date())

    assert result["stats"]["milestones_completed"] == 1
    assert len(result["achievements"]) == db.query(UserAchievement).count() == 3
    assert result["daily_goal"]["mins_completed"] == 15
    assert result["daily_goal"]["day"] == DAY_1.date()


def test_leaderboard_orders_by_xp(db):
    for user_id, name, xp in [("u1", "Ada", 300), ("u2", None, 900), ("u3", "Linus", 50)]:
        ensure_user(db, user_id, full_name=name)
        db.add(LearningStats(user_id=user_id, total_xp=xp, level=progress_service.calculate_level(xp)))
    db.commit()

    board = progress_service.get_leaderboard(db, limit=2)

    assert [row["user_id"] for row in board] == ["u2", "u1"]
    assert [row["rank"] for row in board] == [1, 2]
    assert board[0]["user_name"] == "New User"
    assert board[0]["level"] == 4
