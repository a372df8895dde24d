"""
Tests for time-box extraction and milestone planning.
"""
import pytest

from app.core.errors import ValidationError
from app.services.roadmap_planner import (
    DEFAULT_MILESTONE_COUNT,
    RoadmapPlanner,
    extract_time_box,
    milestone_count_for,
    milestone_unit_for,
)


def test_extract_time_box_intensive_days():
    time_box, cleaned = extract_time_box("Learn Go in 3 days")

    assert time_box.value == 3
    assert time_box.unit == "days"
    assert time_box.is_intensive is True
    assert cleaned == "Learn Go"


@pytest.mark.parametrize("goal, value, unit, intensive, cleaned", [
    ("Master Rust within 6 weeks", 6, "weeks", False, "Master Rust"),
    ("Learn SQL in 5 hrs", 5, "hours", True, "Learn SQL"),
    ("Kubernetes basics for 30 days", 30, "days", False, "Kubernetes basics"),
    ("Become a data engineer over 2 months", 2, "months", False, "Become a data engineer"),
    ("Learn React in 14 days", 14, "days", True, "Learn React"),
])
def test_extract_time_box_variants(goal, value, unit, intensive, cleaned):
    time_box, result = extract_time_box(goal)

    assert (time_box.value, time_box.unit, time_box.is_intensive) == (value, unit, intensive)
    assert result == cleaned


def test_goal_without_time_box():
    time_box, cleaned = extract_time_box("  Learn TypeScript  ")

    assert time_box is None
    assert cleaned == "Learn TypeScript"
    assert milestone_unit_for(None) == "weeks"
    assert milestone_count_for(None) == DEFAULT_MILESTONE_COUNT


def test_milestone_shape_follows_time_box():
    days, _ = extract_time_box("Learn Go in 3 days")
    months, _ = extract_time_box("Learn Go in 2 months")

    assert milestone_unit_for(days) == "days"
    assert milestone_count_for(days) == 3
    assert milestone_unit_for(months) == "weeks"
    assert milestone_count_for(months) == 8


def test_plan_uses_delegate_milestones(llm, runner):
    llm.queue({"milestones": [
        {"title": "Day 1: Syntax", "description": "Basics", "duration": 1, "durationUnit": "weeks", "estimatedHours": 4},
        {"title": "Day 2: Goroutines", "description": "Concurrency", "durationDays": "2", "difficulty": "intermediate"},
    ]})

    planned = RoadmapPlanner(runner).plan("Learn Go in 3 days", user_id="user_1")

    assert planned.goal == "Learn Go"
    assert planned.is_intensive is True
    assert planned.used_fallback is False
    assert [m.title for m in planned.milestones] == ["Day 1: Syntax", "Day 2: Goroutines"]
    assert [m.duration for m in planned.milestones] == [1, 2]
    # Every milestone is counted in the roadmap's unit
    assert {m.duration_unit for m in planned.milestones} == {"days"}
    assert "Learn Go" in llm.prompt()
    assert "intensive" in llm.prompt()


def test_plan_falls_back_when_delegate_fails(runner):
    planned = RoadmapPlanner(runner).plan("Learn Elixir")

    assert planned.used_fallback is True
    assert len(planned.milestones) == 3
    assert {m.duration_unit for m in planned.milestones} == {"weeks"}


def test_plan_falls_back_on_empty_milestones(llm, runner):
    llm.queue({"milestones": []})

    planned = RoadmapPlanner(runner).plan("Learn Elixir in 2 weeks")

    assert planned.used_fallback is True
    assert len(planned.milestones) == 3


def test_plan_rejects_goal_that_is_only_a_time_box(runner):
    with pytest.raises(ValidationError):
        RoadmapPlanner(runner).plan("in 3 days")
