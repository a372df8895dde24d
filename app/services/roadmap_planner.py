"""
Roadmap planning stage: time-box extraction and the milestone plan.

This is the one stage with a local fallback plan: a broken delegate still
yields a usable three-milestone roadmap.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from app.core.errors import DelegateUnavailable, ValidationError
from app.llm.runner import LLMRunner
from app.schemas.roadmap import MilestonePlan, RoadmapPlan

logger = logging.getLogger(__name__)

FEATURE = "roadmap_plan"

INTENSIVE_DAY_LIMIT = 14
DEFAULT_MILESTONE_COUNT = 4
MAX_MILESTONES = 12

TIME_BOX_RE = re.compile(
    r"\b(?:(?:in|within|for|over)\s+)?(\d{1,3})\s*-?\s*(hours?|hrs?|days?|weeks?|wks?|months?)\b",
    re.IGNORECASE,
)

UNIT_ALIASES = {
    "hour": "hours", "hours": "hours", "hr": "hours", "hrs": "hours",
    "day": "days", "days": "days",
    "week": "weeks", "weeks": "weeks", "wk": "weeks", "wks": "weeks",
    "month": "months", "months": "months",
}


@dataclass
class TimeBox:
    value: int
    unit: str  # hours / days / weeks / months
    is_intensive: bool

    def describe(self) -> str:
        return f"{self.value} {self.unit}" + (" (intensive)" if self.is_intensive else "")


def extract_time_box(goal: str) -> Tuple[Optional[TimeBox], str]:
    """
    Pull a duration such as "in 3 days" out of a goal.

    Returns (time_box or None, goal with the phrase removed). Hours, or days up
    to INTENSIVE_DAY_LIMIT, mark the roadmap as intensive.
    """
    goal = (goal or "").strip()
    match = TIME_BOX_RE.search(goal)
    if not match:
        return None, goal

    value = int(match.group(1))
    unit = UNIT_ALIASES[match.group(2).lower()]
    is_intensive = unit == "hours" or (unit == "days" and value <= INTENSIVE_DAY_LIMIT)

    cleaned = goal[:match.start()] + " " + goal[match.end():]
    cleaned = re.sub(r"\s{2,}", " ", cleaned).strip(" \t,.;:-")
    return TimeBox(value=value, unit=unit, is_intensive=is_intensive), cleaned


def milestone_unit_for(time_box: Optional[TimeBox]) -> str:
    """Unit every milestone duration is counted in."""
    if time_box is None:
        return "weeks"
    if time_box.unit in ("hours", "days"):
        return time_box.unit
    return "weeks"


def milestone_count_for(time_box: Optional[TimeBox]) -> int:
    if time_box is None:
        return DEFAULT_MILESTONE_COUNT
    if time_box.unit == "hours":
        return max(1, min(time_box.value, 6))
    if time_box.unit == "days":
        return max(1, min(time_box.value, 7))
    if time_box.unit == "weeks":
        return max(1, min(time_box.value, MAX_MILESTONES))
    return max(1, min(time_box.value * 4, MAX_MILESTONES))


def fallback_plan(duration_unit: str = "weeks") -> List[MilestonePlan]:
    return [
        MilestonePlan(
            title="Foundations and Core Concepts",
            description="Learn the core vocabulary, set up your tools and work through an introductory tutorial.",
            duration=1,
            duration_unit=duration_unit,
            estimated_hours=6,
            difficulty="beginner",
        ),
        MilestonePlan(
            title="Hands-on Practice",
            description="Solve small exercises every day and rebuild the examples from memory.",
            duration=1,
            duration_unit=duration_unit,
            estimated_hours=8,
            difficulty="intermediate",
        ),
        MilestonePlan(
            title="Build a Project",
            description="Combine what you learned into a small end-to-end project and publish it.",
            duration=1,
            duration_unit=duration_unit,
            estimated_hours=10,
            difficulty="intermediate",
        ),
    ]


@dataclass
class PlannedRoadmap:
    goal: str
    time_box: Optional[TimeBox]
    duration_unit: str
    milestones: List[MilestonePlan] = field(default_factory=list)
    used_fallback: bool = False

    @property
    def is_intensive(self) -> bool:
        return bool(self.time_box and self.time_box.is_intensive)


class RoadmapPlanner:
    def __init__(self, runner: LLMRunner):
        self.runner = runner

    def plan(self, goal: str, user_id: Optional[str] = None) -> PlannedRoadmap:
        """
        Plan milestones for a goal.

        Raises:
            ValidationError: nothing is left of the goal once the time box is removed
        """
        time_box, cleaned_goal = extract_time_box(goal)
        if not cleaned_goal:
            raise ValidationError("Goal is required", field="goal")

        unit = milestone_unit_for(time_box)
        count = milestone_count_for(time_box)
        context = {
            "goal": cleaned_goal,
            "time_box": time_box.describe() if time_box else "none, use a typical self-paced schedule",
            "milestone_count": count,
            "duration_unit": unit,
            "duration_unit_singular": unit[:-1],
            "intensive_note": (
                "- This is an intensive plan: keep every milestone practical and small enough for one sitting."
                if time_box and time_box.is_intensive else ""
            ),
        }

        used_fallback = False
        try:
            milestones = self.runner.run(FEATURE, context, RoadmapPlan, user_id=user_id).milestones
        except DelegateUnavailable as e:
            logger.warning(f"Roadmap planning failed for goal={cleaned_goal!r}, using fallback plan: {e.message}")
            milestones = fallback_plan(unit)
            used_fallback = True

        milestones = [m.model_copy(update={"duration_unit": unit}) for m in milestones[:MAX_MILESTONES]]
        logger.info(f"Planned {len(milestones)} milestones for goal={cleaned_goal!r} (unit={unit})")
        return PlannedRoadmap(
            goal=cleaned_goal,
            time_box=time_box,
            duration_unit=unit,
            milestones=milestones,
            used_fallback=used_fallback,
        )
