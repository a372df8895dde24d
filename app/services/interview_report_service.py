"""
Report Synthesizer: one delegate call at interview end.

The hiring tier is recomputed from the average turn score and replaces the
delegate's tier when they disagree.
"""
import logging
from typing import List, Optional, Sequence

from app.llm.runner import LLMRunner
from app.schemas.interview import FinalReport

logger = logging.getLogger(__name__)

FEATURE = "interview_report"

# (minimum average, tier), checked top-down
HIRING_THRESHOLDS = (
    (85, "Strong Hire"),
    (70, "Hire"),
    (50, "No Hire"),
)
LOWEST_TIER = "Strong No Hire"


def average_score(scores: Sequence[float]) -> float:
    if not scores:
        return 0.0
    return sum(scores) / len(scores)


def hiring_tier_for(average: float) -> str:
    for minimum, tier in HIRING_THRESHOLDS:
        if average >= minimum:
            return tier
    return LOWEST_TIER


class ReportSynthesizer:
    def __init__(self, runner: LLMRunner):
        self.runner = runner

    def summarize(
        self,
        transcript: List[str],
        scores: List[float],
        role: str,
        category: str,
        seniority: str,
        user_id: Optional[str] = None,
    ) -> FinalReport:
        """
        Produce the final report for a closed interview.

        An empty score series is accepted; the tier is then left as the
        delegate returned it.

        Raises:
            DelegateUnavailable: the delegate failed or replied with invalid JSON
        """
        average = average_score(scores)
        context = {
            "transcript": "\n".join(transcript),
            "scores": ", ".join(f"{s:g}" for s in scores) or "none",
            "average_score": round(average),
            "role": role,
            "category": category,
            "seniority": seniority,
        }
        report = self.runner.run(FEATURE, context, FinalReport, user_id=user_id)

        if scores:
            expected = hiring_tier_for(average)
            if report.hiring_suggestion != expected:
                logger.warning(
                    f"Overriding hiring suggestion {report.hiring_suggestion!r} -> {expected!r} "
                    f"(average score {average:.1f})"
                )
                report = report.model_copy(update={"hiring_suggestion": expected})
        return report
