"""
Tests for turn evaluation rules and the report synthesizer.
"""
import pytest
from pydantic import ValidationError as SchemaError

from app.core.errors import DelegateUnavailable
from app.schemas.interview import FinalReport, TurnEvaluation
from app.services.interview_evaluator import HINT_SCORE_CAP, TurnConfig, TurnEvaluator, apply_turn_rules
from app.services.interview_hint_service import FALLBACK_HINT, HintProvider
from app.services.interview_report_service import ReportSynthesizer, average_score, hiring_tier_for


def turn_config(question_index=1, max_questions=5, hint_used=False):
    return TurnConfig(
        role="Backend Engineer",
        category="TECHNICAL",
        seniority="MID",
        focus_topics="Go, concurrency",
        question_index=question_index,
        max_questions=max_questions,
        hint_used=hint_used,
    )


def evaluation(score=80, next_question="What is a channel?", over=False):
    return TurnEvaluation(
        feedback="Good answer.",
        score=score,
        better_answer="A fuller answer.",
        next_question=next_question,
        is_interview_over=over,
        topics_covered=["Go"],
    )


def report_reply(tier="Hire", overall=75):
    return {
        "overallScore": overall,
        "strengths": ["Clear communication", "Solid fundamentals"],
        "weaknesses": ["Little production experience", "Vague on trade-offs"],
        "topicBreakdown": [{"topic": "Go", "score": 80}],
        "recommendation": "Practice system design.",
        "nextSteps": ["Build a service", "Read about channels", "Do mock interviews"],
        "hiringSuggestion": tier,
    }


# ---------------------------------------------------------------------------
# Turn rules
# ---------------------------------------------------------------------------

def test_hint_caps_score():
    result = apply_turn_rules(evaluation(score=95), turn_config(hint_used=True))
    assert result.score == HINT_SCORE_CAP


def test_score_below_cap_is_unchanged_with_hint():
    result = apply_turn_rules(evaluation(score=60), turn_config(hint_used=True))
    assert result.score == 60


def test_score_not_capped_without_hint():
    result = apply_turn_rules(evaluation(score=95), turn_config(hint_used=False))
    assert result.score == 95


def test_last_question_forces_interview_end():
    result = apply_turn_rules(evaluation(over=False), turn_config(question_index=5, max_questions=5))
    assert result.is_interview_over is True
    assert result.next_question == ""


def test_interview_can_end_early():
    result = apply_turn_rules(evaluation(over=True), turn_config(question_index=2, max_questions=5))
    assert result.is_interview_over is True


def test_continuing_without_next_question_is_rejected():
    with pytest.raises(DelegateUnavailable):
        apply_turn_rules(evaluation(next_question="  "), turn_config(question_index=1, max_questions=5))


def test_turn_evaluation_clamps_and_cleans():
    result = TurnEvaluation.model_validate({
        "feedback": "ok",
        "score": "120%",
        "nextQuestion": None,
        "isInterviewOver": True,
        "topicsCovered": ["Go", " go ", "", "Channels"],
    })
    assert result.score == 100
    assert result.next_question == ""
    assert result.topics_covered == ["Go", "Channels"]


def test_evaluator_passes_turn_context(llm, runner):
    llm.queue({
        "feedback": "Nice", "score": 88, "betterAnswer": "b",
        "nextQuestion": "Explain select.", "isInterviewOver": False, "topicsCovered": ["Go"],
    })

    result = TurnEvaluator(runner).evaluate(
        "What is a goroutine?", "A lightweight thread.", ["USER: hi"], turn_config(hint_used=True)
    )

    assert result.score == HINT_SCORE_CAP
    prompt = llm.prompt()
    assert "What is a goroutine?" in prompt
    assert "A lightweight thread." in prompt
    assert "question 1 of 5" in prompt


# ---------------------------------------------------------------------------
# Hints
# ---------------------------------------------------------------------------

def test_hint_provider_falls_back_on_failure(runner):
    result = HintProvider(runner).hint("Q?", "Backend Engineer", "TECHNICAL", "MID")
    assert result.hint == FALLBACK_HINT


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("average, tier", [
    (100, "Strong Hire"),
    (85, "Strong Hire"),
    (84.9, "Hire"),
    (70, "Hire"),
    (69, "No Hire"),
    (50, "No Hire"),
    (49.5, "Strong No Hire"),
    (0, "Strong No Hire"),
])
def test_hiring_tier_thresholds(average, tier):
    assert hiring_tier_for(average) == tier


def test_average_score():
    assert average_score([80, 90, 70]) == 80
    assert average_score([]) == 0.0


def test_report_tier_is_overridden_from_scores(llm, runner):
    llm.queue(report_reply(tier="Strong Hire"))

    report = ReportSynthesizer(runner).summarize(
        ["USER: a", "AI: b"], [60, 70], role="Backend Engineer", category="TECHNICAL", seniority="MID"
    )

    assert report.hiring_suggestion == "No Hire"
    assert "Average score: 65" in llm.prompt()


def test_report_keeps_matching_tier(llm, runner):
    llm.queue(report_reply(tier="Hire"))

    report = ReportSynthesizer(runner).summarize(["USER: a"], [72, 78], "Backend Engineer", "TECHNICAL", "MID")

    assert report.hiring_suggestion == "Hire"


def test_report_without_scores_keeps_delegate_tier(llm, runner):
    llm.queue(report_reply(tier="Strong No Hire"))

    report = ReportSynthesizer(runner).summarize([], [], "Backend Engineer", "TECHNICAL", "MID")

    assert report.hiring_suggestion == "Strong No Hire"


def test_final_report_list_bounds():
    reply = report_reply()
    reply["strengths"] = ["a", "b", "c", "d", "e", "f", "g"]
    assert len(FinalReport.model_validate(reply).strengths) == 5

    reply["weaknesses"] = ["only one"]
    with pytest.raises(SchemaError):
        FinalReport.model_validate(reply)


def test_report_failure_propagates(runner):
    with pytest.raises(DelegateUnavailable):
        ReportSynthesizer(runner).summarize(["USER: a"], [80], "Backend Engineer", "TECHNICAL", "MID")
