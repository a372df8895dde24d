"""
Project scaffolder: a step-by-step build guide for a project idea on a given
stack. A single delegate call with no local fallback.
"""
import logging
from typing import Optional

from app.core.errors import ValidationError
from app.llm.runner import LLMRunner
from app.schemas.analysis import ProjectScaffold

logger = logging.getLogger(__name__)

FEATURE = "project_scaffold"


def generate_scaffold(
    runner: LLMRunner,
    tech_stack: str,
    project_idea: str,
    user_id: Optional[str] = None,
) -> ProjectScaffold:
    """
    Ask the LLM for a build guide and number any unnumbered steps.

    Raises:
        ValidationError: tech stack or project idea is blank
        DelegateUnavailable: the guide could not be produced
    """
    tech_stack = (tech_stack or "").strip()
    project_idea = (project_idea or "").strip()
    if not tech_stack:
        raise ValidationError("Tech stack is required", field="techStack")
    if not project_idea:
        raise ValidationError("Project idea is required", field="projectIdea")

    scaffold = runner.run(
        FEATURE,
        {"tech_stack": tech_stack, "project_idea": project_idea},
        ProjectScaffold,
        user_id=user_id,
    )

    for position, step in enumerate(scaffold.steps, start=1):
        if not step.id:
            step.id = str(position)
    if not scaffold.tech_stack:
        scaffold.tech_stack = tech_stack

    logger.info(f"Scaffold generated: project={scaffold.project_name!r}, steps={len(scaffold.steps)}")
    return scaffold
