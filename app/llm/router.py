"""
Model router: picks model, temperature and output budget per feature.
"""
import logging
from app.core import config

logger = logging.getLogger(__name__)

# Feature -> (temperature, max_tokens)
FEATURE_SETTINGS = {
    "interview_turn": (0.6, 1200),
    "interview_hint": (0.6, 300),
    "interview_report": (0.4, 2000),
    "roadmap_plan": (0.1, 1500),
    "roadmap_quiz": (0.3, 1200),
    "skill_gap": (0.1, 3000),
    "resume_extract": (0.0, 3000),
    "mentor_chat": (0.2, 2000),
    "mentor_explain": (0.2, 2000),
    "mentor_quiz": (0.2, 600),
    "project_scaffold": (0.2, 8000),
    "topic_quiz": (0.4, 2000),
}

# Features that need a stronger model can be pinned here
MODEL_OVERRIDES = {}

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2000


def get_model_for_feature(feature: str) -> str:
    """Get the model identifier for a feature (LLM_MODEL unless overridden)."""
    return MODEL_OVERRIDES.get(feature, config.LLM_MODEL)


def get_temperature_for_feature(feature: str) -> float:
    return FEATURE_SETTINGS.get(feature, (DEFAULT_TEMPERATURE, DEFAULT_MAX_TOKENS))[0]


def get_max_tokens_for_feature(feature: str) -> int:
    return FEATURE_SETTINGS.get(feature, (DEFAULT_TEMPERATURE, DEFAULT_MAX_TOKENS))[1]
