"""
Shared pydantic base for API and delegate payloads.

Fields are snake_case in Python and camelCase on the wire; both spellings are
accepted on input.
"""
from typing import Any, List, Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


def clamp_score(value: Any, low: float = 0.0, high: float = 100.0) -> float:
    """Coerce a delegate-supplied score into [low, high]."""
    if isinstance(value, bool):
        raise ValueError("score must be a number")
    if isinstance(value, str):
        value = value.strip().rstrip("%")
    score = float(value)
    return max(low, min(high, score))


def cap_list(value: Any, limit: int) -> Any:
    """Trim an over-long list; shorter lists are left for length validation."""
    if isinstance(value, list) and len(value) > limit:
        return value[:limit]
    return value


def clean_strings(values: Optional[List[Any]]) -> List[str]:
    """Strip strings, drop blanks and case-insensitive duplicates, keep first-seen order."""
    seen = set()
    cleaned = []
    for item in values or []:
        if item is None:
            continue
        text = str(item).strip()
        key = text.casefold()
        if not text or key in seen:
            continue
        seen.add(key)
        cleaned.append(text)
    return cleaned
