"""
Delegate dependencies.

Routes receive the LLM runner and search provider through Depends so tests can
swap them with app.dependency_overrides.
"""
from functools import lru_cache

from app.db.session import SessionLocal
from app.llm.runner import LLMRunner
from app.search.provider import SearchProvider
from app.search.tavily_provider import TavilySearchProvider


@lru_cache(maxsize=1)
def get_llm_runner() -> LLMRunner:
    return LLMRunner(session_factory=SessionLocal)


@lru_cache(maxsize=1)
def get_search_provider() -> SearchProvider:
    return TavilySearchProvider()
