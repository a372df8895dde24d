"""
Shared fixtures: in-memory database, fake LLM and search delegates, API client.
"""
import json
import os
from collections import deque

# Settings are read at import time, so set them before any app import
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_JWT_SECRET"] = "test-secret"
os.environ.pop("AUTH_JWT_AUDIENCE", None)
os.environ.pop("OPENAI_API_KEY", None)
os.environ.pop("TAVILY_API_KEY", None)

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.auth_dependency import get_db
from app.core.errors import DelegateUnavailable
from app.core.providers import get_llm_runner, get_search_provider
from app.core.rate_limit import reset_rate_limits
from app.db.base import Base
from app.db import models  # noqa: F401
from app.llm.provider import LLMProvider, LLMResponse
from app.llm.runner import LLMRunner
from app.main import app
from app.search.provider import SearchProvider, SearchResult


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


class FakeLLMProvider(LLMProvider):
    """
    Replies from a FIFO queue. Dicts and lists are sent as JSON, exceptions are
    raised, and an empty queue behaves like an unreachable provider.
    """

    def __init__(self):
        self.replies = deque()
        self.calls = []

    def queue(self, *replies):
        self.replies.extend(replies)

    def _next(self):
        if not self.replies:
            raise RuntimeError("LLM unreachable")
        reply = self.replies.popleft()
        if isinstance(reply, Exception):
            raise reply
        return reply

    def chat(self, messages, model, temperature=0.7, max_tokens=None, **kwargs):
        self.calls.append(messages)
        reply = self._next()
        if not isinstance(reply, str):
            reply = json.dumps(reply)
        return LLMResponse(content=reply, tokens_in=12, tokens_out=34, model=model)

    def stream(self, messages, model, temperature=0.7, max_tokens=None, **kwargs):
        self.calls.append(messages)
        reply = self._next()
        chunks = reply if isinstance(reply, list) else [reply]
        for chunk in chunks:
            yield chunk

    def prompt(self, call_index: int = -1) -> str:
        """User prompt text of a recorded call."""
        return self.calls[call_index][-1]["content"]


def _slug(text: str) -> str:
    return "-".join(text.lower().split())


class FakeSearchProvider(SearchProvider):
    """One docs result per query unless `responses` maps the query to something else."""

    def __init__(self, responses=None, fail=False):
        self.responses = responses or {}
        self.fail = fail
        self.queries = []

    def search(self, query, max_results=3):
        self.queries.append(query)
        if self.fail:
            raise DelegateUnavailable("Search down", delegate="search")
        if query in self.responses:
            result = self.responses[query]
            if isinstance(result, Exception):
                raise result
            return list(result)[:max_results]
        return [SearchResult(title=query, url=f"https://docs.example.com/{_slug(query)}", score=0.5)]


def auth_headers(user_id: str = "user_1") -> dict:
    token = jwt.encode({"sub": user_id}, "test-secret", algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=test_engine)
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def llm():
    return FakeLLMProvider()


@pytest.fixture
def runner(llm):
    # Run logging is covered in test_llm_runner; here it would share the test connection
    return LLMRunner(provider=llm)


@pytest.fixture
def search():
    return FakeSearchProvider()


@pytest.fixture
def client(db, runner, search):
    def override_get_db():
        session = TestSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_llm_runner] = lambda: runner
    app.dependency_overrides[get_search_provider] = lambda: search
    reset_rate_limits()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        reset_rate_limits()


@pytest.fixture
def auth():
    """auth(user_id) -> Authorization header for a token issued to user_id."""
    return auth_headers
