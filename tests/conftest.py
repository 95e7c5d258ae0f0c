"""
Pytest configuration and fixtures
"""

import json
from typing import AsyncGenerator, Callable, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from prometheus_client import REGISTRY
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from core.database import build_engine, build_session_maker

# In-memory SQLite, one shared connection per engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def _engine():
    return build_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create test database engine (QA store)"""
    engine = _engine()
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def repo_engine():
    """Second, independent engine for the repository store"""
    engine = _engine()
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests"""
    async with build_session_maker(test_engine)() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def repo_session(repo_engine) -> AsyncGenerator[AsyncSession, None]:
    async with build_session_maker(repo_engine)() as session:
        yield session


@pytest.fixture
def metric() -> Callable[..., float]:
    """Read a sample from the process-wide Prometheus registry"""

    def read(name: str, labels: Optional[Dict[str, str]] = None) -> float:
        return REGISTRY.get_sample_value(name, labels or {}) or 0.0

    return read


@pytest.fixture
def mock_questions() -> List[dict]:
    """Two questions: 1001 without answers, 1002 with one answer"""
    return [
        {"question_id": 1001, "title": "How do I scrape targets?", "body": "<p>Q1</p>"},
        {"question_id": 1002, "title": "Why is my query slow?", "body": "<p>Q2</p>"},
    ]


@pytest.fixture
def mock_answers() -> Dict[int, List[dict]]:
    return {
        1001: [],
        1002: [{"answer_id": 5001, "body": "<p>Use a recording rule</p>"}],
    }


@pytest.fixture
def stackoverflow_transport(mock_questions, mock_answers):
    """
    Stack Exchange API double. Records every request in ``transport.requests``.
    """
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        path = request.url.path.replace("/2.2", "", 1)

        if path == "/questions":
            return httpx.Response(200, json={"items": mock_questions, "has_more": False})

        parts = path.strip("/").split("/")
        if len(parts) == 3 and parts[0] == "questions" and parts[2] == "answers":
            return httpx.Response(200, json={"items": mock_answers.get(int(parts[1]), [])})

        return httpx.Response(404, json={"error_message": "no method found with this name"})

    transport = httpx.MockTransport(handler)
    transport.requests = requests
    return transport


@pytest.fixture
def mock_issues() -> List[dict]:
    """One issue (body "A") with two comments ("B", "C")"""
    return [{"number": 7, "title": "Crash on start", "body": "A"}]


@pytest.fixture
def mock_comments() -> Dict[int, List[dict]]:
    return {7: [{"body": "B"}, {"body": "C"}]}


@pytest.fixture
def github_transport(mock_issues, mock_comments):
    """GitHub REST API double. Records every request in ``transport.requests``."""
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        parts = request.url.path.strip("/").split("/")

        if request.headers.get("Authorization") != "Bearer test_token":
            return httpx.Response(401, json={"message": "Bad credentials"})

        if len(parts) == 4 and parts[0] == "repos" and parts[3] == "issues":
            return httpx.Response(200, json=mock_issues)

        if len(parts) == 6 and parts[3] == "issues" and parts[5] == "comments":
            return httpx.Response(200, json=mock_comments.get(int(parts[4]), []))

        return httpx.Response(404, content=json.dumps({"message": "Not Found"}))

    transport = httpx.MockTransport(handler)
    transport.requests = requests
    return transport
