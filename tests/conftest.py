"""
Shared fixtures: fake clock, fake chat model, app wired to a temp database
"""

import asyncio

import pytest
from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage, AIMessageChunk

from roofsite.api.app import create_app
from roofsite.api.dependencies import get_chat_model
from roofsite.storage import SiteDatabase


class FakeClock:
    """Millisecond clock that only moves when told to"""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int):
        self.now += ms


class FakeStatusError(Exception):
    """Provider error carrying an HTTP status, like openai.APIStatusError"""

    def __init__(self, status_code: int, message: str = "provider error"):
        super().__init__(message)
        self.status_code = status_code


class FakeChatModel:
    """
    Stand-in for a LangChain chat model.

    ``astream`` yields ``tokens`` as AIMessageChunks; ``ainvoke`` returns
    ``reply``. ``error`` is raised before the first token, or after
    ``error_after`` tokens when that is set.
    """

    def __init__(self, tokens=None, reply="", error=None, error_after=None):
        self.tokens = list(tokens or [])
        self.reply = reply
        self.error = error
        self.error_after = error_after
        self.calls = []

    async def astream(self, messages):
        self.calls.append(messages)
        if self.error is not None and self.error_after is None:
            raise self.error
        for i, token in enumerate(self.tokens):
            if self.error is not None and i == self.error_after:
                raise self.error
            yield AIMessageChunk(content=token)

    async def ainvoke(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return AIMessage(content=self.reply)


def run_with_db(db_path, action):
    """Run ``action(db)`` against its own connection to the site database"""

    async def _run():
        db = SiteDatabase(str(db_path))
        await db.async_init()
        try:
            return await action(db)
        finally:
            await db.close()

    return asyncio.run(_run())


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def status_error():
    """Factory for provider errors: status_error(429)"""
    return FakeStatusError


@pytest.fixture
def seed_db(db_path):
    """Run an async action against the test database: seed_db(lambda db: ...)"""
    return lambda action: run_with_db(db_path, action)


@pytest.fixture
def fake_llm():
    return FakeChatModel(tokens=["Hello", " there"])


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "sites.db"


@pytest.fixture
def app(db_path, clock, fake_llm):
    application = create_app(site_db_path=str(db_path), rate_limit_clock=clock)
    application.dependency_overrides[get_chat_model] = lambda: fake_llm
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
