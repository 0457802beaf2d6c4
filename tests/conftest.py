"""
Pytest configuration and fixtures for Fx AI Trader tests.

Vendor APIs are replaced by ``httpx.MockTransport`` and the database by
an in-memory SQLite engine, so no test touches the network.
"""

import json
import os
from collections.abc import AsyncGenerator, Callable
from typing import Any

os.environ.setdefault("AI_ENCRYPTION_KEY", "fx-ai-trader-test-encryption-key")

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from fxtrader.api.main import app
from fxtrader.core.config import settings
from fxtrader.db import get_db
from fxtrader.db.database import Base
from fxtrader.services.ai.gateway import AIGateway, get_ai_gateway

TEST_DATABASE_URL = "sqlite+aiosqlite://"

OPENAI_KEY = "sk-proj-abcdefghijklmnopqrstuvwx"
GEMINI_KEY = "AIzaSyA-test-gemini-key-0123456789"
CLAUDE_KEY = "sk-ant-REDACTED"
DEEPSEEK_KEY = "sk-deepseek-0123456789abcdef"
OPENROUTER_KEY = "sk-or-v1-0123456789abcdef0123456789"
LLAMA_KEY = "llama-0123456789abcdef"

PNG_DATA_URI = "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk"


def openai_completion(content: str | None, model: str = "gpt-4o") -> dict[str, Any]:
    """Minimal OpenAI-shaped chat completion body."""
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1700000000,
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }


def gemini_reply(text: str) -> dict[str, Any]:
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


def claude_reply(text: str) -> dict[str, Any]:
    return {
        "id": "msg_test",
        "type": "message",
        "role": "assistant",
        "content": [{"type": "text", "text": text}],
    }


class VendorStub:
    """Records outbound requests and answers them from a handler.

    The default handler answers every vendor with a canned 2xx reply so
    tests only override what they assert on.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handler: Callable[[httpx.Request], Any] = self._default_handler
        self.reply_text = "Test berhasil."

    def _default_handler(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host
        if host == "generativelanguage.googleapis.com":
            return httpx.Response(200, json=gemini_reply(self.reply_text))
        if host == "api.anthropic.com":
            return httpx.Response(200, json=claude_reply(self.reply_text))
        return httpx.Response(200, json=openai_completion(self.reply_text))

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.handler(request)
        if not isinstance(response, httpx.Response):
            response = await response
        return response

    @property
    def last_request(self) -> httpx.Request:
        assert self.requests, "no outbound request was made"
        return self.requests[-1]

    def last_json(self) -> dict[str, Any]:
        return json.loads(self.last_request.content)


@pytest.fixture
def vendor() -> VendorStub:
    return VendorStub()


@pytest_asyncio.fixture
async def http_client(vendor: VendorStub) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(vendor)) as client:
        yield client


@pytest.fixture
def gateway(http_client: httpx.AsyncClient) -> AIGateway:
    return AIGateway(http_client=http_client)


@pytest.fixture
def no_default_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "default_ai_key", "")


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    gateway: AIGateway,
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the app with database and vendors stubbed."""

    async def _get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    async def _get_gateway() -> AIGateway:
        return gateway

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_ai_gateway] = _get_gateway

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
