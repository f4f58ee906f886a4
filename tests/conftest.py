"""Shared fixtures: fake OpenAI client, isolated stores and the test app"""

import copy
import json
from types import SimpleNamespace
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from procureflow.core.config import Settings
from procureflow.database.chats import ChatStore
from procureflow.database.products import ProductDatabase
from procureflow.main import create_app
from procureflow.services.shopping_agent import ShoppingAgent
from procureflow.services.tools import build_toolset
from procureflow.services.transcription import Transcriber


# ============================================================================
# Fake OpenAI client
# ============================================================================

def text_chunk(text: str) -> SimpleNamespace:
    """A streamed completion chunk carrying assistant text."""
    delta = SimpleNamespace(content=text, tool_calls=None)
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta)])


def tool_chunk(
    index: int,
    call_id: Optional[str] = None,
    name: Optional[str] = None,
    arguments: Optional[str] = None,
) -> SimpleNamespace:
    """A streamed completion chunk carrying a tool call fragment."""
    call = SimpleNamespace(
        index=index,
        id=call_id,
        function=SimpleNamespace(name=name, arguments=arguments),
    )
    delta = SimpleNamespace(content=None, tool_calls=[call])
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta)])


async def _stream(chunks):
    for chunk in chunks:
        yield chunk


class FakeCompletions:
    """Replays one scripted chunk list per model call."""

    def __init__(self):
        self.steps: list = []
        self.calls: list[dict] = []
        self.error: Optional[Exception] = None

    async def create(self, **kwargs):
        self.calls.append(copy.deepcopy(kwargs))
        if self.error is not None:
            raise self.error
        chunks = self.steps.pop(0) if self.steps else []
        return _stream(chunks)


class FakeTranscriptions:
    def __init__(self):
        self.result = {
            "text": "add two cables",
            "language": "english",
            "duration": 1.5,
            "segments": [{"text": "add two cables", "start": 0.0, "end": 1.5}],
        }
        self.calls: list[dict] = []
        self.error: Optional[Exception] = None

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.result


class FakeOpenAI:
    """Stands in for AsyncOpenAI: chat completions and audio transcriptions."""

    def __init__(self):
        self.chat = SimpleNamespace(completions=FakeCompletions())
        self.audio = SimpleNamespace(transcriptions=FakeTranscriptions())
        self.closed = False

    def script(self, *steps) -> None:
        """Queue the chunk lists returned by successive model calls."""
        self.chat.completions.steps = list(steps)

    async def close(self) -> None:
        self.closed = True


def parse_sse(body: str) -> list:
    """Split an SSE body into decoded events, keeping the [DONE] marker."""
    events = []
    for line in body.splitlines():
        if not line.startswith("data: "):
            continue
        data = line[len("data: "):]
        events.append(data if data == "[DONE]" else json.loads(data))
    return events


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        openai_api_key="test-key",
        chats_dir=str(tmp_path / "chats"),
    )


@pytest.fixture
def fake_openai():
    return FakeOpenAI()


@pytest.fixture
def product_db():
    return ProductDatabase()


@pytest.fixture
def chat_store(settings):
    return ChatStore(settings.chats_dir)


@pytest.fixture
def agent(fake_openai, product_db):
    return ShoppingAgent(client=fake_openai, tools=build_toolset(product_db))


@pytest.fixture
def app(settings, product_db, chat_store, agent, fake_openai):
    return create_app(
        settings=settings,
        product_db=product_db,
        chat_store=chat_store,
        agent=agent,
        transcriber=Transcriber(client=fake_openai),
    )


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
