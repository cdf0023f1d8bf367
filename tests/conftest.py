"""
servicebot Test Configuration

Shared fixtures and configuration for pytest.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

# Keep test runs off the file system and independent of a local config.yml
os.environ.setdefault("SERVICEBOT_LOG_TO_FILE", "false")
os.environ.setdefault("SERVICEBOT_CONFIG_FILE", str(Path(__file__).parent / "no-config.yml"))
os.environ.setdefault("SERVICEBOT_SESSION_BACKEND", "memory")

from servicebot.services.backends import Backends  # noqa: E402
from servicebot.services.backends.base import AnswerCapability, ExecutionStrategy, Output, OutputKind  # noqa: E402
from servicebot.services.conversation import ConversationalTurnHandler  # noqa: E402
from servicebot.services.engine import ChatEngine  # noqa: E402
from servicebot.services.events import InboundEvent  # noqa: E402
from servicebot.services.registry import ServiceRegistry  # noqa: E402
from servicebot.services.replies import RecordingResponder  # noqa: E402
from servicebot.services.session import InMemorySessionStore  # noqa: E402


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


# =============================================================================
# Catalog
# =============================================================================

# Ids are positions: 0 chat, 1 agents, 2 url, 3 image generation,
# 4 prediction with text+image, 5 prediction with audio
TEST_SERVICES: List[Dict[str, Any]] = [
    {"name": "Chat", "type": "chat", "answer": "chat"},
    {"name": "Agents", "type": "agents", "answer": "agents"},
    {"name": "URL summary", "type": "url_extraction", "answer": "url"},
    {
        "name": "Image generation",
        "type": "image_generation",
        "params": [
            {"name": "prompt", "type": "text"},
            {"name": "image", "type": "image"},
            {"name": "model", "type": "option", "options": ["generate", "edit", "variation"]},
        ],
    },
    {
        "name": "Captioning",
        "type": "prediction",
        "version": "owner/captioner",
        "params": [
            {"name": "text", "type": "text"},
            {"name": "image", "type": "image"},
        ],
    },
    {
        "name": "Transcribe",
        "type": "prediction",
        "version": "owner/whisper",
        "params": [{"name": "audio", "type": "audio"}],
    },
]


# =============================================================================
# Fakes
# =============================================================================

class FakeAnswer(AnswerCapability):
    """Answer capability returning a canned response and recording the turns."""

    def __init__(self, response: Optional[str] = "Test response"):
        self.response = response
        self.calls: List[List[Dict[str, str]]] = []

    async def get_answer(self, ctx, turns):
        self.calls.append([dict(t) for t in turns])
        return self.response


class FakeStrategy(ExecutionStrategy):
    """Execution strategy recording the queries it receives."""

    def __init__(self, outputs: Optional[List[Output]] = None, error: Optional[Exception] = None):
        self.outputs = outputs if outputs is not None else [Output(kind=OutputKind.TEXT, value="done")]
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def invoke(self, descriptor, query):
        self.calls.append(dict(query))
        if self.error is not None:
            raise self.error
        return self.outputs


# =============================================================================
# Engine Fixtures
# =============================================================================

@pytest.fixture
def fake_answer():
    """The FakeAnswer class, for tests that wire their own answers."""
    return FakeAnswer


@pytest.fixture
def fake_strategy():
    return FakeStrategy


@pytest.fixture
def registry() -> ServiceRegistry:
    return ServiceRegistry.from_entries(TEST_SERVICES)


@pytest.fixture
def chat_answer() -> FakeAnswer:
    return FakeAnswer("Test response")


@pytest.fixture
def prediction_strategy() -> FakeStrategy:
    return FakeStrategy()


@pytest.fixture
def image_strategy() -> FakeStrategy:
    return FakeStrategy([Output(kind=OutputKind.IMAGE, value="https://img.example/1.png")])


@pytest.fixture
def mock_transcriber():
    mock = MagicMock()
    mock.transcribe = AsyncMock(return_value="hello from voice")
    return mock


@pytest.fixture
def mock_url_reader():
    mock = MagicMock()
    mock.load = AsyncMock()
    mock.run_action = AsyncMock()
    return mock


@pytest.fixture
def backends(chat_answer, prediction_strategy, image_strategy, mock_transcriber, mock_url_reader) -> Backends:
    return Backends(
        answers={"chat": chat_answer, "agents": FakeAnswer("agent says hi"), "url": FakeAnswer("about the page")},
        prediction=prediction_strategy,
        image_generation=image_strategy,
        url_reader=mock_url_reader,
        transcribers={"whisper": mock_transcriber},
    )


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def engine(registry, store, backends) -> ChatEngine:
    return ChatEngine(
        registry=registry,
        store=store,
        backends=backends,
        conversation=ConversationalTurnHandler(),
    )


@pytest.fixture
def responder() -> RecordingResponder:
    return RecordingResponder()


@pytest.fixture
def send(engine, responder):
    """Send an event for session ``s1`` through the engine."""
    async def _send(**fields):
        fields.setdefault("session_id", "s1")
        return await engine.handle_event(InboundEvent(**fields), responder)
    return _send


@pytest.fixture
def select(send, responder):
    """Activate a service via its payload and forget the selection replies."""
    async def _select(service_id: int):
        await send(payload=f"SelectService|{service_id}")
        responder.replies.clear()
    return _select


# =============================================================================
# Mock Fixtures
# =============================================================================

@pytest.fixture
def mock_httpx_client():
    """Create a mock httpx async client usable as an async context manager."""
    mock = AsyncMock()
    mock.__aenter__.return_value = mock
    mock.__aexit__.return_value = False
    mock.post = AsyncMock(return_value=MagicMock(
        status_code=200,
        json=MagicMock(return_value={})
    ))
    mock.get = AsyncMock(return_value=MagicMock(
        status_code=200,
        json=MagicMock(return_value={})
    ))
    return mock


@pytest.fixture
def mock_openai_client():
    """Create a mock AsyncOpenAI client."""
    mock = MagicMock()
    mock.chat.completions.create = AsyncMock(return_value=MagicMock(
        choices=[MagicMock(message=MagicMock(content=" Test response "))]
    ))
    mock.images.generate = AsyncMock(return_value=MagicMock(data=[MagicMock(url="https://img.example/a.png")]))
    mock.images.edit = AsyncMock(return_value=MagicMock(data=[MagicMock(url="https://img.example/e.png")]))
    mock.images.create_variation = AsyncMock(return_value=MagicMock(data=[MagicMock(url="https://img.example/v.png")]))
    mock.audio.transcriptions.create = AsyncMock(return_value=MagicMock(text=" transcript "))
    mock.audio.speech.create = AsyncMock(return_value=MagicMock(content=b"mp3"))
    return mock
