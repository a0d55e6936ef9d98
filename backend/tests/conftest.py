"""Fixtures compartidas para las pruebas."""

from collections.abc import AsyncIterator, Callable
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from spurchat.assistants.resolver import ReplyResolver
from spurchat.channels.webchat.service import ChatService
from spurchat.main import app
from spurchat.repositories.conversations import ConversationRepository
from spurchat.services.database import create_engine, create_schema, create_session_factory


class FakeGenerator:
    """Generador en memoria: devuelve un texto fijo o lanza la excepción dada."""

    model = "fake-model"

    def __init__(
        self,
        reply: str = "Let me check that order for you right away.",
        error: Exception | None = None,
    ) -> None:
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


def make_clock(start: datetime | None = None) -> Callable[[], datetime]:
    """Reloj determinista que avanza un segundo por llamada."""
    current = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    state = {"now": current}

    def tick() -> datetime:
        value = state["now"]
        state["now"] = value + timedelta(seconds=1)
        return value

    return tick


@pytest.fixture(name="engine")
async def fixture_engine():
    """SQLite en memoria con el esquema completo."""
    engine = create_engine("sqlite+aiosqlite:///:memory:")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture(name="repository")
def fixture_repository(engine) -> ConversationRepository:
    return ConversationRepository(create_session_factory(engine), clock=make_clock())


@pytest.fixture(name="generator")
def fixture_generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture(name="resolver")
def fixture_resolver(generator: FakeGenerator) -> ReplyResolver:
    return ReplyResolver(generator)


@pytest.fixture(name="chat_service")
def fixture_chat_service(repository: ConversationRepository, resolver: ReplyResolver) -> ChatService:
    return ChatService(repository, resolver)


@pytest.fixture(name="async_client")
async def fixture_async_client(chat_service: ChatService) -> AsyncIterator[AsyncClient]:
    """Cliente asíncrono contra la app principal con el servicio de pruebas inyectado."""
    app.state.chat_service = chat_service
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.state.chat_service = None
