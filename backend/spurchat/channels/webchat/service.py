"""Servicios del canal webchat: orquesta sesión, persistencia y respuesta."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal
from uuid import UUID

from spurchat.assistants.resolver import ReplyResolver
from spurchat.core.errors import ChatValidationError, ConversationNotFoundError, StorageError
from spurchat.core.logging import get_logger, log_event
from spurchat.models.conversation import Conversation, Sender
from spurchat.repositories.conversations import ConversationRepository

logger = get_logger("spurchat.channels.webchat")

MAX_MESSAGE_LENGTH = 2000
CONTEXT_WINDOW = 10


@dataclass(slots=True)
class SendMessageResult:
    reply: str
    session_id: UUID
    message_id: UUID


@dataclass(slots=True)
class HistoryEntry:
    id: UUID
    sender: Literal["user", "ai"]
    text: str
    timestamp: str


@dataclass(slots=True)
class ConversationHistory:
    conversation_id: UUID
    messages: list[HistoryEntry] = field(default_factory=list)


@dataclass(slots=True)
class HealthReport:
    status: Literal["healthy", "degraded"]
    services: dict[str, bool]


def format_timestamp(value: datetime) -> str:
    """ISO-8601 en UTC con milisegundos y sufijo `Z`."""
    if value.tzinfo is None:
        # SQLite devuelve fechas naive; siempre se guardan en UTC
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ChatService:
    """Une el resolvedor de respuestas con el repositorio de conversaciones.

    No hay exclusión mutua por sesión: dos envíos simultáneos sobre la misma
    sesión pueden intercalar sus turnos.
    """

    def __init__(
        self,
        repository: ConversationRepository,
        resolver: ReplyResolver,
        *,
        context_window: int = CONTEXT_WINDOW,
        max_message_length: int = MAX_MESSAGE_LENGTH,
    ) -> None:
        self.repository = repository
        self.resolver = resolver
        self.context_window = context_window
        self.max_message_length = max_message_length

    def _validate(self, text: str | None) -> str:
        if text is None or not text.strip():
            raise ChatValidationError("Message cannot be empty")
        if len(text) > self.max_message_length:
            raise ChatValidationError(
                f"Message is too long. Please keep it under {self.max_message_length} characters."
            )
        return text.strip()

    async def _resolve_conversation(
        self, session_id: str | UUID | None, metadata: dict[str, Any] | None
    ) -> Conversation:
        if session_id is not None:
            conversation = await self.repository.find_conversation(session_id)
            if conversation is not None:
                return conversation
            log_event(logger, "chat.session_unknown", session_id=str(session_id))
        conversation = await self.repository.create_conversation(metadata)
        log_event(logger, "chat.session_created", conversation_id=conversation.id)
        return conversation

    async def send_message(
        self,
        text: str,
        session_id: str | UUID | None = None,
        *,
        metadata: dict[str, Any] | None = None,
    ) -> SendMessageResult:
        """Procesa un mensaje del usuario y devuelve la respuesta persistida.

        Una sesión ausente o desconocida inicia una conversación nueva en vez
        de fallar. Los dos turnos se escriben por separado: si el proceso cae
        entre ambos, queda un turno de usuario sin respuesta.
        """
        cleaned = self._validate(text)
        conversation = await self._resolve_conversation(session_id, metadata)

        await self.repository.create_message(conversation.id, Sender.USER, cleaned)
        history = await self.repository.list_recent_messages(conversation.id, self.context_window)

        reply = await self.resolver.resolve(history, cleaned)
        ai_message = await self.repository.create_message(conversation.id, Sender.AI, reply.text)

        log_event(
            logger,
            "chat.reply_resolved",
            conversation_id=conversation.id,
            message_id=ai_message.id,
            model=reply.model,
            tier=reply.tier,
            input_tokens=reply.usage.input_tokens,
            output_tokens=reply.usage.output_tokens,
        )
        return SendMessageResult(
            reply=reply.text,
            session_id=conversation.id,
            message_id=ai_message.id,
        )

    async def get_history(self, session_id: str | UUID) -> ConversationHistory:
        """Historial completo; a diferencia del envío, una sesión desconocida es un error."""
        conversation = await self.repository.find_conversation(session_id)
        if conversation is None:
            raise ConversationNotFoundError("Conversation not found")

        messages = await self.repository.list_messages(conversation.id)
        return ConversationHistory(
            conversation_id=conversation.id,
            messages=[
                HistoryEntry(
                    id=message.id,
                    sender=message.sender,  # type: ignore[arg-type]
                    text=message.text,
                    timestamp=format_timestamp(message.created_at),
                )
                for message in messages
            ],
        )

    async def health_check(self) -> HealthReport:
        """Sondea el almacén; el proveedor de generación nunca se prueba en vivo."""
        services = {"database": False, "llm": self.resolver is not None}
        try:
            await self.repository.ping()
            services["database"] = True
        except StorageError as exc:
            logger.error("health.database_unreachable", extra={"error": str(exc)})

        status: Literal["healthy", "degraded"] = (
            "healthy" if all(services.values()) else "degraded"
        )
        return HealthReport(status=status, services=services)
