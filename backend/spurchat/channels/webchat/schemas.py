"""Esquemas de datos para el canal Webchat."""

from __future__ import annotations

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

SenderType = Literal["user", "ai"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class MessageRequest(_CamelModel):
    """Payload recibido desde el widget webchat."""

    message: str = Field(..., min_length=1, max_length=2000, description="Mensaje en texto plano.")
    session_id: UUID | None = Field(
        default=None,
        alias="sessionId",
        description="Sesión previa; si no existe se inicia una nueva.",
    )


class MessageResponse(_CamelModel):
    """Respuesta a POST /chat/message."""

    reply: str
    session_id: UUID = Field(..., alias="sessionId")
    message_id: UUID = Field(..., alias="messageId")


class HistoryMessage(_CamelModel):
    """Elemento individual del historial de mensajes."""

    id: UUID
    sender: SenderType
    text: str
    timestamp: str = Field(..., description="ISO-8601 en UTC.")


class HistoryResponse(_CamelModel):
    """Respuesta de GET /chat/history/{sessionId}."""

    conversation_id: UUID = Field(..., alias="conversationId")
    messages: list[HistoryMessage] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Estado del servicio y sus dependencias."""

    status: Literal["healthy", "degraded"]
    services: dict[str, bool]


class ErrorResponse(BaseModel):
    detail: str
