"""Endpoints del canal webchat."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, status

from spurchat.core.errors import (
    ChatError,
    ChatValidationError,
    ConversationNotFoundError,
    RateLimitedError,
    ServiceUnavailableError,
)
from spurchat.core.logging import get_logger

from . import schemas
from .deps import get_chat_service, get_client_metadata
from .service import ChatService

logger = get_logger("spurchat.channels.webchat")

router = APIRouter(prefix="/chat", tags=["chat"])


def _to_http_error(exc: ChatError, *, fallback_detail: str) -> HTTPException:
    """Traduce errores del dominio a respuestas HTTP."""
    if isinstance(exc, ChatValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, ConversationNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")
    if isinstance(exc, RateLimitedError):
        return HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests. Please wait a moment and try again.",
        )
    if isinstance(exc, ServiceUnavailableError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is temporarily unavailable. Please try again in a moment.",
        )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=fallback_detail)


@router.post(
    "/message",
    response_model=schemas.MessageResponse,
    summary="Procesa un mensaje del widget y devuelve la respuesta",
    responses={400: {"model": schemas.ErrorResponse}, 429: {"model": schemas.ErrorResponse}},
)
async def post_chat_message(
    payload: schemas.MessageRequest,
    service: ChatService = Depends(get_chat_service),
    client_metadata: dict[str, Any] = Depends(get_client_metadata),
) -> schemas.MessageResponse:
    """Recibe un mensaje, resuelve la respuesta y persiste ambos turnos."""
    try:
        result = await service.send_message(
            payload.message, payload.session_id, metadata=client_metadata
        )
    except ChatError as exc:
        if not isinstance(exc, ChatValidationError):
            logger.exception(
                "webchat.send_failed",
                extra={"session_id": payload.session_id, "error_type": type(exc).__name__},
            )
        raise _to_http_error(exc, fallback_detail="Failed to process message. Please try again.") from exc

    return schemas.MessageResponse(
        reply=result.reply,
        session_id=result.session_id,
        message_id=result.message_id,
    )


@router.get(
    "/history/{session_id}",
    response_model=schemas.HistoryResponse,
    summary="Recupera el historial completo de una sesión",
    responses={404: {"model": schemas.ErrorResponse}},
)
async def get_chat_history(
    session_id: UUID = Path(..., description="Identificador de sesión (UUID)."),
    service: ChatService = Depends(get_chat_service),
) -> schemas.HistoryResponse:
    """Devuelve todos los mensajes de la sesión en orden cronológico."""
    try:
        history = await service.get_history(session_id)
    except ChatError as exc:
        if not isinstance(exc, ConversationNotFoundError):
            logger.exception("webchat.history_failed", extra={"session_id": session_id})
        raise _to_http_error(exc, fallback_detail="Failed to retrieve conversation history") from exc

    return schemas.HistoryResponse(
        conversation_id=history.conversation_id,
        messages=[
            schemas.HistoryMessage(
                id=entry.id, sender=entry.sender, text=entry.text, timestamp=entry.timestamp
            )
            for entry in history.messages
        ],
    )
