"""Repositorio de conversaciones y mensajes sobre el almacén relacional."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from sqlalchemy import func, text as sql_text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from spurchat.core.errors import ReferentialError, StorageError, StoreBusyError
from spurchat.core.logging import get_logger
from spurchat.models.conversation import Conversation, Message, Sender, utcnow
from spurchat.services.database import SessionFactory

logger = get_logger(__name__)

Order = Literal["asc", "desc"]


def as_uuid(value: str | UUID | None) -> UUID | None:
    """Convierte a UUID; devuelve None si el valor no tiene forma de UUID."""
    if value is None:
        return None
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


class ConversationRepository:
    """Pequeña capa de acceso a las tablas `conversations` y `messages`.

    Cada método toma una sesión del pool y la devuelve al salir, incluso ante
    errores. Las escrituras confirman antes de retornar; ninguna transacción
    abarca más de una llamada.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except PoolTimeoutError as exc:
            logger.error("storage.pool_exhausted", extra={"operation": operation})
            raise StoreBusyError(f"No hay conexiones disponibles ({operation})") from exc
        except IntegrityError:
            raise
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("storage.operation_failed", extra={"operation": operation})
            raise StorageError(f"Fallo del almacén durante {operation}: {exc}") from exc

    async def create_conversation(self, metadata: dict[str, Any] | None = None) -> Conversation:
        conversation = Conversation(created_at=self._clock(), meta=metadata or None)
        async with self._session("create_conversation") as session:
            session.add(conversation)
            await session.commit()
        logger.debug("storage.conversation_created", extra={"conversation_id": conversation.id})
        return conversation

    async def find_conversation(self, conversation_id: str | UUID) -> Conversation | None:
        """Busca una conversación; un id desconocido o mal formado no es un error."""
        key = as_uuid(conversation_id)
        if key is None:
            return None
        async with self._session("find_conversation") as session:
            return await session.get(Conversation, key)

    async def list_conversations(self, limit: int = 100, offset: int = 0) -> list[Conversation]:
        """Listado administrativo, más recientes primero."""
        statement = (
            select(Conversation)
            .order_by(col(Conversation.created_at).desc())
            .offset(offset)
            .limit(limit)
        )
        async with self._session("list_conversations") as session:
            result = await session.exec(statement)
            return list(result.all())

    async def create_message(
        self, conversation_id: str | UUID, sender: Sender | str, text: str
    ) -> Message:
        """Agrega un turno. Falla con `ReferentialError` si la conversación no existe."""
        key = as_uuid(conversation_id)
        if key is None:
            raise ReferentialError(f"Conversación inválida: {conversation_id!r}")
        message = Message(
            conversation_id=key,
            sender=Sender(sender).value,
            text=text,
            created_at=self._clock(),
        )
        try:
            async with self._session("create_message") as session:
                session.add(message)
                await session.commit()
        except IntegrityError as exc:
            logger.error(
                "storage.referential_violation",
                extra={"conversation_id": key, "sender": message.sender},
            )
            raise ReferentialError(f"La conversación {key} no existe") from exc
        return message

    async def list_messages(
        self, conversation_id: str | UUID, order: Order = "asc"
    ) -> list[Message]:
        """Historial completo ordenado por `created_at`."""
        key = as_uuid(conversation_id)
        if key is None:
            return []
        column = col(Message.created_at)
        statement = (
            select(Message)
            .where(Message.conversation_id == key)
            .order_by(column.desc() if order == "desc" else column.asc())
        )
        async with self._session("list_messages") as session:
            result = await session.exec(statement)
            return list(result.all())

    async def list_recent_messages(self, conversation_id: str | UUID, limit: int) -> list[Message]:
        """Últimos `limit` mensajes en orden cronológico ascendente.

        La selección se hace descendente y se invierte aquí: el resolvedor de
        respuestas depende de recibir los turnos en orden.
        """
        key = as_uuid(conversation_id)
        if key is None or limit <= 0:
            return []
        statement = (
            select(Message)
            .where(Message.conversation_id == key)
            .order_by(col(Message.created_at).desc())
            .limit(limit)
        )
        async with self._session("list_recent_messages") as session:
            result = await session.exec(statement)
            rows = list(result.all())
        rows.reverse()
        return rows

    async def count_messages(self, conversation_id: str | UUID) -> int:
        key = as_uuid(conversation_id)
        if key is None:
            return 0
        statement = select(func.count()).select_from(Message).where(Message.conversation_id == key)
        async with self._session("count_messages") as session:
            result = await session.exec(statement)
            return int(result.one())

    async def ping(self) -> None:
        """Consulta barata sin efectos; lanza `StorageError` si el almacén no responde."""
        async with self._session("ping") as session:
            connection = await session.connection()
            await connection.execute(sql_text("SELECT 1"))
