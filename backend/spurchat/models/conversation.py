"""Tablas de conversaciones y mensajes del widget de soporte."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Sender(str, Enum):
    """Emisor de un turno; no admite otras variantes."""

    USER = "user"
    AI = "ai"


class Conversation(SQLModel, table=True):
    """Sesión de chat: agrupa una secuencia ordenada de mensajes.

    Se crea una vez y el núcleo nunca la actualiza ni la elimina.
    """

    __tablename__ = "conversations"

    id: UUID = Field(default_factory=uuid4, sa_column=Column(Uuid(), primary_key=True))
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )
    # `metadata` está reservado por SQLModel; la columna conserva el nombre
    meta: dict[str, Any] | None = Field(
        default=None,
        sa_column=Column("metadata", JSON().with_variant(JSONB(), "postgresql"), nullable=True),
    )


class Message(SQLModel, table=True):
    """Turno inmutable (user o ai) dentro de una conversación."""

    __tablename__ = "messages"
    __table_args__ = (
        CheckConstraint("sender IN ('user', 'ai')", name="messages_sender_check"),
    )

    id: UUID = Field(default_factory=uuid4, sa_column=Column(Uuid(), primary_key=True))
    conversation_id: UUID = Field(
        sa_column=Column(
            Uuid(),
            ForeignKey("conversations.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
    )
    sender: str = Field(sa_column=Column(String(10), nullable=False))
    text: str = Field(sa_column=Column(Text, nullable=False))
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )
