"""Motor asíncrono de SQLAlchemy y pool de conexiones compartido."""

from __future__ import annotations

from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from spurchat.core.config import Settings
from spurchat.core.logging import get_logger
from spurchat.core.security import mask_database_url

# Registra las tablas en SQLModel.metadata
from spurchat.models import conversation as _models  # noqa: F401

logger = get_logger(__name__)

SessionFactory = async_sessionmaker[AsyncSession]


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(
    url: str,
    *,
    pool_size: int = 20,
    pool_timeout: float = 2.0,
    pool_recycle: int = 30,
    echo: bool = False,
) -> AsyncEngine:
    """Crea el motor con un pool acotado.

    SQLite en memoria usa `StaticPool` (una sola conexión compartida), por lo
    que los parámetros del pool sólo aplican a servidores reales.
    """
    parsed = make_url(url)
    kwargs: dict[str, Any] = {"echo": echo}
    if parsed.get_backend_name() == "sqlite":
        if parsed.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs.update(
            pool_size=pool_size,
            max_overflow=0,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
            pool_pre_ping=True,
        )

    engine = create_async_engine(url, **kwargs)
    if parsed.get_backend_name() == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    logger.info(
        "database.engine_created",
        extra={"url": mask_database_url(url), "pool_size": pool_size},
    )
    return engine


def engine_from_settings(settings: Settings) -> AsyncEngine:
    return create_engine(
        settings.resolved_database_url,
        pool_size=settings.db_pool_size,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=settings.db_pool_recycle,
        echo=settings.db_echo,
    )


def create_session_factory(engine: AsyncEngine) -> SessionFactory:
    """Fábrica de sesiones; cada operación toma y devuelve una conexión del pool."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_schema(engine: AsyncEngine, *, drop_existing: bool = False) -> None:
    """Crea tablas e índices (idempotente)."""
    async with engine.begin() as conn:
        if drop_existing:
            await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("database.schema_ready", extra={"dropped": drop_existing})
