#!/usr/bin/env python3
"""Crea el esquema de conversaciones/mensajes en la base configurada."""

from __future__ import annotations

import argparse
import asyncio
import sys

from sqlalchemy.exc import SQLAlchemyError

from spurchat.core.config import Settings, as_async_url
from spurchat.core.security import mask_database_url
from spurchat.services.database import create_engine, create_schema


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Crea las tablas conversations/messages y sus índices. "
            "Es idempotente salvo que se use --drop."
        )
    )
    parser.add_argument(
        "--database-url",
        help="URL de conexión. Si se omite se usa DATABASE_URL o las variables DB_*.",
    )
    parser.add_argument(
        "--dotenv",
        help="Ruta al archivo .env a cargar antes de leer variables de entorno.",
    )
    parser.add_argument(
        "--drop",
        action="store_true",
        help="Elimina las tablas existentes antes de crearlas (borra datos).",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Reduce el output a sólo errores.",
    )
    return parser.parse_args(argv)


async def _migrate(database_url: str, *, drop: bool) -> None:
    engine = create_engine(database_url, pool_size=1)
    try:
        await create_schema(engine, drop_existing=drop)
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    settings = Settings(_env_file=args.dotenv) if args.dotenv else Settings()
    if args.database_url:
        database_url = as_async_url(args.database_url)
    else:
        database_url = settings.resolved_database_url
    masked_url = mask_database_url(database_url)

    if not args.quiet:
        action = "Recreando" if args.drop else "Creando"
        print(f"[init_db] {action} esquema en {masked_url}")
    try:
        asyncio.run(_migrate(database_url, drop=args.drop))
    except (SQLAlchemyError, OSError) as exc:  # pragma: no cover - CLI
        print(f"[init_db] ERROR al crear el esquema: {exc}", file=sys.stderr)
        return 1

    if not args.quiet:
        print("[init_db] Esquema listo.")
    return 0


if __name__ == "__main__":  # pragma: no cover - script manual
    sys.exit(main())
