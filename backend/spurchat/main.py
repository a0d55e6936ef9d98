"""Punto de entrada principal para la aplicación FastAPI."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from spurchat.api.routes.health import router as health_router
from spurchat.assistants.registry import resolve_generator
from spurchat.assistants.resolver import ReplyResolver
from spurchat.channels.webchat.router import router as chat_router
from spurchat.channels.webchat.service import ChatService
from spurchat.core.config import Settings, settings as default_settings
from spurchat.core.errors import StorageError
from spurchat.core.logging import configure_logging, get_logger, resolve_log_level
from spurchat.core.middleware import RequestLoggingMiddleware
from spurchat.repositories.conversations import ConversationRepository
from spurchat.services.database import create_schema, create_session_factory, engine_from_settings

log = get_logger("spurchat")


def _lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # Los tests inyectan su propio servicio en app.state
        if getattr(app.state, "chat_service", None) is not None:
            yield
            return

        engine = engine_from_settings(settings)
        try:
            if settings.db_auto_create:
                await create_schema(engine)
            repository = ConversationRepository(create_session_factory(engine))
            try:
                await repository.ping()
            except StorageError:
                log.critical("startup.database_unreachable")
                raise
            resolver = ReplyResolver(resolve_generator(settings))
            app.state.chat_service = ChatService(repository, resolver)
            log.info(
                "startup.ready",
                extra={"environment": settings.environment, "llm_provider": settings.llm_provider},
            )
            yield
        finally:
            app.state.chat_service = None
            await engine.dispose()
            log.info("shutdown.database_closed")

    return lifespan


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())[1:]),
            "message": error.get("msg", ""),
        }
        for error in exc.errors()
    ]
    detail = "Invalid request"
    if request.url.path.startswith(("/chat/history", "/api/chat/history")):
        detail = "Invalid session ID format"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": detail, "errors": errors},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Crea y configura la instancia de FastAPI."""
    settings = settings or default_settings
    default_log_level = logging.DEBUG if settings.environment != "production" else logging.INFO
    log_level = resolve_log_level(settings.log_level, default=default_log_level)
    per_logger_files = None
    if settings.log_file_path:
        log_dir = Path(settings.log_file_path).parent
        per_logger_files = {"spurchat.request": str(log_dir / "request.log")}

    configure_logging(
        level=log_level,
        log_file=settings.log_file_path,
        per_logger_files=per_logger_files,
    )

    app = FastAPI(title="SpurChat API", version="0.1.0", lifespan=_lifespan(settings))
    app.state.chat_service = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RequestLoggingMiddleware,
        level=settings.request_log_level,
        skip_prefixes=settings.request_log_skip_prefixes,
    )
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    app.include_router(health_router, prefix="/api")
    app.include_router(chat_router, prefix="/api")

    return app


app = create_app()


def run() -> None:  # pragma: no cover - arranque manual
    """Inicia uvicorn con el host/puerto configurados."""
    import uvicorn

    uvicorn.run(
        "spurchat.main:app",
        host=default_settings.host,
        port=default_settings.port,
        log_config=None,
    )
