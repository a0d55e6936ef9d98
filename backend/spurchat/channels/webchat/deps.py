"""Dependencias comunes para el canal webchat."""

from ipaddress import ip_address
from typing import Any

from fastapi import Header, HTTPException, Request

from .service import ChatService


def get_chat_service(request: Request) -> ChatService:
    """Devuelve el servicio construido en el arranque de la aplicación."""
    service = getattr(request.app.state, "chat_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Chat service is not ready")
    return service


def _forwarded_ip(header: str | None) -> str | None:
    candidate = header.split(",")[0].strip() if header else ""
    try:
        return str(ip_address(candidate))
    except ValueError:
        return None


async def get_client_metadata(
    request: Request,
    user_agent: str | None = Header(default=None),
    x_forwarded_for: str | None = Header(default=None),
    origin: str | None = Header(default=None),
) -> dict[str, Any]:
    """Metadatos del visitante guardados al crear una conversación.

    `client_ip` sale de la primera entrada de `X-Forwarded-For`, que controla
    el cliente salvo que un proxy de confianza la reescriba: sólo sirve como
    dato informativo, nunca para autorizar. Si no es una IP válida se usa el
    par de la conexión. `user_agent` y `origin` tampoco se verifican.
    """
    client_ip = _forwarded_ip(x_forwarded_for)
    if client_ip is None and request.client:
        client_ip = request.client.host
    metadata = {
        "channel": "webchat",
        "user_agent": user_agent,
        "client_ip": client_ip,
        "origin": origin,
    }
    return {key: value for key, value in metadata.items() if value is not None}
