"""Endpoint de salud: almacén relacional y proveedor de generación."""
from fastapi import APIRouter, Depends, Response, status

from spurchat.channels.webchat.deps import get_chat_service
from spurchat.channels.webchat.schemas import HealthResponse
from spurchat.channels.webchat.service import ChatService

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", summary="Estado del servicio", response_model=HealthResponse)
async def healthcheck(
    response: Response, service: ChatService = Depends(get_chat_service)
) -> HealthResponse:
    """200 si todas las dependencias responden, 503 si alguna está degradada."""
    report = await service.health_check()
    if report.status != "healthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HealthResponse(status=report.status, services=report.services)
