"""Jerarquía de errores del dominio de chat.

Los servicios lanzan estas excepciones; la capa HTTP las traduce a códigos
de estado en `spurchat.channels.webchat.router`.
"""


class ChatError(Exception):
    """Base de todos los errores controlados del backend."""


class ChatValidationError(ChatError):
    """Mensaje vacío, demasiado largo o con forma inválida."""


class ConversationNotFoundError(ChatError):
    """La sesión solicitada no existe."""


class RateLimitedError(ChatError):
    """Señal genérica de límite de tasa (HTTP 429)."""


class ServiceUnavailableError(ChatError):
    """Señal genérica de indisponibilidad temporal (HTTP 503)."""


class StorageError(ChatError):
    """El almacén relacional falló o no es alcanzable."""


class ReferentialError(StorageError):
    """Escritura contra una conversación inexistente."""


class StoreBusyError(StorageError, ServiceUnavailableError):
    """No hubo conexión libre en el pool dentro del tiempo permitido."""


class UpstreamError(ChatError):
    """El proveedor de generación respondió con error o payload inválido."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UpstreamRateLimitedError(UpstreamError, RateLimitedError):
    """El proveedor rechazó la solicitud por límite de tasa."""


class UpstreamUnavailableError(UpstreamError, ServiceUnavailableError):
    """El proveedor no respondió a tiempo o reportó indisponibilidad."""
