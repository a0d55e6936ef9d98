"""Helpers para no filtrar credenciales en logs o salidas de consola."""

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError


def mask_secret(value: str | None) -> str | None:
    """Enmascara secretos para logging seguro."""
    if not value:
        return value
    if len(value) <= 4:
        return "***"
    return f"{value[:2]}***{value[-2:]}"


def mask_database_url(url: str) -> str:
    """Regresa la URL de la base sin exponer la contraseña."""
    try:
        parsed = make_url(url)
    except ArgumentError:
        return "***"
    return parsed.render_as_string(hide_password=True)
