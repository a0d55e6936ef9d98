"""Recursos de datos estáticos integrados en el backend."""

from functools import lru_cache
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent


def data_path(*parts: str) -> Path:
    """Retorna la ruta a un recurso dentro de `spurchat/data`."""
    return BASE_DIR.joinpath(*parts)


@lru_cache(maxsize=8)
def read_text(name: str) -> str:
    """Lee (y cachea) un recurso de texto empaquetado."""
    return data_path(name).read_text(encoding="utf-8")
