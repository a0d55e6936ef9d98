"""Configuración central basada en variables de entorno."""

from typing import Literal
from urllib.parse import quote_plus

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Valores globales leídos desde `.env` o el entorno."""

    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("SPURCHAT_ENVIRONMENT", "NODE_ENV", "APP_ENV"),
    )
    host: str = "0.0.0.0"
    port: int = Field(default=3001, validation_alias=AliasChoices("SPURCHAT_PORT", "PORT"))
    log_level: str | None = Field(
        default=None,
        description="Nivel de logging global (ej. debug, info, warning). Cuando no se define, usa un valor por ambiente.",
    )
    request_log_level: str = Field(
        default="info",
        description=(
            "Nivel mínimo para registrar solicitudes en middleware. "
            "Valores más altos (warning/error) reducen registros de peticiones exitosas."
        ),
    )
    request_log_skip_prefixes: tuple[str, ...] = Field(
        default=("/favicon", "/robots.txt", "/docs", "/openapi"),
        description="Prefijos de ruta para los que no se registrarán eventos de request.started/completed.",
    )
    log_file_path: str | None = None

    database_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SPURCHAT_DATABASE_URL", "DATABASE_URL"),
    )
    db_host: str = Field(default="localhost", validation_alias=AliasChoices("SPURCHAT_DB_HOST", "DB_HOST"))
    db_port: int = Field(default=5432, validation_alias=AliasChoices("SPURCHAT_DB_PORT", "DB_PORT"))
    db_name: str = Field(default="spur_chat", validation_alias=AliasChoices("SPURCHAT_DB_NAME", "DB_NAME"))
    db_user: str = Field(default="postgres", validation_alias=AliasChoices("SPURCHAT_DB_USER", "DB_USER"))
    db_password: str = Field(
        default="", validation_alias=AliasChoices("SPURCHAT_DB_PASSWORD", "DB_PASSWORD")
    )
    db_pool_size: int = Field(default=20, ge=1, description="Conexiones máximas en el pool.")
    db_pool_timeout: float = Field(
        default=2.0,
        gt=0,
        description="Segundos de espera para obtener una conexión del pool.",
    )
    db_pool_recycle: int = Field(
        default=30,
        description="Segundos tras los cuales una conexión ociosa se recicla.",
    )
    db_echo: bool = False
    db_auto_create: bool = Field(
        default=False,
        description="Crea las tablas al arrancar (útil en desarrollo).",
    )

    llm_provider: Literal["huggingface", "openai"] = Field(
        default="huggingface",
        validation_alias=AliasChoices("SPURCHAT_LLM_PROVIDER", "LLM_PROVIDER"),
    )
    llm_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SPURCHAT_LLM_API_KEY", "LLM_API_KEY", "HF_API_TOKEN", "OPENAI_API_KEY"),
    )
    llm_api_url: str = Field(
        default="https://api-inference.huggingface.co/models",
        description="URL base del endpoint de inferencia (Hugging Face).",
    )
    llm_model: str = Field(
        default="microsoft/DialoGPT-medium",
        validation_alias=AliasChoices("SPURCHAT_LLM_MODEL", "LLM_MODEL"),
    )
    llm_max_tokens: int = Field(
        default=200,
        ge=1,
        validation_alias=AliasChoices("SPURCHAT_LLM_MAX_TOKENS", "LLM_MAX_TOKENS"),
    )
    llm_timeout_seconds: float = Field(default=15.0, gt=0)

    frontend_url: str = Field(
        default="http://localhost:5173",
        validation_alias=AliasChoices("SPURCHAT_FRONTEND_URL", "FRONTEND_URL"),
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="SPURCHAT_", extra="ignore", populate_by_name=True
    )

    @property
    def resolved_database_url(self) -> str:
        """URL de conexión final; compone una URL asyncpg si no se definió `database_url`."""
        if self.database_url:
            return as_async_url(self.database_url)
        password = f":{quote_plus(self.db_password)}" if self.db_password else ""
        return (
            f"postgresql+asyncpg://{quote_plus(self.db_user)}{password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )


def as_async_url(url: str) -> str:
    # DATABASE_URL suele llegar en formato libpq (postgres://...)
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix) :]
    return url


settings = Settings()
