"""Registro liviano de proveedores de generación disponibles."""
from collections.abc import Callable

from spurchat.core.config import Settings
from spurchat.core.logging import get_logger
from spurchat.core.security import mask_secret
from spurchat.services import llm

logger = get_logger(__name__)

GeneratorFactory = Callable[[Settings], llm.TextGenerator]


def _decoding(settings: Settings) -> llm.DecodingParams:
    return llm.DecodingParams(max_tokens=settings.llm_max_tokens)


def build_huggingface(settings: Settings) -> llm.TextGenerator:
    return llm.HuggingFaceGenerator(
        model=settings.llm_model,
        api_url=settings.llm_api_url,
        api_key=settings.llm_api_key,
        timeout=settings.llm_timeout_seconds,
        params=_decoding(settings),
    )


def build_openai(settings: Settings) -> llm.TextGenerator:
    client = llm.build_openai_client(
        api_key=settings.llm_api_key, timeout=settings.llm_timeout_seconds
    )
    return llm.OpenAIGenerator(model=settings.llm_model, client=client, params=_decoding(settings))


REGISTRY: dict[str, GeneratorFactory] = {
    "huggingface": build_huggingface,
    "openai": build_openai,
}


def resolve_generator(settings: Settings) -> llm.TextGenerator:
    """Construye el generador configurado en `settings.llm_provider`."""
    try:
        factory = REGISTRY[settings.llm_provider]
    except KeyError as exc:
        raise ValueError(f"LLM provider '{settings.llm_provider}' is not registered") from exc
    generator = factory(settings)
    logger.info(
        "llm.configured",
        extra={
            "provider": settings.llm_provider,
            "model": settings.llm_model,
            "api_key": mask_secret(settings.llm_api_key),
        },
    )
    return generator
