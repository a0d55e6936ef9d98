"""Pruebas del registro de proveedores de generación."""
import pytest

from spurchat.assistants import registry
from spurchat.core.config import Settings
from spurchat.services import llm


def test_resolve_unknown_provider_raises_error(monkeypatch: pytest.MonkeyPatch) -> None:
    settings = Settings(llm_provider="huggingface")
    monkeypatch.setattr(settings, "llm_provider", "unknown")
    with pytest.raises(ValueError):
        registry.resolve_generator(settings)


def test_resolve_huggingface_uses_configured_model() -> None:
    settings = Settings(llm_provider="huggingface", llm_model="gpt2", llm_max_tokens=64)
    generator = registry.resolve_generator(settings)
    assert isinstance(generator, llm.HuggingFaceGenerator)
    assert generator.model == "gpt2"


def test_resolve_openai_requires_api_key() -> None:
    settings = Settings(llm_provider="openai", llm_api_key=None)
    with pytest.raises(RuntimeError):
        registry.resolve_generator(settings)


def test_resolve_openai_builds_generator() -> None:
    settings = Settings(
        llm_provider="openai", llm_api_key="sk-test", llm_model="gpt-3.5-turbo-instruct"
    )
    generator = registry.resolve_generator(settings)
    assert isinstance(generator, llm.OpenAIGenerator)
    assert generator.model == "gpt-3.5-turbo-instruct"
