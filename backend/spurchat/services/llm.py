"""Clientes de generación de texto (Hugging Face Inference y OpenAI)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import httpx
from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    RateLimitError,
)

from spurchat.core.errors import UpstreamError, UpstreamRateLimitedError, UpstreamUnavailableError
from spurchat.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class DecodingParams:
    """Parámetros de decodificación fijos para todas las llamadas."""

    max_tokens: int = 200
    temperature: float = 0.7
    top_p: float = 0.9


class TextGenerator(Protocol):
    """Contrato mínimo de un proveedor: prompt de texto -> continuación."""

    model: str

    async def generate(self, prompt: str) -> str: ...


def _raise_for_status(status_code: int, body: str, *, provider: str) -> None:
    if status_code < 400:
        return
    message = f"{provider} respondió status={status_code}: {body[:200]!r}"
    if status_code == 429:
        raise UpstreamRateLimitedError(message, status_code=status_code)
    if status_code == 503 or status_code >= 500:
        raise UpstreamUnavailableError(message, status_code=status_code)
    raise UpstreamError(message, status_code=status_code)


class HuggingFaceGenerator:
    """Invoca el endpoint de inferencia de Hugging Face vía REST."""

    def __init__(
        self,
        *,
        model: str,
        api_url: str,
        api_key: str | None = None,
        timeout: float = 15.0,
        params: DecodingParams | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.model = model
        self._url = f"{api_url.rstrip('/')}/{model}"
        self._api_key = api_key
        self._timeout = timeout
        self._params = params or DecodingParams()
        self._transport = transport

    async def generate(self, prompt: str) -> str:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        payload: dict[str, Any] = {
            "inputs": prompt,
            "parameters": {
                "max_new_tokens": self._params.max_tokens,
                "temperature": self._params.temperature,
                "top_p": self._params.top_p,
                "return_full_text": False,
            },
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self._url, headers=headers, json=payload)
        except httpx.TimeoutException as exc:
            raise UpstreamUnavailableError(f"Timeout llamando a Hugging Face: {exc}") from exc

        _raise_for_status(response.status_code, response.text, provider="huggingface")
        return _extract_generated_text(response.json())


def _extract_generated_text(data: Any) -> str:
    """Admite `[{"generated_text": ...}]` o `{"generated_text": ...}`."""
    if isinstance(data, list) and data and isinstance(data[0], dict):
        data = data[0]
    if isinstance(data, dict):
        generated = data.get("generated_text")
        if isinstance(generated, str):
            return generated.strip()
    logger.warning("llm.unexpected_payload", extra={"payload_type": type(data).__name__})
    return ""


class OpenAIGenerator:
    """Usa el endpoint de completions de OpenAI (prompt de texto, sin eco)."""

    def __init__(
        self,
        *,
        model: str,
        client: AsyncOpenAI,
        params: DecodingParams | None = None,
    ) -> None:
        self.model = model
        self._client = client
        self._params = params or DecodingParams()

    async def generate(self, prompt: str) -> str:
        try:
            completion = await self._client.completions.create(
                model=self.model,
                prompt=prompt,
                max_tokens=self._params.max_tokens,
                temperature=self._params.temperature,
                top_p=self._params.top_p,
                echo=False,
                stop=["\nCustomer:"],
            )
        except RateLimitError as exc:
            raise UpstreamRateLimitedError(str(exc), status_code=429) from exc
        except (APITimeoutError, APIConnectionError) as exc:
            raise UpstreamUnavailableError(str(exc)) from exc
        except APIStatusError as exc:
            _raise_for_status(exc.status_code, str(exc), provider="openai")
            raise

        if not completion.choices:
            return ""
        return (completion.choices[0].text or "").strip()


def build_openai_client(*, api_key: str | None, timeout: float) -> AsyncOpenAI:
    """Crea un cliente asíncrono sin reintentos; el timeout acota la espera total."""
    if not api_key:
        msg = "LLM_API_KEY is not configured for the openai provider"
        raise RuntimeError(msg)
    return AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)
