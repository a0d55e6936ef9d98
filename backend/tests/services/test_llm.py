"""Pruebas de los clientes de generación (sin red)."""

import json
from types import SimpleNamespace

import httpx
import pytest
from openai import RateLimitError

from spurchat.core.errors import UpstreamError, UpstreamRateLimitedError, UpstreamUnavailableError
from spurchat.services.llm import DecodingParams, HuggingFaceGenerator, OpenAIGenerator


def _hf_generator(handler) -> HuggingFaceGenerator:
    return HuggingFaceGenerator(
        model="microsoft/DialoGPT-medium",
        api_url="https://hf.test/models/",
        api_key="hf_secret",
        params=DecodingParams(max_tokens=50),
        transport=httpx.MockTransport(handler),
    )


async def test_huggingface_posts_prompt_with_fixed_parameters() -> None:
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["auth"] = request.headers.get("authorization")
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json=[{"generated_text": "  We ship worldwide.  "}])

    text = await _hf_generator(handler).generate("Customer: hi\nAgent:")

    assert text == "We ship worldwide."
    assert captured["url"] == "https://hf.test/models/microsoft/DialoGPT-medium"
    assert captured["auth"] == "Bearer hf_secret"
    body = captured["body"]
    assert body["inputs"] == "Customer: hi\nAgent:"
    assert body["parameters"] == {
        "max_new_tokens": 50,
        "temperature": 0.7,
        "top_p": 0.9,
        "return_full_text": False,
    }


async def test_huggingface_accepts_object_payload() -> None:
    generator = _hf_generator(lambda request: httpx.Response(200, json={"generated_text": "Sure thing!"}))
    assert await generator.generate("prompt") == "Sure thing!"


async def test_huggingface_unexpected_payload_returns_empty_text() -> None:
    generator = _hf_generator(lambda request: httpx.Response(200, json={"error": "loading"}))
    assert await generator.generate("prompt") == ""


@pytest.mark.parametrize(
    ("status_code", "expected"),
    [
        (429, UpstreamRateLimitedError),
        (503, UpstreamUnavailableError),
        (500, UpstreamUnavailableError),
        (401, UpstreamError),
    ],
)
async def test_huggingface_maps_error_status(status_code: int, expected: type[Exception]) -> None:
    generator = _hf_generator(lambda request: httpx.Response(status_code, text="nope"))
    with pytest.raises(expected) as info:
        await generator.generate("prompt")
    assert info.value.status_code == status_code


async def test_huggingface_timeout_is_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(UpstreamUnavailableError):
        await _hf_generator(handler).generate("prompt")


class _FakeCompletions:
    def __init__(self, result=None, error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.kwargs: dict[str, object] = {}

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return self.result


async def test_openai_generator_disables_echo() -> None:
    completions = _FakeCompletions(
        result=SimpleNamespace(choices=[SimpleNamespace(text=" Happy to help with that. ")])
    )
    client = SimpleNamespace(completions=completions)
    generator = OpenAIGenerator(model="gpt-3.5-turbo-instruct", client=client)

    text = await generator.generate("Customer: hi\nAgent:")

    assert text == "Happy to help with that."
    assert completions.kwargs["echo"] is False
    assert completions.kwargs["max_tokens"] == 200
    assert completions.kwargs["temperature"] == 0.7
    assert completions.kwargs["top_p"] == 0.9


async def test_openai_rate_limit_is_translated() -> None:
    request = httpx.Request("POST", "https://api.openai.test/v1/completions")
    response = httpx.Response(429, request=request)
    error = RateLimitError("rate limited", response=response, body=None)
    client = SimpleNamespace(completions=_FakeCompletions(error=error))

    with pytest.raises(UpstreamRateLimitedError):
        await OpenAIGenerator(model="m", client=client).generate("prompt")


async def test_openai_without_choices_returns_empty_text() -> None:
    client = SimpleNamespace(completions=_FakeCompletions(result=SimpleNamespace(choices=[])))
    assert await OpenAIGenerator(model="m", client=client).generate("prompt") == ""
