from __future__ import annotations

from types import SimpleNamespace

import httpx
import openai
import pytest

from dailyplan.services.text_generation.base import GenerationError, GeneratorNotConfigured
from dailyplan.services.text_generation.openai_client import OpenAITextGenerator

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


class FakeCompletions:
    def __init__(self, content: str | None = "{}", error: Exception | None = None) -> None:
        self.content = content
        self.error = error
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeClient:
    def __init__(self, completions: FakeCompletions) -> None:
        self.chat = SimpleNamespace(completions=completions)
        self.timeouts = []

    def with_options(self, *, timeout):
        self.timeouts.append(timeout)
        return self


def _generator(client, **overrides) -> OpenAITextGenerator:
    options = {"model": "gpt-test", "temperature": 0.2, "max_tokens": 500, "timeout": 30}
    options.update(overrides)
    return OpenAITextGenerator(client, **options)


def test_generate_sends_json_mode_request() -> None:
    completions = FakeCompletions(content='{"tasks": []}')
    client = FakeClient(completions)

    content = _generator(client).generate("system", "user")

    assert content == '{"tasks": []}'
    assert completions.kwargs["model"] == "gpt-test"
    assert completions.kwargs["temperature"] == 0.2
    assert completions.kwargs["max_tokens"] == 500
    assert completions.kwargs["response_format"] == {"type": "json_object"}
    assert completions.kwargs["messages"] == [
        {"role": "system", "content": "system"},
        {"role": "user", "content": "user"},
    ]
    assert client.timeouts == [30]


def test_call_timeout_overrides_default() -> None:
    client = FakeClient(FakeCompletions())

    _generator(client).generate("system", "user", timeout=5, json_mode=False)

    assert client.timeouts == [5]
    assert "response_format" not in client.chat.completions.kwargs


def test_missing_content_returns_empty_string() -> None:
    assert _generator(FakeClient(FakeCompletions(content=None))).generate("s", "u") == ""


def test_missing_client_is_not_configured() -> None:
    with pytest.raises(GeneratorNotConfigured):
        _generator(None).generate("system", "user")


def test_status_errors_carry_http_status() -> None:
    error = openai.RateLimitError(
        "Rate limit reached",
        response=httpx.Response(429, request=_REQUEST),
        body=None,
    )
    generator = _generator(FakeClient(FakeCompletions(error=error)))

    with pytest.raises(GenerationError) as exc_info:
        generator.generate("system", "user")

    assert exc_info.value.status == 429


def test_server_errors_carry_http_status() -> None:
    error = openai.InternalServerError(
        "Service unavailable",
        response=httpx.Response(503, request=_REQUEST),
        body=None,
    )
    generator = _generator(FakeClient(FakeCompletions(error=error)))

    with pytest.raises(GenerationError) as exc_info:
        generator.generate("system", "user")

    assert exc_info.value.status == 503


@pytest.mark.parametrize(
    "error",
    [openai.APIConnectionError(request=_REQUEST), openai.APITimeoutError(request=_REQUEST)],
)
def test_transport_errors_have_no_status(error) -> None:
    generator = _generator(FakeClient(FakeCompletions(error=error)))

    with pytest.raises(GenerationError) as exc_info:
        generator.generate("system", "user")

    assert exc_info.value.status is None
    assert not isinstance(exc_info.value, GeneratorNotConfigured)
