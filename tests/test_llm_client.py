from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import openai
import pytest

from tarot.errors import UpstreamError
from tarot.llm_client import InterpretationClient
from tarot.prompt import SYSTEM_PROMPT

URL = "https://api.groq.com/openai/v1/chat/completions"


def _completion(content):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )


def _client(create) -> InterpretationClient:
    fake = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    return InterpretationClient(model="test-model", client=fake)


def _status_error(cls, status, message):
    request = httpx.Request("POST", URL)
    response = httpx.Response(status, request=request)
    return cls(message, response=response, body=None)


async def test_interpret_returns_content_and_sends_roles():
    create = AsyncMock(return_value=_completion("🔮 Толкование"))
    client = _client(create)

    assert await client.interpret("prompt text") == "🔮 Толкование"

    kwargs = create.await_args.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["temperature"] == 0.7
    assert kwargs["max_tokens"] == 2000
    assert kwargs["messages"] == [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": "prompt text"},
    ]


async def test_single_attempt_per_call():
    create = AsyncMock(side_effect=_status_error(openai.InternalServerError, 503, "overloaded"))
    client = _client(create)

    with pytest.raises(UpstreamError):
        await client.interpret("p")
    assert create.await_count == 1


async def test_status_error_carries_status_and_reason():
    create = AsyncMock(side_effect=_status_error(openai.RateLimitError, 429, "rate limited"))
    client = _client(create)

    with pytest.raises(UpstreamError) as exc:
        await client.interpret("p")
    assert exc.value.status == 429
    assert exc.value.reason == "rate limited"


async def test_connection_error_is_upstream_error():
    request = httpx.Request("POST", URL)
    create = AsyncMock(side_effect=openai.APIConnectionError(request=request))
    client = _client(create)

    with pytest.raises(UpstreamError) as exc:
        await client.interpret("p")
    assert exc.value.status is None


@pytest.mark.parametrize("response", [
    SimpleNamespace(choices=[]),
    SimpleNamespace(choices=None),
    _completion(None),
    _completion(""),
])
async def test_malformed_response_is_upstream_error(response):
    client = _client(AsyncMock(return_value=response))

    with pytest.raises(UpstreamError, match="malformed"):
        await client.interpret("p")


def test_default_client_has_no_retries():
    client = InterpretationClient(api_key="test-key")
    assert client.client.max_retries == 0
    assert str(client.client.base_url).startswith("https://api.groq.com/openai/v1")
