import re
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from budget_ledger.domain.errors import TransportError
from budget_ledger.integration.agent import AgentClient


def _response(payload=None, *, status_code: int = 200, json_error: bool = False) -> MagicMock:
    response = MagicMock()
    if status_code >= 400:
        request = httpx.Request("POST", "http://agent.test/chat")
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "error",
            request=request,
            response=httpx.Response(status_code, request=request),
        )
    else:
        response.raise_for_status.return_value = None
    if json_error:
        response.json.side_effect = ValueError("Expecting value")
    else:
        response.json.return_value = payload
    return response


def _client(*responses) -> tuple[AgentClient, AsyncMock]:
    http = AsyncMock()
    http.is_closed = False
    http.post = AsyncMock(side_effect=list(responses))
    client = AgentClient(url="http://agent.test/chat", api_key="sk-test", client=http, timeout=5.0)
    return client, http


@pytest.mark.anyio
async def test_send_posts_envelope_and_returns_message() -> None:
    client, http = _client(_response({"message": "hello"}))

    text = await client.send("agent-1", '{"description":"Coffee"}')

    assert text == "hello"
    http.post.assert_awaited_once()
    args, kwargs = http.post.call_args
    assert args == ("http://agent.test/chat",)
    assert kwargs["headers"]["x-api-key"] == "sk-test"
    assert kwargs["timeout"] == 5.0
    body = kwargs["json"]
    assert list(body) == ["user_id", "agent_id", "session_id", "message"]
    assert body["agent_id"] == "agent-1"
    assert body["message"] == '{"description":"Coffee"}'
    assert re.fullmatch(r"user_[a-z0-9]{9}@test\.com", body["user_id"])
    assert re.fullmatch(r"session_[a-z0-9]{9}", body["session_id"])


@pytest.mark.anyio
async def test_each_call_uses_fresh_identifiers() -> None:
    client, http = _client(_response({"message": "a"}), _response({"message": "b"}))

    await client.send("agent-1", "{}")
    await client.send("agent-1", "{}")

    first = http.post.call_args_list[0].kwargs["json"]
    second = http.post.call_args_list[1].kwargs["json"]
    assert first["session_id"] != second["session_id"]


@pytest.mark.anyio
@pytest.mark.parametrize("payload", [{}, {"message": None}, {"message": 42}])
async def test_missing_message_is_empty_text(payload) -> None:
    client, _ = _client(_response(payload))
    assert await client.send("agent-1", "{}") == ""


@pytest.mark.anyio
@pytest.mark.parametrize(
    "outcome",
    [
        _response(status_code=500),
        _response(json_error=True),
        _response(["not", "an", "object"]),
        httpx.ConnectError("refused"),
        httpx.ReadTimeout("slow"),
    ],
)
async def test_transport_failures_raise_transport_error(outcome) -> None:
    client, _ = _client(outcome)

    with pytest.raises(TransportError):
        await client.send("agent-1", "{}")


@pytest.mark.anyio
async def test_client_created_lazily_and_closed() -> None:
    with patch("httpx.AsyncClient") as mock_client_cls:
        http = AsyncMock()
        http.is_closed = False
        http.post = AsyncMock(return_value=_response({"message": "ok"}))
        mock_client_cls.return_value = http

        client = AgentClient(url="http://agent.test/chat", api_key="sk-test")
        assert await client.send("agent-1", "{}") == "ok"
        await client.aclose()

    mock_client_cls.assert_called_once()
    http.aclose.assert_awaited_once()
