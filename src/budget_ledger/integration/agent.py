import asyncio
from typing import Any

import httpx

from budget_ledger.core import settings
from budget_ledger.domain.errors import TransportError
from budget_ledger.logger import get_logger
from budget_ledger.store import generate_id

logger = get_logger(__name__)


class AgentClient:
    """Thin async client for the reasoning agent's chat inference endpoint."""

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ):
        self.url = url or settings.AGENT_URL
        self.api_key = api_key if api_key is not None else settings.AGENT_API_KEY
        self.timeout = timeout if timeout is not None else settings.AGENT_TIMEOUT
        self.headers = {
            "Content-Type": "application/json",
            "x-api-key": self.api_key or "",
        }
        self._client = client
        self._client_lock = asyncio.Lock()

    async def aclose(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _get_client(self) -> httpx.AsyncClient:
        client = self._client
        if client is not None and not client.is_closed:
            return client

        async with self._client_lock:
            client = self._client
            if client is None or client.is_closed:
                client = httpx.AsyncClient()
                self._client = client
            return client

    @staticmethod
    def build_request(agent_id: str, message: str) -> dict[str, str]:
        # user_id and session_id are throwaway identifiers for every call.
        return {
            "user_id": f"user_{generate_id()}@test.com",
            "agent_id": agent_id,
            "session_id": f"session_{generate_id()}",
            "message": message,
        }

    async def send(self, agent_id: str, message: str) -> str:
        """Send ``message`` to ``agent_id`` and return the raw reply text.

        Raises TransportError when the call fails or the envelope is not the
        expected ``{"message": ...}`` object.
        """
        if not self.api_key:
            logger.warning("[AGENT] AGENT_API_KEY is not set; calling %s without a key.", self.url)

        client = await self._get_client()
        payload = self.build_request(agent_id, message)
        logger.debug("[AGENT] POST %s agent=%s (%d chars).", self.url, agent_id, len(message))
        try:
            response = await client.post(
                self.url,
                headers=self.headers,
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data: Any = response.json()
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                f"Agent {agent_id} returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Agent {agent_id} request failed: {exc!r}") from exc
        except ValueError as exc:
            raise TransportError(f"Agent {agent_id} returned a non-JSON body") from exc

        if not isinstance(data, dict):
            raise TransportError(f"Agent {agent_id} returned an unexpected envelope")
        message = data.get("message")
        return message if isinstance(message, str) else ""
