"""HTTP transport for the chat endpoint of the invoice web app."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence

import httpx

from invoicechat.core.types import ChatMessage
from invoicechat.errors import TransportFailure

DEFAULT_TIMEOUT_SECONDS = 60.0


class HttpChatTransport:
    """POST the conversation and stream the text body back chunk by chunk."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        headers: dict[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self._timeout = timeout
        self._headers = headers or {}
        self._client = client

    async def stream(self, history: Sequence[ChatMessage]) -> AsyncIterator[str]:
        body = {"messages": [message.as_dict() for message in history]}
        client = self._client or httpx.AsyncClient(timeout=self._timeout)
        try:
            async with client.stream("POST", self.url, json=body, headers=self._headers) as response:
                if response.status_code >= 400:
                    await response.aread()
                    raise TransportFailure(f"chat endpoint returned {response.status_code}: {response.text[:200]}")
                received = False
                async for chunk in response.aiter_text():
                    if chunk:
                        received = True
                        yield chunk
                if not received:
                    raise TransportFailure("chat endpoint returned no response body")
        except httpx.HTTPError as exc:
            raise TransportFailure(f"chat request to {self.url} failed: {exc!s}") from exc
        finally:
            if self._client is None:
                await client.aclose()
