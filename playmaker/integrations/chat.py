"""HTTP proxy to the assistant chat endpoint."""

from __future__ import annotations

import httpx

from ..errors import UpstreamUnavailable
from ..logging import logger


class HttpChatOracle:
    """Posts a question to the chat endpoint and returns its raw text answer."""

    def __init__(self, http: httpx.AsyncClient, url: str) -> None:
        self._http = http
        self._url = url

    async def ask(self, query: str) -> str:
        logger.info("chat_oracle_request", url=self._url, query=query[:80])
        try:
            response = await self._http.post(
                self._url,
                json={
                    "message": query,
                    "personality": "default",
                    "length": "short",
                    "type": "general",
                    "requestVisuals": False,
                },
            )
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable("Chat endpoint request failed", details=str(exc)) from exc

        if response.status_code >= 400:
            logger.warning(
                "chat_oracle_failed", status=response.status_code, body=response.text[:200]
            )
            raise UpstreamUnavailable(
                "Chat endpoint returned an error",
                upstream_status=response.status_code,
                details=response.text,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamUnavailable("Chat endpoint response was not valid JSON") from exc
        return str(data.get("response") or "") if isinstance(data, dict) else ""
