"""Capability interfaces for third-party integrations.

The live-data path never imports a vendor module; routes depend on these
protocols and the app wires concrete implementations at startup.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from ..errors import UpstreamUnavailable


@dataclass(frozen=True)
class CallReceipt:
    call_id: str | None
    status: str | None


@dataclass(frozen=True)
class MessageReceipt:
    message_id: str | None
    status: str | None
    channel: str


class ChatOracle(Protocol):
    """Answers a natural-language NBA question with free text."""

    async def ask(self, query: str) -> str: ...


class VoiceCallInitiator(Protocol):
    """Places an outbound assistant phone call."""

    def check_credentials(self) -> None: ...

    async def start_call(self, phone_number: str) -> CallReceipt: ...


class MessageSender(Protocol):
    """Delivers a short text message to a phone number."""

    channel: str

    @property
    def configured(self) -> bool: ...

    async def send(self, phone_number: str, body: str) -> MessageReceipt: ...


def json_object(response: httpx.Response, failure: str) -> dict[str, Any]:
    """Body of a successful vendor response, which must be a JSON object."""
    try:
        data = response.json()
    except ValueError as exc:
        raise UpstreamUnavailable(failure, details="Response was not valid JSON") from exc
    if not isinstance(data, dict):
        raise UpstreamUnavailable(failure, details="Response was not a JSON object")
    return data
