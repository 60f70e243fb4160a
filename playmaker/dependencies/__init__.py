"""Route dependencies resolving the objects wired at startup.

Everything lives on ``app.state`` so tests can swap any of it through
``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Request

from ..integrations.base import MessageSender, VoiceCallInitiator
from ..integrations.vapi import VapiWebhookHandler
from ..live.broadcaster import LiveBroadcaster
from ..live.service import LiveDataService


def get_live_service(request: Request) -> LiveDataService:
    return request.app.state.live_service


def get_broadcaster(request: Request) -> LiveBroadcaster:
    return request.app.state.broadcaster


def get_voice_caller(request: Request) -> VoiceCallInitiator:
    return request.app.state.voice_caller


def get_message_sender(request: Request) -> MessageSender:
    return request.app.state.message_sender


def get_webhook_handler(request: Request) -> VapiWebhookHandler:
    return request.app.state.webhook_handler
