"""Voice assistant webhook, outbound call and SMS endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from ..config import settings
from ..dependencies import get_message_sender, get_voice_caller, get_webhook_handler
from ..errors import ConfigurationError, UpstreamUnavailable, ValidationError
from ..integrations.base import MessageSender, VoiceCallInitiator
from ..integrations.sms import format_sms_body
from ..integrations.vapi import NBA_INFO_FUNCTION, VapiWebhookHandler
from ..logging import logger

router = APIRouter(prefix="/api", tags=["assistant"])

INTERNAL_ERROR_RESULT = "Internal error processing request."


async def _json_body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _upstream_failure(exc: UpstreamUnavailable) -> JSONResponse:
    return JSONResponse(
        status_code=exc.upstream_status or status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": exc.message, "details": exc.details},
    )


@router.get("/vapi/webhook")
async def vapi_webhook_status() -> dict[str, str]:
    return {
        "status": "ok",
        "message": f"Vapi webhook endpoint is active. Handles function calls for {NBA_INFO_FUNCTION}.",
        "endpoint": "/api/vapi/webhook",
        "method": "POST",
        "architecture": "function-calling",
    }


@router.post("/vapi/webhook")
async def vapi_webhook(
    request: Request,
    handler: VapiWebhookHandler = Depends(get_webhook_handler),
) -> dict[str, Any]:
    """
    Receive Vapi server messages.

    ``function-call`` returns ``{result}``; ``tool-calls`` returns
    ``{results: [{toolCallId, result}]}``; anything else is acknowledged with ``{}``.
    Vapi always gets a 200 so the call can continue.
    """
    try:
        body = await request.json()
        return await handler.handle(body if isinstance(body, dict) else {})
    except Exception:
        logger.exception("vapi_webhook_error")
        return {"result": INTERNAL_ERROR_RESULT}


@router.post("/vapi/call")
@router.post("/ai-assistant/vapi/call")
async def start_voice_call(
    request: Request,
    caller: VoiceCallInitiator = Depends(get_voice_caller),
) -> Any:
    """
    Place an outbound assistant call.

    Example body: {"phoneNumber": "+15555550123"}; defaults to VAPI_TARGET_PHONE.
    """
    caller.check_credentials()
    body = await _json_body(request)
    target_phone = body.get("phoneNumber") or settings.vapi_target_phone
    if not target_phone:
        raise ValidationError(
            "No target phone number provided",
            details="VAPI_TARGET_PHONE environment variable is not set.",
        )

    try:
        receipt = await caller.start_call(str(target_phone))
    except UpstreamUnavailable as exc:
        return _upstream_failure(exc)

    return {"success": True, "callId": receipt.call_id, "status": receipt.status}


@router.post("/vapi/sms")
@router.post("/notifications/sms")
async def send_sms(
    request: Request,
    sender: MessageSender = Depends(get_message_sender),
) -> Any:
    """
    Send a text message via the email gateway, falling back to Twilio.

    Example body: {"message": "LAL 102 - BOS 99 final", "phoneNumber": "+15555550123"}
    """
    if not sender.configured:
        raise ConfigurationError(
            "SMS not configured. Add SMTP gateway or Twilio credentials to environment variables."
        )
    body = await _json_body(request)
    message = str(body.get("message") or "").strip()
    if not message:
        raise ValidationError("Message is required")
    target_phone = body.get("phoneNumber") or settings.vapi_target_phone
    if not target_phone:
        raise ValidationError("No target phone number provided")

    try:
        receipt = await sender.send(str(target_phone), format_sms_body(message))
    except UpstreamUnavailable as exc:
        return _upstream_failure(exc)

    return {
        "success": True,
        "messageId": receipt.message_id,
        "status": receipt.status,
        "channel": receipt.channel,
    }
