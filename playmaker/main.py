from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .db import close_db
from .errors import PlaymakerError
from .integrations.chat import HttpChatOracle
from .integrations.sms import EmailGatewaySender, FallbackMessageSender, TwilioSender
from .integrations.vapi import VapiVoiceCaller, VapiWebhookHandler
from .live.broadcaster import LiveBroadcaster
from .live.espn_client import EspnClient, build_http_client
from .live.service import LiveDataService
from .logging import logger
from .middleware.logging import StructuredLoggingMiddleware
from .routers import games, live, players, vapi


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    http = build_http_client()
    service = LiveDataService(EspnClient(http), settings.live)
    app.state.live_service = service
    app.state.broadcaster = LiveBroadcaster(service, settings.live)
    app.state.voice_caller = VapiVoiceCaller(
        http,
        api_key=settings.vapi_private_key,
        base_url=settings.vapi_base_url,
        phone_number_id=settings.vapi_phone_number_id,
        webhook_url=f"{settings.app_base_url}/api/vapi/webhook",
    )
    app.state.message_sender = FallbackMessageSender(
        [
            EmailGatewaySender(
                host=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_user,
                password=settings.smtp_password,
                from_address=settings.smtp_from,
                gateway_domain=settings.sms_gateway_domain,
                timeout_seconds=settings.live.request_timeout_seconds,
            ),
            TwilioSender(
                http,
                account_sid=settings.twilio_account_sid,
                auth_token=settings.twilio_auth_token,
                from_number=settings.twilio_phone_number,
                base_url=settings.twilio_base_url,
            ),
        ]
    )
    app.state.webhook_handler = VapiWebhookHandler(HttpChatOracle(http, settings.chat_url))
    logger.info(
        "playmaker_started",
        snapshot_ttl_seconds=settings.live.snapshot_ttl_seconds,
        poll_interval_seconds=settings.live.poll_interval_seconds,
        vapi_configured=bool(settings.vapi_private_key),
        sms_configured=app.state.message_sender.configured,
    )
    try:
        yield
    finally:
        await http.aclose()
        await close_db()
        logger.info("playmaker_stopped")


app = FastAPI(title="playmaker", version="1.0.0", lifespan=lifespan)

app.add_middleware(StructuredLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(live.router)
app.include_router(games.router)
app.include_router(players.router)
app.include_router(vapi.router)


@app.exception_handler(PlaymakerError)
async def playmaker_error_handler(request: Request, exc: PlaymakerError) -> JSONResponse:
    logger.warning(
        "request_failed",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code,
        error=exc.message,
    )
    content: dict[str, str] = {"error": exc.message}
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("request_crashed", path=request.url.path, error_type=type(exc).__name__, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/healthz")
async def healthcheck(request: Request) -> dict[str, object]:
    broadcaster = getattr(request.app.state, "broadcaster", None)
    return {
        "status": "ok",
        "openStreams": broadcaster.open_connections if broadcaster is not None else 0,
    }
