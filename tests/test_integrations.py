"""Tests for the voice, chat and SMS integrations."""

from __future__ import annotations

import json
import smtplib
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from playmaker.errors import ConfigurationError, UpstreamUnavailable
from playmaker.integrations.base import MessageReceipt
from playmaker.integrations.chat import HttpChatOracle
from playmaker.integrations.sms import (
    EmailGatewaySender,
    FallbackMessageSender,
    TwilioSender,
    format_sms_body,
)
from playmaker.integrations.vapi import (
    ANSWER_EMPTY,
    ANSWER_UNAVAILABLE,
    NBA_INFO_FUNCTION,
    VapiVoiceCaller,
    VapiWebhookHandler,
    build_call_payload,
    format_for_voice,
)


class TestFormatForVoice:
    def test_strips_markdown(self):
        text = "## Tonight\n**LeBron** scored *30*\n\n- 10 rebounds\n- [box score](https://espn.com)"

        assert format_for_voice(text) == "Tonight. LeBron scored 30. 10 rebounds. box score"

    def test_strips_code_blocks(self):
        text = 'Lakers won.\n```json\n{"a": 1}\n```'

        assert "{" not in format_for_voice(text)
        assert format_for_voice(text).startswith("Lakers won.")

    def test_plain_text_unchanged(self):
        assert format_for_voice("Celtics lead 80 to 78.") == "Celtics lead 80 to 78."


class TestWebhookHandler:
    @pytest.mark.asyncio
    async def test_upstream_failure_gives_fallback_answer(self):
        oracle = MagicMock()
        oracle.ask = AsyncMock(side_effect=UpstreamUnavailable("Chat endpoint returned an error"))

        assert await VapiWebhookHandler(oracle).answer("scores") == ANSWER_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_empty_answer(self):
        oracle = MagicMock()
        oracle.ask = AsyncMock(return_value="")

        assert await VapiWebhookHandler(oracle).answer("scores") == ANSWER_EMPTY

    @pytest.mark.asyncio
    async def test_function_call_without_query_uses_default(self):
        oracle = MagicMock()
        oracle.ask = AsyncMock(return_value="Three games tonight.")
        body = {"message": {"type": "function-call", "functionCall": {"name": NBA_INFO_FUNCTION}}}

        result = await VapiWebhookHandler(oracle).handle(body)

        assert result == {"result": "Three games tonight."}
        oracle.ask.assert_awaited_once_with("today NBA scores")

    @pytest.mark.asyncio
    async def test_function_call_missing_payload(self):
        oracle = MagicMock()
        oracle.ask = AsyncMock()

        result = await VapiWebhookHandler(oracle).handle({"message": {"type": "function-call"}})

        assert result == {"result": "No function call data received."}
        oracle.ask.assert_not_awaited()


class TestVapiVoiceCaller:
    def _caller(self, handler, **overrides) -> VapiVoiceCaller:
        options = dict(
            api_key="vapi-key",
            base_url="https://api.vapi.test",
            phone_number_id="pn_1",
            webhook_url="https://playmaker.test/api/vapi/webhook",
        )
        options.update(overrides)
        return VapiVoiceCaller(httpx.AsyncClient(transport=httpx.MockTransport(handler)), **options)

    @pytest.mark.asyncio
    async def test_start_call(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"id": "call_123", "status": "queued"})

        receipt = await self._caller(handler).start_call("+15555550123")

        assert receipt.call_id == "call_123"
        assert receipt.status == "queued"
        assert seen[0].url.path == "/call/phone"
        assert seen[0].headers["Authorization"] == "Bearer vapi-key"
        body = json.loads(seen[0].content)
        assert body["customer"] == {"number": "+15555550123"}
        assert body["assistant"]["serverUrl"] == "https://playmaker.test/api/vapi/webhook"

    @pytest.mark.asyncio
    async def test_provider_error_keeps_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, text='{"message":"Invalid Key"}')

        with pytest.raises(UpstreamUnavailable) as excinfo:
            await self._caller(handler).start_call("+15555550123")

        assert excinfo.value.upstream_status == 401
        assert "Invalid Key" in excinfo.value.details

    @pytest.mark.asyncio
    async def test_non_json_success_body_is_upstream_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(201, text="<html>queued</html>")

        with pytest.raises(UpstreamUnavailable) as excinfo:
            await self._caller(handler).start_call("+15555550123")

        assert excinfo.value.message == "Failed to initiate call"
        assert excinfo.value.details == "Response was not valid JSON"

    def test_missing_key(self):
        caller = self._caller(lambda request: httpx.Response(200), api_key=None)

        with pytest.raises(ConfigurationError):
            caller.check_credentials()

    @pytest.mark.asyncio
    async def test_missing_phone_number_id(self):
        caller = self._caller(lambda request: httpx.Response(200), phone_number_id=None)

        with pytest.raises(ConfigurationError) as excinfo:
            await caller.start_call("+15555550123")

        assert excinfo.value.message == "VAPI phone number ID not configured"

    def test_payload_registers_single_tool(self):
        payload = build_call_payload("pn_1", "+15555550123", "https://x/api/vapi/webhook")

        tools = payload["assistant"]["model"]["tools"]
        assert [tool["function"]["name"] for tool in tools] == [NBA_INFO_FUNCTION]
        assert tools[0]["async"] is False


class TestHttpChatOracle:
    @pytest.mark.asyncio
    async def test_returns_response_text(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"response": "Lakers 112, Celtics 108."})

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        answer = await HttpChatOracle(http, "https://playmaker.test/api/ai/chat").ask("Lakers score")

        assert answer == "Lakers 112, Celtics 108."
        assert json.loads(seen[0].content)["message"] == "Lakers score"

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        http = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(502)))

        with pytest.raises(UpstreamUnavailable):
            await HttpChatOracle(http, "https://playmaker.test/api/ai/chat").ask("scores")


def _gateway(**overrides) -> EmailGatewaySender:
    options = dict(
        host="smtp.test",
        port=587,
        username="bot@playmaker.test",
        password="secret",
        from_address="bot@playmaker.test",
        gateway_domain="vtext.com",
    )
    options.update(overrides)
    return EmailGatewaySender(**options)


class TestEmailGatewaySender:
    def test_gateway_address_uses_national_number(self):
        assert _gateway().gateway_address("+1 (555) 555-0123") == "5555550123@vtext.com"

    def test_configured_requires_host_and_domain(self):
        assert _gateway().configured
        assert not _gateway(gateway_domain=None).configured
        assert not _gateway(host=None).configured

    @pytest.mark.asyncio
    async def test_send_uses_starttls_and_login(self):
        with patch("playmaker.integrations.sms.smtplib.SMTP") as smtp_cls:
            receipt = await _gateway().send("+15555550123", format_sms_body("Final: LAL 112 - BOS 108"))

        smtp_cls.assert_called_once_with("smtp.test", 587, timeout=20.0)
        message = smtp_cls.return_value.send_message.call_args.args[0]
        assert message["To"] == "5555550123@vtext.com"
        assert message.get_content().strip() == "[Playmaker AI] Final: LAL 112 - BOS 108"
        smtp_cls.return_value.starttls.assert_called_once()
        smtp_cls.return_value.login.assert_called_once_with("bot@playmaker.test", "secret")
        assert receipt.channel == "email-gateway"
        assert receipt.status == "sent"

    @pytest.mark.asyncio
    async def test_smtp_failure_is_upstream_unavailable(self):
        with patch("playmaker.integrations.sms.smtplib.SMTP") as smtp_cls:
            smtp_cls.return_value.send_message.side_effect = smtplib.SMTPRecipientsRefused({})
            with pytest.raises(UpstreamUnavailable):
                await _gateway().send("+15555550123", "hello")


class TestTwilioSender:
    def _sender(self, handler) -> TwilioSender:
        return TwilioSender(
            httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            account_sid="AC123",
            auth_token="token",
            from_number="+15555550100",
            base_url="https://api.twilio.test/2010-04-01",
        )

    @pytest.mark.asyncio
    async def test_send(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"sid": "SM1", "status": "queued"})

        receipt = await self._sender(handler).send("+15555550123", "[Playmaker AI] hi")

        assert receipt == MessageReceipt(message_id="SM1", status="queued", channel="twilio")
        assert seen[0].url.path == "/2010-04-01/Accounts/AC123/Messages.json"
        assert seen[0].headers["Authorization"].startswith("Basic ")
        form = seen[0].content.decode()
        assert "To=%2B15555550123" in form
        assert "From=%2B15555550100" in form

    @pytest.mark.asyncio
    async def test_error_message_is_details(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"message": "The 'To' number is not valid."})

        with pytest.raises(UpstreamUnavailable) as excinfo:
            await self._sender(handler).send("+1555", "hi")

        assert excinfo.value.upstream_status == 400
        assert excinfo.value.details == "The 'To' number is not valid."

    @pytest.mark.asyncio
    async def test_error_body_without_message_uses_text(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json=["bad request"])

        with pytest.raises(UpstreamUnavailable) as excinfo:
            await self._sender(handler).send("+1555", "hi")

        assert excinfo.value.details == '["bad request"]'

    @pytest.mark.asyncio
    async def test_success_body_must_be_object(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(201, json=["SM1"])

        with pytest.raises(UpstreamUnavailable) as excinfo:
            await self._sender(handler).send("+15555550123", "hi")

        assert excinfo.value.details == "Response was not a JSON object"


def _fake_sender(channel: str, configured: bool = True, error: Exception | None = None) -> MagicMock:
    sender = MagicMock()
    sender.channel = channel
    sender.configured = configured
    sender.send = AsyncMock(
        side_effect=error,
        return_value=MessageReceipt(message_id=f"{channel}-1", status="sent", channel=channel),
    )
    return sender


class TestFallbackMessageSender:
    @pytest.mark.asyncio
    async def test_first_configured_sender_wins(self):
        gateway = _fake_sender("email-gateway")
        twilio = _fake_sender("twilio")

        receipt = await FallbackMessageSender([gateway, twilio]).send("+15555550123", "hi")

        assert receipt.channel == "email-gateway"
        twilio.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_falls_back_on_failure(self):
        gateway = _fake_sender("email-gateway", error=UpstreamUnavailable("SMTP down"))
        twilio = _fake_sender("twilio")

        receipt = await FallbackMessageSender([gateway, twilio]).send("+15555550123", "hi")

        assert receipt.channel == "twilio"

    @pytest.mark.asyncio
    async def test_skips_unconfigured(self):
        gateway = _fake_sender("email-gateway", configured=False)
        twilio = _fake_sender("twilio")

        receipt = await FallbackMessageSender([gateway, twilio]).send("+15555550123", "hi")

        assert receipt.channel == "twilio"
        gateway.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_all_failures_raise_last(self):
        gateway = _fake_sender("email-gateway", error=UpstreamUnavailable("SMTP down"))
        twilio = _fake_sender("twilio", error=UpstreamUnavailable("Failed to send SMS"))

        with pytest.raises(UpstreamUnavailable) as excinfo:
            await FallbackMessageSender([gateway, twilio]).send("+15555550123", "hi")

        assert excinfo.value.message == "Failed to send SMS"

    @pytest.mark.asyncio
    async def test_nothing_configured(self):
        sender = FallbackMessageSender([_fake_sender("twilio", configured=False)])

        assert not sender.configured
        with pytest.raises(ConfigurationError):
            await sender.send("+15555550123", "hi")
