"""Text message delivery.

Two channels, tried in order: an email-to-SMS carrier gateway over SMTP, then
Twilio's REST API. A channel with missing credentials is skipped.
"""

from __future__ import annotations

import asyncio
import re
import smtplib
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Sequence

import httpx

from ..errors import ConfigurationError, UpstreamUnavailable
from ..logging import logger
from .base import MessageReceipt, MessageSender, json_object

SMS_PREFIX = "[Playmaker AI]"


def format_sms_body(message: str) -> str:
    return f"{SMS_PREFIX} {message.strip()}"


def _digits(phone_number: str) -> str:
    digits = re.sub(r"\D", "", phone_number)
    # Carrier gateways expect the 10-digit national number
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    return digits


class EmailGatewaySender:
    """Sends SMS as email to ``<number>@<carrier gateway domain>``."""

    channel = "email-gateway"

    def __init__(
        self,
        *,
        host: str | None,
        port: int,
        username: str | None,
        password: str | None,
        from_address: str | None,
        gateway_domain: str | None,
        timeout_seconds: float = 20.0,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._from = from_address or username
        self._domain = gateway_domain
        self._timeout = timeout_seconds

    @property
    def configured(self) -> bool:
        return bool(self._host and self._domain and self._from)

    def gateway_address(self, phone_number: str) -> str:
        return f"{_digits(phone_number)}@{self._domain}"

    def _deliver(self, message: EmailMessage) -> None:
        if self._port == 465:
            client: smtplib.SMTP = smtplib.SMTP_SSL(self._host, self._port, timeout=self._timeout)
        else:
            client = smtplib.SMTP(self._host, self._port, timeout=self._timeout)
        with client:
            if self._port != 465:
                client.starttls()
            if self._username and self._password:
                client.login(self._username, self._password)
            client.send_message(message)

    async def send(self, phone_number: str, body: str) -> MessageReceipt:
        if not self.configured:
            raise ConfigurationError("Email SMS gateway not configured")
        message = EmailMessage()
        message["From"] = self._from
        message["To"] = self.gateway_address(phone_number)
        message["Message-ID"] = make_msgid(domain="playmaker")
        message.set_content(body)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as exc:
            raise UpstreamUnavailable("Failed to send SMS via email gateway", details=str(exc)) from exc
        logger.info("sms_sent", channel=self.channel, to=message["To"])
        return MessageReceipt(message_id=message["Message-ID"], status="sent", channel=self.channel)


class TwilioSender:
    """Sends SMS through Twilio's Messages REST resource."""

    channel = "twilio"

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        account_sid: str | None,
        auth_token: str | None,
        from_number: str | None,
        base_url: str = "https://api.twilio.com/2010-04-01",
    ) -> None:
        self._http = http
        self._sid = account_sid
        self._token = auth_token
        self._from = from_number
        self._base_url = base_url.rstrip("/")

    @property
    def configured(self) -> bool:
        return bool(self._sid and self._token and self._from)

    async def send(self, phone_number: str, body: str) -> MessageReceipt:
        if not self.configured:
            raise ConfigurationError("Twilio not configured")
        try:
            response = await self._http.post(
                f"{self._base_url}/Accounts/{self._sid}/Messages.json",
                auth=(self._sid, self._token),
                data={"To": phone_number, "From": self._from, "Body": body},
            )
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable("Failed to send SMS", details=str(exc)) from exc

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and body.get("message"):
                details = str(body["message"])
            else:
                details = response.text or "Unknown error"
            logger.warning("sms_twilio_failed", status=response.status_code, details=details)
            raise UpstreamUnavailable(
                "Failed to send SMS", upstream_status=response.status_code, details=details
            )

        data = json_object(response, "Failed to send SMS")
        logger.info("sms_sent", channel=self.channel, message_id=data.get("sid"))
        return MessageReceipt(message_id=data.get("sid"), status=data.get("status"), channel=self.channel)


class FallbackMessageSender:
    """Tries each configured sender in order until one succeeds."""

    channel = "fallback"

    def __init__(self, senders: Sequence[MessageSender]) -> None:
        self._senders = list(senders)

    @property
    def configured(self) -> bool:
        return any(sender.configured for sender in self._senders)

    async def send(self, phone_number: str, body: str) -> MessageReceipt:
        available = [sender for sender in self._senders if sender.configured]
        if not available:
            raise ConfigurationError(
                "SMS not configured. Add SMTP gateway or Twilio credentials to environment variables."
            )
        errors: list[UpstreamUnavailable] = []
        for sender in available:
            try:
                return await sender.send(phone_number, body)
            except UpstreamUnavailable as exc:
                logger.warning("sms_channel_failed", channel=sender.channel, error=exc.message)
                errors.append(exc)
        if not errors:
            raise UpstreamUnavailable("Failed to send SMS", details="No SMS channel attempted")
        raise errors[-1]
