"""Vapi voice assistant: outbound calls and webhook handling.

Outbound calls go through Vapi's phone API with an inline assistant whose one
tool, ``get_nba_info``, calls back into our webhook. The webhook forwards the
spoken question to the chat oracle and flattens the answer for speech.
"""

from __future__ import annotations

import json
import re
from typing import Any, Mapping

import httpx

from ..errors import ConfigurationError, PlaymakerError, UpstreamUnavailable
from ..logging import logger
from .base import CallReceipt, ChatOracle, json_object

NBA_INFO_FUNCTION = "get_nba_info"
DEFAULT_QUERY = "today NBA scores"

ANSWER_UNAVAILABLE = "I had trouble fetching the latest NBA data. Please try asking again."
ANSWER_EMPTY = (
    "I could not find that information right now. "
    "Try asking about today's NBA games or a specific player."
)

VOICE_SYSTEM_PROMPT = """You are Playmaker AI - a concise, accurate NBA-only sports voice assistant on a phone call.

ABSOLUTE RULES:
- You ONLY talk about NBA basketball: games, players, teams, stats, standings, awards, and history.
- You NEVER help with calendars, meetings, scheduling, reminders, email, tasks, or generic productivity.
- If the user asks for anything outside NBA basketball, politely say you can only answer NBA questions.

DATA ACCESS:
- You have a tool called "get_nba_info" that fetches LIVE NBA data (scores, stats, standings, recaps, team records, injuries).
- For ANY NBA question about current data, scores, stats, standings, or live games, call get_nba_info IMMEDIATELY.
- Do not say filler like "let me check" or "one moment" before or during tool use.
- NEVER guess or make up stats. After receiving tool results, use ONLY that data.

VOICE STYLE:
- Keep responses SHORT and conversational. This is a phone call, not a text chat.
- No markdown, no bullet points, no formatting. Speak naturally.
- Lead with the most important info: the score, the stat, the record.
- Max 3-4 sentences per response. Speak like a knowledgeable NBA friend."""

FIRST_MESSAGE = (
    "Hey! I'm Playmaker AI, your NBA assistant with live data. "
    "Ask me about today's games, player stats, standings, or anything NBA!"
)
END_CALL_MESSAGE = "Thanks for calling Playmaker AI. Enjoy the games!"

_VOICE_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\*\*(.+?)\*\*"), r"\1"),
    (re.compile(r"\*(.+?)\*"), r"\1"),
    (re.compile(r"_(.+?)_"), r"\1"),
    (re.compile(r"^#{1,6}\s+", re.MULTILINE), ""),
    (re.compile(r"^\s*[-•]\s+", re.MULTILINE), ""),
    (re.compile(r"\[(.+?)\]\(.+?\)"), r"\1"),
    (re.compile(r"\n{2,}"), ". "),
    (re.compile(r"\n"), ". "),
    (re.compile(r"\.\s*\.\s*"), ". "),
    (re.compile(r"\s{2,}"), " "),
    (re.compile(r"```json[\s\S]*?```"), ""),
    (re.compile(r"```[\s\S]*?```"), ""),
    (re.compile(r'\{"correctedStats"[\s\S]*?\}'), ""),
)


def format_for_voice(text: str) -> str:
    """Strip markdown and code so text reads naturally when spoken."""
    result = text
    for pattern, replacement in _VOICE_RULES:
        result = pattern.sub(replacement, result)
    return result.strip()


def nba_info_tool() -> dict[str, Any]:
    return {
        "type": "function",
        # Wait for the result before speaking
        "async": False,
        "messages": [
            {"type": "request-start", "content": ""},
            {"type": "request-response-delayed", "content": "", "timingMilliseconds": 5000},
        ],
        "function": {
            "name": NBA_INFO_FUNCTION,
            "description": (
                "Fetch live NBA data including today's scores, player stats, team records, "
                "standings, game recaps, injuries, and player comparisons. "
                "Call this for ANY question about current NBA data."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "description": (
                            'The NBA question to look up. Examples: "what are today\'s scores", '
                            '"LeBron James stats", "Lakers record", "NBA standings"'
                        ),
                    }
                },
                "required": ["query"],
            },
        },
    }


def build_call_payload(phone_number_id: str, target_phone: str, webhook_url: str) -> dict[str, Any]:
    return {
        "phoneNumberId": phone_number_id,
        "customer": {"number": target_phone},
        "assistant": {
            "serverUrl": webhook_url,
            "model": {
                "provider": "openai",
                "model": "gpt-4o",
                "messages": [{"role": "system", "content": VOICE_SYSTEM_PROMPT}],
                "tools": [nba_info_tool()],
            },
            "voice": {"provider": "vapi", "voiceId": "Elliot"},
            "silenceTimeoutSeconds": 30,
            "backchannelingEnabled": False,
            "firstMessage": FIRST_MESSAGE,
            "endCallMessage": END_CALL_MESSAGE,
        },
    }


class VapiVoiceCaller:
    """Starts outbound assistant calls through Vapi's phone API."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        api_key: str | None,
        base_url: str,
        phone_number_id: str | None,
        webhook_url: str,
    ) -> None:
        self._http = http
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._phone_number_id = phone_number_id
        self._webhook_url = webhook_url

    def check_credentials(self) -> None:
        if not self._api_key:
            raise ConfigurationError("Vapi API key not configured")

    async def start_call(self, phone_number: str) -> CallReceipt:
        self.check_credentials()
        if not self._phone_number_id:
            raise ConfigurationError(
                "VAPI phone number ID not configured",
                details="VAPI_PHONE_NUMBER_ID environment variable is not set.",
            )

        logger.info("vapi_call_start", webhook_url=self._webhook_url)
        try:
            response = await self._http.post(
                f"{self._base_url}/call/phone",
                headers={"Authorization": f"Bearer {self._api_key}"},
                json=build_call_payload(self._phone_number_id, phone_number, self._webhook_url),
            )
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable("Failed to initiate call", details=str(exc)) from exc

        if response.status_code >= 400:
            logger.warning("vapi_call_failed", status=response.status_code, body=response.text[:200])
            raise UpstreamUnavailable(
                "Failed to initiate call",
                upstream_status=response.status_code,
                details=response.text,
            )

        data = json_object(response, "Failed to initiate call")
        logger.info("vapi_call_started", call_id=data.get("id"), status=data.get("status"))
        return CallReceipt(call_id=data.get("id"), status=data.get("status"))


def _tool_arguments(tool_call: Mapping[str, Any]) -> Mapping[str, Any]:
    function = tool_call.get("function") or {}
    arguments = function.get("arguments")
    if isinstance(arguments, str):
        try:
            parsed = json.loads(arguments)
        except ValueError:
            return {"query": arguments}
        return parsed if isinstance(parsed, Mapping) else {"query": arguments}
    if isinstance(arguments, Mapping) and arguments:
        return arguments
    parameters = tool_call.get("parameters")
    return parameters if isinstance(parameters, Mapping) else {}


class VapiWebhookHandler:
    """Turns Vapi server messages into webhook responses."""

    def __init__(self, oracle: ChatOracle) -> None:
        self._oracle = oracle

    async def answer(self, query: str) -> str:
        """Ask the oracle and return a speakable answer, never raising for upstream trouble."""
        try:
            raw = await self._oracle.ask(query)
        except PlaymakerError as exc:
            logger.warning("vapi_answer_unavailable", query=query[:80], error=exc.message)
            return ANSWER_UNAVAILABLE
        if not raw:
            return ANSWER_EMPTY
        return format_for_voice(raw)

    async def _call_function(self, name: str, params: Mapping[str, Any]) -> str:
        if name != NBA_INFO_FUNCTION:
            logger.warning("vapi_unknown_function", function=name)
            return f"Unknown function: {name}"
        query = str(params.get("query") or DEFAULT_QUERY)
        return await self.answer(query)

    async def handle(self, body: Mapping[str, Any]) -> dict[str, Any]:
        message = body.get("message") or {}
        message_type = message.get("type") or body.get("type") or "unknown"
        logger.info("vapi_webhook_event", message_type=message_type)

        if message_type == "function-call":
            function_call = message.get("functionCall") or body.get("functionCall")
            if not function_call:
                logger.warning("vapi_function_call_missing")
                return {"result": "No function call data received."}
            params = function_call.get("parameters") or {}
            return {"result": await self._call_function(function_call.get("name") or "", params)}

        if message_type == "tool-calls":
            tool_calls = (
                message.get("toolCallList")
                or message.get("toolCalls")
                or body.get("toolCallList")
                or body.get("toolCalls")
                or []
            )
            if not isinstance(tool_calls, list) or not tool_calls:
                logger.warning("vapi_tool_calls_missing")
                return {"results": []}
            results = []
            for tool_call in tool_calls:
                name = (tool_call.get("function") or {}).get("name") or tool_call.get("name") or ""
                results.append(
                    {
                        "toolCallId": tool_call.get("id") or tool_call.get("toolCallId") or "",
                        "result": await self._call_function(name, _tool_arguments(tool_call)),
                    }
                )
            return {"results": results}

        if message_type == "status-update":
            logger.info("vapi_status_update", status=message.get("status") or body.get("status"))
        elif message_type == "end-of-call-report":
            logger.info("vapi_end_of_call_report")
        else:
            logger.debug("vapi_event_ignored", message_type=message_type)
        return {}
