"""Slack notifications with rate-limit backoff."""
from __future__ import annotations
import logging, time
from enum import Enum
from typing import Any, Callable, Dict, Optional

import httpx

from autoirrigation.core.exceptions import NotificationError
from autoirrigation.core.patterns import BackoffRule, RateLimitWindow

SLACK_API_URL = "https://slack.com/api"
HEADER_LIMIT = 150

# checked in order; the stricter token must come first
RATE_LIMIT_RULES = [
    BackoffRule("message_limit_exceeded", 5 * 60.0),
    BackoffRule("rate_limited", 60.0),
    BackoffRule("ratelimited", 60.0),
    BackoffRule("too_many_requests", 60.0),
]


class Severity(Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def tag(self) -> str:
        return self.value.upper()

    @property
    def emoji(self) -> str:
        return {"info": "ℹ️", "success": "✅", "error": "🚨"}[self.value]


class SlackNotifier:
    """Posts severity-tagged messages to one Slack channel.

    Without a bot token or channel every call is a no-op that reports "not
    sent". A rate-limit response opens a suppression window (5 minutes for
    `message_limit_exceeded`, 1 minute otherwise); sends inside it are dropped,
    not queued. The window closes on the first send attempt after it expires.
    """

    def __init__(self, bot_token: Optional[str], channel_id: Optional[str], *,
                 api_url: str = SLACK_API_URL,
                 timeout: float = 10.0,
                 clock: Callable[[], float] = time.monotonic,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.log = logging.getLogger(self.__class__.__name__)
        self.bot_token = bot_token
        self.channel_id = channel_id
        self.api_url = api_url
        self.timeout = timeout
        self.backoff = RateLimitWindow(RATE_LIMIT_RULES, clock)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        if not self.enabled:
            self.log.info("Slack token or channel ID is not configured. Slack notifications will be disabled.")

    @property
    def enabled(self) -> bool:
        return bool(self.bot_token and self.channel_id)

    def is_rate_limited(self) -> bool:
        return self.backoff.active()

    # ---------- public API ------------------------------------------------ #
    async def send(self, severity: Severity, title: str, text: str) -> bool:
        """Send one message. Returns True only if Slack accepted it; never raises."""
        if not self.enabled:
            return False
        if self.backoff.active():
            self.log.info(f"Skipping Slack message due to rate limit backoff "
                          f"(remaining: {self.backoff.remaining():.0f}s): {title}")
            return False

        try:
            await self._post(self.format_message(severity, title, text))
        except NotificationError as e:
            rule = self.backoff.classify(str(e))
            if rule is not None:
                self.backoff.open(rule)
            else:
                self.log.error(f"Failed to send Slack message: {e}")
            return False
        return True

    async def info(self, title: str, text: str) -> bool:
        return await self.send(Severity.INFO, title, text)

    async def success(self, title: str, text: str) -> bool:
        return await self.send(Severity.SUCCESS, title, text)

    async def error(self, title: str, text: str) -> bool:
        return await self.send(Severity.ERROR, title, text)

    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ---------- helpers --------------------------------------------------- #
    def format_message(self, severity: Severity, title: str, text: str) -> Dict[str, Any]:
        header = f"{severity.emoji} {title}"[:HEADER_LIMIT]
        return {
            "channel": self.channel_id,
            "text": f"[{severity.tag}] {title}: {text}",
            "blocks": [
                {"type": "header", "text": {"type": "plain_text", "text": header, "emoji": True}},
                {"type": "section", "text": {"type": "mrkdwn", "text": text}},
                {"type": "context", "elements": [
                    {"type": "mrkdwn", "text": f"*{severity.tag}* · auto-irrigation"},
                ]},
            ],
        }

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.api_url,
                timeout=self.timeout,
                headers={"Authorization": f"Bearer {self.bot_token}"},
                transport=self._transport,
            )
        return self._client

    async def _post(self, message: Dict[str, Any]):
        try:
            response = await self._http().post("chat.postMessage", json=message)
        except httpx.HTTPError as e:
            raise NotificationError(f"slack request failed: {e}") from e

        if response.status_code == 429:
            raise NotificationError("too_many_requests (HTTP 429)")
        if response.status_code >= 400:
            raise NotificationError(f"slack returned HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise NotificationError(f"invalid slack response: {e}") from e
        if not isinstance(data, dict):
            raise NotificationError(f"invalid slack response: expected an object, got {type(data).__name__}")
        if not data.get("ok"):
            raise NotificationError(data.get("error", "unknown_error"))
