"""
Slack channel — incoming-webhook delivery for formatted notifications.

Posts ``{"text": message, "channel": channel}`` to the webhook configured in
``SLACK_WEBHOOK_URL`` (or passed explicitly). Transport failures, non-2xx
responses and timeouts are logged and reported as ``False``.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx

from planning_agent.notifications.channel import NotificationChannel

logger = logging.getLogger(__name__)

WEBHOOK_ENV_VAR = "SLACK_WEBHOOK_URL"
DEFAULT_TIMEOUT = 10.0
_LOG_PREVIEW_CHARS = 200


class SlackChannel(NotificationChannel):
    """Slack incoming webhook sink."""

    name: str = "slack"

    def __init__(
        self,
        webhook_url: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.webhook_url = webhook_url if webhook_url is not None else os.environ.get(WEBHOOK_ENV_VAR, "")
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)

    async def disconnect(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def send(self, message: str, channel: str | None = None) -> bool:
        if not self.webhook_url:
            logger.warning("Slack webhook URL not configured; dropping notification")
            return False

        payload: dict[str, Any] = {"text": message}
        if channel:
            payload["channel"] = channel

        client = self._client or httpx.AsyncClient(timeout=self.timeout)
        try:
            resp = await client.post(self.webhook_url, json=payload)
            resp.raise_for_status()
        except httpx.TimeoutException:
            logger.error(
                "Slack notification timed out after %.1fs (channel=%s): %s",
                self.timeout, channel, message[:_LOG_PREVIEW_CHARS],
            )
            return False
        except httpx.HTTPError:
            logger.exception(
                "Failed to send Slack notification (channel=%s): %s",
                channel, message[:_LOG_PREVIEW_CHARS],
            )
            return False
        finally:
            if not self._client:
                await client.aclose()

        logger.info("Sent Slack notification (channel=%s)", channel)
        return True
