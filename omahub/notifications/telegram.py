"""Operator notifications through the Telegram Bot API."""

import logging

import httpx

from omahub.config import get_settings

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Post short maintenance summaries to the configured operator chat."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._settings = get_settings()
        self._api_url = (
            f"https://api.telegram.org/bot{self._settings.telegram_bot_token}"
        )
        self._timeout = httpx.Timeout(10.0)
        self._transport = transport

    @property
    def configured(self) -> bool:
        settings = self._settings
        return bool(settings.telegram_bot_token and settings.telegram_chat_id)

    async def send(self, message: str, *, title: str | None = None) -> bool:
        """Send ``message``; returns False instead of raising on any failure."""

        if not self.configured:
            logger.warning("Telegram notifier not configured, skipping notification")
            return False

        payload = {
            "chat_id": self._settings.telegram_chat_id,
            "text": f"*{title}*\n\n{message}" if title else message,
            "parse_mode": "Markdown",
        }

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    f"{self._api_url}/sendMessage", json=payload
                )
                response.raise_for_status()
                result = response.json()
        except httpx.HTTPStatusError as e:
            logger.error("Telegram HTTP error: %s", e.response.status_code)
            return False
        except httpx.HTTPError as e:
            logger.error("Telegram notification failed: %s", e)
            return False

        if not result.get("ok"):
            logger.error("Telegram API error: %s", result.get("description", "Unknown"))
            return False

        logger.info("Telegram notification sent: %s", title or "Notification")
        return True
