"""
Provider notifications.

Notifications are fire-and-forget: a failed or slow delivery is logged and
swallowed so it can never fail or retry the booking that triggered it.
"""

import logging
from typing import Optional, Protocol

import httpx

from ..config import FRONTEND_URL, NOTIFY_TIMEOUT_SEC, TELEGRAM_API_URL, TELEGRAM_BOT_TOKEN
from ..utils.sanitization import sanitize_string

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Outbound messaging collaborator."""

    async def notify(self, channel: Optional[str], message: str) -> bool:
        """Deliver `message` to `channel`. Must not raise."""


class TelegramNotifier:
    """Sends provider messages through the Telegram Bot API."""

    def __init__(
        self,
        bot_token: Optional[str] = TELEGRAM_BOT_TOKEN,
        api_url: str = TELEGRAM_API_URL,
        timeout: float = NOTIFY_TIMEOUT_SEC,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.bot_token = bot_token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def notify(self, channel: Optional[str], message: str) -> bool:
        if not self.bot_token or not self.bot_token.strip():
            logger.debug("Telegram bot token not configured - skipping notification")
            return False
        if not channel or not channel.strip():
            logger.debug("Provider has no notification channel - skipping notification")
            return False

        url = f"{self.api_url}/bot{self.bot_token.strip()}/sendMessage"
        payload = {"chat_id": channel.strip(), "text": message, "parse_mode": "HTML"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"❌ Telegram sendMessage error: {e}")
            return False

        if response.status_code >= 400:
            logger.error(f"❌ Telegram sendMessage failed: {response.status_code} {response.text[:200]}")
            return False

        logger.info(f"✅ Provider notified via Telegram chat {channel}")
        return True


def build_booking_message(
    provider_id: int,
    booking_id: int,
    client_name: str,
    client_phone: str,
    scheduled_date: str,
    start_time: str,
    duration_minutes: int,
    service_title: Optional[str] = None,
) -> str:
    """Compose the HTML message announcing a new pending booking."""
    lines = [
        "<b>New booking request</b>",
        f"Client: {sanitize_string(client_name)}",
        f"Phone: {sanitize_string(client_phone)}",
        f"Date: {scheduled_date} {start_time} ({duration_minutes} min)",
    ]
    if service_title:
        lines.append(f"Service: {sanitize_string(service_title)}")
    lines.append(f"Booking #{booking_id}: {FRONTEND_URL}/dashboard/{provider_id}")
    return "\n".join(lines)


async def notify_provider(notifier: Notifier, channel: Optional[str], message: str) -> bool:
    """Deliver a provider notification, absorbing every failure."""
    try:
        return await notifier.notify(channel, message)
    except Exception as e:
        logger.error(f"❌ Failed to send provider notification: {e}")
        return False
