# src/commlink/notify/notifier.py

"""
Reminder delivery.

Two concrete Notifier implementations:
- HttpNotifier: POSTs {from, to, subject, body} as JSON to a mail relay/webhook.
- LoggingNotifier: writes the reminder to the log (local runs without a relay).

Both treat an empty recipient address as an explicit skip, and both report
failure by returning False instead of raising, so one bad recipient never
takes the scheduler's pass off course.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import httpx

logger = logging.getLogger(__name__)


class HttpNotifier:
    """Sends each reminder as one JSON POST to a webhook URL."""

    def __init__(
        self,
        webhook_url: str,
        *,
        sender: str = "",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not webhook_url or not webhook_url.strip():
            raise ValueError("webhook_url is required")
        self.webhook_url = webhook_url.strip().rstrip("/")
        self.sender = sender
        self.timeout_seconds = float(timeout_seconds)
        self._transport = transport
        logger.info("HttpNotifier enabled: %s", self.webhook_url)

    async def notify(self, recipient_address: str, subject: str, body: str) -> bool:
        if not recipient_address:
            logger.debug("HttpNotifier: no recipient address, skipping %r", subject)
            return False

        payload = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "from": self.sender,
            "to": recipient_address,
            "subject": subject,
            "body": body,
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                transport=self._transport,
            ) as client:
                resp = await client.post(self.webhook_url, json=payload)
                resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "HttpNotifier: relay rejected reminder to=%s status=%s",
                recipient_address,
                e.response.status_code,
            )
            return False
        except httpx.HTTPError as e:
            logger.warning("HttpNotifier: send failed to=%s: %s", recipient_address, e)
            return False

        logger.debug("HttpNotifier: sent to=%s subject=%r", recipient_address, subject)
        return True


class LoggingNotifier:
    """
    Fallback used when no relay is configured.

    Behaves like a successful delivery so local runs exercise the whole pass.
    """

    async def notify(self, recipient_address: str, subject: str, body: str) -> bool:
        if not recipient_address:
            logger.debug("LoggingNotifier: no recipient address, skipping %r", subject)
            return False
        logger.info("REMINDER to=%s subject=%r\n%s", recipient_address, subject, body)
        return True


def build_notifier(settings) -> HttpNotifier | LoggingNotifier:
    url = str(getattr(settings, "notify_webhook_url", "") or "").strip()
    if not url:
        logger.warning("No notify webhook configured; reminders will only be logged.")
        return LoggingNotifier()
    return HttpNotifier(
        url,
        sender=str(getattr(settings, "notify_sender", "") or ""),
        timeout_seconds=float(getattr(settings, "notify_timeout_seconds", 10.0)),
    )
