"""Discord webhook notifications for new builds."""

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from buildwatch.config import Settings

logger = logging.getLogger(__name__)

TEST_PREVIOUS_BUILD_ID = "Old-Test-Build-123"
TEST_NEW_BUILD_ID = "New-Test-Build-456"
TEST_SUMMARY = (
    "This is a test message! If you can see it, the Discord webhook is wired up correctly 🚀"
)


class NotificationError(Exception):
    """The webhook POST failed."""


class DiscordNotifier:
    """Posts a single embed message to a Discord webhook."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.BaseTransport | None = None,
    ):
        self.webhook_url = settings.discord_webhook_url
        self.timeout = settings.request_timeout_seconds
        self.content = settings.notification_content
        self.title = settings.notification_title
        self.footer = settings.notification_footer
        self.color = settings.notification_color
        self._transport = transport

    def build_payload(
        self,
        previous_build_id: str,
        new_build_id: str,
        summary: str,
        timestamp: datetime | None = None,
    ) -> dict[str, Any]:
        """Build the webhook body for a build transition."""
        timestamp = timestamp or datetime.now(timezone.utc)
        return {
            "content": self.content,
            "embeds": [
                {
                    "title": self.title,
                    "description": f"> {summary}",
                    "color": self.color,
                    "fields": [
                        {
                            "name": "BuildID change",
                            "value": f"`{previous_build_id}` ➔ `{new_build_id}`",
                            "inline": False,
                        }
                    ],
                    "footer": {"text": self.footer},
                    "timestamp": timestamp.isoformat(),
                }
            ],
        }

    def notify(self, previous_build_id: str, new_build_id: str, summary: str) -> None:
        """Send the notification. Raises NotificationError on failure; no retries."""
        if not self.webhook_url:
            raise NotificationError("DISCORD_WEBHOOK_URL is not configured")

        payload = self.build_payload(previous_build_id, new_build_id, summary)

        try:
            with httpx.Client(transport=self._transport, timeout=self.timeout) as client:
                response = client.post(self.webhook_url, json=payload)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Discord webhook error: {e.response.status_code} - {e.response.text}")
            raise NotificationError(f"Webhook returned {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error(f"Discord webhook request failed: {e}")
            raise NotificationError(str(e)) from e

        logger.info(f"Sent build notification {previous_build_id} -> {new_build_id}")

    def send_test_notification(self) -> None:
        """Send a fixed diagnostic message to verify the webhook wiring."""
        self.notify(TEST_PREVIOUS_BUILD_ID, TEST_NEW_BUILD_ID, TEST_SUMMARY)
