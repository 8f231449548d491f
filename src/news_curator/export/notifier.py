from __future__ import annotations

import logging
from typing import Optional, Sequence

from news_curator.export.slack_client import SlackClient

logger = logging.getLogger(__name__)


class ErrorNotifier:
    """Sends plain warning DMs to operators; one recipient failing never blocks the rest."""

    def __init__(
        self,
        *,
        client: SlackClient,
        recipients: Sequence[str],
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._client = client
        self._recipients = tuple(recipients)
        self._log = log or logger

    def notify(self, text: str) -> int:
        if not self._recipients:
            self._log.warning("No error recipients configured.")
            return 0
        sent = 0
        for user_id in self._recipients:
            try:
                self._client.post_message(user_id, text=f":warning: {text}")
            except Exception as e:
                self._log.error("Failed to send error notification to user %s: %s", user_id, e)
                continue
            sent += 1
            self._log.info("Error notification sent to user %s", user_id)
        return sent
