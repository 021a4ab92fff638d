"""
Post spin winners to an external webhook (Discord, Slack or any JSON endpoint).

Configuration
-------------
Add the URL to ``config.json`` or set ``WHEELSPIN_WEBHOOK_URL``::

    "webhook_url": "https://discord.com/api/webhooks/..."

Delivery is best-effort: failures are logged and reported through the
return value, never raised into the picker session.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger('wheelspin.webhook')

_DEFAULT_TIMEOUT = 5  # seconds


def send_webhook(url: str, payload: Dict, timeout: int = _DEFAULT_TIMEOUT) -> bool:
    """POST *payload* as JSON to *url*.

    Discord-compatible: the payload includes a ``content`` key with a plain-text
    summary; other webhook services receive the full JSON body.

    Returns:
        True on a 2xx response, False on any network or HTTP error.
    """
    try:
        resp = requests.post(url, json=payload, timeout=timeout)
        resp.raise_for_status()
        logger.info("Webhook delivered to %s (HTTP %s)", url, resp.status_code)
        return True
    except requests.RequestException as e:
        logger.warning("Webhook delivery failed (%s): %s", url, e)
        return False


class WinnerNotifier:
    """Sends one webhook message per recorded winner.

    Args:
        url: Webhook URL; ``None`` or empty disables notifications.
        timeout: HTTP request timeout in seconds.
    """

    def __init__(self, url: Optional[str], timeout: int = _DEFAULT_TIMEOUT) -> None:
        self.url = url or None
        self._timeout = timeout

    @property
    def enabled(self) -> bool:
        return self.url is not None

    @staticmethod
    def build_payload(winner: str, lst: Optional[Dict[str, Any]] = None,
                      remaining: Optional[int] = None) -> Dict[str, Any]:
        list_name = (lst or {}).get('name', 'a list')
        content = f"\U0001F3A1 **{winner}** was picked from *{list_name}*"
        if remaining is not None:
            content += f" ({remaining} left)"
        return {
            'content': content,
            'winner': winner,
            'list_id': (lst or {}).get('id'),
            'list_name': (lst or {}).get('name'),
            'remaining': remaining,
        }

    def notify_winner(self, winner: str, lst: Optional[Dict[str, Any]] = None,
                      remaining: Optional[int] = None) -> bool:
        """Post *winner*; returns ``False`` when disabled or delivery failed."""
        if not self.enabled:
            return False
        return send_webhook(self.url, self.build_payload(winner, lst, remaining),
                            timeout=self._timeout)
