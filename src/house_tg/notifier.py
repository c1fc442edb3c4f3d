"""Outbound Telegram messages."""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from telegram import Bot
from telegram.error import TelegramError

from .config import DEFAULT_LISTING_URL_TEMPLATE
from .errors import DeliveryError

logger = logging.getLogger(__name__)


@dataclass
class BroadcastResult:
    """Outcome of sending one text to a group of recipients."""

    sent: int = 0
    failures: List[DeliveryError] = field(default_factory=list)


class Notifier:
    """Sends plain text messages through a python-telegram-bot ``Bot``."""

    def __init__(
        self, bot: Bot, listing_url_template: str = DEFAULT_LISTING_URL_TEMPLATE
    ) -> None:
        self.bot = bot
        self.listing_url_template = listing_url_template

    def listing_message(self, listing_id: int) -> str:
        """Text sent to every recipient when a new listing shows up."""
        return self.listing_url_template.format(listing_id=listing_id)

    async def notify(self, recipient: int, text: str) -> None:
        """
        Send one message to one chat.

        Raises:
            DeliveryError: If Telegram rejects or fails the request.
        """
        try:
            await self.bot.send_message(chat_id=recipient, text=text)
        except TelegramError as e:
            raise DeliveryError(
                recipient, f"Failed to send message to chat {recipient}: {e}"
            ) from e

    async def broadcast(self, recipients: Iterable[int], text: str) -> BroadcastResult:
        """Send ``text`` to every recipient; a failed chat does not stop the rest."""
        result = BroadcastResult()
        for recipient in recipients:
            try:
                await self.notify(recipient, text)
            except DeliveryError as e:
                result.failures.append(e)
            else:
                logger.debug("Sent %r to chat %d", text, recipient)
                result.sent += 1
        return result
