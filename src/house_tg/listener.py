"""Registers chats that message the bot as notification recipients."""

import logging
from typing import Optional

from telegram import Update
from telegram.ext import ContextTypes

from .errors import StoreError
from .stores import RecipientStore

logger = logging.getLogger(__name__)


class UpdateListener:
    """
    Handler for inbound bot updates.

    Any plain text message subscribes its chat. Nothing is sent back, and
    store failures are logged so the receive loop keeps running.
    """

    def __init__(self, recipients: RecipientStore) -> None:
        self.recipients = recipients

    async def handle(
        self, update: Update, context: Optional[ContextTypes.DEFAULT_TYPE] = None
    ) -> None:
        message = update.message
        if message is None or message.text is None:
            return

        chat_id = message.chat.id
        logger.info("Received a '%s' message in chat %d.", message.text, chat_id)

        try:
            added = self.recipients.add(chat_id)
        except StoreError as e:
            logger.error("Could not register chat %d: %s", chat_id, e)
            return

        if added:
            logger.info("Chat %d subscribed", chat_id)
