"""Chat delivery for monitoring notifications."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Protocol

from telegram import Bot

from monitoring.models import MessageSource, MessageSourceSystem


class Notifier(Protocol):
    async def send(self, source: MessageSource, message: str) -> None:
        ...


class MessageSender(Protocol):
    async def send_message(self, chat_id: str, text: str) -> None:
        ...


class TelegramSender:
    """Deliver messages through the Telegram Bot API."""

    def __init__(self, bot: Bot) -> None:
        self.bot = bot

    async def send_message(self, chat_id: str, text: str) -> None:
        await self.bot.send_message(chat_id=chat_id, text=text)


class ChatNotifier:
    """Route a message to the sender registered for its source system.

    Raises ``LookupError`` for a system without a sender; delivery errors from
    the sender propagate to the caller.
    """

    def __init__(
        self,
        senders: Optional[Dict[MessageSourceSystem, MessageSender]] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._senders: Dict[MessageSourceSystem, MessageSender] = dict(senders or {})
        self.logger = logger or logging.getLogger("ChatNotifier")

    def register(self, system: MessageSourceSystem, sender: MessageSender) -> None:
        self._senders[system] = sender

    async def send(self, source: MessageSource, message: str) -> None:
        sender = self._senders.get(source.system)
        if sender is None:
            raise LookupError(f"No message sender registered for {source.system.name}")

        await sender.send_message(source.chat_id, message)
        preview = message if len(message) <= 80 else f"{message[:77]}..."
        self.logger.info("Sent message to %s chat %s: %s", source.system.name, source.chat_id, preview)
