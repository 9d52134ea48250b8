from __future__ import annotations

import logging

from aiogram import Bot, F, Router
from aiogram.exceptions import TelegramAPIError
from aiogram.types import Message

from spinapp.chat import ChatMessage
from spinapp.state import SharedRaffle


log = logging.getLogger(__name__)


def chat_message_from_telegram(msg: Message) -> ChatMessage | None:
    """Uniform chat message for a Telegram text message (None for anonymous posts)."""
    user = msg.from_user
    if user is None or msg.text is None:
        return None
    name = ("@" + user.username) if user.username else (user.full_name or None)
    return ChatMessage(
        author_channel_id=f"telegram-{user.id}",
        author_name=name,
        message=msg.text,
    )


def build_router(shared: SharedRaffle) -> Router:
    router = Router()

    @router.message(F.text)
    async def on_text(msg: Message) -> None:
        chat_message = chat_message_from_telegram(msg)
        if chat_message is None:
            return
        log.debug("received message from telegram")
        with shared.locked() as logic:
            logic.handle_chat_message(chat_message)

    return router


class TelegramNotifier:
    """Posts raffle notifications to the configured group."""

    def __init__(self, bot: Bot, chat_id: int) -> None:
        self.bot = bot
        self.chat_id = chat_id

    async def notify(self, text: str) -> None:
        try:
            await self.bot.send_message(chat_id=self.chat_id, text=text, disable_web_page_preview=True)
        except TelegramAPIError as e:
            log.warning("could not send notification: %s", e)
