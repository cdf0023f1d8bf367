"""
Telegram Channel Implementation

Runs the engine behind a Telegram bot using python-telegram-bot.
"""
from typing import List, Optional, Union

from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.constants import ChatAction
from telegram.ext import Application, CallbackQueryHandler, ContextTypes, MessageHandler, filters

from servicebot.core.config import settings
from servicebot.interfaces.base import Channel, ChannelNotAvailableError
from servicebot.services.engine import ChatEngine
from servicebot.services.events import InboundEvent, Location
from servicebot.services.replies import Choice, Responder

NOT_AUTHORIZED = "Sorry, you are not authorized to use this bot."


class TelegramResponder(Responder):
    """Replies into one Telegram chat."""

    def __init__(self, bot: Bot, chat_id: int):
        self.bot = bot
        self.chat_id = chat_id

    async def send_text(self, text: str) -> None:
        await self.bot.send_message(chat_id=self.chat_id, text=text)

    async def send_image(self, url: str, caption: Optional[str] = None) -> None:
        await self.bot.send_photo(chat_id=self.chat_id, photo=url, caption=caption)

    async def send_audio(self, audio: Union[str, bytes], caption: Optional[str] = None) -> None:
        if isinstance(audio, bytes):
            # Synthesized speech is sent as a voice note
            await self.bot.send_voice(chat_id=self.chat_id, voice=audio, caption=caption)
        else:
            await self.bot.send_audio(chat_id=self.chat_id, audio=audio, caption=caption)

    async def send_choices(self, text: str, choices: List[Choice]) -> None:
        keyboard = [[InlineKeyboardButton(c.label, callback_data=c.payload)] for c in choices]
        await self.bot.send_message(
            chat_id=self.chat_id,
            text=text,
            reply_markup=InlineKeyboardMarkup(keyboard),
        )

    async def send_typing(self) -> None:
        await self.bot.send_chat_action(chat_id=self.chat_id, action=ChatAction.TYPING)


class TelegramChannel(Channel):
    """
    Telegram bot channel implementation.

    Features:
    - Text, commands and "ok" submissions
    - Photos, voice/audio, video, documents and locations as media events
    - Inline keyboard buttons for service and option selection
    """

    def __init__(
        self,
        engine: ChatEngine,
        channel_id: str = "telegram",
        bot_token: Optional[str] = None,
        allowed_user_ids: Optional[list] = None,
    ):
        """
        Initialize Telegram channel.

        Args:
            engine: Engine that handles the events
            channel_id: Unique identifier for this channel
            bot_token: Telegram bot token (from settings if None)
            allowed_user_ids: Allowed Telegram user IDs; empty allows everyone
        """
        config = {
            "bot_token": bot_token or settings.telegram.bot_token,
            "allowed_user_ids": allowed_user_ids if allowed_user_ids is not None else settings.telegram.allowed_user_ids,
        }
        super().__init__(channel_id, engine, config)

        self.bot_token = self.config["bot_token"]
        # Telegram API returns int user IDs
        self.allowed_user_ids = [int(uid) for uid in self.config["allowed_user_ids"]]
        self.application: Optional[Application] = None

    def is_available(self) -> bool:
        return bool(self.bot_token)

    def is_authorized(self, user_id: Optional[int]) -> bool:
        if not self.allowed_user_ids:
            return True
        return user_id in self.allowed_user_ids

    async def start(self):
        """Start the Telegram bot (begin polling for updates)."""
        if not self.is_available():
            raise ChannelNotAvailableError("Telegram channel not configured")

        self.logger.info("Starting Telegram bot...")

        self.application = Application.builder().token(self.bot_token).build()
        self.application.add_handler(CallbackQueryHandler(self._handle_callback))
        self.application.add_handler(MessageHandler(
            filters.ALL & ~filters.UpdateType.EDITED,
            self._handle_message,
        ))

        await self.application.initialize()
        await self.application.start()
        await self.application.updater.start_polling()

        self._is_running = True
        self.logger.info("Telegram bot started successfully")

    async def stop(self):
        """Stop the Telegram bot."""
        if not self.application:
            return

        self.logger.info("Stopping Telegram bot...")

        await self.application.updater.stop()
        await self.application.stop()
        await self.application.shutdown()

        self._is_running = False
        self.logger.info("Telegram bot stopped")

    async def _file_url(self, bot: Bot, file_id: str) -> str:
        telegram_file = await bot.get_file(file_id)
        return telegram_file.file_path

    async def build_event(self, update: Update, bot: Bot) -> Optional[InboundEvent]:
        """Convert a message update into an InboundEvent; None for unsupported content."""
        message = update.effective_message
        if message is None:
            return None

        fields = {}
        if message.photo:
            fields["image_url"] = await self._file_url(bot, message.photo[-1].file_id)
        elif message.voice or message.audio:
            media = message.voice or message.audio
            fields["audio_url"] = await self._file_url(bot, media.file_id)
        elif message.video or message.video_note:
            media = message.video or message.video_note
            fields["video_url"] = await self._file_url(bot, media.file_id)
        elif message.document:
            fields["file_url"] = await self._file_url(bot, message.document.file_id)
        elif message.location:
            fields["location"] = Location(lat=message.location.latitude, long=message.location.longitude)

        text = message.text or message.caption
        if not fields and not text:
            return None

        user = update.effective_user
        return InboundEvent(
            session_id=str(update.effective_chat.id),
            text=text,
            sender_id=str(user.id) if user else None,
            channel=self.channel_id,
            **fields,
        )

    async def _handle_message(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle any incoming message."""
        user_id = update.effective_user.id if update.effective_user else None
        if not self.is_authorized(user_id):
            self.logger.warning(f"User {user_id} not authorized")
            await update.effective_message.reply_text(NOT_AUTHORIZED)
            return

        event = await self.build_event(update, context.bot)
        if event is None:
            self.logger.debug(f"Ignoring unsupported update from {user_id}")
            return

        self.logger.info(f"Received message from user_id={user_id} in chat {event.session_id}")
        responder = TelegramResponder(context.bot, update.effective_chat.id)
        await self.engine.handle_event(event, responder)

    async def _handle_callback(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle inline keyboard presses."""
        query = update.callback_query
        await query.answer()

        user_id = query.from_user.id if query.from_user else None
        if not self.is_authorized(user_id):
            self.logger.warning(f"User {user_id} not authorized")
            return

        chat_id = query.message.chat.id
        event = InboundEvent(
            session_id=str(chat_id),
            payload=query.data,
            sender_id=str(user_id),
            channel=self.channel_id,
        )
        await self.engine.handle_event(event, TelegramResponder(context.bot, chat_id))
