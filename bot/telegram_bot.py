"""Telegram front end: login, download and logout as chat commands.

Command logic lives in ``BotFrontend`` and returns ``BotReply`` values, so it
can run without a Telegram connection. ``build_application`` wires it into a
python-telegram-bot ``Application``. Bot logins are tracked per chat in a
``BotSessionStore`` that has nothing to do with web sessions.
"""

import asyncio
import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from telegram import Update
from telegram.ext import Application, CommandHandler, ContextTypes

from services.asset_service import describe_archive
from services.auth_service import authenticate_user
from services.session_state import Identity

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "Whitecore bot is ready. Commands:\n"
    "/login <username> <password>\n"
    "/download - get the current file\n"
    "/logout - log out"
)
LOGIN_USAGE = "Usage: /login <username> <password>"
LOGIN_FIRST = "Log in first: /login <username> <password>"
NOT_AVAILABLE = "The file is not available yet, contact the admin"


@dataclass(frozen=True)
class BotReply:
    text: Optional[str] = None
    document: Optional[str] = None

    @property
    def filename(self):
        return os.path.basename(self.document) if self.document else None


class BotSessionStore:
    """Chat id -> identity of whoever logged in from that chat."""

    def __init__(self):
        self._sessions: Dict[int, Identity] = {}

    def get(self, chat_id) -> Optional[Identity]:
        return self._sessions.get(chat_id)

    def set(self, chat_id, identity: Identity) -> None:
        self._sessions[chat_id] = identity

    def discard(self, chat_id) -> None:
        self._sessions.pop(chat_id, None)

    def clear(self) -> None:
        self._sessions.clear()

    def __len__(self):
        return len(self._sessions)


class BotFrontend:
    def __init__(self, app, sessions: BotSessionStore):
        self.app = app
        self.sessions = sessions

    def start(self) -> BotReply:
        return BotReply(text=HELP_TEXT)

    def login(self, chat_id, args) -> BotReply:
        if not args or len(args) < 2:
            return BotReply(text=LOGIN_USAGE)

        username, password = args[0], args[1]
        with self.app.app_context():
            user = authenticate_user(username, password)
            if not user:
                return BotReply(text="Invalid credentials")
            identity = Identity.from_user(user)

        self.sessions.set(chat_id, identity)
        logger.info("Bot login for %s in chat %s", identity.username, chat_id)
        return BotReply(text=f"Logged in. Hello, {identity.username}!")

    def download(self, chat_id) -> BotReply:
        if self.sessions.get(chat_id) is None:
            return BotReply(text=LOGIN_FIRST)

        with self.app.app_context():
            archive = describe_archive()

        if not archive.exists:
            return BotReply(text=NOT_AVAILABLE)
        return BotReply(document=archive.path)

    def logout(self, chat_id) -> BotReply:
        self.sessions.discard(chat_id)
        return BotReply(text="You are logged out.")


async def _send(update: Update, context: ContextTypes.DEFAULT_TYPE, reply: BotReply):
    chat_id = update.effective_chat.id
    if reply.document:
        payload = await asyncio.to_thread(Path(reply.document).read_bytes)
        await context.bot.send_document(chat_id=chat_id, document=payload, filename=reply.filename)
    else:
        await context.bot.send_message(chat_id=chat_id, text=reply.text)


def build_application(token: str, frontend: BotFrontend) -> Application:
    application = Application.builder().token(token).build()

    # Commands touching the database or disk run off the event loop
    async def on_start(update, context):
        await _send(update, context, frontend.start())

    async def on_login(update, context):
        reply = await asyncio.to_thread(frontend.login, update.effective_chat.id, context.args)
        await _send(update, context, reply)

    async def on_download(update, context):
        reply = await asyncio.to_thread(frontend.download, update.effective_chat.id)
        await _send(update, context, reply)

    async def on_logout(update, context):
        reply = await asyncio.to_thread(frontend.logout, update.effective_chat.id)
        await _send(update, context, reply)

    async def on_error(update, context):
        logger.error("Telegram bot error: %s", context.error, exc_info=context.error)

    application.add_handler(CommandHandler("start", on_start))
    application.add_handler(CommandHandler("login", on_login))
    application.add_handler(CommandHandler("download", on_download))
    application.add_handler(CommandHandler("logout", on_logout))
    application.add_error_handler(on_error)
    return application


def run_bot(app, token: Optional[str] = None) -> None:
    """Poll Telegram until interrupted. Blocks the calling thread."""
    token = token or app.config.get("TELEGRAM_BOT_TOKEN")
    frontend = BotFrontend(app, BotSessionStore())
    application = build_application(token, frontend)

    logger.info("Telegram bot started")
    if threading.current_thread() is threading.main_thread():
        application.run_polling()
        return

    # Worker threads have no event loop and cannot install signal handlers
    asyncio.set_event_loop(asyncio.new_event_loop())
    application.run_polling(stop_signals=None)


def start_bot_thread(app):
    token = app.config.get("TELEGRAM_BOT_TOKEN")
    if not token:
        logger.info("Telegram bot disabled (set TELEGRAM_BOT_TOKEN to enable it)")
        return None

    thread = threading.Thread(target=run_bot, args=(app, token), name="telegram-bot", daemon=True)
    thread.start()
    return thread
