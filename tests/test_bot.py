"""Tests for the Telegram command logic in bot/telegram_bot.py."""

from __future__ import annotations

import asyncio
import os
import threading
from types import SimpleNamespace

import pytest

from bot.telegram_bot import (
    LOGIN_FIRST,
    LOGIN_USAGE,
    NOT_AVAILABLE,
    BotFrontend,
    BotSessionStore,
    build_application,
    start_bot_thread,
)
from tests.conftest import ADMIN_PASSWORD, ADMIN_USERNAME, post_register

CHAT = 4242


@pytest.fixture()
def sessions() -> BotSessionStore:
    return BotSessionStore()


@pytest.fixture()
def frontend(app, sessions) -> BotFrontend:
    return BotFrontend(app, sessions)


class TestSessionStore:
    def test_set_get_discard(self, sessions) -> None:
        assert sessions.get(1) is None
        sessions.set(1, "identity")
        assert sessions.get(1) == "identity"
        assert len(sessions) == 1
        sessions.discard(1)
        sessions.discard(1)
        assert len(sessions) == 0

    def test_clear(self, sessions) -> None:
        sessions.set(1, "a")
        sessions.set(2, "b")
        sessions.clear()
        assert len(sessions) == 0


class TestCommands:
    def test_start(self, frontend) -> None:
        assert "/login" in frontend.start().text

    @pytest.mark.parametrize("args", [[], ["only-user"], None])
    def test_login_usage(self, frontend, args) -> None:
        assert frontend.login(CHAT, args).text == LOGIN_USAGE

    def test_login_bad_credentials(self, frontend, sessions) -> None:
        reply = frontend.login(CHAT, [ADMIN_USERNAME, "nope"])
        assert reply.text == "Invalid credentials"
        assert sessions.get(CHAT) is None

    def test_login_success(self, frontend, sessions) -> None:
        reply = frontend.login(CHAT, [ADMIN_USERNAME, ADMIN_PASSWORD])
        assert reply.text == f"Logged in. Hello, {ADMIN_USERNAME}!"
        identity = sessions.get(CHAT)
        assert identity.username == ADMIN_USERNAME
        assert identity.is_admin

    def test_login_by_email(self, frontend, client, sessions) -> None:
        post_register(client, "alice", "alice@example.com", "wonderland")
        frontend.login(CHAT, ["alice@example.com", "wonderland"])
        assert sessions.get(CHAT).username == "alice"

    def test_download_requires_login(self, frontend) -> None:
        assert frontend.download(CHAT).text == LOGIN_FIRST

    def test_web_session_does_not_log_in_bot(self, frontend, admin_client) -> None:
        assert frontend.download(CHAT).text == LOGIN_FIRST

    def test_download_missing(self, frontend) -> None:
        frontend.login(CHAT, [ADMIN_USERNAME, ADMIN_PASSWORD])
        assert frontend.download(CHAT).text == NOT_AVAILABLE

    def test_download_document(self, frontend, app) -> None:
        path = os.path.join(app.config["DOWNLOADS_DIR"], "whitecore-default.zip")
        with open(path, "wb") as fh:
            fh.write(b"PK")

        frontend.login(CHAT, [ADMIN_USERNAME, ADMIN_PASSWORD])
        reply = frontend.download(CHAT)
        assert reply.document == path
        assert reply.filename == "whitecore-default.zip"

    def test_logout(self, frontend, sessions) -> None:
        frontend.login(CHAT, [ADMIN_USERNAME, ADMIN_PASSWORD])
        assert frontend.logout(CHAT).text == "You are logged out."
        assert sessions.get(CHAT) is None
        assert frontend.download(CHAT).text == LOGIN_FIRST

    def test_chats_are_independent(self, frontend) -> None:
        frontend.login(CHAT, [ADMIN_USERNAME, ADMIN_PASSWORD])
        assert frontend.download(CHAT + 1).text == LOGIN_FIRST


class TestWiring:
    def test_build_application_registers_commands(self, frontend) -> None:
        application = build_application("123456:TEST-TOKEN", frontend)
        commands = set()
        for handlers in application.handlers.values():
            for handler in handlers:
                commands |= set(handler.commands)
        assert commands == {"start", "login", "download", "logout"}

    def test_disabled_without_token(self, app) -> None:
        assert start_bot_thread(app) is None


class RecordingBot:
    def __init__(self):
        self.messages = []
        self.documents = []

    async def send_message(self, chat_id, text):
        self.messages.append((chat_id, text))

    async def send_document(self, chat_id, document, filename):
        self.documents.append((chat_id, document, filename))


def command_callback(application, command):
    for handlers in application.handlers.values():
        for handler in handlers:
            if command in handler.commands:
                return handler.callback
    raise LookupError(command)


def run_command(application, command, args=()):
    bot = RecordingBot()
    update = SimpleNamespace(effective_chat=SimpleNamespace(id=CHAT))
    context = SimpleNamespace(args=list(args), bot=bot)
    asyncio.run(command_callback(application, command)(update, context))
    return bot


class TestHandlers:
    def test_commands_run_off_event_loop_thread(self, frontend, monkeypatch) -> None:
        threads = []

        def recording(method):
            def wrapper(*args):
                threads.append(threading.current_thread())
                return method(*args)
            return wrapper

        for name in ("login", "download", "logout"):
            monkeypatch.setattr(frontend, name, recording(getattr(frontend, name)))

        application = build_application("123456:TEST-TOKEN", frontend)
        run_command(application, "login", [ADMIN_USERNAME, ADMIN_PASSWORD])
        run_command(application, "download")
        run_command(application, "logout")

        assert len(threads) == 3
        assert all(thread is not threading.main_thread() for thread in threads)

    def test_login_reply_sent(self, frontend, sessions) -> None:
        application = build_application("123456:TEST-TOKEN", frontend)
        bot = run_command(application, "login", [ADMIN_USERNAME, ADMIN_PASSWORD])
        assert bot.messages == [(CHAT, f"Logged in. Hello, {ADMIN_USERNAME}!")]
        assert sessions.get(CHAT).username == ADMIN_USERNAME

    def test_download_sends_file_contents(self, frontend, app) -> None:
        path = os.path.join(app.config["DOWNLOADS_DIR"], "whitecore-default.zip")
        with open(path, "wb") as fh:
            fh.write(b"PK archive")

        application = build_application("123456:TEST-TOKEN", frontend)
        run_command(application, "login", [ADMIN_USERNAME, ADMIN_PASSWORD])
        bot = run_command(application, "download")
        assert bot.documents == [(CHAT, b"PK archive", "whitecore-default.zip")]
        assert bot.messages == []
