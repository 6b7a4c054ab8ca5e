"""Typed view over the Flask session cookie.

Besides the identity snapshot of the logged-in user, the session holds the
answer of the outstanding captcha challenge. One-shot flash messages go
through Flask's own ``flash`` machinery so templates can keep using
``get_flashed_messages``.
"""

from dataclasses import asdict, dataclass
from typing import Optional

from flask import flash, session
from flask_login import login_user, logout_user

USER_KEY = "user"
CAPTCHA_KEY = "captcha"


@dataclass(frozen=True)
class Identity:
    id: int
    username: str
    email: str
    is_admin: bool

    @classmethod
    def from_user(cls, user):
        return cls(
            id=user.id,
            username=user.username,
            email=user.email or "",
            is_admin=bool(user.is_admin),
        )

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=int(data["id"]),
            username=data["username"],
            email=data.get("email") or "",
            is_admin=bool(data.get("is_admin")),
        )

    def to_dict(self):
        return asdict(self)


class SessionState:
    def __init__(self, store=None):
        self._store = session if store is None else store

    # ---- identity ----
    @property
    def identity(self) -> Optional[Identity]:
        data = self._store.get(USER_KEY)
        if not data:
            return None
        return Identity.from_dict(data)

    def establish(self, user) -> Identity:
        """Log ``user`` in through Flask-Login and keep a snapshot of them."""
        login_user(user)
        identity = Identity.from_user(user)
        self._store.permanent = True
        self._store[USER_KEY] = identity.to_dict()
        return identity

    def destroy(self) -> None:
        logout_user()
        self._store.clear()

    # ---- captcha ----
    def issue_captcha(self, answer: str) -> None:
        self._store[CAPTCHA_KEY] = answer.lower()

    def consume_captcha(self) -> Optional[str]:
        """Return the outstanding answer and clear it, whatever happens next."""
        answer = self._store.get(CAPTCHA_KEY)
        self._store[CAPTCHA_KEY] = None
        return answer

    # ---- flash ----
    def flash(self, category: str, message: str) -> None:
        flash(message, category)


def current_state() -> SessionState:
    return SessionState()
