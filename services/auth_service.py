import logging
import re

from extensions import db
from models.user import User
from utils.password_utils import hash_password, verify_password

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_USERNAME_LENGTH = 3


class RegistrationError(ValueError):
    """Registration input rejected; the message is shown to the user."""


def find_user(identifier: str):
    identifier = (identifier or "").strip()
    if not identifier:
        return None

    return User.query.filter(
        (User.username == identifier) | (User.email == identifier.lower())
    ).first()


def authenticate_user(identifier: str, password: str):
    user = find_user(identifier)

    if not user:
        return None

    if not verify_password(password, user.password_hash):
        return None

    return user


def register_user(username: str, email: str, password: str) -> User:
    username = (username or "").strip()
    email = (email or "").strip().lower()

    if not username or not email or not password:
        raise RegistrationError("Username, email and password are required")

    if len(username) < MIN_USERNAME_LENGTH:
        raise RegistrationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters")

    if not EMAIL_RE.match(email):
        raise RegistrationError("Enter a valid email address")

    if User.query.filter_by(username=username).first():
        raise RegistrationError("That username is already taken")

    if User.query.filter_by(email=email).first():
        raise RegistrationError("That email is already registered")

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        is_admin=False,
    )
    db.session.add(user)
    db.session.commit()

    logger.info("Registered user %s (id=%s)", user.username, user.id)
    return user


def set_password(user: User, password: str) -> None:
    user.password_hash = hash_password(password)
    db.session.commit()
    logger.info("Password changed for %s", user.username)
