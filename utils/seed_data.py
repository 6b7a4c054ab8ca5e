import logging

import sqlalchemy as sa
from flask import current_app
from flask_migrate import stamp, upgrade

from extensions import db
from models.user import User
from services.settings_service import AssetSettings, ensure_setting
from utils.password_utils import hash_password

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_PASSWORD = "whitecore-admin"

# First revision: users without email, settings
PRE_EMAIL_REVISION = "3a7c9e1d2b40"


def adopt_legacy_schema():
    """Stamp databases created before migrations were tracked.

    Such a database already has a ``users`` table but no ``alembic_version``.
    It is stamped at the revision its columns match so ``upgrade`` only adds
    what is missing.
    """
    inspector = sa.inspect(db.engine)
    tables = inspector.get_table_names()
    if "alembic_version" in tables or "users" not in tables:
        return None

    columns = {column["name"] for column in inspector.get_columns("users")}
    revision = "head" if "email" in columns else PRE_EMAIL_REVISION
    stamp(revision=revision)
    logger.info("Adopted untracked schema at revision %s", revision)
    return revision


def migrate_database():
    adopt_legacy_schema()
    upgrade()


def seed_settings():
    defaults = AssetSettings.from_config(current_app.config)
    for key, fallback in defaults.items():
        ensure_setting(key, fallback)
    logger.info("Settings verified (%s)", ", ".join(key for key, _ in defaults.items()))


def seed_admin():
    username = current_app.config["ADMIN_USERNAME"]
    password = current_app.config["ADMIN_PASSWORD"]

    existing = User.query.filter_by(username=username).first()
    if existing:
        return existing

    admin = User(
        username=username,
        password_hash=hash_password(password),
        is_admin=True,
    )
    db.session.add(admin)
    db.session.commit()

    logger.info("Created default admin %s (id=%s)", admin.username, admin.id)
    if password == DEFAULT_ADMIN_PASSWORD:
        logger.warning(
            "Admin %s uses the built-in default password; set ADMIN_PASSWORD "
            "or run `flask set-password %s`", admin.username, admin.username
        )
    return admin


def bootstrap_database():
    migrate_database()
    seed_settings()
    seed_admin()
