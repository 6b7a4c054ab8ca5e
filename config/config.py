import os
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


def _database_uri(data_root):
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    db_path = os.getenv("DB_PATH", os.path.join(data_root, "data.sqlite"))
    return "sqlite:///" + os.path.abspath(db_path)


class Config:
    SECRET_KEY = os.getenv("SESSION_SECRET") or os.getenv("SECRET_KEY", "whitecore-dev-secret")

    DATA_ROOT = os.getenv("DATA_ROOT", BASE_DIR)
    UPLOADS_DIR = os.getenv("UPLOADS_DIR", os.path.join(DATA_ROOT, "uploads"))
    DOWNLOADS_DIR = os.getenv("DOWNLOADS_DIR", os.path.join(DATA_ROOT, "downloads"))

    # SQLite file by default; any SQLAlchemy URL works through DATABASE_URL
    SQLALCHEMY_DATABASE_URI = _database_uri(DATA_ROOT)
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    PORT = int(os.getenv("PORT", 3000))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    SESSION_COOKIE_NAME = "whitecore.sid"
    SESSION_COOKIE_HTTPONLY = True
    PERMANENT_SESSION_LIFETIME = timedelta(hours=2)

    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", 512 * 1024 * 1024))

    DEFAULT_IMAGE_URL = "/static/img/placeholder.svg"
    DEFAULT_ARCHIVE_PATH = "downloads/whitecore-default.zip"

    # Uploaded images are served from /uploads, so SVG and HTML stay out
    ALLOWED_IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}

    # Seeded on first boot; rotate with `flask set-password`
    ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "whitecore-admin")

    TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN")

    # Migrate and seed on startup; turn off to manage the schema by hand with `flask db`
    AUTO_BOOTSTRAP = os.getenv("AUTO_BOOTSTRAP", "1").lower() not in ("0", "false", "no")
