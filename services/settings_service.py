from dataclasses import dataclass

from extensions import db
from models.setting import Setting

IMAGE_URL_KEY = "image_url"
ARCHIVE_PATH_KEY = "archive_path"


@dataclass(frozen=True)
class AssetSettings:
    """The two recognised setting keys and the values they fall back to."""

    image_url: str
    archive_path: str

    @classmethod
    def from_config(cls, config):
        return cls(
            image_url=config["DEFAULT_IMAGE_URL"],
            archive_path=config["DEFAULT_ARCHIVE_PATH"],
        )

    def fallback_for(self, key: str) -> str:
        if key == IMAGE_URL_KEY:
            return self.image_url
        if key == ARCHIVE_PATH_KEY:
            return self.archive_path
        raise KeyError(key)

    def items(self):
        return [(IMAGE_URL_KEY, self.image_url), (ARCHIVE_PATH_KEY, self.archive_path)]


def get_setting(key: str, fallback=None):
    row = db.session.get(Setting, key)
    if row is None:
        return fallback
    return row.value


def ensure_setting(key: str, fallback: str) -> str:
    row = db.session.get(Setting, key)
    if row is not None:
        return row.value

    db.session.add(Setting(key=key, value=fallback))
    db.session.commit()
    return fallback


def set_setting(key: str, value: str) -> None:
    row = db.session.get(Setting, key)
    if row is None:
        db.session.add(Setting(key=key, value=value))
    else:
        row.value = value
    db.session.commit()
