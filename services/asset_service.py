"""Admin-managed assets: the advertised image and the downloadable archive.

Each slot has exactly one current file. Its location is kept in a setting and
the file itself lives in a managed directory. The setting is only pointed at a
new file once that file is on disk. Deleting the previous file afterwards is
best effort: a failure only leaks the old file.
"""

import logging
import mimetypes
import os
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from flask import current_app
from werkzeug.utils import secure_filename

from services.settings_service import (
    ARCHIVE_PATH_KEY,
    IMAGE_URL_KEY,
    AssetSettings,
    get_setting,
    set_setting,
)
from utils.formatting import format_bytes

logger = logging.getLogger(__name__)


class UploadError(ValueError):
    """Upload rejected; the message is shown to the admin."""


def _is_image(file_storage) -> bool:
    return (file_storage.mimetype or "").startswith("image/")


def _is_zip(file_storage) -> bool:
    return (file_storage.filename or "").lower().endswith(".zip")


@dataclass(frozen=True)
class AssetSlot:
    name: str
    setting_key: str
    storage_config: str
    value_prefix: str
    filename_prefix: str
    default_ext: str
    form_field: str
    accepts: Callable
    rejected_message: str
    # Config key of the allowed extension set; None keeps any extension
    extensions_config: Optional[str] = None


IMAGE_SLOT = AssetSlot(
    name="image",
    setting_key=IMAGE_URL_KEY,
    storage_config="UPLOADS_DIR",
    value_prefix="/uploads/",
    filename_prefix="cover",
    default_ext=".png",
    form_field="image",
    accepts=_is_image,
    rejected_message="Only image files are allowed",
    extensions_config="ALLOWED_IMAGE_EXTENSIONS",
)

ARCHIVE_SLOT = AssetSlot(
    name="archive",
    setting_key=ARCHIVE_PATH_KEY,
    storage_config="DOWNLOADS_DIR",
    value_prefix="downloads/",
    filename_prefix="whitecore",
    default_ext=".zip",
    form_field="archive",
    accepts=_is_zip,
    rejected_message="A ZIP archive is required",
)


@dataclass(frozen=True)
class ArchiveInfo:
    path: Optional[str]
    exists: bool
    size: Optional[int] = None
    size_label: Optional[str] = None
    updated_at: Optional[datetime] = None

    @property
    def filename(self):
        return os.path.basename(self.path) if self.path else None


def storage_dir(slot: AssetSlot) -> str:
    return current_app.config[slot.storage_config]


def current_value(slot: AssetSlot) -> str:
    defaults = AssetSettings.from_config(current_app.config)
    return get_setting(slot.setting_key, defaults.fallback_for(slot.setting_key))


def to_absolute_path(stored: str, root: str) -> Optional[str]:
    if not stored:
        return None
    if os.path.isabs(stored):
        return stored
    return os.path.join(root, stored.lstrip("/\\"))


def resolve_managed_path(slot: AssetSlot, stored: str) -> Optional[str]:
    """Absolute path of ``stored`` if it names a file in the slot's managed directory."""
    if not stored or not stored.startswith(slot.value_prefix):
        return None

    name = stored[len(slot.value_prefix):]
    if not name or name != os.path.basename(name) or name in (".", ".."):
        return None
    return os.path.join(storage_dir(slot), name)


def resolve_archive(stored: str) -> Optional[str]:
    managed = resolve_managed_path(ARCHIVE_SLOT, stored)
    if managed:
        return managed
    return to_absolute_path(stored, current_app.config["DATA_ROOT"])


def describe_archive() -> ArchiveInfo:
    path = resolve_archive(current_value(ARCHIVE_SLOT))
    if not path or not os.path.isfile(path):
        return ArchiveInfo(path=path, exists=False)

    stats = os.stat(path)
    return ArchiveInfo(
        path=path,
        exists=True,
        size=stats.st_size,
        size_label=format_bytes(stats.st_size),
        updated_at=datetime.fromtimestamp(stats.st_mtime),
    )


def image_exists(stored: str) -> bool:
    managed = resolve_managed_path(IMAGE_SLOT, stored)
    if managed:
        return os.path.isfile(managed)
    static_folder = current_app.static_folder
    static_prefix = (current_app.static_url_path or "/static").rstrip("/") + "/"
    if stored.startswith(static_prefix) and static_folder:
        return os.path.isfile(os.path.join(static_folder, stored[len(static_prefix):]))
    return False


def choose_extension(slot: AssetSlot, file_storage) -> str:
    """Extension for the stored file, taken from the upload's name.

    Slots with an allow-list reject names outside it. A name without an
    extension falls back to the one implied by the mimetype when that is
    allowed, and to the slot default otherwise.
    """
    ext = os.path.splitext(secure_filename(file_storage.filename or ""))[1].lower()
    if not slot.extensions_config:
        return ext or slot.default_ext

    allowed = current_app.config[slot.extensions_config]
    if ext:
        if ext not in allowed:
            raise UploadError(slot.rejected_message)
        return ext

    guessed = mimetypes.guess_extension(file_storage.mimetype or "")
    return guessed if guessed in allowed else slot.default_ext


def build_filename(slot: AssetSlot, ext: str) -> str:
    return f"{slot.filename_prefix}-{int(time.time() * 1000)}{ext}"


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Could not delete %s: %s", path, exc)


def replace_asset(slot: AssetSlot, file_storage) -> str:
    """Store ``file_storage`` as the new current asset of ``slot``.

    Returns the new setting value.
    """
    if file_storage is None or not file_storage.filename:
        raise UploadError("No file received")

    if not slot.accepts(file_storage):
        raise UploadError(slot.rejected_message)
    ext = choose_extension(slot, file_storage)

    directory = storage_dir(slot)
    os.makedirs(directory, exist_ok=True)

    filename = build_filename(slot, ext)
    new_path = os.path.join(directory, filename)
    new_value = slot.value_prefix + filename

    file_storage.save(new_path)

    previous = current_value(slot)
    try:
        set_setting(slot.setting_key, new_value)
    except Exception:
        _remove_quietly(new_path)
        raise

    logger.info("Replaced %s: %s -> %s", slot.name, previous, new_value)

    previous_path = resolve_managed_path(slot, previous)
    if previous_path and os.path.abspath(previous_path) != os.path.abspath(new_path):
        if os.path.exists(previous_path):
            _remove_quietly(previous_path)

    return new_value
