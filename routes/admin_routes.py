from flask import Blueprint, current_app, redirect, render_template, request, url_for
from werkzeug.exceptions import RequestEntityTooLarge

from services.asset_service import (
    ARCHIVE_SLOT, IMAGE_SLOT, UploadError, current_value, describe_archive,
    image_exists, replace_asset,
)
from services.session_state import current_state
from utils.decorators import admin_required

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


@admin_bp.route("")
@admin_required
def dashboard():
    image_url = current_value(IMAGE_SLOT)

    return render_template(
        "admin.html",
        title="Admin panel",
        image_url=image_url,
        image_exists=image_exists(image_url),
        archive_path=current_value(ARCHIVE_SLOT),
        archive=describe_archive(),
    )


def _handle_upload(slot, success_message):
    state = current_state()

    try:
        replace_asset(slot, request.files.get(slot.form_field))
    except UploadError as exc:
        state.flash("error", str(exc))
        return redirect(url_for("admin.dashboard"))

    state.flash("success", success_message)
    return redirect(url_for("admin.dashboard"))


# =========================================================
# ASSET UPLOADS
# =========================================================
@admin_bp.route("/upload-image", methods=["POST"])
@admin_required
def upload_image():
    return _handle_upload(IMAGE_SLOT, "Image updated")


@admin_bp.route("/upload-zip", methods=["POST"])
@admin_required
def upload_zip():
    return _handle_upload(ARCHIVE_SLOT, "Archive updated")


@admin_bp.app_errorhandler(RequestEntityTooLarge)
def upload_too_large(exc):
    limit = current_app.config.get("MAX_CONTENT_LENGTH")
    current_app.logger.warning("Rejected upload over %s bytes on %s", limit, request.path)
    current_state().flash("error", "The file is too large")
    return redirect(url_for("admin.dashboard"))
