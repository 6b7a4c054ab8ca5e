from flask import (
    Blueprint, current_app, make_response, redirect, render_template,
    send_file, send_from_directory, url_for,
)
from flask_login import current_user, login_required

from services.asset_service import IMAGE_SLOT, current_value, describe_archive
from services.captcha_service import generate_challenge
from services.session_state import current_state

main_bp = Blueprint("main", __name__)


@main_bp.route("/")
def index():
    archive = describe_archive()

    if current_user.is_authenticated:
        download_url = url_for("main.download")
    else:
        download_url = url_for("auth.login", next="/")

    return render_template(
        "index.html",
        title="Whitecore Client",
        image_url=current_value(IMAGE_SLOT),
        archive=archive,
        download_url=download_url,
    )


@main_bp.route("/captcha")
def captcha():
    answer, image = generate_challenge()
    current_state().issue_captcha(answer)

    response = make_response(image)
    response.headers["Content-Type"] = "image/png"
    response.headers["Cache-Control"] = "no-store"
    return response


@main_bp.route("/download")
@login_required
def download():
    archive = describe_archive()

    if not archive.exists:
        current_app.logger.warning("Download requested but archive is missing: %s", archive.path)
        current_state().flash("error", "The file is not available yet, contact the admin")
        return redirect(url_for("main.index"))

    response = send_file(
        archive.path,
        as_attachment=True,
        download_name=archive.filename or "whitecore.zip",
    )
    response.headers["Cache-Control"] = "no-store"
    return response


@main_bp.route("/uploads/<path:filename>")
def uploaded_image(filename):
    return send_from_directory(current_app.config["UPLOADS_DIR"], filename, max_age=86400)
