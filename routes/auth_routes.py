from flask import Blueprint, current_app, redirect, render_template, request, url_for
from flask_login import login_required

from services.auth_service import RegistrationError, find_user, register_user
from services.captcha_service import check_captcha
from services.session_state import current_state
from utils.decorators import safe_next
from utils.password_utils import verify_password

# Define the blueprint
auth_bp = Blueprint("auth", __name__)


def _captcha_passed(state):
    # Consumed before anything else so a stale answer can never be replayed
    expected = state.consume_captcha()
    if check_captcha(request.form.get("captcha"), expected):
        return True

    current_app.logger.info("Rejected captcha on %s from %s", request.path, request.remote_addr)
    state.flash("error", "Invalid captcha")
    return False


# =========================================================
# REGISTER ROUTE
# =========================================================
@auth_bp.route("/register", methods=["GET", "POST"])
def register():
    if request.method == "GET":
        return render_template(
            "register.html",
            title="Register",
            next=safe_next(request.args.get("next")),
        )

    state = current_state()
    next_url = safe_next(request.form.get("next"))
    back = redirect(url_for("auth.register", next=next_url))

    if not _captcha_passed(state):
        return back

    try:
        user = register_user(
            request.form.get("username", ""),
            request.form.get("email", ""),
            request.form.get("password", ""),
        )
    except RegistrationError as exc:
        state.flash("error", str(exc))
        return back

    state.establish(user)
    state.flash("success", "Account created, welcome!")
    return redirect(next_url)


# =========================================================
# LOGIN ROUTE
# =========================================================
@auth_bp.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "GET":
        return render_template(
            "login.html",
            title="Log in",
            next=safe_next(request.args.get("next")),
        )

    state = current_state()
    next_url = safe_next(request.form.get("next"))
    back = redirect(url_for("auth.login", next=next_url))

    if not _captcha_passed(state):
        return back

    # 1. Username or email
    user = find_user(request.form.get("username", ""))
    if not user:
        state.flash("error", "User not found")
        return back

    # 2. Password
    if not verify_password(request.form.get("password", ""), user.password_hash):
        state.flash("error", "Wrong password")
        return back

    # 3. Session
    state.establish(user)
    current_app.logger.info("User %s logged in", user.username)
    state.flash("success", "You are logged in")
    return redirect(next_url)


# =========================================================
# LOGOUT ROUTE
# =========================================================
@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    current_state().destroy()
    return redirect(url_for("main.index"))
