from functools import wraps
from urllib.parse import urlsplit

from flask import redirect, url_for, flash
from flask_login import current_user


def admin_required(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        # Anonymous and non-admin users get the same treatment: back to login
        if not current_user.is_authenticated or not current_user.is_admin:
            flash("Admin access required", "error")
            return redirect(url_for("auth.login", next=url_for("admin.dashboard")))

        return func(*args, **kwargs)
    return wrapper


def safe_next(target, default="/"):
    """Only follow local redirect targets."""
    if not target or not target.startswith("/") or target.startswith("//"):
        return default
    parts = urlsplit(target)
    if parts.scheme or parts.netloc or "\\" in target:
        return default
    return target
