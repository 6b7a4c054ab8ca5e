import logging
import os
import sys
from datetime import datetime

from flask import Flask, redirect, request, url_for
from flask_login import current_user
from werkzeug.exceptions import HTTPException

from config.config import Config
from extensions import db, login_manager, migrate

# Route Imports
from routes.auth_routes import auth_bp
from routes.admin_routes import admin_bp
from routes.main_routes import main_bp

from bot.telegram_bot import start_bot_thread
from cli import register_commands
from models.user import User
from services.session_state import current_state
from utils.decorators import safe_next
from utils.seed_data import bootstrap_database

MIGRATIONS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "migrations")
GENERIC_ERROR = "Something went wrong. Please try again."


def configure_logging(app):
    if not logging.getLogger().handlers:
        logging.basicConfig(level=app.config["LOG_LEVEL"],
                            format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    app.logger.setLevel(app.config["LOG_LEVEL"])


def register_error_handlers(app):
    @app.errorhandler(Exception)
    def handle_unexpected_error(exc):
        # 404s, 405s and friends keep their normal response
        if isinstance(exc, HTTPException):
            return exc

        db.session.rollback()
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        current_state().flash("error", GENERIC_ERROR)

        referrer = request.referrer
        if referrer and referrer.startswith(request.host_url):
            target = "/" + referrer[len(request.host_url):]
        else:
            target = None
        return redirect(safe_next(target, url_for("main.index")))


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    configure_logging(app)

    # Ensure folders exist
    os.makedirs(app.config["UPLOADS_DIR"], exist_ok=True)
    os.makedirs(app.config["DOWNLOADS_DIR"], exist_ok=True)

    # Initialize Extensions
    db.init_app(app)
    migrate.init_app(app, db, directory=MIGRATIONS_DIR, render_as_batch=True)

    login_manager.init_app(app)
    login_manager.login_view = "auth.login"
    login_manager.login_message = "Log in to continue"
    login_manager.login_message_category = "error"

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    # Register Blueprints
    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)

    @app.context_processor
    def inject_year():
        return {"now_year": datetime.now().year}

    @app.context_processor
    def inject_identity():
        # Snapshot stored at login; dropped when Flask-Login no longer knows the user
        if not current_user.is_authenticated:
            return {"identity": None}
        return {"identity": current_state().identity}

    register_error_handlers(app)
    register_commands(app)

    if app.config.get("AUTO_BOOTSTRAP"):
        with app.app_context():
            bootstrap_database()

    app.logger.debug("Application created and configured")
    return app


def main():
    try:
        app = create_app()
    except Exception:
        logging.getLogger(__name__).exception("Failed to initialise the application")
        sys.exit(1)

    start_bot_thread(app)

    app.logger.info("Whitecore client ready: http://localhost:%s", app.config["PORT"])
    app.run(host="0.0.0.0", port=app.config["PORT"])


if __name__ == "__main__":
    main()
