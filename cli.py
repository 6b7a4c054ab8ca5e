import click
from flask import current_app

from bot.telegram_bot import run_bot
from models.user import User
from services.auth_service import set_password
from utils.seed_data import bootstrap_database


def register_commands(app):
    @app.cli.command("init-db")
    def init_db():
        """Migrate the schema, then seed default settings and the admin account."""
        bootstrap_database()
        click.echo("Database ready.")

    @app.cli.command("set-password")
    @click.argument("username")
    @click.password_option()
    def set_password_command(username, password):
        """Change a user's password."""
        user = User.query.filter_by(username=username).first()
        if user is None:
            raise click.ClickException(f"No such user: {username}")
        set_password(user, password)
        click.echo(f"Password updated for {username}.")

    @app.cli.command("run-bot")
    def run_bot_command():
        """Run the Telegram bot in the foreground."""
        if not current_app.config.get("TELEGRAM_BOT_TOKEN"):
            raise click.ClickException("TELEGRAM_BOT_TOKEN is not set")
        run_bot(current_app._get_current_object())
