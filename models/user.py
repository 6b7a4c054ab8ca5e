from flask_login import UserMixin

from extensions import db


class User(UserMixin, db.Model):
    __tablename__ = "users"
    __table_args__ = (
        # NULL for accounts created before email was collected (e.g. the seeded admin)
        db.Index(
            "idx_users_email",
            "email",
            unique=True,
            sqlite_where=db.text("email IS NOT NULL"),
            postgresql_where=db.text("email IS NOT NULL"),
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False)
    email = db.Column(db.String(255), nullable=True)
    password_hash = db.Column(db.String(255), nullable=False)
    is_admin = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    def __repr__(self):
        return f"<User {self.username}>"
