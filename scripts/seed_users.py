# scripts/seed_users.py
# Create (or reset) the test accounts used during development.
import logging
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dream_interpreter.app import configure_logging
from dream_interpreter.auth import hash_password
from dream_interpreter.config import Config
from dream_interpreter.models import User, check_connection, db
from flask import Flask

logger = logging.getLogger("seed_users")

TEST_USERS = [
    {"email": "admin", "password": "111", "role": "admin"},
    {"email": "john", "password": "123", "role": "user"},
]


def seed_users(users=TEST_USERS):
    """Create or update each user. Must run inside an app context."""
    for entry in users:
        password_hash = hash_password(entry["password"])
        user = User.query.filter_by(email=entry["email"]).first()
        if user:
            user.password_hash = password_hash
            user.role = entry["role"]
            logger.info("Updated password for: %s", entry["email"])
        else:
            db.session.add(User(email=entry["email"], password_hash=password_hash, role=entry["role"]))
            logger.info("Created user: %s", entry["email"])
    db.session.commit()


def main():
    configure_logging(Config.LOG_LEVEL)
    app = Flask(__name__)
    app.config.from_object(Config)
    db.init_app(app)

    with app.app_context():
        try:
            check_connection()
            db.create_all()
            seed_users()
        except Exception:
            logger.exception("Seeding failed")
            sys.exit(1)

    logger.info("Test credentials: admin / 111 (admin), john / 123 (user)")


if __name__ == "__main__":
    main()
