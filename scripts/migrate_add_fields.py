# scripts/migrate_add_fields.py
# Add any model column missing from an existing database (older schemas).
import logging
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dream_interpreter.app import configure_logging
from dream_interpreter.config import Config
from dream_interpreter.models import db, ensure_table_columns
from flask import Flask

logger = logging.getLogger("migrate_add_fields")


def main():
    configure_logging(Config.LOG_LEVEL)
    app = Flask(__name__)
    app.config.from_object(Config)
    db.init_app(app)

    with app.app_context():
        db.create_all()
        added = ensure_table_columns()

    for name in added:
        logger.info("Added column: %s", name)
    logger.info("Migration completed (%d column(s) added).", len(added))


if __name__ == "__main__":
    main()
