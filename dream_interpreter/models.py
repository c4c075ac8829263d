# dream_interpreter/models.py
import json
import logging
import time
from datetime import datetime

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import inspect, text

logger = logging.getLogger(__name__)

db = SQLAlchemy()


# ---------------------------------------
# MODELS
# ---------------------------------------
class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(200), nullable=False)
    role = db.Column(db.String(20), nullable=False, default="user")
    api_calls_used = db.Column(db.Integer, nullable=False, default=0)
    reset_token = db.Column(db.String(64))
    reset_token_expires = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    dreams = db.relationship("Dream", backref="user", lazy=True, cascade="all, delete-orphan")
    dream_symbols = db.relationship("DreamSymbol", lazy=True, cascade="all, delete-orphan")

    def to_public(self):
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "api_calls_used": self.api_calls_used or 0,
        }


class Dream(db.Model):
    __tablename__ = "dreams"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    dream_text = db.Column(db.Text, nullable=False)
    sentiment = db.Column(db.String(20))
    sentiment_score = db.Column(db.Float)

    # TEXT storing JSON lists
    symbols = db.Column(db.Text)
    themes = db.Column(db.Text)

    interpretation = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    @property
    def symbol_list(self):
        value = safe_json_load(self.symbols)
        return value if isinstance(value, list) else []

    @property
    def theme_list(self):
        value = safe_json_load(self.themes)
        return value if isinstance(value, list) else []


class DreamSymbol(db.Model):
    __tablename__ = "dream_symbols"
    __table_args__ = (db.UniqueConstraint("user_id", "symbol", name="uq_dream_symbols_user_symbol"),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    symbol = db.Column(db.String(100), nullable=False)
    frequency = db.Column(db.Integer, nullable=False, default=1)
    last_seen = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# ---------------------------------------
# HELPERS
# ---------------------------------------
def safe_json_load(val):
    """Try to decode JSON string; if already a dict/list return it; if None return None."""
    if val is None:
        return None
    if isinstance(val, (dict, list)):
        return val
    try:
        return json.loads(val)
    except (TypeError, ValueError):
        return val


def isoformat(dt):
    """UTC datetime as an ISO-8601 string with millisecond precision and a Z suffix."""
    if dt is None:
        return None
    return dt.isoformat(timespec="milliseconds") + "Z"


def check_connection(retries=3, delay=1.0):
    """Run a trivial query against the database, retrying with a fixed delay.

    The last error is re-raised once every attempt has failed.
    """
    for attempt in range(1, retries + 1):
        try:
            db.session.execute(text("SELECT 1"))
            logger.info("Database connected successfully")
            return True
        except Exception as exc:
            db.session.rollback()
            if attempt == retries:
                logger.error("Database connection failed after %d attempts: %s", retries, exc)
                raise
            logger.warning("Connection attempt %d failed, retrying in %.1fs...", attempt, delay)
            time.sleep(delay)
    return False


# ---------------------------------------
# DB MIGRATION HELPERS (lightweight)
# ---------------------------------------
def add_column_if_missing(table, column):
    """Add `column` to `table` with ALTER TABLE if the live schema does not have it yet.

    Only nullable columns or columns with a scalar default can be added this way.
    """
    existing = {c["name"] for c in inspect(db.engine).get_columns(table.name)}
    if column.name in existing:
        return False

    column_type = column.type.compile(dialect=db.engine.dialect)
    default_sql = "NULL"
    if column.default is not None and column.default.is_scalar:
        value = column.default.arg
        default_sql = f"'{value}'" if isinstance(value, str) else str(value)

    with db.engine.begin() as conn:
        conn.execute(text(f"ALTER TABLE {table.name} ADD COLUMN {column.name} {column_type} DEFAULT {default_sql}"))
    logger.info("[migrate] Added column `%s` to `%s`", column.name, table.name)
    return True


def ensure_table_columns():
    """
    Ensure every model column exists in its table, adding missing ones.
    Run inside app context after create_all().
    """
    added = []
    insp = inspect(db.engine)
    for table in db.metadata.sorted_tables:
        if not insp.has_table(table.name):
            continue
        for column in table.columns:
            if column.primary_key:
                continue
            try:
                if add_column_if_missing(table, column):
                    added.append(f"{table.name}.{column.name}")
            except Exception:
                logger.exception("[migrate] Failed adding column %s.%s", table.name, column.name)
    return added
