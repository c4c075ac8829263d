# dream_interpreter/config.py
import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent


def _load_env_files() -> None:
    # explicit path first, then project .env; variables already set win
    explicit = os.getenv("DREAMS_ENV_FILE", "").strip()
    candidates = []
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.append(Path.cwd() / ".env")

    for path in candidates:
        if path.is_file():
            load_dotenv(path, override=False)


_load_env_files()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid {name}: expected integer value.") from exc


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


class Config:
    APP_ENV = os.getenv("APP_ENV") or os.getenv("FLASK_ENV") or "development"
    DEBUG = APP_ENV == "development"
    TESTING = False
    PORT = _int_env("PORT", 3000)
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # auth
    JWT_SECRET = os.getenv("JWT_SECRET", "CHANGE_THIS_TO_A_RANDOM_SECRET_OF_32_BYTES")
    SECRET_KEY = JWT_SECRET
    JWT_EXPIRES_HOURS = _int_env("JWT_EXPIRES_HOURS", 24)
    BCRYPT_ROUNDS = _int_env("BCRYPT_ROUNDS", 10)
    MIN_PASSWORD_LENGTH = 3
    RESET_TOKEN_TTL_MINUTES = 60

    # database
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL") or f"sqlite:///{BASE_DIR / 'dreams.db'}"
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # analysis
    SENTIMENT_MODEL = os.getenv("SENTIMENT_MODEL", "distilbert-base-uncased-finetuned-sst-2-english")
    PRELOAD_MODELS = _bool_env("PRELOAD_MODELS", True)
    KEYWORD_MODEL_ENABLED = _bool_env("KEYWORD_MODEL_ENABLED", False)
    SYMBOL_CSV_PATH = os.getenv("SYMBOL_CSV_PATH") or None
    MIN_DREAM_LENGTH = 10
    MAX_DREAM_LENGTH = 5000

    # 0 disables the limit
    API_CALL_LIMIT = _int_env("API_CALL_LIMIT", 0)


class TestingConfig(Config):
    APP_ENV = "testing"
    DEBUG = False
    TESTING = True
    JWT_SECRET = "test-secret-key-that-is-long-enough-for-hs256"
    SECRET_KEY = JWT_SECRET
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    BCRYPT_ROUNDS = 4
    PRELOAD_MODELS = False
    KEYWORD_MODEL_ENABLED = False
    SYMBOL_CSV_PATH = None
    API_CALL_LIMIT = 0
