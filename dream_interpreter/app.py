# dream_interpreter/app.py
import atexit
import logging
import sys
import time
from datetime import datetime

import psutil
from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from dream_interpreter.config import Config
from dream_interpreter.models import check_connection, db, ensure_table_columns
from dream_interpreter.routes import admin, auth, dreams
from dream_interpreter.utils.sentiment import load_models_in_background
from dream_interpreter.utils.symbols import build_symbol_dictionary

logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()


def configure_logging(level="INFO"):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _megabytes(n):
    return round(n / 1024 / 1024)


def register_handlers(app):
    @app.before_request
    def log_request():
        logger.info("[REQUEST] %s %s | Origin: %s", request.method, request.path,
                    request.headers.get("Origin") or "none")

    @app.errorhandler(404)
    def not_found(_error):
        return jsonify({"error": "Endpoint not found"}), 404

    @app.errorhandler(Exception)
    def handle_error(error):
        if isinstance(error, HTTPException):
            return jsonify({"error": error.description or error.name}), error.code
        logger.exception("Unhandled error")
        message = str(error) if app.config.get("APP_ENV") == "development" else "Internal server error"
        return jsonify({"error": message or "Internal server error"}), 500

    @app.route("/health", methods=["GET"])
    def health():
        try:
            mem = psutil.Process().memory_info()
            return jsonify({
                "status": "ok",
                "timestamp": datetime.utcnow().isoformat(timespec="milliseconds") + "Z",
                "environment": app.config.get("APP_ENV", "development"),
                "uptime": round(time.monotonic() - STARTED_AT, 3),
                "memory": {"used": _megabytes(mem.rss), "total": _megabytes(psutil.virtual_memory().total)},
            }), 200
        except Exception as exc:
            logger.error("Health check error: %s", exc)
            return jsonify({"status": "ok", "error": "health check failed"}), 200


def init_db(app):
    """Create missing tables and add columns that older databases lack."""
    with app.app_context():
        db.create_all()
        ensure_table_columns()


def create_app(config_object=None, init_schema=True):
    app = Flask(__name__)
    app.config.from_object(config_object or Config)
    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    CORS(app, origins="*", supports_credentials=True)

    db.init_app(app)
    app.register_blueprint(auth.bp)
    app.register_blueprint(dreams.bp)
    app.register_blueprint(admin.bp)
    register_handlers(app)

    if init_schema:
        init_db(app)

    app.extensions["symbol_dictionary"] = build_symbol_dictionary(app.config.get("SYMBOL_CSV_PATH"))

    if app.config.get("PRELOAD_MODELS"):
        load_models_in_background(app.config["SENTIMENT_MODEL"])

    return app


def _dispose_engine(app):
    with app.app_context():
        db.engine.dispose()
    logger.info("Database connection closed")


def main():
    # schema work waits until the database is known to be reachable
    app = create_app(init_schema=False)
    with app.app_context():
        try:
            check_connection()
        except Exception as exc:
            logger.error("Failed to start server: %s", exc)
            sys.exit(1)
    init_db(app)
    atexit.register(_dispose_engine, app)

    port = app.config["PORT"]
    logger.info("Server running on port %s (%s)", port, app.config["APP_ENV"])
    logger.info("Dream Interpreter API ready!")
    app.run(host="0.0.0.0", port=port, debug=app.config["DEBUG"], threaded=True, use_reloader=False)


if __name__ == "__main__":
    main()
