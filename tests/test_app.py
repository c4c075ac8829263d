"""
Tests for the application shell: health, error handlers, startup migration, scripts.
"""

import logging
from unittest.mock import patch

import pytest
from flask import Flask
from sqlalchemy import inspect, text

from dream_interpreter.app import _dispose_engine, create_app, main
from dream_interpreter.config import TestingConfig
from dream_interpreter.models import User, check_connection, db, ensure_table_columns
from scripts.seed_users import seed_users


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "ok"
    assert body["environment"] == "testing"
    assert body["uptime"] >= 0
    assert set(body["memory"]) == {"used", "total"}


def test_health_never_fails(client):
    with patch("dream_interpreter.app.psutil.Process", side_effect=RuntimeError("no proc")):
        resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok", "error": "health check failed"}


def test_unknown_endpoint_is_json_404(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.get_json() == {"error": "Endpoint not found"}


def test_wrong_method_is_json(client):
    resp = client.get("/api/auth/login")
    assert resp.status_code == 405
    assert "error" in resp.get_json()


def test_unhandled_error_hides_details_outside_development(app):
    def boom():
        raise ValueError("kaboom")

    app.add_url_rule("/boom", "boom", boom)
    client = app.test_client()

    resp = client.get("/boom")
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Internal server error"}

    app.config["APP_ENV"] = "development"
    resp = client.get("/boom")
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "kaboom"}


def test_requests_are_logged_with_origin(client, caplog):
    caplog.set_level(logging.INFO, logger="dream_interpreter.app")
    client.get("/health", headers={"Origin": "http://x"})
    client.get("/api/nope")
    assert "[REQUEST] GET /health | Origin: http://x" in caplog.messages
    assert "[REQUEST] GET /api/nope | Origin: none" in caplog.messages


def test_cors_allows_any_origin(client):
    resp = client.get("/health", headers={"Origin": "http://example.com"})
    assert resp.headers.get("Access-Control-Allow-Origin") in ("*", "http://example.com")


def test_create_app_preloads_models_when_enabled():
    class PreloadConfig(TestingConfig):
        PRELOAD_MODELS = True

    with patch("dream_interpreter.app.load_models_in_background") as loader:
        app = create_app(PreloadConfig)
    loader.assert_called_once_with(PreloadConfig.SENTIMENT_MODEL)
    with app.app_context():
        db.drop_all()


def test_ensure_table_columns_adds_missing_columns(app):
    with app.app_context():
        with db.engine.begin() as conn:
            conn.execute(text("DROP TABLE dream_symbols"))
            conn.execute(text("DROP TABLE dreams"))
            conn.execute(text("CREATE TABLE dreams (id INTEGER PRIMARY KEY, user_id INTEGER NOT NULL, "
                              "dream_text TEXT NOT NULL, created_at DATETIME)"))
        db.create_all()

        added = ensure_table_columns()
        assert set(added) == {"dreams.sentiment", "dreams.sentiment_score", "dreams.symbols",
                              "dreams.themes", "dreams.interpretation"}
        columns = {c["name"] for c in inspect(db.engine).get_columns("dreams")}
        assert {"sentiment", "themes"} <= columns
        assert ensure_table_columns() == []


def test_check_connection_retries_then_raises(app):
    with app.app_context():
        with patch.object(db.session, "execute", side_effect=RuntimeError("db down")) as execute, \
                patch("dream_interpreter.models.time.sleep") as sleep:
            with pytest.raises(RuntimeError):
                check_connection(retries=3, delay=0.5)
        assert execute.call_count == 3
        assert sleep.call_count == 2
        assert check_connection() is True


def test_seed_users_creates_and_updates(app):
    with app.app_context():
        seed_users()
        seed_users([{"email": "john", "password": "999", "role": "admin"}])
        users = {u.email: u.role for u in User.query.all()}
    assert users == {"admin": "admin", "john": "admin"}


# ---------------------------------------
# main()
# ---------------------------------------
class UnreachableConfig(TestingConfig):
    SQLALCHEMY_DATABASE_URI = "sqlite:////nonexistent-dream-interpreter-dir/sub/dreams.db"


def test_main_exits_when_database_is_unreachable(monkeypatch):
    monkeypatch.setattr("dream_interpreter.app.Config", UnreachableConfig)
    with patch("dream_interpreter.models.time.sleep") as sleep, \
            patch("dream_interpreter.app.atexit.register") as register, \
            patch.object(Flask, "run") as run:
        with pytest.raises(SystemExit) as exc:
            main()
    assert exc.value.code == 1
    assert sleep.call_count == 2
    register.assert_not_called()
    run.assert_not_called()


def test_main_creates_schema_then_serves(monkeypatch):
    monkeypatch.setattr("dream_interpreter.app.Config", TestingConfig)
    with patch("dream_interpreter.app.atexit.register") as register, \
            patch.object(Flask, "run", autospec=True) as run:
        main()

    run.assert_called_once()
    app = run.call_args.args[0]
    assert run.call_args.kwargs["port"] == TestingConfig.PORT
    register.assert_called_once_with(_dispose_engine, app)
    with app.app_context():
        assert {"users", "dreams", "dream_symbols"} <= set(inspect(db.engine).get_table_names())
        db.drop_all()
