# dream_interpreter/routes/auth.py
import logging
import secrets
from datetime import datetime, timedelta

from flask import Blueprint, current_app, jsonify

from dream_interpreter.auth import check_password, hash_password, make_token
from dream_interpreter.models import User, db
from dream_interpreter.routes import json_body

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__, url_prefix="/api/auth")

GENERIC_RESET_MESSAGE = "If that username exists, a reset link has been sent."


def _fail(message, status):
    return jsonify({"success": False, "message": message}), status


def _as_text(value):
    return value if isinstance(value, str) else ""


@bp.route("/register", methods=["POST"])
def register():
    try:
        data = json_body()
        email = _as_text(data.get("email"))
        password = _as_text(data.get("password"))

        if not email.strip() or not password:
            return _fail("Username and password are required", 400)

        if len(password) < current_app.config["MIN_PASSWORD_LENGTH"]:
            return _fail("Password must be at least 3 characters", 400)

        username = email.strip().lower()
        if User.query.filter_by(email=username).first():
            return _fail("This username is already taken. Please choose another.", 400)

        user = User(email=username, password_hash=hash_password(password))
        db.session.add(user)
        db.session.commit()

        logger.info("New user registered: %s", username)
        return jsonify({
            "success": True,
            "message": "Registration successful! Please login.",
            "userId": user.id,
        }), 201
    except Exception:
        db.session.rollback()
        logger.exception("Registration error")
        return _fail("Registration failed. Please try again.", 500)


@bp.route("/login", methods=["POST"])
def login():
    try:
        data = json_body()
        email = _as_text(data.get("email"))
        password = _as_text(data.get("password"))

        if not email.strip() or not password:
            return _fail("Username and password are required", 400)

        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user or not check_password(password, user.password_hash):
            return _fail("Invalid username or password. Please try again.", 401)

        token = make_token(user)
        logger.info("User logged in: %s (%s)", user.email, user.role)

        return jsonify({
            "success": True,
            "token": token,
            "user": user.to_public(),
        })
    except Exception:
        logger.exception("Login error")
        return _fail("Login failed. Please try again.", 500)


@bp.route("/forgot-password", methods=["POST"])
def forgot_password():
    try:
        data = json_body()
        email = _as_text(data.get("email"))
        if not email.strip():
            return _fail("Username is required", 400)

        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            return jsonify({"success": True, "message": GENERIC_RESET_MESSAGE})

        user.reset_token = secrets.token_hex(32)
        user.reset_token_expires = datetime.utcnow() + timedelta(
            minutes=current_app.config["RESET_TOKEN_TTL_MINUTES"])
        db.session.commit()

        # no mail delivery; the token is only available in the server log
        logger.info("Reset token generated for %s: %s", user.email, user.reset_token)
        return jsonify({"success": True, "message": GENERIC_RESET_MESSAGE})
    except Exception:
        db.session.rollback()
        logger.exception("Forgot password error")
        return _fail("Failed to process request", 500)


@bp.route("/reset-password", methods=["POST"])
def reset_password():
    try:
        data = json_body()
        token = _as_text(data.get("token"))
        new_password = _as_text(data.get("newPassword"))

        if not token or not new_password:
            return _fail("Token and new password are required", 400)

        if len(new_password) < current_app.config["MIN_PASSWORD_LENGTH"]:
            return _fail("Password must be at least 3 characters", 400)

        user = User.query.filter(
            User.reset_token == token,
            User.reset_token_expires > datetime.utcnow(),
        ).first()
        if not user:
            return _fail("Invalid or expired reset token", 400)

        user.password_hash = hash_password(new_password)
        user.reset_token = None
        user.reset_token_expires = None
        db.session.commit()

        logger.info("Password reset successful for user %s", user.id)
        return jsonify({
            "success": True,
            "message": "Password reset successful! Please login with your new password.",
        })
    except Exception:
        db.session.rollback()
        logger.exception("Reset password error")
        return _fail("Failed to reset password", 500)


@bp.route("/logout", methods=["POST"])
def logout():
    return jsonify({"success": True, "message": "Logged out successfully"})
