# dream_interpreter/auth.py
from datetime import datetime, timedelta
from functools import wraps

import bcrypt
import jwt
from flask import current_app, g, jsonify, request

ALGORITHM = "HS256"


# ---------------------------------------
# PASSWORDS
# ---------------------------------------
def hash_password(password, rounds=None):
    if rounds is None:
        rounds = current_app.config.get("BCRYPT_ROUNDS", 10)
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=rounds)).decode()


def check_password(password, password_hash):
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        # malformed stored hash
        return False


# ---------------------------------------
# TOKENS
# ---------------------------------------
def make_token(user):
    hours = current_app.config.get("JWT_EXPIRES_HOURS", 24)
    payload = {
        "userId": user.id,
        "email": user.email,
        "role": user.role,
        "exp": datetime.utcnow() + timedelta(hours=hours),
    }
    return jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm=ALGORITHM)


def decode_token(token):
    """Decode a bearer token. Raises jwt.ExpiredSignatureError / jwt.InvalidTokenError."""
    return jwt.decode(token, current_app.config["JWT_SECRET"], algorithms=[ALGORITHM])


# ---------------------------------------
# GUARDS
# ---------------------------------------
def auth_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        header = request.headers.get("Authorization", "")
        if not header or not header.startswith("Bearer "):
            return jsonify({"error": "No token provided. Please login to access this resource."}), 401

        token = header.split(" ", 1)[1].strip()
        try:
            decoded = decode_token(token)
        except jwt.ExpiredSignatureError:
            return jsonify({"error": "Token expired. Please login again."}), 401
        except jwt.InvalidTokenError:
            return jsonify({"error": "Invalid token. Please login again."}), 401

        user_id = decoded.get("userId")
        if not isinstance(user_id, int):
            return jsonify({"error": "Authentication failed."}), 401

        g.user = {
            "user_id": user_id,
            "email": decoded.get("email"),
            "role": decoded.get("role"),
        }
        return f(*args, **kwargs)

    return wrapper


def admin_required(f):
    """Must be stacked under auth_required."""
    @wraps(f)
    def wrapper(*args, **kwargs):
        user = g.get("user")
        if not user:
            return jsonify({"error": "Authentication required."}), 401
        if user.get("role") != "admin":
            return jsonify({"error": "Access denied. Admin privileges required."}), 403
        return f(*args, **kwargs)

    return wrapper
