# dream_interpreter/routes/admin.py
import logging
from datetime import datetime, timedelta

from flask import Blueprint, jsonify
from sqlalchemy import func

from dream_interpreter.auth import admin_required, auth_required
from dream_interpreter.models import Dream, DreamSymbol, User, db, isoformat
from dream_interpreter.routes.dreams import int_arg

logger = logging.getLogger(__name__)

bp = Blueprint("admin", __name__, url_prefix="/api/admin")


def _day(value):
    # sqlite returns DATE() as a string, postgres as a date
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()[:10]
    return str(value)[:10]


@bp.route("/users", methods=["GET"])
@auth_required
@admin_required
def users():
    try:
        rows = (db.session.query(
                    User,
                    func.count(Dream.id).label("total_dreams"),
                    func.max(Dream.created_at).label("last_dream_date"),
                )
                .outerjoin(Dream, Dream.user_id == User.id)
                .group_by(User.id)
                .order_by(User.created_at.desc(), User.id.desc())
                .all())

        formatted = []
        for user, total_dreams, last_dream_date in rows:
            formatted.append({
                "id": user.id,
                "email": user.email,
                "role": user.role,
                "api_calls_used": user.api_calls_used or 0,
                "created_at": isoformat(user.created_at),
                "total_dreams": total_dreams,
                "last_dream_date": isoformat(last_dream_date),
            })
        return jsonify({"users": formatted, "count": len(formatted)})
    except Exception:
        logger.exception("Admin users fetch error")
        return jsonify({"error": "Failed to fetch users"}), 500


@bp.route("/analytics", methods=["GET"])
@auth_required
@admin_required
def analytics():
    try:
        total_users = User.query.filter_by(role="user").count()
        total_dreams = Dream.query.count()
        total_api_calls = db.session.query(func.coalesce(func.sum(User.api_calls_used), 0)).scalar()

        total_frequency = func.sum(DreamSymbol.frequency).label("total_frequency")
        common_symbols = (db.session.query(DreamSymbol.symbol, total_frequency)
                          .group_by(DreamSymbol.symbol)
                          .order_by(total_frequency.desc())
                          .limit(20).all())

        sentiment_dist = (db.session.query(Dream.sentiment, func.count(Dream.id))
                          .filter(Dream.sentiment.isnot(None))
                          .group_by(Dream.sentiment).all())

        day = func.date(Dream.created_at).label("date")
        since = datetime.utcnow() - timedelta(days=30)
        dreams_per_day = (db.session.query(day, func.count(Dream.id))
                          .filter(Dream.created_at >= since)
                          .group_by(day)
                          .order_by(day.desc()).all())

        dream_count = func.count(Dream.id).label("dream_count")
        active_users = (db.session.query(User.email, User.api_calls_used, dream_count)
                        .outerjoin(Dream, Dream.user_id == User.id)
                        .filter(User.role == "user")
                        .group_by(User.id, User.email, User.api_calls_used)
                        .order_by(dream_count.desc())
                        .limit(10).all())

        average = round(total_dreams / total_users, 2) if total_users > 0 else 0

        return jsonify({
            "total_users": total_users,
            "total_dreams": total_dreams,
            "total_api_calls": int(total_api_calls or 0),
            "average_dreams_per_user": average,
            "most_common_symbols": [
                {"symbol": symbol, "total_frequency": int(freq or 0)} for symbol, freq in common_symbols
            ],
            "sentiment_distribution": [
                {"sentiment": sentiment, "count": count} for sentiment, count in sentiment_dist
            ],
            "dreams_per_day": [{"date": _day(d), "count": count} for d, count in dreams_per_day],
            "most_active_users": [
                {"email": email, "dream_count": count, "api_calls_used": calls or 0}
                for email, calls, count in active_users
            ],
        })
    except Exception:
        logger.exception("Admin analytics fetch error")
        return jsonify({"error": "Failed to fetch analytics"}), 500


@bp.route("/user/<int:user_id>", methods=["GET"])
@auth_required
@admin_required
def user_detail(user_id):
    try:
        user = db.session.get(User, user_id)
        if user is None:
            return jsonify({"error": "User not found"}), 404

        recent = (Dream.query.filter_by(user_id=user_id)
                  .order_by(Dream.created_at.desc(), Dream.id.desc())
                  .limit(20).all())
        recurring = (DreamSymbol.query.filter_by(user_id=user_id)
                     .order_by(DreamSymbol.frequency.desc(), DreamSymbol.last_seen.desc()).all())

        return jsonify({
            "user": {**user.to_public(), "created_at": isoformat(user.created_at)},
            "recent_dreams": [
                {
                    "id": d.id,
                    "dream_text": d.dream_text,
                    "sentiment": d.sentiment,
                    "created_at": isoformat(d.created_at),
                }
                for d in recent
            ],
            "recurring_symbols": [{"symbol": s.symbol, "frequency": s.frequency} for s in recurring],
        })
    except Exception:
        logger.exception("Admin user detail fetch error")
        return jsonify({"error": "Failed to fetch user details"}), 500


@bp.route("/recent-activity", methods=["GET"])
@auth_required
@admin_required
def recent_activity():
    try:
        limit = int_arg("limit", 20)

        recent_dreams = (db.session.query(Dream, User.email)
                         .join(User, Dream.user_id == User.id)
                         .order_by(Dream.created_at.desc(), Dream.id.desc())
                         .limit(limit).all())
        recent_users = (User.query.filter_by(role="user")
                        .order_by(User.created_at.desc(), User.id.desc())
                        .limit(limit).all())

        return jsonify({
            "recent_dreams": [
                {
                    "id": d.id,
                    "dream_text": d.dream_text,
                    "sentiment": d.sentiment,
                    "created_at": isoformat(d.created_at),
                    "user_email": email,
                }
                for d, email in recent_dreams
            ],
            "recent_registrations": [
                {"id": u.id, "email": u.email, "created_at": isoformat(u.created_at)}
                for u in recent_users
            ],
        })
    except Exception:
        logger.exception("Recent activity fetch error")
        return jsonify({"error": "Failed to fetch recent activity"}), 500
