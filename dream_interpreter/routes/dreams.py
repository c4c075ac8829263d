# dream_interpreter/routes/dreams.py
import json
import logging

from flask import Blueprint, current_app, g, jsonify, request

from dream_interpreter.auth import auth_required
from dream_interpreter.models import Dream, DreamSymbol, User, db, isoformat
from dream_interpreter.routes import json_body
from dream_interpreter.utils.interpreter import interpret_dream
from dream_interpreter.utils.sentiment import load_models_in_background, models_ready

logger = logging.getLogger(__name__)

bp = Blueprint("dreams", __name__, url_prefix="/api/dreams")

UNLIMITED_REMAINING = 999


def int_arg(name, default):
    """Positive integer query argument; missing, malformed or non-positive values give `default`."""
    try:
        value = int(request.args.get(name, ""))
    except ValueError:
        return default
    return value if value > 0 else default


def api_calls_remaining(used):
    limit = current_app.config.get("API_CALL_LIMIT", 0)
    if not limit:
        return UNLIMITED_REMAINING
    return max(limit - used, 0)


def record_symbols(user_id, symbols):
    """Count each detected symbol for the user. One bad symbol does not stop the others."""
    for item in symbols:
        name = item.get("symbol")
        try:
            with db.session.begin_nested():
                existing = DreamSymbol.query.filter_by(user_id=user_id, symbol=name).first()
                if existing:
                    existing.frequency = (existing.frequency or 0) + 1
                else:
                    db.session.add(DreamSymbol(user_id=user_id, symbol=name, frequency=1))
        except Exception:
            logger.exception("Error updating symbol %s", name)


# ---------------------------------------
# INTERPRET DREAM
# ---------------------------------------
@bp.route("/interpret", methods=["POST"])
@auth_required
def interpret():
    try:
        data = json_body()
        dream_text = data.get("dream_text")

        if not dream_text or not isinstance(dream_text, str):
            return jsonify({"error": "Dream text is required"}), 400

        trimmed = dream_text.strip()
        if len(trimmed) < current_app.config["MIN_DREAM_LENGTH"]:
            return jsonify({"error": "Please describe your dream (minimum 10 characters)"}), 400
        if len(trimmed) > current_app.config["MAX_DREAM_LENGTH"]:
            return jsonify({"error": "Dream description is too long. Please keep it under 5000 characters."}), 400

        if not models_ready():
            load_models_in_background(current_app.config["SENTIMENT_MODEL"])
            return jsonify({"error": "AI models are still loading. Please try again in a moment."}), 503

        user = db.session.get(User, g.user["user_id"])
        if user is None:
            return jsonify({"error": "User not found"}), 404

        limit = current_app.config.get("API_CALL_LIMIT", 0)
        warning = None
        if limit and (user.api_calls_used or 0) >= limit:
            warning = (f"You have exceeded your {limit} free API calls. Analysis will continue, "
                       "but consider upgrading for unlimited interpretations.")

        logger.info("Interpreting dream for user %s (%s)...", user.id, user.email)
        analysis = interpret_dream(
            trimmed,
            symbol_dictionary=current_app.extensions.get("symbol_dictionary"),
            use_keyword_model=current_app.config.get("KEYWORD_MODEL_ENABLED", False),
        )
        tone = analysis["emotional_tone"]

        dream = Dream(
            user_id=user.id,
            dream_text=trimmed,
            sentiment=tone["sentiment"],
            sentiment_score=float(tone["confidence"].rstrip("%")) / 100,
            symbols=json.dumps(analysis["symbols_detected"]),
            themes=json.dumps(analysis["themes"]),
            interpretation=analysis["ai_interpretation"],
        )
        db.session.add(dream)
        db.session.flush()

        record_symbols(user.id, analysis["symbols_detected"])

        user.api_calls_used = (user.api_calls_used or 0) + 1
        db.session.commit()

        logger.info("Dream interpreted successfully for %s", user.email)

        response = {}
        if warning:
            response["warning"] = warning
        response.update({
            "emotional_tone": tone,
            "symbols_detected": analysis["symbols_detected"],
            "ai_interpretation": analysis["ai_interpretation"],
            "personalized_advice": analysis["personalized_advice"],
            "analysis_summary": analysis["analysis_summary"],
            "themes": analysis["themes"],
            "api_calls_remaining": api_calls_remaining(user.api_calls_used),
        })
        return jsonify(response)
    except Exception:
        db.session.rollback()
        logger.exception("Dream interpretation error")
        return jsonify({"error": "Failed to interpret dream. Please try again."}), 500


# ---------------------------------------
# HISTORY / STATS
# ---------------------------------------
@bp.route("/history", methods=["GET"])
@auth_required
def history():
    try:
        limit = int_arg("limit", 50)
        offset = int_arg("offset", 0)

        rows = (Dream.query.filter_by(user_id=g.user["user_id"])
                .order_by(Dream.created_at.desc(), Dream.id.desc())
                .offset(offset).limit(limit).all())

        dreams = []
        for d in rows:
            dreams.append({
                "id": d.id,
                "dream_text": d.dream_text,
                "sentiment": d.sentiment or "NEUTRAL",
                "symbols": [
                    {"symbol": s.get("symbol"), "meaning": s.get("meaning")}
                    for s in d.symbol_list if isinstance(s, dict)
                ],
                "created_at": isoformat(d.created_at),
            })
        return jsonify({"dreams": dreams})
    except Exception:
        logger.exception("History fetch error")
        return jsonify({"error": "Failed to fetch dream history"}), 500


@bp.route("/stats", methods=["GET"])
@auth_required
def stats():
    try:
        user = db.session.get(User, g.user["user_id"])
        if user is None:
            return jsonify({"error": "User not found"}), 404

        dream_count = Dream.query.filter_by(user_id=user.id).count()
        recurring = (DreamSymbol.query.filter_by(user_id=user.id)
                     .order_by(DreamSymbol.frequency.desc(), DreamSymbol.last_seen.desc())
                     .limit(10).all())

        used = user.api_calls_used or 0
        return jsonify({
            "api_calls_used": used,
            "api_calls_remaining": api_calls_remaining(used),
            "total_dreams": dream_count,
            "recurring_symbols": [{"symbol": s.symbol, "frequency": s.frequency} for s in recurring],
        })
    except Exception:
        logger.exception("Stats fetch error")
        return jsonify({"error": "Failed to fetch statistics"}), 500


# ---------------------------------------
# SINGLE DREAM
# ---------------------------------------
@bp.route("/<int:dream_id>", methods=["GET"])
@auth_required
def get_dream(dream_id):
    try:
        dream = Dream.query.filter_by(id=dream_id, user_id=g.user["user_id"]).first()
        if dream is None:
            return jsonify({"error": "Dream not found"}), 404

        return jsonify({
            "dream": {
                "id": dream.id,
                "dream_text": dream.dream_text,
                "sentiment": dream.sentiment or "NEUTRAL",
                "symbols": dream.symbol_list,
                "themes": dream.theme_list,
                "interpretation": dream.interpretation,
                "created_at": isoformat(dream.created_at),
            }
        })
    except Exception:
        logger.exception("Dream fetch error")
        return jsonify({"error": "Failed to fetch dream"}), 500


@bp.route("/<int:dream_id>", methods=["DELETE"])
@auth_required
def delete_dream(dream_id):
    try:
        deleted = Dream.query.filter_by(id=dream_id, user_id=g.user["user_id"]).delete()
        db.session.commit()
        if deleted == 0:
            return jsonify({"error": "Dream not found"}), 404
        return jsonify({"success": True, "message": "Dream deleted successfully"})
    except Exception:
        db.session.rollback()
        logger.exception("Dream deletion error")
        return jsonify({"error": "Failed to delete dream"}), 500
