"""
Tests for the admin analytics endpoints.
"""

from datetime import datetime, timedelta

from conftest import create_user, login
from dream_interpreter.models import Dream, DreamSymbol, User, db


def seed_dreams(client, headers, texts):
    for text in texts:
        resp = client.post("/api/dreams/interpret", json={"dream_text": text}, headers=headers)
        assert resp.status_code == 200


def test_users_lists_counts(app, client, admin_headers, user_headers, fake_sentiment):
    seed_dreams(client, user_headers, ["A snake in the water again.", "Flying high above school."])

    body = client.get("/api/admin/users", headers=admin_headers).get_json()
    assert body["count"] == 2
    by_email = {u["email"]: u for u in body["users"]}
    assert by_email["john"]["total_dreams"] == 2
    assert by_email["john"]["api_calls_used"] == 2
    assert by_email["john"]["last_dream_date"].endswith("Z")
    assert by_email["admin"]["total_dreams"] == 0
    assert by_email["admin"]["last_dream_date"] is None


def test_analytics(app, client, admin_headers, user_headers, fake_sentiment):
    create_user(app, "mary", "456")
    mary = login(client, "mary", "456")

    seed_dreams(client, user_headers, ["A snake in the water again.", "Deep water and a snake."])
    fake_sentiment.label = "NEGATIVE"
    seed_dreams(client, mary, ["Water everywhere in the kitchen."])

    body = client.get("/api/admin/analytics", headers=admin_headers).get_json()
    assert body["total_users"] == 2
    assert body["total_dreams"] == 3
    assert body["total_api_calls"] == 3
    assert body["average_dreams_per_user"] == 1.5
    assert body["most_common_symbols"][0] == {"symbol": "Water", "total_frequency": 3}
    assert {"symbol": "Snake", "total_frequency": 2} in body["most_common_symbols"]

    distribution = {row["sentiment"]: row["count"] for row in body["sentiment_distribution"]}
    assert distribution == {"POSITIVE": 2, "NEGATIVE": 1}

    today = datetime.utcnow().strftime("%Y-%m-%d")
    assert body["dreams_per_day"] == [{"date": today, "count": 3}]

    assert body["most_active_users"][0] == {"email": "john", "dream_count": 2, "api_calls_used": 2}
    assert body["most_active_users"][1]["email"] == "mary"


def test_analytics_ignores_dreams_older_than_30_days(app, client, admin_headers, user_headers):
    with app.app_context():
        user = User.query.filter_by(email="john").one()
        db.session.add(Dream(user_id=user.id, dream_text="old dream", sentiment="POSITIVE",
                             created_at=datetime.utcnow() - timedelta(days=45)))
        db.session.commit()

    body = client.get("/api/admin/analytics", headers=admin_headers).get_json()
    assert body["total_dreams"] == 1
    assert body["dreams_per_day"] == []


def test_analytics_with_no_users(client, admin_headers):
    body = client.get("/api/admin/analytics", headers=admin_headers).get_json()
    assert body["total_users"] == 0
    assert body["average_dreams_per_user"] == 0
    assert body["most_common_symbols"] == []


def test_user_detail(app, client, admin_headers, user_headers, fake_sentiment):
    seed_dreams(client, user_headers, ["A snake in the water again."])
    with app.app_context():
        john_id = User.query.filter_by(email="john").one().id

    body = client.get(f"/api/admin/user/{john_id}", headers=admin_headers).get_json()
    assert body["user"]["email"] == "john"
    assert body["user"]["created_at"].endswith("Z")
    assert len(body["recent_dreams"]) == 1
    assert body["recent_dreams"][0]["sentiment"] == "POSITIVE"
    assert {s["symbol"] for s in body["recurring_symbols"]} == {"Water", "Snake"}

    assert client.get("/api/admin/user/9999", headers=admin_headers).status_code == 404


def test_user_detail_breaks_frequency_ties_by_last_seen(app, client, admin_headers, user_headers):
    now = datetime.utcnow()
    with app.app_context():
        john_id = User.query.filter_by(email="john").one().id
        db.session.add_all([
            DreamSymbol(user_id=john_id, symbol="Older", frequency=2, last_seen=now - timedelta(days=3)),
            DreamSymbol(user_id=john_id, symbol="Newer", frequency=2, last_seen=now),
            DreamSymbol(user_id=john_id, symbol="Rare", frequency=1, last_seen=now + timedelta(days=1)),
        ])
        db.session.commit()

    body = client.get(f"/api/admin/user/{john_id}", headers=admin_headers).get_json()
    assert [s["symbol"] for s in body["recurring_symbols"]] == ["Newer", "Older", "Rare"]


def test_recent_activity(app, client, admin_headers, user_headers, fake_sentiment):
    create_user(app, "mary", "456")
    seed_dreams(client, user_headers, ["Dream one about food.", "Dream two about money."])

    body = client.get("/api/admin/recent-activity?limit=1", headers=admin_headers).get_json()
    assert len(body["recent_dreams"]) == 1
    assert body["recent_dreams"][0]["dream_text"] == "Dream two about money."
    assert body["recent_dreams"][0]["user_email"] == "john"
    assert len(body["recent_registrations"]) == 1
    assert body["recent_registrations"][0]["email"] == "mary"

    body = client.get("/api/admin/recent-activity", headers=admin_headers).get_json()
    assert {u["email"] for u in body["recent_registrations"]} == {"john", "mary"}
