import pytest

from dream_interpreter.app import create_app
from dream_interpreter.auth import hash_password
from dream_interpreter.config import TestingConfig
from dream_interpreter.models import User, db
from dream_interpreter.utils import sentiment


class FakeSentimentPipeline:
    """Stands in for the transformers pipeline: fixed label/score, records its inputs."""

    def __init__(self, label="POSITIVE", score=0.9734):
        self.label = label
        self.score = score
        self.calls = []
        self.kwargs = []

    def __call__(self, text, **kwargs):
        self.calls.append(text)
        self.kwargs.append(kwargs)
        return [{"label": self.label, "score": self.score}]


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def fake_sentiment(monkeypatch):
    pipe = FakeSentimentPipeline()
    monkeypatch.setattr(sentiment, "_sentiment", pipe)
    return pipe


@pytest.fixture(autouse=True)
def no_loaded_model(monkeypatch):
    monkeypatch.setattr(sentiment, "_sentiment", None)
    monkeypatch.setattr(sentiment, "_loading", False)


def create_user(app, email="john", password="123", role="user"):
    with app.app_context():
        user = User(email=email, password_hash=hash_password(password), role=role)
        db.session.add(user)
        db.session.commit()
        return user.id


def login(client, email="john", password="123"):
    resp = client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return {"Authorization": f"Bearer {resp.get_json()['token']}"}


@pytest.fixture
def user_headers(app, client):
    create_user(app, "john", "123")
    return login(client, "john", "123")


@pytest.fixture
def admin_headers(app, client):
    create_user(app, "admin", "111", role="admin")
    return login(client, "admin", "111")
