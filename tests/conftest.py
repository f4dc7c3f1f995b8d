import os
from datetime import datetime, timedelta, timezone

import pytest
from flask import g

from pokerclub import create_app, db
from pokerclub.models import Game, User
from pokerclub.services.timer import service as timer_service


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = 'DEBUG'
    BCRYPT_LOG_ROUNDS = 4
    CORS_ORIGINS = ['http://localhost:3000']
    TIMER_DEFAULT_LEVEL_SEC = 600
    TIMER_DEFAULT_BREAK_SEC = 300
    TIMER_DEFAULT_BREAK_AFTER = 4
    TIMER_CAS_ATTEMPTS = 3


T0 = datetime(2026, 3, 14, 20, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Wall clock the tests move by hand."""

    def __init__(self, start=T0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)

    @application.before_request
    def _forget_cached_user():
        # The app context outlives each request, so drop the user Flask-Login cached on g
        g.pop('_login_user', None)

    with application.app_context():
        # Ensure models are imported so tables are created
        import pokerclub.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def clock(monkeypatch):
    fake = FakeClock()
    monkeypatch.setattr(timer_service, 'utcnow', fake)
    return fake


def _make_user(username, role):
    user = User(username=username, role=role)
    user.set_password('password')
    db.session.add(user)
    db.session.commit()
    return user


def _logged_in_client(flask_app, username):
    test_client = flask_app.test_client()
    res = test_client.post('/api/auth/login', json={'username': username, 'password': 'password'})
    assert res.status_code == 200
    return test_client


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def admin_client(flask_app):
    _make_user('admin', 'admin')
    return _logged_in_client(flask_app, 'admin')


@pytest.fixture()
def player_client(flask_app):
    _make_user('player', 'player')
    return _logged_in_client(flask_app, 'player')


@pytest.fixture()
def make_game(flask_app):
    def _make(name='Friday Freezeout', status='scheduled'):
        game = Game(name=name, status=status)
        db.session.add(game)
        db.session.commit()
        return game.id
    return _make
