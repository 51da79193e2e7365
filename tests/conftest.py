"""
Shared fixtures

Usage:
    pytest tests/ -v

Each test gets a fresh application on an in-memory SQLite database seeded
with the reference data (users u1 admin, u2 duty teacher, u3 teacher;
school year sy-2024-2025; months m-sep with weeks w1..w4 and m-oct without
weeks; classes c1 6A1, c2 7A1, c3 8A1; violation categories v1..v8).
"""

import pytest

from app import create_app
from extensions import db
from models import User
from create_seed_data import seed_database

NEW_PASSWORD = 'NewPass123'


@pytest.fixture
def app():
    """Seeded application. No app context is held, so test clients behave like real requests."""
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        seed_database()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    """App context for calling services directly"""
    with app.app_context():
        yield app


@pytest.fixture
def admin(ctx):
    return db.session.get(User, 'u1')


@pytest.fixture
def duty_teacher(ctx):
    return db.session.get(User, 'u2')


@pytest.fixture
def teacher(ctx):
    return db.session.get(User, 'u3')


# --- HTTP clients ---

def login(client, username, password, new_password=NEW_PASSWORD):
    """Log a client in, completing the first-login password change if asked"""
    resp = client.post('/auth/login', json={'username': username, 'password': password})
    assert resp.status_code == 200, resp.get_json()

    if resp.get_json()['must_change_password']:
        resp = client.post('/auth/change-password', json={
            'new_password': new_password,
            'confirm_password': new_password,
        })
        assert resp.status_code == 200, resp.get_json()
    return resp


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(app):
    client = app.test_client()
    login(client, 'admin', 'Demo@123')
    return client


@pytest.fixture
def duty_client(app):
    client = app.test_client()
    login(client, 'gvtt1', '123')
    return client


@pytest.fixture
def teacher_client(app):
    client = app.test_client()
    login(client, 'gv1', '123')
    return client
