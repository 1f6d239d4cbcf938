"""
Shared pytest fixtures for the Circle Portal test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - request_ctx: Test request context, for code that builds URLs
    - make_user / make_circle / make_answer: row factories
    - circle_form: the "circle" custom form with a text and an upload question
    - login: bind a user to the test client's session
    - count_queries: record the SQL statements issued inside a block
"""

import itertools
from contextlib import contextmanager
from datetime import datetime

import pytest
from sqlalchemy import event

from portal import create_app
from portal.models import db as _db
from portal.models.auth import User
from portal.models.circle import Circle
from portal.models.custom_form import AnswerDetail, FormAnswer
from portal.services.custom_form_service import add_question, create_form


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def request_ctx(app):
    """Push a request context so ``url_for`` can build relative URLs."""
    with app.test_request_context():
        yield


# ── Factories ────────────────────────────────────────────────────────────


@pytest.fixture()
def make_user():
    """Return a factory creating verified, non-staff users."""
    counter = itertools.count(1)

    def _make(**overrides):
        n = next(counter)
        data = {
            "student_id": f"S{n:05d}",
            "name_family": "山田",
            "name_family_yomi": "やまだ",
            "name_given": f"太郎{n}",
            "name_given_yomi": "たろう",
            "email": f"user{n}@example.com",
            "email_verified_at": datetime(2024, 1, 1, 9, 0, 0),
            "univemail_verified_at": datetime(2024, 1, 1, 9, 0, 0),
        }
        data.update(overrides)
        user = User(**data)
        _db.session.add(user)
        _db.session.commit()
        return user

    return _make


@pytest.fixture()
def make_circle():
    """Return a factory creating submitted circles."""
    counter = itertools.count(1)

    def _make(tags=(), **overrides):
        n = next(counter)
        data = {
            "name": f"企画{n}",
            "name_yomi": f"きかく{n}",
            "group_name": f"団体{n}",
            "group_name_yomi": f"だんたい{n}",
            "submitted_at": datetime(2024, 1, 2, 10, 0, 0),
        }
        data.update(overrides)
        circle = Circle(**data)
        circle.tags = list(tags)
        _db.session.add(circle)
        _db.session.commit()
        return circle

    return _make


@pytest.fixture()
def make_answer():
    """Return a factory storing a circle's answer: ``{question: value}``."""

    def _make(circle, form, values):
        answer = FormAnswer(form_id=form.id, circle_id=circle.id)
        answer.details = [
            AnswerDetail(question_id=question.id, answer=value)
            for question, value in values.items()
        ]
        _db.session.add(answer)
        _db.session.commit()
        return answer

    return _make


@pytest.fixture()
def circle_form():
    """The "circle" custom form: a text question followed by an upload question."""
    form = create_form("circle", {"name": "企画参加登録"})
    add_question(form, {"name": "活動内容", "type": "text"})
    add_question(form, {"name": "ロゴ画像", "type": "upload"})
    return form


@pytest.fixture()
def login(client):
    """Return a helper that signs ``user`` in on the test client."""

    def _login(user):
        with client.session_transaction() as sess:
            sess["user_id"] = user.id

    return _login


@pytest.fixture()
def count_queries():
    """Return a context manager collecting the SQL statements sent to the DB."""

    @contextmanager
    def _count():
        statements = []

        def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            statements.append(statement)

        engine = _db.engine
        event.listen(engine, "before_cursor_execute", _before_cursor_execute)
        try:
            yield statements
        finally:
            event.remove(engine, "before_cursor_execute", _before_cursor_execute)

    return _count
