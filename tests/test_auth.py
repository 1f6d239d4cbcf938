"""
Session user helpers and permission policies.
"""

from flask import session

from portal.auth import current_user, login_user, logout_user
from portal.services.permission_service import has_permission


class TestSessionHelpers:
    def test_login_binds_user(self, app, make_user):
        user = make_user()
        with app.test_request_context():
            login_user(user)
            assert session["user_id"] == user.id
            assert current_user() is user

    def test_logout_forgets_terms(self, app, make_user):
        user = make_user()
        with app.test_request_context():
            login_user(user)
            session["read_terms"] = True
            logout_user()
            assert "user_id" not in session
            assert "read_terms" not in session
            assert current_user() is None


class TestPolicies:
    def test_create_requires_verified_user(self, make_user):
        assert has_permission(make_user(), "circle.create")
        assert not has_permission(make_user(email_verified_at=None), "circle.create")

    def test_staff_reads_circles(self, make_user):
        assert has_permission(make_user(is_staff=True), "staff.circles.read")
        assert has_permission(make_user(is_admin=True), "staff.forms.answers.read")
        assert not has_permission(make_user(), "staff.circles.read")

    def test_unknown_codename_denied(self, make_user):
        assert not has_permission(make_user(is_admin=True), "circles.delete")
        assert not has_permission(None, "circle.create")
