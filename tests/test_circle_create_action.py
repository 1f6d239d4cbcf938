"""
Circle registration entry point: permission gate, terms step, form page.
"""

from portal.models import db as _db
from portal.services.custom_form_service import add_question, create_form

CREATE_URL = "/circles/create"
TERMS_URL = "/circles/terms"


def _form(description=None):
    form = create_form("circle", {"name": "企画参加登録", "description": description})
    add_question(form, {"name": "活動内容", "type": "textarea"})
    add_question(form, {"name": "ロゴ画像", "type": "upload"})
    return form


class TestPermission:
    def test_anonymous_rejected(self, client):
        _form()
        res = client.get(CREATE_URL)
        assert res.status_code == 401

    def test_unverified_user_rejected(self, client, make_user, login):
        _form()
        login(make_user(univemail_verified_at=None))
        res = client.get(CREATE_URL)
        assert res.status_code == 403
        assert res.get_json()["details"]["required"] == "circle.create"

    def test_stale_session_user_is_anonymous(self, client, make_user, login):
        _form()
        user = make_user()
        login(user)
        _db.session.delete(user)
        _db.session.commit()
        res = client.get(CREATE_URL)
        assert res.status_code == 401


class TestCreateForm:
    def test_renders_questions_in_order(self, client, make_user, login):
        _form()
        login(make_user())
        res = client.get(CREATE_URL)
        assert res.status_code == 200
        html = res.get_data(as_text=True)
        assert "企画参加登録" in html
        assert html.index("活動内容") < html.index("ロゴ画像")
        assert 'type="file"' in html

    def test_missing_form_is_not_found(self, client, make_user, login):
        login(make_user())
        res = client.get(CREATE_URL)
        assert res.status_code == 404
        assert res.get_json()["code"] == "ERR_NOT_FOUND"

    def test_description_requires_terms_first(self, client, make_user, login):
        _form(description="参加規約")
        login(make_user())
        res = client.get(CREATE_URL)
        assert res.status_code == 302
        assert res.headers["Location"].endswith(TERMS_URL)

    def test_read_terms_flag_skips_terms(self, client, make_user, login):
        _form(description="参加規約")
        login(make_user())
        with client.session_transaction() as sess:
            sess["read_terms"] = True
        res = client.get(CREATE_URL)
        assert res.status_code == 200


class TestTerms:
    def test_shows_description(self, client, make_user, login):
        _form(description="参加規約")
        login(make_user())
        res = client.get(TERMS_URL)
        assert res.status_code == 200
        assert "参加規約" in res.get_data(as_text=True)

    def test_without_description_goes_to_form(self, client, make_user, login):
        _form()
        login(make_user())
        res = client.get(TERMS_URL)
        assert res.status_code == 302
        assert res.headers["Location"].endswith(CREATE_URL)

    def test_accepting_terms_unlocks_form(self, client, make_user, login):
        _form(description="参加規約")
        login(make_user())

        res = client.post(TERMS_URL)
        assert res.status_code == 302
        assert res.headers["Location"].endswith(CREATE_URL)
        with client.session_transaction() as sess:
            assert sess["read_terms"] is True

        assert client.get(CREATE_URL).status_code == 200
