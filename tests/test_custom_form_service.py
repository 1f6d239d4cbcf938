"""
Custom form and tag services: forms per type, question ordering, answer lookup.
"""

import pytest

from portal.core.exceptions import ConflictError, NotFoundError, ValidationError
from portal.services.custom_form_service import (
    add_question,
    create_form,
    get_answer_detail,
    get_form_by_type,
    list_questions,
)
from portal.services.tag_service import create_tag, list_tags


class TestForms:
    def test_lookup_by_type(self):
        assert get_form_by_type("circle") is None
        form = create_form("circle", {"name": "  企画参加登録  ", "description": ""})
        found = get_form_by_type("circle")
        assert found.id == form.id
        assert found.name == "企画参加登録"
        assert found.description is None

    def test_one_form_per_type(self):
        create_form("circle", {"name": "企画参加登録"})
        with pytest.raises(ConflictError):
            create_form("circle", {"name": "二つ目"})

    def test_name_required(self):
        with pytest.raises(ValidationError) as exc:
            create_form("circle", {"name": "   "})
        assert exc.value.details == {"name": "required"}


class TestQuestions:
    def test_default_priority_appends(self):
        form = create_form("circle", {"name": "企画参加登録"})
        first = add_question(form, {"name": "活動内容"})
        second = add_question(form, {"name": "ロゴ画像", "type": "upload"})
        assert (first.priority, second.priority) == (1, 2)
        assert first.type == "text"
        assert second.is_upload

    def test_list_orders_by_priority_then_id(self):
        form = create_form("circle", {"name": "企画参加登録"})
        late = add_question(form, {"name": "備考", "priority": 10})
        early = add_question(form, {"name": "見出し", "type": "heading", "priority": 1})
        tied = add_question(form, {"name": "活動内容", "priority": 10})
        assert [q.id for q in list_questions(form)] == [early.id, late.id, tied.id]

    @pytest.mark.parametrize("data", [{"name": ""}, {"name": "活動内容", "type": "video"}])
    def test_invalid_question(self, data):
        form = create_form("circle", {"name": "企画参加登録"})
        with pytest.raises(ValidationError):
            add_question(form, data)


class TestAnswerDetail:
    def test_found(self, circle_form, make_circle, make_answer):
        text_q, _ = circle_form.questions
        answer = make_answer(make_circle(), circle_form, {text_q: "バンド演奏"})
        detail = get_answer_detail(circle_form.id, answer.id, text_q.id)
        assert detail.answer == "バンド演奏"

    def test_unanswered_question(self, circle_form, make_circle, make_answer):
        text_q, upload_q = circle_form.questions
        answer = make_answer(make_circle(), circle_form, {text_q: "バンド演奏"})
        with pytest.raises(NotFoundError):
            get_answer_detail(circle_form.id, answer.id, upload_q.id)

    def test_answer_of_another_form(self, circle_form, make_circle, make_answer):
        text_q, _ = circle_form.questions
        answer = make_answer(make_circle(), circle_form, {text_q: "バンド演奏"})
        other = create_form("place", {"name": "場所申請"})
        with pytest.raises(NotFoundError):
            get_answer_detail(other.id, answer.id, text_q.id)


class TestTags:
    def test_create_and_list(self):
        create_tag("屋外")
        create_tag(" 飲食 ")
        assert [t.name for t in list_tags()] == ["屋外", "飲食"]

    def test_duplicate_name(self):
        create_tag("屋外")
        with pytest.raises(ConflictError):
            create_tag("屋外")

    def test_blank_name(self):
        with pytest.raises(ValidationError):
            create_tag("  ")
