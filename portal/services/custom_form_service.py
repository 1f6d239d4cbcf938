"""
Custom form service layer: the provider the registration workflow and the
staff grid read forms from.

Centralises ORM queries and mutations for CustomForm, Question and
AnswerDetail so that blueprints and grid makers stay free of query code.
Only one form may exist per type; ``get_form_by_type`` relies on that.
"""

import logging

from portal.core.exceptions import ConflictError, NotFoundError, ValidationError
from portal.models import db
from portal.models.custom_form import (
    QUESTION_TYPES,
    AnswerDetail,
    CustomForm,
    FormAnswer,
    Question,
)

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────────────────
# Forms
# ──────────────────────────────────────────────────────────────────────────────

def get_form_by_type(form_type: str) -> CustomForm | None:
    """Return the form configured for ``form_type``, or None if there is none.

    Args:
        form_type: Workflow type, e.g. "circle".
    """
    return CustomForm.query.filter_by(type=form_type).first()


def create_form(form_type: str, data: dict) -> CustomForm:
    """Create the form for a workflow type.

    Args:
        form_type: Workflow type; must not already have a form.
        data: Validated attributes (name, description, is_public).

    Returns:
        The persisted CustomForm.

    Raises:
        ValidationError: If name is missing.
        ConflictError: If a form of this type already exists.
    """
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("Form name is required", details={"name": "required"})

    if get_form_by_type(form_type) is not None:
        raise ConflictError(resource="CustomForm", field="type", value=form_type)

    form = CustomForm(
        name=name,
        type=form_type,
        description=data.get("description") or None,
        is_public=data.get("is_public", True),
    )
    db.session.add(form)
    db.session.commit()
    logger.info("CustomForm created id=%s type=%s", form.id, form_type, extra={"form_id": form.id})
    return form


# ──────────────────────────────────────────────────────────────────────────────
# Questions
# ──────────────────────────────────────────────────────────────────────────────

def add_question(form: CustomForm, data: dict) -> Question:
    """Append a question to ``form``.

    Without an explicit priority the question goes after the existing ones.

    Raises:
        ValidationError: If the name is missing or the type is unknown.
    """
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("Question name is required", details={"name": "required"})

    question_type = data.get("type", "text")
    if question_type not in QUESTION_TYPES:
        raise ValidationError(
            f"Unknown question type '{question_type}'",
            details={"type": f"must be one of {', '.join(QUESTION_TYPES)}"},
        )

    priority = data.get("priority")
    if priority is None:
        priority = max((q.priority or 0 for q in form.questions), default=0) + 1

    question = Question(
        form=form,
        name=name,
        description=data.get("description", ""),
        type=question_type,
        is_required=data.get("is_required", False),
        priority=priority,
        options=data.get("options", []),
    )
    db.session.add(question)
    db.session.commit()
    logger.info(
        "Question created id=%s form=%s type=%s", question.id, form.id, question_type,
        extra={"form_id": form.id},
    )
    return question


def list_questions(form: CustomForm) -> list[Question]:
    """Return the questions of ``form`` in display order."""
    return (
        Question.query
        .filter_by(form_id=form.id)
        .order_by(Question.priority, Question.id)
        .all()
    )


# ──────────────────────────────────────────────────────────────────────────────
# Answers
# ──────────────────────────────────────────────────────────────────────────────

def get_answer_detail(form_id: int, answer_id: int, question_id: int) -> AnswerDetail:
    """Fetch the detail a circle gave for one question of one form.

    Raises:
        NotFoundError: If the answer does not belong to the form or the
            question was left unanswered.
    """
    detail = (
        AnswerDetail.query
        .join(FormAnswer, AnswerDetail.answer_id == FormAnswer.id)
        .filter(
            FormAnswer.id == answer_id,
            FormAnswer.form_id == form_id,
            AnswerDetail.question_id == question_id,
        )
        .first()
    )
    if detail is None:
        raise NotFoundError(resource="AnswerDetail", resource_id=f"{answer_id}/{question_id}")
    return detail
