"""Custom form models: admin-configurable questions attached to a workflow.

A ``CustomForm`` is identified by its ``type`` (e.g. ``"circle"``): the
registration workflow of that type asks the form's questions and stores one
``FormAnswer`` per circle, holding an ``AnswerDetail`` per question.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from portal.models import db

try:
    from sqlalchemy import JSON
except ImportError:
    from sqlalchemy.types import JSON

QUESTION_TYPES = (
    "heading",
    "text",
    "textarea",
    "number",
    "radio",
    "select",
    "checkbox",
    "upload",
)
QUESTION_TYPE_UPLOAD = "upload"


def _utcnow():
    return datetime.now(timezone.utc)


# ── Custom Form ──────────────────────────────────────────────────

class CustomForm(db.Model):
    """A typed form definition; at most one form exists per type."""

    __tablename__ = "custom_forms"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    type = Column(String(30), nullable=False, unique=True)  # circle | ...
    description = Column(Text)  # terms shown before the form, when set
    is_public = Column(Boolean, default=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    # Relationships
    questions = relationship(
        "Question",
        back_populates="form",
        cascade="all, delete-orphan",
        order_by=lambda: [Question.priority, Question.id],
    )
    answers = relationship(
        "FormAnswer",
        back_populates="form",
        cascade="all, delete-orphan",
        lazy="dynamic",
    )

    def to_dict(self, include_questions=False):
        d = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "is_public": self.is_public,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_questions:
            d["questions"] = [q.to_dict() for q in self.questions]
        return d


# ── Question ─────────────────────────────────────────────────────

class Question(db.Model):
    """A single field of a custom form."""

    __tablename__ = "questions"

    id = Column(Integer, primary_key=True)
    form_id = Column(
        Integer, ForeignKey("custom_forms.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(String(255), nullable=False)
    description = Column(Text, default="")
    type = Column(String(30), nullable=False, default="text")
    is_required = Column(Boolean, default=False)
    priority = Column(Integer, default=0)
    options = Column(JSON, default=list)  # choices for radio / select / checkbox
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    form = relationship("CustomForm", back_populates="questions")

    __table_args__ = (
        Index("ix_questions_form_priority", "form_id", "priority"),
    )

    @property
    def is_upload(self):
        return self.type == QUESTION_TYPE_UPLOAD

    def to_dict(self):
        return {
            "id": self.id,
            "form_id": self.form_id,
            "name": self.name,
            "description": self.description,
            "type": self.type,
            "is_required": self.is_required,
            "priority": self.priority,
            "options": self.options or [],
        }


# ── Form Answer ──────────────────────────────────────────────────

class FormAnswer(db.Model):
    """One circle's answer to one custom form."""

    __tablename__ = "form_answers"

    id = Column(Integer, primary_key=True)
    form_id = Column(
        Integer, ForeignKey("custom_forms.id", ondelete="CASCADE"), nullable=False
    )
    circle_id = Column(
        Integer, ForeignKey("circles.id", ondelete="CASCADE"), nullable=False
    )
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    form = relationship("CustomForm", back_populates="answers")
    circle = relationship("Circle", back_populates="answers")
    details = relationship(
        "AnswerDetail",
        back_populates="answer_ref",
        cascade="all, delete-orphan",
        order_by="AnswerDetail.id",
    )

    __table_args__ = (
        UniqueConstraint("form_id", "circle_id", name="uq_form_answers_form_circle"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "form_id": self.form_id,
            "circle_id": self.circle_id,
            "details": [d.to_dict() for d in self.details],
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


# ── Answer Detail ────────────────────────────────────────────────

class AnswerDetail(db.Model):
    """The value given for one question; for uploads, the stored file path."""

    __tablename__ = "answer_details"

    id = Column(Integer, primary_key=True)
    answer_id = Column(
        Integer, ForeignKey("form_answers.id", ondelete="CASCADE"), nullable=False
    )
    question_id = Column(
        Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    answer = Column(Text)

    answer_ref = relationship("FormAnswer", back_populates="details")
    question = relationship("Question")

    __table_args__ = (
        Index("ix_answer_details_answer_question", "answer_id", "question_id"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "answer_id": self.answer_id,
            "question_id": self.question_id,
            "answer": self.answer,
        }
