"""
CirclesGridMaker: the staff table of submitted circle registrations.

Columns are the circle's own fields plus one column per question of the
``"circle"`` custom form, placed between the name block and the review
block.  The form is resolved once, when the grid maker is built; without a
form the question columns are simply absent.
"""

import functools
import logging
from datetime import timezone
from zoneinfo import ZoneInfo

from flask import current_app, url_for
from sqlalchemy.orm import joinedload, load_only, selectinload

from portal.core.exceptions import DataIntegrityError
from portal.grid.base import GridMaker
from portal.grid.columns import Column, compose, question_columns
from portal.grid import filters as f
from portal.models.circle import STATUS_APPROVED, STATUS_REJECTED, Circle, circle_tag
from portal.models.custom_form import AnswerDetail, FormAnswer
from portal.services.custom_form_service import get_form_by_type
from portal.services.tag_service import list_tags

logger = logging.getLogger(__name__)

FORM_TYPE = "circle"
DATETIME_FORMAT = "%Y/%m/%d %H:%M:%S"

BEFORE_CUSTOM_FORM_COLUMNS = (
    Column("id"),
    Column("name"),
    Column("name_yomi"),
    Column("group_name"),
    Column("group_name_yomi"),
    Column("tags", sortable=False),
)

AFTER_CUSTOM_FORM_COLUMNS = (
    Column("submitted_at"),
    Column("status"),
    Column("status_set_at"),
    Column("status_set_by"),
    Column("notes"),
    Column("created_at"),
    Column("updated_at"),
)

# Columns fetched by the base query; tags come from the eager load
SELECTED_COLUMNS = (
    "id",
    "name",
    "name_yomi",
    "group_name",
    "group_name_yomi",
    "submitted_at",
    "status",
    "status_set_at",
    "status_set_by",
    "notes",
    "created_at",
    "updated_at",
)

USERS_FILTER = {
    "type": f.BELONGS_TO,
    "to": "users",
    "keys": {
        "id": {"translation": "ユーザーID", "type": f.NUMBER},
        "student_id": {"translation": "学籍番号", "type": f.STRING},
        "name_family": {"translation": "姓", "type": f.STRING},
        "name_family_yomi": {"translation": "姓(よみ)", "type": f.STRING},
        "name_given": {"translation": "名", "type": f.STRING},
        "name_given_yomi": {"translation": "名(よみ)", "type": f.STRING},
        "email": {"translation": "連絡先メールアドレス", "type": f.STRING},
        "tel": {"translation": "電話番号", "type": f.STRING},
        "is_staff": {"translation": "スタッフ", "type": f.BOOL},
        "is_admin": {"translation": "管理者", "type": f.BOOL},
        "email_verified_at": {"translation": "メール認証", "type": f.IS_NULL},
        "univemail_verified_at": {"translation": "本人確認", "type": f.IS_NULL},
        "notes": {"translation": "スタッフ用メモ", "type": f.STRING},
        "created_at": {"translation": "作成日時", "type": f.DATETIME},
        "updated_at": {"translation": "更新日時", "type": f.DATETIME},
    },
}

STATUS_CHOICES = {
    STATUS_REJECTED: "不受理",
    STATUS_APPROVED: "受理",
    f.NULL_CHOICE: "確認中",
}


def resolve_timezone(name: str | None):
    if not name or name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


class CirclesGridMaker(GridMaker):
    """Grid of submitted circles for staff review."""

    model = Circle

    def __init__(self, display_timezone: str | None = None):
        self.custom_form = get_form_by_type(FORM_TYPE)
        questions = self.custom_form.questions if self.custom_form is not None else []
        self._columns = compose(
            BEFORE_CUSTOM_FORM_COLUMNS,
            question_columns(questions),
            AFTER_CUSTOM_FORM_COLUMNS,
        )

        if display_timezone is None:
            display_timezone = current_app.config.get("DISPLAY_TIMEZONE")
        self.display_tz = resolve_timezone(display_timezone)

        self._formatters = {
            column.key: _attribute(column.key)
            for column in self._columns
            if not column.is_custom_question
        }
        self._formatters.update({
            "status_set_by": lambda record: record.status_set_by_user,
            "status_set_at": self._optional_datetime("status_set_at"),
            "created_at": self._required_datetime("created_at"),
            "updated_at": self._required_datetime("updated_at"),
        })

        logger.debug(
            "CirclesGridMaker built form=%s question_columns=%d",
            self.custom_form.id if self.custom_form is not None else None,
            len(questions),
        )

    # ── Query ────────────────────────────────────────────────────────────

    def base_query(self):
        query = Circle.submitted().options(
            load_only(*(getattr(Circle, name) for name in SELECTED_COLUMNS)),
            selectinload(Circle.tags),
            selectinload(Circle.status_set_by_user),
        )
        if self.custom_form is not None:
            query = query.options(
                selectinload(Circle.answers.and_(FormAnswer.form_id == self.custom_form.id))
                .selectinload(FormAnswer.details)
                .joinedload(AnswerDetail.question)
            )
        return query

    # ── Columns ──────────────────────────────────────────────────────────

    def columns(self):
        return list(self._columns)

    @functools.cached_property
    def _tags_choices(self):
        return [tag.to_dict() for tag in list_tags()]

    def filterable_keys(self):
        return {
            "id": {"type": f.NUMBER},
            "name": {"type": f.STRING},
            "name_yomi": {"type": f.STRING},
            "group_name": {"type": f.STRING},
            "group_name_yomi": {"type": f.STRING},
            "tags": {
                "type": f.BELONGS_TO_MANY,
                "pivot": circle_tag.name,
                "foreign_key": "circle_id",
                "related_key": "tag_id",
                "choices": self._tags_choices,
                "choices_name": "name",
            },
            "submitted_at": {"type": f.DATETIME},
            "status": {"type": f.ENUM, "choices": dict(STATUS_CHOICES)},
            "status_set_at": {"type": f.DATETIME},
            "status_set_by": USERS_FILTER,
            "notes": {"type": f.STRING},
            "created_at": {"type": f.DATETIME},
            "updated_at": {"type": f.DATETIME},
        }

    # ── Rows ─────────────────────────────────────────────────────────────

    def map(self, record):
        answer = self._answer_for(record)
        details = {}
        if answer is not None:
            details = {detail.question_id: detail for detail in answer.details}

        item = {}
        for column in self._columns:
            if column.is_custom_question:
                detail = details.get(column.question_id)
                if detail is not None:
                    item[column.key] = self._answer_value(answer, detail)
                continue
            item[column.key] = self._formatters[column.key](record)
        return item

    def _answer_for(self, record):
        if self.custom_form is None:
            return None
        # The eager load is already limited to this form; the loaded
        # collection may still be stale within a long-lived session.
        return next(
            (
                answer for answer in record.answers
                if answer.circle_id == record.id and answer.form_id == self.custom_form.id
            ),
            None,
        )

    def _answer_value(self, answer, detail):
        if detail.question.is_upload:
            return {
                "file_url": url_for(
                    "staff_circles.show_answer_upload",
                    form_id=self.custom_form.id,
                    answer_id=answer.id,
                    question_id=detail.question_id,
                ),
            }
        return detail.answer

    def _format(self, value):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(self.display_tz).strftime(DATETIME_FORMAT)

    def _optional_datetime(self, key):
        def formatter(record):
            value = getattr(record, key)
            return self._format(value) if value is not None else None
        return formatter

    def _required_datetime(self, key):
        def formatter(record):
            value = getattr(record, key)
            if value is None:
                raise DataIntegrityError(resource="Circle", resource_id=record.id, field=key)
            return self._format(value)
        return formatter


def _attribute(key):
    def formatter(record):
        return getattr(record, key)
    return formatter
