"""Ordered, typed column descriptors for grid makers.

A grid's column list is composed once per grid maker instance from a fixed
leading block, the columns contributed by a custom form, and a fixed
trailing block.  Keeping them as descriptors makes the composition a plain
list concatenation.
"""

from dataclasses import dataclass

CUSTOM_FORM_QUESTIONS_KEY_PREFIX = "custom_form_question_"


@dataclass(frozen=True)
class Column:
    """One grid column.

    ``question_id`` is set only for columns backed by a custom form question.
    """

    key: str
    sortable: bool = True
    question_id: int | None = None

    @property
    def is_custom_question(self) -> bool:
        return self.question_id is not None


def question_key(question_id: int) -> str:
    return f"{CUSTOM_FORM_QUESTIONS_KEY_PREFIX}{question_id}"


def question_columns(questions) -> list[Column]:
    """Columns for the questions of a custom form, in the form's order.

    Answers are stored per question and cannot be sorted on.
    """
    return [
        Column(key=question_key(q.id), sortable=False, question_id=q.id)
        for q in questions
    ]


def compose(*blocks) -> list[Column]:
    """Concatenate column blocks, rejecting duplicate keys."""
    columns = [column for block in blocks for column in block]
    seen = set()
    for column in columns:
        if column.key in seen:
            raise ValueError(f"Duplicate grid column '{column.key}'")
        seen.add(column.key)
    return columns
