import pytest

from portal.grid.columns import Column, compose, question_columns, question_key


class _Question:
    def __init__(self, id):
        self.id = id


def test_question_key():
    assert question_key(12) == "custom_form_question_12"


def test_question_columns_are_not_sortable():
    columns = question_columns([_Question(3), _Question(1)])
    assert [c.key for c in columns] == ["custom_form_question_3", "custom_form_question_1"]
    assert all(c.is_custom_question and not c.sortable for c in columns)


def test_compose_keeps_block_order():
    columns = compose([Column("id")], question_columns([_Question(5)]), [Column("notes")])
    assert [c.key for c in columns] == ["id", "custom_form_question_5", "notes"]


def test_compose_rejects_duplicates():
    with pytest.raises(ValueError, match="name"):
        compose([Column("name")], [Column("name", sortable=False)])
