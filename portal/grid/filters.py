"""
Filter descriptors and their translation into SQL conditions.

A grid maker publishes ``filterable_keys()``: a mapping of column key to a
descriptor whose ``type`` is one of the values below.  The staff table
sends back a list of filter items::

    [{"key_name": "name", "operator": "like", "value": "soccer"},
     {"key_name": "status_set_by.is_staff", "operator": "=", "value": true}]

``apply_filters`` validates every item against the descriptors and narrows
the query with the combined condition.
"""

import json
import logging
import math
from datetime import datetime, timezone

from sqlalchemy import and_, or_, select

from portal.core.exceptions import ValidationError
from portal.models import db

logger = logging.getLogger(__name__)

# ── Descriptor types ────────────────────────────────────────────────────

NUMBER = "number"
STRING = "string"
BOOL = "bool"
IS_NULL = "isNull"
DATETIME = "datetime"
ENUM = "enum"
BELONGS_TO = "belongsTo"
BELONGS_TO_MANY = "belongsToMany"

FILTER_TYPES = (NUMBER, STRING, BOOL, IS_NULL, DATETIME, ENUM, BELONGS_TO, BELONGS_TO_MANY)

# Enum choice that stands for a NULL column value
NULL_CHOICE = "NULL"

_COMPARISON = ("=", "!=", "<", ">", "<=", ">=")

OPERATORS = {
    NUMBER: _COMPARISON,
    STRING: ("=", "!=", "like", "not like"),
    BOOL: ("=", "!="),
    IS_NULL: ("is null", "is not null"),
    DATETIME: _COMPARISON,
    ENUM: ("=", "!="),
    BELONGS_TO_MANY: ("=", "!="),
}

MODES = ("and", "or")

# Range of the integer columns numbers are compared against
INT64_MAX = 2**63 - 1
INT64_MIN = -(2**63)


def parse_filters(raw: str | None) -> list[dict]:
    """Decode the ``filters`` query argument (a JSON list) into filter items."""
    if not raw:
        return []
    try:
        items = json.loads(raw)
    except ValueError as exc:
        raise ValidationError("filters must be a JSON list", details={"filters": str(exc)})
    if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
        raise ValidationError("filters must be a JSON list of objects")
    return items


def apply_filters(
    query, model, descriptors: dict, items: list[dict], mode: str = "and", tz=timezone.utc,
):
    """Narrow ``query`` by the filter ``items``.

    Args:
        query: Query over ``model``.
        model: Mapped class whose table holds the filtered columns.
        descriptors: The grid maker's ``filterable_keys()``.
        items: Filter items as produced by ``parse_filters``.
        mode: ``"and"`` to require every item, ``"or"`` to require any.
        tz: Zone the grid displays timestamps in; naive datetime values are
            read as local times of this zone.

    Raises:
        ValidationError: On unknown keys, operators or malformed values.
    """
    if not items:
        return query
    if mode not in MODES:
        raise ValidationError(f"Unknown filter mode '{mode}'", details={"mode": list(MODES)})

    logger.debug("Applying %d grid filter(s) mode=%s", len(items), mode)
    conditions = [_condition_for(model, descriptors, item, tz) for item in items]
    combine = and_ if mode == "and" else or_
    return query.filter(combine(*conditions))


def _condition_for(model, descriptors: dict, item: dict, tz):
    key_name = item.get("key_name") or ""
    operator = item.get("operator") or ""
    value = item.get("value")

    key, _, field = key_name.partition(".")
    descriptor = descriptors.get(key)
    if descriptor is None:
        raise ValidationError(f"'{key}' is not filterable", details={"key_name": key_name})

    filter_type = descriptor["type"]

    if filter_type == BELONGS_TO:
        field_descriptor = descriptor["keys"].get(field)
        if field_descriptor is None:
            raise ValidationError(
                f"'{key_name}' is not filterable", details={"key_name": key_name},
            )
        related = db.metadata.tables[descriptor["to"]]
        inner = _scalar_condition(
            related.c[field], field_descriptor["type"], operator, value,
            field_descriptor, key_name, tz,
        )
        return model.__table__.c[key].in_(select(related.c.id).where(inner))

    if field:
        raise ValidationError(f"'{key}' has no related fields", details={"key_name": key_name})

    if filter_type == BELONGS_TO_MANY:
        _check_operator(BELONGS_TO_MANY, operator, key_name)
        pivot = db.metadata.tables[descriptor["pivot"]]
        related_id = _coerce_number(value, key_name)
        linked = select(pivot.c[descriptor["foreign_key"]]).where(
            pivot.c[descriptor["related_key"]] == related_id
        )
        return model.id.in_(linked) if operator == "=" else model.id.not_in(linked)

    return _scalar_condition(
        model.__table__.c[key], filter_type, operator, value, descriptor, key_name, tz,
    )


def _scalar_condition(column, filter_type, operator, value, descriptor, key_name, tz):
    _check_operator(filter_type, operator, key_name)

    if filter_type == IS_NULL:
        return column.is_(None) if operator == "is null" else column.isnot(None)

    if filter_type == ENUM:
        choices = descriptor.get("choices", {})
        if not isinstance(value, str) or value not in choices:
            raise ValidationError(
                f"'{value}' is not a choice of '{key_name}'",
                details={"choices": list(choices)},
            )
        if value == NULL_CHOICE:
            return column.is_(None) if operator == "=" else column.isnot(None)
        # NULL rows are "not equal" to every concrete choice
        return column == value if operator == "=" else or_(column != value, column.is_(None))

    if filter_type == STRING:
        value = "" if value is None else str(value)
        if operator == "like":
            return column.like(f"%{value}%")
        if operator == "not like":
            return column.notlike(f"%{value}%")
    elif filter_type == NUMBER:
        value = _coerce_number(value, key_name)
    elif filter_type == BOOL:
        value = _coerce_bool(value, key_name)
    elif filter_type == DATETIME:
        value = _coerce_datetime(value, key_name, tz)

    return _compare(column, operator, value)


def _compare(column, operator, value):
    if operator == "=":
        return column == value
    if operator == "!=":
        return column != value
    if operator == "<":
        return column < value
    if operator == ">":
        return column > value
    if operator == "<=":
        return column <= value
    return column >= value


def _check_operator(filter_type, operator, key_name):
    allowed = OPERATORS.get(filter_type, ())
    if operator not in allowed:
        raise ValidationError(
            f"Operator '{operator}' is not allowed for '{key_name}'",
            details={"operators": list(allowed)},
        )


def _coerce_number(value, key_name):
    if isinstance(value, bool):
        raise ValidationError(f"'{key_name}' expects a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"'{key_name}' expects a number", details={"value": value})
    if not math.isfinite(number):
        raise ValidationError(f"'{key_name}' expects a finite number", details={"value": value})
    if not number.is_integer():
        return number
    number = int(number)
    if not INT64_MIN <= number <= INT64_MAX:
        raise ValidationError(f"'{key_name}' is out of range", details={"value": value})
    return number


def _coerce_bool(value, key_name):
    if isinstance(value, bool):
        return value
    if str(value).lower() in ("1", "true", "yes"):
        return True
    if str(value).lower() in ("0", "false", "no"):
        return False
    raise ValidationError(f"'{key_name}' expects a boolean", details={"value": value})


def _coerce_datetime(value, key_name, tz):
    try:
        parsed = datetime.fromisoformat(str(value).replace("/", "-"))
    except ValueError:
        raise ValidationError(f"'{key_name}' expects a datetime", details={"value": value})
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    # Stored timestamps are naive UTC
    return parsed.astimezone(timezone.utc).replace(tzinfo=None)
