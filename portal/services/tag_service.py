"""Tag service: the labels staff attach to circles."""

import logging

from portal.core.exceptions import ConflictError, ValidationError
from portal.models import db
from portal.models.circle import Tag

logger = logging.getLogger(__name__)


def list_tags() -> list[Tag]:
    return Tag.query.order_by(Tag.id).all()


def create_tag(name: str) -> Tag:
    """Persist a new tag.

    Raises:
        ValidationError: If the name is blank.
        ConflictError: If a tag with the same name exists.
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("Tag name is required", details={"name": "required"})
    if Tag.query.filter_by(name=name).first() is not None:
        raise ConflictError(resource="Tag", field="name", value=name)

    tag = Tag(name=name)
    db.session.add(tag)
    db.session.commit()
    logger.info("Tag created id=%s name=%s", tag.id, name)
    return tag
