"""
Circle Models: circle registrations and their tags.

A circle is created as a draft and becomes visible to staff once
``submitted_at`` is set.  Staff then approve or reject it; ``status`` stays
NULL while the registration is pending review.
"""

from datetime import datetime, timezone

from portal.models import db

STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
STATUSES = (STATUS_APPROVED, STATUS_REJECTED)


def _utcnow():
    return datetime.now(timezone.utc)


circle_tag = db.Table(
    "circle_tag",
    db.Column("circle_id", db.Integer, db.ForeignKey("circles.id", ondelete="CASCADE"), primary_key=True),
    db.Column("tag_id", db.Integer, db.ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Tag(db.Model):
    __tablename__ = "tags"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=_utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    circles = db.relationship("Circle", secondary=circle_tag, back_populates="tags")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Tag {self.id} {self.name!r}>"


class Circle(db.Model):
    __tablename__ = "circles"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    name_yomi = db.Column(db.String(255), nullable=False)
    group_name = db.Column(db.String(255), nullable=False)
    group_name_yomi = db.Column(db.String(255), nullable=False)
    submitted_at = db.Column(db.DateTime, index=True)
    status = db.Column(db.String(20))  # approved | rejected | NULL (pending)
    status_set_at = db.Column(db.DateTime)
    status_set_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=_utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    # Relationships
    tags = db.relationship(
        "Tag", secondary=circle_tag, back_populates="circles", order_by="Tag.id",
    )
    answers = db.relationship(
        "FormAnswer", back_populates="circle", cascade="all, delete-orphan",
        order_by="FormAnswer.id",
    )
    status_set_by_user = db.relationship("User", foreign_keys=[status_set_by])

    @classmethod
    def submitted(cls):
        """Return a query limited to circles whose registration was submitted."""
        return cls.query.filter(cls.submitted_at.isnot(None))

    @property
    def is_pending(self):
        return self.status is None

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "name_yomi": self.name_yomi,
            "group_name": self.group_name,
            "group_name_yomi": self.group_name_yomi,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "status": self.status,
            "status_set_at": self.status_set_at.isoformat() if self.status_set_at else None,
            "status_set_by": self.status_set_by,
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Circle {self.id} {self.name!r}>"
