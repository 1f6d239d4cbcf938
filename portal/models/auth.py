"""
Auth Models: portal users.

Users sign in to register circles; staff users review them.  A user is the
target of ``Circle.status_set_by`` (who approved / rejected a circle).
"""

from datetime import datetime, timezone

from portal.models import db


def _utcnow():
    return datetime.now(timezone.utc)


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.String(64), unique=True, nullable=False)
    name_family = db.Column(db.String(100), nullable=False)
    name_family_yomi = db.Column(db.String(100), nullable=False)
    name_given = db.Column(db.String(100), nullable=False)
    name_given_yomi = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(200), unique=True, nullable=False)
    tel = db.Column(db.String(32))
    is_staff = db.Column(db.Boolean, default=False, nullable=False)
    is_admin = db.Column(db.Boolean, default=False, nullable=False)
    email_verified_at = db.Column(db.DateTime)
    univemail_verified_at = db.Column(db.DateTime)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=_utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    @property
    def name(self):
        return f"{self.name_family} {self.name_given}"

    @property
    def is_verified(self):
        """Both the contact address and the university address are confirmed."""
        return self.email_verified_at is not None and self.univemail_verified_at is not None

    def to_dict(self):
        return {
            "id": self.id,
            "student_id": self.student_id,
            "name": self.name,
            "name_family": self.name_family,
            "name_family_yomi": self.name_family_yomi,
            "name_given": self.name_given,
            "name_given_yomi": self.name_given_yomi,
            "email": self.email,
            "tel": self.tel,
            "is_staff": self.is_staff,
            "is_admin": self.is_admin,
            "email_verified_at": self.email_verified_at.isoformat() if self.email_verified_at else None,
            "univemail_verified_at": (
                self.univemail_verified_at.isoformat() if self.univemail_verified_at else None
            ),
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<User {self.id} {self.student_id}>"
