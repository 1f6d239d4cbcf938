"""
Circle Portal
Session-based user resolution.

Provides:
    - ``init_auth(app)``: before-request hook that loads ``g.current_user``
      from ``session["user_id"]``
    - ``login_user`` / ``logout_user`` helpers for the sign-in flow

Who may do what is decided in ``portal.services.permission_service``;
route protection lives in ``portal.middleware.permission_required``.
"""

import logging

from flask import g, session

from portal.models import db
from portal.models.auth import User

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"


def current_user() -> User | None:
    """Return the user bound to the current request, if any."""
    return getattr(g, "current_user", None)


def login_user(user: User) -> None:
    session[SESSION_USER_KEY] = user.id
    g.current_user = user
    logger.info("User %s signed in", user.id, extra={"user_id": user.id})


def logout_user() -> None:
    user_id = session.pop(SESSION_USER_KEY, None)
    # Terms acceptance belongs to the signed-in visitor
    session.pop("read_terms", None)
    g.current_user = None
    if user_id is not None:
        logger.info("User %s signed out", user_id, extra={"user_id": user_id})


def init_auth(app):
    """Register the hook that resolves the signed-in user for each request."""

    @app.before_request
    def _load_current_user():
        g.current_user = None
        user_id = session.get(SESSION_USER_KEY)
        if user_id is None:
            return None
        user = db.session.get(User, user_id)
        if user is None:
            # Stale cookie: the account was removed after sign-in
            logger.warning("Session refers to missing user %s; clearing", user_id)
            session.pop(SESSION_USER_KEY, None)
            return None
        g.current_user = user
        return None
