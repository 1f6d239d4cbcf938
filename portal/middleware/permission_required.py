"""
Permission Decorators: RBAC decorators for route protection.

Usage:
    @bp.route("/circles/create", methods=["GET"])
    @require_permission("circle.create")
    def create():
        ...

Anonymous requests get 401; signed-in users lacking the permission get 403.
"""

import functools
import logging

from flask import g

from portal.services.permission_service import has_permission
from portal.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def require_permission(codename: str):
    """
    Decorator: require the signed-in user to have a specific permission.

    Args:
        codename: Permission codename, e.g. "circle.create"
    """
    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            user = getattr(g, "current_user", None)
            if user is None:
                return api_error(E.UNAUTHENTICATED, "Authentication required")

            if not has_permission(user, codename):
                logger.warning(
                    "User %d denied: missing permission '%s' on %s",
                    user.id, codename, f.__name__,
                    extra={"user_id": user.id},
                )
                return api_error(
                    E.FORBIDDEN, "Permission denied", details={"required": codename},
                )

            return f(*args, **kwargs)
        return decorated
    return decorator
