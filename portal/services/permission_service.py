"""
Permission Service: codename-based authorization checks.

Each permission codename maps to a policy: a predicate over the signed-in
user.  Evaluation is deny-by-default: unknown codenames and anonymous users
are refused.

Usage:
    from portal.services.permission_service import has_permission

    if has_permission(user, "circle.create"):
        ...
"""

import logging
from typing import Callable

from portal.models.auth import User

logger = logging.getLogger(__name__)

Policy = Callable[[User], bool]

_policies: dict[str, Policy] = {}


def register_policy(codename: str, policy: Policy) -> None:
    """Bind ``codename`` to ``policy``, replacing any previous binding."""
    _policies[codename] = policy


def has_permission(user: User | None, codename: str) -> bool:
    """Return True when ``user`` passes the policy registered for ``codename``."""
    if user is None:
        return False
    policy = _policies.get(codename)
    if policy is None:
        logger.warning("No policy registered for permission '%s'", codename)
        return False
    return bool(policy(user))


def _is_staff(user: User) -> bool:
    return bool(user.is_staff or user.is_admin)


# ── Built-in policies ───────────────────────────────────────────────────

# Registering a circle needs a user whose contact details are confirmed
register_policy("circle.create", lambda user: user.is_verified)
register_policy("staff.circles.read", _is_staff)
register_policy("staff.forms.answers.read", _is_staff)
