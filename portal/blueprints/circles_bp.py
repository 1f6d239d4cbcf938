"""
Circle registration: public pages

Blueprint: circles_bp
Prefix: /circles

Endpoints:
    GET   /circles/create   -- Registration form (terms first, when the form has any)
    GET   /circles/terms    -- Terms of the circle registration form
    POST  /circles/terms    -- Accept the terms and continue to the form
"""

import logging

from flask import Blueprint, g, redirect, render_template, session, url_for

from portal.middleware.permission_required import require_permission
from portal.services.custom_form_service import get_form_by_type, list_questions
from portal.utils.errors import E, api_error

logger = logging.getLogger(__name__)

circles_bp = Blueprint("circles", __name__, url_prefix="/circles")

FORM_TYPE = "circle"
READ_TERMS_KEY = "read_terms"


def _circle_form_or_404():
    form = get_form_by_type(FORM_TYPE)
    if form is None:
        logger.warning("No '%s' custom form configured", FORM_TYPE)
        return None, api_error(E.NOT_FOUND, "Circle registration form is not available")
    return form, None


@circles_bp.route("/create", methods=["GET"])
@require_permission("circle.create")
def create():
    """Render the circle registration form."""
    form, err = _circle_form_or_404()
    if err:
        return err

    if form.description and not session.get(READ_TERMS_KEY):
        return redirect(url_for("circles.terms"))

    return render_template(
        "circles/form.html",
        form=form,
        questions=list_questions(form),
    )


@circles_bp.route("/terms", methods=["GET"])
@require_permission("circle.create")
def terms():
    """Show the terms the visitor must accept before registering."""
    form, err = _circle_form_or_404()
    if err:
        return err
    if not form.description:
        return redirect(url_for("circles.create"))
    return render_template("circles/terms.html", form=form)


@circles_bp.route("/terms", methods=["POST"])
@require_permission("circle.create")
def accept_terms():
    """Remember that the visitor accepted the terms for this session."""
    session[READ_TERMS_KEY] = True
    logger.info("Terms accepted by user %s", g.current_user.id, extra={"user_id": g.current_user.id})
    return redirect(url_for("circles.create"))
