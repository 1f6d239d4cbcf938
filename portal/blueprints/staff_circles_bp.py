"""
Circle registrations: staff API

Blueprint: staff_circles_bp

Endpoints:
    GET  /api/v1/staff/circles
         -- One page of the circles grid, with its column/filter/sort metadata
    GET  /staff/forms/<form_id>/answers/<answer_id>/uploads/<question_id>
         -- Download the file uploaded as the answer to an upload question
"""

import logging
import os

from flask import Blueprint, current_app, jsonify, request, send_from_directory
from werkzeug.exceptions import NotFound

from portal.core.exceptions import NotFoundError, ValidationError
from portal.grid.circles import CirclesGridMaker
from portal.grid.filters import INT64_MAX, parse_filters
from portal.middleware.permission_required import require_permission
from portal.services.custom_form_service import get_answer_detail
from portal.utils.errors import E, api_error

logger = logging.getLogger(__name__)

staff_circles_bp = Blueprint("staff_circles", __name__)


def _pagination_args() -> tuple[int, int]:
    """Parse limit/offset pagination query parameters from the current request.

    Raises:
        ValidationError: If either value is not an integer or offset is out of range.
    """
    default_limit = current_app.config["GRID_DEFAULT_LIMIT"]
    max_limit = current_app.config["GRID_MAX_LIMIT"]
    try:
        limit = int(request.args.get("limit", default_limit))
        offset = int(request.args.get("offset", 0))
    except (ValueError, TypeError):
        raise ValidationError("limit and offset must be integers")
    if offset > INT64_MAX:
        raise ValidationError("offset is out of range", details={"offset": offset})
    return min(max(limit, 1), max_limit), max(offset, 0)


def _serialize(value):
    """Make a grid cell JSON-ready; model instances expose ``to_dict()``."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    return value


@staff_circles_bp.route("/api/v1/staff/circles", methods=["GET"])
@require_permission("staff.circles.read")
def list_circles():
    """List submitted circles as grid rows."""
    grid = CirclesGridMaker()
    try:
        limit, offset = _pagination_args()
        page = grid.get_page(
            limit=limit,
            offset=offset,
            order_by=request.args.get("order_by") or None,
            direction=request.args.get("direction", "asc"),
            filters=parse_filters(request.args.get("filters")),
            mode=request.args.get("mode", "and"),
        )
    except ValidationError as exc:
        return api_error(E.VALIDATION_INVALID, str(exc), details=exc.details)

    return jsonify({
        "keys": grid.keys(),
        "filterable_keys": grid.filterable_keys(),
        "sortable_keys": grid.sortable_keys(),
        "total": page.total,
        "limit": page.limit,
        "offset": page.offset,
        "records": [
            {key: _serialize(value) for key, value in row.items()}
            for row in page.records
        ],
    }), 200


@staff_circles_bp.route(
    "/staff/forms/<int:form_id>/answers/<int:answer_id>/uploads/<int:question_id>",
    methods=["GET"],
)
@require_permission("staff.forms.answers.read")
def show_answer_upload(form_id, answer_id, question_id):
    """Send the file a circle uploaded for an upload question."""
    try:
        detail = get_answer_detail(form_id, answer_id, question_id)
    except NotFoundError:
        return api_error(E.NOT_FOUND, "Uploaded file not found")

    if not detail.question.is_upload or not detail.answer:
        return api_error(E.NOT_FOUND, "Uploaded file not found")

    upload_folder = current_app.config["UPLOAD_FOLDER"]
    try:
        return send_from_directory(upload_folder, detail.answer)
    except NotFound:
        logger.warning(
            "Upload missing on disk: %s",
            os.path.join(upload_folder, detail.answer),
            extra={"form_id": form_id},
        )
        return api_error(E.NOT_FOUND, "Uploaded file not found")
