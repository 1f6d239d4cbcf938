"""
Portal-wide exception hierarchy.

Services raise these types; blueprints translate them into JSON error
responses with ``api_error`` so that every endpoint reports the same
status code for the same failure.

Usage:
    from portal.core.exceptions import NotFoundError, ConflictError

    raise NotFoundError(resource="CustomForm", resource_id=3)
    raise ConflictError(resource="CustomForm", field="type", value="circle")
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Args:
        resource: Human-readable model/entity name (e.g. "Circle", "AnswerDetail").
        resource_id: The key that was looked up. Included in logs, not in HTTP response.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input is well-formed but violates a business rule.

    Blueprints report it as a 400 validation error.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would duplicate a unique value.

    Maps to HTTP 409.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        msg = f"{resource} with {field}={value!r} already exists"
        super().__init__(msg)


class DataIntegrityError(Exception):
    """Raised when stored data breaks an invariant the code relies on.

    Not handled by blueprints: it propagates as a 500 so the bad row gets
    noticed instead of being rendered with a default.
    """

    def __init__(self, resource: str, resource_id: int | str | None, field: str) -> None:
        self.resource = resource
        self.resource_id = resource_id
        self.field = field
        super().__init__(f"{resource} id={resource_id} has no value for required field '{field}'")
