"""
Platform-wide exception hierarchy.

Services raise these; blueprints never build error responses for business
failures themselves. ``legal_desk.utils.errors.register_error_handlers``
maps each type to one HTTP status and the ``{"success": false, ...}``
payload shape.

Usage:
    from legal_desk.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Submission", resource_id=sid)
    raise ValidationError("title is required", details={"title": "required"})
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Args:
        resource: Human-readable entity name (e.g. "Submission", "Document").
        resource_id: The key that was looked up. Included in logs and message.
    """

    status_code = 404

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input is missing/malformed or a transition is not permitted.

    Maps to HTTP 400. Invalid state transitions (e.g. deleting a submission
    that is no longer a draft) are reported through this type as well.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    status_code = 400

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class UnauthorizedError(Exception):
    """Raised when a role-gated operation is called without a verified identity.

    Maps to HTTP 401.
    """

    status_code = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class PermissionDeniedError(Exception):
    """Raised when the caller's role lacks the capability for an operation.

    Maps to HTTP 403. The message stays generic; the missing capability is
    only logged.

    Args:
        capability: The capability codename that was required.
    """

    status_code = 403

    def __init__(self, capability: str | None = None) -> None:
        self.capability = capability
        super().__init__("Permission denied")


class ConflictError(Exception):
    """Raised when an operation would violate a uniqueness constraint.

    Maps to HTTP 409.

    Args:
        resource: Model name.
        field: The unique field that would be duplicated.
        value: The conflicting value.
    """

    status_code = 409

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        msg = f"{resource} with {field}={value!r} already exists"
        super().__init__(msg)


class PersistenceError(Exception):
    """Raised when the store fails unexpectedly.

    Maps to HTTP 500. The original exception is chained and logged; the
    caller only sees a generic message.
    """

    status_code = 500

    def __init__(self, message: str = "Database error") -> None:
        super().__init__(message)
