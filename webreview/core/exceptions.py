"""
Application-wide exception hierarchy.

Services raise these; the app factory registers one handler per type, so
every blueprint gets the same HTTP status and error body without catching
anything itself.

Usage:
    from webreview.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Project", resource_id=project_id)
    raise ValidationError("Name, client, and URL are required")

Status mapping:
    AuthenticationError  401
    AuthorizationError   403
    ValidationError      400
    ConflictError        400  (duplicates are reported as validation failures)
    NotFoundError        404
"""


class WebReviewError(Exception):
    """Base class; ``status_code`` drives the HTTP response."""

    status_code = 400

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class AuthenticationError(WebReviewError):
    """Missing, invalid or expired credentials."""

    status_code = 401

    def __init__(self, message: str = "Authentication required", details: dict | None = None) -> None:
        super().__init__(message, details)


class AuthorizationError(WebReviewError):
    """Authenticated, but the role or ownership rules forbid the action."""

    status_code = 403

    def __init__(self, message: str = "Access denied", details: dict | None = None) -> None:
        super().__init__(message, details)


class ValidationError(WebReviewError):
    """Input is malformed, missing, out of its enum, or breaks a business rule."""

    status_code = 400


class ConflictError(WebReviewError):
    """The operation would duplicate something that must be unique.

    Args:
        message: Caller-facing explanation.
        resource: Model name, for logs.
        field: The unique field that would be duplicated, for logs.
    """

    status_code = 400

    def __init__(self, message: str, resource: str | None = None, field: str | None = None) -> None:
        self.resource = resource
        self.field = field
        super().__init__(message)


class NotFoundError(WebReviewError):
    """Raised when a requested resource does not exist within the caller's organization.

    Used for BOTH genuinely missing records AND cross-organization lookups,
    so a caller cannot discover ids belonging to another organization.

    Args:
        resource: Human-readable entity name (e.g. "Project").
        resource_id: The id that was looked up. Logged, not returned.
        organization_id: The scope that was enforced. Logged, not returned.
    """

    status_code = 404

    def __init__(
        self,
        resource: str,
        resource_id: str | None = None,
        organization_id: str | None = None,
    ) -> None:
        self.resource = resource
        self.resource_id = resource_id
        self.organization_id = organization_id
        super().__init__(f"{resource} not found")
