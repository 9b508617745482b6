"""
Errors raised by the ProjectHub services and board.

``projecthub.utils.errors.register_error_handlers`` turns each of these into
a JSON response, so views let them propagate:

    NotFoundError        404
    ValidationError      422  (``details`` maps field -> problem)
    ConflictError        409
    AuthError            ``status_code``
    SessionExpiredError  401, the board signs the user out first
    StoreError           503

StoreError is the recoverable one: a failed read or write that the board
logs and survives. SessionExpiredError is not.
"""


class ProjectHubError(Exception):
    """Base class; catch this to handle any service failure."""


class NotFoundError(ProjectHubError):
    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        where = "" if resource_id is None else f" id={resource_id}"
        super().__init__(f"{resource}{where} not found")


class ValidationError(ProjectHubError):
    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


class ConflictError(ProjectHubError):
    """A unique column already holds ``value``."""

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        super().__init__(f"{resource} with {field}={value!r} already exists")
        self.resource = resource
        self.field = field
        self.value = value


class AuthError(ProjectHubError):
    """Rejected credentials or sign-up. ``message`` is shown to the user as is."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SessionExpiredError(ProjectHubError):
    def __init__(self, message: str = "Session expired") -> None:
        super().__init__(message)


class StoreError(ProjectHubError):
    """``operation`` against the persistence layer failed, e.g. ``persist_order``."""

    def __init__(self, operation: str, cause: Exception | None = None) -> None:
        suffix = "" if cause is None else f": {cause}"
        super().__init__(f"{operation} failed{suffix}")
        self.operation = operation
        self.cause = cause
