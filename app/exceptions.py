"""
Application error taxonomy.

Repositories raise these directly; services let them through (except
where a lookup failure is recast as a payload error) and the exception
handlers registered in ``app.main`` translate them to JSON responses of
the form ``{"status": <code>, "message": ..., "errors": {...}}``.
"""


class AppError(Exception):
    """Base class for every error that maps to an HTTP response."""

    status_code: int = 500

    def __init__(self, message: str, errors: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = errors

    def to_dict(self) -> dict:
        body: dict = {"status": self.status_code, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class NotFoundError(AppError):
    """An entity of the given kind does not exist."""

    status_code = 404

    def __init__(self, kind: str) -> None:
        super().__init__(f"{kind} not found")
        self.kind = kind


class InvalidPayloadError(AppError):
    """Semantic validation failed on one or more named fields."""

    status_code = 422

    def __init__(self, errors: dict[str, str] | None = None) -> None:
        super().__init__("Invalid payload", errors)


class BadRequestError(AppError):
    """A business rule was violated that is not tied to a single field."""

    status_code = 400


class UnauthorizedError(AppError):
    status_code = 401


class InternalError(AppError):
    """Unexpected infrastructure failure (usually a wrapped database error)."""

    status_code = 500
