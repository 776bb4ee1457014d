"""Domain exceptions.

Services raise these; main.py renders them as RFC 9457 Problem Details.
Every exception carries the HTTP status it maps to, a stable problem type
slug, a human-readable title and the detail message shown to the caller.
"""

from typing import Optional

PROBLEM_BASE_URL = "https://api.qcard.app/problems"


class QCardError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 400
    title: str = "Bad Request"
    slug: str = "bad-request"

    def __init__(self, detail: str, error_type: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        self.error_type = error_type or f"{PROBLEM_BASE_URL}/{self.slug}"


class DomainValidationError(QCardError):
    """Request is well-formed but violates a business rule (400)."""

    status_code = 400
    title = "Bad Request"
    slug = "validation-failed"


class AuthenticationRequiredError(QCardError):
    status_code = 401
    title = "Unauthorized"
    slug = "unauthorized"


class PermissionDeniedError(QCardError):
    status_code = 403
    title = "Forbidden"
    slug = "forbidden"


class NotFoundError(QCardError):
    status_code = 404
    title = "Not Found"
    slug = "not-found"


class ConflictError(QCardError):
    """Uniqueness rule violated (duplicate invitation, assignment, ...)."""

    status_code = 409
    title = "Conflict"
    slug = "conflict"
