"""Error taxonomy surfaced by every store and by the membership manager."""

from __future__ import annotations

from pydantic import ValidationError


class TeamhubError(Exception):
    """Base exception for teamhub."""

    status_code = 500

    def __init__(self, code: str, message: str, details=None):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)


class InvalidArgumentError(TeamhubError):
    """Caller input failed validation. Never retried."""

    status_code = 400

    def __init__(self, message: str, details=None):
        super().__init__("INVALID_ARGUMENT", message, details)


class NotFoundError(TeamhubError):
    """Resource is absent or soft-deleted."""

    status_code = 404

    def __init__(self, resource: str, resource_id, message: str | None = None):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(
            "NOT_FOUND",
            message or f"{resource} '{resource_id}' not found",
        )


class ConflictError(TeamhubError):
    """Operation would violate an invariant."""

    status_code = 409

    def __init__(self, message: str, details=None):
        super().__init__("CONFLICT", message, details)


class StorageUnavailableError(TeamhubError):
    """Backing store failed for infrastructural reasons; the whole operation may be retried."""

    status_code = 503

    def __init__(self, message: str = "Storage unavailable", details=None):
        super().__init__("STORAGE_UNAVAILABLE", message, details)


class SealedDataError(TeamhubError):
    """A sealed payload cannot be opened with the configured key. Not retryable."""

    status_code = 500

    def __init__(self, message: str, details=None):
        super().__init__("SEALED_DATA_UNREADABLE", message, details)


def invalid_from_validation(exc: ValidationError) -> InvalidArgumentError:
    """Translate a pydantic ValidationError into an InvalidArgumentError."""
    errors = exc.errors(include_url=False)
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "Invalid input")
    if field:
        message = f"{field}: {message}"
    return InvalidArgumentError(message, details=errors)
