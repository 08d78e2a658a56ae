"""Error taxonomy shared by the taste and recommendation flows."""

from __future__ import annotations


class RefindaError(RuntimeError):
    """Base error carrying the HTTP status it should surface with."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        if status_code is not None:
            self.status_code = status_code
        self.message = message
        super().__init__(message)


class InvalidInputError(RefindaError):
    """Malformed request: unknown action, out-of-range index, bad body."""

    status_code = 400


class UnauthorizedError(RefindaError):
    status_code = 401


class ForbiddenError(RefindaError):
    status_code = 403


class NotFoundError(RefindaError):
    """Referenced run or profile does not exist."""

    status_code = 404


class ConcurrentUpdateError(RefindaError):
    """Taste vector kept changing underneath the read-modify-write loop."""

    status_code = 409


class UpstreamError(RefindaError):
    """The LLM provider failed or returned output we could not validate."""

    status_code = 502


class ProfileDataError(RefindaError):
    """Stored profile learning parameters are unusable."""

    status_code = 500
