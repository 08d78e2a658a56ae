"""Authentication helpers and route dependencies."""

from fastapi import Depends, Header

from refinda.config.settings import get_settings
from refinda.errors import UnauthorizedError


def require_internal_token(
    x_internal_token: str | None = Header(default=None, alias="X-Internal-Token"),
) -> None:
    """
    Ensure that callers present the shared internal token.

    The check is skipped when ``INTERNAL_TOKEN`` is not configured, which keeps
    local development open.
    """

    expected_token = get_settings().internal_token
    if expected_token and x_internal_token != expected_token:
        raise UnauthorizedError("Invalid internal token.")


def current_user_id(
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> str:
    """Return the caller's user id as forwarded by the upstream gateway."""

    user_id = (x_user_id or "").strip()
    if not user_id:
        raise UnauthorizedError("Missing X-User-Id header.")
    return user_id


InternalAuthDependency = Depends(require_internal_token)
