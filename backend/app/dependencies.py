from fastapi import Header

from app.exceptions import AuthenticationError


async def get_current_user_id(x_user_id: str | None = Header(default=None)) -> int:
    """Requesting user, as forwarded by the auth gateway in X-User-Id."""
    if not x_user_id:
        raise AuthenticationError("Missing X-User-Id header")
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise AuthenticationError("Malformed X-User-Id header") from None
    if user_id <= 0:
        raise AuthenticationError("Malformed X-User-Id header")
    return user_id
