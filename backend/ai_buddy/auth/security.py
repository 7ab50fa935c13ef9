"""JWT utilities. Tokens are issued by the auth service; this side only verifies."""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from ai_buddy.auth.models import CurrentUser
from ai_buddy.core.config import get_settings
from ai_buddy.core.errors import AuthenticationError


def create_access_token(
    user_id: str,
    email: str | None = None,
    username: str | None = None,
    role: str = "user",
    expires_delta: timedelta = timedelta(hours=1),
) -> str:
    """Mint a token with the auth service's claim layout (local tooling and tests)."""
    settings = get_settings()
    payload = {
        "id": user_id,
        "email": email,
        "username": username,
        "role": role,
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    """
    Decode and verify a JWT. Raises jose.JWTError on failure.
    Returns the raw payload dict.
    """
    settings = get_settings()
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def authenticate_token(token: str | None) -> CurrentUser:
    """Verify a credential and return its claims, or raise AuthenticationError."""
    if not token:
        raise AuthenticationError("Authentication token is missing")
    try:
        payload = decode_token(token)
    except JWTError as exc:
        raise AuthenticationError("Invalid authentication token") from exc

    user_id = payload.get("id") or payload.get("sub")
    if not user_id:
        raise AuthenticationError("Token carries no user id")

    return CurrentUser(
        user_id=str(user_id),
        email=payload.get("email"),
        username=payload.get("username"),
        role=payload.get("role"),
    )
