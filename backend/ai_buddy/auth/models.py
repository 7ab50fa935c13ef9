"""Identity attached to an authenticated connection."""

from pydantic import BaseModel, ConfigDict


class CurrentUser(BaseModel):
    """Decoded token claims, as issued by the auth service."""
    model_config = ConfigDict(frozen=True)

    user_id: str
    email: str | None = None
    username: str | None = None
    role: str | None = None


class Identity(BaseModel):
    """
    Caller identity for one connection.

    Built once at handshake and handed by reference to every tool invocation
    on that connection, so tools can call other services as the user.
    """
    model_config = ConfigDict(frozen=True)

    connection_id: str
    token: str
    user: CurrentUser | None = None
