"""
Connection-time authentication for the chat WebSocket.

The credential is looked up in the handshake, in order:
    1. the auth cookie (set by the auth service on login)
    2. a ``token`` query parameter (browsers cannot set WebSocket headers)
    3. an ``Authorization: Bearer`` header

Usage:
    identity = authenticate_websocket(websocket)   # raises AuthenticationError
"""

import uuid

from fastapi import WebSocket

from ai_buddy.auth.models import Identity
from ai_buddy.auth.security import authenticate_token
from ai_buddy.core.config import get_settings


def extract_credential(websocket: WebSocket) -> str | None:
    settings = get_settings()
    token = websocket.cookies.get(settings.auth_cookie_name)
    if token:
        return token

    token = websocket.query_params.get("token")
    if token:
        return token

    scheme, _, credentials = websocket.headers.get("authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


def authenticate_websocket(websocket: WebSocket) -> Identity:
    """Verify the handshake credential once and build the connection identity."""
    token = extract_credential(websocket)
    user = authenticate_token(token)
    return Identity(connection_id=uuid.uuid4().hex, token=token, user=user)
