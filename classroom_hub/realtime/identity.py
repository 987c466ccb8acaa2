"""Handshake authentication for classroom sockets.

Clients present a JWT access token once, when the socket connects, either
as `auth: { token }` (socket.io-client default) or as `?token=` in the
query string. Identity is trusted for the lifetime of the connection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs

from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import UntypedToken

from classroom_hub.rooms.errors import Unauthenticated


@dataclass(frozen=True)
class Identity:
    user_id: str | None
    username: str | None
    claims: dict[str, Any]

    def as_session(self) -> dict[str, Any]:
        return {"user_id": self.user_id, "username": self.username}


def extract_token(environ: dict[str, Any], auth: Any | None) -> str | None:
    """Extract the JWT from Socket.IO auth data or the handshake environ.

    Handles python-socketio environ shapes across ASGI/WSGI servers.
    """

    if isinstance(auth, dict):
        auth_token = auth.get("token")
        if isinstance(auth_token, str) and auth_token:
            return auth_token

    scope: Any = environ
    if isinstance(environ, dict) and "asgi.scope" in environ:
        inner = environ.get("asgi.scope")
        if isinstance(inner, dict):
            scope = inner

    query_string: str | bytes = ""
    if isinstance(scope, dict) and "query_string" in scope:
        query_string = scope.get("query_string", b"")
    elif isinstance(scope, dict) and "QUERY_STRING" in scope:
        query_string = scope.get("QUERY_STRING", "")

    if isinstance(query_string, (bytes, bytearray)):
        query_string = query_string.decode(errors="ignore")

    token = parse_qs(str(query_string)).get("token", [None])[0]
    if isinstance(token, str) and token:
        return token

    return None


def verify_token(token: str | None) -> Identity:
    """Validate signature and expiry of `token` and return its identity.

    Any token type is accepted; the issuer does not stamp one.

    Raises `Unauthenticated` with reason ``unauthorized`` or ``jwt_expired``.
    """

    if not token:
        raise Unauthenticated

    try:
        validated = UntypedToken(token)
    except TokenError as exc:
        # Clients refresh their token on this exact reason.
        if "expired" in str(exc).lower():
            raise Unauthenticated("jwt_expired") from exc
        raise Unauthenticated from exc

    claims = dict(validated.payload)
    user_id = claims.get(api_settings.USER_ID_CLAIM)
    return Identity(
        user_id=str(user_id) if user_id is not None else None,
        username=claims.get("username"),
        claims=claims,
    )
