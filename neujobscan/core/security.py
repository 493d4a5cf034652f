from __future__ import annotations

from fastapi import Depends, Header

from neujobscan.core.errors import AuthenticationError
from neujobscan.core.session_store import SessionStore, get_default_session_store
from neujobscan.schemas.auth import Session


def get_session_store() -> SessionStore:
    return get_default_session_store()


def bearer_token(authorization: str | None) -> str:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Missing or malformed Authorization header. Expected 'Bearer <token>'.")
    return token.strip()


def require_session(
    authorization: str | None = Header(default=None),
    store: SessionStore = Depends(get_session_store),
) -> Session:
    session = store.get(bearer_token(authorization))
    if session is None:
        raise AuthenticationError("Session is invalid or has expired.")
    return session
