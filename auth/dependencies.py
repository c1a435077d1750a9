"""
auth/dependencies.py -- FastAPI Depends() helper that injects the Session.

load_session() reads the signed "sid" cookie, verifies it, and looks the id
up in app.state.session_store. A missing, tampered, unknown, or expired
cookie yields an anonymous Session -- never an error.

The auth gate calls load_session() once per request and parks the result on
request.state.session; get_session() hands that same object to the route so
a handler and the gate can never disagree about who is logged in.

Usage:
    @router.get("/users")
    def list_users(request: Request, session: Session = Depends(get_session)): ...
"""

from __future__ import annotations

from fastapi import Request

from auth.tokens import SESSION_COOKIE, decode_session_token
from sessions.store import Session


def load_session(request: Request) -> Session:
    """Build the Session for this request from its cookie."""
    store = request.app.state.session_store
    token = request.cookies.get(SESSION_COOKIE)
    session_id = decode_session_token(token) if token else None
    return Session.load(store, session_id)


def get_session(request: Request) -> Session:
    """Return the request's Session, loading it if the gate has not already."""
    session = getattr(request.state, "session", None)
    if session is None:
        session = load_session(request)
        request.state.session = session
    return session
