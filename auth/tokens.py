"""
auth/tokens.py -- Session cookie signing and the credential check.

Security design decisions:
  Session cookie: the browser holds only an opaque session id, wrapped in an
       HS256 JWT (python-jose) signed with SECRET_KEY. The JWT carries no
       expiry -- session lifetime is owned by sessions.store.SessionStore.
       Verification returns None on any failure, which the dependency layer
       treats as an anonymous visitor.

  Credentials: compared as plaintext through UserStore.find_by_credentials().
       There is no hashing and no timing equalization. This is a known
       weakness of the directory, kept deliberately.

  SECRET_KEY: sourced from core.config.get_settings(), which refuses short
       or missing keys outside DEBUG mode.

Layer rule: no imports from server/ or web/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from jose import JWTError, jwt

from core.config import get_settings

if TYPE_CHECKING:
    from auth.store import UserStore

logger = logging.getLogger("userdir.auth")

_settings = get_settings()

_ALGORITHM = "HS256"

SESSION_COOKIE = "sid"


# ---------------------------------------------------------------------------
# Session token encode / decode
# ---------------------------------------------------------------------------


def create_session_token(session_id: str) -> str:
    """Sign a session id for storage in the client cookie."""
    return jwt.encode({"sid": session_id}, _settings.secret_key, algorithm=_ALGORITHM)


def decode_session_token(token: str) -> str | None:
    """Verify a session cookie and return the session id, or None on any failure."""
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    session_id = payload.get("sid")
    return session_id if isinstance(session_id, str) else None


# ---------------------------------------------------------------------------
# Credential check
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, username: str, password: str) -> bool:
    """Return True if at least one row matches username AND password exactly.

    RepositoryError from the store propagates; the login route maps it to the
    same "Invalid login" answer as a mismatch.
    """
    return len(store.find_by_credentials(username, password)) > 0


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_session_cookie(response, session_id: str) -> None:
    """Write the signed session id as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie.
    samesite="lax": not sent on cross-site POST.
    secure: only sent over HTTPS when SECURE_COOKIES=true.
    max_age: matches the server-side session TTL.
    """
    response.set_cookie(
        SESSION_COOKIE,
        value=create_session_token(session_id),
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        max_age=_settings.session_expire_seconds,
    )


def clear_session_cookie(response) -> None:
    response.delete_cookie(SESSION_COOKIE)
