"""
auth/models.py -- Domain dataclasses for the user directory.

Pattern: Data class (pure data container). Stores and routes do the work.

Layer rule: no imports from server/, web/, or sessions/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A row of the users table.

    password is stored and compared as plaintext. This is a known weakness of
    the directory and is kept as-is; do not add hashing here without also
    migrating existing rows.

    profile_image is the public path of the uploaded image
    ("/images/uploads/<filename>"), or None when no image was attached.
    """

    username: str
    password: str
    id: int | None = None
    profile_image: str | None = None


@dataclass
class SessionState:
    """Per-client login state held by the session store.

    A logged-in state always carries the username that passed the credential
    check. The user row may since have been deleted; that does not log the
    session out.
    """

    is_logged_in: bool = False
    username: str = ""

    def __post_init__(self) -> None:
        if self.is_logged_in and not self.username:
            raise ValueError("A logged-in session requires a username.")
