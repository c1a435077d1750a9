"""
auth/store.py -- SQLAlchemy Core persistence layer for the users table.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user is the mapper.
Route code never touches SQL directly.

Error contract:
  Every public method wraps sqlalchemy.exc.SQLAlchemyError in RepositoryError
  (chained with `from`), so routes catch one exception type and decide per
  route how much of the message to show.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Passwords are stored and matched as plaintext (known weakness, kept).

DB path: auth/userdir.db by default (DATABASE_URL overrides).

Layer rule: no imports from server/, web/, or sessions/.
"""

from __future__ import annotations

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import Pool

from auth.models import User
from core.config import get_settings

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    # Not UNIQUE: the directory never enforced distinct usernames.
    Column("username", String(255), nullable=False),
    Column("password", Text, nullable=False),
    Column("profile_image", Text),  # NULL when no image was uploaded
)


class RepositoryError(Exception):
    """Raised when the database rejects or fails a users-table operation."""


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User rows.

    Usage:
        store = UserStore()
        store.create_user(User(username="admin", password="secret"))
        users = store.list_users()
        store.close()
    """

    def __init__(self, db_url: str | None = None, poolclass: type[Pool] | None = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        engine_kwargs: dict = {"connect_args": connect_args}
        if poolclass is not None:
            engine_kwargs["poolclass"] = poolclass
        self.engine: Engine = create_engine(db_url, **engine_kwargs)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_users(self) -> bool:
        """Return True if at least one user record exists."""
        try:
            with self.engine.connect() as conn:
                result = conn.execute(text("SELECT COUNT(*) FROM users")).scalar()
        except SQLAlchemyError as exc:
            raise RepositoryError(str(exc)) from exc
        return (result or 0) > 0

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID."""
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _users.insert().values(
                        username=user.username,
                        password=user.password,
                        profile_image=user.profile_image,
                    )
                )
                conn.commit()
        except SQLAlchemyError as exc:
            raise RepositoryError(str(exc)) from exc
        return result.inserted_primary_key[0]

    def find_by_credentials(self, username: str, password: str) -> list[User]:
        """Return every row whose username AND password equal the given strings exactly.

        No normalization, no hashing, no constant-time comparison. An empty
        string is queried literally.
        """
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(
                    _users.select().where((_users.c.username == username) & (_users.c.password == password))
                ).fetchall()
        except SQLAlchemyError as exc:
            raise RepositoryError(str(exc)) from exc
        return [_row_to_user(r) for r in rows]

    def list_users(self) -> list[User]:
        """Return all users in insertion (id) order."""
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(_users.select().order_by(_users.c.id)).fetchall()
        except SQLAlchemyError as exc:
            raise RepositoryError(str(exc)) from exc
        return [_row_to_user(r) for r in rows]

    def delete_user(self, user_id: int) -> bool:
        """Delete a user by primary key. Returns True if deleted, False if not found.

        The uploaded profile image, if any, is left on disk.
        """
        try:
            with self.engine.connect() as conn:
                result = conn.execute(_users.delete().where(_users.c.id == user_id))
                conn.commit()
        except OverflowError:
            # Outside SQLite's 64-bit INTEGER range, so no row can match.
            return False
        except SQLAlchemyError as exc:
            raise RepositoryError(str(exc)) from exc
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        password=row.password,
        profile_image=row.profile_image,
    )
