"""
auth/store.py -- SQLAlchemy Core persistence layer for users.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. Directory, service, and route code never touch SQL directly.

Uniqueness:
  Email uniqueness is a UNIQUE constraint on the users table, applied to the
  normalized email. insert() is a single INSERT statement -- there is no
  read-then-write window, so two concurrent inserts of the same email cannot
  both succeed. The loser's IntegrityError becomes DuplicateEmailError.

Errors:
  Missing rows raise UserNotFound. Any other SQLAlchemyError is logged and
  re-raised as StorageError with a generic message so SQL text and driver
  detail never reach a response. Nothing is retried here.

Security:
  All queries use bound parameters. No f-strings in SQL.

DB URL: passed in by auth/wiring.py from Settings.database_url.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event, func, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import DuplicateEmailError, StorageError, UserNotFound
from auth.models import User

logger = logging.getLogger("identity.store")

# Columns callers may change through update(). id and created_at are immutable;
# updated_at is always set by the store.
UPDATABLE_FIELDS = frozenset({"email", "first_name", "last_name", "password_hash"})

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(36), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),  # normalized
    Column("first_name", String(100), nullable=False),
    Column("last_name", String(100), nullable=False),
    Column("password_hash", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# SQLite tuning
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def normalize_email(email: str) -> str:
    """Canonical form used for storage, uniqueness, and lookup."""
    return email.strip().lower()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore("sqlite:///identity.db")
        store.insert(User(id=..., email="a@x.com", first_name="A", last_name="B", password_hash=digest))
        user = store.find_by_email("A@X.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # check_same_thread: FastAPI runs sync handlers in a thread pool.
            # timeout: wait for a competing writer instead of failing with
            # "database is locked".
            connect_args["check_same_thread"] = False
            connect_args["timeout"] = 30
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite") and ":memory:" not in db_url and "mode=memory" not in db_url:
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, user: User) -> User:
        """Insert a new user and return the stored record.

        The email is normalized before insert. created_at and updated_at are
        set here. Raises DuplicateEmailError if the normalized email is taken.
        """
        now = _now_iso()
        values = {
            "id": user.id,
            "email": normalize_email(user.email),
            "first_name": user.first_name,
            "last_name": user.last_name,
            "password_hash": user.password_hash,
            "created_at": now,
            "updated_at": now,
        }
        try:
            with self.engine.connect() as conn:
                conn.execute(_users.insert().values(**values))
                conn.commit()
        except IntegrityError as exc:
            raise self._translate_integrity_error(exc) from exc
        except SQLAlchemyError as exc:
            raise self._storage_error("insert", exc) from exc
        return User(**values)

    def update(self, user_id: str, **fields) -> User:
        """Apply only the provided fields and refresh updated_at.

        Accepted fields: email, first_name, last_name, password_hash.
        Raises ValueError for anything else, UserNotFound if user_id does not
        exist, DuplicateEmailError if a new email collides with another user.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user fields: {sorted(unknown)!r}")
        if "email" in fields:
            fields["email"] = normalize_email(fields["email"])
        try:
            with self.engine.connect() as conn:
                row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
                if row is None:
                    raise UserNotFound()
                # ISO 8601 UTC strings order lexically; never move backwards.
                fields["updated_at"] = max(_now_iso(), row.updated_at)
                conn.execute(_users.update().where(_users.c.id == user_id).values(**fields))
                conn.commit()
                row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        except IntegrityError as exc:
            raise self._translate_integrity_error(exc) from exc
        except SQLAlchemyError as exc:
            raise self._storage_error("update", exc) from exc
        if row is None:
            # Deleted by a concurrent request between our UPDATE and re-read.
            raise UserNotFound()
        return _row_to_user(row)

    def delete(self, user_id: str) -> None:
        """Permanently delete a user record. Raises UserNotFound if absent."""
        try:
            with self.engine.connect() as conn:
                result = conn.execute(_users.delete().where(_users.c.id == user_id))
                conn.commit()
        except SQLAlchemyError as exc:
            raise self._storage_error("delete", exc) from exc
        if result.rowcount == 0:
            raise UserNotFound()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_by_id(self, user_id: str) -> User:
        """Look up a user by primary key. Raises UserNotFound."""
        return self._find_one(_users.c.id == user_id)

    def find_by_email(self, email: str) -> User:
        """Look up a user by normalized email. Raises UserNotFound."""
        return self._find_one(_users.c.email == normalize_email(email))

    def list_all(self) -> list[User]:
        """Return all users ordered by email."""
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(_users.select().order_by(_users.c.email)).fetchall()
        except SQLAlchemyError as exc:
            raise self._storage_error("list", exc) from exc
        return [_row_to_user(r) for r in rows]

    def count(self) -> int:
        try:
            with self.engine.connect() as conn:
                result = conn.execute(select(func.count()).select_from(_users)).scalar()
        except SQLAlchemyError as exc:
            raise self._storage_error("count", exc) from exc
        return result or 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.warning("Database ping failed", exc_info=True)
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _find_one(self, clause) -> User:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(_users.select().where(clause)).fetchone()
        except SQLAlchemyError as exc:
            raise self._storage_error("lookup", exc) from exc
        if row is None:
            raise UserNotFound()
        return _row_to_user(row)

    @staticmethod
    def _translate_integrity_error(exc: IntegrityError) -> Exception:
        # The only UNIQUE column besides the primary key is email. A UUID4
        # primary key collision is not a realistic outcome, so anything that
        # does not name email is reported as a storage failure.
        if "email" in str(exc.orig).lower():
            return DuplicateEmailError()
        logger.error("Integrity error on users table: %s", type(exc.orig).__name__)
        return StorageError()

    @staticmethod
    def _storage_error(operation: str, exc: SQLAlchemyError) -> StorageError:
        logger.error("User store %s failed: %s", operation, type(exc).__name__)
        return StorageError()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        first_name=row.first_name,
        last_name=row.last_name,
        password_hash=row.password_hash,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
