"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper. UserStore is the repository;
_row_to_user / _row_to_refresh_token are the mappers. Route and auth code
never touches SQL directly.

UserStore plays two collaborator roles:
  - user management: create and look up accounts by email or id.
  - refresh-token persistence: create / read / conditional-update keyed by
    the opaque token string. The issue / lookup / revoke rules live in
    auth/refresh.py; this module only stores what it is given.

Security:
  All queries use bound parameters. No f-strings in SQL.

Consistency:
  revoke_refresh_token() is a single UPDATE guarded by `revoked_at IS NULL`,
  so two concurrent logouts cannot overwrite each other's timestamp and a
  revoked row can never be un-revoked. Everything else is a single-row
  read or insert and relies on the database's own isolation.

Timestamps are stored as ISO 8601 UTC strings and mapped back to aware
datetimes.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import Column, ForeignKey, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine

from auth.models import RefreshTokenRecord, User

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(36), primary_key=True),  # UUID4, canonical string form
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_refresh_tokens = Table(
    "refresh_tokens",
    _metadata,
    Column("token", String(64), primary_key=True),  # 32 random bytes, hex
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Column("expires_at", String(32), nullable=False),
    Column("revoked_at", String(32)),  # NULL until logout
)


# ---------------------------------------------------------------------------
# SQLite pragmas
# ---------------------------------------------------------------------------


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode and foreign key enforcement.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    return value.astimezone(timezone.utc).isoformat() if value is not None else None


def _parse(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User and RefreshTokenRecord entities.

    Usage:
        store = UserStore("sqlite:///chirpy.db")
        user = store.create_user("a@example.com", hash_password("secret"))
        store.get_by_email("a@example.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_sqlite_pragmas)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def create_user(self, email: str, hashed_password: str, *, now: datetime | None = None) -> User:
        """Insert a new user with a fresh random id and return it.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        Callers (POST /api/users) turn that into a 409.
        """
        stamp = now or _utcnow()
        user = User(
            id=uuid4(),
            email=email,
            hashed_password=hashed_password,
            created_at=stamp,
            updated_at=stamp,
        )
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=str(user.id),
                    email=user.email,
                    hashed_password=user.hashed_password,
                    created_at=_iso(user.created_at),
                    updated_at=_iso(user.updated_at),
                )
            )
            conn.commit()
        return user

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: UUID) -> User | None:
        """Look up a user by id. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == str(user_id))).fetchone()
        return _row_to_user(row) if row is not None else None

    # ------------------------------------------------------------------
    # Refresh tokens
    # ------------------------------------------------------------------

    def create_refresh_token(self, record: RefreshTokenRecord) -> None:
        """Insert a refresh-token record.

        Raises sqlalchemy.exc.IntegrityError if the token string already
        exists or the owner does not.
        """
        with self.engine.connect() as conn:
            conn.execute(
                _refresh_tokens.insert().values(
                    token=record.token,
                    user_id=str(record.user_id),
                    created_at=_iso(record.created_at),
                    updated_at=_iso(record.updated_at),
                    expires_at=_iso(record.expires_at),
                    revoked_at=_iso(record.revoked_at),
                )
            )
            conn.commit()

    def get_refresh_token(self, token: str) -> RefreshTokenRecord | None:
        """Fetch a refresh-token record by its token string. O(1) via primary key."""
        with self.engine.connect() as conn:
            row = conn.execute(_refresh_tokens.select().where(_refresh_tokens.c.token == token)).fetchone()
        return _row_to_refresh_token(row) if row is not None else None

    def revoke_refresh_token(self, token: str, revoked_at: datetime) -> bool:
        """Stamp revoked_at on a token that is not yet revoked.

        Returns True if a row changed. False means the token is unknown or
        was already revoked -- the caller distinguishes the two.
        """
        stamp = _iso(revoked_at)
        with self.engine.connect() as conn:
            result = conn.execute(
                _refresh_tokens.update()
                .where((_refresh_tokens.c.token == token) & (_refresh_tokens.c.revoked_at.is_(None)))
                .values(revoked_at=stamp, updated_at=stamp)
            )
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=UUID(row.id),
        email=row.email,
        hashed_password=row.hashed_password,
        created_at=_parse(row.created_at),
        updated_at=_parse(row.updated_at),
    )


def _row_to_refresh_token(row) -> RefreshTokenRecord:
    return RefreshTokenRecord(
        token=row.token,
        user_id=UUID(row.user_id),
        created_at=_parse(row.created_at),
        updated_at=_parse(row.updated_at),
        expires_at=_parse(row.expires_at),
        revoked_at=_parse(row.revoked_at),
    )
