"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts.

Pattern: Repository + Data Mapper (same as inventory/store.py).
AccountStore is the repository; _row_to_account is the mapper.
Route and gate code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  account_email carries a UNIQUE constraint. Two concurrent registrations
  with the same email race at this constraint, not in application code:
  create_account() lets sqlalchemy.exc.IntegrityError propagate so the
  controller can report the failure even after its own checks passed.

Layer rule: no imports from api/, web/, or inventory/.
"""

from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, Integer, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine

from auth.models import ACCOUNT_TYPES, CLIENT, Account
from core.config import get_settings

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_accounts = Table(
    "account",
    _metadata,
    Column("account_id", Integer, primary_key=True, autoincrement=True),
    Column("account_firstname", String(100), nullable=False),
    Column("account_lastname", String(100), nullable=False),
    Column("account_email", String(255), nullable=False, unique=True),
    Column("account_password", Text, nullable=False),
    Column("account_type", String(20), nullable=False, server_default=CLIENT),
    CheckConstraint(
        "account_type IN ({})".format(", ".join(f"'{t}'" for t in ACCOUNT_TYPES)),
        name="ck_account_type",
    ),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block during writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountStore:
    """Repository for Account entities.

    Usage:
        store = AccountStore()
        account_id = store.create_account(Account(..., account_password=hash_password("Secret#1")))
        account = store.get_by_email("pat@example.com")
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def create_account(self, account: Account) -> int:
        """Insert a new account and return its assigned ID.

        Raises sqlalchemy.exc.IntegrityError if the email is already registered.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _accounts.insert().values(
                    account_firstname=account.account_firstname,
                    account_lastname=account.account_lastname,
                    account_email=account.account_email,
                    account_password=account.account_password,
                    account_type=account.account_type,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_email(self, email: str) -> Account | None:
        """Look up an account by exact email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.account_email == email)).fetchone()
        return _row_to_account(row) if row is not None else None

    def get_by_id(self, account_id: int) -> Account | None:
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.account_id == account_id)).fetchone()
        return _row_to_account(row) if row is not None else None

    def list_accounts(self) -> list[Account]:
        """Return every account ordered by email. Used by the operator CLI."""
        with self.engine.connect() as conn:
            rows = conn.execute(_accounts.select().order_by(_accounts.c.account_email)).fetchall()
        return [_row_to_account(r) for r in rows]

    def update_account(self, account_id: int, firstname: str, lastname: str, email: str) -> bool:
        """Update name and email. Returns True if a row was updated.

        Raises IntegrityError if the email was taken by a concurrent write.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _accounts.update()
                .where(_accounts.c.account_id == account_id)
                .values(account_firstname=firstname, account_lastname=lastname, account_email=email)
            )
            conn.commit()
        return result.rowcount > 0

    def update_password(self, account_id: int, hashed_password: str) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(
                _accounts.update()
                .where(_accounts.c.account_id == account_id)
                .values(account_password=hashed_password)
            )
            conn.commit()
        return result.rowcount > 0

    def update_account_type(self, account_id: int, account_type: str) -> bool:
        """Change an account's role. Existing tokens keep the old role until re-login."""
        if account_type not in ACCOUNT_TYPES:
            raise ValueError(f"Unknown account type: {account_type!r}")
        with self.engine.connect() as conn:
            result = conn.execute(
                _accounts.update().where(_accounts.c.account_id == account_id).values(account_type=account_type)
            )
            conn.commit()
        return result.rowcount > 0

    def ping(self) -> bool:
        """Cheap connectivity check for the health endpoint."""
        with self.engine.connect() as conn:
            conn.execute(_accounts.select().limit(1)).fetchall()
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_account(row) -> Account:
    return Account(
        account_id=row.account_id,
        account_firstname=row.account_firstname,
        account_lastname=row.account_lastname,
        account_email=row.account_email,
        account_password=row.account_password,
        account_type=row.account_type,
    )
