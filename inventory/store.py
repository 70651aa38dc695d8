"""
inventory/store.py -- SQLAlchemy-backed persistence layer for the inventory.

Uses SQLAlchemy Core (not ORM) so the dataclasses in inventory/models.py remain
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change, not a rewrite.

Pattern: Repository + Data Mapper. InventoryStore is the repository (one clean
interface per entity). The _row_to_* functions are the mappers. Route handlers
never touch SQL directly.

Referential checks (does classification_id exist?) are the validator's job;
the store only enforces uniqueness: classification names and
(account_id, inv_id) favorite pairs.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = InventoryStore()                                # DATABASE_URL
    store = InventoryStore("postgresql://user:pw@host/db")  # explicit
    class_id = store.add_classification("SUV")
    inv_id = store.add_vehicle(vehicle)
    store.list_by_classification(class_id)
    store.close()
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Column,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
    create_engine,
    event,
    select,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from core.config import get_settings
from inventory.models import Classification, Favorite, Vehicle

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_classifications = Table(
    "classification",
    metadata,
    Column("classification_id", Integer, primary_key=True, autoincrement=True),
    Column("classification_name", String(50), nullable=False, unique=True),
)

_inventory = Table(
    "inventory",
    metadata,
    Column("inv_id", Integer, primary_key=True, autoincrement=True),
    Column("inv_make", String(50), nullable=False),
    Column("inv_model", String(50), nullable=False),
    Column("inv_year", Integer, nullable=False),
    Column("inv_description", Text, nullable=False),
    Column("inv_image", String(255), nullable=False),
    Column("inv_thumbnail", String(255), nullable=False),
    Column("inv_price", Numeric(10, 2, asdecimal=False), nullable=False),
    Column("inv_miles", Integer, nullable=False),
    Column("inv_color", String(30), nullable=False),
    Column(
        "classification_id",
        Integer,
        ForeignKey("classification.classification_id"),
        nullable=False,
    ),
)

_favorites = Table(
    "favorite",
    metadata,
    Column("favorite_id", Integer, primary_key=True, autoincrement=True),
    Column("account_id", Integer, nullable=False),
    Column("inv_id", Integer, ForeignKey("inventory.inv_id"), nullable=False),
    Column("created_at", String(32), nullable=False),
    UniqueConstraint("account_id", "inv_id", name="uq_favorite_account_inv"),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety (set per connection)."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _vehicle_values(vehicle: Vehicle) -> dict:
    return {
        "classification_id": vehicle.classification_id,
        "inv_make": vehicle.inv_make,
        "inv_model": vehicle.inv_model,
        "inv_year": vehicle.inv_year,
        "inv_description": vehicle.inv_description,
        "inv_image": vehicle.inv_image,
        "inv_thumbnail": vehicle.inv_thumbnail,
        "inv_price": vehicle.inv_price,
        "inv_miles": vehicle.inv_miles,
        "inv_color": vehicle.inv_color,
    }


# Every vehicle read joins the classification so callers get its name too.
_vehicle_select = select(_inventory, _classifications.c.classification_name).join(
    _classifications, _inventory.c.classification_id == _classifications.c.classification_id
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class InventoryStore:
    def __init__(self, db_url: Optional[str] = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # FastAPI runs sync handlers in a threadpool; the same pooled
            # connection may be used from several threads.
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Classifications
    # ------------------------------------------------------------------

    def list_classifications(self) -> list[Classification]:
        """Return all classifications ordered by name (navigation order)."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _classifications.select().order_by(_classifications.c.classification_name)
            ).fetchall()
        return [_row_to_classification(r) for r in rows]

    def get_classification(self, classification_id: int) -> Optional[Classification]:
        with self.engine.connect() as conn:
            row = conn.execute(
                _classifications.select().where(_classifications.c.classification_id == classification_id)
            ).fetchone()
        return _row_to_classification(row) if row is not None else None

    def add_classification(self, name: str) -> int:
        """Insert a classification and return its ID.

        Raises sqlalchemy.exc.IntegrityError if the name already exists.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_classifications.insert().values(classification_name=name))
            conn.commit()
            return result.inserted_primary_key[0]

    # ------------------------------------------------------------------
    # Vehicles
    # ------------------------------------------------------------------

    def list_by_classification(self, classification_id: int) -> list[Vehicle]:
        """Return the vehicles in one classification, ordered by make then model."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _vehicle_select.where(_inventory.c.classification_id == classification_id).order_by(
                    _inventory.c.inv_make, _inventory.c.inv_model, _inventory.c.inv_id
                )
            ).fetchall()
        return [_row_to_vehicle(r) for r in rows]

    def get_vehicle(self, inv_id: int) -> Optional[Vehicle]:
        with self.engine.connect() as conn:
            row = conn.execute(_vehicle_select.where(_inventory.c.inv_id == inv_id)).fetchone()
        return _row_to_vehicle(row) if row is not None else None

    def add_vehicle(self, vehicle: Vehicle) -> int:
        """Insert a vehicle and return its assigned inv_id."""
        with self.engine.connect() as conn:
            result = conn.execute(_inventory.insert().values(**_vehicle_values(vehicle)))
            conn.commit()
            return result.inserted_primary_key[0]

    def update_vehicle(self, vehicle: Vehicle) -> bool:
        """Overwrite every mutable column. Returns False if inv_id was not found."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _inventory.update().where(_inventory.c.inv_id == vehicle.inv_id).values(**_vehicle_values(vehicle))
            )
            conn.commit()
        return result.rowcount > 0

    def delete_vehicle(self, inv_id: int) -> bool:
        """Delete a vehicle and any favorites pointing at it.

        Returns True if the vehicle existed. Deleting a missing id is not an
        error -- the caller just reports that nothing was deleted.
        """
        with self.engine.connect() as conn:
            conn.execute(_favorites.delete().where(_favorites.c.inv_id == inv_id))
            result = conn.execute(_inventory.delete().where(_inventory.c.inv_id == inv_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Favorites
    # ------------------------------------------------------------------

    def add_favorite(self, account_id: int, inv_id: int) -> bool:
        """Save a vehicle for an account. Returns False if it was already saved."""
        try:
            with self.engine.connect() as conn:
                conn.execute(_favorites.insert().values(account_id=account_id, inv_id=inv_id, created_at=_now_iso()))
                conn.commit()
        except IntegrityError:
            return False
        return True

    def remove_favorite(self, account_id: int, inv_id: int) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(
                _favorites.delete().where((_favorites.c.account_id == account_id) & (_favorites.c.inv_id == inv_id))
            )
            conn.commit()
        return result.rowcount > 0

    def is_favorite(self, account_id: int, inv_id: int) -> bool:
        with self.engine.connect() as conn:
            row = conn.execute(
                _favorites.select().where((_favorites.c.account_id == account_id) & (_favorites.c.inv_id == inv_id))
            ).fetchone()
        return row is not None

    def list_favorites(self, account_id: int) -> list[Vehicle]:
        """Return the account's saved vehicles, most recently saved first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _vehicle_select.join(_favorites, _favorites.c.inv_id == _inventory.c.inv_id)
                .where(_favorites.c.account_id == account_id)
                .order_by(_favorites.c.created_at.desc(), _favorites.c.favorite_id.desc())
            ).fetchall()
        return [_row_to_vehicle(r) for r in rows]

    def get_favorites(self, account_id: int) -> list[Favorite]:
        with self.engine.connect() as conn:
            rows = conn.execute(_favorites.select().where(_favorites.c.account_id == account_id)).fetchall()
        return [Favorite(account_id=r.account_id, inv_id=r.inv_id, created_at=r.created_at) for r in rows]

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(_classifications.select().limit(1)).fetchall()
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_classification(row) -> Classification:
    return Classification(
        classification_id=row.classification_id,
        classification_name=row.classification_name,
    )


def _row_to_vehicle(row) -> Vehicle:
    return Vehicle(
        inv_id=row.inv_id,
        classification_id=row.classification_id,
        classification_name=row.classification_name,
        inv_make=row.inv_make,
        inv_model=row.inv_model,
        inv_year=row.inv_year,
        inv_description=row.inv_description,
        inv_image=row.inv_image,
        inv_thumbnail=row.inv_thumbnail,
        inv_price=float(row.inv_price),
        inv_miles=row.inv_miles,
        inv_color=row.inv_color,
    )
