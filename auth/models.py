"""
auth/models.py -- Domain dataclasses for account entities.

Pattern: Data class (pure data container, zero logic beyond trivial role
predicates). Stores and routes do the work.

Layer rule: no imports from api/, web/, or inventory/.
"""

from __future__ import annotations

from dataclasses import dataclass

CLIENT = "Client"
EMPLOYEE = "Employee"
ADMIN = "Admin"

ACCOUNT_TYPES = (CLIENT, EMPLOYEE, ADMIN)
STAFF_TYPES = frozenset({EMPLOYEE, ADMIN})


@dataclass
class Account:
    """A registered site visitor.

    account_password holds the bcrypt hash as read from the store. It is set
    to None on the in-memory copy as soon as a login succeeds, before the
    account is turned into token claims.

    id is None before the record is written to the database.
    """

    account_firstname: str
    account_lastname: str
    account_email: str
    account_password: str | None = None
    account_type: str = CLIENT
    account_id: int | None = None

    @property
    def is_staff(self) -> bool:
        return self.account_type in STAFF_TYPES
