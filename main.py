#!/usr/bin/env python3
"""
Dealership site -- operator commands.

The web UI only ever creates Client accounts, so staff accounts and role
changes are made here.

Usage:
  python main.py init-db
  python main.py create-account --first Ada --last Lovelace --email ada@example.com --role Admin
  python main.py set-role ada@example.com Employee
  python main.py list-accounts
  python main.py add-classification SUV

Environment variables:
  DATABASE_URL  SQLAlchemy URL of the site database (default: sqlite:///dealership.db)
  SECRET_KEY    Required unless ENVIRONMENT=development (settings load on import)
"""

import argparse
import getpass
import sys
from typing import Optional

from sqlalchemy.exc import IntegrityError

from auth.forms import normalize_email, registration_rules
from auth.models import ACCOUNT_TYPES, CLIENT, Account
from auth.store import AccountStore
from auth.tokens import hash_password
from core.validation import validate
from inventory.forms import classification_rules
from inventory.store import InventoryStore


def _print_errors(errors) -> None:
    for err in errors:
        print(f"  [!] {err.field}: {err.message}", file=sys.stderr)


def _read_password(provided: Optional[str]) -> str:
    """Use --password if given, otherwise prompt twice without echo."""
    if provided is not None:
        return provided
    first = getpass.getpass("Password: ")
    second = getpass.getpass("Repeat password: ")
    if first != second:
        print("  [!] Passwords do not match.", file=sys.stderr)
        sys.exit(1)
    return first


def cmd_init_db(args: argparse.Namespace) -> int:
    # Both stores create their tables on construction.
    AccountStore(args.database_url).close()
    InventoryStore(args.database_url).close()
    print("Database tables are ready.")
    return 0


def cmd_create_account(args: argparse.Namespace) -> int:
    password = _read_password(args.password)
    data = {
        "account_firstname": args.first,
        "account_lastname": args.last,
        "account_email": args.email,
        "account_password": password,
    }
    errors = validate(data, registration_rules())
    if errors:
        _print_errors(errors)
        return 1

    store = AccountStore(args.database_url)
    try:
        account_id = store.create_account(
            Account(
                account_firstname=args.first.strip(),
                account_lastname=args.last.strip(),
                account_email=normalize_email(args.email),
                account_password=hash_password(password),
                account_type=args.role,
            )
        )
    except IntegrityError:
        print(f"  [!] An account with email '{normalize_email(args.email)}' already exists.", file=sys.stderr)
        return 1
    finally:
        store.close()

    print(f"Created {args.role} account {account_id} for {normalize_email(args.email)}.")
    return 0


def cmd_set_role(args: argparse.Namespace) -> int:
    store = AccountStore(args.database_url)
    try:
        account = store.get_by_email(normalize_email(args.email))
        if account is None:
            print(f"  [!] No account with email '{args.email}'.", file=sys.stderr)
            return 1
        store.update_account_type(account.account_id, args.role)
    finally:
        store.close()
    # Tokens already issued keep the old role until they expire.
    print(f"{account.account_email} is now {args.role}. The change applies from the next login.")
    return 0


def cmd_list_accounts(args: argparse.Namespace) -> int:
    store = AccountStore(args.database_url)
    try:
        accounts = store.list_accounts()
    finally:
        store.close()
    if not accounts:
        print("No accounts.")
        return 0
    for a in accounts:
        print(f"  {a.account_id:>5}  {a.account_type:<9} {a.account_email}  ({a.account_firstname} {a.account_lastname})")
    return 0


def cmd_add_classification(args: argparse.Namespace) -> int:
    errors = validate({"classification_name": args.name}, classification_rules())
    if errors:
        _print_errors(errors)
        return 1
    store = InventoryStore(args.database_url)
    try:
        class_id = store.add_classification(args.name.strip())
    except IntegrityError:
        print(f"  [!] Classification '{args.name}' already exists.", file=sys.stderr)
        return 1
    finally:
        store.close()
    print(f"Added classification {class_id}: {args.name.strip()}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="dealership",
        description="Operator commands for the dealership inventory site.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py init-db
  python main.py create-account --first Ada --last Lovelace --email ada@example.com --role Admin
  python main.py set-role client@example.com Employee
  DATABASE_URL=sqlite:///other.db python main.py list-accounts
        """,
    )
    parser.add_argument(
        "--database-url",
        metavar="URL",
        default=None,
        help="SQLAlchemy database URL (default: DATABASE_URL or sqlite:///dealership.db)",
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    p = sub.add_parser("init-db", help="Create any missing tables")
    p.set_defaults(func=cmd_init_db)

    p = sub.add_parser("create-account", help="Create an account with any role")
    p.add_argument("--first", required=True, help="First name")
    p.add_argument("--last", required=True, help="Last name")
    p.add_argument("--email", required=True, help="Login email")
    p.add_argument("--role", choices=ACCOUNT_TYPES, default=CLIENT, help="Account type (default: Client)")
    p.add_argument("--password", default=None, help="Password (prompted for when omitted)")
    p.set_defaults(func=cmd_create_account)

    p = sub.add_parser("set-role", help="Change an account's role")
    p.add_argument("email", help="Email of the account to change")
    p.add_argument("role", choices=ACCOUNT_TYPES, help="New account type")
    p.set_defaults(func=cmd_set_role)

    p = sub.add_parser("list-accounts", help="List every account")
    p.set_defaults(func=cmd_list_accounts)

    p = sub.add_parser("add-classification", help="Add a vehicle classification")
    p.add_argument("name", help="Classification name (letters and digits only)")
    p.set_defaults(func=cmd_add_classification)

    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 1
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
