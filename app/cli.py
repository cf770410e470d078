"""CLI for the work-order service: bootstrap an admin, run maintenance passes."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import json
import sys

from app.services.auth import MIN_PASSWORD_LENGTH

CLI_USER = "cli"


def _cli_admin():
    from app.services.auth import AuthContext

    return AuthContext(user_id=CLI_USER, role="admin", email="", display_name="CLI")


async def cmd_create_admin(args):
    """Create an admin person together with its login user."""
    from app.db.engine import async_session_factory, create_tables
    from app.db import crud
    from app.models import Person, User
    from app.services.auth import hash_password
    from app.services.rut import validate_rut, format_rut

    await create_tables()

    if not validate_rut(args.rut):
        print(f"Invalid RUT: {args.rut}")
        sys.exit(1)

    password = args.password
    if not password:
        password = getpass.getpass("Admin password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match")
            sys.exit(1)

    if len(password) < MIN_PASSWORD_LENGTH:
        print(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        sys.exit(1)

    email = args.email.strip().lower()
    async with async_session_factory() as db:
        if await crud.get_user_by_email(db, email):
            print(f"A user with email {email} already exists")
            sys.exit(1)
        person = Person(
            full_name=args.name,
            national_id=format_rut(args.rut),
            email=email,
            role="admin",
            updated_by=CLI_USER,
        )
        db.add(person)
        await db.flush()
        db.add(User(
            id=person.id,
            email=email,
            display_name=args.name,
            password_hash=hash_password(password),
            role="admin",
        ))
        await db.commit()

    print(f"Admin created: {args.name} <{email}> (id={person.id})")


async def cmd_reconcile(args):
    """Backfill owner/technician ids on every work order."""
    from app.db.engine import async_session_factory, create_tables
    from app.services.reconciliation import reconcile_identities

    await create_tables()
    async with async_session_factory() as db:
        report = await reconcile_identities(db, _cli_admin(), dry_run=args.dry_run)

    print(json.dumps(report.as_dict(), indent=2, ensure_ascii=False))
    verb = "would update" if args.dry_run else "updated"
    print(f"\nScanned {report.scanned} records, {verb} {report.updated}, {len(report.unresolved)} unresolved.")


async def cmd_close_project(args):
    from app.db.engine import async_session_factory
    from app.services.flows import run_flow
    from app.services.projects import close_project

    async with async_session_factory() as db:
        result = await run_flow("close_project", close_project(db, args.project_id, args.closed_by))

    if not result.success:
        print(f"Error: {result.error}")
        sys.exit(1)
    print(result.data["summary"])
    print(f"\nSummary order: {result.data['order_id']}")


def main():
    from app.main import setup_logging

    parser = argparse.ArgumentParser(description="ICSA work order CLI")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    subparsers = parser.add_subparsers(dest="command")

    # create-admin
    ca = subparsers.add_parser("create-admin", help="Create an admin user")
    ca.add_argument("--name", required=True, help="Full name")
    ca.add_argument("--email", required=True, help="Login email")
    ca.add_argument("--rut", required=True, help="National id (RUT)")
    ca.add_argument("--password", default="", help="Password (prompted if not given)")

    # reconcile
    rc = subparsers.add_parser("reconcile", help="Backfill owner/technician ids on work orders")
    rc.add_argument("--dry-run", action="store_true", help="Report corrections without writing them")

    # close-project
    cp = subparsers.add_parser("close-project", help="Close a project and file its summary order")
    cp.add_argument("project_id", help="Project id")
    cp.add_argument("--closed-by", default=CLI_USER, help="User id recorded as closer")

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.log_level)
    if args.command == "create-admin":
        asyncio.run(cmd_create_admin(args))
    elif args.command == "reconcile":
        asyncio.run(cmd_reconcile(args))
    elif args.command == "close-project":
        asyncio.run(cmd_close_project(args))


if __name__ == "__main__":
    main()
