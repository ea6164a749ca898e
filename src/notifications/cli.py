"""CLI entry point for inspecting and preparing the notification store."""

import argparse
import asyncio
import json
import os
import sys

import pydantic

from notifications.errors.exceptions import NotificationsError, ValidationError
from notifications.models.query import CREATED_AFTER_OPTIONS, NotificationQuery


async def _init_db(args: argparse.Namespace) -> int:
    from notifications.db.engine import create_db_engine, create_schema

    engine = create_db_engine(args.database_url)
    try:
        await create_schema(engine)
    finally:
        await engine.dispose()
    print(json.dumps({"status": "ok", "dialect": engine.dialect.name}))
    return 0


async def _with_store(args: argparse.Namespace, action) -> int:
    from notifications.db.engine import create_db_engine, create_session_factory
    from notifications.services.store import DatabaseNotificationsStore

    engine = create_db_engine(args.database_url)
    try:
        store = DatabaseNotificationsStore(create_session_factory(engine))
        result = await action(store)
    finally:
        await engine.dispose()
    print(json.dumps(result, indent=2))
    return 0


async def _status(args: argparse.Namespace) -> int:
    async def action(store):
        status = await store.get_status(args.user)
        return status.model_dump()

    return await _with_store(args, action)


async def _list(args: argparse.Namespace) -> int:
    unread_only = None
    if args.unread:
        unread_only = True
    elif args.read:
        unread_only = False
    try:
        query = NotificationQuery.from_preset(
            unread_only=unread_only,
            created_after=args.since,
            search=args.search,
            limit=args.limit,
            offset=args.offset,
        )
    except pydantic.ValidationError as exc:
        raise ValidationError("Invalid list options", details=exc.errors(include_url=False, include_context=False)) from exc

    async def action(store):
        notifications = await store.get_notifications(args.user, query)
        return [n.model_dump(mode="json") for n in notifications]

    return await _with_store(args, action)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notifications-admin",
        description="Notification store administration",
    )
    parser.add_argument("--database-url", default=None, help="Override NOTIFICATIONS_DATABASE_URL")
    parser.add_argument(
        "--local",
        action="store_true",
        help="Local dev mode: SQLite database (notifications_local.db)",
    )
    parser.add_argument("--log-level", default=None, help="debug/info/warning/error")
    sub = parser.add_subparsers(dest="command", required=True)

    init_db = sub.add_parser("init-db", help="Create the notification table (SQLite/local use)")
    init_db.set_defaults(handler=_init_db)

    status = sub.add_parser("status", help="Print unread/read counts for a user")
    status.add_argument("user")
    status.set_defaults(handler=_status)

    list_ = sub.add_parser("list", help="List a user's notifications, newest first")
    list_.add_argument("user")
    view = list_.add_mutually_exclusive_group()
    view.add_argument("--unread", action="store_true", help="Only unread notifications")
    view.add_argument("--read", action="store_true", help="Only notifications marked as read")
    list_.add_argument("--search", default=None, help="Case-insensitive text in title or description")
    list_.add_argument("--since", choices=list(CREATED_AFTER_OPTIONS), default=None)
    list_.add_argument("--limit", type=int, default=None)
    list_.add_argument("--offset", type=int, default=0)
    list_.set_defaults(handler=_list)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.local:
        os.environ["NOTIFICATIONS_LOCAL_MODE"] = "1"

    # Settings are read at import time, so import after the env is prepared
    from notifications.config import settings
    from notifications.logging_config import bind_request_context, clear_request_context, configure_logging
    from notifications.services.id_generator import generate_id

    if args.local:
        settings.local_mode = True
    configure_logging(log_level=args.log_level or settings.log_level, json_output=settings.log_json)

    bind_request_context(generate_id("trc_"), user=getattr(args, "user", None))
    try:
        return asyncio.run(args.handler(args))
    except NotificationsError as exc:
        print(json.dumps({"error": {"code": exc.code, "message": exc.message, "details": exc.details}}, default=str), file=sys.stderr)
        return 2
    finally:
        clear_request_context()


if __name__ == "__main__":
    sys.exit(main())
