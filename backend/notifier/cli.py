"""Command-line tool for sending test notifications by hand.

Usage:
    python -m notifier.cli list-users
    python -m notifier.cli send-test --target role --role minister \\
        --title "Test" --body "Hello" --category announcements
"""
import argparse
import asyncio
import logging
import sys

from sqlalchemy import select

from .config import Settings, settings
from .database import build_engine, build_session_factory, close_db
from .errors import NotifierError
from .models import User
from .models.enums import NotificationCategory, UserRole
from .services import build_services
from .services.recipients import parse_target

logger = logging.getLogger(__name__)


async def list_users(session_factory) -> int:
    async with session_factory() as session:
        result = await session.execute(
            select(User).where(User.active.is_(True)).order_by(User.name, User.id)
        )
        users = result.scalars().all()

    if not users:
        print("No active users.")
        return 0
    for idx, user in enumerate(users, start=1):
        print(f"{idx:>3}. {user.name or user.email or user.id} ({user.role or UserRole.MEMBER.value}) [{user.id}]")
    return 0


async def send_test(args: argparse.Namespace, config: Settings, session_factory, gateway=None) -> int:
    """Resolve the chosen target and push one notification to it."""
    services = build_services(config, gateway=gateway)
    target = parse_target(args.target, args.role, args.user)

    async with session_factory() as session:
        user_ids = await services.notifications.resolver.resolve(session, target)
        if not user_ids:
            print("No recipients selected.")
            return 0

        outcome = await services.notifications.send_to_users(
            session,
            user_ids,
            args.title,
            args.body,
            args.link,
            args.category,
        )

    print("Send complete:")
    print(f"- recipients: {outcome.recipients}")
    print(f"- valid tokens: {outcome.tokens}")
    print(f"- success: {outcome.success}")
    print(f"- failure: {outcome.failure}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="notifier", description="Notifications backend tools")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list-users", help="List active users")

    send = subparsers.add_parser("send-test", help="Send a push notification")
    send.add_argument("--target", choices=["all", "role", "users"], default="all")
    send.add_argument("--role", choices=[r.value for r in UserRole], default=UserRole.MEMBER.value)
    send.add_argument("--user", action="append", default=[], help="User id (repeatable, with --target users)")
    send.add_argument("--title", required=True)
    send.add_argument("--body", required=True)
    send.add_argument("--link", default=None, help="e.g. /schedules")
    send.add_argument(
        "--category",
        choices=[c.value for c in NotificationCategory],
        default=NotificationCategory.ANNOUNCEMENTS.value,
    )
    return parser


async def _run(args: argparse.Namespace, config: Settings = settings) -> int:
    engine = build_engine(config)
    session_factory = build_session_factory(engine)
    try:
        if args.command == "list-users":
            return await list_users(session_factory)
        return await send_test(args, config, session_factory)
    finally:
        await close_db(engine)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(_run(args))
    except NotifierError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
