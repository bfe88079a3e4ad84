from __future__ import annotations

import argparse
import logging
import sys
import threading
import time
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from libwatch.app import (
    check_followed_news,
    check_item_news,
    drain_pending,
    follow_item,
    notify_followers,
    reconcile_group,
    reconcile_user,
    register_user,
    repair_follow_links,
    unfollow_item,
    update_notification_settings,
)
from libwatch.config import configure_logging
from libwatch.domain.model import AnnouncementKind, FollowOutcome
from libwatch.domain.notifications import Announcement

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from libwatch.domain.errors import ReconcileError

log = logging.getLogger(__name__)

# Set by the first Ctrl+C; group passes stop starting new users once it is set.
_CANCEL = threading.Event()


class CommandFailedError(RuntimeError):
    """Raised when a command ran but reported a failure."""


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Track Steam libraries and notify followers")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    register = subparsers.add_parser("register", help="Register a user or refresh its profile")
    register.add_argument("user_id", help="Steam id of the user")
    register.add_argument(
        "--force-sync",
        action="store_true",
        help="Also append owned items missing from an existing user",
    )

    one = subparsers.add_parser("reconcile-user", help="Reconcile a single user")
    one.add_argument("user_id")
    one.add_argument("--force", action="store_true", help="Ignore the cooldown")

    group = subparsers.add_parser("reconcile-group", help="Reconcile one group of users")
    group.add_argument("group_index", type=int, help="Zero-based group index")
    group.add_argument(
        "--total-groups", type=int, help="Number of groups (defaults to LIBWATCH_TOTAL_GROUPS)"
    )
    group.add_argument(
        "--max-workers", type=int, help="Parallel users (defaults to LIBWATCH_MAX_WORKERS)"
    )
    group.add_argument(
        "--time-budget",
        type=float,
        help="Seconds after which no further user is started",
    )

    drain = subparsers.add_parser("drain-pending", help="Return and clear pending items")
    drain.add_argument("user_id")

    notify = subparsers.add_parser("notify", help="Send an announcement to an item's followers")
    notify.add_argument("item_id")
    notify.add_argument("--title", required=True)
    notify.add_argument("--body", required=True)

    news = subparsers.add_parser("check-news", help="Announce fresh news for followed items")
    news.add_argument("item_id", nargs="?", help="Only check this item")
    news.add_argument("--count", type=int, default=5, help="News entries to fetch per item")

    follow = subparsers.add_parser("follow", help="Follow an item for a user")
    follow.add_argument("user_id")
    follow.add_argument("item_id")
    follow.add_argument("--name", required=True, help="Display name of the item")
    follow.add_argument("--logo-url")

    unfollow = subparsers.add_parser("unfollow", help="Stop following an item")
    unfollow.add_argument("user_id")
    unfollow.add_argument("item_id")

    settings = subparsers.add_parser("settings", help="Update notification settings")
    settings.add_argument("user_id")
    settings.add_argument("--enabled", type=_parse_bool)
    settings.add_argument("--push-token")
    settings.add_argument("--auto-follow", type=_parse_bool)

    subparsers.add_parser("repair-follows", help="Re-sync follower sets from the user side")

    return parser.parse_args(list(argv))


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise argparse.ArgumentTypeError(f"Expected a boolean, got {value!r}")


def _validate(args: argparse.Namespace) -> None:
    if args.command == "reconcile-group":
        if args.group_index < 0:
            raise ValueError("group_index must be non-negative")
        if args.total_groups is not None and args.group_index >= args.total_groups:
            raise ValueError("group_index must be smaller than --total-groups")
        if args.max_workers is not None and args.max_workers < 1:
            raise ValueError("--max-workers must be at least 1")
        if args.time_budget is not None and args.time_budget <= 0:
            raise ValueError("--time-budget must be positive")
    if args.command == "check-news" and args.count < 1:
        raise ValueError("--count must be at least 1")


def _raise_on_error(error: ReconcileError | None) -> None:
    if error is not None:
        raise CommandFailedError(f"{error.kind}: {error.message}")


def _run(args: argparse.Namespace) -> None:  # noqa: C901, PLR0912
    command = args.command
    if command == "register":
        registered = register_user(args.user_id, force_sync=args.force_sync)
        _raise_on_error(registered.error)
        log.info(
            "%s %s, %s owned items added",
            "Registered" if registered.created else "Refreshed",
            registered.user_id,
            registered.owned_added,
        )
    elif command == "reconcile-user":
        reconciled = reconcile_user(args.user_id, force=args.force)
        _raise_on_error(reconciled.error)
        if reconciled.skipped:
            log.info("User %s checked recently; skipped", args.user_id)
        else:
            log.info(
                "User %s: new=%s updated=%s",
                args.user_id,
                [item.item_id for item in reconciled.new_items],
                [(item.item_id, str(item.action)) for item in reconciled.updated_items],
            )
    elif command == "reconcile-group":
        deadline = time.monotonic() + args.time_budget if args.time_budget else None
        stats = reconcile_group(
            args.group_index,
            args.total_groups,
            max_workers=args.max_workers,
            cancel_event=_CANCEL,
            deadline=deadline,
        )
        log.info("Group stats: %s", stats.as_dict())
    elif command == "drain-pending":
        drained = drain_pending(args.user_id)
        _raise_on_error(drained.error)
        for item in drained.items:
            log.info("Pending: %s %s (detected %s)", item.item_id, item.name, item.detected_at)
        log.info("%s pending items drained for %s", len(drained.items), args.user_id)
    elif command == "notify":
        announcement = Announcement(
            kind=AnnouncementKind.ITEM_NEWS,
            title=args.title,
            body=args.body,
            payload={"type": "gameNews", "appId": args.item_id},
        )
        sent = notify_followers(args.item_id, announcement)
        log.info("%s notifications delivered for %s", sent, args.item_id)
    elif command == "check-news":
        results = (
            [check_item_news(args.item_id, count=args.count)]
            if args.item_id
            else check_followed_news(count=args.count)
        )
        failures = [result for result in results if result.error is not None]
        for result in failures:
            log.error("News check for %s failed: %s", result.item_id, result.error)
        log.info(
            "Checked %s items, %s fresh entries, %s notifications",
            len(results),
            sum(len(result.fresh) for result in results),
            sum(result.notified for result in results),
        )
        if args.item_id and failures:
            _raise_on_error(failures[0].error)
    elif command == "follow":
        outcome = follow_item(args.user_id, args.item_id, name=args.name, logo_url=args.logo_url)
        if outcome is FollowOutcome.USER_NOT_FOUND:
            raise CommandFailedError(f"User not found: {args.user_id}")
        log.info("%s: %s", args.item_id, outcome)
    elif command == "unfollow":
        outcome = unfollow_item(args.user_id, args.item_id)
        if outcome is FollowOutcome.USER_NOT_FOUND:
            raise CommandFailedError(f"User not found: {args.user_id}")
        log.info("%s: %s", args.item_id, outcome)
    elif command == "settings":
        updated = update_notification_settings(
            args.user_id,
            enabled=args.enabled,
            push_token=args.push_token,
            auto_follow_new_items=args.auto_follow,
        )
        if updated is None:
            raise CommandFailedError(f"User not found: {args.user_id}")
        log.info("Notification settings for %s: %s", args.user_id, updated)
    elif command == "repair-follows":
        report = repair_follow_links()
        log.info(
            "Follow repair: users=%s added=%s removed=%s",
            report.users_checked,
            report.followers_added,
            report.followers_removed,
        )
    else:
        raise ValueError(f"Unsupported command: {command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        _validate(parsed_args)
    except ValueError:
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        _run(parsed_args)
    except Exception:
        log.exception("Command %s failed", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """First Ctrl+C stops starting new work; a second one exits immediately."""
    if _CANCEL.is_set():
        log.info("Closed by user (Ctrl+C)")
        sys.exit(0)
    log.info("Cancellation requested; finishing in-flight users (Ctrl+C again to quit)")
    _CANCEL.set()


def run() -> None:
    """Console-script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
