#!/usr/bin/env python3
"""
SmartNotify Command Line Interface

Main entry point for the `smartnotify` command.

Usage:
    smartnotify analyze -u alice
    smartnotify timing -u alice -t friend_post --urgency low
    smartnotify should-send -u alice -t reminder --urgency high
    smartnotify personalize -u alice -t weekly_progress --title "Your week" --body "..."
    smartnotify insights -u alice
    smartnotify prefs -u alice --set muted_types='["post_like"]'
    smartnotify record -u alice -t friend_post --read --clicked

Output is JSON on stdout; logs go to stderr.
"""

import argparse
import asyncio
import json
import sys

from smartnotify import __version__
from smartnotify.config import load_config
from smartnotify.engine import NotificationEngine
from smartnotify.history.sqlite_store import SQLiteHistoryStore
from smartnotify.logging_config import get_logger, setup_logging, user_context
from smartnotify.models import NotificationEvent, Urgency

logger = get_logger(__name__)


def _print(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


async def cmd_analyze(engine: NotificationEngine, args) -> int:
    profile = await engine.analyze_user_behavior(args.user_id)
    _print(profile.to_dict())
    return 0


async def cmd_timing(engine: NotificationEngine, args) -> int:
    timing = await engine.get_optimal_notification_time(args.user_id, args.type, args.urgency)
    _print(timing.to_dict())
    return 0


async def cmd_should_send(engine: NotificationEngine, args) -> int:
    decision = await engine.should_send_notification_now(args.user_id, args.type, args.urgency)
    _print(decision.to_dict())
    return 0


async def cmd_personalize(engine: NotificationEngine, args) -> int:
    notification = NotificationEvent(
        id=NotificationEvent.generate_id(),
        type=args.type,
        user_id=args.user_id,
        title=args.title,
        body=args.body,
    )
    personalized = await engine.personalize_notification_content(args.user_id, notification)
    _print(personalized.to_dict())
    return 0


async def cmd_insights(engine: NotificationEngine, args) -> int:
    insights = await engine.generate_personalization_insights(args.user_id)
    _print(insights.to_dict())
    return 0


async def cmd_prefs(engine: NotificationEngine, args) -> int:
    if not args.set:
        personalization = await engine.get_personalization(args.user_id)
        _print(personalization.to_dict())
        return 0

    updates = {}
    for assignment in args.set:
        field_name, _, raw = assignment.partition("=")
        try:
            updates[field_name] = json.loads(raw)
        except json.JSONDecodeError:
            print(f"Error: value for {field_name} is not valid JSON", file=sys.stderr)
            return 1

    result = await engine.update_personalization(args.user_id, **updates)
    _print(result)
    return 0 if result["success"] else 1


async def cmd_record(engine: NotificationEngine, args) -> int:
    store = engine.history_store
    if not isinstance(store, SQLiteHistoryStore):
        print("Error: record requires the sqlite history backend", file=sys.stderr)
        return 1

    result = await store.record_sent(args.user_id, args.type, title=args.title)
    history_id = result["history_id"]
    if args.read:
        await store.mark_read(history_id)
    if args.clicked:
        await store.mark_clicked(history_id)
    if args.action:
        await store.record_action(history_id, args.action)
    _print(result)
    return 0


COMMANDS = {
    "analyze": cmd_analyze,
    "timing": cmd_timing,
    "should-send": cmd_should_send,
    "personalize": cmd_personalize,
    "insights": cmd_insights,
    "prefs": cmd_prefs,
    "record": cmd_record,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smartnotify",
        description="Notification behavior analysis and delivery scheduling",
    )
    parser.add_argument("--version", action="version", version=f"smartnotify {__version__}")
    parser.add_argument("--log-level", help="Override SMARTNOTIFY_LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    def user_command(name: str, help_text: str, with_type: bool = False):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--user-id", "-u", required=True, help="User ID")
        if with_type:
            sub.add_argument("--type", "-t", required=True, help="Notification type")
        return sub

    user_command("analyze", "Recompute the behavior profile")

    for name, help_text in [
        ("timing", "Recommend a delivery time"),
        ("should-send", "Decide whether to send now"),
    ]:
        sub = user_command(name, help_text, with_type=True)
        sub.add_argument(
            "--urgency",
            choices=[u.value for u in Urgency],
            default=Urgency.MEDIUM.value,
            help="Urgency tier",
        )

    personalize_parser = user_command("personalize", "Personalize notification content", with_type=True)
    personalize_parser.add_argument("--title", required=True, help="Notification title")
    personalize_parser.add_argument("--body", default="", help="Notification body")

    user_command("insights", "Generate engagement insights")

    prefs_parser = user_command("prefs", "Show or update personalization")
    prefs_parser.add_argument(
        "--set",
        action="append",
        metavar="FIELD=JSON",
        help="Update a field, e.g. custom_frequency='{\"reminder\": 2}'",
    )

    record_parser = user_command("record", "Record a sent notification (sqlite backend)", with_type=True)
    record_parser.add_argument("--title", help="Notification title")
    record_parser.add_argument("--read", action="store_true", help="Mark as read")
    record_parser.add_argument("--clicked", action="store_true", help="Mark as clicked")
    record_parser.add_argument("--action", help="Action taken")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(level=args.log_level)

    with user_context(args.user_id, command=args.command):
        logger.debug("cli_command")
        engine = NotificationEngine.from_config(load_config())
        return asyncio.run(COMMANDS[args.command](engine, args))


if __name__ == "__main__":
    sys.exit(main())
