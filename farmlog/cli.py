"""
Command-line front end for the FarmLog client

Usage:
    farmlog login alice
    farmlog log --type irrigation --field A1 --set method=Drip --set duration=2h
    farmlog today
    farmlog history --type irrigation
    farmlog sync
"""

import argparse
import getpass
import sys
from datetime import date
from typing import List, Optional

from farmlog.client.config import get_client_settings
from farmlog.client.service import FarmLogClient
from farmlog.errors import FarmLogError
from farmlog.models.task_record import TaskRecordBase, TaskType
from farmlog.utils.logger import get_logger, setup_logging
from farmlog.views.task_views import format_date_header, variant_label

logger = get_logger(__name__)


def format_task(task: TaskRecordBase) -> str:
    details = ", ".join(
        f"{name.replace('_', ' ')}: {getattr(task, name)}"
        for name in task.variant_fields()
        if getattr(task, name)
    )
    line = f"[{task.id}] {variant_label(task.type)} - {task.field}"
    if details:
        line += f" ({details})"
    if task.notes:
        line += f" - {task.notes}"
    return line


def _parse_assignments(pairs: List[str]) -> dict:
    values = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            raise argparse.ArgumentTypeError(f"Expected key=value, got '{pair}'")
        values[key.strip()] = value
    return values


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="farmlog", description="Farm activity log")
    sub = parser.add_subparsers(dest="command", required=True)

    for name in ("register", "login"):
        p = sub.add_parser(name, help=f"{name.capitalize()} with the FarmLog API")
        p.add_argument("username")
        p.add_argument("--password", help="Password (prompted when omitted)")

    sub.add_parser("logout", help="End the session and clear cached tasks")

    log = sub.add_parser("log", help="Log a farm activity")
    log.add_argument("--type", required=True, choices=[t.value for t in TaskType])
    log.add_argument("--field", required=True, help="Field/plot identifier")
    log.add_argument("--date", help="Date (YYYY-MM-DD, default: today)")
    log.add_argument("--notes", default="")
    log.add_argument("--set", action="append", default=[], metavar="KEY=VALUE",
                     help="Activity attribute, e.g. --set plantName=Tomato")

    sub.add_parser("today", help="Show today's tasks")

    hist = sub.add_parser("history", help="Show tasks grouped by date")
    hist.add_argument("--type", default="", help="Only show this task type")

    recent = sub.add_parser("recent", help="Show the most recently logged tasks")
    recent.add_argument("--limit", type=int, default=3)

    sub.add_parser("sync", help="Replace cached tasks with the server copy")

    return parser


def run_command(client: FarmLogClient, args: argparse.Namespace) -> int:
    if args.command in ("register", "login"):
        password = args.password or getpass.getpass("Password: ")
        if args.command == "register":
            client.signup(args.username, password)
        else:
            client.login(args.username, password)
        print(f"Logged in as {args.username}")

    elif args.command == "logout":
        client.logout()
        print("Logged out")

    elif args.command == "log":
        candidate = _parse_assignments(args.set)
        candidate.update(type=args.type, field=args.field, date=args.date, notes=args.notes)
        task = client.log_task(candidate)
        print(f"Logged {format_task(task)}")

    elif args.command == "today":
        tasks = client.todays_tasks()
        if not tasks:
            print("No tasks logged today")
        for task in tasks:
            print(format_task(task))

    elif args.command == "history":
        groups = client.history(args.type)
        if not groups:
            print("No tasks found")
        today = date.today()
        for day, tasks in groups:
            print(format_date_header(day, today))
            for task in tasks:
                print(f"  {format_task(task)}")

    elif args.command == "recent":
        for task in client.recent_tasks(args.limit):
            print(format_task(task))

    elif args.command == "sync":
        tasks = client.sync()
        print(f"Synchronized {len(tasks)} tasks")

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the farmlog command
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_client_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_DIR)

    client = FarmLogClient.from_settings(settings)
    client.start()

    try:
        return run_command(client, args)

    except (FarmLogError, argparse.ArgumentTypeError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    finally:
        client.close()


if __name__ == "__main__":
    sys.exit(main())
