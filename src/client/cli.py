"""
Command line front end.

    taskpad register --email a@x.com --username alice
    taskpad login --email a@x.com
    taskpad add "Buy milk" -d "2 litres"
    taskpad list
    taskpad toggle 4b1f
    taskpad edit 4b1f --title "Buy oat milk"
    taskpad rm 4b1f
    taskpad logout

Task ids may be abbreviated to any unique prefix.
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
from typing import List, Optional, Sequence

from .app import TaskpadApp
from .logging_setup import setup_logging
from .models import Task
from .navigation import LOGIN, REGISTER, TASKS
from .notify import PrintNotifier
from .settings import get_settings
from .sync import TaskSyncEngine

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="taskpad", description="Manage your task list.")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("register", help="create an account")
    p.add_argument("--email", required=True)
    p.add_argument("--username", required=True)
    p.add_argument("--password", help="prompted for when omitted")

    p = sub.add_parser("login", help="sign in")
    p.add_argument("--email", required=True)
    p.add_argument("--password", help="prompted for when omitted")

    sub.add_parser("logout", help="sign out")
    sub.add_parser("list", help="show your tasks")

    p = sub.add_parser("add", help="create a task")
    p.add_argument("title")
    p.add_argument("-d", "--description", default="")

    p = sub.add_parser("edit", help="change a task's title or description")
    p.add_argument("id")
    p.add_argument("--title")
    p.add_argument("--description")

    p = sub.add_parser("toggle", help="mark a task complete or not complete")
    p.add_argument("id")

    p = sub.add_parser("rm", help="delete a task")
    p.add_argument("id")

    return parser


def format_task(task: Task) -> str:
    mark = "x" if task.is_complete else " "
    line = f"[{mark}] {task.id[:8]}  {task.title}"
    if task.description:
        line += f"  - {task.description}"
    return line


def _resolve(engine: TaskSyncEngine, prefix: str, notifier: PrintNotifier) -> Optional[Task]:
    matches: List[Task] = [t for t in engine.tasks if t.id.startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    notifier.error(f"No task matches '{prefix}'" if not matches else f"'{prefix}' is ambiguous")
    return None


async def run(args: argparse.Namespace, app: TaskpadApp, notifier: PrintNotifier) -> int:
    """Execute one parsed command against the app. Returns the exit status."""
    if args.command == "register":
        await app.router.navigate(REGISTER)
        password = args.password if args.password is not None else getpass.getpass()
        ok = await app.register.submit(args.email, password, args.username)
        return 0 if ok else 1

    if args.command == "login":
        await app.router.navigate(LOGIN)
        password = args.password if args.password is not None else getpass.getpass()
        ok = await app.sign_in.submit(args.email, password)
        return 0 if ok else 1

    if args.command == "logout":
        errors_before = notifier.errors
        # No session check first: the local token is cleared even when the service is down
        await app.tasks.sign_out()
        return 0 if notifier.errors == errors_before else 1

    await app.router.navigate(TASKS)
    engine = app.tasks.engine
    if app.router.current != TASKS or engine is None:
        notifier.error("Not signed in. Run 'taskpad login' first.")
        return 1

    errors_before = notifier.errors
    if args.command == "list":
        for task in engine.tasks:
            print(format_task(task))
        if not engine.tasks:
            print("No tasks yet")
    elif args.command == "add":
        await engine.create(args.title, args.description)
    elif args.command in ("edit", "toggle", "rm"):
        task = _resolve(engine, args.id, notifier)
        if task is None:
            return 1
        if args.command == "edit":
            engine.start_edit(task)
            engine.edit_draft(title=args.title, description=args.description)
            await engine.save_edit()
        elif args.command == "toggle":
            await engine.toggle_complete(task)
        else:
            await engine.remove(task.id)

    return 0 if notifier.errors == errors_before else 1


async def _main(args: argparse.Namespace) -> int:
    settings = get_settings()
    notifier = PrintNotifier()
    async with TaskpadApp.from_settings(settings, notifier) as app:
        return await run(args, app, notifier)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(log_dir=settings.log_dir, console_level=settings.log_level)
    logger.debug("Running command %s against %s", args.command, settings.api_url)
    return asyncio.run(_main(args))


if __name__ == "__main__":
    raise SystemExit(main())
