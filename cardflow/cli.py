#!/usr/bin/env python3
"""
cardflow console
────────────────
Run board tasks from a shell, list them, or start the Telegram bot.

Usage:
    cardflow run repeat_demand
    cardflow run add_word word=serendipity
    cardflow tasks
    cardflow bot
    cardflow --config ~/cardflow.yaml -v run repeat
"""
import argparse
import logging
import sys
from typing import List, Optional

from .config import Settings, setup_logging
from .context import TaskContext
from .errors import FlowError
from .runner import load_context, parse_arguments, run_task

logger = logging.getLogger(__name__)


def _cmd_run(settings: Settings, args) -> int:
    state = run_task(settings, args.task, parse_arguments(args.arguments))
    print(f"the task {args.task} is done.")
    print(state)
    return 0


def _cmd_tasks(settings: Settings, args) -> int:
    ctx: TaskContext = load_context(settings)
    print(f"board: {ctx.board}")
    for name in ctx.names():
        print(name)
    return 0


def _cmd_bot(settings: Settings, args) -> int:
    from .bot import CardflowBot

    CardflowBot(settings).run()
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="cardflow",
        description="Declarative card pipelines for kanban boards",
    )
    ap.add_argument(
        "--config", default=None,
        help="Path to cardflow.yaml (default: $CARDFLOW_CONFIG or config/cardflow.yaml)",
    )
    ap.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log at DEBUG level",
    )
    sub = ap.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run a task by name")
    run.add_argument("task", help="Task name from the task file")
    run.add_argument(
        "arguments", nargs="*", metavar="key=value",
        help="Values for ~~key~~ placeholders in the task file",
    )
    run.set_defaults(handler=_cmd_run)

    tasks = sub.add_parser("tasks", help="List the tasks in the task file")
    tasks.set_defaults(handler=_cmd_tasks)

    bot = sub.add_parser("bot", help="Start the Telegram bot")
    bot.set_defaults(handler=_cmd_bot)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = Settings.load(args.config)
        setup_logging("DEBUG" if args.verbose else settings.logging.level)
        return args.handler(settings, args)
    except FlowError as e:
        logger.debug("Task failed", exc_info=True)
        print(f"error [{e.kind}]: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
