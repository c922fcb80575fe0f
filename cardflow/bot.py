#!/usr/bin/env python3
"""
cardflow Telegram bot
─────────────────────
Triggers board tasks from Telegram.

Setup:
    export CARDFLOW_BOT_TOKEN=your_token_here
    cardflow bot

Commands:
    /task <name> [key=value ...]   — run a task with runtime arguments
    /tasks                         — list task names
    /help
    <plain text>                   — run bot.default_task, words parsed as key=value

Tasks run on a worker thread so the bot keeps answering while a long flow
talks to the board. Each trigger compiles the task file afresh.
"""
import asyncio
import logging
from typing import Optional

from telegram import BotCommand, Update
from telegram.ext import (
    Application,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from .board import BoardClient
from .config import Settings
from .errors import FlowError
from .runner import load_context, parse_arguments, run_task

logger = logging.getLogger(__name__)

COMMANDS = {
    "help": "display this text",
    "task": "run a task: /task <name> [key=value ...]",
    "tasks": "task list",
}


def truncate(text: str, max_chars: int = 3500) -> str:
    """Truncate text to fit in a single Telegram message (4096 char limit)."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + f"\n…[truncated, {len(text) - max_chars} chars omitted]"


def format_error(error: FlowError) -> str:
    return f"❌ {error.kind}: {error}"


class CardflowBot:
    """Telegram front end for the task executor."""

    def __init__(self, settings: Settings, board: Optional[BoardClient] = None):
        self.settings = settings
        # None means a TrelloClient is built per run from settings.
        self.board = board

    # ──────────────────────────────────────────
    # Auth
    # ──────────────────────────────────────────

    def _is_authorized(self, update: Update) -> bool:
        user = update.effective_user
        return user is not None and self.settings.is_authorized(user.id)

    async def _reject_unauthorized(self, update: Update):
        user = update.effective_user
        logger.warning(
            f"Unauthorized access attempt: user_id={getattr(user, 'id', None)} "
            f"username={getattr(user, 'username', None)}"
        )
        await update.message.reply_text("⛔ You are not authorized to run tasks.")

    # ──────────────────────────────────────────
    # Execution
    # ──────────────────────────────────────────

    async def execute_task(self, update: Update, task_name: str, arguments: dict):
        """Run task_name on a worker thread and reply with the final state."""
        try:
            state = await asyncio.to_thread(
                run_task, self.settings, task_name, arguments, self.board
            )
        except FlowError as e:
            logger.error(f"Task {task_name} failed: {e}")
            await update.message.reply_text(format_error(e))
            return

        await update.message.reply_text(f"the task {task_name} is done.")
        await update.message.reply_text(truncate(str(state)))

    # ──────────────────────────────────────────
    # Handlers
    # ──────────────────────────────────────────

    async def handle_help(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        lines = ["These commands are supported:"]
        lines += [f"/{name} — {desc}" for name, desc in COMMANDS.items()]
        if self.settings.bot.default_task:
            lines.append(
                f"Any other text runs `{self.settings.bot.default_task}` "
                "with its words as key=value arguments."
            )
        await update.message.reply_text("\n".join(lines))

    async def handle_tasks(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not self._is_authorized(update):
            await self._reject_unauthorized(update)
            return
        try:
            ctx = await asyncio.to_thread(load_context, self.settings)
        except FlowError as e:
            await update.message.reply_text(format_error(e))
            return
        await update.message.reply_text("\n".join(ctx.names()) or "No tasks defined.")

    async def handle_task(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not self._is_authorized(update):
            await self._reject_unauthorized(update)
            return

        words = update.message.text.split()[1:]
        if not words:
            await update.message.reply_text(
                "Usage: /task <name> [key=value ...]\n"
                "Example: /task add_word word=serendipity"
            )
            return

        try:
            arguments = parse_arguments(words[1:])
        except FlowError as e:
            await update.message.reply_text(format_error(e))
            return
        await self.execute_task(update, words[0], arguments)

    async def handle_text(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not self._is_authorized(update):
            await self._reject_unauthorized(update)
            return

        task_name = self.settings.bot.default_task
        if not task_name:
            await update.message.reply_text("No default task configured. Try /help.")
            return

        try:
            arguments = parse_arguments(update.message.text.split())
        except FlowError as e:
            await update.message.reply_text(format_error(e))
            return
        await self.execute_task(update, task_name, arguments)

    # ──────────────────────────────────────────
    # Lifecycle
    # ──────────────────────────────────────────

    def register_handlers(self, app: Application):
        app.add_handler(CommandHandler("help", self.handle_help))
        app.add_handler(CommandHandler("start", self.handle_help))
        app.add_handler(CommandHandler("tasks", self.handle_tasks))
        app.add_handler(CommandHandler("task", self.handle_task))
        app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, self.handle_text))

    async def set_bot_commands(self, app: Application):
        """Set command suggestions in Telegram UI (autocomplete menu)."""
        await app.bot.set_my_commands(
            [BotCommand(name, desc[:256]) for name, desc in COMMANDS.items()]
        )

    def run(self):
        """Build Telegram Application, register handlers, and start polling."""
        app = Application.builder().token(self.settings.bot_token()).build()
        self.register_handlers(app)

        async def post_init(application):
            await self.set_bot_commands(application)

        app.post_init = post_init
        logger.info("Starting cardflow bot…")
        app.run_polling(drop_pending_updates=True)
