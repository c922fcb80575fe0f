"""
Glue shared by the front ends: turn a trigger (task name + key=value words)
into a fresh Executor and run it.

A new TaskContext is compiled for every trigger, because runtime arguments
are substituted into the task document before compilation. Editing the task
file therefore takes effect on the next trigger.
"""
import logging
from typing import Dict, Iterable, Mapping, Optional

from .board import BoardClient
from .context import TaskContext
from .engine import Executor
from .errors import ArgumentError
from .schema import State
from .trello import TrelloClient

logger = logging.getLogger(__name__)


def parse_arguments(words: Iterable[str]) -> Dict[str, str]:
    """
    Parse `key=value` words into an argument map.

    Raises:
        ArgumentError for a word without `=` or with an empty key.
    """
    result: Dict[str, str] = {}
    for word in words:
        if "=" not in word:
            raise ArgumentError(f"argument '{word}' should look like key=value")
        key, _, value = word.partition("=")
        key = key.strip()
        if not key:
            raise ArgumentError(f"argument '{word}' has an empty name")
        result[key] = value.strip()
    return result


def load_context(settings, arguments: Optional[Mapping[str, str]] = None) -> TaskContext:
    return TaskContext.from_file(
        settings.tasks_path,
        arguments,
        case_sensitive=settings.tasks.filter_case_sensitive,
    )


def build_executor(
    settings,
    arguments: Optional[Mapping[str, str]] = None,
    board: Optional[BoardClient] = None,
) -> Executor:
    ctx = load_context(settings, arguments)
    board = board or TrelloClient.from_settings(settings)
    return Executor(ctx, board, max_depth=settings.tasks.max_depth)


def run_task(
    settings,
    task_name: str,
    arguments: Optional[Mapping[str, str]] = None,
    board: Optional[BoardClient] = None,
) -> State:
    """Compile the task file with arguments and run task_name to completion."""
    logger.info(f"Running task {task_name} with arguments {dict(arguments or {})}")
    executor = build_executor(settings, arguments, board)
    state = executor.run(task_name)
    logger.info(f"Task {task_name} finished in state {state.kind.value}")
    return state
