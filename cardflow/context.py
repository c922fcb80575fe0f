"""
Compiled task table.

A task document is a YAML mapping: the `board` key names the board to work
on and every other key is a named task definition.

    board: ENG
    take_from_archive:
      type: take
      params:
        from: {type: column, source: Archive}

The table is built once and never mutated, so lookups from several runs
can share it freely.
"""
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

import yaml

from . import template
from .compiler import DEFAULT_CASE_SENSITIVE, as_text, compile_task, field
from .errors import ConfigError, DocumentError, NotFoundError, TypeMismatchError
from .schema import Task

logger = logging.getLogger(__name__)

BOARD_KEY = "board"


class TaskContext:
    """Board name plus an immutable name -> Task mapping."""

    def __init__(self, board: str, tasks: Mapping[str, Task]):
        self.board = board
        self._tasks = MappingProxyType(dict(tasks))

    @property
    def tasks(self) -> Mapping[str, Task]:
        return self._tasks

    def lookup(self, name: str) -> Task:
        """Return the task called name, or raise NotFoundError."""
        task = self._tasks.get(name)
        if task is None:
            raise NotFoundError(f"the task {name} does not exist")
        return task

    def names(self) -> List[str]:
        return sorted(self._tasks)

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def __repr__(self) -> str:
        return f"TaskContext(board={self.board!r}, tasks={self.names()!r})"

    # ── Builders ──

    @classmethod
    def from_document(
        cls,
        document: Any,
        arguments: Optional[Mapping[str, str]] = None,
        *,
        case_sensitive: bool = DEFAULT_CASE_SENSITIVE,
    ) -> "TaskContext":
        """Compile every task of an already parsed document."""
        if not isinstance(document, Mapping):
            raise TypeMismatchError(
                f"the yaml with tasks seems to be absent in {document!r}"
            )

        resolved: Dict[Any, Any] = {}
        for key, definition in document.items():
            new_key = template.resolve(key, arguments)
            if new_key in resolved:
                raise TypeMismatchError(
                    f"the task {new_key} is defined twice after substituting {key!r}"
                )
            resolved[new_key] = definition
        document = resolved
        board = as_text(template.resolve(field(document, BOARD_KEY), arguments))

        tasks: Dict[str, Task] = {}
        for key, definition in document.items():
            name = as_text(key)
            if name == BOARD_KEY:
                continue
            body = compile_task(definition, arguments, case_sensitive=case_sensitive)
            tasks[name] = Task(name=name, body=body)

        unresolved = template.placeholders(template.resolve(list(document.values()), arguments))
        if unresolved:
            logger.debug(f"Unresolved placeholders left in tasks: {sorted(unresolved)}")

        logger.debug(f"Compiled {len(tasks)} tasks for board {board}")
        return cls(board, tasks)

    @classmethod
    def from_yaml(
        cls,
        text: str,
        arguments: Optional[Mapping[str, str]] = None,
        *,
        case_sensitive: bool = DEFAULT_CASE_SENSITIVE,
    ) -> "TaskContext":
        try:
            document = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise DocumentError(f"the task document is not valid yaml: {e}") from e
        return cls.from_document(document, arguments, case_sensitive=case_sensitive)

    @classmethod
    def from_file(
        cls,
        path,
        arguments: Optional[Mapping[str, str]] = None,
        *,
        case_sensitive: bool = DEFAULT_CASE_SENSITIVE,
    ) -> "TaskContext":
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"cannot read task file {path}: {e}") from e
        return cls.from_yaml(text, arguments, case_sensitive=case_sensitive)
