"""
Error taxonomy for task compilation and execution.

Compile-time errors:
  FieldAbsentError     - a field is missing; callers may substitute a default
  TypeMismatchError    - a field is present but has the wrong shape
  UnrecognizedTagError - an enum-like tag is not in the known set
  DocumentError        - the document itself cannot be parsed

Run-time errors:
  NotFoundError        - board, column, label or task is absent
  NoPipeResultError    - an operation needs a pipe but got init/end
  CycleError           - a task references itself, directly or not
  BoardError           - the board backend failed to answer

Every error carries a short `kind` that front ends report verbatim.
"""
from typing import Optional


class FlowError(Exception):
    """Base class for everything cardflow raises on purpose."""
    kind = "flow"

    def __str__(self) -> str:
        return self.args[0] if self.args else self.kind


# ── Compile time ─────────────────────────────────────────────


class CompileError(FlowError):
    """Raised when a task definition cannot be turned into a TaskBody."""
    kind = "compile"


class FieldAbsentError(CompileError):
    """Raised when a field is absent. The only recoverable compile error."""
    kind = "field_absent"

    def __init__(self, field_name: str, node=None):
        where = f" in {node!r}" if node is not None else ""
        super().__init__(f"{field_name} is absent{where}")
        self.field_name = field_name


class TypeMismatchError(CompileError):
    """Raised when a value is present but of the wrong type or shape."""
    kind = "type_mismatch"


ParseError = TypeMismatchError


class UnrecognizedTagError(CompileError):
    """Raised for a `type` (or similar) tag outside the known set."""
    kind = "unrecognized_tag"

    def __init__(self, tag):
        super().__init__(f"the type '{tag}' is not recognized")
        self.tag = tag


class DocumentError(CompileError):
    """Raised when the task document is not valid YAML."""
    kind = "document"


# ── Run time ─────────────────────────────────────────────────


class ExecutionError(FlowError):
    """Base class for failures while a task runs."""
    kind = "runtime"


class NotFoundError(ExecutionError):
    """Raised when a board, column, label or task cannot be found."""
    kind = "not_found"


class NoPipeResultError(ExecutionError):
    """Raised when an operation needs pipe results but there are none."""
    kind = "no_pipe"


class CycleError(ExecutionError):
    """Raised when task references loop back or nest too deeply."""
    kind = "cycle"


class BoardError(ExecutionError):
    """Raised when the board backend cannot complete a request."""
    kind = "board"

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


# ── Front ends ───────────────────────────────────────────────


class ConfigError(FlowError):
    """Raised when configuration is invalid or incomplete."""
    kind = "config"


class ArgumentError(FlowError):
    """Raised when a runtime `key=value` argument is malformed."""
    kind = "argument"
