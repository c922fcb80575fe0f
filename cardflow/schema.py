"""
Task language data model and pipeline state.

A compiled task is a `Task(name, body)` where body is one of:
  TakeTask    - pick cards from a source (all, first/last N, random N)
  OrderTask   - shuffle / sort / reverse cards from a source
  FilterTask  - keep pipe cards matching a name or a label
  ActionTask  - print, copy, move or add cards (terminal except print)
  GroupTask   - run named tasks independently, one after another
  FlowTask    - run named tasks sharing one pipeline state

Pipeline state:  Init → Pipe(cards) → ... → End

Board entities (Card, Board, Column, Label) are produced by the board
client from its API payloads; the task engine only reads them.
"""
from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

from .errors import NoPipeResultError


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Board entities
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@dataclass(frozen=True)
class Card:
    """A card as reported by the board."""

    id: str
    name: str
    desc: str = ""
    id_list: str = ""
    id_labels: Tuple[str, ...] = ()
    pos: float = 0.0
    url: str = ""
    short_url: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Card":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            desc=data.get("desc") or "",
            id_list=data.get("idList", ""),
            id_labels=tuple(data.get("idLabels") or ()),
            pos=float(data.get("pos") or 0.0),
            url=data.get("url", ""),
            short_url=data.get("shortUrl", ""),
        )


@dataclass(frozen=True)
class Board:
    id: str
    name: str
    closed: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Board":
        return cls(id=data["id"], name=data.get("name", ""), closed=bool(data.get("closed")))


@dataclass(frozen=True)
class Column:
    """A board list. Trello calls these lists, the task language calls them columns."""

    id: str
    name: str
    closed: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Column":
        return cls(id=data["id"], name=data.get("name", ""), closed=bool(data.get("closed")))


@dataclass(frozen=True)
class Label:
    id: str
    name: str
    color: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Label":
        return cls(id=data["id"], name=data.get("name") or "", color=data.get("color"))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Task language
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class Place(Enum):
    """Where cards are taken from, or where they land."""
    TOP = "top"
    BOTTOM = "bottom"
    RANDOM = "random"


class SourceKind(Enum):
    PIPE = "pipe"
    BOARD = "board"
    COLUMN = "column"


@dataclass(frozen=True)
class Source:
    """Where a list of cards comes from."""

    kind: SourceKind
    column: Optional[str] = None

    @classmethod
    def pipe(cls) -> "Source":
        return cls(SourceKind.PIPE)

    @classmethod
    def board(cls) -> "Source":
        return cls(SourceKind.BOARD)

    @classmethod
    def of_column(cls, name: str) -> "Source":
        return cls(SourceKind.COLUMN, name)

    def __str__(self) -> str:
        if self.kind == SourceKind.COLUMN:
            return f"column '{self.column}'"
        return self.kind.value


@dataclass(frozen=True)
class Target:
    """Destination column for copy/move/add."""
    column: str
    place: Place = Place.TOP


@dataclass(frozen=True)
class CardInfo:
    """A card to be created by an `add` action."""
    name: str
    desc: str = ""


@dataclass(frozen=True)
class TakeTask:
    src: Source = field(default_factory=Source.pipe)
    size: int = 0           # 0 = take everything
    place: Place = Place.TOP


class OrderKind(Enum):
    SHUFFLE = "shuffle"
    SORT = "sort"
    REVERSE = "reverse"


@dataclass(frozen=True)
class OrderTask:
    kind: OrderKind
    src: Source = field(default_factory=Source.pipe)


class FilterBy(Enum):
    NAME = "name"
    LABEL = "label"


@dataclass(frozen=True)
class FilterTask:
    by: FilterBy
    value: str
    case_sensitive: bool


class ActionKind(Enum):
    PRINT = "print"
    COPY = "copy"
    MOVE = "move"
    ADD = "add"


@dataclass(frozen=True)
class ActionTask:
    """
    A card-mutating (or printing) step.

    COPY and MOVE carry a target; ADD carries a target and the card to
    create; PRINT carries neither.
    """
    kind: ActionKind
    target: Optional[Target] = None
    card: Optional[CardInfo] = None


@dataclass(frozen=True)
class GroupTask:
    steps: Tuple[str, ...]


@dataclass(frozen=True)
class FlowTask:
    steps: Tuple[str, ...]


TaskBody = Union[TakeTask, OrderTask, FilterTask, ActionTask, GroupTask, FlowTask]


@dataclass(frozen=True)
class Task:
    name: str
    body: TaskBody


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Pipeline state
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class StateKind(Enum):
    INIT = "init"
    PIPE = "pipe"
    END = "end"


@dataclass(frozen=True)
class State:
    """The accumulator threaded through a pipeline."""

    kind: StateKind
    items: Tuple[Card, ...] = ()

    @classmethod
    def init(cls) -> "State":
        return cls(StateKind.INIT)

    @classmethod
    def pipe(cls, cards) -> "State":
        return cls(StateKind.PIPE, tuple(cards))

    @classmethod
    def end(cls) -> "State":
        return cls(StateKind.END)

    @property
    def is_pipe(self) -> bool:
        return self.kind == StateKind.PIPE

    def cards(self) -> Tuple[Card, ...]:
        """Return the cards in the pipe, or raise if there is no pipe."""
        if not self.is_pipe:
            raise NoPipeResultError(f"no pipe results, state is {self.kind.value}")
        return self.items

    def __str__(self) -> str:
        if not self.is_pipe:
            return self.kind.value
        if not self.items:
            return "no cards found"
        return "\n".join(f"{c.name} {c.short_url}".rstrip() for c in self.items)
