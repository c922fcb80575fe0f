"""
Pipeline executor.

Runs a named task from a TaskContext against a board client. Every task
body maps a State to a new State:

    take / order   resolve a source (pipe, whole board, one column) → Pipe
    filter         Pipe → Pipe
    action         Pipe → End   (print passes the Pipe through)
    flow           threads one State through its steps in order
    group          runs each step on its own from Init → End

Steps are looked up by name when they run, so a task may refer to tasks
defined later in the document, or to itself. Each run keeps the chain of
tasks being evaluated and fails with CycleError when a name repeats on
it or the chain grows past max_depth.

Nothing is retried or rolled back: the first error stops the run and the
board keeps every change made before it.
"""
import logging
import random
from typing import Callable, Dict, List, Optional, Tuple

from .board import BoardClient, Position
from .context import TaskContext
from .errors import CycleError, NotFoundError
from .schema import (
    ActionKind,
    ActionTask,
    Card,
    Column,
    FilterBy,
    FilterTask,
    FlowTask,
    GroupTask,
    OrderKind,
    OrderTask,
    Place,
    Source,
    SourceKind,
    State,
    TakeTask,
    Task,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 32

Stack = Tuple[str, ...]


class Executor:
    """Evaluates tasks of one TaskContext against one board."""

    def __init__(
        self,
        ctx: TaskContext,
        board: BoardClient,
        rng: Optional[random.Random] = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self.ctx = ctx
        self.board = board
        self.rng = rng or random.Random()
        self.max_depth = max_depth

        found = board.find_board(ctx.board)
        if found is None:
            raise NotFoundError(f"board {ctx.board} is not found")
        self.board_id = found.id

        self._handlers: Dict[type, Callable[..., State]] = {
            TakeTask: self._take,
            OrderTask: self._order,
            FilterTask: self._filter,
            ActionTask: self._action,
            GroupTask: self._group,
            FlowTask: self._flow,
        }

    def tasks(self) -> List[str]:
        return self.ctx.names()

    def run(self, task_name: str) -> State:
        """Run a task from scratch and return the final state."""
        return self._run(task_name, ())

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Dispatch
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def _run(self, task_name: str, stack: Stack) -> State:
        task = self.ctx.lookup(task_name)
        logger.info(f"Starting task {task.name}")
        return self.process(task, State.init(), stack)

    def process(self, task: Task, state: State, stack: Stack = ()) -> State:
        """Evaluate one task body on state."""
        if task.name in stack:
            chain = " -> ".join(stack + (task.name,))
            raise CycleError(f"the task {task.name} refers to itself: {chain}")
        if len(stack) >= self.max_depth:
            raise CycleError(
                f"tasks are nested deeper than {self.max_depth} at {task.name}"
            )

        handler = self._handlers[type(task.body)]
        return handler(task.body, state, stack + (task.name,))

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Board helpers
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def _column(self, name: str) -> Column:
        column = self.board.find_column(self.board_id, name)
        if column is None:
            raise NotFoundError(f"the column {name} is not found")
        return column

    def _source(self, src: Source, state: State) -> List[Card]:
        if src.kind == SourceKind.PIPE:
            cards = list(state.cards())
        elif src.kind == SourceKind.BOARD:
            cards = list(self.board.cards(self.board_id))
        else:
            cards = list(self.board.cards_in_column(self._column(src.column).id))
        logger.debug(f"Taken {len(cards)} cards from {src}")
        return cards

    def _position(self, place: Place, column_id: str) -> Position:
        """Translate a Place into a board position inside column_id."""
        if place == Place.TOP:
            return "top"
        if place == Place.BOTTOM:
            return "bottom"

        # Random: pick one of the gaps around the cards already there.
        positions = sorted(c.pos for c in self.board.cards_in_column(column_id))
        slot = self.rng.randint(0, len(positions))
        if slot == 0:
            return "top"
        if slot == len(positions):
            return "bottom"
        return (positions[slot - 1] + positions[slot]) / 2

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Task bodies
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def _take(self, task: TakeTask, state: State, stack: Stack) -> State:
        cards = self._source(task.src, state)
        total = len(cards)
        size = task.size
        if not 0 < size < total:
            return State.pipe(cards)

        logger.debug(f"Cutting {total} cards to {size} from {task.place.value}")
        if task.place == Place.TOP:
            return State.pipe(cards[:size])
        if task.place == Place.BOTTOM:
            return State.pipe(cards[total - size:])

        drawn: List[int] = []
        seen = set()
        while len(seen) != size:
            idx = self.rng.randrange(total)
            if idx not in seen:
                seen.add(idx)
                drawn.append(idx)
        return State.pipe(cards[i] for i in drawn)

    def _order(self, task: OrderTask, state: State, stack: Stack) -> State:
        cards = self._source(task.src, state)
        logger.debug(f"Ordering {len(cards)} cards by {task.kind.value}")
        if task.kind == OrderKind.SHUFFLE:
            self.rng.shuffle(cards)
        elif task.kind == OrderKind.SORT:
            cards.sort(key=lambda c: c.name)
        else:
            cards.reverse()
        return State.pipe(cards)

    def _filter(self, task: FilterTask, state: State, stack: Stack) -> State:
        cards = state.cards()
        if task.by == FilterBy.NAME:
            if task.case_sensitive:
                kept = [c for c in cards if c.name == task.value]
            else:
                wanted = task.value.casefold()
                kept = [c for c in cards if c.name.casefold() == wanted]
        else:
            label = self.board.find_label(self.board_id, task.value, task.case_sensitive)
            if label is None:
                raise NotFoundError(f"the label {task.value} is not found")
            kept = [c for c in cards if label.id in c.id_labels]

        logger.debug(f"Filter by {task.by.value}={task.value!r} kept {len(kept)} of {len(cards)}")
        return State.pipe(kept)

    def _action(self, task: ActionTask, state: State, stack: Stack) -> State:
        if task.kind == ActionKind.PRINT:
            for card in state.cards():
                logger.info(f"card: {card.name} {card.short_url}".rstrip())
            return state

        column = self._column(task.target.column)

        if task.kind == ActionKind.ADD:
            logger.info(f"Adding card '{task.card.name}' to {column.name}")
            self.board.create_card(
                column.id,
                task.card.name,
                self._position(task.target.place, column.id),
                desc=task.card.desc,
            )
            return State.end()

        cards = state.cards()
        logger.info(f"{task.kind.value.capitalize()} {len(cards)} cards to {column.name}")
        for card in cards:
            position = self._position(task.target.place, column.id)
            if task.kind == ActionKind.COPY:
                self.board.create_card(column.id, card.name, position, source_id=card.id)
            else:
                self.board.move_card(card.id, column.id, position)
        return State.end()

    def _flow(self, task: FlowTask, state: State, stack: Stack) -> State:
        for step in task.steps:
            logger.info(f"Execute a step: {step}")
            state = self.process(self.ctx.lookup(step), state, stack)
        return state

    def _group(self, task: GroupTask, state: State, stack: Stack) -> State:
        for step in task.steps:
            logger.info(f"Execute a group member: {step}")
            self._run(step, stack)
        return State.end()
