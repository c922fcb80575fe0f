"""Shared test fixtures: an in-memory board and executor builders."""

import dataclasses
import random
import sys
from pathlib import Path
from typing import List, Optional

import pytest

# Ensure the package is importable when running from a source checkout
sys.path.insert(0, str(Path(__file__).parent.parent))

from cardflow.board import BoardClient
from cardflow.context import TaskContext
from cardflow.engine import Executor
from cardflow.schema import Board, Card, Column, Label


class FakeBoard(BoardClient):
    """In-memory board that records every mutation."""

    def __init__(self, name: str = "ENG"):
        self.board = Board(id="board-1", name=name)
        self._columns: List[Column] = []
        self._labels: List[Label] = []
        self._cards: List[Card] = []
        self.calls: list = []
        self._seq = 0

    # ── Setup helpers ──

    def _next_id(self, prefix: str) -> str:
        self._seq += 1
        return f"{prefix}-{self._seq}"

    def add_column(self, name: str) -> Column:
        column = Column(id=self._next_id("list"), name=name)
        self._columns.append(column)
        return column

    def add_label(self, name: str) -> Label:
        label = Label(id=self._next_id("label"), name=name)
        self._labels.append(label)
        return label

    def add_card(self, column: str, name: str, labels=()) -> Card:
        col = self.find_column(self.board.id, column)
        pos = max((c.pos for c in self._cards if c.id_list == col.id), default=0.0) + 1024
        card = Card(
            id=self._next_id("card"),
            name=name,
            id_list=col.id,
            id_labels=tuple(l.id for l in labels),
            pos=pos,
            short_url=f"https://trello.test/c/{name}",
        )
        self._cards.append(card)
        return card

    def names_in(self, column: str) -> List[str]:
        col = self.find_column(self.board.id, column)
        return [c.name for c in self.cards_in_column(col.id)]

    def _pos(self, column_id: str, position) -> float:
        existing = [c.pos for c in self._cards if c.id_list == column_id]
        if position == "top":
            return min(existing, default=1024.0) / 2
        if position == "bottom":
            return max(existing, default=0.0) + 1024
        return float(position)

    # ── BoardClient ──

    def boards(self):
        return [self.board, Board(id="board-0", name="Old", closed=True)]

    def columns(self, board_id):
        return list(self._columns)

    def cards(self, board_id):
        return list(self._cards)

    def cards_in_column(self, column_id):
        return sorted((c for c in self._cards if c.id_list == column_id), key=lambda c: c.pos)

    def labels(self, board_id):
        return list(self._labels)

    def create_card(self, column_id, name, position="top", *, desc="", source_id=None):
        self.calls.append(("create", column_id, name, position, source_id))
        labels = ()
        if source_id:
            labels = next(c.id_labels for c in self._cards if c.id == source_id)
        card = Card(
            id=self._next_id("card"),
            name=name,
            desc=desc,
            id_list=column_id,
            id_labels=labels,
            pos=self._pos(column_id, position),
        )
        self._cards.append(card)
        return card

    def move_card(self, card_id, column_id, position="top"):
        self.calls.append(("move", card_id, column_id, position))
        for i, card in enumerate(self._cards):
            if card.id == card_id:
                moved = dataclasses.replace(
                    card, id_list=column_id, pos=self._pos(column_id, position)
                )
                self._cards[i] = moved
                return moved
        raise KeyError(card_id)

    def update_card_name(self, card_id, name):
        self.calls.append(("name", card_id, name))
        return self._update(card_id, name=name)

    def update_card_desc(self, card_id, desc):
        self.calls.append(("desc", card_id, desc))
        return self._update(card_id, desc=desc)

    def _update(self, card_id, **changes):
        for i, card in enumerate(self._cards):
            if card.id == card_id:
                self._cards[i] = dataclasses.replace(card, **changes)
                return self._cards[i]
        raise KeyError(card_id)


@pytest.fixture
def board() -> FakeBoard:
    """Board ENG with Archive (w1..w10), an empty Repeating column and Idioms."""
    b = FakeBoard("ENG")
    b.add_column("Archive")
    b.add_column("Repeating")
    b.add_column("Idioms")
    for i in range(1, 11):
        b.add_card("Archive", f"w{i}")
    for name in ("break a leg", "Bite the bullet", "a piece of cake"):
        b.add_card("Idioms", name)
    return b


@pytest.fixture
def make_executor(board):
    """Build an Executor for a YAML task document against the board fixture."""

    def _make(text: str, arguments: Optional[dict] = None, seed: int = 7, **kwargs) -> Executor:
        ctx = TaskContext.from_yaml(text, arguments)
        return Executor(ctx, board, rng=random.Random(seed), **kwargs)

    return _make
