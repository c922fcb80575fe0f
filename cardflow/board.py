"""
Board capability consumed by the task engine.

Subclasses implement the primitive calls against a real backend (see
trello.py). The name lookups are built on top of the primitives so every
backend resolves columns and labels the same way.

Positions are passed through as the backend expects them: "top", "bottom"
or a number.
"""
from typing import List, Optional, Union

from .schema import Board, Card, Column, Label

Position = Union[str, float]


class BoardClient:
    """Read and mutate cards on a kanban board."""

    # ── Primitives ──

    def boards(self) -> List[Board]:
        raise NotImplementedError

    def columns(self, board_id: str) -> List[Column]:
        raise NotImplementedError

    def cards(self, board_id: str) -> List[Card]:
        raise NotImplementedError

    def cards_in_column(self, column_id: str) -> List[Card]:
        raise NotImplementedError

    def labels(self, board_id: str) -> List[Label]:
        raise NotImplementedError

    def create_card(
        self,
        column_id: str,
        name: str,
        position: Position = "top",
        *,
        desc: str = "",
        source_id: Optional[str] = None,
    ) -> Card:
        """Create a card; with source_id the new card is a copy of that card."""
        raise NotImplementedError

    def move_card(self, card_id: str, column_id: str, position: Position = "top") -> Card:
        raise NotImplementedError

    def update_card_name(self, card_id: str, name: str) -> Card:
        raise NotImplementedError

    def update_card_desc(self, card_id: str, desc: str) -> Card:
        raise NotImplementedError

    # ── Lookups ──

    def find_board(self, name: str) -> Optional[Board]:
        """Open board by name (or id)."""
        for board in self.boards():
            if not board.closed and (board.name == name or board.id == name):
                return board
        return None

    def find_column(self, board_id: str, name: str) -> Optional[Column]:
        for column in self.columns(board_id):
            if column.name == name:
                return column
        return None

    def find_label(self, board_id: str, name: str, case_sensitive: bool = True) -> Optional[Label]:
        for label in self.labels(board_id):
            if case_sensitive:
                if label.name == name:
                    return label
            elif label.name.casefold() == name.casefold():
                return label
        return None
