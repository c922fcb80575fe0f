"""
Trello implementation of the board capability.

Talks to the Trello REST API with requests. Every call is synchronous and
is tried exactly once; failures surface as BoardError.

Credentials:
    key and token, see https://trello.com/app-key
"""
import logging
from typing import Any, Dict, List, Optional

import requests

from .board import BoardClient, Position
from .errors import BoardError
from .schema import Board, Card, Column, Label

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.trello.com"
DEFAULT_TIMEOUT = 10


class TrelloClient(BoardClient):
    """HTTP client for the Trello API."""

    def __init__(
        self,
        key: str,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.key = key
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings) -> "TrelloClient":
        key, token = settings.trello_credentials()
        return cls(
            key,
            token,
            base_url=settings.trello.base_url,
            timeout=settings.trello.timeout,
        )

    # ── Transport ──

    def _request(self, method: str, path: str, **params) -> Any:
        query = {"key": self.key, "token": self.token}
        query.update({k: v for k, v in params.items() if v is not None})
        url = f"{self.base_url}{path}"
        try:
            r = self.session.request(
                method,
                url,
                params=query,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise BoardError(f"{method} {path} failed: {e}") from e

        if not r.ok:
            raise BoardError(
                f"{method} {path} returned {r.status_code}: {r.text[:200]}",
                status=r.status_code,
            )
        try:
            return r.json()
        except ValueError as e:
            raise BoardError(f"{method} {path} returned invalid json") from e

    def _get(self, path: str, **params) -> Any:
        return self._request("GET", path, **params)

    # ── Reads ──

    def boards(self) -> List[Board]:
        boards = [Board.from_dict(b) for b in self._get("/1/members/me/boards")]
        return [b for b in boards if not b.closed]

    def columns(self, board_id: str) -> List[Column]:
        return [Column.from_dict(c) for c in self._get(f"/1/boards/{board_id}/lists")]

    def cards(self, board_id: str) -> List[Card]:
        return [Card.from_dict(c) for c in self._get(f"/1/boards/{board_id}/cards")]

    def cards_in_column(self, column_id: str) -> List[Card]:
        return [Card.from_dict(c) for c in self._get(f"/1/lists/{column_id}/cards")]

    def labels(self, board_id: str) -> List[Label]:
        return [Label.from_dict(l) for l in self._get(f"/1/boards/{board_id}/labels")]

    # ── Writes ──

    def create_card(
        self,
        column_id: str,
        name: str,
        position: Position = "top",
        *,
        desc: str = "",
        source_id: Optional[str] = None,
    ) -> Card:
        params: Dict[str, Any] = {"idList": column_id, "name": name, "pos": position}
        if desc:
            params["desc"] = desc
        if source_id:
            params["idCardSource"] = source_id
        logger.debug(f"Creating card '{name}' in list {column_id} at {position}")
        return Card.from_dict(self._request("POST", "/1/cards", **params))

    def move_card(self, card_id: str, column_id: str, position: Position = "top") -> Card:
        logger.debug(f"Moving card {card_id} to list {column_id} at {position}")
        return Card.from_dict(
            self._request("PUT", f"/1/cards/{card_id}", idList=column_id, pos=position)
        )

    def update_card_name(self, card_id: str, name: str) -> Card:
        return Card.from_dict(self._request("PUT", f"/1/cards/{card_id}", name=name))

    def update_card_desc(self, card_id: str, desc: str) -> Card:
        return Card.from_dict(self._request("PUT", f"/1/cards/{card_id}", desc=desc))
