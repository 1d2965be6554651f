from __future__ import annotations

import threading
import uuid
from typing import Dict, Optional

from ...rules.game import Game


class InMemorySessionStore:
    """Thread-safe map of ``game_id`` to live ``Game`` sessions.

    Only the dictionary is guarded; a handler works on the ``Game`` it fetched
    for the length of one request.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._games: Dict[str, Game] = {}

    def create(self, game: Optional[Game] = None) -> str:
        """Register ``game`` (a fresh standard game by default) under a new id."""
        game_id = uuid.uuid4().hex
        with self._lock:
            self._games[game_id] = game if game is not None else Game.new()
        return game_id

    def get(self, game_id: str) -> Optional[Game]:
        with self._lock:
            return self._games.get(game_id)

    def replace(self, game_id: str, game: Game) -> None:
        with self._lock:
            if game_id not in self._games:
                raise KeyError(game_id)
            self._games[game_id] = game

    def delete(self, game_id: str) -> bool:
        with self._lock:
            return self._games.pop(game_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._games)
