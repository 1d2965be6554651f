from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .move import Move
from .position import STARTPOS_FEN, DrawType, Position, Terminal


logger = logging.getLogger(__name__)

NOTATIONS = ("auto", "san", "uci")


@dataclass
class Game:
    """Game wrapper around a position with helper operations.

    Responsibility: track the played moves (with their SAN, recorded before
    each move is made), expose legal moves and status flags, take moves back.
    """

    position: Position
    start_fen: str = STARTPOS_FEN
    move_stack: List[Move] = field(default_factory=list)
    san_stack: List[str] = field(default_factory=list)

    @classmethod
    def new(cls) -> "Game":
        return cls(position=Position.startpos())

    @classmethod
    def from_fen(cls, fen: str) -> "Game":
        position = Position.from_fen(fen)
        return cls(position=position, start_fen=position.to_fen())

    def to_fen(self) -> str:
        return self.position.to_fen()

    def legal_moves(self) -> List[Move]:
        return self.position.gen_legal()

    def parse_move(self, text: str, notation: str = "auto") -> Move:
        """Resolve move text against the current position.

        Args:
            text (str): Move in SAN (``Nf3``) or UCI (``g1f3``) form.
            notation (str): ``"san"``, ``"uci"`` or ``"auto"`` (UCI first,
                then SAN).

        Raises:
            InvalidMove: If the text names no legal move.
            ValueError: If ``notation`` is unknown.
        """
        if notation not in NOTATIONS:
            raise ValueError(f"unknown notation: {notation}")
        if notation == "uci":
            return self.position.parse_uci(text)
        if notation == "san":
            return self.position.parse_san(text)
        try:
            return self.position.parse_uci(text)
        except ValueError:
            return self.position.parse_san(text)

    def apply_move(self, text: str, notation: str = "auto") -> Move:
        m = self.parse_move(text, notation)
        san = self.position.format_san(m)
        self.position.play(m)
        self.move_stack.append(m)
        self.san_stack.append(san)
        logger.debug("played %s (%s)", san, m.to_uci())
        return m

    def undo_move(self) -> Move:
        """Take back the last move by replaying the game from its start.

        Replaying restores the move counters too, which ``pop`` alone does not.
        """
        if not self.move_stack:
            raise ValueError("no moves to undo")
        last = self.move_stack.pop()
        self.san_stack.pop()
        position = Position.from_fen(self.start_fen)
        for m in self.move_stack:
            position.play(m)
        self.position = position
        return last

    # --- State flags for protocol ---
    def terminal(self) -> Terminal:
        return self.position.terminal_score()

    def in_check(self) -> bool:
        return self.position.in_check()

    def checkmate(self) -> bool:
        return self.terminal().is_checkmate

    def stalemate(self) -> bool:
        return self.terminal().is_stalemate

    def draw(self, claimant_is_white: Optional[bool] = None) -> DrawType:
        """Draw available to ``claimant_is_white`` (default: the side to move)."""
        if claimant_is_white is None:
            claimant_is_white = self.position.white
        return self.position.is_draw(claimant_is_white)

    def repetition_count(self) -> int:
        return self.position.repetition_count()

    def move_history_uci(self) -> List[str]:
        return [m.to_uci() for m in self.move_stack]

    def move_history_san(self) -> List[str]:
        return list(self.san_stack)
