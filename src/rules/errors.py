"""Typed input errors raised at the rules boundary.

All of them derive from ``ValueError`` so callers that only care about
"bad input" can keep catching that.
"""

from __future__ import annotations

from enum import IntFlag
from typing import List


class IllegalReason(IntFlag):
    """Reasons a set-up position is rejected; several may apply at once."""

    NONE = 0
    PAWN_POSITION = 0x01
    NOT_ONE_KING_EACH = 0x02
    CAN_TAKE_KING = 0x04
    WHITE_TOO_MANY_PIECES = 0x08
    BLACK_TOO_MANY_PIECES = 0x10
    WHITE_TOO_MANY_PAWNS = 0x20
    BLACK_TOO_MANY_PAWNS = 0x40

    def names(self) -> List[str]:
        return [r.name.lower() for r in IllegalReason if r and r in self and r.name]


class InvalidFen(ValueError):
    """FEN text that cannot be parsed."""


class InvalidPosition(ValueError):
    """A parsed position that breaks the rules of chess."""

    def __init__(self, reasons: IllegalReason) -> None:
        self.reasons = reasons
        super().__init__("illegal position: " + ", ".join(reasons.names()))


class InvalidMove(ValueError):
    """Move text that does not name exactly one legal move."""

    def __init__(self, text: str, notation: str) -> None:
        self.input = text
        self.notation = notation
        super().__init__(f"Invalid {notation.upper()} move: {text}")
