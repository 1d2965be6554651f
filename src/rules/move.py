from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from .squares import square_name


class Special(IntEnum):
    """Move family; drives how push/pop rewrite the board."""

    NONE = 0
    KING_MOVE = 1
    WK_CASTLE = 2
    WQ_CASTLE = 3
    BK_CASTLE = 4
    BQ_CASTLE = 5
    WEN_PASSANT = 6
    BEN_PASSANT = 7
    WPAWN_2SQUARES = 8
    BPAWN_2SQUARES = 9
    PROMO_Q = 10
    PROMO_R = 11
    PROMO_B = 12
    PROMO_N = 13

    @property
    def is_promotion(self) -> bool:
        return Special.PROMO_Q <= self <= Special.PROMO_N

    @property
    def is_castling(self) -> bool:
        return Special.WK_CASTLE <= self <= Special.BQ_CASTLE

    @property
    def is_kingside_castling(self) -> bool:
        return self in (Special.WK_CASTLE, Special.BK_CASTLE)

    @property
    def is_en_passant(self) -> bool:
        return self in (Special.WEN_PASSANT, Special.BEN_PASSANT)

    @property
    def promotion_letter(self) -> Optional[str]:
        """Uppercase letter of the promoted piece, or ``None``."""
        return _PROMO_TO_LETTER.get(self)


_PROMO_TO_LETTER = {
    Special.PROMO_Q: "Q",
    Special.PROMO_R: "R",
    Special.PROMO_B: "B",
    Special.PROMO_N: "N",
}
LETTER_TO_PROMO = {v: k for k, v in _PROMO_TO_LETTER.items()}

# Generation order for (under)promotions
PROMOTION_ORDER = (Special.PROMO_Q, Special.PROMO_N, Special.PROMO_B, Special.PROMO_R)


@dataclass(frozen=True)
class Move:
    """A single move as produced by the generator.

    Attributes:
        src (int): Origin square (a8=0 .. h1=63).
        dst (int): Destination square.
        special (Special): Move family.
        capture (str): Piece code removed by the move (``' '`` when quiet);
            an enemy pawn for en-passant captures.
    """

    src: int
    dst: int
    special: Special = Special.NONE
    capture: str = " "

    @property
    def is_capture(self) -> bool:
        return self.capture != " "

    def to_uci(self) -> str:
        """Serialize the move into pure coordinate form.

        Returns:
            str: Move encoded like ``"e2e4"`` or ``"e7e8q"``.
        """
        promo = self.special.promotion_letter
        return square_name(self.src) + square_name(self.dst) + (promo.lower() if promo else "")

    def __str__(self) -> str:
        return self.to_uci()
