"""Move notation: SAN and UCI (pure coordinate) parsing and formatting.

SAN parsing is lenient in the ways hand-typed and device-generated moves
tend to be: annotations are ignored, ``=`` before a promotion piece may be
omitted, castling may be written ``OO``/``o-o``, en passant may be marked with
``ep``/``e.p.``, pawn captures may be shortened to ``ab`` or ``a5b`` and plain
coordinate moves (``g1f3``) are accepted too.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Callable, List, Optional

from .errors import InvalidMove
from .move import LETTER_TO_PROMO, Move, Special
from .squares import FILES, file_char, parse_square, rank_char, square_name

if TYPE_CHECKING:
    from .position import Position


logger = logging.getLogger(__name__)

PIECE_LETTERS = "KQRNPB"
INNER_RANKS = "234567"


@dataclass
class SanIntent:
    """What a SAN string asks for, before looking at the legal moves.

    ``piece`` is ``None`` when the text names no piece: that means a pawn,
    except for fully specified coordinate moves, which may move any piece.
    """

    piece: Optional[str] = None
    src_file: Optional[str] = None
    src_rank: Optional[str] = None
    dst_file: Optional[str] = None
    dst_rank: Optional[str] = None
    promotion: Optional[str] = None
    castle: Optional[str] = None  # "K" or "Q"
    en_passant: bool = False

    def matches(self, position: "Position", m: Move) -> bool:
        moved = position.squares[m.src].upper()
        if self.piece is not None:
            if moved != self.piece:
                return False
        elif not (self.src_file and self.src_rank and self.dst_file and self.dst_rank):
            if moved != "P":
                return False
        if self.src_file and file_char(m.src) != self.src_file:
            return False
        if self.src_rank and rank_char(m.src) != self.src_rank:
            return False
        if self.dst_file and file_char(m.dst) != self.dst_file:
            return False
        if self.dst_rank and rank_char(m.dst) != self.dst_rank:
            return False
        if self.castle is not None:
            if not m.special.is_castling or m.special.is_kingside_castling != (self.castle == "K"):
                return False
        if self.en_passant and not m.special.is_en_passant:
            return False
        return True


def _rstrip_punct(s: str) -> str:
    """Drop trailing characters that are not ASCII letters or digits."""
    end = len(s)
    while end > 0 and not (s[end - 1].isascii() and s[end - 1].isalnum()):
        end -= 1
    return s[:end]


def read_san(text: str, white: bool) -> Optional[SanIntent]:
    """Parse SAN text into a ``SanIntent`` or return ``None`` if malformed.

    A trailing lowercase ``b`` is a destination file when the text is three
    characters long with a rank 2..7 in the middle (``a5b``); otherwise it is
    a bishop promotion.
    """
    tokens = text.split()
    if not tokens:
        return None
    move = _rstrip_punct(tokens[0])
    intent = SanIntent()

    if move.endswith("ep"):
        move = _rstrip_punct(move[:-2])
        intent.en_passant = True
    elif move.endswith("e.p"):
        move = _rstrip_punct(move[:-3])
        intent.en_passant = True

    if len(move) > 2:
        last = move[-1]
        if not ("1" <= last <= "8") and last not in "Oo":
            if last in "qQrRnNB":
                intent.promotion = last.upper()
            elif last == "b":
                if not (len(move) == 3 and move[1] in INNER_RANKS):
                    intent.promotion = "B"
            else:
                return None
            if intent.promotion:
                if move[-2] not in "=18":
                    return None
                move = _rstrip_punct(move[:-1])

    lowered = move.lower()
    if lowered in ("oo", "o-o"):
        move = "e1g1" if white else "e8g8"
        intent.piece = "K"
        intent.castle = "K"
    elif lowered in ("ooo", "o-o-o"):
        move = "e1c1" if white else "e8c8"
        intent.piece = "K"
        intent.castle = "Q"

    n = len(move)
    if n == 2 and move[0] in FILES and move[1] in FILES:
        intent.src_file, intent.dst_file = move[0], move[1]
    elif n == 3 and move[0] in FILES and move[1] in INNER_RANKS and move[2] in FILES:
        intent.src_file, intent.dst_file = move[0], move[2]
    elif n >= 2 and move[-2] in FILES and "1" <= move[-1] <= "8":
        intent.dst_file, intent.dst_rank = move[-2], move[-1]
    else:
        return None

    if n > 2:
        if move[0] in FILES and "1" <= move[1] <= "8":
            intent.src_file, intent.src_rank = move[0], move[1]
        else:
            if move[0] in PIECE_LETTERS:
                intent.piece = move[0]
            elif move[0] in FILES:
                intent.src_file = move[0]
            else:
                return None
            if n > 3 and intent.src_file is None:
                if "1" <= move[1] <= "8":
                    intent.src_rank = move[1]
                elif move[1] in FILES:
                    intent.src_file = move[1]
                    if n > 4 and "1" <= move[2] <= "8":
                        intent.src_rank = move[2]

    if intent.en_passant:
        intent.src_rank = intent.dst_rank = None
    return intent


def parse_san(position: "Position", text: str) -> Move:
    """Return the legal move named by SAN ``text``.

    The first legal move (in generation order) consistent with every
    discriminant the text provides is chosen.

    Raises:
        InvalidMove: If the text is malformed, names no legal move, or
            declares a promotion the matched move does not make.
    """
    intent = read_san(text, position.white)
    if intent is None:
        logger.debug("malformed SAN %r", text)
        raise InvalidMove(text, "san")
    found = next((m for m in position.gen_legal() if intent.matches(position, m)), None)
    if found is None:
        raise InvalidMove(text, "san")
    if found.special.is_promotion:
        return replace(found, special=LETTER_TO_PROMO[intent.promotion or "Q"])
    if intent.promotion:
        raise InvalidMove(text, "san")
    return found


def format_san(position: "Position", move: Move) -> str:
    """Render a legal move in SAN, with ``+``/``#`` suffixes.

    The shortest unambiguous form wins: pawn move, castling, ``Nd2``,
    ``Nbd2``, ``N1d2``, and finally the fully qualified ``Nb1d2``.

    Raises:
        InvalidMove: If ``move`` is not legal in ``position``.
    """
    legal = position.gen_legal()
    annotated = position.annotate(move) if move in legal else None
    if annotated is None:
        raise InvalidMove(move.to_uci(), "san")
    suffix = "#" if annotated.mate else "+" if annotated.check else ""
    return _san_body(position, move, legal) + suffix


def _san_body(position: "Position", move: Move, legal: List[Move]) -> str:
    squares = position.squares

    def takes(m: Move) -> str:
        return "x" if m.is_capture else ""

    def piece(m: Move) -> str:
        return squares[m.src].upper()

    if piece(move) == "P":
        body = (file_char(move.src) + "x") if move.is_capture else ""
        body += square_name(move.dst)
        promo = move.special.promotion_letter
        return body + "=" + promo if promo else body

    if move.special.is_castling:
        return "O-O" if move.special.is_kingside_castling else "O-O-O"

    stages: List[Callable[[Move], str]] = [
        lambda m: piece(m) + takes(m) + square_name(m.dst),
        lambda m: piece(m) + file_char(m.src) + takes(m) + square_name(m.dst),
        lambda m: piece(m) + rank_char(m.src) + takes(m) + square_name(m.dst),
    ]
    for stage in stages:
        candidate = stage(move)
        if sum(1 for m in legal if stage(m) == candidate) == 1:
            return candidate
    return piece(move) + square_name(move.src) + takes(move) + square_name(move.dst)


def parse_uci(position: "Position", text: str) -> Move:
    """Return the legal move named by a coordinate move like ``e2e4``/``e7e8q``.

    Raises:
        InvalidMove: If the text is malformed or names no legal move.
    """
    s = text.strip()
    if len(s) not in (4, 5):
        raise InvalidMove(text, "uci")
    try:
        src = parse_square(s[0:2])
        dst = parse_square(s[2:4])
    except ValueError as e:
        raise InvalidMove(text, "uci") from e
    promo: Optional[Special] = None
    if len(s) == 5:
        promo = LETTER_TO_PROMO.get(s[4].upper())
        if promo is None:
            raise InvalidMove(text, "uci")
    for m in position.gen_legal():
        if m.src != src or m.dst != dst:
            continue
        if (m.special.is_promotion or promo is not None) and m.special != promo:
            continue
        return m
    raise InvalidMove(text, "uci")


def format_uci(move: Move) -> str:
    return move.to_uci()
