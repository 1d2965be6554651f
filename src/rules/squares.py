"""Square indexing and coordinate helpers.

Squares are 0..63 laid out from Black's back rank down::

    a8=0,  b8=1,  ..., h8=7
    a7=8,  b7=9,  ..., h7=15
    ...
    a1=56, b1=57, ..., h1=63
"""

from __future__ import annotations

from typing import Optional


FILES = "abcdefgh"
RANKS = "12345678"

# Named square constants
A8, B8, C8, D8, E8, F8, G8, H8 = range(0, 8)
A7, B7, C7, D7, E7, F7, G7, H7 = range(8, 16)
A6, B6, C6, D6, E6, F6, G6, H6 = range(16, 24)
A5, B5, C5, D5, E5, F5, G5, H5 = range(24, 32)
A4, B4, C4, D4, E4, F4, G4, H4 = range(32, 40)
A3, B3, C3, D3, E3, F3, G3, H3 = range(40, 48)
A2, B2, C2, D2, E2, F2, G2, H2 = range(48, 56)
A1, B1, C1, D1, E1, F1, G1, H1 = range(56, 64)


def file_index(sq: int) -> int:
    """File index 0..7 (a..h)."""
    return sq & 7


def rank_index(sq: int) -> int:
    """Rank index 0..7 (rank 1..8)."""
    return 7 - (sq >> 3)


def file_char(sq: int) -> str:
    return FILES[sq & 7]


def rank_char(sq: int) -> str:
    return RANKS[7 - (sq >> 3)]


def make_square(file_idx: int, rank_idx: int) -> int:
    """Build a square from file (0..7) and rank (0..7, rank 1 first)."""
    return (7 - rank_idx) * 8 + file_idx


def square_at(file_ch: str, rank_ch: str) -> int:
    """Build a square from its file letter and rank digit, e.g. ``('e', '4')``."""
    return make_square(FILES.index(file_ch), RANKS.index(rank_ch))


# Single-step shifts; callers must know the destination exists.
def north(sq: int) -> int:
    return sq - 8


def south(sq: int) -> int:
    return sq + 8


def square_name(sq: int) -> str:
    """Convert a square index into algebraic notation.

    Args:
        sq (int): Square index in range 0..63.

    Returns:
        str: Algebraic notation for ``sq`` such as ``"e4"``.

    Raises:
        ValueError: If ``sq`` is outside the valid square range.
    """
    if sq < 0 or sq > 63:
        raise ValueError(f"invalid square index: {sq}")
    return file_char(sq) + rank_char(sq)


def parse_square(name: str) -> int:
    """Convert algebraic notation into a square index.

    Args:
        name (str): Square name such as ``"e4"``.

    Returns:
        int: Square index in the a8=0 .. h1=63 layout.

    Raises:
        ValueError: If ``name`` is not a valid square.
    """
    if len(name) != 2 or name[0] not in FILES or name[1] not in RANKS:
        raise ValueError(f"invalid square: {name!r}")
    return square_at(name[0], name[1])


def optional_square_name(sq: Optional[int]) -> str:
    return "-" if sq is None else square_name(sq)
