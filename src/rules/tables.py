"""Precomputed per-square move and attack tables.

All tables are built once at import time and are read-only afterwards. Rays
list destination squares nearest-first, so generators walk a ray until the
first occupied square and drop the remainder.

Attack tables are indexed by the *attacked* square and walk outwards from it.
Each entry is a ``(square, mask)`` pair where ``mask`` says which attacker
kinds standing on ``square`` reach the attacked square along that ray.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

from .squares import make_square


Ray = Tuple[int, ...]
AttackRay = Tuple[Tuple[int, int], ...]

# Attacker-kind bits; knights are handled by KNIGHT_MOVES
MASK_P = 0x01
MASK_B = 0x02
MASK_R = 0x04
MASK_Q = 0x08
MASK_K = 0x10

TO_MASK: Dict[str, int] = {
    "P": MASK_P,
    "p": MASK_P,
    "B": MASK_B,
    "b": MASK_B,
    "R": MASK_R,
    "r": MASK_R,
    "Q": MASK_Q,
    "q": MASK_Q,
    "K": MASK_K,
    "k": MASK_K,
    "N": 0,
    "n": 0,
    " ": 0,
}

# (file delta, rank delta); positive rank delta points toward rank 8
DIAGONALS = ((-1, 1), (1, 1), (-1, -1), (1, -1))
ORTHOGONALS = ((0, 1), (0, -1), (-1, 0), (1, 0))
KNIGHT_JUMPS = ((-1, 2), (1, 2), (-2, 1), (2, 1), (-2, -1), (2, -1), (-1, -2), (1, -2))


def _step(sq: int, df: int, dr: int, n: int = 1) -> int:
    """Return the square ``n`` steps away or -1 when it falls off the board."""
    f = (sq & 7) + df * n
    r = 7 - (sq >> 3) + dr * n
    if 0 <= f < 8 and 0 <= r < 8:
        return make_square(f, r)
    return -1


def _ray(sq: int, df: int, dr: int) -> Ray:
    out: List[int] = []
    n = 1
    while True:
        dst = _step(sq, df, dr, n)
        if dst < 0:
            break
        out.append(dst)
        n += 1
    return tuple(out)


def _long_rays(sq: int, dirs: Tuple[Tuple[int, int], ...]) -> Tuple[Ray, ...]:
    return tuple(r for r in (_ray(sq, df, dr) for df, dr in dirs) if r)


def _short_moves(sq: int, jumps: Tuple[Tuple[int, int], ...]) -> Ray:
    return tuple(d for d in (_step(sq, df, dr) for df, dr in jumps) if d >= 0)


def _pawn_advances(sq: int, white: bool) -> Ray:
    dr = 1 if white else -1
    home = 1 if white else 6
    one = _step(sq, 0, dr)
    if one < 0:
        return ()
    if 7 - (sq >> 3) == home:
        return (one, _step(sq, 0, 2 * dr))
    return (one,)


def _pawn_captures(sq: int, white: bool) -> Ray:
    dr = 1 if white else -1
    return tuple(d for d in (_step(sq, -1, dr), _step(sq, 1, dr)) if d >= 0)


def _attack_rays(sq: int, by_white: bool) -> Tuple[AttackRay, ...]:
    # A white pawn attacks upwards, so it stands one rank below its target
    pawn_dr = -1 if by_white else 1
    rays: List[AttackRay] = []
    for diagonal, dirs in ((True, DIAGONALS), (False, ORTHOGONALS)):
        for df, dr in dirs:
            squares = _ray(sq, df, dr)
            if not squares:
                continue
            entries: List[Tuple[int, int]] = []
            for i, dst in enumerate(squares):
                mask = (MASK_B | MASK_Q) if diagonal else (MASK_R | MASK_Q)
                if i == 0:
                    mask |= MASK_K
                    if diagonal and dr == pawn_dr:
                        mask |= MASK_P
                entries.append((dst, mask))
            rays.append(tuple(entries))
    return tuple(rays)


KNIGHT_MOVES: Tuple[Ray, ...] = tuple(_short_moves(sq, KNIGHT_JUMPS) for sq in range(64))
KING_MOVES: Tuple[Ray, ...] = tuple(_short_moves(sq, DIAGONALS + ORTHOGONALS) for sq in range(64))

BISHOP_RAYS: Tuple[Tuple[Ray, ...], ...] = tuple(_long_rays(sq, DIAGONALS) for sq in range(64))
ROOK_RAYS: Tuple[Tuple[Ray, ...], ...] = tuple(_long_rays(sq, ORTHOGONALS) for sq in range(64))
QUEEN_RAYS: Tuple[Tuple[Ray, ...], ...] = tuple(
    _long_rays(sq, DIAGONALS + ORTHOGONALS) for sq in range(64)
)

PAWN_WHITE_CAPTURES: Tuple[Ray, ...] = tuple(_pawn_captures(sq, True) for sq in range(64))
PAWN_WHITE_ADVANCES: Tuple[Ray, ...] = tuple(_pawn_advances(sq, True) for sq in range(64))
PAWN_BLACK_CAPTURES: Tuple[Ray, ...] = tuple(_pawn_captures(sq, False) for sq in range(64))
PAWN_BLACK_ADVANCES: Tuple[Ray, ...] = tuple(_pawn_advances(sq, False) for sq in range(64))

ATTACKS_BY_WHITE: Tuple[Tuple[AttackRay, ...], ...] = tuple(
    _attack_rays(sq, True) for sq in range(64)
)
ATTACKS_BY_BLACK: Tuple[Tuple[AttackRay, ...], ...] = tuple(
    _attack_rays(sq, False) for sq in range(64)
)
