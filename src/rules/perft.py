from __future__ import annotations

from typing import Dict

from .position import Position


def perft(position: Position, depth: int) -> int:
    """Count leaf nodes of the legal move tree below ``position``.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal child positions' perft(depth-1).

    Children are visited with push/pop, so ``position`` is left unchanged.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1

    moves = position.gen_legal()
    if depth == 1:
        return len(moves)
    nodes = 0
    for m in moves:
        position.push(m)
        nodes += perft(position, depth - 1)
        position.pop(m)
    return nodes


def perft_divide(position: Position, depth: int) -> Dict[str, int]:
    """Per-root-move node counts, keyed by UCI move text."""
    if depth < 1:
        raise ValueError("depth must be >= 1")
    out: Dict[str, int] = {}
    for m in position.gen_legal():
        position.push(m)
        out[m.to_uci()] = perft(position, depth - 1)
        position.pop(m)
    return out
