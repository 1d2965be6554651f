from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable, List, NamedTuple, Optional, Tuple

from . import notation
from .errors import IllegalReason, InvalidFen, InvalidPosition
from .move import PROMOTION_ORDER, Move, Special
from .squares import (
    A1,
    A8,
    B1,
    B8,
    C1,
    C8,
    D1,
    D8,
    E1,
    E8,
    F1,
    F8,
    G1,
    G8,
    H1,
    H8,
    file_index,
    north,
    optional_square_name,
    parse_square,
    rank_char,
    rank_index,
    south,
)
from .tables import (
    ATTACKS_BY_BLACK,
    ATTACKS_BY_WHITE,
    BISHOP_RAYS,
    KING_MOVES,
    KNIGHT_MOVES,
    PAWN_BLACK_ADVANCES,
    PAWN_BLACK_CAPTURES,
    PAWN_WHITE_ADVANCES,
    PAWN_WHITE_CAPTURES,
    QUEEN_RAYS,
    ROOK_RAYS,
    TO_MASK,
)


logger = logging.getLogger(__name__)

STARTPOS_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

PIECE_CHARS = frozenset("PNBRQKpnbrqk")

# Moves whose body is a plain src -> dst displacement
_DISPLACEMENTS = frozenset(
    {Special.NONE, Special.KING_MOVE, Special.WPAWN_2SQUARES, Special.BPAWN_2SQUARES}
)


class Terminal(IntEnum):
    NOT_TERMINAL = 0
    WCHECKMATE = 1
    BCHECKMATE = 2
    WSTALEMATE = 3
    BSTALEMATE = 4

    @property
    def is_checkmate(self) -> bool:
        return self in (Terminal.WCHECKMATE, Terminal.BCHECKMATE)

    @property
    def is_stalemate(self) -> bool:
        return self in (Terminal.WSTALEMATE, Terminal.BSTALEMATE)


class DrawType(IntEnum):
    """Draw classification; ``NOT_DRAW`` is falsy."""

    NOT_DRAW = 0
    INSUFFICIENT_AUTO = 1
    FIFTY_MOVE = 2
    REPETITION = 3
    INSUFFICIENT_CLAIM = 4


class AnnotatedMove(NamedTuple):
    move: Move
    check: bool
    mate: bool
    stalemate: bool


@dataclass
class Detail:
    """Reversible state saved on every push.

    The castling flags only record that a right has not been invalidated by
    an arrival on e1/a1/h1 (or e8/a8/h8); castling itself also requires king
    and rook on their home squares.
    """

    enpassant_target: Optional[int] = None
    wking: bool = True
    wqueen: bool = True
    bking: bool = True
    bqueen: bool = True
    wking_square: int = E1
    bking_square: int = E8

    def copy(self) -> "Detail":
        return Detail(
            self.enpassant_target,
            self.wking,
            self.wqueen,
            self.bking,
            self.bqueen,
            self.wking_square,
            self.bking_square,
        )


@dataclass
class Position:
    """Chess position with a reversible move stack.

    Notes:
    - ``squares`` holds 64 piece codes, a8=0 .. h1=63, ``' '`` for empty.
    - Mutate only through ``push``/``pop``/``play``; one owner at a time.
    """

    squares: List[str]
    white: bool = True
    detail: Detail = field(default_factory=Detail)
    half_move_clock: int = 0
    full_move_count: int = 1
    history: List[Move] = field(default_factory=list)
    detail_stack: List[Detail] = field(default_factory=list, repr=False)

    # --- Construction and FEN ---
    @classmethod
    def startpos(cls) -> "Position":
        """Create the standard chess starting position."""
        return cls.from_fen(STARTPOS_FEN)

    @classmethod
    def from_fen(cls, fen: str) -> "Position":
        """Create a position from a Forsyth-Edwards Notation string.

        The piece placement, side to move, castling and en-passant fields are
        required; the two move counters default to ``0 1`` when omitted.

        Args:
            fen (str): FEN string describing the position to load.

        Returns:
            Position: Position initialized from ``fen``.

        Raises:
            InvalidFen: If the text is malformed.
            InvalidPosition: If the placement breaks the rules of chess
                (``reasons`` carries every violation found).
        """
        if not fen or not isinstance(fen, str):
            raise InvalidFen("FEN must be a non-empty string")
        parts = fen.strip().split()
        if len(parts) not in (4, 5, 6):
            raise InvalidFen("FEN must have 4 to 6 fields")
        placement, stm, castling, ep = parts[:4]
        halfmove = parts[4] if len(parts) > 4 else "0"
        fullmove = parts[5] if len(parts) > 5 else "1"

        ranks = placement.split("/")
        if len(ranks) != 8:
            raise InvalidFen("FEN board must have 8 ranks")
        squares: List[str] = []
        for rank in ranks:  # rank 8 first, matching the a8=0 layout
            row: List[str] = []
            for ch in rank:
                if ch in "12345678":
                    row.extend(" " * int(ch))
                elif ch in PIECE_CHARS:
                    row.append(ch)
                else:
                    raise InvalidFen(f"invalid piece in FEN: {ch!r}")
                if len(row) > 8:
                    raise InvalidFen("too many squares in FEN rank")
            if len(row) != 8:
                raise InvalidFen("rank does not sum to 8 squares in FEN")
            squares.extend(row)

        if stm not in ("w", "b"):
            raise InvalidFen("side to move must be 'w' or 'b'")
        white = stm == "w"

        if castling != "-" and (not castling or any(ch not in "KQkq" for ch in castling)):
            raise InvalidFen("invalid castling rights")

        ep_square: Optional[int] = None
        if ep != "-":
            try:
                ep_square = parse_square(ep)
            except ValueError as e:
                raise InvalidFen("invalid en passant square") from e
            if rank_char(ep_square) != ("6" if white else "3"):
                raise InvalidFen("invalid en passant square rank")
            # The double-pushed pawn stands in front of the target, and the
            # target and the square it came from are empty.
            if white:
                pushed, behind, pawn = south(ep_square), north(ep_square), "p"
            else:
                pushed, behind, pawn = north(ep_square), south(ep_square), "P"
            if squares[pushed] != pawn or squares[ep_square] != " " or squares[behind] != " ":
                raise InvalidFen("en passant square does not follow a double pawn push")

        try:
            half_move_clock = int(halfmove)
            full_move_count = int(fullmove)
        except ValueError as e:
            raise InvalidFen("invalid move counters in FEN") from e
        if half_move_clock < 0 or full_move_count <= 0:
            raise InvalidFen("invalid move counters in FEN")

        detail = Detail(
            enpassant_target=ep_square,
            wking="K" in castling,
            wqueen="Q" in castling,
            bking="k" in castling,
            bqueen="q" in castling,
            wking_square=squares.index("K") if "K" in squares else E1,
            bking_square=squares.index("k") if "k" in squares else E8,
        )
        position = cls(
            squares=squares,
            white=white,
            detail=detail,
            half_move_clock=half_move_clock,
            full_move_count=full_move_count,
        )
        reasons = position.validate()
        if reasons:
            logger.debug("rejected FEN %r: %s", fen, reasons.names())
            raise InvalidPosition(reasons)
        return position

    def to_fen(self) -> str:
        """Serialize the position into FEN.

        The castling field lists effective rights only (flag set, king and
        rook on their home squares).
        """
        rows: List[str] = []
        for start in range(0, 64, 8):
            run = 0
            row: List[str] = []
            for ch in self.squares[start : start + 8]:
                if ch == " ":
                    run += 1
                    continue
                if run:
                    row.append(str(run))
                    run = 0
                row.append(ch)
            if run:
                row.append(str(run))
            rows.append("".join(row))
        stm = "w" if self.white else "b"
        castling = self.castling_rights() or "-"
        ep = optional_square_name(self.detail.enpassant_target)
        return f"{'/'.join(rows)} {stm} {castling} {ep} {self.half_move_clock} {self.full_move_count}"

    def castling_rights(self) -> str:
        """Effective castling rights as a ``KQkq`` subset string."""
        wk, wq, bk, bq = _effective_castling(self.squares, self.detail)
        return "".join(ch for ch, ok in (("K", wk), ("Q", wq), ("k", bk), ("q", bq)) if ok)

    def copy(self) -> "Position":
        return Position(
            squares=list(self.squares),
            white=self.white,
            detail=self.detail.copy(),
            half_move_clock=self.half_move_clock,
            full_move_count=self.full_move_count,
            history=list(self.history),
            detail_stack=list(self.detail_stack),
        )

    def validate(self) -> IllegalReason:
        """Return every reason this position is illegal (``NONE`` if legal)."""
        reasons = IllegalReason.NONE
        wkings = bkings = wpawns = bpawns = wpieces = bpieces = 0
        opposition_king: Optional[int] = None
        for sq, p in enumerate(self.squares):
            if p in "Pp" and (sq < 8 or sq >= 56):
                reasons |= IllegalReason.PAWN_POSITION
            if p == "P":
                wpawns += 1
            elif p == "p":
                bpawns += 1
            elif p.isupper():
                wpieces += 1
                if p == "K":
                    wkings += 1
                    if not self.white:
                        opposition_king = sq
            elif p.islower():
                bpieces += 1
                if p == "k":
                    bkings += 1
                    if self.white:
                        opposition_king = sq
        if wkings != 1 or bkings != 1:
            reasons |= IllegalReason.NOT_ONE_KING_EACH
        if opposition_king is not None and self.attacked_square(opposition_king, self.white):
            reasons |= IllegalReason.CAN_TAKE_KING
        if wpieces + wpawns > 16:
            reasons |= IllegalReason.WHITE_TOO_MANY_PIECES
        if bpieces + bpawns > 16:
            reasons |= IllegalReason.BLACK_TOO_MANY_PIECES
        if wpawns > 8:
            reasons |= IllegalReason.WHITE_TOO_MANY_PAWNS
        if bpawns > 8:
            reasons |= IllegalReason.BLACK_TOO_MANY_PAWNS
        return reasons

    # --- Pseudo-legal generation ---
    def gen_pseudo_legal(self) -> List[Move]:
        """Return all moves for the side to move, ignoring own-king safety.

        Moves come out in a8..h1 source-square order; promotions expand in
        the order Q, N, B, R.
        """
        moves: List[Move] = []
        squares = self.squares
        white = self.white
        for sq in range(64):
            piece = squares[sq]
            if piece == " " or piece.isupper() != white:
                continue
            kind = piece.upper()
            if kind == "P":
                self._pawn_moves(moves, sq)
            elif kind == "N":
                self._short_moves(moves, sq, KNIGHT_MOVES[sq], Special.NONE)
            elif kind == "B":
                self._long_moves(moves, sq, BISHOP_RAYS[sq])
            elif kind == "R":
                self._long_moves(moves, sq, ROOK_RAYS[sq])
            elif kind == "Q":
                self._long_moves(moves, sq, QUEEN_RAYS[sq])
            else:
                self._king_moves(moves, sq)
        return moves

    def _is_enemy(self, piece: str) -> bool:
        return piece.islower() if self.white else piece.isupper()

    def _long_moves(self, moves: List[Move], sq: int, rays: Tuple[Tuple[int, ...], ...]) -> None:
        squares = self.squares
        for ray in rays:
            for dst in ray:
                target = squares[dst]
                if target == " ":
                    moves.append(Move(sq, dst))
                    continue
                if self._is_enemy(target):
                    moves.append(Move(sq, dst, Special.NONE, target))
                break

    def _short_moves(
        self, moves: List[Move], sq: int, targets: Iterable[int], special: Special
    ) -> None:
        squares = self.squares
        for dst in targets:
            target = squares[dst]
            if target == " ":
                moves.append(Move(sq, dst, special))
            elif self._is_enemy(target):
                moves.append(Move(sq, dst, special, target))

    def _king_moves(self, moves: List[Move], sq: int) -> None:
        self._short_moves(moves, sq, KING_MOVES[sq], Special.KING_MOVE)
        squares = self.squares
        d = self.detail
        if self.white and sq == E1 and squares[E1] == "K":
            if (
                d.wking
                and squares[H1] == "R"
                and squares[F1] == " "
                and squares[G1] == " "
                and not self.attacked_square(E1, False)
                and not self.attacked_square(F1, False)
                and not self.attacked_square(G1, False)
            ):
                moves.append(Move(E1, G1, Special.WK_CASTLE))
            if (
                d.wqueen
                and squares[A1] == "R"
                and squares[B1] == " "
                and squares[C1] == " "
                and squares[D1] == " "
                and not self.attacked_square(E1, False)
                and not self.attacked_square(D1, False)
                and not self.attacked_square(C1, False)
            ):
                moves.append(Move(E1, C1, Special.WQ_CASTLE))
        elif not self.white and sq == E8 and squares[E8] == "k":
            if (
                d.bking
                and squares[H8] == "r"
                and squares[F8] == " "
                and squares[G8] == " "
                and not self.attacked_square(E8, True)
                and not self.attacked_square(F8, True)
                and not self.attacked_square(G8, True)
            ):
                moves.append(Move(E8, G8, Special.BK_CASTLE))
            if (
                d.bqueen
                and squares[A8] == "r"
                and squares[B8] == " "
                and squares[C8] == " "
                and squares[D8] == " "
                and not self.attacked_square(E8, True)
                and not self.attacked_square(D8, True)
                and not self.attacked_square(C8, True)
            ):
                moves.append(Move(E8, C8, Special.BQ_CASTLE))

    def _pawn_moves(self, moves: List[Move], sq: int) -> None:
        squares = self.squares
        if self.white:
            captures, advances = PAWN_WHITE_CAPTURES[sq], PAWN_WHITE_ADVANCES[sq]
            promotion = rank_index(sq) == 6
            ep_special, double_special, enemy_pawn = (
                Special.WEN_PASSANT,
                Special.WPAWN_2SQUARES,
                "p",
            )
        else:
            captures, advances = PAWN_BLACK_CAPTURES[sq], PAWN_BLACK_ADVANCES[sq]
            promotion = rank_index(sq) == 1
            ep_special, double_special, enemy_pawn = (
                Special.BEN_PASSANT,
                Special.BPAWN_2SQUARES,
                "P",
            )

        ep = self.detail.enpassant_target
        for dst in captures:
            if dst == ep:
                moves.append(Move(sq, dst, ep_special, enemy_pawn))
                continue
            target = squares[dst]
            if not self._is_enemy(target):
                continue
            if promotion:
                for special in PROMOTION_ORDER:
                    moves.append(Move(sq, dst, special, target))
            else:
                moves.append(Move(sq, dst, Special.NONE, target))

        for i, dst in enumerate(advances):
            if squares[dst] != " ":
                break
            if promotion:
                for special in PROMOTION_ORDER:
                    moves.append(Move(sq, dst, special))
            else:
                moves.append(Move(sq, dst, Special.NONE if i == 0 else double_special))

    # --- Make / unmake ---
    def push(self, m: Move) -> None:
        """Apply ``m`` in place; ``pop(m)`` restores the exact prior state."""
        self.detail_stack.append(self.detail)
        d = self.detail.copy()
        self.detail = d

        # Only the destination matters: castling also re-checks that king and
        # rook stand on their home squares, and any return there clears the right.
        dst = m.dst
        if dst == A8:
            d.bqueen = False
        elif dst == E8:
            d.bqueen = False
            d.bking = False
        elif dst == H8:
            d.bking = False
        elif dst == A1:
            d.wqueen = False
        elif dst == E1:
            d.wqueen = False
            d.wking = False
        elif dst == H1:
            d.wking = False
        d.enpassant_target = None

        squares = self.squares
        src = m.src
        special = m.special
        if special == Special.NONE:
            squares[dst] = squares[src]
            squares[src] = " "
        elif special == Special.KING_MOVE:
            squares[dst] = squares[src]
            squares[src] = " "
            if self.white:
                d.wking_square = dst
            else:
                d.bking_square = dst
        elif special.is_promotion:
            letter = special.promotion_letter
            squares[src] = " "
            squares[dst] = letter if self.white else letter.lower()
        elif special == Special.WEN_PASSANT:
            squares[src] = " "
            squares[dst] = "P"
            squares[south(dst)] = " "
        elif special == Special.BEN_PASSANT:
            squares[src] = " "
            squares[dst] = "p"
            squares[north(dst)] = " "
        elif special == Special.WPAWN_2SQUARES:
            squares[src] = " "
            squares[dst] = "P"
            d.enpassant_target = south(dst)
        elif special == Special.BPAWN_2SQUARES:
            squares[src] = " "
            squares[dst] = "p"
            d.enpassant_target = north(dst)
        elif special == Special.WK_CASTLE:
            squares[E1], squares[F1], squares[G1], squares[H1] = " ", "R", "K", " "
            d.wking_square = G1
        elif special == Special.WQ_CASTLE:
            squares[E1], squares[D1], squares[C1], squares[A1] = " ", "R", "K", " "
            d.wking_square = C1
        elif special == Special.BK_CASTLE:
            squares[E8], squares[F8], squares[G8], squares[H8] = " ", "r", "k", " "
            d.bking_square = G8
        elif special == Special.BQ_CASTLE:
            squares[E8], squares[D8], squares[C8], squares[A8] = " ", "r", "k", " "
            d.bking_square = C8

        self.white = not self.white

    def pop(self, m: Move) -> None:
        """Undo ``m``, which must be the most recently pushed move.

        Raises:
            IndexError: If nothing has been pushed.
        """
        self.detail = self.detail_stack.pop()
        self.white = not self.white

        squares = self.squares
        src, dst = m.src, m.dst
        special = m.special
        if special in _DISPLACEMENTS:
            squares[src] = squares[dst]
            squares[dst] = m.capture
        elif special.is_promotion:
            squares[src] = "P" if self.white else "p"
            squares[dst] = m.capture
        elif special == Special.WEN_PASSANT:
            squares[src] = "P"
            squares[dst] = " "
            squares[south(dst)] = "p"
        elif special == Special.BEN_PASSANT:
            squares[src] = "p"
            squares[dst] = " "
            squares[north(dst)] = "P"
        elif special == Special.WK_CASTLE:
            squares[E1], squares[F1], squares[G1], squares[H1] = "K", " ", " ", "R"
        elif special == Special.WQ_CASTLE:
            squares[E1], squares[D1], squares[C1], squares[A1] = "K", " ", " ", "R"
        elif special == Special.BK_CASTLE:
            squares[E8], squares[F8], squares[G8], squares[H8] = "k", " ", " ", "r"
        elif special == Special.BQ_CASTLE:
            squares[E8], squares[D8], squares[C8], squares[A8] = "k", " ", " ", "r"

    def play(self, m: Move) -> None:
        """Push ``m`` and record it in the game history and move counters.

        The history and counters are not reverted by ``pop``.
        """
        self.history.append(m)
        if not self.white:
            self.full_move_count += 1
        if self.squares[m.src] in ("P", "p") or m.is_capture:
            self.half_move_clock = 0
        else:
            self.half_move_clock += 1
        self.push(m)

    def play_san(self, text: str) -> Move:
        m = self.parse_san(text)
        self.play(m)
        return m

    def play_uci(self, text: str) -> Move:
        m = self.parse_uci(text)
        self.play(m)
        return m

    # --- Attacks ---
    def attacked_square(self, sq: int, enemy_is_white: bool) -> bool:
        """Return True if ``sq`` is attacked by the given side."""
        squares = self.squares
        rays = ATTACKS_BY_WHITE[sq] if enemy_is_white else ATTACKS_BY_BLACK[sq]
        for ray in rays:
            for dst, mask in ray:
                piece = squares[dst]
                if piece == " ":
                    continue
                if piece.isupper() == enemy_is_white and TO_MASK[piece] & mask:
                    return True
                break
        knight = "N" if enemy_is_white else "n"
        for dst in KNIGHT_MOVES[sq]:
            if squares[dst] == knight:
                return True
        return False

    def attacked_piece(self, sq: int) -> bool:
        """Return True if the piece on ``sq`` is attacked by the other colour."""
        return self.attacked_square(sq, self.squares[sq].islower())

    def in_check(self) -> bool:
        """Return True if the side to move is in check."""
        d = self.detail
        if self.white:
            return self.attacked_square(d.wking_square, False)
        return self.attacked_square(d.bking_square, True)

    # --- Legality and terminal states ---
    def evaluate(self) -> bool:
        """Return True unless the side that just moved left its king attacked."""
        d = self.detail
        enemy_king = d.bking_square if self.white else d.wking_square
        return not self.attacked_square(enemy_king, self.white)

    def is_legal(self, m: Optional[Move] = None) -> bool:
        """Legality of the current position, or of ``m`` played from it."""
        if m is None:
            return self.evaluate()
        self.push(m)
        okay = self.evaluate()
        self.pop(m)
        return okay

    def select_legal(self, candidates: Iterable[Move]) -> List[Move]:
        return [m for m in candidates if self.is_legal(m)]

    def gen_legal(self) -> List[Move]:
        return self.select_legal(self.gen_pseudo_legal())

    def evaluate_terminal(self) -> Tuple[bool, Terminal]:
        """Return ``(okay, terminal)`` for the side to move.

        ``okay`` is False for an illegal position (the side not to move is in
        check), in which case the terminal score is ``NOT_TERMINAL``.
        """
        if not self.evaluate():
            return False, Terminal.NOT_TERMINAL
        if any(self.is_legal(m) for m in self.gen_pseudo_legal()):
            return True, Terminal.NOT_TERMINAL
        if self.in_check():
            return True, Terminal.WCHECKMATE if self.white else Terminal.BCHECKMATE
        return True, Terminal.WSTALEMATE if self.white else Terminal.BSTALEMATE

    def terminal_score(self) -> Terminal:
        return self.evaluate_terminal()[1]

    def annotate(self, m: Move) -> Optional[AnnotatedMove]:
        """Play ``m`` tentatively and report check/mate/stalemate after it.

        Returns ``None`` when ``m`` leaves the mover's king attacked.
        """
        self.push(m)
        okay, terminal = self.evaluate_terminal()
        check = okay and self.in_check()
        self.pop(m)
        if not okay:
            return None
        mate = terminal.is_checkmate
        return AnnotatedMove(m, check and not mate, mate, terminal.is_stalemate)

    def gen_legal_annotated(self) -> List[AnnotatedMove]:
        out: List[AnnotatedMove] = []
        for m in self.gen_pseudo_legal():
            annotated = self.annotate(m)
            if annotated is not None:
                out.append(annotated)
        return out

    # --- Draws ---
    def is_insufficient_material(self, claimant_is_white: bool) -> DrawType:
        """Classify the material on the board for a draw by insufficient material.

        K v K, K v K+N and K v K+B are automatic draws. Otherwise the side
        asking may claim when the opponent has a lone king.
        """
        piece_count = 0
        bishop_or_knight = False
        lone_wking = lone_bking = True
        for piece in self.squares:
            if piece in (" ", "K", "k"):
                continue
            if piece in "BbNn":
                bishop_or_knight = True
            piece_count += 1
            if piece.isupper():
                lone_wking = False
            else:
                lone_bking = False
            if not lone_wking and not lone_bking:
                break
        if piece_count == 0 or (piece_count == 1 and bishop_or_knight):
            return DrawType.INSUFFICIENT_AUTO
        if (claimant_is_white and lone_bking) or (not claimant_is_white and lone_wking):
            return DrawType.INSUFFICIENT_CLAIM
        return DrawType.NOT_DRAW

    def is_draw(self, claimant_is_white: bool) -> DrawType:
        """Return the draw that applies, by priority, or ``NOT_DRAW``."""
        material = self.is_insufficient_material(claimant_is_white)
        if material == DrawType.INSUFFICIENT_AUTO:
            return material
        if self.half_move_clock >= 100:
            return DrawType.FIFTY_MOVE
        if self.repetition_count() >= 3:
            return DrawType.REPETITION
        return material

    def repetition_count(self) -> int:
        """Return how often the current position has occurred (at least 1).

        Positions compare equal on side to move, board and *effective*
        castling and en-passant rights. The walk runs on a scratch copy and
        stops at the first pawn move or capture.
        """
        current = self.detail
        board = self.squares
        key = (_effective_ep(board, current.enpassant_target), _effective_castling(board, current))
        scratch = Position(
            squares=list(board),
            white=self.white,
            detail=current,
            detail_stack=list(self.detail_stack),
        )
        nbr_half_moves = (self.full_move_count - 1) * 2 + (0 if self.white else 1)
        nbr_half_moves = min(nbr_half_moves, len(self.history), len(self.detail_stack))

        matches = 0
        for m in reversed(self.history[len(self.history) - nbr_half_moves :]):
            scratch.pop(m)
            d = scratch.detail
            if (
                scratch.white == self.white
                and d.wking_square == current.wking_square
                and d.bking_square == current.bking_square
                and scratch.squares == board
            ):
                if d == current or key == (
                    _effective_ep(scratch.squares, d.enpassant_target),
                    _effective_castling(scratch.squares, d),
                ):
                    matches += 1
            # Pawn moves and captures are irreversible
            if scratch.squares[m.src] in ("P", "p") or m.is_capture:
                break
        return matches + 1

    # --- Notation ---
    def parse_uci(self, text: str) -> Move:
        return notation.parse_uci(self, text)

    def format_uci(self, m: Move) -> str:
        return notation.format_uci(m)

    def parse_san(self, text: str) -> Move:
        return notation.parse_san(self, text)

    def format_san(self, m: Move) -> str:
        return notation.format_san(self, m)


def _effective_ep(squares: List[str], ep: Optional[int]) -> Optional[int]:
    """Return ``ep`` only if an enemy pawn stands ready to capture on it."""
    if ep is None:
        return None
    f = file_index(ep)
    if rank_char(ep) == "6":
        # Black just double-pushed; white pawns sit diagonally below the target
        behind, pawn = south(ep), "P"
    else:
        behind, pawn = north(ep), "p"
    if f > 0 and squares[behind - 1] == pawn:
        return ep
    if f < 7 and squares[behind + 1] == pawn:
        return ep
    return None


def _effective_castling(squares: List[str], d: Detail) -> Tuple[bool, bool, bool, bool]:
    wking_home = squares[E1] == "K"
    bking_home = squares[E8] == "k"
    return (
        d.wking and wking_home and squares[H1] == "R",
        d.wqueen and wking_home and squares[A1] == "R",
        d.bking and bking_home and squares[H8] == "r",
        d.bqueen and bking_home and squares[A8] == "r",
    )
