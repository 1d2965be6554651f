from __future__ import annotations

import pytest

from src.rules.errors import InvalidFen, InvalidMove
from src.rules.game import Game
from src.rules.position import STARTPOS_FEN, DrawType


def test_new_game_state() -> None:
    g = Game.new()
    assert g.to_fen() == STARTPOS_FEN
    assert g.start_fen == STARTPOS_FEN
    assert len(g.legal_moves()) == 20
    assert not g.in_check()
    assert not g.checkmate()
    assert not g.stalemate()
    assert g.draw() == DrawType.NOT_DRAW
    assert g.move_history_uci() == []


def test_apply_move_records_san_and_uci() -> None:
    g = Game.new()
    g.apply_move("e2e4")
    g.apply_move("e5", notation="san")
    g.apply_move("g1f3", notation="uci")
    g.apply_move("Nc6")
    assert g.move_history_uci() == ["e2e4", "e7e5", "g1f3", "b8c6"]
    assert g.move_history_san() == ["e4", "e5", "Nf3", "Nc6"]


def test_apply_move_records_check_suffix() -> None:
    g = Game.new()
    for text in ("e4", "e5", "Qh5", "Nc6", "Bc4", "Nf6", "Qxf7"):
        g.apply_move(text)
    assert g.move_history_san()[-1] == "Qxf7#"
    assert g.checkmate()
    assert g.in_check()


def test_notation_is_enforced() -> None:
    g = Game.new()
    with pytest.raises(InvalidMove):
        g.apply_move("Nf3", notation="uci")
    with pytest.raises(InvalidMove):
        g.apply_move("e2e5", notation="san")
    with pytest.raises(ValueError):
        g.apply_move("e4", notation="lan")
    assert g.move_history_uci() == []


def test_undo_restores_counters() -> None:
    g = Game.new()
    for text in ("Nf3", "Nf6", "Ng1"):
        g.apply_move(text)
    fen_before = g.to_fen()
    g.apply_move("Ng8")
    undone = g.undo_move()
    assert undone.to_uci() == "f6g8"
    assert g.to_fen() == fen_before
    assert g.move_history_san() == ["Nf3", "Nf6", "Ng1"]
    assert g.position.half_move_clock == 3


def test_undo_without_moves() -> None:
    with pytest.raises(ValueError, match="no moves"):
        Game.new().undo_move()


def test_from_fen_keeps_start_position() -> None:
    fen = "4k3/P7/8/8/8/8/8/4K3 w - - 0 1"
    g = Game.from_fen(fen)
    g.apply_move("a8=N")
    assert g.move_history_san() == ["a8=N"]
    g.undo_move()
    assert g.to_fen() == fen


def test_from_fen_rejects_bad_fen() -> None:
    with pytest.raises(InvalidFen):
        Game.from_fen("bogus")


def test_draw_claimant_defaults_to_side_to_move() -> None:
    g = Game.from_fen("8/8/4k3/8/8/4K3/8/6R1 w - - 0 1")
    assert g.draw() == DrawType.INSUFFICIENT_CLAIM
    assert g.draw(claimant_is_white=False) == DrawType.NOT_DRAW
    g.apply_move("Rg2")
    assert g.draw() == DrawType.NOT_DRAW


def test_repetition_through_game() -> None:
    g = Game.new()
    for _ in range(2):
        for text in ("Nf3", "Nf6", "Ng1", "Ng8"):
            g.apply_move(text)
    assert g.repetition_count() == 3
    assert g.draw() == DrawType.REPETITION
