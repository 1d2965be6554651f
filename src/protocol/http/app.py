from __future__ import annotations

import logging
from typing import Dict, Literal, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field

from .error import (
    exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
    rules_exception_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from ...rules.errors import InvalidFen, InvalidMove, InvalidPosition
from ...rules.game import Game
from ...rules.perft import perft as perft_nodes
from ...rules.position import STARTPOS_FEN, Position
from .session import InMemorySessionStore


logger = logging.getLogger(__name__)


class CreateGameRequest(BaseModel):
    fen: Optional[str] = Field(default=None, description="Start position (default: standard)")


class CreateGameResponse(BaseModel):
    game_id: str
    fen: str


class SetPositionRequest(BaseModel):
    fen: str = Field(..., description="FEN string")


class MoveRequest(BaseModel):
    move: str = Field(..., min_length=1, description="Move text, e.g. Nf3 or g1f3")
    notation: Literal["auto", "san", "uci"] = "auto"


class PerftRequest(BaseModel):
    fen: str = STARTPOS_FEN
    depth: int = Field(default=1, ge=0, le=6)


class DrawResponse(BaseModel):
    draw: bool
    type: str


class GameState(BaseModel):
    game_id: str
    fen: str
    side_to_move: Literal["white", "black"]
    legal_moves: list[str]
    legal_moves_san: list[str]
    in_check: bool
    checkmate: bool
    stalemate: bool
    terminal: str
    draw: str
    repetition_count: int
    last_move: Optional[str]
    move_history: list[str]
    move_history_san: list[str]


def create_app() -> FastAPI:
    app = FastAPI(title="Chess Rules API", version="0.1.0")

    logging.basicConfig(level=logging.INFO)

    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    for exc_type in (InvalidMove, InvalidFen, InvalidPosition):
        app.add_exception_handler(exc_type, rules_exception_handler)
    app.add_exception_handler(Exception, exception_handler)

    store = InMemorySessionStore()

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=CreateGameResponse)
    async def create_game(req: Optional[CreateGameRequest] = None) -> CreateGameResponse:
        fen = req.fen if req is not None else None
        game = Game.from_fen(fen) if fen else Game.new()
        game_id = store.create(game)
        logger.info("created game", extra={"game_id": game_id})
        return CreateGameResponse(game_id=game_id, fen=game.to_fen())

    @app.get("/api/games/{game_id}/state", response_model=GameState)
    async def get_state(game_id: str) -> GameState:
        return _game_state(game_id, _require_game(store, game_id))

    @app.post("/api/games/{game_id}/position", response_model=GameState)
    async def set_position(game_id: str, req: SetPositionRequest) -> GameState:
        _require_game(store, game_id)
        game = Game.from_fen(req.fen)
        store.replace(game_id, game)
        return _game_state(game_id, game)

    @app.post("/api/games/{game_id}/move", response_model=GameState)
    async def make_move(game_id: str, req: MoveRequest) -> GameState:
        game = _require_game(store, game_id)
        game.apply_move(req.move, req.notation)
        return _game_state(game_id, game)

    @app.post("/api/games/{game_id}/undo", response_model=GameState)
    async def undo(game_id: str) -> GameState:
        game = _require_game(store, game_id)
        try:
            game.undo_move()
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _game_state(game_id, game)

    @app.get("/api/games/{game_id}/draw", response_model=DrawResponse)
    async def draw(
        game_id: str,
        claimant: Optional[Literal["white", "black"]] = Query(default=None),
    ) -> DrawResponse:
        game = _require_game(store, game_id)
        claimant_is_white = None if claimant is None else claimant == "white"
        kind = game.draw(claimant_is_white)
        return DrawResponse(draw=bool(kind), type=kind.name.lower())

    @app.delete("/api/games/{game_id}", status_code=204)
    async def delete_game(game_id: str) -> None:
        if not store.delete(game_id):
            raise HTTPException(status_code=404, detail="game not found")

    @app.post("/api/perft")
    async def perft(req: PerftRequest) -> Dict[str, int]:
        position = Position.from_fen(req.fen)
        return {"nodes": perft_nodes(position, req.depth)}

    return app


def _require_game(store: InMemorySessionStore, game_id: str) -> Game:
    game = store.get(game_id)
    if game is None:
        raise HTTPException(status_code=404, detail="game not found")
    return game


def _game_state(game_id: str, game: Game) -> GameState:
    position = game.position
    legal = game.legal_moves()
    terminal = game.terminal()
    history = game.move_history_uci()
    return GameState(
        game_id=game_id,
        fen=game.to_fen(),
        side_to_move="white" if position.white else "black",
        legal_moves=[m.to_uci() for m in legal],
        legal_moves_san=[position.format_san(m) for m in legal],
        in_check=game.in_check(),
        checkmate=terminal.is_checkmate,
        stalemate=terminal.is_stalemate,
        terminal=terminal.name.lower(),
        draw=game.draw().name.lower(),
        repetition_count=game.repetition_count(),
        last_move=history[-1] if history else None,
        move_history=history,
        move_history_san=game.move_history_san(),
    )


# Default app for non-factory servers
app = create_app()
