from __future__ import annotations

from fastapi.testclient import TestClient

from src.protocol.http.app import create_app


START_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"


def _client() -> TestClient:
    return TestClient(create_app())


def _new_game(client: TestClient, fen: str = "") -> str:
    r = client.post("/api/games", json={"fen": fen} if fen else None)
    assert r.status_code == 200
    return r.json()["game_id"]


def test_create_game_and_get_state() -> None:
    client = _client()
    r = client.post("/api/games")
    assert r.status_code == 200
    body = r.json()
    assert "game_id" in body and isinstance(body["game_id"], str) and body["game_id"]
    game_id = body["game_id"]
    assert body["fen"] == START_FEN

    r2 = client.get(f"/api/games/{game_id}/state")
    assert r2.status_code == 200
    state = r2.json()
    assert state["game_id"] == game_id
    assert state["fen"] == START_FEN
    assert state["side_to_move"] == "white"
    assert len(state["legal_moves"]) == 20
    assert "g1f3" in state["legal_moves"]
    assert "Nf3" in state["legal_moves_san"]
    assert state["terminal"] == "not_terminal"
    assert state["draw"] == "not_draw"
    assert state["repetition_count"] == 1
    assert state["last_move"] is None


def test_create_game_from_fen() -> None:
    client = _client()
    fen = "4k3/P7/8/8/8/8/8/4K3 w - - 0 1"
    r = client.post("/api/games", json={"fen": fen})
    assert r.status_code == 200
    assert r.json()["fen"] == fen


def test_create_game_with_illegal_position() -> None:
    client = _client()
    r = client.post("/api/games", json={"fen": "8/8/8/8/8/8/8/8 w - - 0 1"})
    assert r.status_code == 400
    err = r.json()["error"]
    assert err["code"] == "invalid_position"
    assert err["reasons"] == ["not_one_king_each"]


def test_get_state_unknown_id_404() -> None:
    client = _client()
    r = client.get("/api/games/does-not-exist/state")
    assert r.status_code == 404
    body = r.json()
    assert "error" in body
    assert body["error"]["code"] == "not_found"


def test_set_position_validation_and_success() -> None:
    client = _client()
    game_id = _new_game(client)

    r_bad = client.post(f"/api/games/{game_id}/position", json={"fen": ""})
    assert r_bad.status_code == 400
    assert r_bad.json()["error"]["code"] == "invalid_fen"

    fen = "r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1"
    r_ok = client.post(f"/api/games/{game_id}/position", json={"fen": fen})
    assert r_ok.status_code == 200
    state = r_ok.json()
    assert state["fen"] == fen
    assert "O-O" in state["legal_moves_san"]
    assert state["move_history"] == []


def test_move_in_san_and_uci() -> None:
    client = _client()
    game_id = _new_game(client)

    r = client.post(f"/api/games/{game_id}/move", json={"move": "e4"})
    assert r.status_code == 200
    r = client.post(f"/api/games/{game_id}/move", json={"move": "e7e5", "notation": "uci"})
    assert r.status_code == 200
    r = client.post(f"/api/games/{game_id}/move", json={"move": "Nf3", "notation": "san"})
    assert r.status_code == 200
    state = r.json()
    assert state["side_to_move"] == "black"
    assert state["move_history"] == ["e2e4", "e7e5", "g1f3"]
    assert state["move_history_san"] == ["e4", "e5", "Nf3"]
    assert state["last_move"] == "g1f3"
    assert state["fen"] == "rnbqkbnr/pppp1ppp/8/4p3/4P3/5N2/PPPP1PPP/RNBQKB1R b KQkq - 1 2"


def test_illegal_move_rejected() -> None:
    client = _client()
    game_id = _new_game(client)
    r = client.post(f"/api/games/{game_id}/move", json={"move": "e2e5", "notation": "uci"})
    assert r.status_code == 400
    err = r.json()["error"]
    assert err["code"] == "invalid_move"
    assert err["notation"] == "uci"

    r = client.post(f"/api/games/{game_id}/move", json={"move": "Nf6", "notation": "san"})
    assert r.status_code == 400
    assert r.json()["error"]["notation"] == "san"

    r = client.post(f"/api/games/{game_id}/move", json={"move": "e4", "notation": "lan"})
    assert r.status_code == 422


def test_checkmate_reported() -> None:
    client = _client()
    game_id = _new_game(client)
    for move in ("f3", "e5", "g4", "Qh4"):
        r = client.post(f"/api/games/{game_id}/move", json={"move": move})
        assert r.status_code == 200
    state = r.json()
    assert state["checkmate"]
    assert state["in_check"]
    assert state["terminal"] == "wcheckmate"
    assert state["legal_moves"] == []
    assert state["move_history_san"][-1] == "Qh4#"


def test_draw_endpoint() -> None:
    client = _client()
    game_id = _new_game(client, "8/8/4k3/8/8/4K3/8/6R1 w - - 0 1")
    r = client.get(f"/api/games/{game_id}/draw", params={"claimant": "white"})
    assert r.status_code == 200
    assert r.json() == {"draw": True, "type": "insufficient_claim"}
    r = client.get(f"/api/games/{game_id}/draw", params={"claimant": "black"})
    assert r.json() == {"draw": False, "type": "not_draw"}
    r = client.get(f"/api/games/{game_id}/draw", params={"claimant": "nobody"})
    assert r.status_code == 422


def test_repetition_reported_in_state() -> None:
    client = _client()
    game_id = _new_game(client)
    for _ in range(2):
        for move in ("Nf3", "Nf6", "Ng1", "Ng8"):
            r = client.post(f"/api/games/{game_id}/move", json={"move": move})
    state = r.json()
    assert state["repetition_count"] == 3
    assert state["draw"] == "repetition"


def test_delete_game() -> None:
    client = _client()
    game_id = _new_game(client)
    r = client.delete(f"/api/games/{game_id}")
    assert r.status_code == 204
    assert client.get(f"/api/games/{game_id}/state").status_code == 404
    assert client.delete(f"/api/games/{game_id}").status_code == 404


def test_perft_endpoint() -> None:
    client = _client()
    r = client.post("/api/perft", json={"fen": START_FEN, "depth": 2})
    assert r.status_code == 200
    assert r.json() == {"nodes": 400}
    r = client.post("/api/perft", json={"depth": 0})
    assert r.json() == {"nodes": 1}
    r = client.post("/api/perft", json={"fen": "nonsense", "depth": 1})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "invalid_fen"


def test_create_game_with_malformed_fen_is_client_error() -> None:
    client = _client()
    for fen in ("4k3/8/8/8/8/8/8/4K2² w - - 0 1", "4k3/8/8/3P4/8/8/8/4K3 w - e6 0 1"):
        r = client.post("/api/games", json={"fen": fen})
        assert r.status_code == 400
        assert r.json()["error"]["code"] == "invalid_fen"
