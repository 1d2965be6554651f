from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from src.protocol.http.app import create_app
from src.rules.errors import IllegalReason, InvalidMove, InvalidPosition


def test_error_envelope_for_http_exception() -> None:
    app: FastAPI = create_app()

    @app.get("/boom")
    def boom():  # type: ignore[no-redef]
        raise HTTPException(status_code=400, detail="oops")

    client = TestClient(app)
    r = client.get("/boom")
    assert r.status_code == 400
    body = r.json()
    assert "error" in body
    err = body["error"]
    assert err["code"] == "bad_request"
    assert err["message"] == "oops"
    assert err["type"] == "client_error"
    assert err["request_id"]


def test_error_envelope_for_rules_errors() -> None:
    app: FastAPI = create_app()

    @app.get("/bad-move")
    def bad_move():  # type: ignore[no-redef]
        raise InvalidMove("e2e5", "uci")

    @app.get("/bad-position")
    def bad_position():  # type: ignore[no-redef]
        raise InvalidPosition(IllegalReason.NOT_ONE_KING_EACH | IllegalReason.PAWN_POSITION)

    client = TestClient(app)
    r = client.get("/bad-move")
    assert r.status_code == 400
    err = r.json()["error"]
    assert err["code"] == "invalid_move"
    assert err["message"] == "Invalid UCI move: e2e5"
    assert err["input"] == "e2e5"
    assert err["notation"] == "uci"

    r = client.get("/bad-position")
    assert r.status_code == 400
    err = r.json()["error"]
    assert err["code"] == "invalid_position"
    assert err["reasons"] == ["pawn_position", "not_one_king_each"]


def test_error_envelope_for_unhandled_exception() -> None:
    app: FastAPI = create_app()

    @app.get("/crash")
    def crash():  # type: ignore[no-redef]
        raise RuntimeError("kaboom")

    client = TestClient(app, raise_server_exceptions=False)
    r = client.get("/crash")
    assert r.status_code == 500
    err = r.json()["error"]
    assert err["code"] == "internal_error"
    assert err["type"] == "server_error"
    assert "kaboom" not in err["message"]


def test_validation_error_envelope() -> None:
    client = TestClient(create_app())
    r = client.post("/api/perft", json={"depth": 99})
    assert r.status_code == 422
    err = r.json()["error"]
    assert err["code"] == "unprocessable_entity"
    assert any(fe["field"].endswith("depth") for fe in err["field_errors"])
