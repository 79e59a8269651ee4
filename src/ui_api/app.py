"""FastAPI app for the Hanabi table.

Serve with ``uvicorn --factory src.ui_api.app:create_app``.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware

from src.hanabi.errors import ConcurrentModification, InvalidAction, InvalidSetup, NotFound
from src.hanabi.replay import canonical_player_order
from src.hanabi.store import GameStore
from src.hanabi.visibility import view_for_player

from .config import ServerConfig, load_config
from .models import (
    ActionRequest,
    ActionResponse,
    CreateGameRequest,
    CreateGameResponse,
    GameResponse,
    NoteRequest,
)

logger = logging.getLogger("ui_api")

load_dotenv(Path(__file__).resolve().parents[2] / ".env")


def create_app(config: ServerConfig | None = None, store: GameStore | None = None) -> FastAPI:
    """Build the API around a store (from config unless given)."""
    config = config or load_config()
    logging.basicConfig(level=config.log_level, format="%(asctime)s - %(levelname)s - %(name)s - %(message)s")
    store = store or config.build_store()
    logger.info("Serving games from %s store", type(store).__name__)

    app = FastAPI(title="Hanabi Table API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.store = store

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/games", response_model=CreateGameResponse, status_code=201)
    def create_game(req: CreateGameRequest) -> CreateGameResponse:
        try:
            game_id = store.create_game(req.players, seed=req.seed)
        except InvalidSetup as exc:
            raise HTTPException(status_code=422, detail=str(exc))
        return CreateGameResponse(game_id=game_id)

    @app.get("/games", response_model=list[str])
    def list_games() -> list[str]:
        return store.list_games()

    @app.get("/games/{game_id}", response_model=GameResponse)
    def get_game(game_id: str) -> GameResponse:
        try:
            record = store.get_game(game_id)
        except NotFound as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        return GameResponse(
            game_id=record.game_id,
            initial_state=record.initial_state,
            actions=record.actions,
        )

    @app.get("/games/{game_id}/view")
    def get_view(game_id: str, viewer: str, frame: int | None = None) -> dict[str, Any]:
        """A viewer's redacted table at ``frame`` (live when omitted)."""
        try:
            frames = store.replay(game_id)
        except NotFound as exc:
            raise HTTPException(status_code=404, detail=str(exc))

        index = len(frames) - 1 if frame is None else frame
        if not 0 <= index < len(frames):
            raise HTTPException(status_code=404, detail=f"No frame {frame} (game has {len(frames)})")
        try:
            view = view_for_player(frames[index], viewer, seating=canonical_player_order(frames))
        except ValueError as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        view["frame"] = index
        view["frame_count"] = len(frames)
        return view

    @app.post("/games/{game_id}/actions", response_model=ActionResponse)
    def append_action(game_id: str, req: ActionRequest) -> ActionResponse:
        try:
            action_id = store.append_action(game_id, req.action)
        except NotFound as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        except InvalidAction as exc:
            raise HTTPException(status_code=409, detail=str(exc))
        return ActionResponse(action_id=action_id)

    @app.delete("/games/{game_id}/actions/{action_id}", status_code=204)
    def undo_action(game_id: str, action_id: str) -> Response:
        try:
            store.remove_last_action(game_id, action_id)
        except NotFound as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        except ConcurrentModification as exc:
            raise HTTPException(status_code=409, detail=str(exc))
        return Response(status_code=204)

    @app.get("/games/{game_id}/notes")
    def get_notes(game_id: str, viewer: str) -> dict[int, str]:
        try:
            return store.get_notes(game_id, viewer)
        except NotFound as exc:
            raise HTTPException(status_code=404, detail=str(exc))

    @app.put("/games/{game_id}/notes", status_code=204)
    def set_note(game_id: str, req: NoteRequest) -> Response:
        try:
            store.set_note(game_id, req.viewer, req.frame, req.text)
        except NotFound as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        return Response(status_code=204)

    return app
