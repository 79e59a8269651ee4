"""Request/response models for the table API."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from src.hanabi.models import GameState
from src.hanabi.store import StoredAction


class CreateGameRequest(BaseModel):
    players: list[str]
    seed: int | None = None


class CreateGameResponse(BaseModel):
    game_id: str


class GameResponse(BaseModel):
    """Initial deal plus the ordered log; clients replay it themselves."""

    game_id: str
    initial_state: GameState
    actions: list[StoredAction]


class ActionRequest(BaseModel):
    # Validated by the engine so malformed actions get the same 409 as illegal ones
    action: dict[str, Any]


class ActionResponse(BaseModel):
    action_id: str


class NoteRequest(BaseModel):
    viewer: str
    frame: int = Field(ge=0)
    text: str
