"""Append-only game log store.

A game is its initial deal plus an ordered list of actions. The current state
is never stored: every append replays the full log and only persists the new
action if the rules engine accepts it.
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field

from .errors import ConcurrentModification, InvalidAction, NotFound
from .game import deal_initial_state
from .models import Action, GameState, parse_action
from .replay import Frame, advance, replay

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


class StoredAction(BaseModel):
    """One accepted entry of the log."""

    action_id: str
    action: Action
    created_at: datetime = Field(default_factory=_now)


class GameRecord(BaseModel):
    """Everything needed to rebuild a game."""

    game_id: str
    created_at: datetime = Field(default_factory=_now)
    initial_state: GameState
    actions: list[StoredAction] = Field(default_factory=list)

    @property
    def action_log(self) -> list[Action]:
        return [a.action for a in self.actions]

    def replay(self) -> list[Frame]:
        return replay(self.initial_state, self.action_log)


class GameStore:
    """
    Store contract shared by all backends.

    Subclasses only provide raw load/save of records and notes; validation,
    id assignment and the undo identity check live here. Append and undo run
    under one lock so the read-validate-write sequence cannot interleave.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()

    # Backend hooks
    def _load_game(self, game_id: str) -> GameRecord | None:
        raise NotImplementedError

    def _save_game(self, record: GameRecord) -> None:
        raise NotImplementedError

    def _load_notes(self, game_id: str) -> dict[str, dict[int, str]]:
        raise NotImplementedError

    def _save_notes(self, game_id: str, notes: dict[str, dict[int, str]]) -> None:
        raise NotImplementedError

    def list_games(self) -> list[str]:
        raise NotImplementedError

    # Contract
    def create_game(self, player_names: Sequence[str], seed: int | None = None) -> str:
        """Deal a new game and persist its initial state. Raises InvalidSetup."""
        initial_state = deal_initial_state(player_names, seed=seed)
        record = GameRecord(game_id=_new_id(), initial_state=initial_state)
        with self._lock:
            self._save_game(record)
        logger.info("Created game %s for %s", record.game_id, ", ".join(player_names))
        return record.game_id

    def get_game(self, game_id: str) -> GameRecord:
        record = self._load_game(game_id)
        if record is None:
            raise NotFound(f"Game not found: {game_id}")
        return record

    def replay(self, game_id: str) -> list[Frame]:
        return self.get_game(game_id).replay()

    def append_action(self, game_id: str, action: Action | dict) -> str:
        """
        Validate an action against the replayed log and append it.

        Returns:
            The new action id

        Raises:
            NotFound: unknown game
            InvalidAction: the action is illegal in the current state
        """
        with self._lock:
            record = self.get_game(game_id)
            current = record.replay()[-1]
            try:
                action = parse_action(action)
                advance(current, action)
            except InvalidAction as exc:
                logger.warning("Rejected action for game %s: %s (%s)", game_id, action, exc)
                raise

            stored = StoredAction(action_id=_new_id(), action=action)
            record.actions.append(stored)
            self._save_game(record)

        logger.info("Game %s: %s by %s", game_id, stored.action.action_type, current.state.players[0].name)
        return stored.action_id

    def remove_last_action(self, game_id: str, action_id: str) -> None:
        """
        Undo the most recent action, only if it is still ``action_id``.

        Raises:
            NotFound: unknown game or empty log
            ConcurrentModification: another action has been appended since
        """
        with self._lock:
            record = self.get_game(game_id)
            if not record.actions:
                raise NotFound(f"No actions to undo in game {game_id}")
            last = record.actions[-1]
            if last.action_id != action_id:
                logger.warning(
                    "Refused undo of %s in game %s: last action is %s",
                    action_id, game_id, last.action_id,
                )
                raise ConcurrentModification(f"Last action does not match: {action_id}")
            record.actions.pop()
            self._save_game(record)
        logger.info("Game %s: undid action %s", game_id, action_id)

    def get_notes(self, game_id: str, viewer: str) -> dict[int, str]:
        """A viewer's private notes, keyed by frame index."""
        with self._lock:
            self.get_game(game_id)
            return dict(self._load_notes(game_id).get(viewer, {}))

    def set_note(self, game_id: str, viewer: str, frame: int, text: str) -> None:
        """Insert or replace the note for (viewer, frame)."""
        if frame < 0:
            raise ValueError(f"Frame must be non-negative, got {frame}")
        with self._lock:
            self.get_game(game_id)
            notes = self._load_notes(game_id)
            notes.setdefault(viewer, {})[frame] = text
            self._save_notes(game_id, notes)


class InMemoryGameStore(GameStore):
    """Process-local store, used for tests and single-process servers."""

    def __init__(self) -> None:
        super().__init__()
        self._games: dict[str, GameRecord] = {}
        self._notes: dict[str, dict[str, dict[int, str]]] = {}

    def _load_game(self, game_id: str) -> GameRecord | None:
        record = self._games.get(game_id)
        return record.model_copy(deep=True) if record else None

    def _save_game(self, record: GameRecord) -> None:
        self._games[record.game_id] = record.model_copy(deep=True)

    def _load_notes(self, game_id: str) -> dict[str, dict[int, str]]:
        return {viewer: dict(notes) for viewer, notes in self._notes.get(game_id, {}).items()}

    def _save_notes(self, game_id: str, notes: dict[str, dict[int, str]]) -> None:
        self._notes[game_id] = {viewer: dict(n) for viewer, n in notes.items()}

    def list_games(self) -> list[str]:
        return sorted(self._games)


class FileGameStore(GameStore):
    """One JSON document per game (and per game's notes) under a data directory."""

    def __init__(self, data_dir: str | Path) -> None:
        super().__init__()
        self.data_dir = Path(data_dir)

    def ensure_storage(self) -> None:
        (self.data_dir / "games").mkdir(parents=True, exist_ok=True)
        (self.data_dir / "notes").mkdir(parents=True, exist_ok=True)

    def _game_path(self, game_id: str) -> Path:
        # Ids are generated here; anything else cannot name a file
        if not game_id.isalnum():
            raise NotFound(f"Game not found: {game_id}")
        return self.data_dir / "games" / f"{game_id}.json"

    def _notes_path(self, game_id: str) -> Path:
        return self.data_dir / "notes" / f"{game_id}.json"

    def _load_game(self, game_id: str) -> GameRecord | None:
        path = self._game_path(game_id)
        if not path.exists():
            return None
        with open(path, "r") as f:
            return GameRecord.model_validate(json.load(f))

    def _save_game(self, record: GameRecord) -> None:
        path = self._game_path(record.game_id)
        self.ensure_storage()
        tmp = path.with_suffix(".tmp")
        with open(tmp, "w") as f:
            json.dump(record.model_dump(mode="json"), f, indent=2)
        tmp.replace(path)

    def _load_notes(self, game_id: str) -> dict[str, dict[int, str]]:
        path = self._notes_path(game_id)
        if not path.exists():
            return {}
        with open(path, "r") as f:
            raw = json.load(f)
        # JSON object keys are strings
        return {viewer: {int(frame): text for frame, text in notes.items()} for viewer, notes in raw.items()}

    def _save_notes(self, game_id: str, notes: dict[str, dict[int, str]]) -> None:
        path = self._notes_path(game_id)
        self.ensure_storage()
        tmp = path.with_suffix(".tmp")
        with open(tmp, "w") as f:
            json.dump(notes, f, indent=2)
        tmp.replace(path)

    def list_games(self) -> list[str]:
        return sorted(p.stem for p in (self.data_dir / "games").glob("*.json"))
