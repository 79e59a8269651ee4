"""Hanabi rules engine, common-knowledge tracker and game log."""

from .errors import (
    ConcurrentModification,
    HanabiError,
    InvalidAction,
    InvalidSetup,
    NotFound,
)
from .models import (
    Card,
    Player,
    GameState,
    GameStatus,
    SlotKnowledge,
    BeliefState,
    DiscardAction,
    PlayAction,
    HintColorAction,
    HintRankAction,
    Action,
    COLORS,
    RANKS,
    CARD_COUNTS,
    hand_slots,
    parse_action,
)
from .game import (
    create_deck,
    deal_initial_state,
    step,
    get_status,
    legal_actions,
)
from .knowledge import (
    total_ignorance,
    step_belief,
)
from .replay import (
    Frame,
    replay,
    current_frame,
    hints_touching,
)
from .store import (
    GameStore,
    InMemoryGameStore,
    FileGameStore,
)
from .visibility import (
    view_for_player,
    assert_no_leaks,
)

__all__ = [
    # Errors
    "HanabiError",
    "InvalidSetup",
    "InvalidAction",
    "NotFound",
    "ConcurrentModification",
    # Models
    "Card",
    "Player",
    "GameState",
    "GameStatus",
    "SlotKnowledge",
    "BeliefState",
    "DiscardAction",
    "PlayAction",
    "HintColorAction",
    "HintRankAction",
    "Action",
    "COLORS",
    "RANKS",
    "CARD_COUNTS",
    "hand_slots",
    "parse_action",
    # Game
    "create_deck",
    "deal_initial_state",
    "step",
    "get_status",
    "legal_actions",
    # Knowledge
    "total_ignorance",
    "step_belief",
    # Replay
    "Frame",
    "replay",
    "current_frame",
    "hints_touching",
    # Store
    "GameStore",
    "InMemoryGameStore",
    "FileGameStore",
    # Visibility
    "view_for_player",
    "assert_no_leaks",
]
