"""Visibility and view generation for Hanabi.

Core principle: A player can see ALL other players' hands but NOT their own cards.
For their own slots they only get the common knowledge derived from hints.
"""

from __future__ import annotations

from typing import Any

from .game import get_status, last_player, lost_counts, score, unseen_counts
from .replay import Frame


# Keys that must NEVER appear in any player view
FORBIDDEN_KEYS = {
    "deck",
    "deck_order",
    "rng",
    "seed",
    "random",
    "debug",
    "_internal",
}


def _knowledge_summary(frame: Frame, player: str) -> dict[str, dict[str, Any]]:
    return {
        slot: knowledge.model_dump(mode="json")
        for slot, knowledge in frame.belief[player].items()
    }


def view_for_player(
    frame: Frame,
    viewer: str,
    seating: list[str] | None = None,
) -> dict[str, Any]:
    """
    Build the redacted table view for one player at one point in history.

    CRITICAL: The viewer sees every other hand but NOT their own cards.
    Their own slots only show whether they hold a card and the common knowledge.

    Args:
        frame: The frame to render
        viewer: The player requesting the view
        seating: Canonical seating order (defaults to the frame's turn order)

    Returns:
        Redacted view dictionary safe for the viewer to see
    """
    state = frame.state
    me = state.player(viewer)
    if me is None:
        raise ValueError(f"Unknown player: {viewer}")

    order = seating or state.player_names
    hands: dict[str, dict[str, Any]] = {}
    for name in order:
        player = state.player(name)
        if player is None:
            raise ValueError(f"Unknown player: {name}")
        knowledge = _knowledge_summary(frame, name)
        slots: dict[str, Any] = {}
        for slot in state.slots:
            card = player.hand.get(slot)
            entry: dict[str, Any] = {"occupied": card is not None, "knowledge": knowledge[slot]}
            if name != viewer and card is not None:
                entry["card"] = card.model_dump(mode="json")
            slots[slot] = entry
        hands[name] = slots

    status = get_status(state)
    return {
        "role": "player",
        "viewer": viewer,
        "seating": list(order),
        "current_player": state.players[0].name,
        "is_my_turn": state.players[0].name == viewer and status.status == "playing",

        # Hands: other players' cards visible, own cards only as knowledge
        "hands": hands,

        # Public counters
        "hint_tokens": state.n_hints,
        "strikes": state.n_strikes,
        "towers": dict(state.towers),
        "score": score(state),
        "cards_left": len(state.deck),
        "moves_left": state.moves_left,
        "last_player": last_player(state),
        "status": status.model_dump(mode="json"),

        # Card counting
        "unseen": unseen_counts(state, viewer),
        "lost": lost_counts(state),

        "last_action": frame.action.model_dump(mode="json") if frame.action else None,
    }


def assert_no_leaks(payload: Any, path: str = "") -> None:
    """
    Recursively assert that no forbidden keys appear in a payload.

    Raises AssertionError if any leak is detected.
    """
    if isinstance(payload, dict):
        for key, value in payload.items():
            key_str = str(key).lower()
            current_path = f"{path}.{key}" if path else key

            if key_str in FORBIDDEN_KEYS:
                raise AssertionError(f"Forbidden key '{key}' found at {current_path}")

            assert_no_leaks(value, current_path)

    elif isinstance(payload, list):
        for i, item in enumerate(payload):
            assert_no_leaks(item, f"{path}[{i}]")


def assert_view_safe(view: dict[str, Any]) -> None:
    """
    Validate that a player view is safe (no information leaks).

    Checks:
    1. No forbidden keys anywhere in the payload
    2. The viewer's own slots carry no card data
    """
    if view.get("role") != "player":
        raise AssertionError(f"Unknown role in view: {view.get('role')}")

    viewer = view.get("viewer")
    if not viewer:
        raise AssertionError("View missing viewer")

    for slot, entry in view.get("hands", {}).get(viewer, {}).items():
        if "card" in entry:
            raise AssertionError(f"Actual card data found in {viewer}'s own slot {slot} - LEAK!")

    assert_no_leaks(view)
