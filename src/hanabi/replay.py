"""Rebuild game history by folding the action log from the initial state.

Nothing here is cached or stored: every viewer replays the whole log, and
because the fold is deterministic they all arrive at the same frames.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from pydantic import BaseModel, ConfigDict

from .errors import InvalidAction
from .game import step
from .knowledge import step_belief, total_ignorance
from .models import (
    Action,
    BeliefState,
    DiscardAction,
    GameState,
    HintColorAction,
    HintRankAction,
    PlayAction,
    Slot,
    parse_action,
)


class Frame(BaseModel):
    """One point in history: the state, its common knowledge and the action that led here."""

    model_config = ConfigDict(frozen=True)

    state: GameState
    belief: BeliefState
    action: Action | None = None  # None for the opening deal


def initial_frame(initial_state: GameState) -> Frame:
    return Frame(state=initial_state, belief=total_ignorance(initial_state.player_names))


def advance(frame: Frame, action: Action | dict) -> Frame:
    """Apply one action to state and belief together.

    The belief step sees the pre-action state, same as the rules engine.
    """
    action = parse_action(action)
    new_state = step(frame.state, action)
    new_belief = step_belief(frame.state, frame.belief, action)
    return Frame(state=new_state, belief=new_belief, action=action)


def replay(initial_state: GameState, actions: Iterable[Action | dict]) -> list[Frame]:
    """
    Fold the action log into the full history.

    Returns:
        ``len(actions) + 1`` frames; frame 0 is the deal, frame i follows action i-1

    Raises:
        InvalidAction: an action in the log is illegal at its position
    """
    frames = [initial_frame(initial_state)]
    for index, action in enumerate(actions):
        try:
            frames.append(advance(frames[-1], action))
        except InvalidAction as exc:
            raise InvalidAction(f"Action {index} cannot be replayed: {exc}") from exc
    return frames


def current_frame(initial_state: GameState, actions: Iterable[Action | dict]) -> Frame:
    """The live frame: the last one of the replay."""
    return replay(initial_state, actions)[-1]


def canonical_player_order(frames: Sequence[Frame]) -> list[str]:
    """Seating order as dealt; stable while the active player rotates."""
    return frames[0].state.player_names


def hints_touching(
    frames: Sequence[Frame],
    player: str,
    slot: Slot,
    upto: int | None = None,
) -> list[int]:
    """
    Find the hints that touched the card currently in a slot.

    Args:
        frames: Output of ``replay``
        player: Owner of the slot
        slot: The hand slot
        upto: Frame index to look back from (defaults to the live frame)

    Returns:
        Action indices, newest first. The search stops at the play or discard
        that put the current card into the slot.
    """
    if upto is None:
        upto = len(frames) - 1

    touched: list[int] = []
    for index in range(upto - 1, -1, -1):
        before = frames[index].state
        action = frames[index + 1].action
        owner = before.player(player)
        if owner is None:
            raise ValueError(f"Unknown player: {player}")
        card = owner.hand.get(slot)

        if isinstance(action, (DiscardAction, PlayAction)):
            if before.players[0].name == player and action.slot == slot:
                break
        elif isinstance(action, HintColorAction):
            if action.target == player and card is not None and card.color == action.color:
                touched.append(index)
        elif isinstance(action, HintRankAction):
            if action.target == player and card is not None and card.rank == action.rank:
                touched.append(index)
    return touched
