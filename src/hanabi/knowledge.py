"""Common knowledge about hidden cards, derived from the public action history.

The tracker answers "what could anyone at the table deduce about the card in
this slot?" It only uses hints and the fact that played/discarded slots get a
fresh unknown card. Each player's private knowledge (everything here, plus
every hand but their own) is a presentation concern.
"""

from __future__ import annotations

from collections.abc import Sequence

from .errors import InvalidAction
from .models import (
    Action,
    BeliefState,
    DiscardAction,
    GameState,
    HintColorAction,
    HintRankAction,
    PlayAction,
    Player,
    Slot,
    SlotKnowledge,
    hand_slots,
    parse_action,
)


def total_ignorance(player_names: Sequence[str]) -> BeliefState:
    """Every slot of every player could hold any card."""
    slots = hand_slots(len(player_names))
    return {name: {slot: SlotKnowledge() for slot in slots} for name in player_names}


def _target(state: GameState, name: str) -> Player:
    target = state.player(name)
    if target is None:
        raise InvalidAction(f"Unknown player: {name}")
    return target


def _reset_slot(belief: BeliefState, player: str, slot: Slot) -> BeliefState:
    new_belief = dict(belief)
    new_belief[player] = {**belief[player], slot: SlotKnowledge()}
    return new_belief


def _apply_color_hint(state: GameState, belief: BeliefState, action: HintColorAction) -> BeliefState:
    target = _target(state, action.target)
    hand_knowledge: dict[Slot, SlotKnowledge] = {}
    for slot, knowledge in belief[action.target].items():
        card = target.hand.get(slot)
        if card is not None and card.color == action.color:
            colors = frozenset({action.color})
        else:
            # Negative information
            colors = knowledge.possible_colors - {action.color}
        hand_knowledge[slot] = knowledge.model_copy(update={"possible_colors": colors})
    return {**belief, action.target: hand_knowledge}


def _apply_rank_hint(state: GameState, belief: BeliefState, action: HintRankAction) -> BeliefState:
    target = _target(state, action.target)
    hand_knowledge: dict[Slot, SlotKnowledge] = {}
    for slot, knowledge in belief[action.target].items():
        card = target.hand.get(slot)
        if card is not None and card.rank == action.rank:
            ranks = frozenset({action.rank})
        else:
            ranks = knowledge.possible_ranks - {action.rank}
        hand_knowledge[slot] = knowledge.model_copy(update={"possible_ranks": ranks})
    return {**belief, action.target: hand_knowledge}


def step_belief(state: GameState, belief: BeliefState, action: Action | dict) -> BeliefState:
    """
    Fold one action into the common knowledge.

    Args:
        state: The state *before* the action was applied
        belief: Common knowledge before the action
        action: The action taken by ``state``'s active player

    Returns:
        New belief state; ``belief`` is left untouched
    """
    action = parse_action(action)
    actor = state.players[0].name

    if isinstance(action, (DiscardAction, PlayAction)):
        return _reset_slot(belief, actor, action.slot)
    if isinstance(action, HintColorAction):
        return _apply_color_hint(state, belief, action)
    if isinstance(action, HintRankAction):
        return _apply_rank_hint(state, belief, action)
    raise TypeError(f"Unknown action type: {type(action)}")
