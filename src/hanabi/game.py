"""Core game logic for Hanabi: dealing, the rules engine and card accounting."""

from __future__ import annotations

import random
from collections.abc import Sequence

from .errors import InvalidAction, InvalidSetup
from .models import (
    Action,
    CARD_COUNTS,
    COLORS,
    Card,
    Color,
    DiscardAction,
    GameState,
    GameStatus,
    HintColorAction,
    HintRankAction,
    MAX_HINTS,
    MAX_PLAYERS,
    MAX_STRIKES,
    MIN_PLAYERS,
    PlayAction,
    Player,
    RANKS,
    Rank,
    Slot,
    hand_slots,
    parse_action,
)

CardCounts = dict[Color, dict[Rank, int]]


def create_deck(seed: int | None = None) -> list[Card]:
    """Create and shuffle a standard Hanabi deck."""
    rng = random.Random(seed)
    deck: list[Card] = []

    for color in COLORS:
        for rank, count in CARD_COUNTS.items():
            for _ in range(count):
                deck.append(Card(color=color, rank=rank))  # type: ignore[arg-type]

    rng.shuffle(deck)
    return deck


def deal_initial_state(player_names: Sequence[str], seed: int | None = None) -> GameState:
    """
    Deal a new game.

    Args:
        player_names: Seating order; the first player moves first
        seed: Optional shuffle seed, for reproducible games

    Returns:
        Initial game state with dealt hands

    Raises:
        InvalidSetup: wrong number of players, blank or duplicate names
    """
    names = list(player_names)
    if not MIN_PLAYERS <= len(names) <= MAX_PLAYERS:
        raise InvalidSetup(f"Need {MIN_PLAYERS}-{MAX_PLAYERS} players, got {len(names)}")
    if any(not name.strip() for name in names):
        raise InvalidSetup("Player names must not be blank")
    if len(set(names)) != len(names):
        raise InvalidSetup(f"Duplicate player names: {names}")

    slots = hand_slots(len(names))
    deck = create_deck(seed)

    # Each player takes the next len(slots) cards off the front
    players: list[Player] = []
    for name in names:
        hand = dict(zip(slots, deck[: len(slots)]))
        deck = deck[len(slots):]
        players.append(Player(name=name, hand=hand))

    return GameState(
        players=players,
        deck=deck,
        n_hints=MAX_HINTS,
        n_strikes=0,
        towers={},
        moves_left=None,
    )


def successor(rank: Rank) -> Rank | None:
    """The rank that goes on top of ``rank``; 5 has none."""
    return rank + 1 if rank < 5 else None  # type: ignore[return-value]


def is_playable(card: Card, towers: dict[Color, Rank]) -> bool:
    """Check if a card can be legally played."""
    tower = towers.get(card.color)
    if tower is None:
        return card.rank == 1
    return successor(tower) == card.rank


def score(state: GameState) -> int:
    """Sum of tower heights; empty towers count as 0."""
    return sum(state.towers.values())


def active_player(state: GameState) -> str:
    return state.players[0].name


def last_player(state: GameState) -> str | None:
    """Name of the player who takes the final turn, once the countdown runs."""
    if not state.moves_left:
        return None
    return state.players[state.moves_left - 1].name


def get_status(state: GameState) -> GameStatus:
    """Evaluate whether the game is still running. Strikes take precedence."""
    if state.n_strikes >= MAX_STRIKES:
        return GameStatus(status="lost")
    if state.moves_left == 0:
        return GameStatus(status="over", score=score(state))
    return GameStatus(status="playing")


def _next_moves_left(state: GameState, draws: bool) -> int | None:
    """Advance the final-round countdown for one action."""
    if state.moves_left is not None:
        return state.moves_left - 1
    # Drawing the last card gives everyone, the drawer included, one more turn
    if draws and len(state.deck) == 1:
        return len(state.players)
    return None


def _rotate(players: list[Player]) -> list[Player]:
    return players[1:] + players[:1]


def _card_in_slot(state: GameState, slot: Slot) -> Card:
    if slot not in state.slots:
        raise InvalidAction(f"No slot {slot!r} with {len(state.players)} players")
    card = state.players[0].hand.get(slot)
    if card is None:
        raise InvalidAction(f"Slot {slot!r} is empty")
    return card


def _replace_card(state: GameState, slot: Slot) -> tuple[list[Player], list[Card]]:
    """Refill ``slot`` of the active hand from the deck front (or empty it)."""
    active = state.players[0]
    hand = dict(active.hand)
    if state.deck:
        hand[slot] = state.deck[0]
    else:
        hand.pop(slot, None)
    players = [active.model_copy(update={"hand": hand})] + list(state.players[1:])
    return players, list(state.deck[1:])


def apply_discard(state: GameState, action: DiscardAction) -> GameState:
    """Apply a discard action (before rotation)."""
    _card_in_slot(state, action.slot)
    players, deck = _replace_card(state, action.slot)
    return state.model_copy(update={
        "players": players,
        "deck": deck,
        "n_hints": min(MAX_HINTS, state.n_hints + 1),
        "moves_left": _next_moves_left(state, draws=True),
    })


def apply_play(state: GameState, action: PlayAction) -> GameState:
    """Apply a play action (before rotation)."""
    card = _card_in_slot(state, action.slot)
    towers = dict(state.towers)
    n_hints = state.n_hints
    n_strikes = state.n_strikes

    if is_playable(card, state.towers):
        towers[card.color] = card.rank
        # Completing a tower returns a hint token
        if card.rank == 5:
            n_hints = min(MAX_HINTS, n_hints + 1)
    else:
        n_strikes += 1

    players, deck = _replace_card(state, action.slot)
    return state.model_copy(update={
        "players": players,
        "deck": deck,
        "towers": towers,
        "n_hints": n_hints,
        "n_strikes": n_strikes,
        "moves_left": _next_moves_left(state, draws=True),
    })


def apply_hint(state: GameState, action: HintColorAction | HintRankAction) -> GameState:
    """Apply a color or rank hint (before rotation)."""
    if state.n_hints <= 0:
        raise InvalidAction("No hint tokens available")
    if state.player(action.target) is None:
        raise InvalidAction(f"Unknown player: {action.target}")
    if action.target == active_player(state):
        raise InvalidAction("Cannot give a hint to yourself")

    return state.model_copy(update={
        "n_hints": state.n_hints - 1,
        "moves_left": _next_moves_left(state, draws=False),
    })


def step(state: GameState, action: Action | dict) -> GameState:
    """
    Apply an action for the active player and pass the turn.

    Returns a new state; ``state`` itself is never touched.

    Raises:
        InvalidAction: the action is malformed or illegal here
    """
    action = parse_action(action)

    if get_status(state).status != "playing":
        raise InvalidAction("Game is already over")

    if isinstance(action, DiscardAction):
        new_state = apply_discard(state, action)
    elif isinstance(action, PlayAction):
        new_state = apply_play(state, action)
    elif isinstance(action, (HintColorAction, HintRankAction)):
        new_state = apply_hint(state, action)
    else:
        raise InvalidAction(f"Unknown action type: {type(action)}")

    rotated = new_state.model_copy(update={"players": _rotate(new_state.players)})
    # No list or dict is shared with the input state
    return rotated.model_copy(deep=True)


def legal_actions(state: GameState) -> list[Action]:
    """Every action ``step`` accepts in this state."""
    if get_status(state).status != "playing":
        return []

    actions: list[Action] = []
    active = state.players[0]
    for slot in state.slots:
        if slot in active.hand:
            actions.append(PlayAction(slot=slot))
            actions.append(DiscardAction(slot=slot))

    if state.n_hints > 0:
        for target in state.players[1:]:
            actions.extend(HintColorAction(target=target.name, color=c) for c in COLORS)
            actions.extend(HintRankAction(target=target.name, rank=r) for r in RANKS)
    return actions


def _empty_counts() -> CardCounts:
    return {color: {rank: 0 for rank in RANKS} for color in COLORS}


def unseen_counts(state: GameState, viewer: str) -> CardCounts:
    """Cards the viewer cannot see: the deck plus their own hand."""
    player = state.player(viewer)
    if player is None:
        raise ValueError(f"Unknown player: {viewer}")

    counts = _empty_counts()
    for card in [*state.deck, *player.hand.values()]:
        counts[card.color][card.rank] += 1
    return counts


def lost_counts(state: GameState) -> CardCounts:
    """Cards burned by discards and misplays.

    Not stored in the state; it is whatever the full deck has that is not in
    the draw pile, a hand, or a tower.
    """
    counts = {color: {rank: CARD_COUNTS[rank] for rank in RANKS} for color in COLORS}
    for card in state.deck:
        counts[card.color][card.rank] -= 1
    for player in state.players:
        for card in player.hand.values():
            counts[card.color][card.rank] -= 1
    for color, top in state.towers.items():
        for rank in range(1, top + 1):
            counts[color][rank] -= 1  # type: ignore[index]
    return counts
