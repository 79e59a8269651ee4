"""Data models for the Hanabi game engine."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_serializer

from .errors import InvalidAction


# Card colors and ranks
Color = Literal["blue", "green", "red", "white", "yellow"]
Rank = Literal[1, 2, 3, 4, 5]

COLORS: tuple[Color, ...] = ("blue", "green", "red", "white", "yellow")
RANKS: tuple[Rank, ...] = (1, 2, 3, 4, 5)

# Card distribution: 1s x3, 2s x2, 3s x2, 4s x2, 5s x1 per color = 10 per color, 50 total
CARD_COUNTS: dict[int, int] = {1: 3, 2: 2, 3: 2, 4: 2, 5: 1}

MAX_HINTS = 8
MAX_STRIKES = 4
MIN_PLAYERS = 2
MAX_PLAYERS = 5

# Hand positions, left to right
Slot = Literal["left", "midleft", "center", "midright", "right"]

HAND_SLOTS_5: tuple[Slot, ...] = ("left", "midleft", "center", "midright", "right")
HAND_SLOTS_4: tuple[Slot, ...] = ("left", "midleft", "midright", "right")


def hand_slots(num_players: int) -> tuple[Slot, ...]:
    """Slots in each hand: 4 cards for 4-5 players, 5 cards for 2-3."""
    return HAND_SLOTS_4 if num_players >= 4 else HAND_SLOTS_5


class Card(BaseModel):
    """A Hanabi card with color and rank."""

    model_config = ConfigDict(frozen=True)

    color: Color
    rank: Rank

    def __str__(self) -> str:
        return f"{self.color[0].upper()}{self.rank}"


class Player(BaseModel):
    """A seat at the table. Missing slots in the hand are empty."""

    model_config = ConfigDict(frozen=True)

    name: str
    hand: dict[Slot, Card]


class GameState(BaseModel):
    """A snapshot of the table.

    ``players[0]`` is the player whose turn it is and ``deck[0]`` is the next
    card drawn. States are never modified in place; the rules engine always
    builds a new one.
    """

    model_config = ConfigDict(frozen=True)

    players: list[Player]
    deck: list[Card]
    n_hints: int = Field(default=MAX_HINTS, ge=0, le=MAX_HINTS)
    n_strikes: int = Field(default=0, ge=0, le=MAX_STRIKES)

    # Color -> highest rank placed; a missing color is an empty tower
    towers: dict[Color, Rank] = Field(default_factory=dict)

    # Turns remaining once the deck has run out
    moves_left: int | None = None

    @property
    def player_names(self) -> list[str]:
        return [p.name for p in self.players]

    @property
    def slots(self) -> tuple[Slot, ...]:
        return hand_slots(len(self.players))

    def player(self, name: str) -> Player | None:
        for p in self.players:
            if p.name == name:
                return p
        return None


# Action types
class DiscardAction(BaseModel):
    """Discard the card in a slot of the active player's hand."""

    model_config = ConfigDict(frozen=True)

    action_type: Literal["discard"] = "discard"
    slot: Slot


class PlayAction(BaseModel):
    """Try to play the card in a slot onto its color's tower."""

    model_config = ConfigDict(frozen=True)

    action_type: Literal["play"] = "play"
    slot: Slot


class HintColorAction(BaseModel):
    """Tell another player which of their slots hold a color."""

    model_config = ConfigDict(frozen=True)

    action_type: Literal["hint_color"] = "hint_color"
    target: str
    color: Color


class HintRankAction(BaseModel):
    """Tell another player which of their slots hold a rank."""

    model_config = ConfigDict(frozen=True)

    action_type: Literal["hint_rank"] = "hint_rank"
    target: str
    rank: Rank


Action = Annotated[
    Union[DiscardAction, PlayAction, HintColorAction, HintRankAction],
    Field(discriminator="action_type"),
]

_action_adapter: TypeAdapter[Action] = TypeAdapter(Action)


def parse_action(data: Any) -> Action:
    """Validate a raw mapping (e.g. decoded JSON) into an action."""
    if isinstance(data, (DiscardAction, PlayAction, HintColorAction, HintRankAction)):
        return data
    try:
        return _action_adapter.validate_python(data)
    except ValidationError as exc:
        raise InvalidAction(f"Malformed action: {exc.errors()[0]['msg']}") from exc


class SlotKnowledge(BaseModel):
    """What any observer can deduce about the card in one slot."""

    model_config = ConfigDict(frozen=True)

    possible_colors: frozenset[Color] = frozenset(COLORS)
    possible_ranks: frozenset[Rank] = frozenset(RANKS)

    @field_serializer("possible_colors")
    def _dump_colors(self, colors: frozenset[Color]) -> list[str]:
        return [c for c in COLORS if c in colors]

    @field_serializer("possible_ranks")
    def _dump_ranks(self, ranks: frozenset[Rank]) -> list[int]:
        return sorted(ranks)


# Player name -> slot -> knowledge
BeliefState = dict[str, dict[Slot, SlotKnowledge]]


class GameStatus(BaseModel):
    """Outcome of evaluating a state."""

    status: Literal["playing", "over", "lost"]
    score: int | None = None  # Only set when over
