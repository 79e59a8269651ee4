"""Errors raised by the Hanabi engine and its log store."""

from __future__ import annotations


class HanabiError(Exception):
    """Base class for all Hanabi errors."""


class InvalidSetup(HanabiError):
    """The player list cannot start a game."""


class InvalidAction(HanabiError):
    """The action is not legal in the current state."""


class NotFound(HanabiError):
    """A game or action id does not exist."""


class ConcurrentModification(HanabiError):
    """The log changed underneath the caller (e.g. undo of a non-tail action)."""
