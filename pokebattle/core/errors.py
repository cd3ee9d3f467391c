"""Errors raised when an action cannot be applied to a battle."""

from __future__ import annotations


class BattleError(Exception):
    """Base for rejected battle operations. The battle state is never modified."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(BattleError):
    """A battle or creature id does not resolve."""


class InvalidAction(BattleError):
    """The action is illegal for the current phase or turn owner."""


class TerminalBattle(BattleError):
    """The battle already has a winner."""
