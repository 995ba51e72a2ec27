"""Rule violations that are reported back to the requesting player."""

from __future__ import annotations


class GameRuleError(RuntimeError):
    """Action rejected with a human-readable reason for the requester."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PlacementError(GameRuleError):
    """Building placement broke an adjacency rule."""


class AttackError(GameRuleError):
    """Attack broke an eligibility rule."""
