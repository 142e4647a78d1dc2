"""
Session Module - Optional stateful play-through wrappers.

A GameSession decorates the pure engine with:
- The current snapshot and undo history
- An inventory driven by choice outcomes

Sessions are in-memory only; persistence is the host's concern.
"""

from .inventory import Entity, Inventory, OutcomeType, normalize_catalog
from .game_session import GameSession

__all__ = [
    "Entity",
    "Inventory",
    "OutcomeType",
    "normalize_catalog",
    "GameSession",
]
