"""
Engine Core - Immutable session snapshots and choice application.

The engine is the runtime that:
1. Starts a session at the model's start node
2. Lists the choices whose conditions currently hold
3. Applies a chosen branch's effects via the reducer
4. Returns a new snapshot, leaving the old one untouched
"""

from .state import Session, WorkingState, session_to_dict, session_from_dict
from .conditions import evaluate_condition, conditions_hold
from .effect_resolver import EffectResolver, RandomSource
from .reducer import (
    Reducer,
    InvalidChoiceError,
    start_session,
    get_available_choices,
    apply_choice,
)

__all__ = [
    "Session",
    "WorkingState",
    "session_to_dict",
    "session_from_dict",
    "evaluate_condition",
    "conditions_hold",
    "EffectResolver",
    "RandomSource",
    "Reducer",
    "InvalidChoiceError",
    "start_session",
    "get_available_choices",
    "apply_choice",
]
