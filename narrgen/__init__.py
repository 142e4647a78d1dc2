"""
narrgen - Interactive Narrative Graph Interpreter

Loads declarative story graphs (nodes, branching choices, stateful
conditions and effects), validates their structure, and drives sessions
through them one choice at a time. Provides:
- A compact text DSL for conditions and effects
- Group-relative node id resolution
- Model loading and aggregated validation
- Immutable session snapshots advanced by a pure reducer
"""

from .story_schema import (
    StoryModel,
    ValidatorOptions,
    load_model,
    load_model_file,
    parse_condition,
    parse_effect,
    resolve_node_id,
    serialize_condition,
    serialize_effect,
    split_canonical_id,
)
from .engine_core import (
    InvalidChoiceError,
    Session,
    apply_choice,
    get_available_choices,
    start_session,
)
from .session import GameSession, Inventory

__version__ = "0.1.0"

__all__ = [
    "StoryModel",
    "ValidatorOptions",
    "load_model",
    "load_model_file",
    "parse_condition",
    "parse_effect",
    "resolve_node_id",
    "serialize_condition",
    "serialize_effect",
    "split_canonical_id",
    "InvalidChoiceError",
    "Session",
    "apply_choice",
    "get_available_choices",
    "start_session",
    "GameSession",
    "Inventory",
]
