"""Story schema - story graph types, condition/effect DSL, id resolution and validation."""

from .types import (
    StoryModel,
    StoryNode,
    Choice,
    ChoiceOutcome,
    Condition,
    ConditionType,
    FlagCondition,
    ResourceCondition,
    VariableCondition,
    TimeWindowCondition,
    AndCondition,
    OrCondition,
    NotCondition,
    RawCondition,
    Effect,
    EffectType,
    SetFlagEffect,
    AddResourceEffect,
    MultiplyResourceEffect,
    SetResourceEffect,
    SetVariableEffect,
    GotoEffect,
    RandomEffect,
    ConditionalEffect,
    RawEffect,
)
from .dsl import (
    parse_condition,
    parse_effect,
    serialize_condition,
    serialize_effect,
    build_condition,
    build_effect,
)
from .resolver import CanonicalId, resolve_node_id, split_canonical_id
from .document import parse_document
from .validation import (
    ValidatorOptions,
    ValidationIssue,
    ValidationResult,
    ModelValidationError,
    validate_model,
    load_model,
    load_model_file,
)

__all__ = [
    "StoryModel",
    "StoryNode",
    "Choice",
    "ChoiceOutcome",
    "Condition",
    "ConditionType",
    "FlagCondition",
    "ResourceCondition",
    "VariableCondition",
    "TimeWindowCondition",
    "AndCondition",
    "OrCondition",
    "NotCondition",
    "RawCondition",
    "Effect",
    "EffectType",
    "SetFlagEffect",
    "AddResourceEffect",
    "MultiplyResourceEffect",
    "SetResourceEffect",
    "SetVariableEffect",
    "GotoEffect",
    "RandomEffect",
    "ConditionalEffect",
    "RawEffect",
    "parse_condition",
    "parse_effect",
    "serialize_condition",
    "serialize_effect",
    "build_condition",
    "build_effect",
    "CanonicalId",
    "resolve_node_id",
    "split_canonical_id",
    "parse_document",
    "ValidatorOptions",
    "ValidationIssue",
    "ValidationResult",
    "ModelValidationError",
    "validate_model",
    "load_model",
    "load_model_file",
]
