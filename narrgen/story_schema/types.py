"""
Story Types - Declarative story graph definitions.

A story model is a graph of nodes. Each node offers an ordered list of
choices; a choice is gated by conditions, mutates session state through
effects and moves the session to a target node.

Conditions and effects are closed sum types: one frozen dataclass per
documented tag. Text that could not be parsed by the DSL codec survives as
RawCondition / RawEffect so that it round-trips unchanged.

The dict encoding produced by ``to_dict()`` is the model document wire
format (camelCase keys, ``type`` tag).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Iterable, Mapping, Union
import math


class ConditionType(str, Enum):
    """Condition tags."""
    FLAG = "flag"
    RESOURCE = "resource"
    VARIABLE = "variable"
    TIME_WINDOW = "timeWindow"
    AND = "and"
    OR = "or"
    NOT = "not"


class EffectType(str, Enum):
    """Effect tags."""
    SET_FLAG = "setFlag"
    ADD_RESOURCE = "addResource"
    MULTIPLY_RESOURCE = "multiplyResource"
    SET_RESOURCE = "setResource"
    SET_VARIABLE = "setVariable"
    GOTO = "goto"
    RANDOM_EFFECT = "randomEffect"
    CONDITIONAL_EFFECT = "conditionalEffect"


RESOURCE_OPERATORS = (">=", "<=", ">", "<", "==")
VARIABLE_OPERATORS = ("==", "!=", "contains", "!contains")

Number = Union[int, float]
Scalar = Union[str, int, float, bool]


# ============================================================================
# Conditions
# ============================================================================

@dataclass(frozen=True)
class FlagCondition:
    """True when the flag equals ``value`` (unset flags read as False)."""
    key: str
    value: bool = True

    type: ClassVar[ConditionType] = ConditionType.FLAG

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "key": self.key, "value": self.value}


@dataclass(frozen=True)
class ResourceCondition:
    """Numeric comparison against a resource (unset resources read as 0)."""
    key: str
    op: str
    value: Number

    type: ClassVar[ConditionType] = ConditionType.RESOURCE

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "key": self.key, "op": self.op, "value": self.value}


@dataclass(frozen=True)
class VariableCondition:
    """Equality or substring test against a free variable."""
    key: str
    op: str
    value: Scalar

    type: ClassVar[ConditionType] = ConditionType.VARIABLE

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "key": self.key, "op": self.op, "value": self.value}


@dataclass(frozen=True)
class TimeWindowCondition:
    """True while ``start <= session.time <= end``."""
    start: Number
    end: Number

    type: ClassVar[ConditionType] = ConditionType.TIME_WINDOW

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "start": self.start, "end": self.end}


@dataclass(frozen=True)
class AndCondition:
    conditions: tuple[Condition, ...] = ()

    type: ClassVar[ConditionType] = ConditionType.AND

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "conditions": [dump_condition(c) for c in self.conditions],
        }


@dataclass(frozen=True)
class OrCondition:
    conditions: tuple[Condition, ...] = ()

    type: ClassVar[ConditionType] = ConditionType.OR

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "conditions": [dump_condition(c) for c in self.conditions],
        }


@dataclass(frozen=True)
class NotCondition:
    condition: Condition

    type: ClassVar[ConditionType] = ConditionType.NOT

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "condition": dump_condition(self.condition)}


@dataclass(frozen=True)
class RawCondition:
    """Condition text the DSL codec did not recognise, kept verbatim."""
    text: str


Condition = Union[
    FlagCondition,
    ResourceCondition,
    VariableCondition,
    TimeWindowCondition,
    AndCondition,
    OrCondition,
    NotCondition,
    RawCondition,
]

CONDITION_CLASSES = (
    FlagCondition,
    ResourceCondition,
    VariableCondition,
    TimeWindowCondition,
    AndCondition,
    OrCondition,
    NotCondition,
    RawCondition,
)


# ============================================================================
# Effects
# ============================================================================

@dataclass(frozen=True)
class SetFlagEffect:
    key: str
    value: bool = True

    type: ClassVar[EffectType] = EffectType.SET_FLAG

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "key": self.key, "value": self.value}


@dataclass(frozen=True)
class AddResourceEffect:
    key: str
    delta: Number

    type: ClassVar[EffectType] = EffectType.ADD_RESOURCE

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "key": self.key, "delta": self.delta}


@dataclass(frozen=True)
class MultiplyResourceEffect:
    key: str
    factor: Number

    type: ClassVar[EffectType] = EffectType.MULTIPLY_RESOURCE

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "key": self.key, "factor": self.factor}


@dataclass(frozen=True)
class SetResourceEffect:
    key: str
    value: Number

    type: ClassVar[EffectType] = EffectType.SET_RESOURCE

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "key": self.key, "value": self.value}


@dataclass(frozen=True)
class SetVariableEffect:
    key: str
    value: Scalar

    type: ClassVar[EffectType] = EffectType.SET_VARIABLE

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "key": self.key, "value": self.value}


@dataclass(frozen=True)
class GotoEffect:
    """Overrides the choice's declared target as the final destination."""
    target: str

    type: ClassVar[EffectType] = EffectType.GOTO

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "target": self.target}


@dataclass(frozen=True)
class RandomEffect:
    """Applies one member, picked uniformly at random when the choice is applied."""
    effects: tuple[Effect, ...] = ()

    type: ClassVar[EffectType] = EffectType.RANDOM_EFFECT

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "effects": [dump_effect(e) for e in self.effects]}


@dataclass(frozen=True)
class ConditionalEffect:
    """Applies ``effect`` only if ``condition`` holds against the in-progress state."""
    condition: Condition
    effect: Effect

    type: ClassVar[EffectType] = EffectType.CONDITIONAL_EFFECT

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "condition": dump_condition(self.condition),
            "effect": dump_effect(self.effect),
        }


@dataclass(frozen=True)
class RawEffect:
    """Effect text the DSL codec did not recognise, kept verbatim."""
    text: str


Effect = Union[
    SetFlagEffect,
    AddResourceEffect,
    MultiplyResourceEffect,
    SetResourceEffect,
    SetVariableEffect,
    GotoEffect,
    RandomEffect,
    ConditionalEffect,
    RawEffect,
]

EFFECT_CLASSES = (
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


# ============================================================================
# Graph
# ============================================================================

@dataclass(frozen=True)
class ChoiceOutcome:
    """Restricted tag+value pair consumed by the inventory extension."""
    type: str
    value: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type}
        if self.value is not None:
            data["value"] = self.value
        return data


@dataclass(frozen=True)
class Choice:
    """
    A branch out of a node.

    ``target`` may be canonical or relative to the owning node's group, and
    may be empty when a goto effect supplies the destination.
    """
    id: str
    text: str = ""
    target: str = ""
    conditions: tuple[Condition, ...] = ()
    effects: tuple[Effect, ...] = ()
    outcome: ChoiceOutcome | None = None

    def goto_effects(self) -> list[GotoEffect]:
        """All goto effects, including those nested in random/conditional effects."""
        return collect_goto_effects(self.effects)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "text": self.text, "target": self.target}
        if self.conditions:
            data["conditions"] = [dump_condition(c) for c in self.conditions]
        if self.effects:
            data["effects"] = [dump_effect(e) for e in self.effects]
        if self.outcome is not None:
            data["outcome"] = self.outcome.to_dict()
        return data


def collect_goto_effects(effects: Iterable[Effect]) -> list[GotoEffect]:
    """Goto effects in ``effects``, descending into random and conditional effects."""
    found: list[GotoEffect] = []
    for effect in effects:
        if isinstance(effect, GotoEffect):
            found.append(effect)
        elif isinstance(effect, RandomEffect):
            found.extend(collect_goto_effects(effect.effects))
        elif isinstance(effect, ConditionalEffect):
            found.extend(collect_goto_effects((effect.effect,)))
    return found


@dataclass(frozen=True)
class StoryNode:
    """A node of the story graph. Nodes without choices are terminal."""
    id: str
    text: str = ""
    choices: tuple[Choice, ...] = ()

    def get_choice(self, choice_id: str) -> Choice | None:
        for choice in self.choices:
            if choice.id == choice_id:
                return choice
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "choices": [c.to_dict() for c in self.choices],
        }


@dataclass(frozen=True)
class StoryModel:
    """
    A complete story graph.

    Built once from a document and read-only for the lifetime of every
    session played against it. ``nodes`` is keyed by canonical node id.
    """
    start_node: str
    nodes: Mapping[str, StoryNode] = field(default_factory=dict)
    model_type: str = ""
    flags: Mapping[str, bool] = field(default_factory=dict)
    resources: Mapping[str, Number] = field(default_factory=dict)

    def get_node(self, node_id: str) -> StoryNode | None:
        return self.nodes.get(node_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "modelType": self.model_type,
            "startNode": self.start_node,
            "flags": dict(self.flags),
            "resources": dict(self.resources),
            "nodes": {key: node.to_dict() for key, node in self.nodes.items()},
        }


# ============================================================================
# Wire encoding
# ============================================================================

def dump_condition(condition: Condition) -> dict[str, Any] | str:
    """Encode a condition for the model document (raw text stays a string)."""
    if isinstance(condition, RawCondition):
        return condition.text
    return condition.to_dict()


def dump_effect(effect: Effect) -> dict[str, Any] | str:
    """Encode an effect for the model document (raw text stays a string)."""
    if isinstance(effect, RawEffect):
        return effect.text
    return effect.to_dict()


def _require(data: Mapping[str, Any], name: str) -> Any:
    if name not in data or data[name] is None:
        raise ValueError(f"'{data.get('type')}' is missing '{name}'")
    return data[name]


def _key(data: Mapping[str, Any]) -> str:
    key = _require(data, "key")
    if not isinstance(key, str) or not key:
        raise ValueError(f"'{data.get('type')}' needs a non-empty string 'key'")
    return key


def _number(data: Mapping[str, Any], name: str) -> Number:
    value = _require(data, name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{data.get('type')}' field '{name}' must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ValueError(f"'{data.get('type')}' field '{name}' must be finite")
    return value


def _boolean(data: Mapping[str, Any], name: str) -> bool:
    value = data.get(name, True)
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1"}
    if isinstance(value, (int, float)):
        return value == 1
    raise ValueError(f"'{data.get('type')}' field '{name}' must be a boolean")


def _scalar(data: Mapping[str, Any], name: str) -> Scalar:
    value = data.get(name, "")
    if value is None:
        return ""
    if not isinstance(value, (str, int, float, bool)):
        raise ValueError(f"'{data.get('type')}' field '{name}' must be a scalar")
    return value


def condition_from_dict(data: Any) -> Condition:
    """
    Decode a tagged condition object.

    Plain strings decode to RawCondition. Raises ValueError for unknown tags
    or missing/ill-typed fields.
    """
    if isinstance(data, CONDITION_CLASSES):
        return data
    if isinstance(data, str):
        return RawCondition(data)
    if not isinstance(data, Mapping):
        raise ValueError(f"Condition must be an object, got {type(data).__name__}")

    tag = data.get("type")
    if tag == ConditionType.FLAG.value:
        return FlagCondition(key=_key(data), value=_boolean(data, "value"))
    if tag == ConditionType.RESOURCE.value:
        op = data.get("op", "==")
        op = "==" if op == "=" else op
        if op not in RESOURCE_OPERATORS:
            raise ValueError(f"Unknown resource operator {op!r}")
        return ResourceCondition(key=_key(data), op=op, value=_number(data, "value"))
    if tag == ConditionType.VARIABLE.value:
        op = data.get("op", "==")
        op = "==" if op == "=" else op
        if op not in VARIABLE_OPERATORS:
            raise ValueError(f"Unknown variable operator {op!r}")
        return VariableCondition(key=_key(data), op=op, value=_scalar(data, "value"))
    if tag == ConditionType.TIME_WINDOW.value:
        return TimeWindowCondition(start=_number(data, "start"), end=_number(data, "end"))
    if tag in (ConditionType.AND.value, ConditionType.OR.value):
        members = data.get("conditions") or []
        if not isinstance(members, list):
            raise ValueError(f"'{tag}' field 'conditions' must be a list")
        decoded = tuple(condition_from_dict(m) for m in members)
        if tag == ConditionType.AND.value:
            return AndCondition(decoded)
        return OrCondition(decoded)
    if tag == ConditionType.NOT.value:
        return NotCondition(condition_from_dict(_require(data, "condition")))

    raise ValueError(f"Unknown condition type {tag!r}")


def effect_from_dict(data: Any) -> Effect:
    """
    Decode a tagged effect object.

    Plain strings decode to RawEffect. Raises ValueError for unknown tags or
    missing/ill-typed fields.
    """
    if isinstance(data, EFFECT_CLASSES):
        return data
    if isinstance(data, str):
        return RawEffect(data)
    if not isinstance(data, Mapping):
        raise ValueError(f"Effect must be an object, got {type(data).__name__}")

    tag = data.get("type")
    if tag == EffectType.SET_FLAG.value:
        return SetFlagEffect(key=_key(data), value=_boolean(data, "value"))
    if tag == EffectType.ADD_RESOURCE.value:
        # Older documents carry the delta under "value".
        name = "delta" if data.get("delta") is not None else "value"
        return AddResourceEffect(key=_key(data), delta=_number(data, name))
    if tag == EffectType.MULTIPLY_RESOURCE.value:
        return MultiplyResourceEffect(key=_key(data), factor=_number(data, "factor"))
    if tag == EffectType.SET_RESOURCE.value:
        return SetResourceEffect(key=_key(data), value=_number(data, "value"))
    if tag == EffectType.SET_VARIABLE.value:
        return SetVariableEffect(key=_key(data), value=_scalar(data, "value"))
    if tag == EffectType.GOTO.value:
        target = _require(data, "target")
        if not isinstance(target, str):
            raise ValueError("'goto' field 'target' must be a string")
        return GotoEffect(target=target)
    if tag == EffectType.RANDOM_EFFECT.value:
        members = data.get("effects") or []
        if not isinstance(members, list):
            raise ValueError("'randomEffect' field 'effects' must be a list")
        return RandomEffect(tuple(effect_from_dict(m) for m in members))
    if tag == EffectType.CONDITIONAL_EFFECT.value:
        return ConditionalEffect(
            condition=condition_from_dict(_require(data, "condition")),
            effect=effect_from_dict(_require(data, "effect")),
        )

    raise ValueError(f"Unknown effect type {tag!r}")
