"""
Condition evaluation.

Pure predicates over session state. Works against both Session snapshots
and the WorkingState of an in-progress apply_choice, so conditional effects
see effects applied earlier in the same list.
"""

from __future__ import annotations
from typing import Any, Iterable, Mapping, Protocol

from ..story_schema.types import (
    AndCondition,
    Condition,
    FlagCondition,
    NotCondition,
    Number,
    OrCondition,
    RawCondition,
    ResourceCondition,
    Scalar,
    TimeWindowCondition,
    VariableCondition,
)


class StateView(Protocol):
    flags: Mapping[str, bool]
    resources: Mapping[str, Number]
    variables: Mapping[str, Scalar]
    time: int


def _as_text(value: Any) -> str:
    """String form used for variable comparisons."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _compare(actual: Number, op: str, expected: Number) -> bool:
    if op == ">=":
        return actual >= expected
    if op == "<=":
        return actual <= expected
    if op == ">":
        return actual > expected
    if op == "<":
        return actual < expected
    if op in ("==", "="):
        return actual == expected
    return False


def evaluate_condition(condition: Condition, state: StateView) -> bool:
    """Evaluate one condition. Unset flags read False, unset resources read 0."""
    if isinstance(condition, FlagCondition):
        return bool(state.flags.get(condition.key, False)) == condition.value

    if isinstance(condition, ResourceCondition):
        return _compare(state.resources.get(condition.key, 0), condition.op, condition.value)

    if isinstance(condition, VariableCondition):
        actual = _as_text(state.variables.get(condition.key))
        expected = _as_text(condition.value)
        if condition.op in ("==", "="):
            return actual == expected
        if condition.op == "!=":
            return actual != expected
        if condition.op == "contains":
            return expected in actual
        if condition.op == "!contains":
            return expected not in actual
        return False

    if isinstance(condition, TimeWindowCondition):
        return condition.start <= state.time <= condition.end

    if isinstance(condition, AndCondition):
        return all(evaluate_condition(c, state) for c in condition.conditions)

    if isinstance(condition, OrCondition):
        return any(evaluate_condition(c, state) for c in condition.conditions)

    if isinstance(condition, NotCondition):
        return not evaluate_condition(condition.condition, state)

    if isinstance(condition, RawCondition):
        # Unparsed text never gates a choice.
        return True

    raise TypeError(f"Unknown condition: {condition!r}")


def conditions_hold(conditions: Iterable[Condition], state: StateView) -> bool:
    """True when every condition holds; an empty list always holds."""
    return all(evaluate_condition(c, state) for c in conditions)
