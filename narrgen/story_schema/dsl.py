"""
Condition/Effect DSL - compact text notation for authoring tools.

Condition text:
    flag:<key>=<bool>                 bool is true/1, anything else is false
    resource:<key><op><number>        op in >=, <=, >, <, =, == ("=" means "==")
    variable:<key><op><value>         op in =, ==, !=, contains, !contains
    time:<start>-<end>                also timeWindow:<start>-<end>

Effect text:
    setFlag:<key>=<bool>
    addResource:<key>=<delta>         delta may be negative
    setVariable:<key>=<value>
    goto:<target>
    randomEffect:<eff1>|<eff2>|...    members parsed recursively
    conditionalEffect:<condition>?<effect>

A JSON object literal (``{"type": ...}``) decodes into the matching
structured condition/effect, which is how composite conditions and the
effect variants without a shorthand (setResource, multiplyResource) travel
as text.

Anything else is NOT an error: it comes back as RawCondition / RawEffect
holding the original text, and serializes back to exactly that text.
``setResource:`` in particular is deliberately left without a shorthand.
"""

from __future__ import annotations
from typing import Any, Mapping
import json
import re

from ..observability.logging import get_logger
from .types import (
    CONDITION_CLASSES,
    EFFECT_CLASSES,
    AddResourceEffect,
    Condition,
    ConditionalEffect,
    Effect,
    FlagCondition,
    GotoEffect,
    Number,
    RESOURCE_OPERATORS,
    VARIABLE_OPERATORS,
    RandomEffect,
    RawCondition,
    RawEffect,
    ResourceCondition,
    SetFlagEffect,
    SetVariableEffect,
    TimeWindowCondition,
    VariableCondition,
    condition_from_dict,
    effect_from_dict,
)

log = get_logger(__name__)

_NUMBER = r"\d+(?:\.\d+)?"

_NUMBER_RE = re.compile(rf"-?{_NUMBER}", re.ASCII)

_TIME_RE = re.compile(rf"^(time|timeWindow):({_NUMBER})-({_NUMBER})$", re.ASCII)
_FLAG_RE = re.compile(r"^flag:([^=]+)=(.+)$")
_RESOURCE_RE = re.compile(r"^resource:([^=<>!]+)(>=|<=|==|=|>|<)(.+)$")
_VARIABLE_RE = re.compile(r"^variable:([^=<>!]+)(==|=|!=|contains|!contains)(.+)$")

_SET_FLAG_RE = re.compile(r"^setFlag:([^=]+)=(.+)$")
_ADD_RESOURCE_RE = re.compile(rf"^addResource:([^=]+)=(-?{_NUMBER})$", re.ASCII)
_SET_VARIABLE_RE = re.compile(r"^setVariable:([^=]+)=(.+)$")
_GOTO_RE = re.compile(r"^goto:(.+)$")

_RANDOM_PREFIX = "randomEffect:"
_CONDITIONAL_PREFIX = "conditionalEffect:"


def parse_bool(value: Any) -> bool:
    """Only ``true`` and ``1`` (case-insensitive) are true."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in {"true", "1"}


def _parse_number(text: str) -> Number | None:
    # Plain ASCII decimals only; int() and float() also take "1_000", "1e3" and "inf".
    text = text.strip()
    if not _NUMBER_RE.fullmatch(text):
        return None
    if "." in text:
        return float(text)
    return int(text)


def _format_number(value: Number) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _format_bool(value: bool) -> str:
    return "true" if value else "false"


def _decode_literal(text: str) -> Any:
    """Decode an embedded JSON object literal, or None if the text is not one."""
    if not text.startswith("{"):
        return None
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _literal(data: Mapping[str, Any]) -> str:
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


# ============================================================================
# Conditions
# ============================================================================

def parse_condition(value: Any) -> Condition | None:
    """
    Parse condition text into a structured condition.

    Structured conditions are returned unchanged; mappings are decoded.
    Returns None for empty input and RawCondition for text that is not
    recognised.
    """
    if value is None:
        return None
    if isinstance(value, CONDITION_CLASSES):
        return value
    if isinstance(value, Mapping):
        try:
            return condition_from_dict(value)
        except ValueError:
            return RawCondition(_literal(value))
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    literal = _decode_literal(text)
    if literal is not None:
        try:
            return condition_from_dict(literal)
        except ValueError as e:
            log.debug("condition_literal_undecodable", text=text, error=str(e))
            return RawCondition(text)

    match = _TIME_RE.match(text)
    if match:
        return TimeWindowCondition(
            start=_parse_number(match.group(2)),
            end=_parse_number(match.group(3)),
        )

    match = _FLAG_RE.match(text)
    if match:
        key = match.group(1).strip()
        if key:
            return FlagCondition(key=key, value=parse_bool(match.group(2)))

    match = _RESOURCE_RE.match(text)
    if match:
        key = match.group(1).strip()
        number = _parse_number(match.group(3))
        if key and number is not None:
            op = "==" if match.group(2) == "=" else match.group(2)
            return ResourceCondition(key=key, op=op, value=number)

    match = _VARIABLE_RE.match(text)
    if match:
        key = match.group(1).strip()
        if key:
            op = "==" if match.group(2) == "=" else match.group(2)
            return VariableCondition(key=key, op=op, value=match.group(3))

    log.debug("condition_passthrough", text=text)
    return RawCondition(text)


def _condition_shorthand(condition: Condition) -> str | None:
    if isinstance(condition, FlagCondition):
        return f"flag:{condition.key}={_format_bool(condition.value)}"
    if isinstance(condition, ResourceCondition):
        return f"resource:{condition.key}{condition.op}{_format_number(condition.value)}"
    if isinstance(condition, VariableCondition):
        return f"variable:{condition.key}{condition.op}{condition.value}"
    if isinstance(condition, TimeWindowCondition):
        return (
            f"timeWindow:{_format_number(condition.start)}"
            f"-{_format_number(condition.end)}"
        )
    return None


def serialize_condition(condition: Condition | str) -> str:
    """
    Serialize a condition to text.

    Leaf conditions use the shorthand when it parses back to an equal
    condition; everything else uses the JSON object literal form.
    """
    if isinstance(condition, str):
        return condition
    if isinstance(condition, RawCondition):
        return condition.text

    text = _condition_shorthand(condition)
    if text is not None and parse_condition(text) == condition:
        return text
    return _literal(condition.to_dict())


def build_condition(
    condition_type: str | None,
    key: str | None,
    operator: str | None = "=",
    value: Any = "",
) -> Condition | None:
    """
    Build a condition from discrete editor fields.

    Returns None when the type or key is missing, or when a resource value
    is not numeric. A time window with non-numeric bounds falls back to its
    ``time:<start>-<end>`` text form.
    """
    if not condition_type or not key:
        return None

    if condition_type == "timeWindow":
        start = _parse_number(str(key))
        end = _parse_number(str(value))
        if start is not None and end is not None:
            return TimeWindowCondition(start=start, end=end)
        return RawCondition(f"time:{key}-{value}")

    if condition_type == "flag":
        return FlagCondition(key=key, value=parse_bool(value))

    if condition_type == "resource":
        number = _parse_number(str(value))
        if number is None:
            return None
        op = "==" if operator in (None, "", "=") else operator
        if op not in RESOURCE_OPERATORS:
            return None
        return ResourceCondition(key=key, op=op, value=number)

    if condition_type == "variable":
        op = "==" if operator in (None, "", "=") else operator
        if op not in VARIABLE_OPERATORS:
            return None
        return VariableCondition(key=key, op=op, value="" if value is None else str(value))

    if condition_type in ("visited", "notVisited"):
        return RawCondition(f"{condition_type}:{key}")

    return RawCondition(f"{condition_type}:{key}{operator or ''}{value}")


# ============================================================================
# Effects
# ============================================================================

def parse_effect(value: Any) -> Effect | None:
    """
    Parse effect text into a structured effect.

    Structured effects are returned unchanged; mappings are decoded.
    Returns None for empty input and RawEffect for text that is not
    recognised (including ``setResource:``).
    """
    if value is None:
        return None
    if isinstance(value, EFFECT_CLASSES):
        return value
    if isinstance(value, Mapping):
        try:
            return effect_from_dict(value)
        except ValueError:
            return RawEffect(_literal(value))
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    literal = _decode_literal(text)
    if literal is not None:
        try:
            return effect_from_dict(literal)
        except ValueError as e:
            log.debug("effect_literal_undecodable", text=text, error=str(e))
            return RawEffect(text)

    if text.startswith(_RANDOM_PREFIX):
        members = [m for m in text[len(_RANDOM_PREFIX):].split("|") if m.strip()]
        parsed = tuple(e for e in (parse_effect(m) for m in members) if e is not None)
        if parsed:
            return RandomEffect(parsed)
        return RawEffect(text)

    if text.startswith(_CONDITIONAL_PREFIX):
        condition_text, sep, effect_text = text[len(_CONDITIONAL_PREFIX):].partition("?")
        condition = parse_condition(condition_text)
        effect = parse_effect(effect_text)
        if sep and condition is not None and effect is not None:
            return ConditionalEffect(condition=condition, effect=effect)
        return RawEffect(text)

    match = _SET_FLAG_RE.match(text)
    if match and match.group(1).strip():
        return SetFlagEffect(key=match.group(1).strip(), value=parse_bool(match.group(2)))

    match = _ADD_RESOURCE_RE.match(text)
    if match and match.group(1).strip():
        return AddResourceEffect(
            key=match.group(1).strip(),
            delta=_parse_number(match.group(2)),
        )

    match = _SET_VARIABLE_RE.match(text)
    if match and match.group(1).strip():
        return SetVariableEffect(key=match.group(1).strip(), value=match.group(2))

    match = _GOTO_RE.match(text)
    if match and match.group(1).strip():
        return GotoEffect(target=match.group(1).strip())

    log.debug("effect_passthrough", text=text)
    return RawEffect(text)


def _effect_shorthand(effect: Effect) -> str | None:
    if isinstance(effect, SetFlagEffect):
        return f"setFlag:{effect.key}={_format_bool(effect.value)}"
    if isinstance(effect, AddResourceEffect):
        return f"addResource:{effect.key}={_format_number(effect.delta)}"
    if isinstance(effect, SetVariableEffect):
        return f"setVariable:{effect.key}={effect.value}"
    if isinstance(effect, GotoEffect):
        return f"goto:{effect.target}"
    if isinstance(effect, RandomEffect):
        if not effect.effects:
            return None
        return _RANDOM_PREFIX + "|".join(serialize_effect(e) for e in effect.effects)
    if isinstance(effect, ConditionalEffect):
        return (
            f"{_CONDITIONAL_PREFIX}{serialize_condition(effect.condition)}"
            f"?{serialize_effect(effect.effect)}"
        )
    return None


def serialize_effect(effect: Effect | str) -> str:
    """
    Serialize an effect to text.

    Uses the shorthand when it parses back to an equal effect; setResource,
    multiplyResource and anything the shorthand cannot carry exactly use the
    JSON object literal form.
    """
    if isinstance(effect, str):
        return effect
    if isinstance(effect, RawEffect):
        return effect.text

    text = _effect_shorthand(effect)
    if text is not None and parse_effect(text) == effect:
        return text
    return _literal(effect.to_dict())


def build_effect(
    effect_type: str | None,
    key: str | None,
    value: Any = "",
) -> Effect | None:
    """
    Build an effect from discrete editor fields.

    For goto the ``key`` field carries the target. Returns None when the
    type or key is missing, or when a resource delta is not numeric. Types
    without a structured builder come back as their text form.
    """
    if not effect_type or not key:
        return None

    if effect_type == "setFlag":
        return SetFlagEffect(key=key, value=parse_bool(value))

    if effect_type == "addResource":
        delta = _parse_number(str(value))
        if delta is None:
            return None
        return AddResourceEffect(key=key, delta=delta)

    if effect_type == "setVariable":
        return SetVariableEffect(key=key, value="" if value is None else str(value))

    if effect_type == "goto":
        return GotoEffect(target=str(key))

    return RawEffect(f"{effect_type}:{key}={value}")
