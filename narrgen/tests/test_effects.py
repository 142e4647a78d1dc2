"""
Tests for effect application and condition evaluation.
"""

import random

import pytest

from ..engine_core import apply_choice, start_session
from ..engine_core.conditions import conditions_hold, evaluate_condition
from ..engine_core.effect_resolver import EffectResolver
from ..engine_core.state import Session, WorkingState
from ..story_schema import load_model
from ..story_schema.types import (
    AddResourceEffect,
    ConditionalEffect,
    FlagCondition,
    GotoEffect,
    MultiplyResourceEffect,
    RandomEffect,
    RawCondition,
    RawEffect,
    ResourceCondition,
    SetFlagEffect,
    SetResourceEffect,
    SetVariableEffect,
    TimeWindowCondition,
    VariableCondition,
)
from .conftest import FixedRandom


class TestEffectResolver:
    """Tests for EffectResolver.apply."""

    def test_resource_effects(self):
        state = WorkingState(resources={"gold": 10})
        EffectResolver().apply_all([
            AddResourceEffect("gold", -3),
            MultiplyResourceEffect("gold", 2),
            AddResourceEffect("gems", 1),
            SetResourceEffect("hp", 100),
        ], state)
        assert state.resources == {"gold": 14, "gems": 1, "hp": 100}

    def test_multiply_unset_resource_is_zero(self):
        state = WorkingState()
        EffectResolver().apply(MultiplyResourceEffect("gold", 3), state)
        assert state.resources["gold"] == 0

    def test_flag_and_variable(self):
        state = WorkingState()
        resolver = EffectResolver()
        resolver.apply(SetFlagEffect("door", True), state)
        resolver.apply(SetVariableEffect("name", "kai"), state)
        assert state.flags == {"door": True}
        assert state.variables == {"name": "kai"}

    def test_goto_records_target(self):
        state = WorkingState()
        EffectResolver().apply_all([GotoEffect("a"), GotoEffect("b")], state)
        assert state.goto_target == "b"

    def test_random_effect_uses_injected_source(self):
        rng = FixedRandom(1)
        state = WorkingState(resources={"gold": 0})
        effect = RandomEffect((AddResourceEffect("gold", 1), AddResourceEffect("gold", 10)))
        EffectResolver(rng).apply(effect, state)
        assert state.resources["gold"] == 10
        assert rng.calls == 1

    def test_random_effect_with_seeded_random(self):
        effect = RandomEffect((SetVariableEffect("pick", "a"), SetVariableEffect("pick", "b")))
        picks = set()
        resolver = EffectResolver(random.Random(7))
        for _ in range(50):
            state = WorkingState()
            resolver.apply(effect, state)
            picks.add(state.variables["pick"])
        assert picks == {"a", "b"}

    def test_empty_random_effect_is_noop(self):
        state = WorkingState()
        EffectResolver(FixedRandom()).apply(RandomEffect(()), state)
        assert state == WorkingState()

    def test_conditional_sees_earlier_effects(self):
        state = WorkingState()
        EffectResolver().apply_all([
            SetFlagEffect("lit", True),
            ConditionalEffect(FlagCondition("lit", True), AddResourceEffect("light", 1)),
            ConditionalEffect(FlagCondition("lit", False), AddResourceEffect("dark", 1)),
        ], state)
        assert state.resources == {"light": 1}

    def test_raw_effect_is_noop(self):
        state = WorkingState(flags={"a": True})
        EffectResolver().apply(RawEffect("setResource:hp=10"), state)
        assert state == WorkingState(flags={"a": True})


class TestConditions:
    """Tests for evaluate_condition."""

    @pytest.fixture
    def session(self):
        return Session(
            node_id="n",
            flags={"a": True},
            resources={"gold": 10},
            variables={"name": "alice smith", "count": 3, "brave": True},
            time=5,
        )

    def test_flags(self, session):
        assert evaluate_condition(FlagCondition("a", True), session)
        assert evaluate_condition(FlagCondition("missing", False), session)
        assert not evaluate_condition(FlagCondition("missing", True), session)

    @pytest.mark.parametrize("op,value,expected", [
        (">=", 10, True),
        (">", 10, False),
        ("<=", 10, True),
        ("<", 11, True),
        ("==", 10, True),
        ("==", 9, False),
    ])
    def test_resources(self, session, op, value, expected):
        assert evaluate_condition(ResourceCondition("gold", op, value), session) is expected

    def test_unset_resource_is_zero(self, session):
        assert evaluate_condition(ResourceCondition("gems", "==", 0), session)

    def test_variables(self, session):
        assert evaluate_condition(VariableCondition("name", "==", "alice smith"), session)
        assert evaluate_condition(VariableCondition("name", "!=", "bob"), session)
        assert evaluate_condition(VariableCondition("name", "contains", "smith"), session)
        assert evaluate_condition(VariableCondition("name", "!contains", "jones"), session)
        assert evaluate_condition(VariableCondition("count", "==", "3"), session)
        assert evaluate_condition(VariableCondition("brave", "==", "true"), session)
        assert evaluate_condition(VariableCondition("unset", "==", ""), session)

    def test_time_window_is_inclusive(self, session):
        assert evaluate_condition(TimeWindowCondition(5, 5), session)
        assert evaluate_condition(TimeWindowCondition(0, 10), session)
        assert not evaluate_condition(TimeWindowCondition(6, 10), session)

    def test_raw_condition_does_not_gate(self, session):
        assert evaluate_condition(RawCondition("visited:start"), session)

    def test_conditions_hold(self, session):
        assert conditions_hold([], session)
        assert conditions_hold([FlagCondition("a", True), TimeWindowCondition(0, 9)], session)
        assert not conditions_hold([FlagCondition("a", True), FlagCondition("a", False)], session)


class TestEffectsThroughChoices:
    """Effects applied by apply_choice."""

    def test_set_resource_and_legacy_add_resource(self):
        model = load_model({
            "startNode": "start",
            "resources": {"gold": 0},
            "nodes": {
                "start": {"id": "start", "choices": [{
                    "id": "c1", "target": "mid",
                    "effects": [{"type": "setResource", "key": "gold", "value": 100}],
                }]},
                "mid": {"id": "mid", "choices": [{
                    "id": "c2", "target": "end",
                    "effects": [{"type": "addResource", "key": "gold", "value": 5}],
                }]},
                "end": {"id": "end"},
            },
        })
        session = apply_choice(start_session(model), model, "c1")
        assert session.resources["gold"] == 100
        session = apply_choice(session, model, "c2")
        assert session.resources["gold"] == 105

    def test_random_goto(self):
        model = load_model({
            "startNode": "s",
            "nodes": {
                "s": {"id": "s", "choices": [{"id": "roll", "target": "", "effects": [
                    "randomEffect:goto:win|goto:lose",
                ]}]},
                "win": {"id": "win"},
                "lose": {"id": "lose"},
            },
        })
        session = start_session(model)
        assert apply_choice(session, model, "roll", rng=FixedRandom(0)).node_id == "win"
        assert apply_choice(session, model, "roll", rng=FixedRandom(1)).node_id == "lose"

    def test_conditional_goto_that_does_not_fire(self):
        model = load_model({
            "startNode": "s",
            "nodes": {
                "s": {"id": "s", "choices": [{"id": "c", "target": "plain", "effects": [
                    "conditionalEffect:flag:vip=true?goto:lounge",
                ]}]},
                "plain": {"id": "plain"},
                "lounge": {"id": "lounge"},
            },
        })
        session = start_session(model)
        assert apply_choice(session, model, "c").node_id == "plain"
        vip = start_session(model, flags={"vip": True})
        assert apply_choice(vip, model, "c").node_id == "lounge"
