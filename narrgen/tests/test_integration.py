"""
Integration tests - End-to-end workflow tests.

Tests the complete flow:
1. Load a model document
2. Start a session
3. List and apply choices until a terminal node
4. Persist and restore the snapshot
"""

import json

import pytest

from .. import (
    GameSession,
    InvalidChoiceError,
    ValidatorOptions,
    apply_choice,
    get_available_choices,
    load_model,
    load_model_file,
    start_session,
)
from ..engine_core.state import session_from_dict
from ..story_schema import ModelValidationError
from .conftest import FixedRandom


ADVENTURE = {
    "modelType": "adventure-playthrough",
    "startNode": "intro/gate",
    "flags": {"metGuard": False},
    "resources": {"gold": 3},
    "nodes": {
        "intro/gate": {
            "id": "intro/gate",
            "text": "A guard blocks the gate.",
            "choices": [
                {
                    "id": "talk",
                    "text": "Talk to the guard",
                    "target": "./gate",
                    "conditions": ["flag:metGuard=false"],
                    "effects": ["setFlag:metGuard=true", "setVariable:mood=friendly"],
                },
                {
                    "id": "bribe",
                    "text": "Pay the guard",
                    "target": "../town/square",
                    "conditions": ["resource:gold>=2", "flag:metGuard=true"],
                    "effects": ["addResource:gold=-2"],
                },
                {
                    "id": "gamble",
                    "text": "Toss a coin",
                    "target": "",
                    "conditions": ["variable:mood==friendly"],
                    "effects": ["randomEffect:goto:/town/square|goto:/intro/jail"],
                },
            ],
        },
        "intro/jail": {"id": "intro/jail", "text": "Locked up.", "choices": []},
        "town/square": {
            "id": "town/square",
            "text": "The market is busy.",
            "choices": [
                {
                    "id": "shop",
                    "text": "Buy bread",
                    "target": "market",
                    "conditions": [{"type": "timeWindow", "start": 0, "end": 5}],
                    "effects": [{"type": "multiplyResource", "key": "gold", "factor": 2}],
                    "outcome": {"type": "ADD_ITEM", "value": "bread"},
                },
            ],
        },
        "town/market": {"id": "town/market", "text": "Fresh bread.", "choices": []},
    },
}


class TestSpecScenarios:
    """End-to-end scenarios on small models."""

    def test_linear_model(self, linear_document):
        model = load_model(linear_document)
        session = start_session(model)
        assert session.node_id == "start"
        assert [c.id for c in get_available_choices(session, model)] == ["c1"]

        session = apply_choice(session, model, "c1")
        assert (session.node_id, session.time) == ("scene1", 1)
        session = apply_choice(session, model, "c2")
        assert (session.node_id, session.time) == ("end", 2)
        assert get_available_choices(session, model) == []

    def test_flag_gates_later_choice(self, key_model):
        session = start_session(key_model)
        assert "open_door" not in [c.id for c in get_available_choices(session, key_model)]
        session = apply_choice(session, key_model, "take_key")
        assert "open_door" in [c.id for c in get_available_choices(session, key_model)]

    @pytest.mark.parametrize("choice_id", ["nope", "", "c2"])
    def test_nonexistent_choice_always_fails(self, linear_model, choice_id):
        with pytest.raises(InvalidChoiceError):
            apply_choice(start_session(linear_model), linear_model, choice_id)


class TestAdventure:
    """A grouped model exercising most condition and effect kinds."""

    @pytest.fixture
    def model(self):
        return load_model(ADVENTURE, ValidatorOptions(allow_circular_references=True))

    def test_dot_names_the_group_not_the_node(self):
        """A bare dot resolves to the group "intro", which is not a node."""
        document = json.loads(json.dumps(ADVENTURE))
        document["nodes"]["intro/gate"]["choices"][0]["target"] = "."
        with pytest.raises(ModelValidationError, match=r"targets non-existent node '\.'"):
            load_model(document, ValidatorOptions(allow_circular_references=True))

    def test_rejected_when_cycles_disallowed(self):
        with pytest.raises(ModelValidationError, match="intro/gate → intro/gate"):
            load_model(ADVENTURE, ValidatorOptions(allow_circular_references=False))

    def test_bribe_route(self, model):
        session = start_session(model)
        assert [c.id for c in get_available_choices(session, model)] == ["talk"]

        session = apply_choice(session, model, "talk")
        assert session.node_id == "intro/gate"
        assert session.variables["mood"] == "friendly"
        assert [c.id for c in get_available_choices(session, model)] == ["bribe", "gamble"]

        session = apply_choice(session, model, "bribe")
        assert session.node_id == "town/square"
        assert session.resources["gold"] == 1

        session = apply_choice(session, model, "shop")
        assert session.node_id == "town/market"
        assert session.resources["gold"] == 2
        assert session.time == 3

    @pytest.mark.parametrize("index,expected", [(0, "town/square"), (1, "intro/jail")])
    def test_gamble(self, model, index, expected):
        session = apply_choice(start_session(model), model, "talk")
        session = apply_choice(session, model, "gamble", rng=FixedRandom(index))
        assert session.node_id == expected

    def test_game_session_with_inventory(self, model):
        from ..session.inventory import Entity

        game = GameSession(model, catalog=[Entity("bread", "Bakery", "A loaf", 2)])
        for choice_id in ["talk", "bribe", "shop"]:
            game.apply_choice(choice_id)
        assert game.inventory.ids() == ["bread"]
        assert game.is_finished()

        saved = json.loads(json.dumps(game.state.to_dict()))
        restored = session_from_dict(saved)
        assert restored == game.state

    def test_file_round_trip(self, model, write_model):
        path = write_model(model.to_dict())
        assert load_model_file(path) == model
