"""
Tests for GameSession, the stateful wrapper around the engine.
"""

import pytest

from ..engine_core import InvalidChoiceError
from ..session import GameSession
from ..story_schema import load_model
from ..story_schema.types import ChoiceOutcome


@pytest.fixture
def shop_model():
    return load_model({
        "modelType": "test-model",
        "startNode": "start",
        "nodes": {
            "start": {
                "id": "start",
                "text": "Start",
                "choices": [
                    {
                        "id": "advance_with_item",
                        "text": "Take an item and go on",
                        "target": "next",
                        "outcome": {"type": "ADD_ITEM", "value": "mac_burger_001"},
                    },
                    {"id": "advance_without_item", "text": "Go on", "target": "next"},
                ],
            },
            "next": {
                "id": "next",
                "text": "Next",
                "choices": [{
                    "id": "eat",
                    "text": "Eat",
                    "target": "end",
                    "outcome": {"type": "REMOVE_ITEM", "value": "mac_burger_001"},
                }],
            },
            "end": {"id": "end", "text": "End"},
        },
    })


class TestGameSession:
    """Tests for GameSession."""

    def test_lists_choices_with_resolved_outcomes(self, shop_model, catalog):
        session = GameSession(shop_model, catalog=catalog)
        choices = session.available_choices()
        assert len(choices) == 2
        with_item = next(c for c in choices if c.id == "advance_with_item")
        assert with_item.outcome.type == "ADD_ITEM"

    def test_applies_choice_and_outcome(self, shop_model, catalog):
        session = GameSession(shop_model, catalog=catalog)
        session.apply_choice("advance_with_item")
        assert session.state.node_id == "next"
        assert [e.id for e in session.list_inventory()] == ["mac_burger_001"]
        assert session.last_outcome.type == "ADD_ITEM"

    def test_outcome_map_fallback(self, shop_model, catalog):
        session = GameSession(
            shop_model,
            catalog=catalog,
            choice_outcomes={"advance_without_item": ChoiceOutcome("ADD_ITEM", "coffee_001")},
        )
        assert session.available_choices()[1].outcome == ChoiceOutcome("ADD_ITEM", "coffee_001")
        session.apply_choice("advance_without_item")
        assert [e.id for e in session.list_inventory()] == ["coffee_001"]

    def test_remove_outcome(self, shop_model, catalog):
        session = GameSession(shop_model, catalog=catalog)
        session.apply_choice("advance_with_item")
        session.apply_choice("eat")
        assert session.list_inventory() == []
        assert session.is_finished()
        assert session.current_time == 2

    def test_choice_without_outcome_clears_last_outcome(self, shop_model, catalog):
        session = GameSession(shop_model, catalog=catalog)
        session.apply_choice("advance_without_item")
        assert session.last_outcome is None

    def test_invalid_choice_leaves_session_unchanged(self, shop_model, catalog):
        session = GameSession(shop_model, catalog=catalog)
        with pytest.raises(InvalidChoiceError):
            session.apply_choice("eat")
        assert session.current_node == "start"
        assert session.history_depth == 0

    def test_undo(self, shop_model, catalog):
        session = GameSession(shop_model, catalog=catalog)
        session.apply_choice("advance_with_item")
        session.apply_choice("eat")
        assert session.undo()
        assert session.current_node == "next"
        assert session.has_entity("mac_burger_001")
        assert session.undo()
        assert session.current_node == "start"
        assert session.list_inventory() == []
        assert not session.undo()

    def test_advance_time(self, shop_model):
        session = GameSession(shop_model)
        assert session.advance_time() == 1
        assert session.advance_time(3) == 4
        assert session.advance_time(0) == 4
        assert session.advance_time(-2) == 4

    def test_initial_state(self, shop_model, catalog):
        session = GameSession(
            shop_model,
            catalog=catalog,
            initial_state={"nodeId": "next", "time": 7, "flags": {"x": True}},
            initial_inventory=["mac_burger_001", "not_in_catalog"],
        )
        assert session.current_node == "next"
        assert session.current_time == 7
        assert session.state.flags["x"] is True
        assert session.inventory.ids() == ["mac_burger_001"]

    def test_entity_helpers(self, shop_model, catalog):
        session = GameSession(shop_model, catalog=catalog)
        assert session.pickup_entity("coffee_001").brand == "CoffeeStand"
        assert session.pickup_entity("unknown") is None
        assert session.get_entity("mac_burger_001").cost == 100
        assert session.remove_entity("coffee_001")
        assert not session.remove_entity("coffee_001")

    def test_works_without_catalog(self, linear_model):
        session = GameSession(linear_model)
        session.apply_choice("c1")
        session.apply_choice("c2")
        assert session.is_finished()
        assert session.list_inventory() == []
