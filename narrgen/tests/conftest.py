"""
Pytest fixtures for narrgen tests.
"""

import json
from typing import Any, Sequence, TypeVar

import pytest

from ..observability.logging import configure_logging
from ..story_schema import StoryModel, load_model
from ..session.inventory import Entity

T = TypeVar("T")


@pytest.fixture(autouse=True, scope="session")
def quiet_logging():
    """Route structlog through stdlib logging at WARNING for the test run."""
    configure_logging("WARNING")


class FixedRandom:
    """Deterministic RandomSource: always picks the member at ``index``."""

    def __init__(self, index: int = 0):
        self.index = index
        self.calls = 0

    def choice(self, seq: Sequence[T]) -> T:
        self.calls += 1
        return seq[self.index]


@pytest.fixture
def fixed_random() -> FixedRandom:
    return FixedRandom(0)


@pytest.fixture
def linear_document() -> dict[str, Any]:
    """start --c1--> scene1 --c2--> end"""
    return {
        "modelType": "adventure-playthrough",
        "startNode": "start",
        "nodes": {
            "start": {
                "id": "start",
                "text": "You wake up.",
                "choices": [{"id": "c1", "text": "Get up", "target": "scene1"}],
            },
            "scene1": {
                "id": "scene1",
                "text": "A corridor.",
                "choices": [{"id": "c2", "text": "Walk on", "target": "end"}],
            },
            "end": {"id": "end", "text": "The end.", "choices": []},
        },
    }


@pytest.fixture
def linear_model(linear_document: dict[str, Any]) -> StoryModel:
    return load_model(linear_document)


@pytest.fixture
def key_document() -> dict[str, Any]:
    """A key must be picked up before the door opens."""
    return {
        "modelType": "adventure-playthrough",
        "startNode": "hall",
        "flags": {"hasKey": False},
        "resources": {"gold": 5},
        "nodes": {
            "hall": {
                "id": "hall",
                "text": "A locked door and a table.",
                "choices": [
                    {
                        "id": "take_key",
                        "text": "Take the key",
                        "target": "hall",
                        "conditions": ["flag:hasKey=false"],
                        "effects": ["setFlag:hasKey=true"],
                    },
                    {
                        "id": "open_door",
                        "text": "Open the door",
                        "target": "garden",
                        "conditions": ["flag:hasKey=true"],
                    },
                ],
            },
            "garden": {"id": "garden", "text": "Sunlight.", "choices": []},
        },
    }


@pytest.fixture
def key_model(key_document: dict[str, Any]) -> StoryModel:
    return load_model(key_document)


@pytest.fixture
def catalog() -> list[Entity]:
    return [
        Entity(id="mac_burger_001", brand="MacBurger", description="A tasty burger", cost=100),
        Entity(id="coffee_001", brand="CoffeeStand", description="Fragrant coffee", cost=50),
    ]


@pytest.fixture
def write_model(tmp_path):
    """Write a document to a JSON file and return its path."""
    def _write(document, name="model.json"):
        path = tmp_path / name
        if isinstance(document, str):
            path.write_text(document, encoding="utf-8")
        else:
            path.write_text(json.dumps(document), encoding="utf-8")
        return path
    return _write
