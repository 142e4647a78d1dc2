"""
Inventory - Owned-item set keyed against an entity catalog.

Driven by the restricted outcome vocabulary attached to choices:
ADD_ITEM adds a catalog entity (already owned is a no-op) and REMOVE_ITEM
removes it (not owned is a no-op). The base engine never needs this module.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping

from ..observability.logging import get_logger
from ..story_schema.types import ChoiceOutcome

log = get_logger(__name__)


class OutcomeType(str, Enum):
    """Outcome tags understood by the inventory."""
    ADD_ITEM = "ADD_ITEM"
    REMOVE_ITEM = "REMOVE_ITEM"
    NONE = "NONE"

    @classmethod
    def parse(cls, value: str | None) -> OutcomeType:
        """Case-insensitive lookup; unknown tags map to NONE."""
        if not value:
            return cls.NONE
        try:
            return cls(value.strip().upper())
        except ValueError:
            return cls.NONE


@dataclass(frozen=True)
class Entity:
    """A catalog item that can be owned."""
    id: str
    brand: str = ""
    description: str = ""
    cost: float = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Entity:
        return cls(
            id=str(data["id"]),
            brand=str(data.get("brand", "")),
            description=str(data.get("description", "")),
            cost=data.get("cost", 0) or 0,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "brand": self.brand,
            "description": self.description,
            "cost": self.cost,
        }


Catalog = Mapping[str, Entity]


def normalize_catalog(entities: Catalog | Iterable[Entity] | None) -> dict[str, Entity]:
    """Index entities by id. Accepts a mapping or any iterable of entities."""
    if not entities:
        return {}
    if isinstance(entities, Mapping):
        return dict(entities)
    return {entity.id: entity for entity in entities if entity.id}


class Inventory:
    """
    Set of owned entity ids, in insertion order.

    Only ids present in the catalog can be added.
    """

    def __init__(
        self,
        catalog: Catalog | Iterable[Entity] | None = None,
        initial_items: Iterable[str] = (),
    ):
        self._catalog = normalize_catalog(catalog)
        # dict keeps insertion order
        self._items: dict[str, None] = {}
        for entity_id in initial_items:
            if entity_id in self._catalog:
                self._items[entity_id] = None

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    def add(self, entity_id: str) -> Entity | None:
        """Add a catalog entity. Returns it, or None if the id is not in the catalog."""
        entity = self._catalog.get(entity_id) if entity_id else None
        if entity is None:
            log.debug("inventory_unknown_entity", entity_id=entity_id)
            return None
        self._items[entity_id] = None
        return entity

    def remove(self, entity_id: str) -> Entity | None:
        """Remove an owned entity. Returns it, or None if it was not owned."""
        if not entity_id or entity_id not in self._items:
            return None
        del self._items[entity_id]
        return self._catalog.get(entity_id)

    def has(self, entity_id: str) -> bool:
        return bool(entity_id) and entity_id in self._items

    def list(self) -> list[Entity]:
        """Owned entities in insertion order."""
        return [self._catalog[i] for i in self._items if i in self._catalog]

    def ids(self) -> list[str]:
        """Owned ids in insertion order; the JSON form of the inventory."""
        return list(self._items)

    def clear(self) -> None:
        self._items.clear()

    def apply_outcome(self, outcome: ChoiceOutcome | None) -> bool:
        """
        Apply an ADD_ITEM / REMOVE_ITEM outcome.

        Returns True if the owned set changed.
        """
        if outcome is None or not outcome.value:
            return False
        kind = OutcomeType.parse(outcome.type)
        if kind == OutcomeType.ADD_ITEM:
            if self.has(outcome.value):
                return False
            return self.add(outcome.value) is not None
        if kind == OutcomeType.REMOVE_ITEM:
            return self.remove(outcome.value) is not None
        return False

    def __contains__(self, entity_id: object) -> bool:
        return isinstance(entity_id, str) and self.has(entity_id)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self.list())
