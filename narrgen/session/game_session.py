"""
Game Session - Stateful wrapper around the pure engine.

A GameSession is one play-through held in memory:
- Holds the model and the current Session snapshot
- Applies choices through the reducer
- Applies choice outcomes to an Inventory
- Keeps previous snapshots for undo

Storage between requests is NOT handled here; callers persist
``state.to_dict()`` and ``inventory.ids()`` however they like.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any, Iterable, Mapping

from ..engine_core.effect_resolver import EffectResolver, RandomSource
from ..engine_core.reducer import Reducer, get_available_choices, start_session
from ..engine_core.state import Session
from ..observability.logging import get_logger
from ..story_schema.types import Choice, ChoiceOutcome, StoryModel
from .inventory import Catalog, Entity, Inventory

log = get_logger(__name__)


@dataclass(frozen=True)
class _HistoryEntry:
    session: Session
    items: tuple[str, ...]
    last_outcome: ChoiceOutcome | None


def _initial_session(model: StoryModel, initial: Session | Mapping[str, Any] | None) -> Session:
    if isinstance(initial, Session):
        return initial
    initial = initial or {}
    return start_session(
        model,
        flags=initial.get("flags"),
        resources=initial.get("resources"),
        variables=initial.get("variables"),
        node_id=initial.get("nodeId") or initial.get("node_id"),
        time=initial.get("time", 0),
    )


class GameSession:
    """
    One play-through of a story model.

    ``choice_outcomes`` supplies outcomes for choices that declare none,
    keyed by choice id.
    """

    def __init__(
        self,
        model: StoryModel,
        *,
        catalog: Catalog | Iterable[Entity] | None = None,
        initial_inventory: Iterable[str] = (),
        choice_outcomes: Mapping[str, ChoiceOutcome] | None = None,
        initial_state: Session | Mapping[str, Any] | None = None,
        rng: RandomSource | None = None,
    ):
        self.model = model
        self.inventory = Inventory(catalog, initial_inventory)
        self._choice_outcomes = dict(choice_outcomes or {})
        resolver = EffectResolver(rng) if rng is not None else EffectResolver()
        self._reducer = Reducer(model, resolver)
        self._session = _initial_session(model, initial_state)
        self._history: list[_HistoryEntry] = []
        self.last_outcome: ChoiceOutcome | None = None

    @property
    def state(self) -> Session:
        return self._session

    @property
    def current_node(self) -> str:
        return self._session.node_id

    @property
    def current_time(self) -> int:
        return self._session.time

    @property
    def history_depth(self) -> int:
        return len(self._history)

    def resolve_outcome(self, choice: Choice) -> ChoiceOutcome | None:
        """The choice's own outcome, else the one registered for its id."""
        if choice.outcome is not None:
            return choice.outcome
        return self._choice_outcomes.get(choice.id)

    def available_choices(self) -> list[Choice]:
        """Available choices with their outcomes resolved."""
        return [
            replace(choice, outcome=self.resolve_outcome(choice))
            for choice in get_available_choices(self._session, self.model)
        ]

    def is_finished(self) -> bool:
        return not get_available_choices(self._session, self.model)

    def apply_choice(self, choice_id: str) -> Session:
        """
        Apply a choice, then its outcome.

        Raises InvalidChoiceError like the reducer; the session is
        unchanged in that case.
        """
        node = self.model.get_node(self._session.node_id)
        choice = node.get_choice(choice_id) if node else None

        new_session = self._reducer.apply(self._session, choice_id)
        self._history.append(_HistoryEntry(
            session=self._session,
            items=tuple(self.inventory.ids()),
            last_outcome=self.last_outcome,
        ))
        self._session = new_session

        outcome = self.resolve_outcome(choice) if choice else None
        if outcome is not None:
            changed = self.inventory.apply_outcome(outcome)
            log.debug(
                "outcome_applied",
                choice_id=choice_id,
                outcome=outcome.type,
                value=outcome.value,
                changed=changed,
            )
        self.last_outcome = outcome
        return new_session

    def advance_time(self, delta: int = 1) -> int:
        """Move the clock forward without choosing. Non-positive deltas are ignored."""
        if delta > 0:
            self._session = self._session.copy_with(time=self._session.time + delta)
        return self._session.time

    def undo(self) -> bool:
        """Restore the snapshot and inventory from before the last applied choice."""
        if not self._history:
            return False
        entry = self._history.pop()
        self._session = entry.session
        self.inventory.clear()
        for entity_id in entry.items:
            self.inventory.add(entity_id)
        self.last_outcome = entry.last_outcome
        return True

    # Inventory helpers

    def list_inventory(self) -> list[Entity]:
        return self.inventory.list()

    def pickup_entity(self, entity_id: str) -> Entity | None:
        return self.inventory.add(entity_id)

    def has_entity(self, entity_id: str) -> bool:
        return self.inventory.has(entity_id)

    def remove_entity(self, entity_id: str) -> bool:
        return self.inventory.remove(entity_id) is not None

    def get_entity(self, entity_id: str) -> Entity | None:
        return self.inventory.catalog.get(entity_id)
