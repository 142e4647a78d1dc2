"""
Reducer - Advances a session by applying choices.

The reducer is the single point of session transition.
All progress goes through apply_choice().

Design principles:
- Pure function: (session, model, choice_id) -> new session
- Validates before applying: unknown or unavailable choices raise
- The input session is never mutated
- Delegates effect application to EffectResolver
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from ..errors import ErrorKind, NarrativeError
from ..observability.logging import get_logger
from ..story_schema.resolver import group_of, resolve_node_id
from ..story_schema.types import Choice, Number, Scalar, StoryModel, StoryNode
from .conditions import conditions_hold
from .effect_resolver import EffectResolver, RandomSource
from .state import Session, WorkingState

log = get_logger(__name__)


class InvalidChoiceError(NarrativeError):
    """Raised when a choice does not exist on the current node or is not available."""

    def __init__(
        self,
        message: str,
        node_id: str,
        choice_id: str,
        available: Sequence[str] = (),
    ):
        self.node_id = node_id
        self.choice_id = choice_id
        self.available = list(available)
        super().__init__(message, ErrorKind.INVALID_CHOICE)


def start_session(
    model: StoryModel,
    *,
    flags: Mapping[str, bool] | None = None,
    resources: Mapping[str, Number] | None = None,
    variables: Mapping[str, Scalar] | None = None,
    node_id: str | None = None,
    time: int = 0,
) -> Session:
    """
    Create the initial session for a model.

    Override maps win over the model's initial flags/resources on key
    collision. ``node_id``, ``variables`` and ``time`` restore a saved
    position.
    """
    return Session(
        node_id=node_id if node_id else model.start_node,
        flags={**model.flags, **(flags or {})},
        resources={**model.resources, **(resources or {})},
        variables=dict(variables or {}),
        time=time,
    )


def get_available_choices(session: Session, model: StoryModel) -> list[Choice]:
    """
    Choices on the current node whose conditions all hold, in declaration order.

    An unknown current node has no choices.
    """
    node = model.get_node(session.node_id)
    if node is None:
        return []
    return [c for c in node.choices if conditions_hold(c.conditions, session)]


def _current_node(session: Session, model: StoryModel, choice_id: str) -> StoryNode:
    node = model.get_node(session.node_id)
    if node is None:
        raise InvalidChoiceError(
            f"Current node not found: {session.node_id}",
            node_id=session.node_id,
            choice_id=choice_id,
        )
    return node


@dataclass
class Reducer:
    """
    Reducer applies choices to sessions of one model.

    Stateless - all progress is in the Session.
    """
    model: StoryModel
    resolver: EffectResolver = field(default_factory=EffectResolver)

    def available(self, session: Session) -> list[Choice]:
        return get_available_choices(session, self.model)

    def apply(self, session: Session, choice_id: str) -> Session:
        """
        Apply a choice and return the next snapshot.

        Raises InvalidChoiceError if the choice is unknown on the current
        node or its conditions do not hold.
        """
        node = _current_node(session, self.model, choice_id)
        available_ids = [c.id for c in self.available(session)]

        choice = node.get_choice(choice_id)
        if choice is None:
            raise InvalidChoiceError(
                f"Choice not found: {choice_id} (node: {node.id})",
                node_id=session.node_id,
                choice_id=choice_id,
                available=available_ids,
            )
        if choice_id not in available_ids:
            raise InvalidChoiceError(
                f"Choice not available: {choice_id} (node: {node.id})",
                node_id=session.node_id,
                choice_id=choice_id,
                available=available_ids,
            )

        working = WorkingState.from_session(session)
        self.resolver.apply_all(choice.effects, working)

        destination = self._destination(session, choice, working)
        new_session = Session(
            node_id=destination,
            flags=working.flags,
            resources=working.resources,
            variables=working.variables,
            time=session.time + 1,
        )
        log.debug(
            "choice_applied",
            node_id=session.node_id,
            choice_id=choice_id,
            destination=destination,
            time=new_session.time,
        )
        return new_session

    def _destination(self, session: Session, choice: Choice, working: WorkingState) -> str:
        """Goto target if one fired, else the declared target; resolved in the node's group."""
        target = working.goto_target if working.goto_target is not None else choice.target
        resolved = resolve_node_id(target, group_of(session.node_id))
        if not resolved or resolved not in self.model.nodes:
            log.warning(
                "destination_unresolved",
                node_id=session.node_id,
                choice_id=choice.id,
                target=target,
            )
            return session.node_id
        return resolved


def apply_choice(
    session: Session,
    model: StoryModel,
    choice_id: str,
    *,
    rng: RandomSource | None = None,
) -> Session:
    """Convenience function to apply a choice."""
    resolver = EffectResolver(rng) if rng is not None else EffectResolver()
    return Reducer(model, resolver).apply(session, choice_id)
