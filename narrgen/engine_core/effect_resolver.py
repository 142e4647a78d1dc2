"""
Effect Resolver - Applies choice effects to a working state.

Effects run in declaration order against one WorkingState, so each effect
sees everything applied before it. The resolver never touches a Session;
the reducer builds the next snapshot from the working state afterwards.

randomEffect draws from an injectable RandomSource. The default source is
unseeded: random branches are meant to vary between play-throughs.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, Protocol, Sequence, TypeVar
import random

from ..observability.logging import get_logger
from ..story_schema.types import (
    AddResourceEffect,
    ConditionalEffect,
    Effect,
    GotoEffect,
    MultiplyResourceEffect,
    RandomEffect,
    RawEffect,
    SetFlagEffect,
    SetResourceEffect,
    SetVariableEffect,
)
from .conditions import evaluate_condition
from .state import WorkingState

log = get_logger(__name__)

T = TypeVar("T")


class RandomSource(Protocol):
    """Anything with ``choice``; random.Random satisfies it."""

    def choice(self, seq: Sequence[T]) -> T: ...


_default_rng = random.Random()


@dataclass
class EffectResolver:
    """
    Applies effects to a WorkingState in place.

    Stateless between calls apart from the random source.
    """
    rng: RandomSource = field(default_factory=lambda: _default_rng)

    def apply_all(self, effects: Iterable[Effect], state: WorkingState) -> WorkingState:
        for effect in effects:
            self.apply(effect, state)
        return state

    def apply(self, effect: Effect, state: WorkingState) -> None:
        if isinstance(effect, SetFlagEffect):
            state.flags[effect.key] = effect.value

        elif isinstance(effect, AddResourceEffect):
            state.resources[effect.key] = state.resources.get(effect.key, 0) + effect.delta

        elif isinstance(effect, MultiplyResourceEffect):
            state.resources[effect.key] = state.resources.get(effect.key, 0) * effect.factor

        elif isinstance(effect, SetResourceEffect):
            state.resources[effect.key] = effect.value

        elif isinstance(effect, SetVariableEffect):
            state.variables[effect.key] = effect.value

        elif isinstance(effect, GotoEffect):
            # Last goto applied wins.
            state.goto_target = effect.target

        elif isinstance(effect, RandomEffect):
            if not effect.effects:
                return
            picked = self.rng.choice(effect.effects)
            log.debug("random_effect_selected", options=len(effect.effects), picked=repr(picked))
            self.apply(picked, state)

        elif isinstance(effect, ConditionalEffect):
            if evaluate_condition(effect.condition, state):
                self.apply(effect.effect, state)

        elif isinstance(effect, RawEffect):
            log.debug("raw_effect_skipped", text=effect.text)

        else:
            raise TypeError(f"Unknown effect: {effect!r}")
