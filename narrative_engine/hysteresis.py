"""Hysteresis tracking - milestones that stay raised once observed."""

from __future__ import annotations

from typing import Callable, Sequence, TypeVar

from narrative_core import NarrativeState
from narrative_core.logging_config import get_logger, story_context

logger = get_logger("engine.hysteresis")

S = TypeVar("S", bound=NarrativeState)


class HysteresisTracker:
    """Raises named flags when their trigger predicate first holds.

    Flags never clear, even if the predicate later turns false.
    """

    def __init__(self, story: str, triggers: Sequence[tuple[str, Callable[[S], bool]]]):
        self.story = story
        self.triggers = tuple(triggers)

    @property
    def flags(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.triggers)

    def update(self, state: S) -> S:
        flags = state.hysteresis
        for name, predicate in self.triggers:
            if flags.is_set(name) or not predicate(state):
                continue
            flags = flags.raise_flag(name)
            logger.info(f"hysteresis flag '{name}' raised", extra=story_context(self.story, state.tick_count))

        if flags is state.hysteresis:
            return state
        return state.model_copy(update={"hysteresis": flags})
