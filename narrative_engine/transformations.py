"""Transformation rules - one-shot, guarded structural changes.

A rule is a pure guard over the snapshot plus an effect that builds the next
snapshot. ``RuleSet.evaluate`` walks the rules in their fixed order, skips the
ones that already fired, refreshes progress, and fires whichever guards hold.
A fired rule is never evaluated again, so evaluating twice is the same as
evaluating once.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence, TypeVar

from narrative_core import NarrativeState, RandomSource, RuleState
from narrative_core.logging_config import get_logger, story_context

logger = get_logger("engine.transformations")

S = TypeVar("S", bound=NarrativeState)

Guard = Callable[[S], bool]
Effect = Callable[[S, RandomSource], S]
ProgressFn = Callable[[S], Optional[float]]


def no_effect(state: S, rng: RandomSource) -> S:
    return state


@dataclass(frozen=True)
class TransformationRule:
    """Definition of a one-shot rule.

    Attributes:
        id: Rule identifier, matches a ``RuleState.id`` in the snapshot
        guard: Total, side-effect free predicate
        effect: Builds the post-firing snapshot (may draw from the rng)
        progress: Optional observable 0..1 measure; ``None`` leaves it alone
        threshold: Scalar trigger recorded on the initial ``RuleState``
        description: Human-readable summary for ``inspect`` output
    """
    id: str
    guard: Guard
    effect: Effect = no_effect
    progress: Optional[ProgressFn] = None
    threshold: Optional[float] = None
    description: str = ""


class RuleSet:
    """Ordered collection of transformation rules for one story."""

    def __init__(self, story: str, rules: Sequence[TransformationRule]):
        ids = [rule.id for rule in rules]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate rule ids in {story}: {ids}")
        self.story = story
        self.rules: tuple[TransformationRule, ...] = tuple(rules)

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(rule.id for rule in self.rules)

    def initial_states(self) -> tuple[RuleState, ...]:
        """Unfired ``RuleState`` entries in evaluation order."""
        return tuple(RuleState(id=rule.id, threshold=rule.threshold) for rule in self.rules)

    def evaluate(self, state: S, rng: RandomSource) -> S:
        """Fire every unfired rule whose guard holds, in order.

        Later rules see the effects of earlier ones within the same pass.
        """
        for rule in self.rules:
            current = state.rule(rule.id)
            if current.fired:
                continue

            if rule.progress is not None:
                progress = rule.progress(state)
                if progress is not None:
                    state = state.with_rule(current.with_progress(progress))

            if not rule.guard(state):
                continue

            state = rule.effect(state, rng)
            state = state.with_rule(state.rule(rule.id).fire())
            logger.info(f"rule {rule.id} fired", extra=story_context(self.story, state.tick_count))

        return state
