"""Story engine interface and registry.

A story engine bundles one narrative's initial snapshot, propagator, rule
set, dispatcher and command interpreter behind a single interface the
session can drive without knowing which story it is running.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

from narrative_core import (
    CommandOutcome,
    InvariantViolation,
    NarrativeState,
    Notice,
    RandomSource,
    UnknownStoryError,
)


class StoryEngine(ABC):
    """Base class for every story.

    Subclasses set ``slug``/``title``/``tagline`` and implement the
    transition functions. All transitions are pure: they take a snapshot and
    return a new one.
    """

    slug: str = ""
    title: str = ""
    tagline: str = ""

    # ========== Snapshots ==========

    @abstractmethod
    def initial_state(self) -> NarrativeState:
        """The constant starting snapshot."""

    def boot(self, state: NarrativeState, rng: RandomSource) -> tuple[NarrativeState, tuple[Notice, ...]]:
        """Populate session-start content. Default: nothing to add."""
        return state, ()

    # ========== Transitions ==========

    @abstractmethod
    def advance(self, state: NarrativeState, dt: float, rng: RandomSource) -> NarrativeState:
        """Advance one tick of ``dt`` objective seconds."""

    @abstractmethod
    def apply(self, state: NarrativeState, command: str, payload: Optional[Mapping[str, Any]] = None) -> NarrativeState:
        """Apply a named dispatcher command."""

    @abstractmethod
    def interpret(self, state: NarrativeState, text: str) -> CommandOutcome:
        """Parse one line of user input into a command outcome."""

    def announce(self, previous: NarrativeState, current: NarrativeState) -> tuple[Notice, ...]:
        """Notices implied by a tick (rule firings, expiries, etc.)."""
        return ()

    # ========== Presentation ==========

    def describe(self, state: NarrativeState) -> dict[str, str]:
        """Flat label/value rows for status tables."""
        return {
            "tick": str(state.tick_count),
            "elapsed": f"{state.elapsed:.1f}s",
            "terminal": str(state.terminal),
        }

    # ========== Invariants ==========

    def check_invariants(self, state: NarrativeState) -> None:
        """Raise ``InvariantViolation`` if ``state`` is malformed."""
        if state.story != self.slug:
            self.violation(f"snapshot belongs to '{state.story}'")
        if state.terminal and state.terminal_timestamp is None:
            self.violation("terminal snapshot without timestamp")
        for rule in state.rules:
            if rule.fired and rule.progress != 1.0:
                self.violation(f"rule {rule.id} fired with progress {rule.progress}")

    def check_transition(self, previous: NarrativeState, current: NarrativeState) -> None:
        """Raise ``InvariantViolation`` if a one-way field went backwards."""
        if current.tick_count < previous.tick_count:
            self.violation("tick counter decreased")
        if previous.terminal and not current.terminal:
            self.violation("terminal flag cleared")
        for before, after in zip(previous.rules, current.rules):
            if before.fired and not after.fired:
                self.violation(f"rule {before.id} un-fired")
            if not after.fired and after.progress < before.progress:
                self.violation(f"rule {before.id} progress decreased")
        if not previous.hysteresis.raised <= current.hysteresis.raised:
            lost = sorted(previous.hysteresis.raised - current.hysteresis.raised)
            self.violation(f"hysteresis flags cleared: {lost}")

    def violation(self, detail: str) -> None:
        raise InvariantViolation(self.slug, detail)


# ============================================================================
# Registry
# ============================================================================


_REGISTRY: dict[str, type[StoryEngine]] = {}


def register_story(cls: type[StoryEngine]) -> type[StoryEngine]:
    """Class decorator adding a story engine to the registry."""
    if not cls.slug:
        raise ValueError(f"{cls.__name__} has no slug")
    _REGISTRY[cls.slug] = cls
    return cls


def _load_builtin_stories() -> None:
    # Importing the package runs the @register_story decorators
    from narrative_engine import stories  # noqa: F401


def available_stories() -> list[str]:
    _load_builtin_stories()
    return sorted(_REGISTRY)


def get_story(slug: str) -> StoryEngine:
    """Instantiate the story registered under ``slug``."""
    _load_builtin_stories()
    try:
        cls = _REGISTRY[slug]
    except KeyError:
        raise UnknownStoryError(slug, sorted(_REGISTRY)) from None
    return cls()
