"""Narrative session - one story, one state reference, one random stream.

The session is the only place where the current snapshot is replaced. Ticks
and commands both take the session lock, so a command never observes a
half-applied tick and the scheduler never overlaps a command.

Usage:
    session = NarrativeSession("stave", seed=7)
    session.boot()
    record = await session.tick()
    outcome = await session.submit("status")
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Mapping, Optional

from narrative_core import (
    CommandOutcome,
    InvariantViolation,
    NarrativeState,
    Notice,
    TickRecord,
    make_rng,
)
from narrative_core.logging_config import get_logger, log_error, log_operation, story_context

from .story import StoryEngine, get_story

logger = get_logger("engine.session")

SEED_SPACE = 2 ** 32


class NarrativeSession:
    """Serializes ticks and commands against a single story snapshot."""

    def __init__(
        self,
        story: StoryEngine | str,
        seed: Optional[int] = None,
        dt: float = 1.0,
    ):
        """Create a session.

        Args:
            story: Story engine instance or registered slug
            seed: Random seed. ``None`` draws one from system entropy and
                records it, so ``reset()`` still replays the same run.
            dt: Default objective seconds per tick
        """
        if dt <= 0:
            raise ValueError(f"dt must be positive, got {dt}")
        self.story = get_story(story) if isinstance(story, str) else story
        self.seed = seed if seed is not None else make_rng().randrange(SEED_SPACE)
        self.dt = dt

        self._rng = make_rng(self.seed)
        self._state: NarrativeState = self.story.initial_state()
        self._history: list[Notice] = []
        self.booted = False

        # Lazy initialization to avoid event loop binding issues
        self._lock: Optional[asyncio.Lock] = None
        self._loop_id: Optional[int] = None

        self.story.check_invariants(self._state)
        log_operation(logger, "Session created", self.story.slug, seed=self.seed)

    def _ensure_lock(self) -> asyncio.Lock:
        """Get or create lock for current event loop."""
        try:
            loop_id = id(asyncio.get_running_loop())
            if self._loop_id is not None and self._loop_id != loop_id:
                self._lock = None
            if self._lock is None:
                self._lock = asyncio.Lock()
                self._loop_id = loop_id
        except RuntimeError:
            if self._lock is None:
                self._lock = asyncio.Lock()
        return self._lock

    # ========== Read interface ==========

    @property
    def snapshot(self) -> NarrativeState:
        """Current frozen snapshot."""
        return self._state

    @property
    def terminal(self) -> bool:
        return self._state.terminal

    @property
    def history(self) -> tuple[Notice, ...]:
        """Every notice produced since boot (or the last reset)."""
        return tuple(self._history)

    # ========== Lifecycle ==========

    def boot(self) -> tuple[Notice, ...]:
        """Populate session-start content. Idempotent."""
        if self.booted:
            return ()
        state, notices = self.story.boot(self._state, self._rng)
        self._commit(state, notices)
        self.booted = True
        return notices

    def reset(self) -> None:
        """Discard the session and start over from the initial snapshot.

        The random stream is re-seeded with the original seed, so a reset
        session replays identically.
        """
        self._rng = make_rng(self.seed)
        self._state = self.story.initial_state()
        self._history.clear()
        self.booted = False
        log_operation(logger, "Session reset", self.story.slug, seed=self.seed)

    # ========== Transitions (async, serialized) ==========

    async def tick(self, dt: Optional[float] = None) -> TickRecord:
        async with self._ensure_lock():
            return self.step(dt)

    async def submit(self, text: str) -> CommandOutcome:
        async with self._ensure_lock():
            return self.execute(text)

    async def apply(self, command: str, payload: Optional[Mapping[str, Any]] = None) -> NarrativeState:
        async with self._ensure_lock():
            return self.apply_now(command, payload)

    # ========== Transitions (synchronous) ==========
    # For headless runs with no event loop. Never mix with a running scheduler.

    def step(self, dt: Optional[float] = None) -> TickRecord:
        """Advance one tick."""
        previous = self._state
        if previous.terminal:
            return TickRecord(tick=previous.tick_count, state=previous)
        current = self.story.advance(previous, dt if dt is not None else self.dt, self._rng)
        notices = self.story.announce(previous, current)
        self._commit(current, notices, previous)
        return TickRecord(tick=current.tick_count, state=current, notices=notices)

    def run(self, ticks: int, stop: Optional[Callable[[NarrativeState], bool]] = None) -> list[TickRecord]:
        """Advance up to ``ticks`` ticks, stopping early at terminal or when ``stop`` holds."""
        records = []
        for _ in range(ticks):
            if self.terminal or (stop is not None and stop(self._state)):
                break
            records.append(self.step())
        return records

    def execute(self, text: str) -> CommandOutcome:
        """Interpret one line of typed input."""
        previous = self._state
        outcome = self.story.interpret(previous, text)
        self._commit(outcome.state, outcome.notices, previous)
        if outcome.command:
            logger.debug(f"'{text.strip()}' -> {outcome.command}", extra=story_context(self.story.slug, previous.tick_count))
        return outcome

    def apply_now(self, command: str, payload: Optional[Mapping[str, Any]] = None) -> NarrativeState:
        """Apply a dispatcher command directly, bypassing the vocabulary."""
        previous = self._state
        state = self.story.apply(previous, command, payload)
        self._commit(state, (), previous)
        return state

    # ========== Internal ==========

    def _commit(
        self,
        state: NarrativeState,
        notices: tuple[Notice, ...] = (),
        previous: Optional[NarrativeState] = None,
    ) -> None:
        try:
            self.story.check_invariants(state)
            if previous is not None:
                self.story.check_transition(previous, state)
        except InvariantViolation as e:
            log_error(logger, "commit", e, self.story.slug, state.tick_count)
            raise

        if state.terminal and (previous is None or not previous.terminal):
            logger.info("session reached terminal state", extra=story_context(self.story.slug, state.tick_count))
        self._state = state
        self._history.extend(notices)
