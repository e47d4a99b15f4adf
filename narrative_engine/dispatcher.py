"""Command dispatcher - named commands mapped to pure state transitions.

Handlers take the current snapshot and a payload mapping and return the next
snapshot. Dispatch never raises for user-facing conditions: an unknown
command, or any command against a terminal snapshot, returns the input
unchanged.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional, TypeVar

from narrative_core import NarrativeState
from narrative_core.logging_config import get_logger, story_context

logger = get_logger("engine.dispatcher")

S = TypeVar("S", bound=NarrativeState)

Handler = Callable[[S, Mapping[str, Any]], S]


class CommandDispatcher:
    """Registry of command handlers for one story.

    Usage:
        dispatcher = CommandDispatcher("stave")

        @dispatcher.command("RELEASE_VALVE")
        def release_valve(state, payload):
            ...

        next_state = dispatcher.apply(state, "RELEASE_VALVE")
    """

    def __init__(self, story: str, after: Optional[Callable[[S], S]] = None):
        self.story = story
        self._handlers: dict[str, Handler] = {}
        self._after = after

    def command(self, name: str) -> Callable[[Handler], Handler]:
        """Decorator registering ``name`` (case-insensitive)."""
        def decorator(handler: Handler) -> Handler:
            self.register(name, handler)
            return handler
        return decorator

    def register(self, name: str, handler: Handler) -> None:
        key = name.upper()
        if key in self._handlers:
            raise ValueError(f"{self.story}: command {key} already registered")
        self._handlers[key] = handler

    @property
    def commands(self) -> tuple[str, ...]:
        return tuple(self._handlers)

    def knows(self, name: str) -> bool:
        return name.upper() in self._handlers

    def apply(self, state: S, command: str, payload: Optional[Mapping[str, Any]] = None) -> S:
        """Apply ``command`` to ``state``.

        Terminal snapshots and unknown commands come back unchanged. When an
        ``after`` hook was given it runs on every successfully applied
        command (used for hysteresis updates).
        """
        if state.terminal:
            logger.debug(f"{command} ignored, session is terminal", extra=story_context(self.story, state.tick_count))
            return state

        handler = self._handlers.get(command.upper())
        if handler is None:
            logger.debug(f"unknown command {command!r}", extra=story_context(self.story, state.tick_count))
            return state

        next_state = handler(state, payload or {})
        if self._after is not None:
            next_state = self._after(next_state)
        return next_state
