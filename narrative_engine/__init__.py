"""Narrative Engine - runtime for constraint-driven interactive stories.

Stories are pure transition functions over frozen snapshots; the engine
schedules them, serializes input against ticks and checks invariants on
every commit.

Core Components:
- StoryEngine: per-story contract (advance, apply, interpret, announce)
- NarrativeSession: one story, one snapshot reference, one random stream
- TickScheduler: asyncio task ticking a session on a real-time interval
- RuleSet / TransformationRule: one-shot rules with monotone progress
- HysteresisTracker: one-way flags derived from state
- RouteGenerator: bounded, expiring route board
- CommandDispatcher: named commands with an optional post-command hook

Usage:
    from narrative_engine import NarrativeSession

    session = NarrativeSession("stave", seed=7)
    session.boot()
    session.run(30)
    outcome = session.execute("routes")
"""

from .commands import ParsedCommand, Vocabulary, VerbSpec, parse_command
from .config import EngineConfig
from .dispatcher import CommandDispatcher
from .hysteresis import HysteresisTracker
from .routes import RouteGenerator
from .scheduler import TickScheduler
from .session import NarrativeSession
from .story import StoryEngine, available_stories, get_story, register_story
from .transformations import RuleSet, TransformationRule

__version__ = "0.1.0"

__all__ = [
    "StoryEngine",
    "register_story",
    "get_story",
    "available_stories",
    "NarrativeSession",
    "TickScheduler",
    "EngineConfig",
    "RuleSet",
    "TransformationRule",
    "HysteresisTracker",
    "RouteGenerator",
    "CommandDispatcher",
    "ParsedCommand",
    "VerbSpec",
    "Vocabulary",
    "parse_command",
]
