"""Narrative Core - state model for constraint-driven narratives.

This package provides the leaf layer every story engine builds on:

Models (Frozen Snapshots):
- Constraint, PhaseLadder - bounded scalars with severity-ordered phases
- RuleState - observable state of a one-shot transformation rule
- HysteresisFlags - milestones that stay raised once observed
- Route, RouteBoard, RouteClass - ephemeral generated entities
- DilationState - objective / subjective clock pair
- NarrativeState - base snapshot (tick counter, terminal flag, rules)

Notices (Immutable Facts):
- Notice, NoticeKind, CommandOutcome, TickRecord

Errors:
- NarrativeError, InvariantViolation, UnknownStoryError

ARCHITECTURAL PRINCIPLES:
1. The engine owns state; presentation reads frozen snapshots
2. Every transition builds a new snapshot (no in-place mutation)
3. Randomness is injected (replay determinism)
4. One-way flags never revert within a session
"""

from .models import (
    PhaseLadder,
    Constraint,
    RuleState,
    HysteresisFlags,
    RouteClass,
    ROUTE_CLASSIFICATIONS,
    Route,
    RouteBoard,
    DilationState,
    NarrativeState,
)
from .events import (
    NoticeKind,
    Notice,
    notice,
    CommandOutcome,
    TickRecord,
)
from .errors import (
    NarrativeError,
    InvariantViolation,
    UnknownStoryError,
)
from .rng import RandomSource, make_rng

__version__ = "0.1.0"

__all__ = [
    # Models
    "PhaseLadder",
    "Constraint",
    "RuleState",
    "HysteresisFlags",
    "RouteClass",
    "ROUTE_CLASSIFICATIONS",
    "Route",
    "RouteBoard",
    "DilationState",
    "NarrativeState",
    # Notices
    "NoticeKind",
    "Notice",
    "notice",
    "CommandOutcome",
    "TickRecord",
    # Errors
    "NarrativeError",
    "InvariantViolation",
    "UnknownStoryError",
    # Randomness
    "RandomSource",
    "make_rng",
]
