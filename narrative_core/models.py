"""Core state models for narrative constraint simulations.

This module defines the immutable snapshot vocabulary shared by every story:
constraints, transformation rule state, hysteresis flags, ephemeral routes and
the temporal dilation clock pair.

AUTHORITY: The engine owns the snapshot. Presentation only ever receives a
frozen instance, so a reference handed out can never be used to mutate the
running session.

DESIGN PHILOSOPHY: "Value Semantics"
====================================
Every model is frozen. A transition never edits a snapshot in place; it builds
the next one with ``model_copy(update=...)``, which shares untouched
sub-models between the two snapshots instead of deep-copying them.

- **Collections are tuples / frozensets**, never lists or sets.
- **Phases only escalate**: a ``PhaseLadder`` orders a constraint's phase
  labels by severity and refuses to step back down.
- **One-way flags**: ``RuleState.fired``, ``Route.deprecated`` and
  ``HysteresisFlags`` only ever go from false to true.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ============================================================================
# Phase Ladders
# ============================================================================


class PhaseLadder(BaseModel):
    """Severity ordering of a constraint's phase labels (least severe first)."""
    phases: tuple[str, ...] = Field(description="Phase labels in ascending severity")

    model_config = ConfigDict(frozen=True)

    def rank(self, phase: str) -> int:
        try:
            return self.phases.index(phase)
        except ValueError:
            raise ValueError(f"Unknown phase '{phase}' for ladder {self.phases}") from None

    def escalate(self, current: str, target: str) -> str:
        """Return the more severe of ``current`` and ``target``."""
        if self.rank(target) >= self.rank(current):
            return target
        return current

    def at_least(self, current: str, floor: str) -> bool:
        return self.rank(current) >= self.rank(floor)


# ============================================================================
# Constraints
# ============================================================================


class Constraint(BaseModel):
    """A named bounded scalar representing one narrative pressure.

    ``value`` must stay within the closed interval ``[lower, upper]``.
    ``epsilon`` / ``chi`` are auxiliary drift scalars, ``support`` is the
    confidence weight, ``phase`` a label from the story's ``PhaseLadder``.
    """
    name: str = Field(description="Stable constraint identifier (e.g. C1)")
    value: float = Field(description="Current magnitude")
    lower: float = Field(default=0.0, description="Inclusive lower bound")
    upper: float = Field(default=1.0, description="Inclusive upper bound")
    epsilon: float = Field(default=0.0, description="Auxiliary pressure scalar")
    chi: float = Field(default=0.0, description="Auxiliary drift scalar")
    support: float = Field(default=1.0, description="Weight / confidence")
    phase: str = Field(default="stable", description="Discrete phase label")
    kind: Optional[str] = Field(default=None, description="Narrative classification")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_bounds(self) -> "Constraint":
        if self.lower > self.upper:
            raise ValueError(f"{self.name}: lower bound {self.lower} above upper bound {self.upper}")
        if not self.in_bounds():
            raise ValueError(f"{self.name}: value {self.value} outside [{self.lower}, {self.upper}]")
        return self

    def in_bounds(self) -> bool:
        return self.lower <= self.value <= self.upper

    def clamp(self, value: float) -> float:
        return min(self.upper, max(self.lower, value))

    def with_value(self, value: float) -> "Constraint":
        """Return a copy holding ``value`` clamped into the bound."""
        return self.model_copy(update={"value": self.clamp(value)})

    def with_phase(self, phase: str, ladder: PhaseLadder) -> "Constraint":
        """Return a copy escalated to ``phase`` (never de-escalated)."""
        escalated = ladder.escalate(self.phase, phase)
        if escalated == self.phase:
            return self
        return self.model_copy(update={"phase": escalated})


# ============================================================================
# Transformation Rule State
# ============================================================================


class RuleState(BaseModel):
    """Observable state of a one-shot transformation rule.

    The predicate and effect live in the engine (``narrative_engine.transformations``);
    the snapshot only records whether the rule fired and how close it is.
    """
    id: str = Field(description="Stable rule identifier (e.g. T1, TR2)")
    fired: bool = Field(default=False, description="One-shot; never reverts")
    progress: float = Field(default=0.0, ge=0.0, le=1.0, description="0..1, non-decreasing until fired")
    threshold: Optional[float] = Field(default=None, description="Scalar trigger, None when structural")
    reversible: bool = Field(default=False, description="Always False; kept for inspection")

    model_config = ConfigDict(frozen=True)

    def with_progress(self, progress: float) -> "RuleState":
        if self.fired:
            return self
        value = min(1.0, max(self.progress, progress))
        if value == self.progress:
            return self
        return self.model_copy(update={"progress": value})

    def fire(self) -> "RuleState":
        if self.fired:
            return self
        return self.model_copy(update={"fired": True, "progress": 1.0})


# ============================================================================
# Hysteresis
# ============================================================================


class HysteresisFlags(BaseModel):
    """Monotonic set of milestones that have ever been observed."""
    raised: frozenset[str] = Field(default_factory=frozenset)

    model_config = ConfigDict(frozen=True)

    def is_set(self, name: str) -> bool:
        return name in self.raised

    def raise_flag(self, name: str) -> "HysteresisFlags":
        if name in self.raised:
            return self
        return self.model_copy(update={"raised": self.raised | {name}})


# ============================================================================
# Ephemeral Entities (Routes)
# ============================================================================


class RouteClass(str, Enum):
    """Route classifications offered by the route model."""
    PRIMARY = "PRIMARY"
    CONTINGENCY = "CONTINGENCY"
    EMERGENCY = "EMERGENCY"
    LATERAL = "LATERAL"


ROUTE_CLASSIFICATIONS: tuple[RouteClass, ...] = (
    RouteClass.PRIMARY,
    RouteClass.CONTINGENCY,
    RouteClass.EMERGENCY,
    RouteClass.LATERAL,
)


class Route(BaseModel):
    """A generated, time-boxed evacuation option.

    Both expiry thresholds are stored: one on the subjective (dilated) clock
    and one on the objective clock. Routes are never removed from the board;
    they are only flagged ``deprecated``.
    """
    id: str = Field(description="Display id, e.g. B1")
    seq: int = Field(ge=1, description="Monotonic generation sequence")
    classification: RouteClass = Field(description="Route classification")
    path: tuple[str, ...] = Field(description="Ordered junction waypoints")
    through: str = Field(description="Compartment the route passes through")
    viability: int = Field(ge=0, le=100, description="Viability score (percent)")
    generated_at: float = Field(description="Elapsed seconds at generation")
    expires_at_subjective: float = Field(description="Subjective-clock expiry")
    expires_at_objective: float = Field(description="Objective-clock expiry")
    deprecated: bool = Field(default=False)
    requires_valve: bool = Field(default=False)
    requires_manual: bool = Field(default=False)

    model_config = ConfigDict(frozen=True)

    def deprecate(self) -> "Route":
        if self.deprecated:
            return self
        return self.model_copy(update={"deprecated": True})


class RouteBoard(BaseModel):
    """All routes ever generated in a session, plus the sequence counters."""
    routes: tuple[Route, ...] = ()
    next_route_id: int = Field(default=1, ge=1)
    deprecated_count: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)

    @property
    def live_routes(self) -> tuple[Route, ...]:
        return tuple(r for r in self.routes if not r.deprecated)

    def find(self, route_id: str) -> Optional[Route]:
        wanted = route_id.upper()
        for route in self.routes:
            if route.id == wanted:
                return route
        return None


# ============================================================================
# Temporal Dilation
# ============================================================================


class DilationState(BaseModel):
    """Objective countdown and its dilated (subjective) counterpart."""
    objective_seconds_left: float = Field(ge=0.0)
    multiplier: float = Field(default=1.0, ge=1.0)
    subjective_seconds_left: float = Field(ge=0.0)
    cycle_count: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)


# ============================================================================
# Snapshot Base
# ============================================================================


class NarrativeState(BaseModel):
    """Fields every story snapshot carries.

    Stories subclass this with their own constraints and system fields.
    """
    story: str = Field(description="Story slug this snapshot belongs to")
    tick_count: int = Field(default=0, ge=0, description="Monotonic tick counter")
    elapsed: float = Field(default=0.0, ge=0.0, description="Elapsed objective seconds")
    terminal: bool = Field(default=False, description="One-shot end-of-session flag")
    terminal_timestamp: Optional[float] = Field(default=None)
    rules: tuple[RuleState, ...] = Field(default=(), description="Transformation rules in evaluation order")
    hysteresis: HysteresisFlags = Field(default_factory=HysteresisFlags)

    model_config = ConfigDict(frozen=True)

    def rule(self, rule_id: str) -> RuleState:
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        raise KeyError(rule_id)

    def fired(self, rule_id: str) -> bool:
        return self.rule(rule_id).fired

    def with_rule(self, rule_state: RuleState) -> "NarrativeState":
        rules = tuple(rule_state if r.id == rule_state.id else r for r in self.rules)
        return self.model_copy(update={"rules": rules})

    def with_clock(self, dt: float) -> "NarrativeState":
        return self.model_copy(update={
            "tick_count": self.tick_count + 1,
            "elapsed": self.elapsed + dt,
        })

    def mark_terminal(self) -> "NarrativeState":
        """Set the terminal flag once, recording the elapsed time."""
        if self.terminal:
            return self
        return self.model_copy(update={"terminal": True, "terminal_timestamp": self.elapsed})
