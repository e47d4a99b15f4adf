"""STAVE story engine."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from narrative_core import CommandOutcome, Notice, RandomSource

from ...story import StoryEngine, register_story
from . import interpreter, propagator
from .dispatcher import DISPATCHER
from .rules import RULES
from .state import (
    BOOT_ROUTES,
    CREW_TOTAL,
    DIRECTIVE_LADDER,
    FIDELITY_LADDER,
    HULL_LADDER,
    STORY_SLUG,
    StaveState,
    build_initial_state,
)


def initial_state() -> StaveState:
    """The STAVE starting snapshot with T1-T4 unfired."""
    return build_initial_state(RULES.initial_states())


@register_story
class StaveEngine(StoryEngine):
    """Keel Station 7G: hull decay under a mission protocol that outranks the crew."""

    slug = STORY_SLUG
    title = "STAVE"
    tagline = "Keel Station 7G, 4,200 m. The hull is failing and the routes keep changing."

    def initial_state(self) -> StaveState:
        return initial_state()

    def boot(self, state: StaveState, rng: RandomSource) -> tuple[StaveState, tuple[Notice, ...]]:
        routes = propagator.GENERATOR.seed(
            state.routes, state.pme, state.system.compartments_open, state.elapsed, rng, BOOT_ROUTES,
        )
        return state.model_copy(update={"routes": routes}), interpreter.welcome_notices()

    def advance(self, state: StaveState, dt: float, rng: RandomSource) -> StaveState:
        return propagator.advance(state, dt, rng)

    def apply(self, state: StaveState, command: str, payload: Optional[Mapping[str, Any]] = None) -> StaveState:
        return DISPATCHER.apply(state, command, payload)

    def interpret(self, state: StaveState, text: str) -> CommandOutcome:
        return interpreter.interpret(state, text)

    def announce(self, previous: StaveState, current: StaveState) -> tuple[Notice, ...]:
        return interpreter.announce(previous, current)

    def describe(self, state: StaveState) -> dict[str, str]:
        rows = super().describe(state)
        c = state.constraints
        rows.update({
            "hull": f"{c.hull.value:.2f}% ({c.hull.phase})",
            "directive": f"{c.directive.phase}, {c.directive.directive_actions} actions",
            "fidelity": f"{c.fidelity.value:.2f} ({c.fidelity.phase}), {c.fidelity.tasks_accepted}/{c.fidelity.tasks_offered} tasks",
            "clock": f"{state.pme.objective_seconds_left:.0f}s objective / {state.pme.subjective_seconds_left:.0f}s subjective",
            "multiplier": f"x{state.pme.multiplier:.2f}",
            "routes": f"{len(state.routes.live_routes)} live / {state.routes.deprecated_count} deprecated",
            "crew": f"{state.system.crew_viable}/{CREW_TOTAL}",
            "sealed": ", ".join(state.system.compartments_sealed) or "none",
            "rules": " ".join(f"{r.id}{'*' if r.fired else ''}" for r in state.rules),
            "flags": ", ".join(sorted(state.hysteresis.raised)) or "none",
        })
        return rows

    # ========== Invariants ==========

    def check_invariants(self, state: StaveState) -> None:
        super().check_invariants(state)
        c = state.constraints
        for constraint, ladder in ((c.directive, DIRECTIVE_LADDER), (c.fidelity, FIDELITY_LADDER), (c.hull, HULL_LADDER)):
            if not constraint.in_bounds():
                self.violation(f"{constraint.name} value {constraint.value} outside [{constraint.lower}, {constraint.upper}]")
            if constraint.phase not in ladder.phases:
                self.violation(f"{constraint.name} phase '{constraint.phase}' not in {ladder.phases}")

        if state.pme.multiplier < 1.0:
            self.violation(f"dilation multiplier {state.pme.multiplier} below 1")

        board = state.routes
        deprecated = sum(1 for r in board.routes if r.deprecated)
        if deprecated != board.deprecated_count:
            self.violation(f"deprecated_count {board.deprecated_count} != {deprecated} deprecated routes")
        if board.next_route_id != len(board.routes) + 1:
            self.violation("route sequence out of step with the board")

        opened = set(state.system.compartments_open)
        if opened & set(state.system.compartments_sealed):
            self.violation("compartment both open and sealed")

        if state.hull <= 0 and not state.terminal:
            self.violation("hull failed without terminal state")

    def check_transition(self, previous: StaveState, current: StaveState) -> None:
        super().check_transition(previous, current)
        c_prev, c_next = previous.constraints, current.constraints
        for before, after, ladder in (
            (c_prev.directive, c_next.directive, DIRECTIVE_LADDER),
            (c_prev.fidelity, c_next.fidelity, FIDELITY_LADDER),
            (c_prev.hull, c_next.hull, HULL_LADDER),
        ):
            if ladder.rank(after.phase) < ladder.rank(before.phase):
                self.violation(f"{after.name} phase de-escalated {before.phase} -> {after.phase}")

        for before, after in zip(previous.routes.routes, current.routes.routes):
            if before.deprecated and not after.deprecated:
                self.violation(f"route {before.id} un-deprecated")
