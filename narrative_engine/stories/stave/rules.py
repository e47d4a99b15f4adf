"""STAVE transformation rules (T1-T4) and hysteresis flags."""

from __future__ import annotations

from typing import Optional

from narrative_core import RandomSource

from ...hysteresis import HysteresisTracker
from ...transformations import RuleSet, TransformationRule
from .state import DIRECTIVE_LADDER, FIDELITY_LADDER, STORY_SLUG, StaveState

T1_ONSET = 65.0
T1_SPAN = 25.0
T1_THRESHOLD = 0.6
T2_ACCEPTED = 3
T3_MIN_ROUTES = 3
T3_THRESHOLD = 0.7
T4_HULL = 2.0


def seal_random(state: StaveState, rng: RandomSource) -> StaveState:
    """DIRECTIVE seals one open compartment and counts the action."""
    open_ = state.system.compartments_open
    target = open_[rng.randrange(len(open_))]
    directive = state.constraints.directive
    state = state.model_copy(update={"system": state.system.seal(target)})
    return state.with_constraints(
        directive=directive.model_copy(update={"directive_actions": directive.directive_actions + 1})
    )


# ========== T1: DIRECTIVE Contradiction ==========

def _t1_progress(state: StaveState) -> Optional[float]:
    if state.hull >= T1_ONSET:
        return None
    return min(1.0, (T1_ONSET - state.hull) / T1_SPAN)


def _t1_guard(state: StaveState) -> bool:
    progress = _t1_progress(state)
    return progress is not None and progress >= T1_THRESHOLD


def _t1_effect(state: StaveState, rng: RandomSource) -> StaveState:
    state = state.with_constraints(
        directive=state.constraints.directive.with_phase("cascade", DIRECTIVE_LADDER)
    )
    if len(state.system.compartments_open) > 3:
        state = seal_random(state, rng)
    return state


# ========== T2: FIDELITY Lock ==========

def _t2_progress(state: StaveState) -> float:
    return min(1.0, state.constraints.fidelity.tasks_accepted / T2_ACCEPTED)


def _t2_guard(state: StaveState) -> bool:
    return state.constraints.fidelity.tasks_accepted >= T2_ACCEPTED


def _t2_effect(state: StaveState, rng: RandomSource) -> StaveState:
    return state.with_constraints(
        fidelity=state.constraints.fidelity.with_phase("locked", FIDELITY_LADDER)
    )


# ========== T3: Route Avalanche ==========

def _t3_progress(state: StaveState) -> Optional[float]:
    total = len(state.routes.routes)
    if total <= T3_MIN_ROUTES:
        return None
    return state.routes.deprecated_count / total


def _t3_guard(state: StaveState) -> bool:
    progress = _t3_progress(state)
    return progress is not None and progress >= T3_THRESHOLD


# ========== T4: DIRECTIVE Shell ==========

def _t4_guard(state: StaveState) -> bool:
    return state.hull < T4_HULL


def _t4_effect(state: StaveState, rng: RandomSource) -> StaveState:
    return state.with_constraints(
        directive=state.constraints.directive.with_phase("shell", DIRECTIVE_LADDER)
    )


RULES = RuleSet(STORY_SLUG, [
    TransformationRule(
        id="T1", guard=_t1_guard, effect=_t1_effect, progress=_t1_progress,
        threshold=T1_THRESHOLD, description="DIRECTIVE contradiction: hull loss forces cascade",
    ),
    TransformationRule(
        id="T2", guard=_t2_guard, effect=_t2_effect, progress=_t2_progress,
        threshold=float(T2_ACCEPTED), description="FIDELITY lock after three accepted tasks",
    ),
    TransformationRule(
        id="T3", guard=_t3_guard, progress=_t3_progress,
        threshold=T3_THRESHOLD, description="Route avalanche: most generated routes deprecated",
    ),
    TransformationRule(
        id="T4", guard=_t4_guard, effect=_t4_effect,
        threshold=T4_HULL, description="DIRECTIVE shell: protocol active with nothing left to protect",
    ),
])


HYSTERESIS = HysteresisTracker(STORY_SLUG, [
    ("seen_objective_clock", lambda s: s.system.diagnostic_unlocked and not s.system.in_diagnostic_mode),
    ("seen_fidelity_lock", lambda s: s.fired("T2")),
    ("seen_directive_shell", lambda s: s.fired("T4")),
])
