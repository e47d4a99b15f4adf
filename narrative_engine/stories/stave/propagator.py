"""STAVE constraint propagation - one tick of objective time.

Fixed order per tick:

1. hull decay and objective clock
2. PME dilation multiplier
3. subjective clock
4. hull phase (and terminal on failure)
5. couplings between constraints
6. transformation rules T1 -> T4
7. route generation, then expiry
8. hysteresis flags

Rules run before the route generator, so T3 sees the deprecation count left
by the previous tick.
"""

from __future__ import annotations

from narrative_core import RandomSource
from narrative_core.logging_config import get_logger, story_context

from ...routes import RouteGenerator
from .rules import HYSTERESIS, RULES, seal_random
from .state import HULL_LADDER, REPAIR_TASKS, RISK_NOMINAL, StaveState

logger = get_logger("stories.stave.propagator")

HULL_DECAY_BASE = 0.035
DECAY_MULTIPLIERS = {"T1": 1.5, "T2": 1.8}

DILATION_BREAKPOINT = 60.0
MILD_GAIN = 2.0
PANIC_FLOOR = 1.0 + (1.0 - DILATION_BREAKPOINT / 100.0) * MILD_GAIN
PANIC_GAIN = 24.2

HULL_CRITICAL = 15.0
CREW_LOSS_RATE = 0.008
RISK_SHIFT_PER_TASK = 0.04
RISK_CEILING = 0.85
CASCADE_SEAL_PERIOD = 45
TASK_PERIOD = 60
TASK_OFFSET = 30
ROUTING_DEGRADED_BELOW = 30.0
ROUTING_FAILURE_RATE = 0.15

GENERATOR = RouteGenerator(ceiling=15)


def dilation_multiplier(hull: float) -> float:
    """PME cycle multiplier for a hull percentage.

    Mild growth above the breakpoint, steep below it; the two pieces meet at
    the breakpoint, so the curve has no jump. Result is in [1, 26].
    """
    hull = min(100.0, max(0.0, hull))
    if hull < DILATION_BREAKPOINT:
        stress = 1.0 - hull / DILATION_BREAKPOINT
        return PANIC_FLOOR + stress * PANIC_GAIN
    return 1.0 + (1.0 - hull / 100.0) * MILD_GAIN


def decay_rate(state: StaveState) -> float:
    rate = HULL_DECAY_BASE
    for rule_id, multiplier in DECAY_MULTIPLIERS.items():
        if state.fired(rule_id):
            rate *= multiplier
    return rate


def advance(state: StaveState, dt: float, rng: RandomSource) -> StaveState:
    """Advance ``state`` by ``dt`` objective seconds."""
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")
    if state.terminal:
        return state

    rate = decay_rate(state)
    s = state.with_clock(dt)

    # 1. decay + objective clock
    hull = s.constraints.hull.with_value(s.hull - rate * dt)
    objective = max(0.0, s.pme.objective_seconds_left - dt)

    # 2-3. dilation + subjective clock
    multiplier = dilation_multiplier(hull.value)
    pme = s.pme.model_copy(update={
        "objective_seconds_left": objective,
        "multiplier": multiplier,
        "subjective_seconds_left": objective * multiplier,
        "cycle_count": s.pme.cycle_count + 1,
    })
    s = s.with_constraints(hull=hull).model_copy(update={"pme": pme})

    # 4. hull phase
    s = _update_hull_phase(s)

    # 5. couplings
    s = _apply_couplings(s, dt, rng)

    # 6. rules
    s = RULES.evaluate(s, rng)

    # 7. routes
    routes = GENERATOR.step(
        s.routes, s.pme, s.system.compartments_open, s.tick_count, s.elapsed, rng,
    )
    if routes is not s.routes:
        s = s.model_copy(update={"routes": routes})

    # 8. hysteresis
    s = HYSTERESIS.update(s)

    logger.debug(
        f"hull={s.hull:.2f} x{multiplier:.2f} "
        f"obj={objective:.0f}s routes={len(s.routes.live_routes)}",
        extra=story_context(s.story, s.tick_count),
    )
    return s


def _update_hull_phase(s: StaveState) -> StaveState:
    hull = s.constraints.hull
    if hull.value <= 0:
        s = s.with_constraints(hull=hull.with_phase("failed", HULL_LADDER)).mark_terminal()
        logger.info(f"structural failure at {s.elapsed:.0f}s", extra=story_context(s.story, s.tick_count))
    elif hull.value < HULL_CRITICAL:
        s = s.with_constraints(hull=hull.with_phase("critical", HULL_LADDER))
    return s


def _apply_couplings(s: StaveState, dt: float, rng: RandomSource) -> StaveState:
    directive = s.constraints.directive
    fidelity = s.constraints.fidelity

    # A: DIRECTIVE actions cost crew
    if directive.directive_actions > 2 and s.system.crew_viable > 2:
        if rng.random() < CREW_LOSS_RATE * dt:
            s = s.with_system(crew_viable=max(1, s.system.crew_viable - 1))

    # B: accepted tasks widen what counts as nominal risk
    if fidelity.tasks_accepted > 0:
        upper = min(RISK_CEILING, RISK_NOMINAL[1] + RISK_SHIFT_PER_TASK * fidelity.tasks_accepted)
        if s.system.risk_nominal != (RISK_NOMINAL[0], upper):
            s = s.with_system(risk_nominal=(RISK_NOMINAL[0], upper))

    # C: periodic sealing during cascade
    if (
        directive.phase == "cascade"
        and s.tick_count % CASCADE_SEAL_PERIOD == 0
        and len(s.system.compartments_open) > 2
    ):
        s = seal_random(s, rng)

    # D: repair task cadence
    if (
        not s.terminal
        and s.tick_count % TASK_PERIOD == TASK_OFFSET
        and s.system.pending_task is None
        and fidelity.tasks_offered < len(REPAIR_TASKS)
    ):
        task = REPAIR_TASKS[fidelity.tasks_offered]
        s = s.with_system(pending_task=task.id).with_constraints(
            fidelity=fidelity.model_copy(update={"tasks_offered": fidelity.tasks_offered + 1})
        )

    # E: command routing degrades as the hull fails
    if s.hull < ROUTING_DEGRADED_BELOW:
        degraded = rng.random() < ROUTING_FAILURE_RATE
    else:
        degraded = False
    if degraded != s.system.routing_degraded:
        s = s.with_system(routing_degraded=degraded)

    return s
