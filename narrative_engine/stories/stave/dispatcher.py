"""STAVE command handlers.

Each handler touches only its slice of the snapshot. None of them draw
randomness.
"""

from __future__ import annotations

from typing import Any, Mapping

from ...dispatcher import CommandDispatcher
from .rules import HYSTERESIS
from .state import STORY_SLUG, StaveState

FIDELITY_ACCEPT_GAIN = 0.06
FIDELITY_DECLINE_LOSS = 0.08
VALVE_HULL_GAIN = 0.5

DISPATCHER = CommandDispatcher(STORY_SLUG, after=HYSTERESIS.update)


@DISPATCHER.command("ACCEPT_TASK")
def accept_task(state: StaveState, payload: Mapping[str, Any]) -> StaveState:
    fidelity = state.constraints.fidelity
    fidelity = fidelity.with_value(fidelity.value + FIDELITY_ACCEPT_GAIN).model_copy(
        update={"tasks_accepted": fidelity.tasks_accepted + 1}
    )
    return state.with_constraints(fidelity=fidelity).with_system(pending_task=None)


@DISPATCHER.command("DECLINE_TASK")
def decline_task(state: StaveState, payload: Mapping[str, Any]) -> StaveState:
    fidelity = state.constraints.fidelity
    return state.with_constraints(
        fidelity=fidelity.with_value(fidelity.value - FIDELITY_DECLINE_LOSS)
    ).with_system(pending_task=None)


@DISPATCHER.command("ENTER_DIAGNOSTIC")
def enter_diagnostic(state: StaveState, payload: Mapping[str, Any]) -> StaveState:
    return state.with_system(diagnostic_unlocked=True, in_diagnostic_mode=True)


@DISPATCHER.command("EXIT_DIAGNOSTIC")
def exit_diagnostic(state: StaveState, payload: Mapping[str, Any]) -> StaveState:
    return state.with_system(in_diagnostic_mode=False)


@DISPATCHER.command("RELEASE_VALVE")
def release_valve(state: StaveState, payload: Mapping[str, Any]) -> StaveState:
    hull = state.constraints.hull
    return state.with_constraints(
        hull=hull.with_value(hull.value + VALVE_HULL_GAIN)
    ).with_system(valve_released=True)


@DISPATCHER.command("SEAL_COMPARTMENT")
def seal_compartment(state: StaveState, payload: Mapping[str, Any]) -> StaveState:
    compartment = str(payload.get("compartment") or "").upper()
    sealed = state.system.seal(compartment)
    if sealed is state.system:
        return state
    return state.model_copy(update={"system": sealed})
