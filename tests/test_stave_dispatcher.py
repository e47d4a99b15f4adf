"""STAVE command handlers."""

import pytest

from narrative_core import make_rng
from narrative_engine.stories.stave import advance, initial_state
from narrative_engine.stories.stave.dispatcher import DISPATCHER


def _pending(task_id: int = 1):
    return initial_state().with_system(pending_task=task_id)


def test_accept_task_raises_fidelity_and_clears_pending():
    state = DISPATCHER.apply(_pending(), "ACCEPT_TASK")
    fidelity = state.constraints.fidelity
    assert fidelity.tasks_accepted == 1
    assert fidelity.value == pytest.approx(0.78)
    assert state.system.pending_task is None


def test_accept_task_changes_nothing_else():
    before = _pending()
    fidelity = before.constraints.fidelity
    expected = before.with_constraints(
        fidelity=fidelity.with_value(fidelity.value + 0.06).model_copy(update={"tasks_accepted": 1})
    ).with_system(pending_task=None)

    assert DISPATCHER.apply(before, "ACCEPT_TASK") == expected


def test_decline_task_changes_nothing_else():
    before = _pending()
    fidelity = before.constraints.fidelity
    expected = before.with_constraints(fidelity=fidelity.with_value(fidelity.value - 0.08)).with_system(pending_task=None)

    assert DISPATCHER.apply(before, "DECLINE_TASK") == expected


def test_fidelity_respects_cap_and_floor():
    state = initial_state()
    for _ in range(10):
        state = DISPATCHER.apply(state, "ACCEPT_TASK")
    assert state.constraints.fidelity.value == pytest.approx(0.98)

    for _ in range(20):
        state = DISPATCHER.apply(state, "DECLINE_TASK")
    assert state.constraints.fidelity.value == pytest.approx(0.30)


def test_decline_task_lowers_fidelity():
    state = DISPATCHER.apply(_pending(), "DECLINE_TASK")
    assert state.constraints.fidelity.value == pytest.approx(0.64)
    assert state.constraints.fidelity.tasks_accepted == 0
    assert state.system.pending_task is None


def test_three_accepts_lock_fidelity_on_next_tick():
    state = initial_state()
    for _ in range(3):
        state = DISPATCHER.apply(state, "ACCEPT_TASK")
    assert not state.fired("T2")

    state = advance(state, 1.0, make_rng(0))
    assert state.fired("T2")
    assert state.constraints.fidelity.phase == "locked"
    assert state.hysteresis.is_set("seen_fidelity_lock")


def test_seal_compartment():
    state = DISPATCHER.apply(initial_state(), "SEAL_COMPARTMENT", {"compartment": "3b"})
    assert "3B" in state.system.compartments_sealed
    assert "3B" not in state.system.compartments_open


def test_seal_unknown_or_sealed_compartment_is_no_op():
    state = initial_state()
    assert DISPATCHER.apply(state, "SEAL_COMPARTMENT", {"compartment": "9Z"}) is state
    assert DISPATCHER.apply(state, "SEAL_COMPARTMENT") is state

    sealed = DISPATCHER.apply(state, "SEAL_COMPARTMENT", {"compartment": "1A"})
    assert DISPATCHER.apply(sealed, "SEAL_COMPARTMENT", {"compartment": "1A"}) is sealed


def test_release_valve():
    state = DISPATCHER.apply(initial_state(), "RELEASE_VALVE")
    assert state.system.valve_released
    assert state.hull == pytest.approx(82.5)


def test_leaving_diagnostics_reveals_objective_clock():
    state = DISPATCHER.apply(initial_state(), "ENTER_DIAGNOSTIC")
    assert state.system.in_diagnostic_mode
    assert not state.hysteresis.is_set("seen_objective_clock")

    state = DISPATCHER.apply(state, "EXIT_DIAGNOSTIC")
    assert not state.system.in_diagnostic_mode
    assert state.hysteresis.is_set("seen_objective_clock")

    state = DISPATCHER.apply(state, "ENTER_DIAGNOSTIC")
    assert state.hysteresis.is_set("seen_objective_clock")


def test_terminal_and_unknown_commands_are_no_ops():
    state = initial_state()
    assert DISPATCHER.apply(state, "SELF_DESTRUCT") is state

    terminal = state.mark_terminal()
    assert DISPATCHER.apply(terminal, "ACCEPT_TASK") is terminal
