"""STAVE terminal vocabulary and tick announcements."""

from narrative_core import DilationState, make_rng
from narrative_engine.stories.stave import StaveEngine, advance, initial_state
from narrative_engine.stories.stave.interpreter import announce, format_clock, interpret
from narrative_engine.stories.stave.propagator import GENERATOR


def _codes(outcome):
    return [n.code for n in outcome.notices]


def _booted(seed: int = 3):
    state, _ = StaveEngine().boot(initial_state(), make_rng(seed))
    return state


def test_format_clock():
    assert format_clock(0) == "00:00"
    assert format_clock(-4) == "00:00"
    assert format_clock(125) == "02:05"
    assert format_clock(480) == "08:00"


def test_blank_input_is_silent():
    state = initial_state()
    outcome = interpret(state, "   ")
    assert outcome.state is state
    assert outcome.notices == ()
    assert not outcome.recognized


def test_unrecognized_command_leaves_state_alone():
    state = initial_state()
    outcome = interpret(state, "xyzzy now")
    assert outcome.state is state
    assert not outcome.recognized
    assert _codes(outcome) == ["command.unrecognized"]
    assert outcome.notices[0].data["raw"] == "xyzzy now"


def test_status_is_case_insensitive():
    outcome = interpret(initial_state(), "STATUS")
    assert outcome.recognized
    assert _codes(outcome)[:3] == ["status.hull", "status.routes", "status.clock"]
    assert "82.0%" in outcome.notices[0].message


def test_status_shows_objective_clock_once_seen():
    state = interpret(initial_state(), "diagnostics").state
    state = interpret(state, "main").state
    outcome = interpret(state, "status")
    clock = next(n for n in outcome.notices if n.code == "status.clock")
    assert "[objective 08:00]" in clock.message


def test_help_lists_vocabulary():
    outcome = interpret(initial_state(), "help")
    assert "select <route>" in outcome.notices[0].message


def test_routes_table_lists_every_route():
    outcome = interpret(_booted(), "routes")
    assert _codes(outcome).count("routes.entry") == 4
    assert outcome.notices[0].data == {"active": 4, "deprecated": 0}


def test_select_route():
    state = _booted()
    assert "route.selected" in _codes(interpret(state, "select b1"))
    assert _codes(interpret(state, "select zz9")) == ["route.not_found"]
    assert _codes(interpret(state, "select")) == ["route.not_found"]


def test_routes_table_shows_objective_expiry_once_seen():
    state = _booted()
    before = [n.message for n in interpret(state, "routes").notices if n.code == "routes.entry"]
    assert not any("objective" in line for line in before)

    state = interpret(interpret(state, "diagnostics").state, "main").state
    entries = [n for n in interpret(state, "routes").notices if n.code == "routes.entry"]
    for entry, route in zip(entries, state.routes.routes):
        assert f"lapses at objective {format_clock(route.expires_at_objective)}" in entry.message

    expired = DilationState(objective_seconds_left=0.0, multiplier=1.0, subjective_seconds_left=0.0)
    state = state.model_copy(update={"routes": GENERATOR.expire(state.routes, expired)})
    entries = [n for n in interpret(state, "routes").notices if n.code == "routes.entry"]
    assert all("lapsed on the objective clock" in n.message for n in entries)


def test_select_deprecated_route():
    state = _booted()
    expired = DilationState(objective_seconds_left=0.0, multiplier=1.0, subjective_seconds_left=0.0)
    state = state.model_copy(update={"routes": GENERATOR.expire(state.routes, expired)})
    assert _codes(interpret(state, "select B1")) == ["route.deprecated"]


def test_accept_without_pending_task():
    state = initial_state()
    outcome = interpret(state, "accept")
    assert _codes(outcome) == ["task.none_pending"]
    assert outcome.command is None
    assert outcome.state is state


def test_accept_and_decline_pending_task():
    state = initial_state().with_system(pending_task=2)
    accepted = interpret(state, "accept")
    assert accepted.command == "ACCEPT_TASK"
    assert "task.accepted" in _codes(accepted)
    assert accepted.state.constraints.fidelity.tasks_accepted == 1

    declined = interpret(state, "decline")
    assert declined.command == "DECLINE_TASK"
    assert "task.declined" in _codes(declined)


def test_locked_fidelity_refuses_decline():
    state = initial_state()
    fidelity = state.constraints.fidelity.model_copy(update={"phase": "locked"})
    state = state.with_constraints(fidelity=fidelity).with_system(pending_task=1)
    outcome = interpret(state, "decline")
    assert _codes(outcome) == ["task.decline_locked"]
    assert outcome.state is state


def test_trace_and_sync_require_diagnostics():
    state = initial_state()
    assert _codes(interpret(state, "trace directive")) == ["diagnostics.required"]
    assert _codes(interpret(state, "sync")) == ["diagnostics.required"]

    state = interpret(state, "diag").state
    assert state.system.in_diagnostic_mode
    assert "trace.directive.0" in _codes(interpret(state, "trace directive"))
    assert _codes(interpret(state, "trace sonar")) == ["trace.no_match"]
    assert "sync.failed" in _codes(interpret(state, "force"))


def test_main_when_not_in_diagnostics():
    assert _codes(interpret(initial_state(), "main")) == ["main.already"]


def test_seal_and_valve_commands():
    state = initial_state()
    sealed = interpret(state, "seal 2b")
    assert _codes(sealed) == ["seal.sealed"]
    assert "2B" in sealed.state.system.compartments_sealed
    assert _codes(interpret(sealed.state, "seal 2b")) == ["seal.unavailable"]

    valve = interpret(state, "valve")
    assert valve.state.system.valve_released
    assert _codes(interpret(valve.state, "valve")) == ["valve.already"]


def test_degraded_routing_blocks_all_but_diagnostics():
    state = initial_state().with_system(routing_degraded=True)
    outcome = interpret(state, "status")
    assert _codes(outcome) == ["routing.degraded"]
    assert outcome.state is state

    assert interpret(state, "diagnostics").state.system.in_diagnostic_mode


def test_terminal_session_answers_nothing():
    state = initial_state().mark_terminal()
    outcome = interpret(state, "status")
    assert _codes(outcome) == ["session.terminal"]
    assert outcome.notices[0].message == "No response."
    assert outcome.state is state


def test_announce_structural_failure():
    state = initial_state()
    prev = state.with_constraints(hull=state.constraints.hull.with_value(0.02))
    nxt = advance(prev, 1.0, make_rng(0))
    codes = [n.code for n in announce(prev, nxt)]
    assert "rule.T1" in codes
    assert "rule.T4" in codes
    assert codes[-1] == "session.terminal"


def test_announce_task_offer():
    prev = initial_state()
    nxt = prev.with_system(pending_task=1)
    codes = [n.code for n in announce(prev, nxt)]
    assert codes == ["task.offered", "task.risk"]
    assert announce(nxt, nxt) == ()
