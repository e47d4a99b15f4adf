"""Ekspeditsiya 44: paced reading, perspectives and coupled pressures."""

import pytest

from narrative_core import make_rng
from narrative_engine.stories import ekspeditsiya as ek
from narrative_engine.stories.ekspeditsiya import DISPATCHER, EkspeditsiyaEngine, couple, initial_state, interpret
from narrative_engine.stories.ekspeditsiya_text import PERSPECTIVES, PHASES


def _read_all(state):
    rng = make_rng(0)
    while not state.fully_revealed:
        state = ek.advance(state, 1.0, rng)
    return state


def _codes(outcome):
    return [n.code for n in outcome.notices]


def test_text_shape():
    assert len(PHASES) == 5
    assert PERSPECTIVES == ("galina", "volkov", "petrov")
    assert [len(p.galina) for p in PHASES] == [4, 5, 6, 6, 9]
    assert all(p.paragraphs(name) for p in PHASES for name in PERSPECTIVES)


def test_ticks_reveal_one_paragraph_at_a_time():
    rng = make_rng(0)
    state = ek.advance(initial_state(), 1.0, rng)
    assert state.revealed == 1
    state = _read_all(state)
    assert state.revealed == 4
    assert ek.advance(state, 1.0, rng).revealed == 4


def test_advance_phase_requires_full_reveal():
    state = initial_state()
    assert DISPATCHER.apply(state, "ADVANCE_PHASE") is state


def test_advance_phase_drains_hope_and_couples():
    state = DISPATCHER.apply(_read_all(initial_state()), "ADVANCE_PHASE")
    assert state.phase == 1
    assert state.revealed == 0
    assert state.pressures.value("H") == pytest.approx(0.57)
    assert state.pressures.value("E") == pytest.approx(0.22 + 0.1 * 0.57)
    assert state.pressures.value("X") == pytest.approx(0.10 - 0.05 * 0.57)


def test_no_advance_past_last_phase():
    state = initial_state().model_copy(update={"phase": 4})
    state = _read_all(state)
    assert DISPATCHER.apply(state, "ADVANCE_PHASE") is state


def test_couple_suppression_theatre():
    pressures = couple(initial_state().pressures.set(S=0.7))
    assert pressures.value("T") == pytest.approx(0.3 + 0.15 * 0.7)
    assert pressures.value("R") == pytest.approx(0.35 + 0.1 * (0.3 + 0.15 * 0.7))
    assert pressures.value("S") == pytest.approx(0.7)


def test_switch_perspective_resets_reveal():
    state = _read_all(initial_state())
    state = DISPATCHER.apply(state, "SWITCH_PERSPECTIVE", {"perspective": "Volkov"})
    assert state.perspective == "volkov"
    assert state.revealed == 0
    assert DISPATCHER.apply(state, "SWITCH_PERSPECTIVE", {"perspective": "bob"}) is state


def test_author_list_flag_at_final_phase():
    state = initial_state().model_copy(update={"phase": 4})
    state = DISPATCHER.apply(state, "SWITCH_PERSPECTIVE", {"perspective": "volkov"})
    assert state.hysteresis.is_set("author_list_seen")

    state = DISPATCHER.apply(state, "SWITCH_PERSPECTIVE", {"perspective": "galina"})
    assert state.hysteresis.is_set("author_list_seen")


def test_galina_view_carries_audit_after_author_list():
    state = initial_state().model_copy(update={"phase": 4})
    assert "audit.ghost" not in _codes(interpret(state, "status"))

    state = interpret(state, "volkov").state
    assert "audit.ghost" not in _codes(interpret(state, "status"))

    back = interpret(state, "galina")
    assert _codes(back) == ["perspective.switched", "audit.ghost"]
    assert "Volkov, V.A." in back.notices[1].message
    assert _codes(interpret(back.state, "status")) == ["status.phase", "status.gauges", "audit.ghost"]


def test_collapse_is_one_shot_and_not_terminal():
    state = initial_state()
    state = state.model_copy(update={"pressures": state.pressures.set(H=0.15)})
    state = DISPATCHER.apply(state, "SWITCH_PERSPECTIVE", {"perspective": "petrov"})
    assert state.collapsed
    assert not state.terminal

    state = state.model_copy(update={"pressures": state.pressures.set(H=0.9)})
    state = DISPATCHER.apply(state, "SWITCH_PERSPECTIVE", {"perspective": "galina"})
    assert state.collapsed


def test_interpret_next_and_perspectives():
    state = initial_state()
    assert _codes(interpret(state, "next")) == ["phase.incomplete"]

    moved = interpret(_read_all(state), "continue")
    assert moved.command == "ADVANCE_PHASE"
    assert moved.state.phase == 1
    assert _codes(moved) == ["phase.title"]

    assert interpret(state, "read volkov").state.perspective == "volkov"
    assert interpret(state, "petrov").state.perspective == "petrov"
    assert _codes(interpret(state, "read bob")) == ["perspective.unknown"]
    assert _codes(interpret(state, "status")) == ["status.phase", "status.gauges"]


def test_coda_at_end_of_reading():
    state = initial_state().model_copy(update={"phase": 4})
    assert _codes(interpret(state, "next")) == ["coda.heading", "coda.line"]

    prev = state.model_copy(update={"revealed": len(state.paragraphs) - 1})
    nxt = ek.advance(prev, 1.0, make_rng(0))
    assert [n.code for n in ek.announce(prev, nxt)] == ["paragraph", "coda.heading", "coda.line"]


def test_invariants_hold_through_a_reading():
    engine = EkspeditsiyaEngine()
    state = initial_state()
    rng = make_rng(0)
    for _ in range(40):
        nxt = engine.advance(state, 1.0, rng)
        if nxt.fully_revealed and nxt.phase < ek.LAST_PHASE:
            nxt = engine.apply(nxt, "ADVANCE_PHASE")
        engine.check_invariants(nxt)
        engine.check_transition(state, nxt)
        state = nxt
    assert state.phase == ek.LAST_PHASE
