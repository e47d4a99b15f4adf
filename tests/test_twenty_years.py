"""Twenty Years Away: scrubber-driven displacement and rules."""

import pytest

from narrative_core import NoticeKind, make_rng
from narrative_engine import NarrativeSession
from narrative_engine.stories import twenty_years as ty
from narrative_engine.stories.twenty_years import DISPATCHER, TwentyYearsEngine, initial_state, interpret


def _scrub(state, position):
    return DISPATCHER.apply(state, "SET_SCRUB", {"position": position})


def _codes(outcome):
    return [n.code for n in outcome.notices]


def test_initial_state():
    state = initial_state()
    assert state.system.scrub == 0.0
    assert state.system.sync_point == "SP1"
    assert state.snare.chi == pytest.approx(0.3)
    assert not any(r.fired for r in state.rules)
    TwentyYearsEngine().check_invariants(state)


def test_scrub_drives_chi_displacement_and_rope():
    state = _scrub(initial_state(), 20)
    assert state.snare.chi == pytest.approx(0.3 + (20 / 30) * 0.55)
    assert state.ucz.delta_t == pytest.approx(4.4)
    assert state.rope.value == pytest.approx(0.85 - 0.2 * 0.77)
    assert state.system.sync_point == "SP2"
    assert not state.ucz.engaged


def test_tr1_fires_on_chi_threshold():
    state = _scrub(initial_state(), 28)
    assert state.fired("TR1")
    assert state.snare.phase == "post_TR1"
    assert state.ucz.visible
    assert state.hysteresis.is_set("c1_perspective_shift")
    assert state.hysteresis.is_set("ucz_visible")
    assert state.system.attractor_proximity == pytest.approx(0.25)


def test_engagement_is_one_way():
    state = _scrub(initial_state(), 50)
    assert state.ucz.engaged and state.ucz.active
    state = _scrub(state, 0)
    assert state.ucz.engaged
    assert state.ucz.delta_t == 0.0


def test_skipping_straight_to_the_end_leaves_tr1_unfired():
    state = _scrub(initial_state(), 100)
    assert not state.fired("TR1")
    assert state.fired("TR2") and state.fired("TR3") and state.fired("TR4")
    assert state.rope.phase == "piton"
    assert state.rope.kind == "piton"
    assert not state.terminal

    # Household pressure is only recomputed below the engagement point
    for _ in range(11):
        state = DISPATCHER.apply(state, "INCREMENT_CHI")
    assert state.fired("TR1")
    assert state.terminal
    assert state.system.attractor_proximity == 1.0


def test_full_reading_reaches_terminal():
    state = initial_state()
    for position in (10, 28, 60, 80, 92, 96):
        state = _scrub(state, position)
    assert all(r.fired for r in state.rules)
    assert state.terminal
    assert state.hysteresis.is_set("metric_trust_eroded")
    assert state.system.sync_point == "SP5"

    assert _scrub(state, 10) is state


def test_set_scrub_clamps():
    assert _scrub(initial_state(), 150).system.scrub == 100.0
    assert _scrub(initial_state(), -5).system.scrub == 0.0


def test_idle_drift_caps_at_98():
    rng = make_rng(0)
    state = initial_state()
    for _ in range(10):
        state = ty.advance(state, 1.0, rng)
    assert state.system.scrub == pytest.approx(3.0)
    assert state.system.idle_ticks == 10

    state = _scrub(state, 97.9)
    state = ty.advance(state, 1.0, rng)
    state = ty.advance(state, 1.0, rng)
    assert state.system.scrub == pytest.approx(98.0)


def test_reveal_omega_once_per_index():
    state = DISPATCHER.apply(initial_state(), "REVEAL_OMEGA", {"index": 1})
    assert state.system.omega_revealed == (False, True, False)
    assert state.system.probe_count == 1

    assert DISPATCHER.apply(state, "REVEAL_OMEGA", {"index": 1}).system.probe_count == 1
    assert DISPATCHER.apply(state, "REVEAL_OMEGA", {"index": 7}).system.probe_count == 1
    assert DISPATCHER.apply(state, "REVEAL_OMEGA", {"index": "0"}).system.probe_count == 1


def test_interpret_scrub_verbs():
    state = initial_state()
    forward = interpret(state, "forward")
    assert forward.command == "SET_SCRUB"
    assert forward.state.system.scrub == 5.0

    assert interpret(forward.state, "back 10").state.system.scrub == 0.0
    assert interpret(state, "scrub 42").state.system.scrub == 42.0
    assert _codes(interpret(state, "scrub abc")) == ["scrub.invalid"]


def test_interpret_probe():
    state = initial_state()
    first = interpret(state, "probe 2")
    assert _codes(first) == ["probe.revealed", "probe.gap"]
    assert first.state.system.omega_revealed[1]

    again = interpret(first.state, "probe 2")
    assert _codes(again) == ["probe.seen"]
    assert again.state is first.state

    assert _codes(interpret(state, "probe 4")) == ["probe.invalid"]
    assert _codes(interpret(state, "probe")) == ["probe.invalid"]


@pytest.mark.parametrize("arg", ["nan", "inf", "-inf", "NaN"])
def test_probe_rejects_non_finite_numbers(arg):
    state = initial_state()
    outcome = interpret(state, f"probe {arg}")
    assert _codes(outcome) == ["probe.invalid"]
    assert outcome.state is state


@pytest.mark.parametrize("text", ["scrub nan", "scrub inf", "forward nan", "back nan", "forward -inf"])
def test_scrub_verbs_reject_non_finite_numbers(text):
    state = _scrub(initial_state(), 60)
    outcome = interpret(state, text)
    assert _codes(outcome) == ["scrub.invalid"]
    assert outcome.state is state
    assert outcome.state.system.scrub == 60.0


def test_set_scrub_ignores_bad_positions():
    state = _scrub(initial_state(), 60)
    for position in (float("nan"), float("inf"), "far", None):
        assert DISPATCHER.apply(state, "SET_SCRUB", {"position": position}) == state


def test_session_reports_non_finite_input_as_notices():
    session = NarrativeSession("twenty-years", seed=1)
    for text in ("probe nan", "probe inf", "forward nan"):
        outcome = session.execute(text)
        assert outcome.notices[0].kind == NoticeKind.ERROR
    assert session.snapshot.system.scrub == 0.0
    assert session.snapshot.system.probe_count == 0


def test_interpret_read_and_status():
    state = initial_state()
    assert _codes(interpret(state, "read")) == ["panel.village", "panel.reentry"]
    assert _codes(interpret(state, "status")) == ["status.scrub", "status.rules"]
    assert not interpret(state, "jump").recognized


def test_announce_reports_rule_and_panel_changes():
    prev = initial_state()
    nxt = _scrub(prev, 28)
    codes = [n.code for n in ty.announce(prev, nxt)]
    assert codes[:2] == ["panel.village", "panel.reentry"]
    assert "rule.TR1" in codes


def test_transition_checks_hold_across_a_reading():
    engine = TwentyYearsEngine()
    state = initial_state()
    for position in (5, 28, 80, 40, 92, 10, 96):
        nxt = _scrub(state, position)
        engine.check_invariants(nxt)
        engine.check_transition(state, nxt)
        state = nxt
