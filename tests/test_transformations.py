"""Transformation rules, hysteresis tracking and command dispatch."""

import pytest

from narrative_core import NarrativeState, make_rng
from narrative_engine import (
    CommandDispatcher,
    HysteresisTracker,
    RuleSet,
    TransformationRule,
    parse_command,
)
from narrative_engine.commands import VerbSpec, Vocabulary


class Counter(NarrativeState):
    value: int = 0


def _bump(state: Counter, rng) -> Counter:
    return state.model_copy(update={"value": state.value + 10})


RULES = RuleSet("counter", [
    TransformationRule(id="R1", guard=lambda s: s.value >= 3, effect=_bump,
                       progress=lambda s: min(1.0, s.value / 3)),
    TransformationRule(id="R2", guard=lambda s: s.fired("R1")),
])


def _state(value: int = 0) -> Counter:
    return Counter(story="counter", value=value, rules=RULES.initial_states())


def test_rule_below_threshold_only_updates_progress():
    state = RULES.evaluate(_state(1), make_rng(0))
    assert not state.fired("R1")
    assert state.rule("R1").progress == pytest.approx(1 / 3)
    assert state.value == 1


def test_rule_fires_and_applies_effect():
    state = RULES.evaluate(_state(3), make_rng(0))
    assert state.fired("R1")
    assert state.rule("R1").progress == 1.0
    assert state.value == 13


def test_later_rules_see_earlier_firings_in_same_pass():
    state = RULES.evaluate(_state(3), make_rng(0))
    assert state.fired("R2")


def test_evaluate_is_idempotent():
    once = RULES.evaluate(_state(5), make_rng(0))
    twice = RULES.evaluate(once, make_rng(0))
    assert twice.value == once.value == 15
    assert twice == once


def test_progress_never_decreases():
    state = RULES.evaluate(_state(2), make_rng(0))
    state = RULES.evaluate(state.model_copy(update={"value": 0}), make_rng(0))
    assert state.rule("R1").progress == pytest.approx(2 / 3)


def test_duplicate_rule_ids_rejected():
    rule = TransformationRule(id="X", guard=lambda s: True)
    with pytest.raises(ValueError):
        RuleSet("dup", [rule, rule])


def test_hysteresis_flag_survives_predicate_turning_false():
    tracker = HysteresisTracker("counter", [("big", lambda s: s.value > 5)])
    state = tracker.update(_state(7))
    assert state.hysteresis.is_set("big")

    state = tracker.update(state.model_copy(update={"value": 0}))
    assert state.hysteresis.is_set("big")


def test_hysteresis_returns_same_snapshot_when_nothing_raised():
    tracker = HysteresisTracker("counter", [("big", lambda s: s.value > 5)])
    state = _state(1)
    assert tracker.update(state) is state
    assert tracker.flags == ("big",)


def _dispatcher(after=None) -> CommandDispatcher:
    dispatcher = CommandDispatcher("counter", after=after)

    @dispatcher.command("add")
    def add(state, payload):
        return state.model_copy(update={"value": state.value + payload.get("n", 1)})

    return dispatcher


def test_dispatcher_is_case_insensitive():
    dispatcher = _dispatcher()
    assert dispatcher.knows("ADD")
    assert dispatcher.apply(_state(), "Add", {"n": 4}).value == 4


def test_dispatcher_unknown_and_terminal_are_no_ops():
    dispatcher = _dispatcher()
    state = _state(2)
    assert dispatcher.apply(state, "MULTIPLY") is state

    terminal = state.mark_terminal()
    assert dispatcher.apply(terminal, "ADD") is terminal


def test_dispatcher_runs_after_hook():
    tracker = HysteresisTracker("counter", [("big", lambda s: s.value > 5)])
    dispatcher = _dispatcher(after=tracker.update)
    state = dispatcher.apply(_state(), "ADD", {"n": 6})
    assert state.hysteresis.is_set("big")


def test_dispatcher_rejects_duplicate_registration():
    dispatcher = _dispatcher()
    with pytest.raises(ValueError):
        dispatcher.register("ADD", lambda s, p: s)


def test_parse_command():
    assert parse_command("   ") is None
    parsed = parse_command("  SELECT  B12 ")
    assert parsed.verb == "select"
    assert parsed.args == ("b12",)
    assert parsed.arg == "b12"
    assert parsed.raw == "SELECT  B12"


def test_vocabulary_aliases_and_duplicates():
    vocab = Vocabulary([VerbSpec("diagnostics", aliases=("diag",)), VerbSpec("help")])
    assert vocab.resolve("DIAG") == "diagnostics"
    assert vocab.resolve("nope") is None
    assert len(vocab.help_lines()) == 2
    with pytest.raises(ValueError):
        Vocabulary([VerbSpec("a"), VerbSpec("b", aliases=("a",))])
