"""Ekspeditsiya 44 - six coupled pressures under a reading.

The reader moves through five phases of an expedition and may switch
between three perspectives at any time. The pressures never appear in the
text; they only surface as perspective-specific gauges.

Pressures (all in [0, 1]):
    E  extraction: how much work is being drawn out of the junior staff
    S  suppression: pressure to speak only in the collective voice
    T  theatre: visible recognition that carries no credit
    H  hope
    R  recipient arbitrage: credit flowing to those who were not aboard
    X  exit: the pull toward leaving

Hope drains by a fixed step on every phase advance; the three couplings then
run once. Collapse (TR3) is one-shot and does not end the reading.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from narrative_core import (
    CommandOutcome,
    Constraint,
    NarrativeState,
    Notice,
    NoticeKind,
    RandomSource,
    notice,
)
from narrative_core.logging_config import get_logger, story_context

from ..commands import VerbSpec, Vocabulary, parse_command, terminal_reply, unrecognized
from ..dispatcher import CommandDispatcher
from ..hysteresis import HysteresisTracker
from ..story import StoryEngine, register_story
from ..transformations import RuleSet, TransformationRule
from .ekspeditsiya_text import PERSPECTIVES, PHASES

logger = get_logger("stories.ekspeditsiya")

STORY_SLUG = "ekspeditsiya"

HOPE_STEP = 0.08
HOPE_FLOOR = 0.1
LAST_PHASE = len(PHASES) - 1
AUTHOR_LIST_PHASE = 4

GAUGES = {
    "galina": (("Resolution", "E"), ("Collective Spirit", "S"), ("Prospects", "H")),
    "volkov": (("Efficiency", "R"), ("Discipline", "S"), ("Prestige", "R")),
    "petrov": (("Signal", "E"), ("Coupling", "S"), ("Drift", "H")),
}

CODAS = {
    "galina": ("Station workstation powered down.",
               "Only the tetradka remains - 147 pages of soundings, corrections, and interpretations "
               "that will never appear in any published volume."),
    "volkov": ("End of expedition dossier.",
               "Academy notification: Monograph 44-B accepted for publication."),
    "petrov": ("End of maintenance log.",
               "The machine ran. The machine had always run."),
}


# ============================================================================
# State
# ============================================================================


def _pressure(name: str, kind: str, value: float) -> Constraint:
    return Constraint(name=name, kind=kind, value=value, phase="active")


class Pressures(BaseModel):
    E: Constraint = _pressure("E", "extraction", 0.22)
    S: Constraint = _pressure("S", "suppression", 0.50)
    T: Constraint = _pressure("T", "theatre", 0.30)
    H: Constraint = _pressure("H", "hope", 0.65)
    R: Constraint = _pressure("R", "recipient", 0.35)
    X: Constraint = _pressure("X", "exit", 0.10)

    model_config = ConfigDict(frozen=True)

    def value(self, name: str) -> float:
        return getattr(self, name).value

    def set(self, **values: float) -> "Pressures":
        return self.model_copy(update={
            name: getattr(self, name).with_value(value) for name, value in values.items()
        })


class EkspeditsiyaState(NarrativeState):
    pressures: Pressures = Field(default_factory=Pressures)
    phase: int = Field(default=0, ge=0, le=LAST_PHASE)
    perspective: str = "galina"
    revealed: int = Field(default=0, ge=0, description="Paragraphs shown in the current phase/perspective")

    @property
    def paragraphs(self) -> tuple[str, ...]:
        return PHASES[self.phase].paragraphs(self.perspective)

    @property
    def fully_revealed(self) -> bool:
        return self.revealed >= len(self.paragraphs)

    @property
    def collapsed(self) -> bool:
        return self.fired("TR3")


# ============================================================================
# Couplings and collapse
# ============================================================================


def couple(p: Pressures) -> Pressures:
    """One coupling pass: hope-driven extraction, suppression theatre, recipient arbitrage."""
    E, S, T, H, R, X = (p.value(n) for n in "ESTHRX")
    if H > 0.4:
        E = min(1.0, E + 0.1 * H)
        X = max(0.0, X - 0.05 * H)
    if S > 0.6:
        T = min(1.0, T + 0.15 * S)
        R = min(1.0, R + 0.1 * T)
    if R > 0.5:
        S = min(1.0, S + 0.05)
    return p.set(E=E, S=S, T=T, H=H, R=R, X=X)


def _collapse_guard(s: EkspeditsiyaState) -> bool:
    p = s.pressures
    return p.value("E") > 0.75 or p.value("H") < 0.2 or p.value("X") > 0.6


RULES = RuleSet(STORY_SLUG, [
    TransformationRule(id="TR3", guard=_collapse_guard, description="Collapse threshold"),
])

HYSTERESIS = HysteresisTracker(STORY_SLUG, [
    ("author_list_seen", lambda s: s.perspective == "volkov" and s.phase >= AUTHOR_LIST_PHASE),
])


def initial_state() -> EkspeditsiyaState:
    return EkspeditsiyaState(story=STORY_SLUG, rules=RULES.initial_states())


def _settle(s: EkspeditsiyaState) -> EkspeditsiyaState:
    return HYSTERESIS.update(RULES.evaluate(s, None))


def advance(state: EkspeditsiyaState, dt: float, rng: RandomSource) -> EkspeditsiyaState:
    """Reveal the next paragraph of the current phase, if any remain."""
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")
    if state.terminal:
        return state
    s = state.with_clock(dt)
    if not s.fully_revealed:
        s = s.model_copy(update={"revealed": s.revealed + 1})
    return s


# ============================================================================
# Dispatcher
# ============================================================================


DISPATCHER = CommandDispatcher(STORY_SLUG, after=_settle)


@DISPATCHER.command("ADVANCE_PHASE")
def advance_phase(s: EkspeditsiyaState, payload: Mapping[str, Any]) -> EkspeditsiyaState:
    if not s.fully_revealed or s.phase >= LAST_PHASE:
        return s
    hope = max(HOPE_FLOOR, s.pressures.value("H") - HOPE_STEP)
    pressures = couple(s.pressures.set(H=hope))
    logger.debug(f"phase {s.phase + 1} -> {PHASES[s.phase + 1].id}", extra=story_context(s.story, s.tick_count))
    return s.model_copy(update={"phase": s.phase + 1, "revealed": 0, "pressures": pressures})


@DISPATCHER.command("SWITCH_PERSPECTIVE")
def switch_perspective(s: EkspeditsiyaState, payload: Mapping[str, Any]) -> EkspeditsiyaState:
    perspective = str(payload.get("perspective", "")).lower()
    if perspective not in PERSPECTIVES:
        return s
    return s.model_copy(update={"perspective": perspective, "revealed": 0})


# ============================================================================
# Text
# ============================================================================


VOCABULARY = Vocabulary([
    VerbSpec("help", summary="List commands"),
    VerbSpec("status", summary="Phase, perspective and gauges"),
    VerbSpec("next", aliases=("continue",), summary="Move to the next phase"),
    VerbSpec("read", usage="read <galina|volkov|petrov>", summary="Switch workstation"),
    VerbSpec("galina", summary="Hydrographer's workstation"),
    VerbSpec("volkov", summary="Expedition head's dossier"),
    VerbSpec("petrov", summary="Instrument technician's log"),
])


GHOST_AUDIT_LINE = "Credit displacement detected. All submissions relabeled: \"Volkov, V.A.\""


def _ghost_audit(s: EkspeditsiyaState) -> tuple[Notice, ...]:
    if s.perspective != "galina" or not s.hysteresis.is_set("author_list_seen"):
        return ()
    return (notice(NoticeKind.ARCHIVE, "audit.ghost", GHOST_AUDIT_LINE, tick=s.tick_count),)


def _gauges(s: EkspeditsiyaState) -> str:
    return "  ".join(
        f"{label}: {s.pressures.value(name):.2f}" for label, name in GAUGES[s.perspective]
    )


def interpret(s: EkspeditsiyaState, text: str) -> CommandOutcome:
    parsed = parse_command(text)
    if parsed is None:
        return CommandOutcome(state=s, recognized=False)
    if s.terminal:
        return terminal_reply(s, parsed)
    verb = VOCABULARY.resolve(parsed.verb)
    if verb is None:
        return unrecognized(s, parsed)

    tick = s.tick_count

    if verb == "help":
        return CommandOutcome(state=s, notices=(
            notice(NoticeKind.SYSTEM, "help", "Available commands:\n" + "\n".join(VOCABULARY.help_lines()), tick=tick),
        ))

    if verb == "status":
        phase = PHASES[s.phase]
        return CommandOutcome(state=s, notices=(
            notice(NoticeKind.SYSTEM, "status.phase",
                   f"{phase.title} ({s.phase + 1}/{len(PHASES)}), {s.perspective}, "
                   f"{s.revealed}/{len(s.paragraphs)} paragraphs.", tick=tick, phase=phase.id),
            notice(NoticeKind.SYSTEM, "status.gauges", _gauges(s), tick=tick),
            *_ghost_audit(s),
        ))

    if verb == "next":
        if s.phase >= LAST_PHASE:
            return CommandOutcome(state=s, notices=_coda(s))
        if not s.fully_revealed:
            return CommandOutcome(state=s, notices=(
                notice(NoticeKind.SYSTEM, "phase.incomplete", "The page is still being written.", tick=tick),
            ))
        nxt = DISPATCHER.apply(s, "ADVANCE_PHASE")
        return CommandOutcome(state=nxt, command="ADVANCE_PHASE", notices=(
            notice(NoticeKind.LITERARY, "phase.title", PHASES[nxt.phase].title, tick=tick, phase=PHASES[nxt.phase].id),
        ))

    perspective = parsed.arg if verb == "read" else verb
    if perspective not in PERSPECTIVES:
        return CommandOutcome(state=s, notices=(
            notice(NoticeKind.ERROR, "perspective.unknown",
                   f"No workstation '{perspective or '?'}'. Choose galina, volkov or petrov.", tick=tick),
        ))
    nxt = DISPATCHER.apply(s, "SWITCH_PERSPECTIVE", {"perspective": perspective})
    return CommandOutcome(state=nxt, command="SWITCH_PERSPECTIVE", notices=(
        notice(NoticeKind.SYSTEM, "perspective.switched", f"Workstation: {perspective}.", tick=tick,
               perspective=perspective),
        *_ghost_audit(nxt),
    ))


def _coda(s: EkspeditsiyaState) -> tuple[Notice, ...]:
    heading, line = CODAS[s.perspective]
    return (
        notice(NoticeKind.ARCHIVE, "coda.heading", heading, tick=s.tick_count),
        notice(NoticeKind.LITERARY, "coda.line", line, tick=s.tick_count),
    )


def announce(prev: EkspeditsiyaState, nxt: EkspeditsiyaState) -> tuple[Notice, ...]:
    out: list[Notice] = []
    if nxt.revealed > prev.revealed and (nxt.phase, nxt.perspective) == (prev.phase, prev.perspective):
        for i in range(prev.revealed, nxt.revealed):
            out.append(notice(NoticeKind.LITERARY, "paragraph", nxt.paragraphs[i], tick=nxt.tick_count,
                              phase=PHASES[nxt.phase].id, perspective=nxt.perspective, index=i))
        if nxt.fully_revealed and nxt.phase == LAST_PHASE:
            out.extend(_coda(nxt))
    return tuple(out)


# ============================================================================
# Engine
# ============================================================================


@register_story
class EkspeditsiyaEngine(StoryEngine):
    """Akademik Vavilov, Expedition 44: who gets to be an author."""

    slug = STORY_SLUG
    title = "Ekspeditsiya 44"
    tagline = "Sea of Okhotsk, 1963. The machine had always run."

    def initial_state(self) -> EkspeditsiyaState:
        return initial_state()

    def boot(self, state: EkspeditsiyaState, rng: RandomSource) -> tuple[EkspeditsiyaState, tuple[Notice, ...]]:
        return state, (
            notice(NoticeKind.WELCOME, "welcome", "Akademik Vavilov - Expedition 44"),
            notice(NoticeKind.LITERARY, "phase.title", PHASES[0].title, phase=PHASES[0].id),
        )

    def advance(self, state: EkspeditsiyaState, dt: float, rng: RandomSource) -> EkspeditsiyaState:
        return advance(state, dt, rng)

    def apply(self, state: EkspeditsiyaState, command: str, payload: Optional[Mapping[str, Any]] = None) -> EkspeditsiyaState:
        return DISPATCHER.apply(state, command, payload)

    def interpret(self, state: EkspeditsiyaState, text: str) -> CommandOutcome:
        return interpret(state, text)

    def announce(self, previous: EkspeditsiyaState, current: EkspeditsiyaState) -> tuple[Notice, ...]:
        return announce(previous, current)

    def describe(self, state: EkspeditsiyaState) -> dict[str, str]:
        rows = super().describe(state)
        rows.update({
            "phase": f"{PHASES[state.phase].id} ({state.phase + 1}/{len(PHASES)})",
            "perspective": state.perspective,
            "revealed": f"{state.revealed}/{len(state.paragraphs)}",
            "pressures": " ".join(f"{n}={state.pressures.value(n):.2f}" for n in "ESTHRX"),
            "collapsed": str(state.collapsed),
            "flags": ", ".join(sorted(state.hysteresis.raised)) or "none",
        })
        return rows

    def check_invariants(self, state: EkspeditsiyaState) -> None:
        super().check_invariants(state)
        for name in "ESTHRX":
            pressure = getattr(state.pressures, name)
            if not pressure.in_bounds():
                self.violation(f"pressure {name} = {pressure.value} outside [0, 1]")
        if state.perspective not in PERSPECTIVES:
            self.violation(f"unknown perspective '{state.perspective}'")
        if not 0 <= state.phase <= LAST_PHASE:
            self.violation(f"phase {state.phase} out of range")
        if state.revealed > len(state.paragraphs):
            self.violation("more paragraphs revealed than exist")

    def check_transition(self, previous: EkspeditsiyaState, current: EkspeditsiyaState) -> None:
        super().check_transition(previous, current)
        if current.phase < previous.phase:
            self.violation("phase moved backwards")
