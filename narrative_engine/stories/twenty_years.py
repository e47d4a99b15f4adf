"""Twenty Years Away - two displacement stories on one temporal scrubber.

Rip Van Winkle's twenty-year sleep and a twenty-two year sentence share a
skeleton. The reader moves a scrubber from 0 to 100; the scrubber drives a
temporal displacement (the UCZ-F, "unrecoverable change zone") that erodes
the social contract the reader left behind.

Constraints:
    C1 snare     household / environmental pressure; its chi drives TR1
    C2 mountain  time itself, constant
    C3 rope      social ties, degrading into a piton (a fixed point) as the
                 displacement grows

Every transition ends with ``propagate``, the coupling pass that derives
displacement, rules, sync point and flags from the scrubber position.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from narrative_core import (
    CommandOutcome,
    Constraint,
    NarrativeState,
    Notice,
    NoticeKind,
    PhaseLadder,
    RandomSource,
    notice,
)
from narrative_core.logging_config import get_logger, story_context

from ..commands import ParsedCommand, VerbSpec, Vocabulary, parse_command, terminal_reply, unrecognized
from ..dispatcher import CommandDispatcher
from ..hysteresis import HysteresisTracker
from ..story import StoryEngine, register_story
from ..transformations import RuleSet, TransformationRule

logger = get_logger("stories.twenty_years")

STORY_SLUG = "twenty-years"

SNARE_LADDER = PhaseLadder(phases=("pre_TR1", "post_TR1"))
ROPE_LADDER = PhaseLadder(phases=("pre_TR2", "piton"))

MAX_DELTA_T = 22.0
CHI_BASE = 0.3
CHI_SPAN = 0.55
CHI_STEP = 0.05
TR1_CHI = 0.80
TR2_DELTA_T = 20.0
ROPE_CEILING = 0.85
ROPE_FLOOR = 0.08
ENGAGE_SCRUB = 30.0
RETURN_SCRUB = 70.0
AFTER_SCRUB = 88.0
PITON_AWARENESS_SCRUB = 75.0
TERMINAL_SCRUB = 95.0
IDLE_DRIFT = 0.3
IDLE_CAP = 98.0
SCRUB_STEP = 5.0
OMEGA_COUNT = 3


# ============================================================================
# State
# ============================================================================


class UCZField(BaseModel):
    """Temporal displacement field. Once visible it stays visible."""
    delta_t: float = Field(default=0.0, ge=0.0, le=MAX_DELTA_T, description="Years displaced")
    max_delta_t: float = MAX_DELTA_T
    active: bool = False
    engaged: bool = False
    visible: bool = False
    persistent: bool = True

    model_config = ConfigDict(frozen=True)


class TwentyYearsSystem(BaseModel):
    scrub: float = Field(default=0.0, ge=0.0, le=100.0, description="Scrubber position 0..100")
    sync_point: str = "SP1"
    attractor_proximity: float = Field(default=0.0, ge=0.0, le=1.0)
    omega_revealed: tuple[bool, bool, bool] = (False, False, False)
    probe_count: int = Field(default=0, ge=0, le=OMEGA_COUNT)
    idle_ticks: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)


class TwentyYearsState(NarrativeState):
    snare: Constraint
    mountain: Constraint
    rope: Constraint
    ucz: UCZField = Field(default_factory=UCZField)
    system: TwentyYearsSystem = Field(default_factory=TwentyYearsSystem)

    def with_system(self, **changes) -> "TwentyYearsState":
        return self.model_copy(update={"system": self.system.model_copy(update=changes)})


def sync_point(scrub: float) -> str:
    if scrub < 15:
        return "SP1"
    if scrub < ENGAGE_SCRUB:
        return "SP2"
    if scrub < RETURN_SCRUB:
        return "SP3"
    if scrub < AFTER_SCRUB:
        return "SP4"
    return "SP5"


# ============================================================================
# Rules
# ============================================================================


def _tr1_effect(s: TwentyYearsState, rng: RandomSource) -> TwentyYearsState:
    return s.model_copy(update={
        "snare": s.snare.with_phase("post_TR1", SNARE_LADDER),
        "ucz": s.ucz.model_copy(update={"visible": True}),
    })


def _tr2_effect(s: TwentyYearsState, rng: RandomSource) -> TwentyYearsState:
    rope = s.rope.with_phase("piton", ROPE_LADDER).model_copy(update={"kind": "piton"})
    return s.model_copy(update={"rope": rope})


RULES = RuleSet(STORY_SLUG, [
    TransformationRule(
        id="TR1",
        guard=lambda s: s.snare.chi >= TR1_CHI,
        effect=_tr1_effect,
        progress=lambda s: min(1.0, s.snare.chi / TR1_CHI),
        threshold=TR1_CHI,
        description="Escape threshold",
    ),
    TransformationRule(
        id="TR2",
        guard=lambda s: s.ucz.delta_t >= TR2_DELTA_T,
        effect=_tr2_effect,
        progress=lambda s: min(1.0, s.ucz.delta_t / TR2_DELTA_T),
        threshold=TR2_DELTA_T,
        description="Social contract obsolescence",
    ),
    TransformationRule(
        id="TR3",
        guard=lambda s: s.rope.phase == "piton" and s.system.scrub >= RETURN_SCRUB,
        description="Index mismatch",
    ),
    TransformationRule(
        id="TR4",
        guard=lambda s: s.fired("TR3") and s.system.scrub >= AFTER_SCRUB,
        description="Misalignment as mobility",
    ),
])


HYSTERESIS = HysteresisTracker(STORY_SLUG, [
    ("c1_perspective_shift", lambda s: s.snare.chi >= TR1_CHI),
    ("c3_piton_awareness", lambda s: s.system.scrub >= PITON_AWARENESS_SCRUB),
    ("metric_trust_eroded", lambda s: s.system.scrub >= AFTER_SCRUB),
    ("ucz_visible", lambda s: s.ucz.visible),
])


def initial_state() -> TwentyYearsState:
    return TwentyYearsState(
        story=STORY_SLUG,
        rules=RULES.initial_states(),
        snare=Constraint(name="C1", kind="snare", value=CHI_BASE, epsilon=0.18, chi=CHI_BASE,
                         support=0.85, phase="pre_TR1"),
        mountain=Constraint(name="C2", kind="mountain", value=1.0, support=0.95, phase="constant"),
        rope=Constraint(name="C3", kind="rope", value=ROPE_CEILING, lower=ROPE_FLOOR, upper=ROPE_CEILING,
                        epsilon=0.05, chi=0.15, support=0.4, phase="pre_TR2"),
    )


# ============================================================================
# Coupling pass
# ============================================================================


def propagate(s: TwentyYearsState, rng: Optional[RandomSource] = None) -> TwentyYearsState:
    """Derive everything downstream of the scrubber position.

    The pass never draws randomness; ``rng`` is accepted only to satisfy
    the rule-effect signature.
    """
    if s.terminal:
        return s
    scrub = s.system.scrub

    # C1 chi tracks the scrubber before the displacement engages
    if scrub < ENGAGE_SCRUB:
        chi = CHI_BASE + (scrub / ENGAGE_SCRUB) * CHI_SPAN
        s = s.model_copy(update={"snare": s.snare.model_copy(update={"chi": chi, "value": chi})})

    # Scrubber drives the displacement; engagement is one-way
    ucz = s.ucz.model_copy(update={"delta_t": (scrub / 100.0) * s.ucz.max_delta_t})
    if scrub >= ENGAGE_SCRUB and not ucz.engaged:
        ucz = ucz.model_copy(update={"engaged": True, "active": True})
    s = s.model_copy(update={"ucz": ucz})

    # Displacement degrades the rope
    degradation = min(1.0, ucz.delta_t / ucz.max_delta_t)
    s = s.model_copy(update={"rope": s.rope.with_value(ROPE_CEILING - degradation * (ROPE_CEILING - ROPE_FLOOR))})

    s = RULES.evaluate(s, rng)

    fired = sum(1 for rule in s.rules if rule.fired)
    s = s.with_system(attractor_proximity=fired / len(s.rules), sync_point=sync_point(scrub))

    s = HYSTERESIS.update(s)

    if fired == len(s.rules) and scrub >= TERMINAL_SCRUB:
        s = s.mark_terminal()
        logger.info("both stories ended", extra=story_context(s.story, s.tick_count))
    return s


def advance(state: TwentyYearsState, dt: float, rng: RandomSource) -> TwentyYearsState:
    """Idle drift: the scrubber creeps forward whether or not anyone attends."""
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")
    if state.terminal:
        return state
    s = state.with_clock(dt)
    scrub = s.system.scrub
    if scrub < IDLE_CAP:
        scrub = min(IDLE_CAP, scrub + IDLE_DRIFT * dt)
    s = s.with_system(scrub=scrub, idle_ticks=s.system.idle_ticks + 1)
    return propagate(s, rng)


# ============================================================================
# Dispatcher
# ============================================================================


DISPATCHER = CommandDispatcher(STORY_SLUG, after=propagate)


@DISPATCHER.command("SET_SCRUB")
def set_scrub(s: TwentyYearsState, payload: Mapping[str, Any]) -> TwentyYearsState:
    try:
        position = float(payload.get("position", s.system.scrub))
    except (TypeError, ValueError):
        return s
    if not math.isfinite(position):
        return s
    return s.with_system(scrub=min(100.0, max(0.0, position)))


@DISPATCHER.command("INCREMENT_CHI")
def increment_chi(s: TwentyYearsState, payload: Mapping[str, Any]) -> TwentyYearsState:
    chi = min(1.0, s.snare.chi + CHI_STEP)
    return s.model_copy(update={"snare": s.snare.model_copy(update={"chi": chi, "value": chi})})


@DISPATCHER.command("REVEAL_OMEGA")
def reveal_omega(s: TwentyYearsState, payload: Mapping[str, Any]) -> TwentyYearsState:
    index = payload.get("index")
    if not isinstance(index, int) or not 0 <= index < OMEGA_COUNT:
        return s
    if s.system.omega_revealed[index]:
        return s
    revealed = tuple(True if i == index else seen for i, seen in enumerate(s.system.omega_revealed))
    return s.with_system(omega_revealed=revealed, probe_count=s.system.probe_count + 1)


# ============================================================================
# Text
# ============================================================================


VILLAGE = {
    "SP1": ("The Village Below",
            "In a village at the foot of the Kaatskill mountains, there lived a simple, good-natured fellow "
            "by the name of Rip Van Winkle.",
            "The inn at the sign of King George is full and warm. The world is small and known."),
    "SP2": ("Into the Mountains",
            "He shouldered his fowling piece and strolled away into the mountains. A strange figure "
            "appeared, bearing a keg upon his shoulders, beckoning silently.",
            "The flagon passes. One sip becomes many. The mountains close around."),
    "SP3": ("The Long Sleep",
            "In place of the clean, well-oiled fowling piece, he found a rusty firelock lying by him. "
            "His beard had grown a foot long.",
            "Time is not passing. Time has passed."),
    "SP4": ("The Changed Village",
            "The very village was altered: it was larger and more populous. Strange names were over the "
            "doors, strange faces at the windows.",
            "The portrait of King George has been repainted. Below it reads: GENERAL WASHINGTON."),
    "SP5": ("The Relic",
            "He used to tell his story to every stranger that arrived, a chronicle of the old times "
            "'before the war.'",
            "The village keeps him as one keeps a portrait of someone else's grandfather."),
}

REENTRY = {
    "SP1": ("Before",
            "The individual's story begins inside statistics that precede them.",
            "There is a system that says it is designed to help."),
    "SP2": ("Sentencing",
            "Twenty-two years. Outside, the buses run. Leases are signed.",
            "A date is set. It is far enough away that the world will not be the same."),
    "SP3": ("Years Served",
            "Correspondence arrives, then thins. Children's handwriting changes between letters.",
            "Time is not passing. Time has passed."),
    "SP4": ("Reentry Day",
            "The address on file no longer exists. The bus route has been rerouted twice.",
            "The system says: welcome back. The neighborhood says nothing."),
    "SP5": ("After",
            "The individual becomes a data point in a longitudinal study.",
            "The neighborhood keeps nothing. The record keeps everything."),
}

OMEGA_TEXTS = (
    "Omega 1 - Rip's twenty years were experienced as a single night. A twenty-two year sentence is "
    "experienced as twenty-two years. Does the felt quality of displacement change what is lost, or only "
    "how the loss is carried?",
    "Omega 2 - Rip had no agency during his sleep. An incarcerated person reads, writes, grieves, adapts. "
    "Does agency within displacement slow the decay of the world outside, or only sharpen the recognition?",
    "Omega 3 - Rip returned to benign curiosity. A returning citizen faces active exclusion. Is freedom "
    "through irrelevance available to someone whose irrelevance is enforced rather than granted?",
)

RULE_LINES = {
    "TR1": "This reference is no longer current.",
    "TR2": "The village has continued without you.",
    "TR3": "The index no longer matches the territory.",
    "TR4": "Misalignment is a kind of freedom.",
}

WELCOME_LINE = "I am a bridge between two stories that share a skeleton."
IDLE_LINE = "The temporal scrubber advances on its own. Time passes whether you attend to it or not."
PROBE_LINE = "You have found a gap between the panels. The gap is real."
TERMINAL_LINE = "Both stories have ended the same way. The question of whether they are the same story remains open."
METRIC_LINE = "This figure reflects reported expectations, pre-return."

VOCABULARY = Vocabulary([
    VerbSpec("help", summary="List commands"),
    VerbSpec("status", summary="Scrubber, displacement and rules"),
    VerbSpec("read", summary="Both panels at the current sync point"),
    VerbSpec("scrub", usage="scrub <0-100>", summary="Move the temporal scrubber"),
    VerbSpec("forward", usage="forward [n]", summary="Scrub forward (default 5)"),
    VerbSpec("back", usage="back [n]", summary="Scrub back (default 5)"),
    VerbSpec("probe", usage="probe <1-3>", summary="Look into a gap between the panels"),
    VerbSpec("chi", summary="Lean into the household pressure"),
    VerbSpec("wait", summary="Let time pass"),
])


def _panels(s: TwentyYearsState) -> list[Notice]:
    sp = s.system.sync_point
    out = []
    for panel, content in (("village", VILLAGE[sp]), ("reentry", REENTRY[sp])):
        title, excerpt, mood = content
        out.append(notice(NoticeKind.LITERARY, f"panel.{panel}", f"{title}. {excerpt} {mood}",
                          tick=s.tick_count, sync_point=sp, title=title))
    return out


def _float_arg(parsed: ParsedCommand, default: Optional[float]) -> Optional[float]:
    if parsed.arg is None:
        return default
    try:
        value = float(parsed.arg)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def interpret(s: TwentyYearsState, text: str) -> CommandOutcome:
    parsed = parse_command(text)
    if parsed is None:
        return CommandOutcome(state=s, recognized=False)
    if s.terminal:
        return terminal_reply(s, parsed)
    verb = VOCABULARY.resolve(parsed.verb)
    if verb is None:
        return unrecognized(s, parsed)

    tick = s.tick_count
    handlers: dict[str, Callable[[], CommandOutcome]] = {}

    def say(*notices: Notice, state: Optional[TwentyYearsState] = None, command: Optional[str] = None) -> CommandOutcome:
        return CommandOutcome(state=state if state is not None else s, notices=notices, command=command)

    def scrub_to(position: Optional[float]) -> CommandOutcome:
        if position is None:
            return say(notice(NoticeKind.ERROR, "scrub.invalid", "The scrubber takes a number between 0 and 100.", tick=tick))
        nxt = DISPATCHER.apply(s, "SET_SCRUB", {"position": position})
        return say(
            notice(NoticeKind.SYSTEM, "scrub.moved", f"Scrubber at {nxt.system.scrub:.1f} ({nxt.system.sync_point}).",
                   tick=tick, scrub=nxt.system.scrub),
            state=nxt, command="SET_SCRUB",
        )

    def help_() -> CommandOutcome:
        return say(notice(NoticeKind.SYSTEM, "help", "Available commands:\n" + "\n".join(VOCABULARY.help_lines()), tick=tick))

    def status() -> CommandOutcome:
        fired = " ".join(f"{r.id}{'*' if r.fired else ''}" for r in s.rules)
        return say(
            notice(NoticeKind.SYSTEM, "status.scrub",
                   f"Scrubber {s.system.scrub:.1f} at {s.system.sync_point}. Displacement {s.ucz.delta_t:.1f} years.",
                   tick=tick, scrub=s.system.scrub, delta_t=s.ucz.delta_t),
            notice(NoticeKind.SYSTEM, "status.rules",
                   f"Rules: {fired}. Attractor proximity {s.system.attractor_proximity:.2f}.", tick=tick),
        )

    def probe() -> CommandOutcome:
        number = _float_arg(parsed, None)
        if number is None or int(number) != number or not 1 <= number <= OMEGA_COUNT:
            return say(notice(NoticeKind.ERROR, "probe.invalid", "There are three gaps: probe 1, 2 or 3.", tick=tick))
        index = int(number) - 1
        if s.system.omega_revealed[index]:
            return say(notice(NoticeKind.ARCHIVE, "probe.seen", OMEGA_TEXTS[index], tick=tick, index=index))
        nxt = DISPATCHER.apply(s, "REVEAL_OMEGA", {"index": index})
        return say(
            notice(NoticeKind.ARCHIVE, "probe.revealed", OMEGA_TEXTS[index], tick=tick, index=index),
            notice(NoticeKind.SYSTEM, "probe.gap", PROBE_LINE, tick=tick),
            state=nxt, command="REVEAL_OMEGA",
        )

    def chi() -> CommandOutcome:
        nxt = DISPATCHER.apply(s, "INCREMENT_CHI")
        return say(
            notice(NoticeKind.SYSTEM, "chi.raised", f"Household pressure: {nxt.snare.chi:.2f}.", tick=tick, chi=nxt.snare.chi),
            state=nxt, command="INCREMENT_CHI",
        )

    def nudge(direction: float) -> CommandOutcome:
        step = _float_arg(parsed, SCRUB_STEP)
        if step is None:
            return scrub_to(None)
        return scrub_to(s.system.scrub + direction * step)

    def wait() -> CommandOutcome:
        return say(notice(NoticeKind.SYSTEM, "wait", IDLE_LINE, tick=tick))

    handlers.update({
        "help": help_,
        "status": status,
        "read": lambda: say(*_panels(s)),
        "scrub": lambda: scrub_to(_float_arg(parsed, None)),
        "forward": lambda: nudge(1.0),
        "back": lambda: nudge(-1.0),
        "probe": probe,
        "chi": chi,
        "wait": wait,
    })
    return handlers[verb]()


def announce(prev: TwentyYearsState, nxt: TwentyYearsState) -> tuple[Notice, ...]:
    out: list[Notice] = []
    tick = nxt.tick_count
    if nxt.system.sync_point != prev.system.sync_point:
        out.extend(_panels(nxt))
    for rule_id, line in RULE_LINES.items():
        if nxt.fired(rule_id) and not prev.fired(rule_id):
            out.append(notice(NoticeKind.SYSTEM, f"rule.{rule_id}", line, tick=tick))
    if nxt.hysteresis.is_set("metric_trust_eroded") and not prev.hysteresis.is_set("metric_trust_eroded"):
        out.append(notice(NoticeKind.ARCHIVE, "flag.metric_trust_eroded", METRIC_LINE, tick=tick))
    if nxt.system.idle_ticks == 3 and prev.system.idle_ticks == 2:
        out.append(notice(NoticeKind.SYSTEM, "idle", IDLE_LINE, tick=tick))
    if nxt.terminal and not prev.terminal:
        out.append(notice(NoticeKind.LITERARY, "session.terminal", TERMINAL_LINE, tick=tick))
    return tuple(out)


# ============================================================================
# Engine
# ============================================================================


@register_story
class TwentyYearsEngine(StoryEngine):
    """Rip Van Winkle and a returning citizen on one scrubber."""

    slug = STORY_SLUG
    title = "Twenty Years Away"
    tagline = "Two stories that share a skeleton."

    def initial_state(self) -> TwentyYearsState:
        return initial_state()

    def boot(self, state: TwentyYearsState, rng: RandomSource) -> tuple[TwentyYearsState, tuple[Notice, ...]]:
        return state, (notice(NoticeKind.WELCOME, "welcome", WELCOME_LINE), *_panels(state))

    def advance(self, state: TwentyYearsState, dt: float, rng: RandomSource) -> TwentyYearsState:
        return advance(state, dt, rng)

    def apply(self, state: TwentyYearsState, command: str, payload: Optional[Mapping[str, Any]] = None) -> TwentyYearsState:
        return DISPATCHER.apply(state, command, payload)

    def interpret(self, state: TwentyYearsState, text: str) -> CommandOutcome:
        return interpret(state, text)

    def announce(self, previous: TwentyYearsState, current: TwentyYearsState) -> tuple[Notice, ...]:
        return announce(previous, current)

    def describe(self, state: TwentyYearsState) -> dict[str, str]:
        rows = super().describe(state)
        rows.update({
            "scrub": f"{state.system.scrub:.1f} ({state.system.sync_point})",
            "delta_t": f"{state.ucz.delta_t:.1f} years",
            "chi": f"{state.snare.chi:.2f} ({state.snare.phase})",
            "rope": f"{state.rope.value:.2f} ({state.rope.phase})",
            "probes": f"{state.system.probe_count}/{OMEGA_COUNT}",
            "rules": " ".join(f"{r.id}{'*' if r.fired else ''}" for r in state.rules),
            "flags": ", ".join(sorted(state.hysteresis.raised)) or "none",
        })
        return rows

    def check_invariants(self, state: TwentyYearsState) -> None:
        super().check_invariants(state)
        for constraint in (state.snare, state.mountain, state.rope):
            if not constraint.in_bounds():
                self.violation(f"{constraint.name} value {constraint.value} outside [{constraint.lower}, {constraint.upper}]")
        if state.mountain.value != 1.0:
            self.violation("C2 mountain moved")
        if state.system.probe_count != sum(state.system.omega_revealed):
            self.violation("probe count out of step with revealed omegas")
        if state.ucz.visible and not state.fired("TR1"):
            self.violation("UCZ-F visible before TR1")

    def check_transition(self, previous: TwentyYearsState, current: TwentyYearsState) -> None:
        super().check_transition(previous, current)
        if previous.ucz.engaged and not current.ucz.engaged:
            self.violation("UCZ-F disengaged")
        if previous.ucz.visible and not current.ucz.visible:
            self.violation("UCZ-F hidden after becoming visible")
        for before, after in zip(previous.system.omega_revealed, current.system.omega_revealed):
            if before and not after:
                self.violation("omega probe un-revealed")
