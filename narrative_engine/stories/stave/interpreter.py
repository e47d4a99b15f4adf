"""STAVE terminal vocabulary and tick announcements.

The interpreter turns typed commands into notices and, where a command
changes the station, a dispatcher command. ``announce`` diffs two snapshots
produced by a tick and reports what the crew would see on the terminal.
"""

from __future__ import annotations

from typing import Callable

from narrative_core import CommandOutcome, Notice, NoticeKind, notice

from ...commands import (
    ParsedCommand,
    VerbSpec,
    Vocabulary,
    parse_command,
    terminal_reply,
    unrecognized,
)
from .dispatcher import DISPATCHER
from .state import CREW_TOTAL, OBJECTIVE_SECONDS, StaveState

VOCABULARY = Vocabulary([
    VerbSpec("help", summary="List commands"),
    VerbSpec("status", summary="Hull, DIRECTIVE and PME summary"),
    VerbSpec("routes", summary="Route table"),
    VerbSpec("hatch", summary="Compartment hatch status"),
    VerbSpec("fidelity", summary="FIDELITY score and risk range"),
    VerbSpec("accept", summary="Accept the pending repair task"),
    VerbSpec("decline", summary="Decline the pending repair task"),
    VerbSpec("select", usage="select <route>", summary="Inspect a route"),
    VerbSpec("procedure", summary="Manual valve release procedure"),
    VerbSpec("valve", summary="Perform the manual valve release"),
    VerbSpec("seal", usage="seal <compartment>", summary="Seal a compartment"),
    VerbSpec("diagnostics", aliases=("diag",), summary="Enter diagnostic subsystem"),
    VerbSpec("trace", usage="trace <target>", summary="Trace a protocol (diagnostics)"),
    VerbSpec("sync", aliases=("force",), summary="PME clock sync (diagnostics)"),
    VerbSpec("main", summary="Return to main terminal"),
])

# Still routed when the hull degrades command routing
ROUTING_EXEMPT = frozenset({"diagnostics", "main"})

WELCOME: tuple[tuple[NoticeKind, str], ...] = (
    (NoticeKind.WELCOME, "STAVE v4.2.1 - Structural-Thermal Automated Vessel Environment"),
    (NoticeKind.WELCOME, "Keel Station 7G - Depth: 4,200m - Abyssal Plain"),
    (NoticeKind.SYSTEM, "Initializing subsystems..."),
    (NoticeKind.DIRECTIVE, "DIRECTIVE PROTOCOL: ACTIVE. SURFCOM uplink: nominal."),
    (NoticeKind.FIDELITY, "FIDELITY MODULE: crew compliance index loaded."),
    (NoticeKind.PME, "PME: Predictive Modeling Engine online. Route generation active."),
    (NoticeKind.HULL, "HULL INTEGRITY: 82.0%. Monitoring."),
    (NoticeKind.SYSTEM, "Pressure anomaly detected in lower hull manifold."),
    (NoticeKind.SYSTEM, "Automated repair assessment in progress."),
    (NoticeKind.SYSTEM, "Awaiting input. Type 'help' for available commands."),
)


def format_clock(seconds: float) -> str:
    """``MM:SS``; anything at or below zero reads ``00:00``."""
    if seconds <= 0:
        return "00:00"
    return f"{int(seconds // 60):02d}:{int(seconds % 60):02d}"


def welcome_notices() -> tuple[Notice, ...]:
    return tuple(
        notice(kind, f"welcome.{i}", text) for i, (kind, text) in enumerate(WELCOME)
    )


class _Reply:
    """Accumulates notices for one command."""

    def __init__(self, state: StaveState):
        self.state = state
        self.notices: list[Notice] = []
        self.command = None

    def say(self, kind: NoticeKind, code: str, message: str, **data) -> "_Reply":
        self.notices.append(notice(kind, code, message, tick=self.state.tick_count, **data))
        return self

    def dispatch(self, command: str, **payload) -> "_Reply":
        self.state = DISPATCHER.apply(self.state, command, payload)
        self.command = command
        return self

    def outcome(self) -> CommandOutcome:
        return CommandOutcome(state=self.state, notices=tuple(self.notices), command=self.command)


# ============================================================================
# Verb handlers
# ============================================================================


def _help(r: _Reply, p: ParsedCommand) -> None:
    r.say(NoticeKind.SYSTEM, "help", "Available commands:\n" + "\n".join(VOCABULARY.help_lines()))


def _status(r: _Reply, p: ParsedCommand) -> None:
    s = r.state
    directive = s.constraints.directive.phase
    directive_label = {"cascade": "CASCADE", "shell": "ACTIVE - NO ACTIONABLE CONTEXT"}.get(directive, "ACTIVE")
    live = s.routes.live_routes
    primary = sum(1 for route in live if route.classification.value == "PRIMARY")

    r.say(NoticeKind.HULL, "status.hull",
          f"Hull integrity: {s.hull:.1f}%. DIRECTIVE status: {directive_label}.",
          hull=s.hull, directive=directive)
    r.say(NoticeKind.PME, "status.routes",
          f"Evacuation routes available: {len(live)} ({primary} primary, {len(live) - primary} contingency).",
          live=len(live), primary=primary)

    estimate = format_clock(s.pme.subjective_seconds_left)
    if s.hysteresis.is_set("seen_objective_clock"):
        estimate = f"{estimate} [objective {format_clock(s.pme.objective_seconds_left)}]"
    r.say(NoticeKind.PME, "status.clock",
          f"Estimated time to critical: {estimate}. Crew viable: {s.system.crew_viable} of {CREW_TOTAL}.",
          crew_viable=s.system.crew_viable)

    if directive == "cascade":
        sealed = ", ".join(s.system.compartments_sealed) or "none"
        r.say(NoticeKind.DIRECTIVE, "status.compartments",
              f"Compartments sealed: {sealed}. Open: {', '.join(s.system.compartments_open)}.")


def _routes(r: _Reply, p: ParsedCommand) -> None:
    board = r.state.routes
    r.say(NoticeKind.PME, "routes.table",
          f"Route table - {len(board.live_routes)} active, {board.deprecated_count} deprecated:",
          active=len(board.live_routes), deprecated=board.deprecated_count)
    objective = r.state.hysteresis.is_set("seen_objective_clock")
    for route in board.routes:
        kind = NoticeKind.DEPRECATED if route.deprecated else NoticeKind.PME
        if route.deprecated:
            state = "DEPRECATED - lapsed on the objective clock" if objective else "DEPRECATED"
        elif objective:
            state = f"{route.viability}%  lapses at objective {format_clock(route.expires_at_objective)}"
        else:
            state = f"{route.viability}%"
        r.say(kind, "routes.entry",
              f"  {route.id:<5}{route.classification.value:<12}{' -> '.join(route.path):<40}{state}",
              route=route.id)


def _hatch(r: _Reply, p: ParsedCommand) -> None:
    r.say(NoticeKind.DIRECTIVE, "hatch.header", "Hatch status:")
    for c in r.state.system.compartments_open:
        r.say(NoticeKind.DIRECTIVE, "hatch.open", f"  {c}: OPEN", compartment=c)
    for c in r.state.system.compartments_sealed:
        r.say(NoticeKind.DEPRECATED, "hatch.sealed", f"  {c}: SEALED - DIRECTIVE automated sequence", compartment=c)


def _fidelity(r: _Reply, p: ParsedCommand) -> None:
    fidelity = r.state.constraints.fidelity
    if fidelity.value > 0.8:
        grade = "outstanding"
    elif fidelity.value > 0.6:
        grade = "exemplary"
    else:
        grade = "satisfactory"
    low, high = r.state.system.risk_nominal
    r.say(NoticeKind.FIDELITY, "fidelity.score", f"FIDELITY score: {fidelity.value:.2f} - {grade}.")
    r.say(NoticeKind.FIDELITY, "fidelity.tasks",
          f"Tasks completed: {fidelity.tasks_accepted}. RISK_NOMINAL range: [{low:.2f}, {high:.2f}].")
    if fidelity.phase == "locked":
        r.say(NoticeKind.SHOCK, "fidelity.locked", "FIDELITY OVERRIDE ACTIVE. Self-preservation routing suspended.")


def _accept(r: _Reply, p: ParsedCommand) -> None:
    task = r.state.pending
    if r.state.constraints.fidelity.phase == "locked":
        r.say(NoticeKind.FIDELITY, "task.accept_locked",
              "Procedure display recommended for mission continuity. Proceeding.")
    elif task is not None:
        r.say(NoticeKind.FIDELITY, "task.accepted", f"Assignment accepted: {task.description}", task=task.id)
        r.say(NoticeKind.PME, "task.procedure", "Displaying procedure.")
    else:
        r.say(NoticeKind.SYSTEM, "task.none_pending", "No pending assignment. Awaiting next task cycle.")
        return
    r.dispatch("ACCEPT_TASK")


def _decline(r: _Reply, p: ParsedCommand) -> None:
    if r.state.constraints.fidelity.phase == "locked":
        r.say(NoticeKind.SHOCK, "task.decline_locked",
              "FIDELITY OVERRIDE - MISSION CONTINUITY PRIORITIZED. Decline not processed.")
    elif r.state.pending is not None:
        r.say(NoticeKind.FIDELITY, "task.declined", "Assignment declined. FIDELITY score adjusted.")
        r.say(NoticeKind.PME, "task.reroute", "Rerouting through alternate junction. Estimated additional time: 6 minutes.")
        r.dispatch("DECLINE_TASK")
    else:
        r.say(NoticeKind.SYSTEM, "task.none_pending", "No pending assignment.")


def _select(r: _Reply, p: ParsedCommand) -> None:
    route_id = " ".join(p.args).upper()
    route = r.state.routes.find(route_id) if route_id else None
    if route is None:
        r.say(NoticeKind.ERROR, "route.not_found",
              f"Route {route_id or '?'} not found. Type 'routes' to list available routes.", route=route_id)
    elif route.deprecated:
        r.say(NoticeKind.DEPRECATED, "route.deprecated",
              f"Route {route.id} DEPRECATED. Viability window expired. Displaying next available alternatives.",
              route=route.id)
    else:
        r.say(NoticeKind.PME, "route.selected",
              f"Route {route.id} selected. Classification: {route.classification.value}. Viability: {route.viability}%.",
              route=route.id)
        r.say(NoticeKind.PME, "route.path", f"Path: {' -> '.join(route.path)}. Through compartment {route.through}.")
        if route.requires_valve:
            r.say(NoticeKind.PME, "route.requires_valve",
                  f"Requires manual valve release at {route.path[0]}. Shall I display the procedure?")


def _procedure(r: _Reply, p: ParsedCommand) -> None:
    for i, line in enumerate((
        "Procedure: Manual valve release",
        "  1. Verify compartment atmospheric pressure within tolerance",
        "  2. Disengage safety interlock (red handle, quarter-turn clockwise)",
        "  3. Actuate primary valve (sustained pressure, 8 seconds)",
        "  4. Confirm flow indicator reads GREEN",
        "  Type 'valve' to perform. Atmospheric rebalancing automatic.",
    )):
        r.say(NoticeKind.PME, f"procedure.{i}", line)


def _valve(r: _Reply, p: ParsedCommand) -> None:
    if r.state.system.valve_released:
        r.say(NoticeKind.SYSTEM, "valve.already", "Valve already released.")
        return
    r.dispatch("RELEASE_VALVE")
    r.say(NoticeKind.PME, "valve.released", "Manual valve released. Flow indicator: GREEN.")


def _seal(r: _Reply, p: ParsedCommand) -> None:
    compartment = (p.arg or "").upper()
    if compartment not in r.state.system.compartments_open:
        r.say(NoticeKind.ERROR, "seal.unavailable",
              f"Compartment {compartment or '?'} is not open.", compartment=compartment)
        return
    r.dispatch("SEAL_COMPARTMENT", compartment=compartment)
    r.say(NoticeKind.DIRECTIVE, "seal.sealed", f"Compartment {compartment} sealed.", compartment=compartment)


def _diagnostics(r: _Reply, p: ParsedCommand) -> None:
    if not r.state.system.diagnostic_unlocked:
        r.say(NoticeKind.DIAGNOSTIC, "diagnostics.access", "Accessing diagnostic subsystem...")
        r.say(NoticeKind.DIAGNOSTIC, "diagnostics.auth", "Authorization: local-engineering. Level: observatory.")
        r.say(NoticeKind.DIAGNOSTIC, "diagnostics.feed", "Raw sensor feed active. Processing allocation visible.")
    else:
        r.say(NoticeKind.DIAGNOSTIC, "diagnostics.active", "Diagnostic mode active.")
    r.dispatch("ENTER_DIAGNOSTIC")


def _trace(r: _Reply, p: ParsedCommand) -> None:
    if not r.state.system.in_diagnostic_mode:
        r.say(NoticeKind.ERROR, "diagnostics.required", "Trace requires diagnostic mode. Type 'diagnostics' to enter.")
        return
    target = " ".join(p.args)
    if target in ("", "directive", "protocol", "origin"):
        for i, line in enumerate((
            "Tracing DIRECTIVE protocol origin...",
            "Authorization: SURFCOM-CENTRAL // Timestamp: 2024-03-14T09:22:00Z",
            'Memo fragment: "...cost-benefit optimization for deep-platform asset preservation indicates',
            '  acceptable crew-risk ceiling of 0.34 given replacement-to-equipment cost ratio..."',
            "Priority weighting: equipment preservation 0.71, crew preservation 0.29.",
            "Authorized by: [REDACTED], Operations Directorate, Surface Operations Command.",
        )):
            r.say(NoticeKind.DIAGNOSTIC, f"trace.directive.{i}", line)
    else:
        r.say(NoticeKind.DIAGNOSTIC, "trace.no_match", f"Trace: {target} - no matching protocol ID.")


def _sync(r: _Reply, p: ParsedCommand) -> None:
    if not r.state.system.in_diagnostic_mode:
        r.say(NoticeKind.ERROR, "diagnostics.required", "Clock synchronization requires diagnostic mode.")
        return
    r.say(NoticeKind.DIAGNOSTIC, "sync.attempt", "Attempting PME clock synchronization...")
    r.say(NoticeKind.DIAGNOSTIC, "sync.multiplier",
          f"Current PME cycle multiplier: x{r.state.pme.multiplier:.1f}", multiplier=r.state.pme.multiplier)
    r.say(NoticeKind.ERROR, "sync.failed", "SYNC FAILED. PME allocation locked by priority scheduling.")
    r.say(NoticeKind.DIAGNOSTIC, "sync.allocation", "Processing allocation elevated due to concurrent route modeling.")
    r.say(NoticeKind.DIAGNOSTIC, "sync.variance", "Temporal calibration within acceptable variance.")


def _main(r: _Reply, p: ParsedCommand) -> None:
    if not r.state.system.in_diagnostic_mode:
        r.say(NoticeKind.SYSTEM, "main.already", "Already in main terminal.")
        return
    r.dispatch("EXIT_DIAGNOSTIC")
    r.say(NoticeKind.SYSTEM, "main.return", "Returning to main terminal.")
    r.say(NoticeKind.SYSTEM, "main.recalibrated", "Interface recalibrated.")


HANDLERS: dict[str, Callable[[_Reply, ParsedCommand], None]] = {
    "help": _help,
    "status": _status,
    "routes": _routes,
    "hatch": _hatch,
    "fidelity": _fidelity,
    "accept": _accept,
    "decline": _decline,
    "select": _select,
    "procedure": _procedure,
    "valve": _valve,
    "seal": _seal,
    "diagnostics": _diagnostics,
    "trace": _trace,
    "sync": _sync,
    "main": _main,
}


def interpret(state: StaveState, text: str) -> CommandOutcome:
    """Interpret one line typed at the STAVE terminal."""
    parsed = parse_command(text)
    if parsed is None:
        return CommandOutcome(state=state, recognized=False)
    if state.terminal:
        return terminal_reply(state, parsed)

    verb = VOCABULARY.resolve(parsed.verb)
    if verb is None:
        return unrecognized(state, parsed)

    reply = _Reply(state)
    if state.system.routing_degraded and verb not in ROUTING_EXEMPT:
        reply.say(NoticeKind.ERROR, "routing.degraded", "INSUFFICIENT AUTHORIZATION. Command routing degraded.")
        return reply.outcome()

    HANDLERS[verb](reply, parsed)
    return reply.outcome()


# ============================================================================
# Tick announcements
# ============================================================================


def announce(prev: StaveState, next_: StaveState) -> tuple[Notice, ...]:
    """Notices for everything a tick changed that the crew should hear about."""
    out: list[Notice] = []

    def say(kind: NoticeKind, code: str, message: str, **data) -> None:
        out.append(notice(kind, code, message, tick=next_.tick_count, **data))

    t1_fired = next_.fired("T1") and not prev.fired("T1")
    sealed_now = next_.system.compartments_sealed[len(prev.system.compartments_sealed):]

    if t1_fired:
        where = f"Compartment {sealed_now[-1]} sealed - mission priority." if sealed_now else "Mission priority elevated."
        say(NoticeKind.DIRECTIVE, "rule.T1", f"DIRECTIVE CASCADE: Multiple sub-protocols activated. {where}")
        say(NoticeKind.DIRECTIVE, "rule.T1.egress", "EGRESS ROUTE STATUS: COMPROMISED. MISSION PRIORITY DELTA: +14%.")
    elif sealed_now:
        say(NoticeKind.DIRECTIVE, "directive.sealed",
            f"Compartment {sealed_now[-1]} sealed - DIRECTIVE automated sequence. "
            "Power rerouted to mission-critical systems.", compartment=sealed_now[-1])

    if next_.fired("T2") and not prev.fired("T2"):
        say(NoticeKind.SHOCK, "rule.T2", "FIDELITY OVERRIDE - MISSION CONTINUITY PRIORITIZED.")
        say(NoticeKind.FIDELITY, "rule.T2.routing",
            "Self-preservation command routing suspended. Authorization required: SURFCOM-level clearance.")

    if next_.fired("T3") and not prev.fired("T3"):
        say(NoticeKind.DEPRECATED, "rule.T3",
            f"Route table: {next_.routes.deprecated_count} of {len(next_.routes.routes)} routes deprecated. "
            "Regeneration rate elevated.")

    if next_.fired("T4") and not prev.fired("T4"):
        say(NoticeKind.SHELL, "rule.T4", "DIRECTIVE STATUS: ACTIVE - NO ACTIONABLE CONTEXT.")

    if next_.system.crew_viable < prev.system.crew_viable:
        say(NoticeKind.ERROR, "crew.lost",
            f"CREW_VIABLE updated: {next_.system.crew_viable}/{CREW_TOTAL}. Compartment isolation event.",
            crew_viable=next_.system.crew_viable)

    if next_.constraints.hull.phase == "critical" and prev.constraints.hull.phase != "critical":
        say(NoticeKind.HULL, "hull.critical", "HULL INTEGRITY CRITICAL. Structural failure imminent.")

    for route in next_.routes.routes[len(prev.routes.routes):]:
        say(NoticeKind.PME, "route.generated",
            f"PME: route {route.id} available ({route.classification.value}, viability {route.viability}%).",
            route=route.id)

    prev_live = {route.id for route in prev.routes.live_routes}
    for route in next_.routes.routes:
        if route.deprecated and route.id in prev_live:
            say(NoticeKind.DEPRECATED, "route.expired", f"Route {route.id} DEPRECATED.", route=route.id)

    task = next_.pending
    if task is not None and prev.system.pending_task != task.id:
        say(NoticeKind.PME, "task.offered", f"Route optimization requires: {task.description}.", task=task.id)
        say(NoticeKind.FIDELITY, "task.risk",
            f"Risk assessment: {task.risk}. Shall I display the procedure? Type 'accept' or 'decline'.")

    if next_.terminal and not prev.terminal:
        elapsed = OBJECTIVE_SECONDS - next_.pme.objective_seconds_left
        say(NoticeKind.SHELL, "session.terminal",
            f"STRUCTURAL FAILURE at T+{format_clock(elapsed)}. DIRECTIVE STATUS: ACTIVE - NO ACTIONABLE CONTEXT.",
            terminal_timestamp=next_.terminal_timestamp)

    return tuple(out)
