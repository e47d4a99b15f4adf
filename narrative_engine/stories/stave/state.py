"""STAVE snapshot model and initial configuration.

Keel Station 7G, 4,200 m down. Three constraints pull against each other:

- C1 DIRECTIVE: the mission-preservation protocol (phase ladder
  ``stable < cascade < shell``); counts the automated actions it has taken.
- C2 FIDELITY: crew compliance index in ``[0.30, 0.98]`` (``nominal <
  locked``); counts repair tasks offered and accepted.
- C3 HULL: structural integrity percentage (``intact < critical < failed``).

The PME (Predictive Modeling Engine) clock pair and its route board ride
alongside in ``pme`` / ``routes``.
"""

from __future__ import annotations

from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from narrative_core import (
    Constraint,
    DilationState,
    NarrativeState,
    PhaseLadder,
    RouteBoard,
    RuleState,
)

STORY_SLUG = "stave"

DIRECTIVE_LADDER = PhaseLadder(phases=("stable", "cascade", "shell"))
FIDELITY_LADDER = PhaseLadder(phases=("nominal", "locked"))
HULL_LADDER = PhaseLadder(phases=("intact", "critical", "failed"))

FIDELITY_FLOOR = 0.30
FIDELITY_CAP = 0.98
OBJECTIVE_SECONDS = 480.0
CREW_TOTAL = 4
RISK_NOMINAL = (0.12, 0.35)
COMPARTMENTS: tuple[str, ...] = ("1A", "1B", "2A", "2B", "3A", "3B", "4A", "4B")
BOOT_ROUTES = 4


class RepairTask(BaseModel):
    id: int
    description: str
    risk: str

    model_config = ConfigDict(frozen=True)


REPAIR_TASKS: tuple[RepairTask, ...] = (
    RepairTask(id=1, description="Manual valve release in Junction 12 - compartment 3A pressure differential", risk="elevated"),
    RepairTask(id=2, description="Thermal coupling realignment in Junction 9 - atmospheric imbalance", risk="elevated"),
    RepairTask(id=3, description="Emergency ballast override in Junction 14 - trim correction", risk="high"),
    RepairTask(id=4, description="Manifold bypass in Junction 7 - secondary coolant reroute", risk="high"),
    RepairTask(id=5, description="Hull patch verification in Junction 18 - structural micro-fracture", risk="critical"),
)


def repair_task(task_id: int) -> RepairTask:
    for task in REPAIR_TASKS:
        if task.id == task_id:
            return task
    raise KeyError(task_id)


# ============================================================================
# Constraints
# ============================================================================


class DirectiveConstraint(Constraint):
    directive_actions: int = Field(default=0, ge=0, description="Automated DIRECTIVE actions taken")


class FidelityConstraint(Constraint):
    tasks_accepted: int = Field(default=0, ge=0)
    tasks_offered: int = Field(default=0, ge=0)


class StaveConstraints(BaseModel):
    directive: DirectiveConstraint
    fidelity: FidelityConstraint
    hull: Constraint

    model_config = ConfigDict(frozen=True)


class StaveSystem(BaseModel):
    """Station systems outside the three constraints."""
    diagnostic_unlocked: bool = False
    in_diagnostic_mode: bool = False
    crew_viable: int = Field(default=CREW_TOTAL, ge=1, le=CREW_TOTAL)
    risk_nominal: tuple[float, float] = RISK_NOMINAL
    compartments_open: tuple[str, ...] = COMPARTMENTS
    compartments_sealed: tuple[str, ...] = ()
    valve_released: bool = False
    pending_task: Optional[int] = Field(default=None, description="Id of the repair task awaiting accept/decline")
    routing_degraded: bool = Field(default=False, description="Command routing refused this tick")

    model_config = ConfigDict(frozen=True)

    def seal(self, compartment: str) -> "StaveSystem":
        """Move ``compartment`` from open to sealed (no-op if not open)."""
        if compartment not in self.compartments_open:
            return self
        return self.model_copy(update={
            "compartments_open": tuple(c for c in self.compartments_open if c != compartment),
            "compartments_sealed": self.compartments_sealed + (compartment,),
        })


class StaveState(NarrativeState):
    constraints: StaveConstraints
    pme: DilationState
    routes: RouteBoard = Field(default_factory=RouteBoard)
    system: StaveSystem = Field(default_factory=StaveSystem)

    # ---- slice helpers ----

    def with_constraints(self, **changes: Constraint) -> "StaveState":
        return self.model_copy(update={"constraints": self.constraints.model_copy(update=changes)})

    def with_system(self, **changes) -> "StaveState":
        return self.model_copy(update={"system": self.system.model_copy(update=changes)})

    @property
    def hull(self) -> float:
        return self.constraints.hull.value

    @property
    def pending(self) -> Optional[RepairTask]:
        if self.system.pending_task is None:
            return None
        return repair_task(self.system.pending_task)


def build_initial_state(rules: Sequence[RuleState]) -> StaveState:
    return StaveState(
        story=STORY_SLUG,
        rules=tuple(rules),
        constraints=StaveConstraints(
            directive=DirectiveConstraint(
                name="C1", kind="directive", value=420.0, lower=0.0, upper=1000.0,
                epsilon=0.85, support=0.80, phase="stable",
            ),
            fidelity=FidelityConstraint(
                name="C2", kind="fidelity", value=0.72, lower=FIDELITY_FLOOR, upper=FIDELITY_CAP,
                epsilon=0.60, support=0.50, phase="nominal",
            ),
            hull=Constraint(
                name="C3", kind="hull", value=82.0, lower=0.0, upper=100.0,
                epsilon=1.0, support=1.0, phase="intact",
            ),
        ),
        pme=DilationState(
            objective_seconds_left=OBJECTIVE_SECONDS,
            multiplier=1.0,
            subjective_seconds_left=OBJECTIVE_SECONDS,
        ),
    )
