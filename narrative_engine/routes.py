"""Ephemeral route generation and expiry.

Routes are time-boxed options that appear on a cadence tied to the dilation
multiplier and lapse against the objective clock. Nothing is ever removed
from the board: expiry only flips ``deprecated``.

Per tick the order is fixed: generate first, then expire. A route created
this tick is therefore visible for at least one snapshot even when its window
is already shorter than the tick.
"""

from __future__ import annotations

import math
from typing import Sequence

from narrative_core import (
    ROUTE_CLASSIFICATIONS,
    DilationState,
    RandomSource,
    Route,
    RouteBoard,
    RouteClass,
)
from narrative_core.logging_config import get_logger

logger = get_logger("engine.routes")

JUNCTIONS: tuple[str, ...] = (
    "Junction 4",
    "Junction 7",
    "Junction 9",
    "Junction 12",
    "Junction 14",
    "Junction 18",
)


def route_label(seq: int) -> str:
    """Display id for a sequence number: ``1 -> B1``, ``25 -> Z25``, ``26 -> A26``."""
    return f"{chr(65 + seq % 26)}{seq}"


class RouteGenerator:
    """Creates and expires routes on a ``RouteBoard``.

    Args:
        ceiling: Maximum number of live (non-deprecated) routes
        base_interval: Generation interval in ticks at multiplier 0
        min_interval: Floor on the generation interval
        interval_slope: Ticks removed from the interval per unit of multiplier
        fallback_compartment: ``through`` value when no compartment is drawn
    """

    def __init__(
        self,
        ceiling: int = 15,
        base_interval: int = 40,
        min_interval: int = 8,
        interval_slope: float = 2.0,
        junctions: Sequence[str] = JUNCTIONS,
        classifications: Sequence[RouteClass] = ROUTE_CLASSIFICATIONS,
        fallback_compartment: str = "2A",
    ):
        self.ceiling = ceiling
        self.base_interval = base_interval
        self.min_interval = min_interval
        self.interval_slope = interval_slope
        self.junctions = tuple(junctions)
        self.classifications = tuple(classifications)
        self.fallback_compartment = fallback_compartment

    # ========== Cadence ==========

    def interval(self, multiplier: float) -> int:
        """Ticks between generation attempts; shrinks as dilation grows."""
        return math.floor(max(self.min_interval, self.base_interval - multiplier * self.interval_slope))

    def is_due(self, tick_count: int, multiplier: float) -> bool:
        return tick_count % self.interval(multiplier) == 0

    def has_capacity(self, board: RouteBoard) -> bool:
        return len(board.live_routes) < self.ceiling

    # ========== Creation ==========

    def create(
        self,
        board: RouteBoard,
        clock: DilationState,
        open_compartments: Sequence[str],
        elapsed: float,
        rng: RandomSource,
    ) -> RouteBoard:
        """Append one new route unconditionally and advance the sequence."""
        seq = board.next_route_id

        drawn = [c for c in open_compartments if rng.random() > 0.3]
        steps = rng.randrange(2, 5)
        path = tuple(rng.choice(self.junctions) for _ in range(steps))

        subjective_minutes = math.floor(clock.subjective_seconds_left / 60)
        expires_in = max(2, math.floor(rng.random() * subjective_minutes * 0.6) + 1)
        viability = rng.random() * 0.4 + 0.55

        route = Route(
            id=route_label(seq),
            seq=seq,
            classification=rng.choice(self.classifications),
            path=path,
            through=drawn[0] if drawn else self.fallback_compartment,
            viability=round(viability * 100),
            generated_at=elapsed,
            # Frozen at creation: later multiplier changes do not move this threshold
            expires_at_subjective=clock.subjective_seconds_left - expires_in * 60,
            expires_at_objective=clock.objective_seconds_left - (expires_in * 60) / clock.multiplier,
            requires_valve=rng.random() > 0.6,
            requires_manual=rng.random() > 0.5,
        )
        logger.debug(f"Route {route.id} generated ({route.classification.value}, expires in {expires_in}m)")

        return board.model_copy(update={
            "routes": board.routes + (route,),
            "next_route_id": seq + 1,
        })

    def seed(
        self,
        board: RouteBoard,
        clock: DilationState,
        open_compartments: Sequence[str],
        elapsed: float,
        rng: RandomSource,
        count: int,
    ) -> RouteBoard:
        """Populate the board at session start (ceiling still applies)."""
        for _ in range(count):
            if not self.has_capacity(board):
                break
            board = self.create(board, clock, open_compartments, elapsed, rng)
        return board

    def maybe_generate(
        self,
        board: RouteBoard,
        clock: DilationState,
        open_compartments: Sequence[str],
        tick_count: int,
        elapsed: float,
        rng: RandomSource,
    ) -> RouteBoard:
        """Create one route if the cadence is due and the ceiling allows it."""
        if not self.is_due(tick_count, clock.multiplier):
            return board
        if not self.has_capacity(board):
            logger.debug(f"Route ceiling reached ({self.ceiling} live); skipping generation")
            return board
        return self.create(board, clock, open_compartments, elapsed, rng)

    # ========== Expiry ==========

    def expire(self, board: RouteBoard, clock: DilationState) -> RouteBoard:
        """Deprecate every live route whose objective threshold has passed."""
        lapsed = 0
        routes = []
        for route in board.routes:
            if not route.deprecated and clock.objective_seconds_left < route.expires_at_objective:
                route = route.deprecate()
                lapsed += 1
            routes.append(route)

        if not lapsed:
            return board
        return board.model_copy(update={
            "routes": tuple(routes),
            "deprecated_count": board.deprecated_count + lapsed,
        })

    def step(
        self,
        board: RouteBoard,
        clock: DilationState,
        open_compartments: Sequence[str],
        tick_count: int,
        elapsed: float,
        rng: RandomSource,
    ) -> RouteBoard:
        """One tick of route upkeep: generation, then expiry."""
        board = self.maybe_generate(board, clock, open_compartments, tick_count, elapsed, rng)
        return self.expire(board, clock)
