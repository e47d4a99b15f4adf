"""STAVE - Keel Station 7G."""

from .engine import StaveEngine, initial_state
from .propagator import advance, dilation_multiplier
from .state import StaveState

__all__ = ["StaveEngine", "StaveState", "advance", "dilation_multiplier", "initial_state"]
