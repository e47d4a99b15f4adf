"""Built-in stories. Importing this package registers them."""

from .ekspeditsiya import EkspeditsiyaEngine
from .stave import StaveEngine
from .twenty_years import TwentyYearsEngine

__all__ = ["StaveEngine", "TwentyYearsEngine", "EkspeditsiyaEngine"]
