"""
Engine Configuration.

Runtime settings for sessions and the CLI. Story constants are not
configurable here; they are each story's initial snapshot.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]

ENV_PREFIX = "NARRATIVE_"


@dataclass
class EngineConfig:
    """Main configuration for a narrative session.

    Precedence when the CLI builds one: command-line options, then
    ``NARRATIVE_*`` environment variables (``.env`` is loaded first), then
    an optional JSON file, then these defaults.
    """

    story: str = "stave"
    seed: int | None = None  # None draws a seed once per session
    tick_interval: float = 1.0  # Real seconds between scheduler ticks
    dt: float = 1.0  # Objective seconds per tick

    # Logging
    log_level: LogLevel = "WARNING"
    log_dir: Path | None = None

    def __post_init__(self):
        if isinstance(self.log_dir, str):
            self.log_dir = Path(self.log_dir)
        if self.dt <= 0:
            raise ValueError(f"dt must be positive, got {self.dt}")
        if self.tick_interval < 0:
            raise ValueError(f"tick_interval must be non-negative, got {self.tick_interval}")
        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ValueError(f"Unknown log level: {self.log_level}")

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> "EngineConfig":
        """Load configuration from a JSON file.

        Args:
            config_path: Path to config file. Missing or None gives defaults.

        Returns:
            EngineConfig instance
        """
        if config_path is None:
            return cls()

        config_path = Path(config_path)
        if not config_path.exists():
            return cls()

        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EngineConfig":
        """Create config from dictionary."""
        seed = data.get("seed")
        log_dir = data.get("log_dir")
        return cls(
            story=data.get("story", "stave"),
            seed=int(seed) if seed is not None else None,
            tick_interval=float(data.get("tick_interval", 1.0)),
            dt=float(data.get("dt", 1.0)),
            log_level=str(data.get("log_level", "WARNING")).upper(),
            log_dir=Path(log_dir) if log_dir else None,
        )

    @classmethod
    def from_env(cls, base: "EngineConfig | None" = None) -> "EngineConfig":
        """Overlay ``NARRATIVE_*`` environment variables onto ``base``."""
        data = (base or cls()).to_dict()
        for key in ("story", "seed", "tick_interval", "dt", "log_level", "log_dir"):
            if value := os.environ.get(f"{ENV_PREFIX}{key.upper()}"):
                data[key] = value
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "story": self.story,
            "seed": self.seed,
            "tick_interval": self.tick_interval,
            "dt": self.dt,
            "log_level": self.log_level,
            "log_dir": str(self.log_dir) if self.log_dir else None,
        }

    def save(self, config_path: str | Path) -> Path:
        """Save configuration to a JSON file."""
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

        return config_path
