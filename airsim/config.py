"""
Difficulty presets and runtime configuration.
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


class Difficulty(Enum):
    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"


@dataclass(frozen=True)
class DifficultySettings:
    """Tuning parameters selected by a difficulty level."""
    maintenance_factor: float
    fuel_base: float
    demand_sensitivity: float
    incident_multiplier: float
    competitor_aggro: float
    fuel_shock_multiplier: float = 1.0  # Scales the fuel crisis probability


DIFFICULTY_PRESETS: dict[Difficulty, DifficultySettings] = {
    Difficulty.EASY: DifficultySettings(
        maintenance_factor=0.006, fuel_base=0.18, demand_sensitivity=0.8,
        incident_multiplier=0.6, competitor_aggro=0.7,
    ),
    Difficulty.NORMAL: DifficultySettings(
        maintenance_factor=0.008, fuel_base=0.22, demand_sensitivity=0.9,
        incident_multiplier=1.0, competitor_aggro=1.0,
    ),
    Difficulty.HARD: DifficultySettings(
        maintenance_factor=0.012, fuel_base=0.26, demand_sensitivity=1.05,
        incident_multiplier=1.4, competitor_aggro=1.4, fuel_shock_multiplier=1.6,
    ),
}

# Economy constants shared by all difficulty levels
AIRPORT_FEE_PER_KM = 0.015
INCIDENT_BASE_PROBABILITY = 0.0015
FUEL_PRICE_MIN = 0.05
FUEL_PRICE_MAX = 2.0


def parse_difficulty(level: "Difficulty | str") -> Difficulty:
    """Resolve a difficulty tag, raising ValueError for unknown levels."""
    if isinstance(level, Difficulty):
        return level
    try:
        return Difficulty(str(level).strip().lower())
    except ValueError:
        options = "|".join(d.value for d in Difficulty)
        raise ValueError(f"Unknown difficulty '{level}' (expected {options})") from None


def get_settings(level: "Difficulty | str") -> DifficultySettings:
    return DIFFICULTY_PRESETS[parse_difficulty(level)]


@dataclass
class GameConfig:
    """Configuration for a single game."""
    data_path: Path = Path("data")
    difficulty: Difficulty = Difficulty.NORMAL
    seed: Optional[int] = None
    start_year: int = 1985
    start_money: float = 100000000
    start_reputation: float = 55.0
    log_dir: Path = Path("logs")

    @property
    def settings(self) -> DifficultySettings:
        return DIFFICULTY_PRESETS[self.difficulty]

    @classmethod
    def from_env(cls, env_file: Optional[Path | str] = None, **overrides) -> "GameConfig":
        """Build a config from AIRSIM_* environment variables (and a .env file)."""
        load_dotenv(env_file)

        seed = os.getenv("AIRSIM_SEED")
        values = {
            "data_path": Path(os.getenv("AIRSIM_DATA_PATH", "data")),
            "difficulty": parse_difficulty(os.getenv("AIRSIM_DIFFICULTY", "normal")),
            "seed": int(seed) if seed else None,
            "start_year": int(os.getenv("AIRSIM_START_YEAR", "1985")),
            "log_dir": Path(os.getenv("AIRSIM_LOG_DIR", "logs")),
        }
        # Explicit arguments win over the environment
        for key, value in overrides.items():
            if value is None:
                continue
            if key == "difficulty":
                value = parse_difficulty(value)
            elif key in ("data_path", "log_dir"):
                value = Path(value)
            values[key] = value
        return cls(**values)
