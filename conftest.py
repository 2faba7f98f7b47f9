"""
Shared fixtures: a small in-memory world and controllers built on it.
"""

import random
from pathlib import Path

import pytest

from airsim import City, Route, PlaneSpec, World, GameConfig, Notifier, TurnController

DATA_DIR = Path(__file__).parent / "data"

PARIS = City("Paris", 48.8566, 2.3522, 11000000)
LYON = City("Lyon", 45.764, 4.8357, 1700000)
NICE = City("Nice", 43.7102, 7.262, 1000000)
NEW_YORK = City("New York", 40.7128, -74.006, 18800000)
DAKAR = City("Dakar", 14.7167, -17.4677, 1100000)

RIVALS = [
    {"id": "globex", "name": "Globex Airlines", "strategy": "hub",
     "money": 80000000, "reputation": 62, "fleet_value": 40000000, "aggro": 1.0},
    {"id": "skylink", "name": "SkyLink", "strategy": "lowcost",
     "money": 50000000, "reputation": 48, "fleet_value": 25000000, "aggro": 1.1},
    {"id": "aeromax", "name": "AeroMax", "strategy": "premium",
     "money": 30000000, "reputation": 58, "fleet_value": 15000000, "aggro": 0.9},
]


class FixedRandom(random.Random):
    """Random source whose random() always returns the same draw."""

    def __init__(self, value: float):
        super().__init__(0)
        self.value = value

    def random(self):
        return self.value


def build_world() -> World:
    routes = [
        Route("PAR-LYS", PARIS, LYON, 392, demand=100, price_factor=0.2,
              fuel_multiplier=0.001, setup_cost=50000),
        Route("LYS-NCE", LYON, NICE, 300, demand=80, price_factor=0.3,
              fuel_multiplier=0.0011, setup_cost=30000),
        Route("PAR-NYC", PARIS, NEW_YORK, 5837, demand=200, price_factor=0.12,
              fuel_multiplier=0.0013, setup_cost=250000),
        Route("LYS-DKR", LYON, DAKAR, 4000, demand=60, price_factor=0.14,
              fuel_multiplier=0.0013, setup_cost=150000),
    ]
    planes = [
        PlaneSpec("A320", value=42000000, lifetime=25, initial_count=2),
        PlaneSpec("B747", value=120000000, lifetime=30),
    ]
    return World(routes, planes)


@pytest.fixture
def world():
    return build_world()


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def make_controller(world, notifier):
    """Factory for controllers over the in-memory world."""

    def _make(seed: int = 7, rng=None, historical_events=None, rivals=None, **config):
        cfg = GameConfig(data_path=DATA_DIR, seed=seed, **config)
        return TurnController(
            world,
            cfg,
            notifier,
            rng=rng,
            historical_events=historical_events,
            rival_catalog=[dict(r) for r in (rivals if rivals is not None else RIVALS)],
        )

    return _make
