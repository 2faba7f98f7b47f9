"""
Airline simulation engine.

Core modules:
- world: Cities, routes and plane catalog (static reference data)
- config: Difficulty presets and runtime configuration
- state: Mutable simulation state and read-only snapshots
- notify: Callbacks for map/UI consumers
- market: Passenger demand, player revenue, market share
- events: Random and historical events
- ledger: Player actions on routes and fleet
- turn: Turn sequencing and phase management
"""

from .world import World, City, Route, PlaneSpec, WorldDataError
from .config import (
    Difficulty, DifficultySettings, DIFFICULTY_PRESETS, GameConfig,
    parse_difficulty, get_settings,
)
from .state import (
    SimulationState, PlayerState, RouteStatus, RouteState, FleetEntry,
    Competitor, Strategy, GlobalEvent,
)
from .notify import Notifier
from .market import MarketModel, RevenueReport, RouteResult, PLAYER_ID
from .events import EventSystem, HistoricalEvent, load_historical_events
from .ledger import (
    FleetLedger, LedgerError, SimulationBusyError, RouteNotFoundError,
    RouteAlreadyOpenError, RouteNotOpenError, InsufficientFundsError,
    NoPlaneAvailableError, NothingToReleaseError, UnknownModelError,
)
from .turn import TurnController, TurnReport, Phase

__all__ = [
    # World
    "World", "City", "Route", "PlaneSpec", "WorldDataError",
    # Config
    "Difficulty", "DifficultySettings", "DIFFICULTY_PRESETS", "GameConfig",
    "parse_difficulty", "get_settings",
    # State
    "SimulationState", "PlayerState", "RouteStatus", "RouteState", "FleetEntry",
    "Competitor", "Strategy", "GlobalEvent",
    # Notifications
    "Notifier",
    # Market
    "MarketModel", "RevenueReport", "RouteResult", "PLAYER_ID",
    # Events
    "EventSystem", "HistoricalEvent", "load_historical_events",
    # Ledger
    "FleetLedger", "LedgerError", "SimulationBusyError", "RouteNotFoundError",
    "RouteAlreadyOpenError", "RouteNotOpenError", "InsufficientFundsError",
    "NoPlaneAvailableError", "NothingToReleaseError", "UnknownModelError",
    # Turn Management
    "TurnController", "TurnReport", "Phase",
]
