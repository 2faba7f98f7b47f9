"""
Turn sequencing for the airline simulation.

Each turn is one year. Phases run in a fixed order:
competitors → fuel → revenue → maintenance → events → reputation
"""

import random
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .config import GameConfig, Difficulty, parse_difficulty
from .events import EventSystem, HistoricalEvent, load_historical_events
from .ledger import FleetLedger, SimulationBusyError
from .market import MarketModel, RevenueReport
from .notify import Notifier
from .state import SimulationState, PlayerState
from .world import World

logger = logging.getLogger(__name__)


class Phase(Enum):
    """Turn phases in order of execution."""
    COMPETITORS = "competitors"
    FUEL = "fuel"
    REVENUE = "revenue"
    MAINTENANCE = "maintenance"
    EVENTS = "events"
    REPUTATION = "reputation"


@dataclass
class TurnReport:
    """What happened during one turn."""
    year: int
    revenue: Optional[RevenueReport] = None
    maintenance_cost: float = 0.0
    retired: list[str] = field(default_factory=list)
    historical_events: list[str] = field(default_factory=list)
    fuel_price: float = 0.0
    money: float = 0.0
    reputation: float = 0.0

    def to_dict(self) -> dict:
        return {
            "year": self.year,
            "revenue": self.revenue.to_dict() if self.revenue else None,
            "maintenance_cost": round(self.maintenance_cost, 2),
            "retired": list(self.retired),
            "historical_events": list(self.historical_events),
            "fuel_price": round(self.fuel_price, 4),
            "money": round(self.money, 2),
            "reputation": round(self.reputation, 2),
        }


class TurnController:
    """Owns the simulation state and advances it one year at a time."""

    PHASES = [
        Phase.COMPETITORS,
        Phase.FUEL,
        Phase.REVENUE,
        Phase.MAINTENANCE,
        Phase.EVENTS,
        Phase.REPUTATION,
    ]

    FUEL_DRIFT = 0.06          # Full width of the yearly fuel random walk
    REPUTATION_DRIFT = 1.4     # Full width of the yearly reputation random walk
    AGE_COST_FACTOR = 0.06
    SALVAGE_RATE = 0.15
    RETIREMENT_REPUTATION = -0.5

    def __init__(
        self,
        world: World,
        config: Optional[GameConfig] = None,
        notifier: Optional[Notifier] = None,
        rng: Optional[random.Random] = None,
        competitor_ai=None,
        historical_events: Optional[list[HistoricalEvent]] = None,
        rival_catalog: Optional[list[dict]] = None,
    ):
        self.world = world
        self.config = config or GameConfig()
        self.notifier = notifier or Notifier()
        self.rng = rng or random.Random(self.config.seed)

        settings = self.config.settings
        self.market = MarketModel(settings)
        if historical_events is None:
            historical_events = load_historical_events(self.config.data_path)
        self.events = EventSystem(settings, historical_events)

        # Rival AI lives in its own package, which builds on this one
        from rivals import CompetitorAI, load_catalog
        self.competitor_ai = competitor_ai or CompetitorAI(settings)
        self.rival_catalog = rival_catalog if rival_catalog is not None else load_catalog(self.config.data_path)

        self.state = self._fresh_state()
        self.ledger = FleetLedger(self.state, self.notifier)
        self.history: list[TurnReport] = []

    def _fresh_state(self) -> SimulationState:
        from rivals import create_competitors

        player = PlayerState(
            year=self.config.start_year,
            money=self.config.start_money,
            reputation=self.config.start_reputation,
            fuel_price=self.config.settings.fuel_base,
            difficulty=self.config.difficulty,
        )
        return SimulationState.new(self.world, player, create_competitors(self.rival_catalog))

    def snapshot(self) -> dict:
        return self.state.snapshot()

    def market_share(self) -> dict[str, float]:
        return self.market.compute_market_share(self.state, self.rng)

    def next_turn(self) -> TurnReport:
        """Advance the simulation by one year."""
        if self.state.tick_in_progress:
            raise SimulationBusyError("Turn already in progress")

        self.state.tick_in_progress = True
        try:
            self.state.player.year += 1
            report = TurnReport(year=self.state.player.year)
            for phase in self.PHASES:
                self.execute_phase(phase, report)
        finally:
            self.state.tick_in_progress = False

        player = self.state.player
        report.fuel_price = player.fuel_price
        report.money = player.money
        report.reputation = player.reputation
        self.history.append(report)

        logger.info(
            f"Year {report.year} complete: money {player.money:,.0f}, "
            f"reputation {player.reputation:.1f}, fuel {player.fuel_price:.3f}"
        )
        self.notifier.snapshot(self.state.snapshot())
        return report

    def execute_phase(self, phase: Phase, report: TurnReport):
        """Execute a single phase of the current turn."""
        if phase == Phase.COMPETITORS:
            self.competitor_ai.run_turn(self.state, self.rng, self.notifier)
        elif phase == Phase.FUEL:
            self._drift_fuel_price()
        elif phase == Phase.REVENUE:
            report.revenue = self.market.collect_revenue(self.state, self.rng, self.notifier)
        elif phase == Phase.MAINTENANCE:
            report.maintenance_cost, report.retired = self._apply_maintenance()
        elif phase == Phase.EVENTS:
            report.historical_events = self.events.process_turn(self.state, self.rng, self.notifier)
        elif phase == Phase.REPUTATION:
            drift = (self.rng.random() - 0.5) * self.REPUTATION_DRIFT
            self.state.player.adjust_reputation(drift)

    def _drift_fuel_price(self):
        player = self.state.player
        change = (self.rng.random() - 0.5) * self.FUEL_DRIFT
        player.set_fuel_price(player.fuel_price * (1 + change))

    def _apply_maintenance(self) -> tuple[float, list[str]]:
        """Pay upkeep on hangar planes and retire at most one worn-out plane per model."""
        player = self.state.player
        factor = self.config.settings.maintenance_factor
        total = 0.0
        retired = []

        for entry in self.state.fleet:
            cost = entry.value * factor * (1 + entry.age * self.AGE_COST_FACTOR) * entry.count
            player.money -= cost
            total += cost

            if entry.age > entry.lifetime and entry.count > 0:
                entry.count -= 1
                salvage = round(entry.value * self.SALVAGE_RATE)
                player.money += salvage
                player.adjust_reputation(self.RETIREMENT_REPUTATION)
                self.state.record("retire", model=entry.model, salvage=salvage)
                self.notifier.log(f"Retired: {entry.model} (salvage {salvage}$)")
                retired.append(entry.model)

            entry.age += 1

        return total, retired

    def set_difficulty(self, level: "Difficulty | str"):
        """Switch difficulty between turns; fuel price resets to the new base."""
        if self.state.tick_in_progress:
            raise SimulationBusyError("Cannot change difficulty during a turn")

        difficulty = parse_difficulty(level)
        self.config.difficulty = difficulty
        settings = self.config.settings
        self.market.settings = settings
        self.events.settings = settings
        self.competitor_ai.settings = settings

        self.state.player.difficulty = difficulty
        self.state.player.set_fuel_price(settings.fuel_base)
        self.notifier.log(f"Difficulty: {difficulty.value}")
        self.notifier.snapshot(self.state.snapshot())

    def reset(self, clear_history: bool = True):
        """Start over from the configured opening position.

        With clear_history=False the event log is carried over, so
        historical events that already happened stay suppressed.
        """
        if self.state.tick_in_progress:
            raise SimulationBusyError("Cannot reset during a turn")

        events = [] if clear_history else list(self.state.events)
        self.state = self._fresh_state()
        self.state.events = events
        self.ledger.state = self.state
        self.history = []
        logger.info(f"Simulation reset to {self.state.player.year} (history kept: {not clear_history})")
        self.notifier.snapshot(self.state.snapshot())

    def rewind(self, year: int):
        """Move the calendar back without touching anything else."""
        if self.state.tick_in_progress:
            raise SimulationBusyError("Cannot rewind during a turn")
        self.state.player.year = year
