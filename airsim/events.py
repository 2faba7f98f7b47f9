"""
Random and historical world events.

Random events are rolled every turn: fuel crises and weather closures.
Historical events are scripted one-off shocks tied to a calendar year.
"""

import random
import logging
import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import DifficultySettings
from .notify import Notifier
from .state import SimulationState, RouteState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistoricalEvent:
    """A scripted shock applied once when its year comes around."""
    id: str
    year: int
    name: str
    reputation: float = 0.0        # Added to player reputation
    fuel_factor: float = 1.0       # Multiplies fuel price
    security_suspension: float = 0.0  # Chance each open route is suspended for security


DEFAULT_HISTORICAL_EVENTS = [
    HistoricalEvent("chernobyl", 1986, "Chernobyl (1986)", reputation=-1, fuel_factor=1.05),
    HistoricalEvent("gulfwar", 1990, "Gulf crisis (1990)", reputation=-3, fuel_factor=1.4),
    HistoricalEvent("sept11", 2001, "September 11 (2001)", reputation=-10, security_suspension=0.4),
    HistoricalEvent("fincrisis", 2008, "Financial crisis (2008)", reputation=-4, fuel_factor=0.9),
]


def load_historical_events(data_path: Path | str = "data") -> list[HistoricalEvent]:
    """Load the historical timeline, falling back to the built-in table."""
    path = Path(data_path) / "historical_events.yaml"
    if not path.exists():
        return list(DEFAULT_HISTORICAL_EVENTS)

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    events = []
    for entry in data.get("historical_events", []):
        if not isinstance(entry, dict) or "id" not in entry or "year" not in entry:
            logger.warning(f"Skipping malformed historical event: {entry!r}")
            continue
        events.append(HistoricalEvent(
            id=str(entry["id"]),
            year=int(entry["year"]),
            name=entry.get("name", entry["id"]),
            reputation=float(entry.get("reputation", 0.0)),
            fuel_factor=float(entry.get("fuel_factor", 1.0)),
            security_suspension=float(entry.get("security_suspension", 0.0)),
        ))
    logger.info(f"Loaded {len(events)} historical events from {path}")
    return events


class EventSystem:
    """Rolls random events and fires due historical events."""

    FUEL_SHOCK_PROBABILITY = 0.006
    FUEL_SHOCK_MIN = 1.3
    FUEL_SHOCK_SPREAD = 0.6
    FUEL_SHOCK_REPUTATION = -2
    WEATHER_CLOSURE_PROBABILITY = 0.03

    def __init__(
        self,
        settings: DifficultySettings,
        historical_events: Optional[list[HistoricalEvent]] = None,
    ):
        self.settings = settings
        if historical_events is None:
            historical_events = list(DEFAULT_HISTORICAL_EVENTS)
        self.historical_events = historical_events

    def process_turn(self, state: SimulationState, rng: random.Random, notifier: Notifier) -> list[str]:
        """Run random then historical events. Returns the ids of historical events applied."""
        self.roll_fuel_shock(state, rng, notifier)
        self.roll_weather(state, rng, notifier)
        return self.apply_historical(state, rng, notifier)

    def roll_fuel_shock(self, state: SimulationState, rng: random.Random, notifier: Notifier) -> bool:
        player = state.player
        probability = self.FUEL_SHOCK_PROBABILITY * self.settings.fuel_shock_multiplier
        if rng.random() >= probability:
            return False

        factor = self.FUEL_SHOCK_MIN + rng.random() * self.FUEL_SHOCK_SPREAD
        player.set_fuel_price(player.fuel_price * factor)
        player.adjust_reputation(self.FUEL_SHOCK_REPUTATION)
        state.record("fuel_crisis", impact=player.fuel_price)
        notifier.log("Sudden oil crisis")
        return True

    def roll_weather(self, state: SimulationState, rng: random.Random, notifier: Notifier) -> list[str]:
        """Close open routes for weather; lift last turn's weather closures otherwise.

        Security suspensions are left alone and only end when the player
        closes the route.
        """
        closed = []
        for route in state.world.routes:
            status = state.routes[route.id]
            if rng.random() < self.WEATHER_CLOSURE_PROBABILITY:
                if status.open and status.status != RouteState.SUSPENDED_SECURITY:
                    status.status = RouteState.SUSPENDED_WEATHER
                    state.record("weather_closure", route=route.id)
                    notifier.log(f"Weather closure: {route.label}")
                    notifier.route_changed(route.id)
                    closed.append(route.id)
            elif status.status == RouteState.SUSPENDED_WEATHER:
                status.status = RouteState.OPERATIONAL
                notifier.route_changed(route.id)
        return closed

    def already_applied(self, state: SimulationState, event_id: str) -> bool:
        return any(
            e.type == "historical" and e.data.get("event_id") == event_id
            for e in state.events
        )

    def apply_historical(self, state: SimulationState, rng: random.Random, notifier: Notifier) -> list[str]:
        player = state.player
        applied = []
        for event in self.historical_events:
            if event.year != player.year:
                continue
            if self.already_applied(state, event.id):
                logger.info(f"Historical event {event.id} already applied, skipping")
                continue

            player.adjust_reputation(event.reputation)
            if event.fuel_factor != 1.0:
                player.set_fuel_price(player.fuel_price * event.fuel_factor)
            if event.security_suspension > 0:
                for route_id in state.open_route_ids():
                    if rng.random() < event.security_suspension:
                        state.routes[route_id].status = RouteState.SUSPENDED_SECURITY
                        notifier.route_changed(route_id)

            state.record("historical", event_id=event.id, msg=event.name)
            notifier.log(f"Historical event: {event.name}")
            applied.append(event.id)
        return applied
