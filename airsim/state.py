"""
Mutable simulation state owned by the turn controller.

Everything a turn or a player action can change lives on SimulationState.
External layers only ever see the dict returned by snapshot().
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .config import Difficulty, FUEL_PRICE_MIN, FUEL_PRICE_MAX
from .world import World, PlaneSpec


class RouteState(Enum):
    CLOSED = "closed"
    OPERATIONAL = "operational"
    SUSPENDED_WEATHER = "suspended_weather"
    SUSPENDED_SECURITY = "suspended_security"

    @property
    def suspended(self) -> bool:
        return self in (RouteState.SUSPENDED_WEATHER, RouteState.SUSPENDED_SECURITY)


class Strategy(Enum):
    HUB = "hub"
    LOWCOST = "lowcost"
    PREMIUM = "premium"


@dataclass
class RouteStatus:
    """Player's operating status on one route."""
    open: bool = False
    planes_assigned: int = 0
    status: RouteState = RouteState.CLOSED
    # Owned planes moved onto this route, in assignment order
    fleet_assignments: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "open": self.open,
            "planes_assigned": self.planes_assigned,
            "status": self.status.value,
            "fleet_assignments": list(self.fleet_assignments),
        }


@dataclass
class FleetEntry:
    """Player-owned planes of one model."""
    model: str
    value: int
    lifetime: int
    count: int = 0  # Planes in the hangar (not assigned to a route)
    age: int = 0    # Years since the fleet's last review

    @classmethod
    def from_spec(cls, spec: PlaneSpec) -> "FleetEntry":
        return cls(
            model=spec.model,
            value=spec.value,
            lifetime=spec.lifetime,
            count=spec.initial_count,
            age=spec.initial_age,
        )

    def to_dict(self) -> dict:
        return {
            "model": self.model,
            "value": self.value,
            "lifetime": self.lifetime,
            "count": self.count,
            "age": self.age,
        }


@dataclass
class Competitor:
    """An AI-controlled rival airline."""
    id: str
    name: str
    strategy: Strategy
    money: float
    reputation: float
    fleet_value: float
    aggro: float = 1.0
    open_routes: dict[str, bool] = field(default_factory=dict)
    alliances: list[str] = field(default_factory=list)

    def is_open(self, route_id: str) -> bool:
        return self.open_routes.get(route_id, False)

    def active_routes(self) -> list[str]:
        return [rid for rid, is_open in self.open_routes.items() if is_open]

    def is_allied(self, other_id: str) -> bool:
        return other_id in self.alliances

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "strategy": self.strategy.value,
            "money": self.money,
            "reputation": self.reputation,
            "fleet_value": self.fleet_value,
            "aggro": self.aggro,
            "open_routes": dict(self.open_routes),
            "alliances": list(self.alliances),
        }


@dataclass
class GlobalEvent:
    """Entry in the append-only history log."""
    year: int
    type: str
    data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"year": self.year, "type": self.type, **self.data}


@dataclass
class PlayerState:
    """The player airline's headline numbers."""
    year: int
    money: float
    reputation: float
    fuel_price: float
    difficulty: Difficulty = Difficulty.NORMAL

    def adjust_reputation(self, delta: float):
        self.reputation = max(0.0, min(100.0, self.reputation + delta))

    def set_fuel_price(self, price: float):
        self.fuel_price = max(FUEL_PRICE_MIN, min(FUEL_PRICE_MAX, price))


@dataclass
class SimulationState:
    """Complete simulation state."""
    world: World
    player: PlayerState
    routes: dict[str, RouteStatus] = field(default_factory=dict)
    fleet: list[FleetEntry] = field(default_factory=list)
    competitors: list[Competitor] = field(default_factory=list)
    events: list[GlobalEvent] = field(default_factory=list)
    tick_in_progress: bool = False

    @classmethod
    def new(
        cls,
        world: World,
        player: PlayerState,
        competitors: Optional[list[Competitor]] = None,
    ) -> "SimulationState":
        """Fresh state: every route closed, fleet as listed in the catalog."""
        state = cls(
            world=world,
            player=player,
            routes={r.id: RouteStatus() for r in world.routes},
            fleet=[FleetEntry.from_spec(p) for p in world.planes],
            competitors=competitors or [],
        )
        for comp in state.competitors:
            for route in world.routes:
                comp.open_routes.setdefault(route.id, False)
        return state

    def record(self, event_type: str, **data) -> GlobalEvent:
        """Append an event to the history log."""
        event = GlobalEvent(year=self.player.year, type=event_type, data=data)
        self.events.append(event)
        return event

    def get_competitor(self, competitor_id: str) -> Optional[Competitor]:
        for comp in self.competitors:
            if comp.id == competitor_id:
                return comp
        return None

    def get_fleet_entry(self, model: str) -> Optional[FleetEntry]:
        for entry in self.fleet:
            if entry.model == model:
                return entry
        return None

    def competitors_on_route(self, route_id: str) -> int:
        return sum(1 for c in self.competitors if c.is_open(route_id))

    def open_route_ids(self) -> list[str]:
        return [rid for rid, s in self.routes.items() if s.open]

    def fleet_size(self) -> int:
        """Planes owned, whether in the hangar or flying a route."""
        hangar = sum(e.count for e in self.fleet)
        assigned = sum(len(s.fleet_assignments) for s in self.routes.values())
        return hangar + assigned

    def snapshot(self) -> dict:
        """Read-only copy of the state for rendering layers."""
        p = self.player
        return copy.deepcopy({
            "year": p.year,
            "money": p.money,
            "reputation": p.reputation,
            "fuel_price": p.fuel_price,
            "difficulty": p.difficulty.value,
            "fleet": [e.to_dict() for e in self.fleet],
            "fleet_size": self.fleet_size(),
            "routes": [r.to_dict() for r in self.world.routes],
            "open_routes": {rid: s.to_dict() for rid, s in self.routes.items()},
            "competitors": [c.to_dict() for c in self.competitors],
            "events": [e.to_dict() for e in self.events],
        })
