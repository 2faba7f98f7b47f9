"""
Passenger demand, revenue and market share.

Demand on a route grows with the reputation of whoever flies it and is
split between the operators present. The player's yearly result is
revenue from ticket sales minus fuel, airport fees and incidents.
"""

import random
import logging
from dataclasses import dataclass, field

from .config import DifficultySettings, AIRPORT_FEE_PER_KM, INCIDENT_BASE_PROBABILITY
from .notify import Notifier
from .state import SimulationState

logger = logging.getLogger(__name__)

PLAYER_ID = "player"


@dataclass
class RouteResult:
    """Player's result on one route for one turn."""
    route_id: str
    passengers: int
    revenue: float
    fuel_cost: float
    airport_fees: float
    incident_cost: float = 0.0

    @property
    def cost(self) -> float:
        return self.fuel_cost + self.airport_fees + self.incident_cost


@dataclass
class RevenueReport:
    """Player's aggregate result for one turn."""
    year: int
    routes: list[RouteResult] = field(default_factory=list)
    incidents: int = 0

    @property
    def revenue(self) -> float:
        return sum(r.revenue for r in self.routes)

    @property
    def cost(self) -> float:
        return sum(r.cost for r in self.routes)

    @property
    def profit(self) -> float:
        return self.revenue - self.cost

    def to_dict(self) -> dict:
        return {
            "year": self.year,
            "revenue": round(self.revenue, 2),
            "cost": round(self.cost, 2),
            "profit": round(self.profit, 2),
            "incidents": self.incidents,
            "routes": {
                r.route_id: {"passengers": r.passengers, "revenue": round(r.revenue, 2),
                             "cost": round(r.cost, 2)}
                for r in self.routes
            },
        }


class MarketModel:
    """Demand split, player revenue and market-share accounting."""

    COMPETITION_PENALTY = 0.12    # Passenger loss per competitor on a route
    COMPETITION_FLOOR = 0.45
    MIN_TICKET_PRICE = 30
    MAX_INCIDENT_PROBABILITY = 0.02
    INCIDENT_DISTANCE_SCALE = 90000
    MAX_INCIDENT_COST = 90000
    GOOD_YEAR_PROFIT = 150000

    def __init__(self, settings: DifficultySettings):
        self.settings = settings

    @property
    def incident_base_probability(self) -> float:
        return INCIDENT_BASE_PROBABILITY * self.settings.incident_multiplier

    def compute_market_share(self, state: SimulationState, rng: random.Random) -> dict[str, float]:
        """Percentage of passenger-kilometres flown by each operator.

        Keys are "player" and each competitor id. Values are rounded to one
        decimal place and are all 0.0 when nobody flies anything.
        """
        player = state.player
        scores = {PLAYER_ID: 0.0}
        for comp in state.competitors:
            scores[comp.id] = 0.0

        total_rep = max(10.0, player.reputation + sum(c.reputation for c in state.competitors))
        rep_scale = max(0.1, total_rep / (50 * (1 + len(state.competitors))))

        for route in state.world.routes:
            operators = []  # (operator id, reputation, presence weight)
            route_status = state.routes[route.id]
            if route_status.open:
                operators.append((PLAYER_ID, player.reputation, route_status.planes_assigned or 1))
            for comp in state.competitors:
                if comp.is_open(route.id):
                    operators.append((comp.id, comp.reputation, 1))

            # Jitter is drawn for every route so the draw sequence does not
            # depend on who is operating where
            jitter = 1 + (rng.random() - 0.5) * 0.1
            if not operators:
                continue

            total_passengers = round(
                route.demand * rep_scale ** self.settings.demand_sensitivity * jitter
            )

            total_weight = sum(rep * weight for _, rep, weight in operators)
            for op_id, rep, weight in operators:
                if total_weight > 0:
                    share = rep * weight / total_weight
                else:
                    share = 1 / len(operators)
                scores[op_id] += round(total_passengers * share) * route.distance_km

        total_score = sum(scores.values())
        if total_score <= 0:
            return {op_id: 0.0 for op_id in scores}
        return {op_id: round(1000 * score / total_score) / 10 for op_id, score in scores.items()}

    def collect_revenue(
        self,
        state: SimulationState,
        rng: random.Random,
        notifier: Notifier,
    ) -> RevenueReport:
        """Fly the player's open routes for one year and bank the result."""
        player = state.player
        report = RevenueReport(year=player.year)
        rep_factor = max(0.1, player.reputation / 50) ** self.settings.demand_sensitivity

        for route in state.world.routes:
            route_status = state.routes[route.id]
            if not route_status.open or route_status.status.suspended:
                continue

            competition = max(
                self.COMPETITION_FLOOR,
                1 - self.COMPETITION_PENALTY * state.competitors_on_route(route.id),
            )
            jitter = 1 + (rng.random() - 0.5) * 0.16
            passengers = max(0, round(route.demand * rep_factor * competition * jitter))

            ticket = max(self.MIN_TICKET_PRICE, round(route.distance_km * route.price_factor))
            result = RouteResult(
                route_id=route.id,
                passengers=passengers,
                revenue=passengers * ticket,
                fuel_cost=passengers * route.distance_km * player.fuel_price * route.fuel_multiplier,
                airport_fees=round(route.distance_km * AIRPORT_FEE_PER_KM) * max(1, route_status.planes_assigned),
            )

            incident_probability = min(
                self.MAX_INCIDENT_PROBABILITY,
                self.incident_base_probability + route.distance_km / self.INCIDENT_DISTANCE_SCALE,
            )
            if rng.random() < incident_probability:
                result.incident_cost = round(rng.random() * self.MAX_INCIDENT_COST)
                player.adjust_reputation(-1)
                report.incidents += 1
                state.record("incident", cost=result.incident_cost, route=route.id)
                notifier.log(f"Incident: {route.label} ({result.incident_cost}$)")

            report.routes.append(result)

        profit = report.profit
        player.money += profit
        if profit > self.GOOD_YEAR_PROFIT:
            player.adjust_reputation(1)
        if player.money < 0:
            player.adjust_reputation(-3)

        logger.debug(
            f"Year {player.year}: revenue {report.revenue:.0f}, cost {report.cost:.0f} "
            f"on {len(report.routes)} routes"
        )
        return report
