"""
Building blocks for rival airline AI.

A rival's turn is a fixed sequence of decision rules. Each rule looks at
the competitor, the shared turn context and the random source, and returns
a CompetitorDelta describing what it wants to change (or None).
"""

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from airsim.state import Competitor, SimulationState, Strategy
from airsim.world import Route


@dataclass
class CompetitorDelta:
    """State change requested by one decision rule."""
    money: float = 0.0
    fleet_value: float = 0.0
    reputation: Optional[float] = None      # New absolute reputation
    open_routes: list[str] = field(default_factory=list)
    close_routes: list[str] = field(default_factory=list)
    ally_with: Optional[str] = None          # Competitor id, made mutual
    events: list[tuple[str, dict]] = field(default_factory=list)  # (type, payload) for the log
    messages: list[str] = field(default_factory=list)


@dataclass
class RivalContext:
    """Everything a rule may read besides the competitor itself."""
    state: SimulationState
    competitor_aggro: float  # Difficulty-level aggression
    profiles: dict[Strategy, "StrategyProfile"] = field(default_factory=dict)

    def profile_for(self, competitor: Competitor) -> "StrategyProfile":
        return self.profiles[competitor.strategy]

    @property
    def routes(self) -> list[Route]:
        return self.state.world.routes

    @property
    def competitors(self) -> list[Competitor]:
        return self.state.competitors


class StrategyProfile(ABC):
    """How a rival of a given strategy chooses and runs its network."""

    strategy: Strategy
    name: str = ""
    description: str = ""
    reputation_damping: float = 1.0  # Scales the yearly reputation swing

    @abstractmethod
    def favors(self, route: Route) -> bool:
        """Whether this strategy wants to expand onto the route."""

    def candidate_routes(self, competitor: Competitor, routes: list[Route]) -> list[Route]:
        """Routes not yet flown by the competitor that fit the strategy."""
        return [r for r in routes if not competitor.is_open(r.id) and self.favors(r)]


class DecisionRule(ABC):
    """One step of a rival's turn."""

    name: str = ""

    @abstractmethod
    def evaluate(
        self,
        competitor: Competitor,
        context: RivalContext,
        rng: random.Random,
    ) -> Optional[CompetitorDelta]:
        """Return the change this rule makes this turn, if any."""
