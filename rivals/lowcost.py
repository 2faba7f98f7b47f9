"""
Low-cost rival: light fleet, aggressive on short local routes.
"""

from airsim.state import Strategy
from airsim.world import Route

from .base import StrategyProfile


class LowCostProfile(StrategyProfile):
    """Short-haul carrier competing on price."""

    strategy = Strategy.LOWCOST
    name = "Low-Cost"
    description = "Light fleet, aggressive local competition"

    MAX_DISTANCE_KM = 1500

    def favors(self, route: Route) -> bool:
        return route.distance_km < self.MAX_DISTANCE_KM
