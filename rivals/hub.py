"""
Hub-focused rival: builds its network around the largest cities.
"""

from airsim.state import Strategy
from airsim.world import Route

from .base import StrategyProfile


class HubProfile(StrategyProfile):
    """
    Concentrates on major hubs and the connections between them.

    Expands only onto routes with at least one endpoint above
    HUB_POPULATION inhabitants.
    """

    strategy = Strategy.HUB
    name = "Hub Focus"
    description = "Major hubs and long-haul connections"

    HUB_POPULATION = 2000000

    def favors(self, route: Route) -> bool:
        return route.touches_hub(self.HUB_POPULATION)
