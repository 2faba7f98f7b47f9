"""
Premium rival: chases reputation on long routes.
"""

from airsim.state import Strategy
from airsim.world import Route

from .base import StrategyProfile


class PremiumProfile(StrategyProfile):
    """
    Long-haul carrier with a steady brand.

    Reputation moves slower than for other strategies, and only routes
    longer than MIN_DISTANCE_KM are worth opening.
    """

    strategy = Strategy.PREMIUM
    name = "Premium"
    description = "Reputation-driven, long routes"
    reputation_damping = 0.6

    MIN_DISTANCE_KM = 2500

    def favors(self, route: Route) -> bool:
        return route.distance_km > self.MIN_DISTANCE_KM
