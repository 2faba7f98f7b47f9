"""
Rival airline AI.

Each rival follows a strategy profile (hub, low-cost, premium) and plays
its turn as an ordered list of decision rules.
"""

from .base import CompetitorDelta, DecisionRule, RivalContext, StrategyProfile
from .hub import HubProfile
from .lowcost import LowCostProfile
from .premium import PremiumProfile
from .rules import DEFAULT_RULES
from .engine import CompetitorAI, create_competitors, load_catalog, default_profiles

__all__ = [
    "CompetitorDelta", "DecisionRule", "RivalContext", "StrategyProfile",
    "HubProfile", "LowCostProfile", "PremiumProfile",
    "DEFAULT_RULES",
    "CompetitorAI", "create_competitors", "load_catalog", "default_profiles",
]
