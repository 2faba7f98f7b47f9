"""
Runs every rival airline's turn and applies the resulting changes.
"""

import random
import logging
import yaml
from pathlib import Path
from typing import Optional

from airsim.config import DifficultySettings
from airsim.notify import Notifier
from airsim.state import Competitor, SimulationState, Strategy

from .base import CompetitorDelta, DecisionRule, RivalContext, StrategyProfile
from .hub import HubProfile
from .lowcost import LowCostProfile
from .premium import PremiumProfile
from .rules import DEFAULT_RULES

logger = logging.getLogger(__name__)


DEFAULT_CATALOG = [
    {"id": "globex", "name": "Globex Airlines", "strategy": "hub",
     "money": 80000000, "reputation": 62, "fleet_value": 40000000, "aggro": 1.0},
    {"id": "skylink", "name": "SkyLink", "strategy": "lowcost",
     "money": 50000000, "reputation": 48, "fleet_value": 25000000, "aggro": 1.1},
    {"id": "aeromax", "name": "AeroMax", "strategy": "premium",
     "money": 30000000, "reputation": 58, "fleet_value": 15000000, "aggro": 0.9},
]


def default_profiles() -> dict[Strategy, StrategyProfile]:
    return {p.strategy: p for p in (HubProfile(), LowCostProfile(), PremiumProfile())}


def load_catalog(data_path: Path | str = "data") -> list[dict]:
    """Rival definitions from rivals.yaml, or the built-in three."""
    path = Path(data_path) / "rivals.yaml"
    if not path.exists():
        return [dict(entry) for entry in DEFAULT_CATALOG]

    with open(path) as f:
        data = yaml.safe_load(f) or {}
    catalog = data.get("rivals", [])
    if not catalog:
        logger.warning(f"No rivals in {path}, using built-in catalog")
        return [dict(entry) for entry in DEFAULT_CATALOG]
    logger.info(f"Loaded {len(catalog)} rivals from {path}")
    return catalog


def create_competitors(catalog: list[dict]) -> list[Competitor]:
    """Instantiate fresh competitors from catalog entries."""
    competitors = []
    for entry in catalog:
        competitors.append(Competitor(
            id=entry["id"],
            name=entry.get("name", entry["id"]),
            strategy=Strategy(entry.get("strategy", "hub")),
            money=float(entry.get("money", 0)),
            reputation=float(entry.get("reputation", 50)),
            fleet_value=float(entry.get("fleet_value", 0)),
            aggro=float(entry.get("aggro", 1.0)),
        ))
    return competitors


class CompetitorAI:
    """Evaluates the decision rules for each rival, in catalog order."""

    def __init__(
        self,
        settings: DifficultySettings,
        rules: Optional[list[DecisionRule]] = None,
        profiles: Optional[dict[Strategy, StrategyProfile]] = None,
    ):
        self.settings = settings
        self.rules = rules if rules is not None else list(DEFAULT_RULES)
        self.profiles = profiles or default_profiles()

    def run_turn(self, state: SimulationState, rng: random.Random, notifier: Notifier):
        """Play one turn for every competitor."""
        context = RivalContext(
            state=state,
            competitor_aggro=self.settings.competitor_aggro,
            profiles=self.profiles,
        )
        for competitor in state.competitors:
            for rule in self.rules:
                delta = rule.evaluate(competitor, context, rng)
                if delta is not None:
                    self.apply(state, competitor, delta, notifier)

        notifier.market_share_updated()

    def apply(self, state: SimulationState, competitor: Competitor,
              delta: CompetitorDelta, notifier: Notifier):
        """Apply a rule's delta to the competitor (and its partner for alliances)."""
        competitor.money += delta.money
        competitor.fleet_value += delta.fleet_value
        if delta.reputation is not None:
            competitor.reputation = delta.reputation
        for route_id in delta.open_routes:
            competitor.open_routes[route_id] = True
        for route_id in delta.close_routes:
            competitor.open_routes[route_id] = False

        if delta.ally_with:
            partner = state.get_competitor(delta.ally_with)
            if partner is not None and not competitor.is_allied(partner.id):
                competitor.alliances.append(partner.id)
                if competitor.id not in partner.alliances:
                    partner.alliances.append(competitor.id)

        for event_type, payload in delta.events:
            state.record(event_type, **payload)
        for message in delta.messages:
            notifier.log(message)
