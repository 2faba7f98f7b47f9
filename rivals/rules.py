"""
Decision rules making up a rival's yearly turn.

Order of evaluation (see DEFAULT_RULES):
income → reputation → alliance → expansion → attack → investment → pruning
"""

import random
from typing import Optional

from airsim.state import Competitor

from .base import CompetitorDelta, DecisionRule, RivalContext


class IncomeRule(DecisionRule):
    """Passive income earned by the fleet."""

    name = "income"
    YIELD = 0.02

    def evaluate(self, competitor: Competitor, context: RivalContext,
                 rng: random.Random) -> Optional[CompetitorDelta]:
        return CompetitorDelta(money=round(competitor.fleet_value * self.YIELD))


class ReputationDriftRule(DecisionRule):
    """Slightly upward-biased random walk of brand reputation."""

    name = "reputation"
    BIAS = 0.45
    MIN_REPUTATION = 10
    MAX_REPUTATION = 95

    def evaluate(self, competitor: Competitor, context: RivalContext,
                 rng: random.Random) -> Optional[CompetitorDelta]:
        damping = context.profile_for(competitor).reputation_damping
        drift = (rng.random() - self.BIAS) * 2 * damping
        reputation = max(self.MIN_REPUTATION, min(self.MAX_REPUTATION, competitor.reputation + drift))
        return CompetitorDelta(reputation=reputation)


class AllianceRule(DecisionRule):
    """Cash-strapped rivals look for a partner."""

    name = "alliance"
    CASH_THRESHOLD = 10000000
    PROBABILITY = 0.2

    def evaluate(self, competitor: Competitor, context: RivalContext,
                 rng: random.Random) -> Optional[CompetitorDelta]:
        if competitor.money >= self.CASH_THRESHOLD or rng.random() >= self.PROBABILITY:
            return None

        partners = [
            c for c in context.competitors
            if c.id != competitor.id and not competitor.is_allied(c.id)
        ]
        if not partners:
            return None

        partner = rng.choice(partners)
        return CompetitorDelta(
            ally_with=partner.id,
            events=[("alliance", {"members": [competitor.id, partner.id]})],
            messages=[f"{competitor.name} forms an alliance with {partner.name}"],
        )


class ExpansionRule(DecisionRule):
    """Open a new route that fits the strategy, if affordable."""

    name = "expansion"
    PROBABILITY = 0.45
    CASH_BUFFER = 1000000
    FLEET_GROWTH = 1500000

    def evaluate(self, competitor: Competitor, context: RivalContext,
                 rng: random.Random) -> Optional[CompetitorDelta]:
        candidates = context.profile_for(competitor).candidate_routes(competitor, context.routes)
        if not candidates:
            return None
        if rng.random() >= self.PROBABILITY * context.competitor_aggro * competitor.aggro:
            return None

        route = rng.choice(candidates)
        if competitor.money <= route.setup_cost + self.CASH_BUFFER:
            return None

        return CompetitorDelta(
            money=-route.setup_cost,
            fleet_value=self.FLEET_GROWTH,
            open_routes=[route.id],
            messages=[f"{competitor.name} opens {route.label}"],
        )


class AttackRule(DecisionRule):
    """Move onto a route flown by a non-allied rival."""

    name = "attack"
    PROBABILITY = 0.05
    FOLLOW_THROUGH = 0.4

    def evaluate(self, competitor: Competitor, context: RivalContext,
                 rng: random.Random) -> Optional[CompetitorDelta]:
        if rng.random() >= self.PROBABILITY * context.competitor_aggro:
            return None

        targets = [
            c for c in context.competitors
            if c.id != competitor.id and not competitor.is_allied(c.id) and c.active_routes()
        ]
        if not targets:
            return None

        target = rng.choice(targets)
        if rng.random() >= self.FOLLOW_THROUGH:
            return None

        route_id = rng.choice(target.active_routes())
        if competitor.is_open(route_id):
            return None

        return CompetitorDelta(
            open_routes=[route_id],
            events=[("attack", {"attacker": competitor.id, "target": target.id, "route": route_id})],
            messages=[f"{competitor.name} attacks {target.name} on route {route_id}"],
        )


class InvestmentRule(DecisionRule):
    """Spend spare cash on the fleet."""

    name = "investment"
    PROBABILITY = 0.3
    MIN_CASH = 2000000
    AMOUNT = 1000000

    def evaluate(self, competitor: Competitor, context: RivalContext,
                 rng: random.Random) -> Optional[CompetitorDelta]:
        if rng.random() >= self.PROBABILITY or competitor.money <= self.MIN_CASH:
            return None
        return CompetitorDelta(
            money=-self.AMOUNT,
            fleet_value=self.AMOUNT,
            messages=[f"{competitor.name} invests in its fleet"],
        )


class PruningRule(DecisionRule):
    """Drop routes that turned out unprofitable."""

    name = "pruning"
    PROBABILITY = 0.03

    def evaluate(self, competitor: Competitor, context: RivalContext,
                 rng: random.Random) -> Optional[CompetitorDelta]:
        dropped = [rid for rid in competitor.active_routes() if rng.random() < self.PROBABILITY]
        if not dropped:
            return None
        return CompetitorDelta(
            close_routes=dropped,
            messages=[f"{competitor.name} closes an unprofitable route" for _ in dropped],
        )


DEFAULT_RULES: list[DecisionRule] = [
    IncomeRule(),
    ReputationDriftRule(),
    AllianceRule(),
    ExpansionRule(),
    AttackRule(),
    InvestmentRule(),
    PruningRule(),
]
