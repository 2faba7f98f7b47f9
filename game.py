"""
Headless game runner for the airline simulation.

Plays a number of years with an optional scripted opening (routes to open,
planes to buy), logs every turn and writes a JSON game log.
"""

import json
import logging
from pathlib import Path
from datetime import datetime
from typing import Optional

from airsim import (
    World, GameConfig, Notifier, TurnController, LedgerError, PLAYER_ID,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class AirlineSimulation:
    """Main simulation orchestrator."""

    def __init__(self, config: Optional[GameConfig] = None):
        self.config = config or GameConfig.from_env()
        self.log_dir = Path(self.config.log_dir)

        logger.info(f"Loading reference data from {self.config.data_path}...")
        self.world = World.load(self.config.data_path)

        self.notifier = Notifier()
        self.narration: list[str] = []
        self.notifier.subscribe(on_log_event=self.narration.append)

        logger.info("Initializing turn controller...")
        self.controller = TurnController(self.world, self.config, self.notifier)

        # Game log
        self.game_log: list[dict] = []
        self.start_time: Optional[datetime] = None

    def initialize(self, open_routes: tuple[str, ...] = (), buy_planes: tuple[str, ...] = ()):
        """Apply the scripted opening moves."""
        self.start_time = datetime.now()
        state = self.controller.state

        for model in buy_planes:
            self.try_action(self.controller.ledger.buy_plane, model)
        for route_id in open_routes:
            self.try_action(self.controller.ledger.open_route, route_id)

        self._log_event("game_start", {
            "difficulty": self.config.difficulty.value,
            "seed": self.config.seed,
            "year": state.player.year,
            "routes": len(self.world.routes),
            "rivals": [c.id for c in state.competitors],
            "open_routes": state.open_route_ids(),
        })
        logger.info("Game initialized")
        logger.info(f"  Routes: {len(self.world.routes)}")
        logger.info(f"  Rivals: {', '.join(c.name for c in state.competitors)}")

    def try_action(self, action, *args) -> bool:
        """Run a ledger action, logging rather than raising on rejection."""
        try:
            action(*args)
            return True
        except LedgerError as e:
            logger.warning(f"Action {action.__name__}{args} rejected: {e}")
            return False

    def run_turn(self) -> dict:
        """Run a single turn of the simulation."""
        year = self.controller.state.player.year + 1
        logger.info(f"\n{'='*60}")
        logger.info(f"YEAR {year}")
        logger.info(f"{'='*60}")

        self.narration.clear()
        report = self.controller.next_turn()
        market = self.controller.market_share()

        turn_log = report.to_dict()
        turn_log["market_share"] = market
        turn_log["narration"] = list(self.narration)
        self._log_event("turn_complete", turn_log)

        for line in self.narration:
            logger.info(f"  {line}")
        logger.info(f"  Market share: {market.get(PLAYER_ID, 0.0)}%")

        return turn_log

    def run_game(self, turns: int = 10, open_routes: tuple[str, ...] = (),
                 buy_planes: tuple[str, ...] = ()) -> dict:
        """Run the full game."""
        self.initialize(open_routes, buy_planes)

        for _ in range(turns):
            self.run_turn()

        results = self._compile_results()
        self._log_event("game_end", results)
        self._save_game_log()
        return results

    def _compile_results(self) -> dict:
        """Compile final game results."""
        state = self.controller.state
        player = state.player
        return {
            "turns_played": len(self.controller.history),
            "final_year": player.year,
            "money": round(player.money, 2),
            "reputation": round(player.reputation, 2),
            "fuel_price": round(player.fuel_price, 4),
            "fleet_size": state.fleet_size(),
            "open_routes": state.open_route_ids(),
            "market_share": self.controller.market_share(),
            "duration": str(datetime.now() - self.start_time) if self.start_time else None,
        }

    def _log_event(self, event_type: str, data: dict):
        """Log a game event."""
        self.game_log.append({
            "timestamp": datetime.now().isoformat(),
            "event": event_type,
            "data": data,
        })

    def _save_game_log(self):
        """Save game log to file."""
        self.log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = self.log_dir / f"game_{timestamp}.json"

        with open(log_path, "w") as f:
            json.dump(self.game_log, f, indent=2, default=str)

        logger.info(f"Game log saved to: {log_path}")


def format_market_share(market: dict[str, float], names: dict[str, str]) -> str:
    """Render market share as a small text table."""
    lines = [f"{'Operator':<20}{'Share':>8}"]
    for op_id, share in sorted(market.items(), key=lambda kv: -kv[1]):
        lines.append(f"{names.get(op_id, op_id):<20}{share:>7.1f}%")
    return "\n".join(lines)


def main():
    """Run an airline simulation."""
    import argparse

    parser = argparse.ArgumentParser(description="Airline management simulation")
    parser.add_argument("--turns", type=int, default=10, help="Years to simulate")
    parser.add_argument("--difficulty", default=None, choices=["easy", "normal", "hard"])
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--data", default=None, help="Data directory path")
    parser.add_argument("--logs", default=None, help="Log directory path")
    parser.add_argument("--open", action="append", default=[], metavar="ROUTE_ID",
                        help="Open a route before the first turn (repeatable)")
    parser.add_argument("--buy", action="append", default=[], metavar="MODEL",
                        help="Buy a plane before the first turn (repeatable)")

    args = parser.parse_args()

    config = GameConfig.from_env(
        data_path=args.data,
        difficulty=args.difficulty,
        seed=args.seed,
        log_dir=args.logs,
    )
    sim = AirlineSimulation(config)
    results = sim.run_game(turns=args.turns, open_routes=tuple(args.open), buy_planes=tuple(args.buy))

    names = {PLAYER_ID: "You"}
    names.update({c.id: c.name for c in sim.controller.state.competitors})

    print("\n" + "="*60)
    print("FINAL RESULTS")
    print("="*60)
    print(f"Years played: {results['turns_played']} (now {results['final_year']})")
    print(f"Money: ${results['money']:,.0f}")
    print(f"Reputation: {results['reputation']:.1f}")
    print(f"Fuel price: {results['fuel_price']:.3f}")
    print(f"Fleet: {results['fleet_size']} planes, {len(results['open_routes'])} open routes")
    print()
    print(format_market_share(results["market_share"], names))
    print(f"\nDuration: {results['duration']}")


if __name__ == "__main__":
    main()
