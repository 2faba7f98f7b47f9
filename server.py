"""
WebSocket bridge between the simulation and the map/UI front end.

Each connection owns one single-player game. The client sends actions and
turn requests; the server answers with results and pushes the route
changes, narration and market-share updates produced along the way.
"""

import os
import json
import asyncio
import logging
from pathlib import Path
from typing import Optional

import websockets

from airsim import (
    World, GameConfig, Notifier, TurnController, LedgerError, WorldDataError,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DATA_PATH = Path(os.environ.get("AIRSIM_DATA_PATH", "data"))


class GameSession:
    """Wraps the engine components for a single player's game."""

    ACTIONS = ("open_route", "close_route", "assign_plane", "release_plane", "buy_plane")

    def __init__(self, data_path: Path = DATA_PATH, world: Optional[World] = None):
        self.data_path = Path(data_path)
        self.world = world
        self.controller: Optional[TurnController] = None
        self.outbox: list[dict] = []

    def _push(self, msg_type: str, **data):
        self.outbox.append({"type": msg_type, **data})

    def _drain(self) -> list[dict]:
        messages, self.outbox = self.outbox, []
        return messages

    def new_game(self, difficulty: str = "normal", seed: Optional[int] = None):
        """Start a fresh game, wiring notifications into the outbox."""
        if self.world is None:
            self.world = World.load(self.data_path)

        config = GameConfig.from_env(data_path=self.data_path, difficulty=difficulty, seed=seed)
        notifier = Notifier()
        notifier.subscribe(
            on_route_change=lambda route_id: self._push("route_change", route_id=route_id),
            on_log_event=lambda message: self._push("log_event", message=message),
            on_market_share_updated=lambda: self._push("market_share_updated"),
        )
        self.controller = TurnController(self.world, config, notifier)
        logger.info(f"Game initialized: difficulty={difficulty}, seed={seed}")

    def handle(self, msg: dict) -> list[dict]:
        """Process one client message and return every message to send back."""
        msg_type = msg.get("type")

        if msg_type == "new_game":
            try:
                self.new_game(msg.get("difficulty", "normal"), msg.get("seed"))
            except (ValueError, WorldDataError) as e:
                self._push("error", message=str(e))
                return self._drain()
            self._push("game_init", snapshot=self.controller.snapshot(),
                       market_share=self.controller.market_share())
            return self._drain()

        if self.controller is None:
            self._push("error", message="No game in progress")
            return self._drain()

        if msg_type == "action":
            self._handle_action(msg)
        elif msg_type == "next_turn":
            report = self.controller.next_turn()
            self._push("turn_result", report=report.to_dict(),
                       snapshot=self.controller.snapshot(),
                       market_share=self.controller.market_share())
        elif msg_type == "market_share":
            self._push("market_share", market_share=self.controller.market_share())
        elif msg_type == "snapshot":
            self._push("snapshot", snapshot=self.controller.snapshot())
        elif msg_type == "set_difficulty":
            try:
                self.controller.set_difficulty(msg.get("difficulty", ""))
            except ValueError as e:
                self._push("error", message=str(e))
            else:
                self._push("snapshot", snapshot=self.controller.snapshot())
        else:
            self._push("error", message=f"Unknown message type: {msg_type}")

        return self._drain()

    def _handle_action(self, msg: dict):
        action = msg.get("action")
        if action not in self.ACTIONS:
            self._push("error", message=f"Unknown action: {action}")
            return

        argument = msg.get("model") if action == "buy_plane" else msg.get("route_id")
        if argument is None:
            self._push("error", message=f"Missing argument for {action}")
            return

        try:
            result = getattr(self.controller.ledger, action)(argument)
        except LedgerError as e:
            self._push("error", action=action, error=type(e).__name__, message=str(e))
            return

        self._push("action_result", action=action, result=result,
                   snapshot=self.controller.snapshot())


async def handle_websocket(websocket):
    """Handle WebSocket connection for one game session."""
    session = GameSession()
    logger.info("Client connected")

    try:
        async for raw in websocket:
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                await websocket.send(json.dumps({"type": "error", "message": "Invalid JSON"}))
                continue

            for reply in session.handle(msg):
                await websocket.send(json.dumps(reply, default=str))

    except websockets.exceptions.ConnectionClosed:
        logger.info("Client disconnected")


async def main():
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8080"))

    logger.info(f"Starting server on ws://{host}:{port}")

    async with websockets.serve(
        handle_websocket,
        host,
        port,
        max_size=10 * 1024 * 1024,  # 10MB max message
    ):
        await asyncio.Future()  # run forever


if __name__ == "__main__":
    asyncio.run(main())
