"""
Notification interface between the simulation core and its consumers.

The core calls these hooks synchronously after it mutates state; the map,
UI or network bridge registers callbacks. Nothing is expected back.
"""

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Notifier:
    """Fan-out of simulation notifications to registered callbacks."""

    def __init__(self):
        self.route_change_handlers: list[Callable[[str], None]] = []
        self.log_event_handlers: list[Callable[[str], None]] = []
        self.market_share_handlers: list[Callable[[], None]] = []
        self.snapshot_handlers: list[Callable[[dict], None]] = []

    def subscribe(
        self,
        on_route_change: Optional[Callable[[str], None]] = None,
        on_log_event: Optional[Callable[[str], None]] = None,
        on_market_share_updated: Optional[Callable[[], None]] = None,
        on_snapshot: Optional[Callable[[dict], None]] = None,
    ):
        """Register any subset of callbacks."""
        if on_route_change:
            self.route_change_handlers.append(on_route_change)
        if on_log_event:
            self.log_event_handlers.append(on_log_event)
        if on_market_share_updated:
            self.market_share_handlers.append(on_market_share_updated)
        if on_snapshot:
            self.snapshot_handlers.append(on_snapshot)

    def route_changed(self, route_id: str):
        for handler in self.route_change_handlers:
            handler(route_id)

    def log(self, message: str):
        logger.info(message)
        for handler in self.log_event_handlers:
            handler(message)

    def market_share_updated(self):
        for handler in self.market_share_handlers:
            handler()

    def snapshot(self, snapshot: dict):
        for handler in self.snapshot_handlers:
            handler(snapshot)
