"""
Player actions on routes and fleet.

Each action validates first and mutates only once every check has passed,
so a raised LedgerError always leaves the state untouched.
"""

from .notify import Notifier
from .state import SimulationState, RouteStatus, RouteState
from .world import Route


class LedgerError(Exception):
    """A player action was rejected."""


class SimulationBusyError(LedgerError):
    """Action attempted while a turn is being processed."""


class RouteNotFoundError(LedgerError):
    pass


class RouteAlreadyOpenError(LedgerError):
    pass


class RouteNotOpenError(LedgerError):
    pass


class InsufficientFundsError(LedgerError):
    pass


class NoPlaneAvailableError(LedgerError):
    pass


class NothingToReleaseError(LedgerError):
    pass


class UnknownModelError(LedgerError):
    pass


class FleetLedger:
    """Validated player operations on the route ledger and fleet."""

    OPEN_REPUTATION = 0.5
    CLOSE_REPUTATION = -0.2

    def __init__(self, state: SimulationState, notifier: Notifier):
        self.state = state
        self.notifier = notifier

    def _check_idle(self):
        if self.state.tick_in_progress:
            raise SimulationBusyError("Cannot act while a turn is in progress")

    def _lookup(self, route_id: str) -> tuple[Route, RouteStatus]:
        route = self.state.world.get_route(route_id)
        if route is None or route_id not in self.state.routes:
            raise RouteNotFoundError(f"Route not found: {route_id}")
        return route, self.state.routes[route_id]

    def _changed(self, route_id: str, message: str):
        self.notifier.route_changed(route_id)
        self.notifier.log(message)
        self.notifier.market_share_updated()
        self.notifier.snapshot(self.state.snapshot())

    def open_route(self, route_id: str):
        """Start operating a route with one base aircraft."""
        self._check_idle()
        route, status = self._lookup(route_id)
        player = self.state.player

        if status.open:
            raise RouteAlreadyOpenError(f"Route already open: {route.label}")
        if player.money < route.setup_cost:
            raise InsufficientFundsError(
                f"Opening {route.label} costs {route.setup_cost}, have {player.money:.0f}"
            )

        player.money -= route.setup_cost
        status.open = True
        status.planes_assigned = 1
        status.status = RouteState.OPERATIONAL
        player.adjust_reputation(self.OPEN_REPUTATION)
        self.state.record("route_opened", route=route_id, cost=route.setup_cost)
        self._changed(route_id, f"Route opened: {route.label}")

    def close_route(self, route_id: str) -> bool:
        """Stop operating a route. Returns False if it was not open."""
        self._check_idle()
        status = self.state.routes.get(route_id)
        if status is None or not status.open:
            return False

        # Owned planes go back to the hangar
        for model in status.fleet_assignments:
            entry = self.state.get_fleet_entry(model)
            if entry is not None:
                entry.count += 1
        status.fleet_assignments.clear()
        status.open = False
        status.planes_assigned = 0
        status.status = RouteState.CLOSED
        self.state.player.adjust_reputation(self.CLOSE_REPUTATION)
        self._changed(route_id, f"Route closed: {route_id}")
        return True

    def assign_plane(self, route_id: str) -> str:
        """Move one plane from the hangar onto a route. Returns the model used."""
        self._check_idle()
        route, status = self._lookup(route_id)
        if not status.open:
            raise RouteNotOpenError(f"Route not open: {route.label}")

        entry = next((e for e in self.state.fleet if e.count > 0), None)
        if entry is None:
            raise NoPlaneAvailableError("No plane available in the hangar")

        entry.count -= 1
        status.fleet_assignments.append(entry.model)
        status.planes_assigned += 1
        self._changed(route_id, f"{entry.model} assigned to {route.label}")
        return entry.model

    def release_plane(self, route_id: str) -> str:
        """Return the most recently assigned plane to the hangar."""
        self._check_idle()
        route, status = self._lookup(route_id)
        if not status.fleet_assignments or status.planes_assigned <= 0:
            raise NothingToReleaseError(f"No owned plane to release from {route.label}")

        model = status.fleet_assignments.pop()
        entry = self.state.get_fleet_entry(model)
        if entry is not None:
            entry.count += 1
        status.planes_assigned -= 1
        self._changed(route_id, f"{model} released from {route.label}")
        return model

    def buy_plane(self, model: str):
        """Buy one plane of a catalog model."""
        self._check_idle()
        entry = self.state.get_fleet_entry(model)
        if entry is None:
            raise UnknownModelError(f"Unknown plane model: {model}")

        player = self.state.player
        if player.money < entry.value:
            raise InsufficientFundsError(f"{model} costs {entry.value}, have {player.money:.0f}")

        player.money -= entry.value
        entry.count += 1
        self.state.record("purchase", model=model, cost=entry.value)
        self.notifier.log(f"Purchase: {model} ({entry.value}$)")
        self.notifier.snapshot(self.state.snapshot())
