"""
Static reference data for the airline simulation.

Cities, routes and the plane catalog are loaded once from the data
directory before the first turn and are read-only afterwards.
"""

import math
import logging
import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# Fallbacks for incomplete reference entries
DEFAULT_DISTANCE_KM = 1000
DEFAULT_DEMAND = 120
DEFAULT_PRICE_FACTOR = 0.18
DEFAULT_FUEL_MULTIPLIER = 0.0012
DEFAULT_SETUP_COST = 50000
DEFAULT_PLANE_VALUE = 10000000
DEFAULT_PLANE_LIFETIME = 25

EARTH_RADIUS_KM = 6371.0


class WorldDataError(Exception):
    """Reference data is missing or unusable; the simulation cannot start."""


@dataclass(frozen=True)
class City:
    """A city served by one or more routes."""
    name: str
    lat: float
    lon: float
    population: int = 0


@dataclass(frozen=True)
class Route:
    """A city pair that airlines can operate."""
    id: str
    origin: City
    destination: City
    distance_km: float
    demand: float = DEFAULT_DEMAND
    price_factor: float = DEFAULT_PRICE_FACTOR
    fuel_multiplier: float = DEFAULT_FUEL_MULTIPLIER
    setup_cost: int = DEFAULT_SETUP_COST

    @property
    def label(self) -> str:
        return f"{self.origin.name}→{self.destination.name}"

    def touches_hub(self, min_population: int) -> bool:
        """True if either endpoint is larger than min_population."""
        return (self.origin.population > min_population
                or self.destination.population > min_population)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "from": _city_dict(self.origin),
            "to": _city_dict(self.destination),
            "distance_km": self.distance_km,
            "demand": self.demand,
            "price_factor": self.price_factor,
            "fuel_multiplier": self.fuel_multiplier,
            "setup_cost": self.setup_cost,
        }


@dataclass(frozen=True)
class PlaneSpec:
    """Catalog entry for a purchasable plane model."""
    model: str
    value: int = DEFAULT_PLANE_VALUE
    lifetime: int = DEFAULT_PLANE_LIFETIME
    initial_count: int = 0
    initial_age: int = 0


def _city_dict(city: City) -> dict:
    return {"name": city.name, "lat": city.lat, "lon": city.lon, "pop": city.population}


def great_circle_km(a: City, b: City) -> float:
    """Haversine distance between two cities."""
    lat1, lon1, lat2, lon2 = map(math.radians, (a.lat, a.lon, b.lat, b.lon))
    h = (math.sin((lat2 - lat1) / 2) ** 2
         + math.cos(lat1) * math.cos(lat2) * math.sin((lon2 - lon1) / 2) ** 2)
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(h))


class World:
    """Read-only catalog of routes and plane models."""

    def __init__(self, routes: list[Route], planes: list[PlaneSpec]):
        if not routes:
            raise WorldDataError("No routes available")
        if not planes:
            raise WorldDataError("No plane models available")
        self.routes = list(routes)
        self.planes = list(planes)
        self._routes_by_id = {r.id: r for r in self.routes}
        if len(self._routes_by_id) != len(self.routes):
            raise WorldDataError("Duplicate route ids in route catalog")

    @classmethod
    def load(cls, data_path: Path | str = "data") -> "World":
        """Load fleet and route catalogs from the data directory."""
        data_path = Path(data_path)
        fleet_raw = _read_catalog(data_path, "fleet")
        routes_raw = _read_catalog(data_path, "routes")

        planes = [p for p in (_parse_plane(e) for e in fleet_raw) if p]
        routes = [r for r in (_parse_route(e) for e in routes_raw) if r]

        logger.info(f"Loaded {len(routes)} routes and {len(planes)} plane models from {data_path}")
        return cls(routes, planes)

    def get_route(self, route_id: str) -> Optional[Route]:
        return self._routes_by_id.get(route_id)

    def get_plane(self, model: str) -> Optional[PlaneSpec]:
        for plane in self.planes:
            if plane.model == model:
                return plane
        return None

    def cities(self) -> list[City]:
        """Distinct cities touched by the route network."""
        seen: dict[str, City] = {}
        for route in self.routes:
            seen.setdefault(route.origin.name, route.origin)
            seen.setdefault(route.destination.name, route.destination)
        return list(seen.values())


def _read_catalog(data_path: Path, name: str) -> list:
    """Read <name>.yaml (or <name>.json) and return its list of entries."""
    for suffix in (".yaml", ".yml", ".json"):
        path = data_path / f"{name}{suffix}"
        if path.exists():
            break
    else:
        raise WorldDataError(f"Reference data not found: {data_path / name}.yaml")

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise WorldDataError(f"Cannot parse {path}: {e}") from e

    # Accept either a bare list or {name: [...]}
    if isinstance(data, dict):
        data = data.get(name)
    if not isinstance(data, list) or not data:
        raise WorldDataError(f"{path} contains no {name} entries")
    return data


def _number(raw: dict, key: str, default, cast=float, where: str = "?"):
    """Numeric field of a catalog entry; missing, zero or malformed values give the default."""
    if key not in raw or raw[key] == "":
        return default
    value = raw[key]
    try:
        number = cast(float(value))
    except (TypeError, ValueError, OverflowError):
        logger.warning(f"{where}: invalid {key} {value!r}, using {default}")
        return default
    return number if number else default


def _parse_city(raw) -> Optional[City]:
    if not isinstance(raw, dict) or not raw.get("name"):
        return None
    name = str(raw["name"])
    pop_key = "pop" if "pop" in raw else "population"
    return City(
        name=name,
        lat=_number(raw, "lat", 0.0, where=name),
        lon=_number(raw, "lon", 0.0, where=name),
        population=_number(raw, pop_key, 0, int, where=name),
    )


def _parse_route(raw) -> Optional[Route]:
    if not isinstance(raw, dict):
        logger.warning(f"Skipping malformed route entry: {raw!r}")
        return None

    origin = _parse_city(raw.get("from"))
    destination = _parse_city(raw.get("to"))
    if not origin or not destination:
        logger.warning(f"Skipping route without endpoints: {raw.get('id', '?')}")
        return None

    route_id = str(raw.get("id") or f"{origin.name}-{destination.name}")

    distance = _number(raw, "distance_km", None, where=route_id)
    if distance is None or distance < 0:
        if (origin.lat, origin.lon) != (destination.lat, destination.lon):
            distance = round(great_circle_km(origin, destination))
        else:
            distance = DEFAULT_DISTANCE_KM
        logger.warning(f"Route {route_id} has no distance, using {distance} km")

    return Route(
        id=route_id,
        origin=origin,
        destination=destination,
        distance_km=float(distance),
        demand=_number(raw, "demand", DEFAULT_DEMAND, where=route_id),
        price_factor=_number(raw, "price_factor", DEFAULT_PRICE_FACTOR, where=route_id),
        fuel_multiplier=_number(raw, "fuel_multiplier", DEFAULT_FUEL_MULTIPLIER, where=route_id),
        setup_cost=_number(raw, "setup_cost", DEFAULT_SETUP_COST, int, where=route_id),
    )


def _parse_plane(raw) -> Optional[PlaneSpec]:
    if not isinstance(raw, dict) or not raw.get("model"):
        logger.warning(f"Skipping plane entry without model: {raw!r}")
        return None
    model = str(raw["model"])
    return PlaneSpec(
        model=model,
        value=_number(raw, "value", DEFAULT_PLANE_VALUE, int, where=model),
        lifetime=_number(raw, "lifetime", DEFAULT_PLANE_LIFETIME, int, where=model),
        initial_count=max(0, _number(raw, "count", 0, int, where=model)),
        initial_age=max(0, _number(raw, "age", 0, int, where=model)),
    )
