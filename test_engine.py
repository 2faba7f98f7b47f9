"""
Tests for the simulation engine: world data, market, events, ledger, turns.
"""

import pytest

from airsim import (
    World, PlaneSpec, WorldDataError, GameConfig, Difficulty,
    DIFFICULTY_PRESETS, TurnController, TurnReport, Phase, RouteState,
    PLAYER_ID, SimulationBusyError, RouteNotFoundError, RouteAlreadyOpenError,
    RouteNotOpenError, InsufficientFundsError, NoPlaneAvailableError,
    NothingToReleaseError, UnknownModelError,
)
from conftest import DATA_DIR, FixedRandom


def sept11_count(controller) -> int:
    return sum(
        1 for e in controller.state.events
        if e.type == "historical" and e.data.get("event_id") == "sept11"
    )


# ---------------------------------------------------------------------------
# World data
# ---------------------------------------------------------------------------

def test_world_loads_bundled_data():
    world = World.load(DATA_DIR)
    assert len(world.routes) == 12
    assert {p.model for p in world.planes} == {"A320", "B737", "B747", "ATR72"}
    assert world.get_route("PAR-LON").distance_km == 344


def test_missing_distance_falls_back_to_great_circle():
    world = World.load(DATA_DIR)
    route = world.get_route("BOD-TLS")
    # Bordeaux-Toulouse is a little over 200 km
    assert 150 < route.distance_km < 300


def test_missing_data_directory_is_fatal(tmp_path):
    with pytest.raises(WorldDataError):
        World.load(tmp_path / "nowhere")


def test_unparseable_catalog_is_fatal(tmp_path):
    (tmp_path / "fleet.yaml").write_text("fleet:\n  - model: A320\n")
    (tmp_path / "routes.yaml").write_text("routes: [\n")
    with pytest.raises(WorldDataError):
        World.load(tmp_path)


def test_incomplete_entries_get_defaults(tmp_path):
    (tmp_path / "fleet.yaml").write_text("fleet:\n  - model: A320\n  - value: 5\n")
    (tmp_path / "routes.yaml").write_text(
        "routes:\n"
        "  - id: X-Y\n"
        "    from: {name: X, lat: 0, lon: 0}\n"
        "    to: {name: Y, lat: 0, lon: 0}\n"
        "  - id: broken\n"
        "    from: {name: X}\n"
    )
    world = World.load(tmp_path)

    assert len(world.routes) == 1
    route = world.get_route("X-Y")
    assert route.distance_km == 1000
    assert route.demand == 120
    assert route.price_factor == 0.18
    assert route.setup_cost == 50000

    assert len(world.planes) == 1
    assert world.planes[0].value == 10000000
    assert world.planes[0].lifetime == 25


def test_malformed_numbers_fall_back_to_defaults(tmp_path):
    (tmp_path / "fleet.yaml").write_text(
        "fleet:\n"
        "  - model: A320\n"
        "    value: cheap\n"
        "    lifetime: '30'\n"
        "    count: many\n"
    )
    (tmp_path / "routes.yaml").write_text(
        "routes:\n"
        "  - id: R1\n"
        "    from: {name: A, lat: null, lon: 0, pop: lots}\n"
        "    to: {name: B, lat: 1, lon: east}\n"
        "    distance_km: far\n"
        "    demand: high\n"
        "    price_factor: '0.25'\n"
        "    fuel_multiplier: [1]\n"
        "    setup_cost: expensive\n"
    )
    world = World.load(tmp_path)

    route = world.get_route("R1")
    assert (route.origin.lat, route.origin.lon, route.origin.population) == (0.0, 0.0, 0)
    assert (route.destination.lat, route.destination.lon) == (1.0, 0.0)
    # One degree of latitude
    assert 100 < route.distance_km < 125
    assert route.demand == 120
    assert route.price_factor == 0.25
    assert route.fuel_multiplier == 0.0012
    assert route.setup_cost == 50000

    plane = world.planes[0]
    assert (plane.value, plane.lifetime, plane.initial_count) == (10000000, 30, 0)

    controller = TurnController(world, GameConfig(data_path=DATA_DIR, seed=1), rival_catalog=[])
    controller.ledger.open_route("R1")
    report = controller.next_turn()
    assert report.year == 1986
    assert controller.state.player.year == 1986


def test_json_catalogs_are_accepted(tmp_path):
    (tmp_path / "fleet.json").write_text('[{"model": "A320", "value": 42000000}]')
    (tmp_path / "routes.json").write_text(
        '[{"id": "A-B", "from": {"name": "A", "lat": 1, "lon": 1, "pop": 10},'
        ' "to": {"name": "B", "lat": 2, "lon": 2, "pop": 20}, "distance_km": 500}]'
    )
    world = World.load(tmp_path)
    assert world.get_route("A-B").distance_km == 500


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("AIRSIM_DIFFICULTY", "hard")
    monkeypatch.setenv("AIRSIM_SEED", "5")
    config = GameConfig.from_env()
    assert config.difficulty == Difficulty.HARD
    assert config.seed == 5

    config = GameConfig.from_env(difficulty="easy")
    assert config.difficulty == Difficulty.EASY

    monkeypatch.setenv("AIRSIM_DIFFICULTY", "insane")
    with pytest.raises(ValueError):
        GameConfig.from_env()


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------

def test_open_route_from_starting_position(make_controller):
    controller = make_controller()
    player = controller.state.player
    assert player.money == 100000000
    assert player.reputation == 55
    assert player.difficulty == Difficulty.NORMAL

    controller.ledger.open_route("PAR-LYS")

    status = controller.state.routes["PAR-LYS"]
    assert player.money == 100000000 - 50000
    assert status.open
    assert status.status == RouteState.OPERATIONAL
    assert status.planes_assigned == 1
    assert player.reputation == 55.5
    assert controller.state.events[-1].type == "route_opened"


def test_open_route_rejections_leave_state_unchanged(make_controller):
    controller = make_controller()
    ledger = controller.ledger

    with pytest.raises(RouteNotFoundError):
        ledger.open_route("NOPE")

    ledger.open_route("PAR-LYS")
    before = controller.snapshot()
    with pytest.raises(RouteAlreadyOpenError):
        ledger.open_route("PAR-LYS")
    assert controller.snapshot() == before

    controller.state.player.money = 1000
    before = controller.snapshot()
    with pytest.raises(InsufficientFundsError):
        ledger.open_route("PAR-NYC")
    assert controller.snapshot() == before


def test_close_route(make_controller):
    controller = make_controller()
    ledger = controller.ledger

    assert ledger.close_route("PAR-LYS") is False
    assert ledger.close_route("NOPE") is False

    ledger.open_route("PAR-LYS")
    ledger.assign_plane("PAR-LYS")
    assert controller.state.get_fleet_entry("A320").count == 1

    assert ledger.close_route("PAR-LYS") is True
    status = controller.state.routes["PAR-LYS"]
    assert not status.open
    assert status.planes_assigned == 0
    assert status.status == RouteState.CLOSED
    # The assigned plane is back in the hangar
    assert controller.state.get_fleet_entry("A320").count == 2
    assert controller.state.player.reputation == pytest.approx(55.3)


def test_assign_and_release_plane(make_controller):
    controller = make_controller()
    ledger = controller.ledger
    fleet = controller.state.get_fleet_entry("A320")

    with pytest.raises(RouteNotOpenError):
        ledger.assign_plane("PAR-LYS")

    ledger.open_route("PAR-LYS")
    with pytest.raises(NothingToReleaseError):
        ledger.release_plane("PAR-LYS")

    assert ledger.assign_plane("PAR-LYS") == "A320"
    assert ledger.assign_plane("PAR-LYS") == "A320"
    assert fleet.count == 0
    assert controller.state.routes["PAR-LYS"].planes_assigned == 3
    assert controller.state.fleet_size() == 2

    with pytest.raises(NoPlaneAvailableError):
        ledger.assign_plane("PAR-LYS")

    assert ledger.release_plane("PAR-LYS") == "A320"
    assert fleet.count == 1
    assert controller.state.routes["PAR-LYS"].planes_assigned == 2


def test_buy_plane(make_controller):
    controller = make_controller()
    ledger = controller.ledger

    with pytest.raises(UnknownModelError):
        ledger.buy_plane("Concorde")

    ledger.buy_plane("A320")
    assert controller.state.get_fleet_entry("A320").count == 3
    assert controller.state.player.money == 100000000 - 42000000
    assert controller.state.events[-1].type == "purchase"
    assert controller.state.fleet_size() == 3

    # 58M left, a jumbo is out of reach
    with pytest.raises(InsufficientFundsError):
        ledger.buy_plane("B747")
    assert controller.state.get_fleet_entry("B747").count == 0


def test_buy_plane_insufficient_funds(make_controller):
    controller = make_controller()
    controller.state.player.money = 1000000
    with pytest.raises(InsufficientFundsError):
        controller.ledger.buy_plane("A320")
    assert controller.state.get_fleet_entry("A320").count == 2
    assert controller.state.player.money == 1000000


def test_actions_rejected_during_a_turn(make_controller):
    controller = make_controller()
    controller.state.tick_in_progress = True
    with pytest.raises(SimulationBusyError):
        controller.ledger.open_route("PAR-LYS")
    with pytest.raises(SimulationBusyError):
        controller.ledger.buy_plane("A320")
    with pytest.raises(SimulationBusyError):
        controller.next_turn()


def test_ledger_notifications(make_controller, notifier):
    route_changes, messages, market_updates = [], [], []
    notifier.subscribe(
        on_route_change=route_changes.append,
        on_log_event=messages.append,
        on_market_share_updated=lambda: market_updates.append(True),
    )
    controller = make_controller()

    controller.ledger.open_route("PAR-LYS")
    assert route_changes == ["PAR-LYS"]
    assert market_updates == [True]
    assert any("Route opened" in m for m in messages)

    controller.ledger.buy_plane("A320")
    assert route_changes == ["PAR-LYS"]
    assert market_updates == [True]


# ---------------------------------------------------------------------------
# Market
# ---------------------------------------------------------------------------

def test_collect_revenue_single_route(make_controller):
    rng = FixedRandom(0.5)
    controller = make_controller(rng=rng, rivals=[])
    controller.ledger.open_route("PAR-LYS")
    player = controller.state.player
    money_before = player.money

    report = controller.market.collect_revenue(controller.state, rng, controller.notifier)

    passengers = round(100 * (55.5 / 50) ** 0.9)
    revenue = passengers * round(392 * 0.2)
    cost = passengers * 392 * player.fuel_price * 0.001 + round(392 * 0.015)
    assert report.routes[0].passengers == passengers
    assert report.revenue == revenue
    assert report.cost == pytest.approx(cost)
    assert player.money == pytest.approx(money_before + revenue - cost)
    assert report.incidents == 0


def test_competitors_reduce_player_passengers(make_controller):
    rng = FixedRandom(0.5)
    controller = make_controller(rng=rng)
    controller.ledger.open_route("PAR-LYS")
    for comp in controller.state.competitors[:2]:
        comp.open_routes["PAR-LYS"] = True

    report = controller.market.collect_revenue(controller.state, rng, controller.notifier)

    assert report.routes[0].passengers == round(100 * (55.5 / 50) ** 0.9 * 0.76)


def test_incident_costs_money_and_reputation(make_controller):
    rng = FixedRandom(0.001)
    controller = make_controller(rng=rng, rivals=[])
    controller.ledger.open_route("PAR-LYS")

    report = controller.market.collect_revenue(controller.state, rng, controller.notifier)

    assert report.incidents == 1
    assert report.routes[0].incident_cost == 90
    assert controller.state.player.reputation == pytest.approx(54.5)
    assert controller.state.events[-1].type == "incident"


def test_suspended_routes_earn_nothing(make_controller):
    rng = FixedRandom(0.5)
    controller = make_controller(rng=rng, rivals=[])
    controller.ledger.open_route("PAR-LYS")
    controller.state.routes["PAR-LYS"].status = RouteState.SUSPENDED_WEATHER

    report = controller.market.collect_revenue(controller.state, rng, controller.notifier)
    assert report.routes == []


def test_market_share_bounds_hold_on_repeat_queries(make_controller):
    controller = make_controller(seed=3)
    controller.ledger.open_route("PAR-LYS")
    controller.ledger.open_route("PAR-NYC")
    for _ in range(5):
        controller.next_turn()

    for _ in range(2):
        market = controller.market_share()
        assert set(market) == {PLAYER_ID, "globex", "skylink", "aeromax"}
        assert all(share >= 0 for share in market.values())
        assert sum(market.values()) <= 100.1


def test_market_share_split_by_reputation(make_controller):
    controller = make_controller(rng=FixedRandom(0.5))
    controller.ledger.open_route("PAR-LYS")
    controller.state.get_competitor("globex").open_routes["PAR-LYS"] = True

    market = controller.market_share()

    assert market["skylink"] == 0.0
    assert market["aeromax"] == 0.0
    assert market["globex"] > market[PLAYER_ID] > 0
    assert market[PLAYER_ID] + market["globex"] == pytest.approx(100, abs=0.1)


def test_market_share_is_zero_without_operators(make_controller):
    controller = make_controller()
    market = controller.market_share()
    assert all(share == 0.0 for share in market.values())


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

def test_fuel_shock(make_controller):
    controller = make_controller()
    player = controller.state.player

    assert controller.events.roll_fuel_shock(controller.state, FixedRandom(0.0), controller.notifier)
    assert player.fuel_price == pytest.approx(0.22 * 1.3)
    assert player.reputation == 53
    assert controller.state.events[-1].type == "fuel_crisis"

    assert not controller.events.roll_fuel_shock(controller.state, FixedRandom(0.5), controller.notifier)


def test_fuel_shock_respects_price_ceiling(make_controller):
    controller = make_controller()
    controller.state.player.fuel_price = 1.9
    controller.events.roll_fuel_shock(controller.state, FixedRandom(0.0), controller.notifier)
    assert controller.state.player.fuel_price == 2.0


def test_weather_closure_and_recovery(make_controller):
    controller = make_controller()
    controller.ledger.open_route("PAR-LYS")
    controller.ledger.open_route("LYS-NCE")
    controller.state.routes["LYS-NCE"].status = RouteState.SUSPENDED_SECURITY

    closed = controller.events.roll_weather(controller.state, FixedRandom(0.0), controller.notifier)
    assert closed == ["PAR-LYS"]
    assert controller.state.routes["PAR-LYS"].status == RouteState.SUSPENDED_WEATHER
    # Closed routes are never suspended
    assert controller.state.routes["PAR-NYC"].status == RouteState.CLOSED

    assert controller.state.routes["LYS-NCE"].status == RouteState.SUSPENDED_SECURITY
    controller.events.roll_weather(controller.state, FixedRandom(0.5), controller.notifier)
    assert controller.state.routes["PAR-LYS"].status == RouteState.OPERATIONAL
    assert controller.state.routes["LYS-NCE"].status == RouteState.SUSPENDED_SECURITY


def test_security_suspension_outlasts_weather(make_controller):
    controller = make_controller()
    controller.ledger.open_route("PAR-LYS")
    status = controller.state.routes["PAR-LYS"]
    status.status = RouteState.SUSPENDED_SECURITY

    for draw in (0.0, 0.9, 0.0, 0.9):
        controller.events.roll_weather(controller.state, FixedRandom(draw), controller.notifier)
        assert status.status == RouteState.SUSPENDED_SECURITY

    controller.ledger.close_route("PAR-LYS")
    controller.ledger.open_route("PAR-LYS")
    assert status.status == RouteState.OPERATIONAL


def test_historical_event_applies_once(make_controller):
    controller = make_controller(start_year=2000, rivals=[])
    controller.ledger.open_route("PAR-LYS")

    report = controller.next_turn()
    assert controller.state.player.year == 2001
    assert report.historical_events == ["sept11"]
    assert sept11_count(controller) == 1

    controller.rewind(2000)
    report = controller.next_turn()
    assert report.historical_events == []
    assert sept11_count(controller) == 1

    controller.reset(clear_history=False)
    report = controller.next_turn()
    assert report.historical_events == []
    assert sept11_count(controller) == 1


def test_clearing_the_log_rearms_historical_events(make_controller):
    controller = make_controller(start_year=2000, rivals=[])
    controller.next_turn()
    assert sept11_count(controller) == 1

    controller.reset(clear_history=True)
    report = controller.next_turn()
    assert report.historical_events == ["sept11"]
    assert sept11_count(controller) == 1


def test_sept11_only_suspends_open_routes(make_controller):
    controller = make_controller(start_year=2000, rivals=[])
    controller.ledger.open_route("PAR-LYS")
    controller.events.historical_events = [e for e in controller.events.historical_events
                                           if e.id == "sept11"]
    controller.state.player.year = 2001

    controller.events.apply_historical(controller.state, FixedRandom(0.0), controller.notifier)

    assert controller.state.routes["PAR-LYS"].status == RouteState.SUSPENDED_SECURITY
    assert controller.state.routes["PAR-NYC"].status == RouteState.CLOSED
    assert controller.state.player.reputation == pytest.approx(45.5)


# ---------------------------------------------------------------------------
# Turns
# ---------------------------------------------------------------------------

def test_turn_invariants_hold(make_controller):
    controller = make_controller(seed=11, difficulty=Difficulty.HARD)
    controller.ledger.open_route("PAR-LYS")
    controller.ledger.open_route("PAR-NYC")
    controller.ledger.assign_plane("PAR-NYC")
    state = controller.state

    for _ in range(40):
        year = state.player.year
        controller.next_turn()

        assert state.player.year == year + 1
        assert 0 <= state.player.reputation <= 100
        assert 0.05 <= state.player.fuel_price <= 2.0
        for comp in state.competitors:
            assert 0 <= comp.reputation <= 100
        for status in state.routes.values():
            assert status.planes_assigned >= 0
            if status.planes_assigned > 0 or status.status != RouteState.CLOSED:
                assert status.open
        assert all(entry.count >= 0 for entry in state.fleet)


def test_plane_retirement_one_per_tick(world):
    old_world = World(world.routes, [PlaneSpec("DC9", value=20000000, lifetime=25,
                                               initial_count=3, initial_age=30)])
    controller = TurnController(old_world, GameConfig(data_path=DATA_DIR, seed=1),
                                rival_catalog=[])
    player = controller.state.player
    entry = controller.state.get_fleet_entry("DC9")

    report = TurnReport(year=player.year)
    controller.execute_phase(Phase.MAINTENANCE, report)

    upkeep = 20000000 * 0.008 * (1 + 30 * 0.06) * 3
    assert entry.count == 2
    assert entry.age == 31
    assert report.retired == ["DC9"]
    assert report.maintenance_cost == pytest.approx(upkeep)
    assert player.money == pytest.approx(100000000 - upkeep + round(20000000 * 0.15))

    controller.next_turn()
    assert entry.count == 1


def test_tick_fault_clears_in_progress_flag(world):
    class BrokenAI:
        settings = None

        def run_turn(self, state, rng, notifier):
            raise RuntimeError("boom")

    controller = TurnController(world, GameConfig(data_path=DATA_DIR, seed=1),
                                competitor_ai=BrokenAI(), rival_catalog=[])
    with pytest.raises(RuntimeError):
        controller.next_turn()
    assert controller.state.tick_in_progress is False


def test_seeded_games_are_reproducible(make_controller):
    snapshots = []
    for _ in range(2):
        controller = make_controller(seed=42)
        controller.ledger.open_route("PAR-LYS")
        for _ in range(5):
            controller.next_turn()
        snapshots.append(controller.snapshot())
    assert snapshots[0] == snapshots[1]


def test_snapshot_is_a_copy(make_controller):
    controller = make_controller()
    snapshot = controller.snapshot()
    assert {"year", "money", "reputation", "fuel_price", "fleet", "routes",
            "open_routes", "competitors"} <= set(snapshot)

    snapshot["open_routes"]["PAR-LYS"]["open"] = True
    snapshot["fleet"][0]["count"] = 99
    snapshot["competitors"][0]["alliances"].append("x")

    assert not controller.state.routes["PAR-LYS"].open
    assert controller.state.fleet[0].count == 2
    assert controller.state.competitors[0].alliances == []


def test_turn_emits_snapshot(make_controller, notifier):
    snapshots = []
    notifier.subscribe(on_snapshot=snapshots.append)
    controller = make_controller()
    controller.next_turn()
    assert snapshots[-1]["year"] == 1986


def test_set_difficulty(make_controller):
    controller = make_controller()
    controller.set_difficulty("hard")
    assert controller.state.player.fuel_price == 0.26
    assert controller.state.player.difficulty == Difficulty.HARD
    assert controller.market.settings is DIFFICULTY_PRESETS[Difficulty.HARD]
    assert controller.competitor_ai.settings.competitor_aggro == 1.4

    with pytest.raises(ValueError):
        controller.set_difficulty("insane")
