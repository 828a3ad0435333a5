import math
import random

import pytest

from mazerace.benchmark import BenchmarkTracker
from mazerace.race import Race
from mazerace.settings import BenchmarkSettings
from mazerace.solvers import ALGORITHMS, Algorithm

SLIME_LANE = list(ALGORITHMS).index(Algorithm.SLIME)


@pytest.fixture
def tracker(clock):
    settings = BenchmarkSettings(agents_per_algorithm=2, maze_difficulty=0.0, max_claims_per_frame=50, seed=5)
    t = BenchmarkTracker(settings, clock=clock)
    t.setup(800, 600, 2, run_doubling=False)
    return t


def run_until_complete(race, clock, limit=60000):
    for _ in range(limit):
        if race.tracker.is_complete:
            return True
        clock.advance(0.01)
        race.tick()
    return race.tracker.is_complete


def test_spawn_places_agents_per_enabled_lane(tracker):
    tracker.set_algorithm_enabled(SLIME_LANE, False)
    race = Race(tracker, rng=random.Random(1))
    race.spawn()
    assert len(race.agents) == 7 * 2
    assert SLIME_LANE not in {a.lane for a in race.agents}

    bidir = [a for a in race.agents if a.algorithm is Algorithm.BIDIRECTIONAL]
    assert [a.forward for a in bidir] == [True, False]
    assert (bidir[1].x, bidir[1].y) == (tracker.goal_x, tracker.goal_y)

    for agent in race.agents:
        if not ALGORITHMS[agent.algorithm].explorer:
            assert agent.route
            assert agent.route[-1] == tracker.goal_cell


def test_routes_are_cached_and_recorded(tracker):
    race = Race(tracker, rng=random.Random(1))
    race.spawn()
    astar_lane = list(ALGORITHMS).index(Algorithm.ASTAR)
    dijkstra_lane = list(ALGORITHMS).index(Algorithm.DIJKSTRA)
    assert tracker.stats[astar_lane].paths_recorded == 2
    assert tracker.stats[astar_lane].avg_path_length > 0.0
    assert tracker.stats[dijkstra_lane].paths_recorded == 1
    assert tracker.stats[SLIME_LANE].paths_recorded == 0
    assert tracker.arena.state_for(Algorithm.DIJKSTRA).seeded
    assert tracker.arena.bidirectional.seeded


def test_tick_is_idle_until_started(tracker):
    race = Race(tracker, rng=random.Random(1))
    race.spawn()
    before = race.lane_positions(4)
    race.tick()
    assert race.ticks == 0
    assert race.lane_positions(4) == before

    tracker.start()
    race.tick()
    assert race.ticks == 1
    assert race.lane_positions(4) != before

    tracker.pause()
    paused = race.lane_positions(4)
    race.tick()
    assert race.lane_positions(4) == paused


def test_slime_agents_step_to_a_neighbor(tracker):
    race = Race(tracker, rng=random.Random(2))
    race.spawn()
    tracker.start()
    grid = tracker.grid
    slimes = [a for a in race.agents if a.algorithm is Algorithm.SLIME]
    before = [grid.world_to_grid(a.x, a.y) for a in slimes]
    race.tick()
    for cell, agent in zip(before, slimes):
        after = grid.world_to_grid(agent.x, agent.y)
        assert after != cell
        assert max(abs(after.x - cell.x), abs(after.y - cell.y)) == 1
        assert grid.is_cell_valid(after)


def test_race_runs_to_completion(tracker, clock):
    tracker.set_algorithm_enabled(SLIME_LANE, False)
    race = Race(tracker, rng=random.Random(1))
    race.spawn()
    tracker.start()
    assert run_until_complete(race, clock)

    standings = tracker.standings()
    assert len(standings) == 7
    assert sorted(s.rank for s in standings) == list(range(1, 8))
    assert all(s.finished and s.arrived_agents == 2 for s in standings)
    assert all(a.arrived for a in race.agents)
    assert tracker.elapsed_ms() > 0.0

    #goal-aware agents stop as soon as they are inside the arrival radius
    radius = tracker.settings.goal_arrival_radius
    for agent in race.agents:
        if not ALGORITHMS[agent.algorithm].explorer:
            assert math.hypot(agent.x - tracker.goal_x, agent.y - tracker.goal_y) < radius
            assert agent.route_index <= len(agent.route)


def test_respawn_after_reset(tracker, clock):
    tracker.set_algorithm_enabled(SLIME_LANE, False)
    race = Race(tracker, rng=random.Random(1))
    race.spawn()
    tracker.start()
    for _ in range(20):
        clock.advance(0.01)
        race.tick()
    tracker.reset()
    race.spawn()
    assert race.ticks == 0
    assert not any(a.arrived for a in race.agents)
    assert tracker.arena.state_for(Algorithm.DFS).seeded


def only_lanes(tracker, *algorithms):
    for lane, algorithm in enumerate(tracker.algorithms):
        tracker.set_algorithm_enabled(lane, algorithm in algorithms)


@pytest.fixture
def default_tracker(clock):
    #default claim limit of one cell per wave per tick
    settings = BenchmarkSettings(agents_per_algorithm=5, maze_difficulty=0.0, seed=3)
    t = BenchmarkTracker(settings, clock=clock)
    t.setup(800, 600, 5, run_doubling=False)
    return t


def test_every_goal_aware_agent_gets_a_route(default_tracker):
    race = Race(default_tracker, rng=random.Random(3))
    race.spawn()
    for agent in race.agents:
        if not ALGORITHMS[agent.algorithm].explorer:
            assert agent.route, (agent.agent_id, agent.x, agent.y)


def test_backward_wave_grows_under_default_limit(default_tracker, clock):
    only_lanes(default_tracker, Algorithm.BIDIRECTIONAL)
    race = Race(default_tracker, rng=random.Random(3))
    race.spawn()
    default_tracker.start()
    for _ in range(300):
        clock.advance(0.01)
        race.tick()
    state = default_tracker.arena.bidirectional
    assert len(state.backward_visited) > 100
    assert len(state.forward_visited) > 100


def test_default_limit_race_completes(default_tracker, clock):
    only_lanes(
        default_tracker,
        Algorithm.BIDIRECTIONAL, Algorithm.ASTAR, Algorithm.GREEDY, Algorithm.JPS, Algorithm.THETA,
    )
    race = Race(default_tracker, rng=random.Random(3))
    race.spawn()
    default_tracker.start()
    assert run_until_complete(race, clock)
    assert all(s.finished and s.arrived_agents == 5 for s in default_tracker.standings())
    assert default_tracker.arena.bidirectional.waves_met


def test_restart_does_not_accumulate_path_metrics(tracker):
    race = Race(tracker, rng=random.Random(1))
    race.spawn()
    astar = tracker.stats[list(ALGORITHMS).index(Algorithm.ASTAR)]
    recorded = astar.paths_recorded
    avg_length = astar.avg_path_length
    tracker.reset()
    race.spawn()
    assert astar.paths_recorded == recorded
    assert astar.avg_path_length == pytest.approx(avg_length)
