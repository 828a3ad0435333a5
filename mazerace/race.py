#Lane race driver: spawns agents per algorithm lane and moves them one step per tick
#Goal-aware lanes follow precomputed routes, explorer lanes grow a shared wave,
#slime agents wander until they stumble into the goal radius

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .benchmark import BenchmarkPhase, BenchmarkTracker
from .grid import GridCell
from .solvers import ALGORITHMS, Algorithm, PathResult, find_path

log = logging.getLogger(__name__)


@dataclass
class RaceAgent:
    agent_id: int
    lane: int
    algorithm: Algorithm
    x: float
    y: float
    route: Tuple[GridCell, ...] = ()
    route_index: int = 0
    forward: bool = True
    arrived: bool = False


class Race:

    def __init__(self, tracker: BenchmarkTracker, rng: Optional[random.Random] = None, speed: Optional[float] = None):
        self.tracker = tracker
        self.rng = rng or random.Random(tracker.settings.seed)
        #pixels per tick, one cell by default
        self.speed = speed if speed is not None else float(tracker.grid.cell_size)
        self.agents: List[RaceAgent] = []
        self._route_cache: Dict[Tuple[int, GridCell], PathResult] = {}
        self.ticks = 0

    def spawn(self) -> None:
        tracker = self.tracker
        grid = tracker.grid
        goal = tracker.goal_cell
        self.agents = []
        self._route_cache.clear()
        self.ticks = 0
        next_id = 0

        for lane, algorithm in enumerate(tracker.algorithms):
            if not tracker.is_algorithm_enabled(lane):
                continue
            info = ALGORITHMS[algorithm]
            total = tracker.agents_per_algorithm
            lane_x, lane_y = tracker.spawn_position(lane, 0, 1)
            lane_cell = grid.world_to_grid(lane_x, lane_y)

            if info.explorer and info.solver is not None:
                #one reference search per explorer lane feeds the compute stats
                tracker.record_path(lane, find_path(grid, algorithm, lane_cell, goal))
                if algorithm is Algorithm.BIDIRECTIONAL:
                    tracker.arena.seed_bidirectional(lane_cell, goal)
                else:
                    tracker.arena.seed(algorithm, lane_cell, goal)

            for i in range(total):
                x, y = tracker.spawn_position(lane, i, total)
                agent = RaceAgent(next_id, lane, algorithm, x, y)
                next_id += 1
                if algorithm is Algorithm.BIDIRECTIONAL:
                    agent.forward = i % 2 == 0
                    if not agent.forward:
                        agent.x, agent.y = tracker.goal_x, tracker.goal_y
                elif not info.explorer:
                    agent.route = self._route_for(lane, algorithm, grid.world_to_grid(x, y), goal)
                self.agents.append(agent)

        log.info("race spawned %d agents", len(self.agents))

    def _route_for(self, lane: int, algorithm: Algorithm, start: GridCell, goal: GridCell) -> Tuple[GridCell, ...]:
        key = (lane, start)
        result = self._route_cache.get(key)
        if result is None:
            result = find_path(self.tracker.grid, algorithm, start, goal)
            self._route_cache[key] = result
            self.tracker.record_path(lane, result)
            if not result.found:
                log.debug("%s found no route from %s", ALGORITHMS[algorithm].name, start)
        return result.path

    def tick(self) -> None:
        tracker = self.tracker
        if tracker.phase is not BenchmarkPhase.ACTIVE:
            return
        tracker.begin_tick()
        self.ticks += 1
        for agent in self.agents:
            if agent.arrived:
                continue
            self._step(agent)
            if self._has_arrived(agent):
                agent.arrived = True
                tracker.record_arrival(agent.lane, agent.agent_id)
        tracker.update()

    def _step(self, agent: RaceAgent) -> None:
        grid = self.tracker.grid
        algorithm = agent.algorithm
        if algorithm is Algorithm.SLIME:
            self._wander(agent)
        elif algorithm is Algorithm.BIDIRECTIONAL:
            cell = self.tracker.arena.claim_bidirectional(grid, agent.forward)
            if cell is not None:
                agent.x, agent.y = grid.grid_to_world(*cell)
        elif ALGORITHMS[algorithm].explorer:
            cell = self.tracker.arena.claim(algorithm, grid)
            if cell is not None:
                agent.x, agent.y = grid.grid_to_world(*cell)
        else:
            self._follow_route(agent)

    def _follow_route(self, agent: RaceAgent) -> None:
        budget = self.speed
        while budget > 0 and agent.route_index < len(agent.route):
            tx, ty = self.tracker.grid.grid_to_world(*agent.route[agent.route_index])
            dist = math.hypot(tx - agent.x, ty - agent.y)
            if dist <= budget:
                agent.x, agent.y = tx, ty
                agent.route_index += 1
                budget -= dist
            else:
                agent.x += (tx - agent.x) / dist * budget
                agent.y += (ty - agent.y) / dist * budget
                budget = 0

    def _wander(self, agent: RaceAgent) -> None:
        #one random step to an open neighbor
        grid = self.tracker.grid
        cell = grid.world_to_grid(agent.x, agent.y)
        options = grid.neighbors(cell)
        if not options:
            return
        nxt = self.rng.choice(options)
        agent.x, agent.y = grid.grid_to_world(*nxt)

    def _has_arrived(self, agent: RaceAgent) -> bool:
        tracker = self.tracker
        if agent.algorithm is Algorithm.BIDIRECTIONAL:
            return tracker.arena.bidirectional.waves_met
        info = ALGORITHMS[agent.algorithm]
        if info.explorer and agent.algorithm is not Algorithm.SLIME:
            return tracker.arena.state_for(agent.algorithm).found_goal
        dist = math.hypot(agent.x - tracker.goal_x, agent.y - tracker.goal_y)
        return dist < tracker.settings.goal_arrival_radius

    def lane_positions(self, lane: int) -> List[Tuple[float, float]]:
        return [(a.x, a.y) for a in self.agents if a.lane == lane]
