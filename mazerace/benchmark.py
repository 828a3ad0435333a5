#Benchmark state machine, per-lane arrival statistics and the empirical doubling experiment
#Doubling method: if T(2N)/T(N) = r then r~1 is constant, r~2 linear, r~4 quadratic
#The bucket thresholds are widened to absorb timer noise and cache effects

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from .exploration import ExplorationArena
from .grid import Grid, GridCell
from .maze_gen import TRUE_MAZE_SPAWN_WIDTH, MazeGenerator
from .settings import BenchmarkSettings
from .solvers import ALGORITHMS, BENCHMARK_ALGORITHMS, GOAL_AWARE_ALGORITHMS, Algorithm, PathResult, find_path

log = logging.getLogger(__name__)


class BenchmarkPhase(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETE = "complete"


@dataclass
class AlgorithmStats:
    algorithm: Algorithm
    name: str
    color: Tuple[int, int, int]

    total_agents: int = 0
    arrived_agents: int = 0
    finished: bool = False
    rank: int = 0

    first_arrival_ms: float = -1.0
    last_arrival_ms: float = -1.0
    avg_arrival_ms: float = 0.0

    total_compute_ms: float = 0.0
    avg_compute_ms: float = 0.0
    total_nodes_expanded: int = 0
    avg_nodes_expanded: float = 0.0
    avg_path_length: float = 0.0
    paths_recorded: int = 0

    @property
    def arrival_percent(self) -> float:
        return 100.0 * self.arrived_agents / self.total_agents if self.total_agents > 0 else 0.0

    def record_path(self, result: PathResult) -> None:
        self.paths_recorded += 1
        n = self.paths_recorded
        self.total_compute_ms += result.compute_time_ms
        self.avg_compute_ms = self.total_compute_ms / n
        self.total_nodes_expanded += result.nodes_expanded
        self.avg_nodes_expanded = self.total_nodes_expanded / n
        self.avg_path_length = (self.avg_path_length * (n - 1) + result.path_length) / n

    def reset_progress(self) -> None:
        self.arrived_agents = 0
        self.finished = False
        self.rank = 0
        self.first_arrival_ms = -1.0
        self.last_arrival_ms = -1.0
        self.avg_arrival_ms = 0.0
        #path metrics belong to the maze the lane is racing on
        self.total_compute_ms = 0.0
        self.avg_compute_ms = 0.0
        self.total_nodes_expanded = 0
        self.avg_nodes_expanded = 0.0
        self.avg_path_length = 0.0
        self.paths_recorded = 0


@dataclass(frozen=True)
class DoublingResult:
    algorithm: Algorithm
    algo_name: str
    problem_size: int
    time_ms: float
    ratio: float
    estimated_big_o: str


def estimate_big_o(ratio: float) -> str:
    if ratio < 1.2:
        return "O(1)"
    if ratio < 1.5:
        return "O(log n)"
    if ratio < 2.5:
        return "O(n)"
    if ratio < 3.5:
        return "O(n log n)"
    if ratio < 5.0:
        return "O(n^2)"
    return "O(n^2+)"


def complexity_level_for(difficulty: float) -> int:
    return min(max(1 + int(difficulty * 5.0), 1), 6)


class BenchmarkTracker:

    #Owns the live grid, the lane stats and the shared exploration arena
    #clock returns seconds (time.perf_counter by default), everything reported is in ms

    def __init__(
        self,
        settings: Optional[BenchmarkSettings] = None,
        clock: Callable[[], float] = time.perf_counter,
        rng: Optional[random.Random] = None,
    ):
        self.settings = settings or BenchmarkSettings()
        self.clock = clock
        self.rng = rng or random.Random(self.settings.seed)
        s = self.settings
        self.width = s.width
        self.height = s.height
        self.agents_per_algorithm = s.agents_per_algorithm
        self.difficulty = s.maze_difficulty
        self.spawn_margin = s.spawn_margin
        self.goal_margin = s.goal_margin
        self.goal_x = self.width - self.goal_margin
        self.goal_y = self.height / 2.0

        self.grid = Grid(s.width, s.height, s.cell_size)
        self.generator = MazeGenerator(self.grid, self.rng)
        self.arena = ExplorationArena(s.max_claims_per_frame)

        self.algorithms: Tuple[Algorithm, ...] = BENCHMARK_ALGORITHMS
        self.stats: List[AlgorithmStats] = []
        self.enabled: List[bool] = []
        self.doubling_results: List[DoublingResult] = []
        self._init_stats()

        self._phase = BenchmarkPhase.IDLE
        self._start_time = 0.0
        self._pause_start = 0.0
        self._paused_total = 0.0
        self._completed_at = 0.0
        self._arrived: Dict[int, Set[int]] = {}
        self._next_rank = 1

    # Setup

    def _init_stats(self) -> None:
        self.stats = []
        for algorithm in self.algorithms:
            info = ALGORITHMS[algorithm]
            self.stats.append(AlgorithmStats(algorithm, info.name, info.color, total_agents=self.agents_per_algorithm))
        self.enabled = [True] * len(self.algorithms)

    def setup(self, width: int, height: int, agents_per_algorithm: int, run_doubling: bool = True) -> None:
        self.width = width
        self.height = height
        self.agents_per_algorithm = agents_per_algorithm
        self.grid.resize(width, height)
        self.goal_x = width - self.goal_margin
        self.goal_y = height / 2.0

        self.regenerate_maze()
        if run_doubling:
            self.run_doubling_experiment()
        self._init_stats()
        self.reset()
        log.info(
            "benchmark ready: %dx%d px, %d agents per lane, %s",
            width, height, agents_per_algorithm, self.complexity_info(),
        )

    def set_cell_size(self, size: int) -> None:
        self.grid.set_cell_size(size)
        self.regenerate_maze()

    def set_difficulty(self, difficulty: float) -> None:
        self.difficulty = min(max(difficulty, 0.0), 1.0)

    @property
    def complexity_level(self) -> int:
        return complexity_level_for(self.difficulty)

    def regenerate_maze(self) -> None:
        #the race always runs on the true maze so N (cell count) stays measurable
        layout = self.generator.generate_true_maze(self.complexity_level)
        cs = self.grid.cell_size
        exit_cell = layout.exit_cell
        self.set_goal_position(float(exit_cell.x * cs + cs // 2), float(exit_cell.y * cs + cs // 2))

    def cycle_difficulty(self) -> None:
        #one press is roughly one complexity level, wraps back to the easiest
        self.difficulty = round(self.difficulty + 0.2, 6)
        if self.difficulty > 1.0:
            self.difficulty = 0.0

    def complexity_info(self) -> str:
        return f"Level {self.complexity_level} (N={self.generator.maze_cell_count} cells)"

    def set_goal_position(self, x: float, y: float) -> None:
        self.goal_x = x
        self.goal_y = y

    @property
    def goal_cell(self) -> GridCell:
        return self.grid.world_to_grid(self.goal_x, self.goal_y)

    @property
    def obstacles(self):
        return self.grid.obstacles

    # Lanes

    def update_agent_counts(self, per_algorithm: int) -> None:
        self.agents_per_algorithm = per_algorithm
        for stat in self.stats:
            stat.total_agents = per_algorithm

    def set_algorithm_enabled(self, index: int, enabled: bool) -> None:
        if 0 <= index < len(self.enabled):
            self.enabled[index] = enabled

    def is_algorithm_enabled(self, index: int) -> bool:
        if 0 <= index < len(self.enabled):
            return self.enabled[index]
        return True

    def spawn_position(self, lane: int, agent_index: int, total: int) -> Tuple[float, float]:
        #one horizontal lane per algorithm, agents spread over 80% of it
        lane_height = self.height / len(self.algorithms)
        lane_y = (lane + 0.5) * lane_height
        spread = lane_height * 0.8
        spacing = spread / max(1, total - 1)
        if total == 1:
            y = lane_y
        else:
            y = lane_y - spread / 2.0 + agent_index * spacing
        y = min(max(y, 10.0), float(self.height - 10))
        x = self.spawn_margin * 0.5 + (agent_index % 5) * 5.0
        #stay left of the blanket-blocked maze area, the last open column at most
        cs = self.grid.cell_size
        x = min(x, TRUE_MAZE_SPAWN_WIDTH * cs - cs * 0.5)
        return x, y

    # Lifecycle

    @property
    def phase(self) -> BenchmarkPhase:
        return self._phase

    @property
    def is_active(self) -> bool:
        return self._phase in (BenchmarkPhase.ACTIVE, BenchmarkPhase.PAUSED)

    @property
    def is_paused(self) -> bool:
        return self._phase is BenchmarkPhase.PAUSED

    @property
    def is_complete(self) -> bool:
        return self._phase is BenchmarkPhase.COMPLETE

    def start(self) -> None:
        if self._phase is not BenchmarkPhase.IDLE:
            return
        self._phase = BenchmarkPhase.ACTIVE
        self._start_time = self.clock()
        self._paused_total = 0.0
        log.info("benchmark started")

    def pause(self) -> None:
        if self._phase is BenchmarkPhase.ACTIVE:
            self._phase = BenchmarkPhase.PAUSED
            self._pause_start = self.clock()

    def resume(self) -> None:
        if self._phase is BenchmarkPhase.PAUSED:
            self._paused_total += self.clock() - self._pause_start
            self._phase = BenchmarkPhase.ACTIVE

    def reset(self) -> None:
        self._phase = BenchmarkPhase.IDLE
        self._paused_total = 0.0
        self._next_rank = 1
        self._arrived.clear()
        self.arena.clear()
        for stat in self.stats:
            stat.reset_progress()

    def update(self) -> None:
        #level triggered, safe to call every tick
        if self._phase is not BenchmarkPhase.ACTIVE:
            return
        tracked = [stat for stat, on in zip(self.stats, self.enabled) if on]
        if tracked and all(stat.finished for stat in tracked):
            self._completed_at = self.clock()
            self._phase = BenchmarkPhase.COMPLETE
            log.info("benchmark complete after %.1f ms", self.elapsed_ms())

    def begin_tick(self) -> None:
        self.arena.begin_tick()

    def elapsed_ms(self) -> float:
        if self._phase is BenchmarkPhase.IDLE:
            return 0.0
        now = self._completed_at if self._phase is BenchmarkPhase.COMPLETE else self.clock()
        elapsed = now - self._start_time - self._paused_total
        if self._phase is BenchmarkPhase.PAUSED:
            elapsed -= now - self._pause_start
        return elapsed * 1000.0

    # Statistics

    def record_arrival(self, index: int, agent_id: int) -> None:
        if self._phase is not BenchmarkPhase.ACTIVE:
            return
        if not 0 <= index < len(self.stats):
            return
        arrived = self._arrived.setdefault(index, set())
        if agent_id in arrived:
            return
        arrived.add(agent_id)

        stat = self.stats[index]
        elapsed = self.elapsed_ms()
        stat.arrived_agents += 1
        if stat.first_arrival_ms < 0:
            stat.first_arrival_ms = elapsed
        stat.last_arrival_ms = elapsed
        n = stat.arrived_agents
        stat.avg_arrival_ms = (stat.avg_arrival_ms * (n - 1) + elapsed) / n

        if stat.arrived_agents >= stat.total_agents and not stat.finished:
            stat.finished = True
            stat.rank = self._next_rank
            self._next_rank += 1
            log.info("%s finished, rank %d at %.1f ms", stat.name, stat.rank, elapsed)

    def record_path(self, index: int, result: PathResult) -> None:
        if 0 <= index < len(self.stats):
            self.stats[index].record_path(result)

    def standings(self) -> List[AlgorithmStats]:
        #finished lanes first by finish time, then most arrivals, then earliest first arrival
        lanes = [stat for stat, on in zip(self.stats, self.enabled) if on]
        return sorted(
            lanes,
            key=lambda s: (
                not s.finished,
                s.last_arrival_ms if s.finished else 0.0,
                -s.arrived_agents,
                s.first_arrival_ms,
            ),
        )

    def total_arrivals(self) -> int:
        return sum(stat.arrived_agents for stat in self.stats)

    def total_agents(self) -> int:
        return sum(stat.total_agents for stat in self.stats)

    # Doubling experiment

    def run_doubling_experiment(
        self,
        levels: int = 6,
        trials: int = 3,
        algorithms: Sequence[Algorithm] = GOAL_AWARE_ALGORITHMS,
    ) -> List[DoublingResult]:
        #Rebuilds the true maze level by level, the live maze and goal are restored afterwards
        results: List[DoublingResult] = []
        snapshot = self.grid.copy()
        saved_difficulty = self.difficulty
        saved_goal = (self.goal_x, self.goal_y)
        saved_maze = (self.generator.maze_cell_count, self.generator.maze_exit, self.generator.last_layout)

        try:
            for algorithm in algorithms:
                name = ALGORITHMS[algorithm].name
                prev_time = 0.0
                for level in range(1, levels + 1):
                    layout = self.generator.generate_true_maze(level)
                    goal = layout.exit_cell
                    start = self.grid.world_to_grid(self.spawn_margin * 0.5, self.height * 0.5)
                    total_ms = 0.0
                    for _ in range(trials):
                        total_ms += find_path(self.grid, algorithm, start, goal).compute_time_ms
                    avg_ms = total_ms / max(1, trials)
                    if level == 1 or prev_time <= 0.0:
                        ratio = 0.0
                    else:
                        ratio = avg_ms / prev_time
                    estimate = "--" if level == 1 else estimate_big_o(ratio)
                    results.append(DoublingResult(algorithm, name, layout.cell_count, avg_ms, ratio, estimate))
                    log.debug("%s level %d: N=%d %.3f ms ratio=%.2f", name, level, layout.cell_count, avg_ms, ratio)
                    prev_time = avg_ms
        finally:
            self.grid.restore(snapshot)
            self.difficulty = saved_difficulty
            self.goal_x, self.goal_y = saved_goal
            (
                self.generator.maze_cell_count,
                self.generator.maze_exit,
                self.generator.last_layout,
            ) = saved_maze

        self.doubling_results = results
        log.info("doubling experiment: %d rows", len(results))
        return results
