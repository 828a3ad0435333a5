#Grid search algorithms
#All of them read the grid and never mutate it, each call returns one PathResult
#Heap entries are (priority, cell) so equal priorities fall back to the cell order (x then y)

from __future__ import annotations

import heapq
import math
import random
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .grid import Grid, GridCell

SQRT2 = 1.41421356
CARDINAL_COST = 1.0
DIAGONAL_COST = SQRT2

#clockwise from north
JUMP_DIRECTIONS = ((0, -1), (1, -1), (1, 0), (1, 1), (0, 1), (-1, 1), (-1, 0), (-1, -1))


@dataclass(frozen=True)
class PathResult:
    path: Tuple[GridCell, ...] = ()
    found: bool = False
    nodes_expanded: int = 0
    compute_time_ms: float = 0.0
    path_length: float = 0.0


# Distance helpers


def heuristic(a: Tuple[int, int], b: Tuple[int, int]) -> float:
    #octile distance, 0.414 keeps it just under the true diagonal surcharge
    dx = abs(a[0] - b[0])
    dy = abs(a[1] - b[1])
    return max(dx, dy) + 0.414 * min(dx, dy)


def euclidean_distance(a: Tuple[int, int], b: Tuple[int, int]) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def manhattan_distance(a: Tuple[int, int], b: Tuple[int, int]) -> float:
    return float(abs(a[0] - b[0]) + abs(a[1] - b[1]))


def path_length(path: Sequence[Tuple[int, int]]) -> float:
    return sum(euclidean_distance(path[i - 1], path[i]) for i in range(1, len(path)))


def reconstruct_path(parent: Dict[GridCell, GridCell], start: GridCell, goal: GridCell) -> List[GridCell]:
    if goal != start and goal not in parent:
        return []
    cur = goal
    result = [cur]
    while cur != start:
        cur = parent[cur]
        result.append(cur)
    result.reverse()
    return result


def simplify_path(grid: Grid, path: Sequence[GridCell]) -> List[GridCell]:
    #Greedily keeps the farthest waypoint still visible from the current one
    if len(path) <= 2:
        return list(path)
    simplified = [path[0]]
    current = 0
    last = len(path) - 1
    while current < last:
        furthest = current + 1
        for i in range(last, current + 1, -1):
            if grid.line_of_sight(path[current], path[i]):
                furthest = i
                break
        simplified.append(path[furthest])
        current = furthest
    return simplified


def _trivial_result(grid: Grid, start: GridCell, goal: GridCell) -> Optional[PathResult]:
    if not grid.is_cell_valid(start) or not grid.is_cell_valid(goal):
        return PathResult()
    if start == goal:
        return PathResult((start,), True)
    return None


def _finish(path: List[GridCell], expanded: int, start_time: float) -> PathResult:
    elapsed_ms = (time.perf_counter() - start_time) * 1000.0
    return PathResult(tuple(path), bool(path), expanded, elapsed_ms, path_length(path))


# Informed searches


def astar_search(grid: Grid, start: Tuple[int, int], goal: Tuple[int, int]) -> PathResult:
    start, goal = GridCell(*start), GridCell(*goal)
    trivial = _trivial_result(grid, start, goal)
    if trivial is not None:
        return trivial

    start_time = time.perf_counter()
    open_heap: List[Tuple[float, GridCell]] = [(0.0, start)]
    parent: Dict[GridCell, GridCell] = {}
    g_score: Dict[GridCell, float] = {start: 0.0}
    expanded = 0
    path: List[GridCell] = []

    while open_heap:
        _, current = heapq.heappop(open_heap)
        expanded += 1
        if current == goal:
            path = reconstruct_path(parent, start, goal)
            break
        g = g_score[current]
        for nxt in grid.neighbors(current):
            tentative_g = g + euclidean_distance(current, nxt)
            if tentative_g >= g_score.get(nxt, math.inf):
                continue
            g_score[nxt] = tentative_g
            parent[nxt] = current
            heapq.heappush(open_heap, (tentative_g + heuristic(nxt, goal), nxt))

    return _finish(path, expanded, start_time)


def greedy_search(grid: Grid, start: Tuple[int, int], goal: Tuple[int, int]) -> PathResult:
    #Orders by h only, the first parent that discovers a cell keeps it
    start, goal = GridCell(*start), GridCell(*goal)
    trivial = _trivial_result(grid, start, goal)
    if trivial is not None:
        return trivial

    start_time = time.perf_counter()
    open_heap: List[Tuple[float, GridCell]] = [(heuristic(start, goal), start)]
    parent: Dict[GridCell, GridCell] = {}
    visited = set()
    expanded = 0
    path: List[GridCell] = []

    while open_heap:
        _, current = heapq.heappop(open_heap)
        if current in visited:
            continue
        visited.add(current)
        expanded += 1
        if current == goal:
            path = reconstruct_path(parent, start, goal)
            break
        for nxt in grid.neighbors(current):
            if nxt in visited:
                continue
            heapq.heappush(open_heap, (heuristic(nxt, goal), nxt))
            if nxt not in parent:
                parent[nxt] = current

    return _finish(path, expanded, start_time)


def _jump(grid: Grid, x: int, y: int, dx: int, dy: int, goal: GridCell) -> Optional[GridCell]:
    #Walks from (x, y) in direction (dx, dy) until the goal, a forced neighbor or a dead end
    #Diagonal runs probe their two straight components at every step
    valid = grid.is_valid
    while True:
        nx, ny = x + dx, y + dy
        if not valid(nx, ny):
            return None
        if dx and dy and not (valid(nx, y) and valid(x, ny)):
            return None
        if nx == goal.x and ny == goal.y:
            return GridCell(nx, ny)

        if dx and dy:
            if (valid(x - dx, y + dy) and not valid(x - dx, y)) or (
                valid(x + dx, y - dy) and not valid(x, y - dy)
            ):
                return GridCell(nx, ny)
            if _jump(grid, nx, ny, dx, 0, goal) is not None or _jump(grid, nx, ny, 0, dy, goal) is not None:
                return GridCell(nx, ny)
        elif dx:
            if (valid(nx, ny + 1) and not valid(x, y + 1)) or (valid(nx, ny - 1) and not valid(x, y - 1)):
                return GridCell(nx, ny)
        else:
            if (valid(nx + 1, ny) and not valid(x + 1, y)) or (valid(nx - 1, ny) and not valid(x - 1, y)):
                return GridCell(nx, ny)

        x, y = nx, ny


def jps_search(grid: Grid, start: Tuple[int, int], goal: Tuple[int, int]) -> PathResult:
    #Returns jump points only, consecutive waypoints are joined by straight or diagonal runs
    start, goal = GridCell(*start), GridCell(*goal)
    trivial = _trivial_result(grid, start, goal)
    if trivial is not None:
        return trivial

    start_time = time.perf_counter()
    open_heap: List[Tuple[float, GridCell]] = [(0.0, start)]
    parent: Dict[GridCell, GridCell] = {}
    g_score: Dict[GridCell, float] = {start: 0.0}
    closed = set()
    expanded = 0
    path: List[GridCell] = []

    while open_heap:
        _, current = heapq.heappop(open_heap)
        if current in closed:
            continue
        closed.add(current)
        expanded += 1
        if current == goal:
            path = reconstruct_path(parent, start, goal)
            break
        g = g_score[current]
        for dx, dy in JUMP_DIRECTIONS:
            point = _jump(grid, current.x, current.y, dx, dy, goal)
            if point is None or point in closed:
                continue
            tentative_g = g + euclidean_distance(current, point)
            if tentative_g >= g_score.get(point, math.inf):
                continue
            g_score[point] = tentative_g
            parent[point] = current
            heapq.heappush(open_heap, (tentative_g + heuristic(point, goal), point))

    return _finish(path, expanded, start_time)


def theta_star_search(grid: Grid, start: Tuple[int, int], goal: Tuple[int, int]) -> PathResult:
    #A* that hangs a neighbor off the current cell's parent whenever that parent can see it
    start, goal = GridCell(*start), GridCell(*goal)
    trivial = _trivial_result(grid, start, goal)
    if trivial is not None:
        return trivial

    start_time = time.perf_counter()
    open_heap: List[Tuple[float, GridCell]] = [(heuristic(start, goal), start)]
    parent: Dict[GridCell, GridCell] = {start: start}
    g_score: Dict[GridCell, float] = {start: 0.0}
    closed = set()
    expanded = 0
    path: List[GridCell] = []

    while open_heap:
        _, current = heapq.heappop(open_heap)
        if current in closed:
            continue
        closed.add(current)
        expanded += 1
        if current == goal:
            path = reconstruct_path(parent, start, goal)
            break
        grandparent = parent[current]
        for nxt in grid.neighbors(current):
            if nxt in closed:
                continue
            if grid.line_of_sight(grandparent, nxt):
                new_parent = grandparent
            else:
                new_parent = current
            new_g = g_score[new_parent] + euclidean_distance(new_parent, nxt)
            if new_g >= g_score.get(nxt, math.inf):
                continue
            g_score[nxt] = new_g
            parent[nxt] = new_parent
            heapq.heappush(open_heap, (new_g + heuristic(nxt, goal), nxt))

    return _finish(path, expanded, start_time)


# Uninformed searches


def bidirectional_search(grid: Grid, start: Tuple[int, int], goal: Tuple[int, int]) -> PathResult:
    #Two BFS waves, one whole layer per side per round, stitched where they first touch
    start, goal = GridCell(*start), GridCell(*goal)
    trivial = _trivial_result(grid, start, goal)
    if trivial is not None:
        return trivial

    start_time = time.perf_counter()
    forward = deque([start])
    backward = deque([goal])
    parent_fwd: Dict[GridCell, GridCell] = {start: start}
    parent_bwd: Dict[GridCell, GridCell] = {goal: goal}
    expanded = 0
    meeting: Optional[GridCell] = None

    def expand_layer(frontier, parents, other) -> Optional[GridCell]:
        nonlocal expanded
        for _ in range(len(frontier)):
            current = frontier.popleft()
            expanded += 1
            for nxt in grid.neighbors(current):
                if nxt in parents:
                    continue
                parents[nxt] = current
                if nxt in other:
                    return nxt
                frontier.append(nxt)
        return None

    while forward and backward:
        meeting = expand_layer(forward, parent_fwd, parent_bwd)
        if meeting is not None:
            break
        meeting = expand_layer(backward, parent_bwd, parent_fwd)
        if meeting is not None:
            break

    path: List[GridCell] = []
    if meeting is not None:
        cur = meeting
        path.append(cur)
        while cur != start:
            cur = parent_fwd[cur]
            path.append(cur)
        path.reverse()
        cur = meeting
        while cur != goal:
            cur = parent_bwd[cur]
            path.append(cur)

    return _finish(path, expanded, start_time)


def dfs_search(
    grid: Grid,
    start: Tuple[int, int],
    goal: Tuple[int, int],
    rng: Optional[random.Random] = None,
) -> PathResult:
    #Randomized DFS, neighbor order is shuffled and cells are marked when pushed
    start, goal = GridCell(*start), GridCell(*goal)
    trivial = _trivial_result(grid, start, goal)
    if trivial is not None:
        return trivial
    rng = rng or random.Random()

    start_time = time.perf_counter()
    stack = [start]
    parent: Dict[GridCell, GridCell] = {start: start}
    expanded = 0
    path: List[GridCell] = []

    while stack:
        current = stack.pop()
        expanded += 1
        if current == goal:
            path = reconstruct_path(parent, start, goal)
            break
        neighbors = grid.neighbors(current)
        rng.shuffle(neighbors)
        for nxt in neighbors:
            if nxt in parent:
                continue
            parent[nxt] = current
            stack.append(nxt)

    return _finish(path, expanded, start_time)


def dijkstra_search(grid: Grid, start: Tuple[int, int], goal: Tuple[int, int]) -> PathResult:
    #Uniform cost with 1 / sqrt(2) steps
    #nodes_expanded counts every heap pop, stale entries included
    start, goal = GridCell(*start), GridCell(*goal)
    trivial = _trivial_result(grid, start, goal)
    if trivial is not None:
        return trivial

    start_time = time.perf_counter()
    open_heap: List[Tuple[float, GridCell]] = [(0.0, start)]
    parent: Dict[GridCell, GridCell] = {}
    cost_so_far: Dict[GridCell, float] = {start: 0.0}
    expanded = 0
    path: List[GridCell] = []

    while open_heap:
        cost, current = heapq.heappop(open_heap)
        expanded += 1
        if cost > cost_so_far.get(current, math.inf):
            continue
        if current == goal:
            path = reconstruct_path(parent, start, goal)
            break
        for nxt in grid.neighbors(current):
            step = DIAGONAL_COST if nxt.x != current.x and nxt.y != current.y else CARDINAL_COST
            new_cost = cost + step
            if new_cost >= cost_so_far.get(nxt, math.inf):
                continue
            cost_so_far[nxt] = new_cost
            parent[nxt] = current
            heapq.heappush(open_heap, (new_cost, nxt))

    return _finish(path, expanded, start_time)


# Registry


class Algorithm(Enum):
    DFS = "dfs"
    DIJKSTRA = "dijkstra"
    BIDIRECTIONAL = "bidirectional"
    SLIME = "slime"
    ASTAR = "astar"
    GREEDY = "greedy"
    JPS = "jps"
    THETA = "theta"


Solver = Callable[[Grid, Tuple[int, int], Tuple[int, int]], PathResult]


@dataclass(frozen=True)
class AlgorithmInfo:
    name: str
    color: Tuple[int, int, int]
    explorer: bool
    solver: Optional[Solver]


#Race lineup order: explorers first, goal-aware pathfinders after
ALGORITHMS: Mapping[Algorithm, AlgorithmInfo] = MappingProxyType({
    Algorithm.DFS: AlgorithmInfo("DFS", (255, 69, 0), True, dfs_search),
    Algorithm.DIJKSTRA: AlgorithmInfo("Dijkstra", (70, 130, 180), True, dijkstra_search),
    Algorithm.BIDIRECTIONAL: AlgorithmInfo("Bidirectional", (186, 85, 211), True, bidirectional_search),
    Algorithm.SLIME: AlgorithmInfo("Slime", (150, 255, 150), True, None),
    Algorithm.ASTAR: AlgorithmInfo("A*", (50, 205, 50), False, astar_search),
    Algorithm.GREEDY: AlgorithmInfo("Greedy", (255, 20, 147), False, greedy_search),
    Algorithm.JPS: AlgorithmInfo("JPS", (0, 255, 255), False, jps_search),
    Algorithm.THETA: AlgorithmInfo("Theta*", (255, 255, 0), False, theta_star_search),
})

BENCHMARK_ALGORITHMS: Tuple[Algorithm, ...] = tuple(ALGORITHMS)
GOAL_AWARE_ALGORITHMS: Tuple[Algorithm, ...] = (
    Algorithm.ASTAR,
    Algorithm.GREEDY,
    Algorithm.JPS,
    Algorithm.THETA,
)


def algorithm_by_name(name: str) -> Algorithm:
    #accepts enum values ("astar") or display names ("A*"), case-insensitive
    key = name.strip().lower()
    for algorithm, info in ALGORITHMS.items():
        if key in (algorithm.value, info.name.lower()):
            return algorithm
    raise KeyError(f"unknown algorithm {name!r}")


def find_path(grid: Grid, algorithm: Algorithm, start: Tuple[int, int], goal: Tuple[int, int]) -> PathResult:
    solver = ALGORITHMS[algorithm].solver
    if solver is None:
        #slime agents walk natively, found with no route tells the caller so
        return PathResult((), True)
    return solver(grid, start, goal)


def find_path_world(
    grid: Grid,
    algorithm: Algorithm,
    start_x: float,
    start_y: float,
    goal_x: float,
    goal_y: float,
) -> PathResult:
    return find_path(grid, algorithm, grid.world_to_grid(start_x, start_y), grid.world_to_grid(goal_x, goal_y))
