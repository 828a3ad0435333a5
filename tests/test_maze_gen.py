import random

import pytest

from mazerace.grid import Grid
from mazerace.maze_gen import (
    TRUE_MAZE_DIMENSIONS,
    TRUE_MAZE_SPAWN_WIDTH,
    MazeGenerator,
    MazeType,
)
from mazerace.solvers import GOAL_AWARE_ALGORITHMS, Algorithm, find_path

LEVELS = sorted(TRUE_MAZE_DIMENSIONS)


def spawn_cell(grid):
    return grid.world_to_grid(25.0, grid.world_height / 2.0)


def test_level_table_roughly_doubles():
    sizes = [TRUE_MAZE_DIMENSIONS[level][0] * TRUE_MAZE_DIMENSIONS[level][1] for level in LEVELS]
    assert sizes == [48, 108, 192, 432, 768, 1728]
    for prev, cur in zip(sizes, sizes[1:]):
        assert 1.7 <= cur / prev <= 2.3


@pytest.mark.parametrize("level", LEVELS)
def test_true_maze_tree_spans_all_cells(level, true_maze):
    _, generator, layout = true_maze(level)
    cells_x, cells_y = TRUE_MAZE_DIMENSIONS[level]
    assert (layout.cells_x, layout.cells_y) == (cells_x, cells_y)
    assert generator.maze_cell_count == cells_x * cells_y
    assert len(layout.tree_edges) == cells_x * cells_y - 1

    #union-find over the backtracker passages
    parent = {(x, y): (x, y) for x in range(cells_x) for y in range(cells_y)}

    def find(c):
        while parent[c] != c:
            parent[c] = parent[parent[c]]
            c = parent[c]
        return c

    for a, b in layout.tree_edges:
        assert abs(a[0] - b[0]) + abs(a[1] - b[1]) == 1
        ra, rb = find(a), find(b)
        assert ra != rb
        parent[ra] = rb
    assert len({find(c) for c in parent}) == 1


@pytest.mark.parametrize("level", LEVELS)
def test_true_maze_entrances_and_loops(level, true_maze):
    _, _, layout = true_maze(level)
    extra = level - 1
    assert len(layout.entrance_rows) == extra
    assert layout.start_cell[1] not in layout.entrance_rows
    assert len(layout.entrance_edges) == (extra + 1) // 2
    assert len(layout.extra_edges) == extra
    assert not set(layout.extra_edges) & set(layout.tree_edges)


@pytest.mark.parametrize("level", LEVELS)
def test_true_maze_is_solvable(level, true_maze):
    grid, generator, layout = true_maze(level)
    start = spawn_cell(grid)
    goal = layout.exit_cell
    assert goal == generator.maze_exit
    assert goal.x == grid.grid_width - 4
    assert grid.is_cell_valid(goal)
    assert generator.flood_fill_check(start, goal)
    astar = find_path(grid, Algorithm.ASTAR, start, goal)
    assert astar.found
    for algorithm in GOAL_AWARE_ALGORITHMS:
        assert find_path(grid, algorithm, start, goal).found == astar.found


def test_true_maze_keeps_spawn_strip_open(true_maze):
    grid, _, _ = true_maze(4)
    for y in range(grid.grid_height):
        for x in range(TRUE_MAZE_SPAWN_WIDTH - 1):
            assert grid.is_valid(x, y)


def test_true_maze_records_cover_blocked_cells(true_maze):
    grid, _, _ = true_maze(3)
    covered = set()
    for obs in grid.obstacles:
        assert obs.height == 1
        for x in range(obs.x, obs.x + obs.width):
            covered.add((x, obs.y))
    blocked = {
        (x, y)
        for y in range(grid.grid_height)
        for x in range(grid.grid_width)
        if grid.is_blocked(x, y)
    }
    assert covered == blocked


def test_true_maze_level_is_clamped():
    grid = Grid(800, 600, 4)
    generator = MazeGenerator(grid, random.Random(1))
    assert generator.generate_true_maze(0).level == 1
    assert generator.generate_true_maze(42).level == 6
    assert generator.last_layout.level == 6


def test_true_maze_is_reproducible():
    a = Grid(800, 600, 4)
    b = Grid(800, 600, 4)
    MazeGenerator(a, random.Random(11)).generate_true_maze(3)
    MazeGenerator(b, random.Random(11)).generate_true_maze(3)
    assert a.blocked == b.blocked


def test_generate_true_maze_maps_difficulty_to_level():
    grid = Grid(800, 600, 4)
    generator = MazeGenerator(grid, random.Random(2))
    generator.generate(MazeType.TRUE_MAZE, 0.0)
    assert generator.last_layout.level == 1
    generator.generate(MazeType.TRUE_MAZE, 1.0)
    assert generator.last_layout.level == 4


@pytest.mark.parametrize("maze_type", [t for t in MazeType if t is not MazeType.TRUE_MAZE])
@pytest.mark.parametrize("difficulty", [0.0, 0.5, 1.0])
def test_template_generators_build_containment(maze_type, difficulty):
    grid = Grid(800, 600, 4)
    generator = MazeGenerator(grid, random.Random(5))
    generator.generate(maze_type, difficulty)
    assert grid.blocked_count() > 0
    assert grid.obstacles
    assert generator.maze_exit is None
    #funnel walls leave the middle third open on both barriers
    left = 8 + 1
    right = grid.grid_width - 8 - 1
    mid = grid.grid_height // 2
    assert grid.is_blocked(left, 0)
    assert grid.is_blocked(right, grid.grid_height - 1)
    assert not grid.is_blocked(left - 2, mid)


@pytest.mark.parametrize("maze_type", list(MazeType))
def test_generators_survive_tiny_grids(maze_type):
    for width, height in [(40, 40), (0, 0), (8, 200)]:
        grid = Grid(width, height, 4)
        MazeGenerator(grid, random.Random(3)).generate(maze_type, 0.7)


def test_generate_rejects_unknown_type():
    generator = MazeGenerator(Grid(100, 100, 4), random.Random(0))
    with pytest.raises(ValueError):
        generator.generate("tunnels", 0.5)


def test_random_obstacles_stay_between_margins():
    grid = Grid(800, 600, 4)
    generator = MazeGenerator(grid, random.Random(9))
    generator.generate_random_obstacles(30, 2, 6, 100, 100)
    assert len(grid.obstacles) == 30
    for obs in grid.obstacles:
        assert obs.x >= 25
        assert obs.x <= grid.grid_width - 25 - 6
        assert 2 <= obs.width <= 6


def test_random_obstacles_skip_narrow_corridor(caplog):
    grid = Grid(100, 100, 4)
    grid.add_obstacle(0, 0, 1, 1)
    generator = MazeGenerator(grid, random.Random(9))
    generator.generate_random_obstacles(10, 2, 4, 40, 40)
    assert grid.obstacles == []
    assert "too narrow" in caplog.text


def test_random_obstacles_can_append():
    grid = Grid(800, 600, 4)
    grid.add_obstacle(0, 0, 1, 1)
    MazeGenerator(grid, random.Random(9)).generate_random_obstacles(3, 2, 4, 100, 100, clear_existing=False)
    assert len(grid.obstacles) == 4


def test_flood_fill_check():
    grid = Grid(80, 80, 4)
    generator = MazeGenerator(grid, random.Random(0))
    assert generator.flood_fill_check((0, 0), (19, 19))
    grid.add_obstacle(10, 0, 1, 20)
    assert not generator.flood_fill_check((0, 0), (19, 19))
    assert not generator.flood_fill_check((10, 5), (19, 19))
