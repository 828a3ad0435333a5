import random

import pytest

from mazerace.grid import Grid
from mazerace.maze_gen import MazeGenerator


class FakeClock:
    def __init__(self, start=0.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def empty_grid():
    #100x100 cells
    return Grid(400, 400, 4)


@pytest.fixture
def wall_grid():
    #vertical wall at x=50 with a single gap near the bottom
    grid = Grid(400, 400, 4)
    grid.add_obstacle(50, 0, 1, 90)
    return grid


@pytest.fixture
def true_maze():
    def build(level, seed=7):
        grid = Grid(800, 600, 4)
        generator = MazeGenerator(grid, random.Random(seed))
        layout = generator.generate_true_maze(level)
        return grid, generator, layout

    return build
