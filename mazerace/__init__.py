#Grid pathfinding race and maze complexity benchmark

from .benchmark import AlgorithmStats, BenchmarkPhase, BenchmarkTracker, DoublingResult, estimate_big_o
from .grid import Grid, GridCell, Obstacle
from .maze_gen import TRUE_MAZE_DIMENSIONS, MazeGenerator, MazeType, TrueMazeLayout
from .settings import BenchmarkSettings
from .solvers import ALGORITHMS, GOAL_AWARE_ALGORITHMS, Algorithm, PathResult, find_path, find_path_world

__version__ = "0.1.0"
