#Occupancy grid shared by the maze generators and the solvers
#The blocked buffer is the authoritative source, obstacle rectangles are only kept for drawing

from __future__ import annotations

from typing import List, NamedTuple, Tuple


class GridCell(NamedTuple):
    x: int
    y: int


class Obstacle(NamedTuple):
    x: int
    y: int
    width: int
    height: int


#N, E, S, W first, diagonals after (the order solvers see neighbors in)
NEIGHBOR_OFFSETS: Tuple[Tuple[int, int], ...] = (
    (0, -1),
    (1, 0),
    (0, 1),
    (-1, 0),
    (1, -1),
    (1, 1),
    (-1, 1),
    (-1, -1),
)


def ceil_div(value: int, size: int) -> int:
    return (value + size - 1) // size


class Grid:

    #World dimensions are pixels, everything else is in cells
    #Any coordinate outside the grid counts as blocked and is never indexed

    def __init__(self, width: int, height: int, cell_size: int = 4):
        if cell_size <= 0:
            raise ValueError(f"cell_size must be positive, got {cell_size}")
        self.cell_size = cell_size
        self.world_width = 0
        self.world_height = 0
        self.grid_width = 0
        self.grid_height = 0
        self.blocked: List[bool] = []
        self.obstacles: List[Obstacle] = []
        self.resize(width, height)

    def resize(self, width: int, height: int) -> None:
        if width < 0 or height < 0:
            raise ValueError(f"world size must be non-negative, got {width}x{height}")
        self.world_width = width
        self.world_height = height
        self.grid_width = ceil_div(width, self.cell_size)
        self.grid_height = ceil_div(height, self.cell_size)
        self.blocked = [False] * (self.grid_width * self.grid_height)
        self.obstacles = []

    def set_cell_size(self, size: int) -> None:
        if size <= 0:
            raise ValueError(f"cell_size must be positive, got {size}")
        self.cell_size = size
        self.resize(self.world_width, self.world_height)

    def copy(self) -> "Grid":
        clone = Grid.__new__(Grid)
        clone.cell_size = self.cell_size
        clone.world_width = self.world_width
        clone.world_height = self.world_height
        clone.grid_width = self.grid_width
        clone.grid_height = self.grid_height
        clone.blocked = list(self.blocked)
        clone.obstacles = list(self.obstacles)
        return clone

    def restore(self, snapshot: "Grid") -> None:
        self.cell_size = snapshot.cell_size
        self.world_width = snapshot.world_width
        self.world_height = snapshot.world_height
        self.grid_width = snapshot.grid_width
        self.grid_height = snapshot.grid_height
        self.blocked = list(snapshot.blocked)
        self.obstacles = list(snapshot.obstacles)

    # Obstacles

    def clear_obstacles(self) -> None:
        self.blocked = [False] * (self.grid_width * self.grid_height)
        self.obstacles = []

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.grid_width and 0 <= y < self.grid_height

    def index(self, x: int, y: int) -> int:
        return y * self.grid_width + x

    def set_blocked(self, x: int, y: int, value: bool = True) -> None:
        if self.in_bounds(x, y):
            self.blocked[self.index(x, y)] = value

    def fill_rect(self, x: int, y: int, width: int, height: int, value: bool = True) -> None:
        #Raw buffer write, sub-cells outside the grid are skipped
        x0 = max(0, x)
        y0 = max(0, y)
        x1 = min(self.grid_width, x + width)
        y1 = min(self.grid_height, y + height)
        if x1 <= x0 or y1 <= y0:
            return
        row = [value] * (x1 - x0)
        for gy in range(y0, y1):
            start = gy * self.grid_width
            self.blocked[start + x0:start + x1] = row

    def add_obstacle(self, x: int, y: int, width: int, height: int) -> None:
        self.obstacles.append(Obstacle(x, y, width, height))
        self.fill_rect(x, y, width, height, True)

    def add_obstacle_rect(self, obstacle: Obstacle) -> None:
        self.add_obstacle(obstacle.x, obstacle.y, obstacle.width, obstacle.height)

    def blocked_count(self) -> int:
        return sum(self.blocked)

    # Queries

    def is_blocked(self, x: int, y: int) -> bool:
        if not self.in_bounds(x, y):
            return True
        return self.blocked[self.index(x, y)]

    def is_valid(self, x: int, y: int) -> bool:
        return self.in_bounds(x, y) and not self.blocked[y * self.grid_width + x]

    def is_cell_valid(self, cell: Tuple[int, int]) -> bool:
        return self.is_valid(cell[0], cell[1])

    def world_to_grid(self, world_x: float, world_y: float) -> GridCell:
        return GridCell(int(world_x // self.cell_size), int(world_y // self.cell_size))

    def grid_to_world(self, x: int, y: int) -> Tuple[float, float]:
        return (x + 0.5) * self.cell_size, (y + 0.5) * self.cell_size

    def neighbors(self, cell: Tuple[int, int], allow_diagonal: bool = True) -> List[GridCell]:
        #Diagonals need both adjacent cardinals open so paths never cut a blocked corner
        x, y = cell
        count = 8 if allow_diagonal else 4
        result = []
        for i in range(count):
            dx, dy = NEIGHBOR_OFFSETS[i]
            nx, ny = x + dx, y + dy
            if not self.is_valid(nx, ny):
                continue
            if i >= 4 and not (self.is_valid(nx, y) and self.is_valid(x, ny)):
                continue
            result.append(GridCell(nx, ny))
        return result

    def line_of_sight(self, a: Tuple[int, int], b: Tuple[int, int]) -> bool:
        #Bresenham walk from a to b, fails on the first blocked cell crossed
        x0, y0 = a
        x1, y1 = b
        dx = abs(x1 - x0)
        dy = abs(y1 - y0)
        sx = 1 if x0 < x1 else -1
        sy = 1 if y0 < y1 else -1
        err = dx - dy
        while True:
            if self.is_blocked(x0, y0):
                return False
            if x0 == x1 and y0 == y1:
                return True
            e2 = 2 * err
            if e2 > -dy:
                err -= dy
                x0 += sx
            if e2 < dx:
                err += dx
                y0 += sy

    def __repr__(self) -> str:
        return (
            f"Grid({self.world_width}x{self.world_height}px, cell={self.cell_size}, "
            f"cells={self.grid_width}x{self.grid_height})"
        )
