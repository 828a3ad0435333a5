#Procedural maze layouts written straight into a Grid's occupancy buffer
#Every mode except the true maze shares the same containment template:
#top and bottom walls plus two funnel walls with a gap between 1/3 and 2/3 height
#The true maze is the controlled-size family used by the doubling experiment

from __future__ import annotations

import logging
import math
import random
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, NamedTuple, Optional, Set, Tuple

from .grid import Grid, GridCell, Obstacle

log = logging.getLogger(__name__)


class MazeType(Enum):
    SIMPLE = "simple"
    LABYRINTH = "labyrinth"
    MULTIPATH = "multipath"
    BOTTLENECK = "bottleneck"
    SPIRAL = "spiral"
    CHAMBERS = "chambers"
    TRUE_MAZE = "true_maze"


#level -> (cells_x, cells_y), roughly doubling the cell count every level
#(exact doubling would shrink corridors below a navigable width)
TRUE_MAZE_DIMENSIONS: Dict[int, Tuple[int, int]] = {
    1: (8, 6),
    2: (12, 9),
    3: (16, 12),
    4: (24, 18),
    5: (32, 24),
    6: (48, 36),
}

SPAWN_SAFE_ZONE = 8
GOAL_SAFE_ZONE = 8
CONTAINMENT_THICKNESS = 3
TRUE_MAZE_SPAWN_WIDTH = 10
TRUE_MAZE_GOAL_WIDTH = 8
TRUE_MAZE_WALL = 1

MazeEdge = Tuple[Tuple[int, int], Tuple[int, int]]


def norm_edge(a: Tuple[int, int], b: Tuple[int, int]) -> MazeEdge:
    return (a, b) if a <= b else (b, a)


class Bounds(NamedTuple):
    barrier_left: int
    barrier_right: int
    maze_top: int
    maze_bottom: int

    @property
    def width(self) -> int:
        return self.barrier_right - self.barrier_left

    @property
    def height(self) -> int:
        return self.maze_bottom - self.maze_top


@dataclass
class TrueMazeLayout:
    level: int
    cells_x: int
    cells_y: int
    tree_edges: List[MazeEdge] = field(default_factory=list)
    entrance_rows: List[int] = field(default_factory=list)
    entrance_edges: List[MazeEdge] = field(default_factory=list)
    extra_edges: List[MazeEdge] = field(default_factory=list)
    exit_cell: Optional[GridCell] = None

    @property
    def cell_count(self) -> int:
        return self.cells_x * self.cells_y

    @property
    def start_cell(self) -> Tuple[int, int]:
        return 0, self.cells_y // 2


class MazeGenerator:

    def __init__(self, grid: Grid, rng: Optional[random.Random] = None):
        self.grid = grid
        self.rng = rng or random.Random()
        self.maze_cell_count = 0
        self.maze_exit: Optional[GridCell] = None
        self.last_layout: Optional[TrueMazeLayout] = None

    # Random helpers
    #Small grids make several of the ranges below empty, those collapse to the low end

    def _mod(self, n: int) -> int:
        return self.rng.randrange(n) if n > 0 else 0

    def _between(self, low: int, high: int) -> int:
        return self.rng.randint(low, high) if high >= low else low

    # Drawing helpers

    def _block(self, x0: int, y0: int, x1: int, y1: int) -> None:
        self.grid.fill_rect(x0, y0, x1 - x0, y1 - y0, True)

    def _clear(self, x0: int, y0: int, x1: int, y1: int) -> None:
        self.grid.fill_rect(x0, y0, x1 - x0, y1 - y0, False)

    def _record(self, x: int, y: int, width: int, height: int) -> None:
        self.grid.obstacles.append(Obstacle(x, y, width, height))

    def _containment(self, spawn_margin: int, goal_margin: int) -> Bounds:
        grid = self.grid
        gw, gh = grid.grid_width, grid.grid_height
        left = spawn_margin + 1
        right = gw - goal_margin - 1
        gap_start = gh // 3
        gap_end = gh * 2 // 3
        t = CONTAINMENT_THICKNESS

        if right > left:
            grid.add_obstacle(left, 0, right - left, t)
            grid.add_obstacle(left, gh - t, right - left, t)
        for x in (left, right):
            grid.add_obstacle(x, 0, 1, gap_start)
            grid.add_obstacle(x, gap_end, 1, gh - gap_end)
        return Bounds(left, right, t + 2, gh - t - 2)

    def _horizontal_gapped_barriers(self, bounds: Bounds, count: int, min_gaps: int, gap_choices: int) -> None:
        #Full-width barriers pierced by a few gaps, one gap per equal section
        gh = self.grid.grid_height
        left, right = bounds.barrier_left, bounds.barrier_right
        spacing = (bounds.maze_bottom - bounds.maze_top - 10) // (count + 1)
        if spacing <= 0 or right <= left:
            log.warning("grid too small for horizontal barriers (%dx%d cells)", self.grid.grid_width, gh)
            return

        for i in range(1, count + 1):
            barrier_y = bounds.maze_top + 5 + i * spacing
            num_gaps = min_gaps + self._mod(gap_choices)
            section = (right - left) // num_gaps
            gaps = []
            for g in range(num_gaps):
                gap_width = 6 + self._mod(5)
                gap_start = left + g * section + self._mod(max(1, section - gap_width))
                gaps.append((gap_start, gap_start + gap_width))

            thickness = 1 + self._mod(2)
            for t in range(thickness):
                y = barrier_y + t
                if y >= gh - 2:
                    continue
                for x in range(left, right):
                    if any(start <= x < end for start, end in gaps):
                        continue
                    self.grid.set_blocked(x, y)

            seg_start = left
            for start, end in gaps:
                if start > seg_start:
                    self._record(seg_start, barrier_y, start - seg_start, thickness)
                seg_start = end
            if seg_start < right:
                self._record(seg_start, barrier_y, right - seg_start, thickness)

    # Public entry points

    def generate(self, maze_type: MazeType, difficulty: float) -> None:
        if maze_type is MazeType.SIMPLE:
            self.generate_simple(difficulty)
        elif maze_type is MazeType.LABYRINTH:
            self.generate_labyrinth(SPAWN_SAFE_ZONE, GOAL_SAFE_ZONE, difficulty)
        elif maze_type is MazeType.MULTIPATH:
            self.generate_multipath(SPAWN_SAFE_ZONE, GOAL_SAFE_ZONE, difficulty)
        elif maze_type is MazeType.BOTTLENECK:
            self.generate_bottleneck(SPAWN_SAFE_ZONE, GOAL_SAFE_ZONE, difficulty)
        elif maze_type is MazeType.SPIRAL:
            self.generate_spiral(SPAWN_SAFE_ZONE, GOAL_SAFE_ZONE, difficulty)
        elif maze_type is MazeType.CHAMBERS:
            self.generate_chambers(SPAWN_SAFE_ZONE, GOAL_SAFE_ZONE, difficulty)
        elif maze_type is MazeType.TRUE_MAZE:
            self.generate_true_maze(1 + int(difficulty * 3))
        else:
            raise ValueError(f"unknown maze type {maze_type!r}")

    def generate_random_obstacles(
        self,
        count: int,
        min_size: int,
        max_size: int,
        margin_left: int,
        margin_right: int,
        clear_existing: bool = True,
    ) -> None:
        #Margins are in pixels, obstacles stay inside the corridor between them
        grid = self.grid
        if clear_existing:
            grid.clear_obstacles()

        safe_left = margin_left // grid.cell_size
        safe_right = grid.grid_width - margin_right // grid.cell_size
        if safe_right <= safe_left + 10:
            log.warning("safe corridor too narrow for obstacles (%d..%d)", safe_left, safe_right)
            return

        for _ in range(count):
            ox = self._between(safe_left, safe_right - max_size)
            oy = self._between(2, grid.grid_height - max_size - 2)
            ow = self._between(min_size, max_size)
            oh = self._between(min_size, max_size)
            grid.add_obstacle(ox, oy, ow, oh)

    def generate_simple(self, density: float) -> None:
        grid = self.grid
        grid.clear_obstacles()
        self.maze_exit = None
        bounds = self._containment(SPAWN_SAFE_ZONE, GOAL_SAFE_ZONE)
        left, right = bounds.barrier_left, bounds.barrier_right
        top, bottom = bounds.maze_top, bounds.maze_bottom

        self._horizontal_gapped_barriers(bounds, 5 + int(density * 3), 2, 2)

        #vertical obstacles for winding channels
        for _ in range(6 + int(density * 6)):
            if self.rng.random() >= density:
                continue
            vx = left + 5 + self._mod(max(1, right - left - 10))
            start_y = top + 2 + self._mod(15)
            height = 10 + self._mod(20)
            thickness = 1 + self._mod(2)
            end_y = min(start_y + height, bottom - 2)
            for t in range(thickness):
                x = vx + t
                if x >= right:
                    continue
                self._block(x, start_y, x + 1, end_y)
            self._record(vx, start_y, thickness, min(height, bottom - 2 - start_y))

        #short wall segments
        for x in range(left + 5, right - 5, 12):
            if self.rng.random() >= density * 0.5:
                continue
            for _ in range(1 + self._mod(3)):
                seg_y = self._between(top + 3, bottom - 8)
                seg_height = 3 + self._mod(6)
                offset = self._mod(3) - 1
                actual_x = min(max(x + offset, left + 1), right - 2)
                self._block(actual_x, seg_y, actual_x + 1, min(seg_y + seg_height, bottom - 1))
                self._record(actual_x, seg_y, 1, min(seg_height, bottom - 1 - seg_y))

        #scattered blocks
        for _ in range(int(density * 12)):
            bx = self._between(left + 3, right - 6)
            by = self._between(top + 2, bottom - 6)
            bw = self._between(2, 5)
            bh = self._between(2, 5)
            self._block(bx, by, min(bx + bw, right), min(by + bh, bottom))
            self._record(bx, by, bw, bh)

        log.info("simple maze: density=%.2f blocked=%d", density, grid.blocked_count())

    def generate_labyrinth(self, spawn_margin: int, goal_margin: int, difficulty: float) -> None:
        grid = self.grid
        grid.clear_obstacles()
        self.maze_exit = None
        bounds = self._containment(spawn_margin, goal_margin)

        cell = 6
        wall = 2
        cells_x = bounds.width // cell
        cells_y = bounds.height // cell
        if cells_x < 1 or cells_y < 1:
            log.warning("grid too small for a labyrinth (%dx%d cells)", grid.grid_width, grid.grid_height)
            return

        #h_walls[x][y] sits above row y, v_walls[x][y] sits left of column x
        h_walls = [[True] * (cells_y + 1) for _ in range(cells_x)]
        v_walls = [[True] * cells_y for _ in range(cells_x + 1)]
        visited = [[False] * cells_y for _ in range(cells_x)]

        #right, down, left, up
        steps = ((1, 0), (0, 1), (-1, 0), (0, -1))
        start = (0, cells_y // 2)
        visited[start[0]][start[1]] = True
        stack = [start]
        while stack:
            cx, cy = stack[-1]
            options = [
                d for d, (dx, dy) in enumerate(steps)
                if 0 <= cx + dx < cells_x and 0 <= cy + dy < cells_y and not visited[cx + dx][cy + dy]
            ]
            if not options:
                stack.pop()
                continue
            d = self.rng.choice(options)
            dx, dy = steps[d]
            if d == 0:
                v_walls[cx + 1][cy] = False
            elif d == 1:
                h_walls[cx][cy + 1] = False
            elif d == 2:
                v_walls[cx][cy] = False
            else:
                h_walls[cx][cy] = False
            visited[cx + dx][cy + dy] = True
            stack.append((cx + dx, cy + dy))

        v_walls[0][cells_y // 2] = False
        v_walls[cells_x][cells_y // 2] = False

        #loops: easier levels knock out more walls
        for _ in range(int((1.0 - difficulty) * cells_x * cells_y * 0.2)):
            if self._mod(2) == 0 and cells_x > 1:
                v_walls[1 + self._mod(cells_x - 1)][self._mod(cells_y)] = False
            elif cells_y > 1:
                h_walls[self._mod(cells_x)][1 + self._mod(cells_y - 1)] = False

        for cx in range(cells_x):
            for wy in range(cells_y + 1):
                if h_walls[cx][wy]:
                    grid.add_obstacle(bounds.barrier_left + cx * cell, bounds.maze_top + wy * cell - wall // 2, cell, wall)
        for wx in range(cells_x + 1):
            for cy in range(cells_y):
                if v_walls[wx][cy]:
                    grid.add_obstacle(bounds.barrier_left + wx * cell - wall // 2, bounds.maze_top + cy * cell, wall, cell)

        log.info("labyrinth: %dx%d cells difficulty=%.2f", cells_x, cells_y, difficulty)

    def generate_multipath(self, spawn_margin: int, goal_margin: int, difficulty: float) -> None:
        grid = self.grid
        grid.clear_obstacles()
        self.maze_exit = None
        bounds = self._containment(spawn_margin, goal_margin)
        left, right = bounds.barrier_left, bounds.barrier_right

        self._horizontal_gapped_barriers(bounds, 6 + int(difficulty * 4), 3, 3)

        wall = 2
        for _ in range(8 + int(difficulty * 6)):
            wall_x = left + 10 + self._mod(right - left - 20)
            wall_h = 15 + self._mod(25)
            wall_y = bounds.maze_top + self._mod(bounds.height - wall_h)
            grid.add_obstacle(wall_x, wall_y, wall, wall_h)

        log.info("multipath maze: difficulty=%.2f blocked=%d", difficulty, grid.blocked_count())

    def generate_bottleneck(self, spawn_margin: int, goal_margin: int, difficulty: float) -> None:
        grid = self.grid
        grid.clear_obstacles()
        self.maze_exit = None
        bounds = self._containment(spawn_margin, goal_margin)
        left, right = bounds.barrier_left, bounds.barrier_right
        top, bottom = bounds.maze_top, bounds.maze_bottom

        #vertical walls, fewer and narrower gaps as difficulty rises
        count = 3 + int(difficulty * 3)
        spacing = (right - left) // (count + 1)
        num_gaps = max(1, 3 - int(difficulty * 2))
        gap_size = max(4, 10 - int(difficulty * 5))
        gap_spacing = (bottom - top) // (num_gaps + 1)
        thickness = 3
        for bn in range(count):
            wall_x = left + (bn + 1) * spacing
            seg_start = top
            for g in range(num_gaps):
                center = top + (g + 1) * gap_spacing
                gap_top, gap_bottom = center - gap_size // 2, center + gap_size // 2
                if gap_top - seg_start > 2:
                    grid.add_obstacle(wall_x, seg_start, thickness, gap_top - seg_start)
                seg_start = gap_bottom
            if bottom - seg_start > 2:
                grid.add_obstacle(wall_x, seg_start, thickness, bottom - seg_start)

        for _ in range(2 + int(difficulty * 4)):
            hx = left + 10 + self._mod(bounds.width - 20)
            hy = top + 5 + self._mod(bounds.height - 10)
            hw = 15 + self._mod(25)
            if hx + hw > right - 5:
                hw = right - 5 - hx
            self._block(hx, hy, hx + hw, hy + 2)
            if hw > 5:
                self._record(hx, hy, hw, 2)

        for _ in range(8 + int(difficulty * 8)):
            bx = left + 5 + self._mod(bounds.width - 10)
            by = top + 3 + self._mod(bounds.height - 6)
            grid.add_obstacle(bx, by, 2 + self._mod(4), 2 + self._mod(4))

        log.info("bottleneck maze: %d walls, %d gaps of %d", count, num_gaps, gap_size)

    def generate_spiral(self, spawn_margin: int, goal_margin: int, difficulty: float) -> None:
        #Starts open and adds wall material along spiral arms instead of carving
        grid = self.grid
        grid.clear_obstacles()
        self.maze_exit = None
        bounds = self._containment(spawn_margin, goal_margin)
        left, top, bottom = bounds.barrier_left, bounds.maze_top, bounds.maze_bottom
        right = left + bounds.width
        if bounds.width <= 0 or bounds.height <= 0:
            log.warning("grid too small for a spiral (%dx%d cells)", grid.grid_width, grid.grid_height)
            return

        cx = left + bounds.width // 2
        cy = top + bounds.height // 2
        max_radius = min(bounds.width, bounds.height) / 2.0 - 5
        two_pi = 2.0 * math.pi

        def stamp(px: int, py: int, size: int) -> None:
            for dy in range(size):
                for dx in range(size):
                    tx, ty = px + dx, py + dy
                    if left <= tx < right and top <= ty < bottom:
                        grid.set_blocked(tx, ty)

        arms = 2 + int(difficulty * 2)
        for arm in range(arms):
            start_angle = arm * (two_pi / arms)
            angle = start_angle
            radius = 8.0
            gap_angle = start_angle + math.pi * (0.3 + self._mod(100) / 200.0)
            while radius < max_radius:
                if math.fmod(abs(angle - gap_angle), two_pi) > 0.3 or radius < 15:
                    stamp(cx + int(radius * math.cos(angle)), cy + int(radius * math.sin(angle)), 2)
                angle += 0.08
                radius += 0.12

        #rendering records from a 4x4 chunk scan of the arms
        for y in range(top, bottom, 4):
            for x in range(left, right, 4):
                if not grid.is_blocked(x, y):
                    continue
                w = h = 1
                while x + w < right and w < 4 and grid.is_blocked(x + w, y):
                    w += 1
                while y + h < bottom and h < 4 and grid.is_blocked(x, y + h):
                    h += 1
                self._record(x, y, w, h)

        #radial spokes
        for _ in range(3 + int(difficulty * 3)):
            r_angle = math.radians(self._mod(360))
            r_start = 12 + self._mod(15)
            r_end = r_start + 15 + self._mod(20)
            rad = float(r_start)
            while rad < r_end and rad < max_radius:
                stamp(cx + int(rad * math.cos(r_angle)), cy + int(rad * math.sin(r_angle)), 2)
                rad += 1.0
            self._record(
                cx + int(r_start * math.cos(r_angle)),
                cy + int(r_start * math.sin(r_angle)),
                2,
                r_end - r_start,
            )

        log.info("spiral maze: %d arms difficulty=%.2f", arms, difficulty)

    def generate_chambers(self, spawn_margin: int, goal_margin: int, difficulty: float) -> None:
        grid = self.grid
        grid.clear_obstacles()
        self.maze_exit = None
        bounds = self._containment(spawn_margin, goal_margin)
        left, top = bounds.barrier_left, bounds.maze_top

        cols = 3 + int(difficulty * 2)
        rows = 2 + int(difficulty)
        chamber_w = bounds.width // cols
        chamber_h = bounds.height // rows
        wall = 2
        if chamber_w <= 0 or chamber_h <= 0:
            log.warning("grid too small for chambers (%dx%d cells)", grid.grid_width, grid.grid_height)
            return

        #one gap per chamber edge
        for row in range(1, rows):
            wall_y = top + row * chamber_h
            for col in range(cols):
                seg_left = left + col * chamber_w
                seg_right = seg_left + chamber_w
                gap_x = seg_left + chamber_w // 4 + self._mod(chamber_w // 2)
                gap_end = gap_x + 6 + self._mod(6)
                if gap_x - seg_left > 3:
                    grid.add_obstacle(seg_left, wall_y, gap_x - seg_left, wall)
                if seg_right - gap_end > 3:
                    grid.add_obstacle(gap_end, wall_y, seg_right - gap_end, wall)

        for col in range(1, cols):
            wall_x = left + col * chamber_w
            for row in range(rows):
                seg_top = top + row * chamber_h
                seg_bottom = seg_top + chamber_h
                gap_y = seg_top + chamber_h // 4 + self._mod(chamber_h // 2)
                gap_end = gap_y + 6 + self._mod(6)
                if gap_y - seg_top > 3:
                    grid.add_obstacle(wall_x, seg_top, wall, gap_y - seg_top)
                if seg_bottom - gap_end > 3:
                    grid.add_obstacle(wall_x, gap_end, wall, seg_bottom - gap_end)

        for _ in range(int(difficulty * 15)):
            ox = left + 5 + self._mod(bounds.width - 10)
            oy = top + 5 + self._mod(bounds.height - 10)
            grid.add_obstacle(ox, oy, 3 + self._mod(5), 3 + self._mod(5))

        log.info("chambers maze: %dx%d chambers", cols, rows)

    # True maze

    def generate_true_maze(self, level: int) -> TrueMazeLayout:
        grid = self.grid
        grid.clear_obstacles()
        level = min(max(level, 1), 6)
        cells_x, cells_y = TRUE_MAZE_DIMENSIONS[level]
        layout = TrueMazeLayout(level, cells_x, cells_y)
        self.maze_cell_count = layout.cell_count

        gw, gh = grid.grid_width, grid.grid_height
        spawn_width = TRUE_MAZE_SPAWN_WIDTH
        wall = TRUE_MAZE_WALL
        maze_left = spawn_width
        maze_width = gw - TRUE_MAZE_GOAL_WIDTH - maze_left
        maze_height = gh

        #blanket block, carving only ever clears corridors afterwards
        self._block(spawn_width, 0, gw, gh)

        def bounds(cx: int, cy: int) -> Tuple[int, int, int, int]:
            #proportional split so the cells tile the area exactly
            return (
                maze_left + cx * maze_width // cells_x,
                cy * maze_height // cells_y,
                maze_left + (cx + 1) * maze_width // cells_x,
                (cy + 1) * maze_height // cells_y,
            )

        def carve_cell(cx: int, cy: int) -> None:
            bx1, by1, bx2, by2 = bounds(cx, cy)
            x1, y1 = bx1 + wall, by1 + wall
            x2, y2 = max(bx2 - wall, x1 + 1), max(by2 - wall, y1 + 1)
            self._clear(x1, y1, x2, y2)

        def carve_passage(a: Tuple[int, int], b: Tuple[int, int]) -> None:
            a_x1, a_y1, a_x2, a_y2 = bounds(*a)
            b_x1, b_y1, b_x2, b_y2 = bounds(*b)
            ox1, ox2 = max(a_x1, b_x1), min(a_x2, b_x2)
            oy1, oy2 = max(a_y1, b_y1), min(a_y2, b_y2)
            if a[0] != b[0]:
                ox1, ox2 = min(a_x2, b_x2) - 2, max(a_x1, b_x1) + 2
            else:
                oy1, oy2 = min(a_y2, b_y2) - 2, max(a_y1, b_y1) + 2
            x1, x2 = ox1 + wall, ox2 - wall
            y1, y2 = oy1 + wall, oy2 - wall
            if x2 <= x1:
                x1, x2 = ox1, ox2
            if y2 <= y1:
                y1, y2 = oy1, oy2
            self._clear(x1, y1, x2, y2)

        def open_spawn_side(row: int) -> None:
            bx1, by1, _, by2 = bounds(0, row)
            y1 = by1 + wall
            y2 = max(by2 - wall, y1 + 1)
            self._clear(spawn_width - 1, y1, bx1 + wall, y2)

        passages: Set[MazeEdge] = set()
        visited = [[False] * cells_y for _ in range(cells_x)]
        start = layout.start_cell
        visited[start[0]][start[1]] = True
        carve_cell(*start)
        open_spawn_side(start[1])

        stack = [start]
        while stack:
            cx, cy = stack[-1]
            options = [
                (cx + dx, cy + dy)
                for dx, dy in ((0, 1), (0, -1), (1, 0), (-1, 0))
                if 0 <= cx + dx < cells_x and 0 <= cy + dy < cells_y and not visited[cx + dx][cy + dy]
            ]
            if not options:
                stack.pop()
                continue
            nxt = self.rng.choice(options)
            visited[nxt[0]][nxt[1]] = True
            stack.append(nxt)
            carve_cell(*nxt)
            carve_passage((cx, cy), nxt)
            edge = norm_edge((cx, cy), nxt)
            passages.add(edge)
            layout.tree_edges.append(edge)

        #extra entrances alternate between connected ("good") and dead-end stubs
        extra = level - 1
        if extra > 0:
            rows = [r for r in range(cells_y) if r != start[1]]
            self.rng.shuffle(rows)
            for made, row in enumerate(rows[:extra]):
                open_spawn_side(row)
                layout.entrance_rows.append(row)
                if made % 2 == 0 and cells_x > 1:
                    carve_passage((0, row), (1, row))
                    edge = norm_edge((0, row), (1, row))
                    passages.add(edge)
                    layout.entrance_edges.append(edge)

        #extra passages break the perfect maze into one with level-1 loops
        if extra > 0:
            walls: List[MazeEdge] = []
            for y in range(cells_y):
                for x in range(cells_x - 1):
                    edge = norm_edge((x, y), (x + 1, y))
                    if edge not in passages:
                        walls.append(edge)
            for x in range(cells_x):
                for y in range(cells_y - 1):
                    edge = norm_edge((x, y), (x, y + 1))
                    if edge not in passages:
                        walls.append(edge)
            log.debug("true maze: %d intact walls", len(walls))
            self.rng.shuffle(walls)
            for edge in walls[:extra]:
                carve_passage(*edge)
                passages.add(edge)
                layout.extra_edges.append(edge)

        end = (cells_x - 1, cells_y // 2)
        _, by1, bx2, by2 = bounds(*end)
        self._clear(bx2 - wall, by1 + wall, gw, by2 - wall)
        self.maze_exit = GridCell(gw - TRUE_MAZE_GOAL_WIDTH // 2, (by1 + by2) // 2)
        layout.exit_cell = self.maze_exit

        #row run-length encoding for the renderer
        for y in range(gh):
            run_start = -1
            for x in range(gw + 1):
                blocked = x < gw and grid.is_blocked(x, y)
                if blocked and run_start < 0:
                    run_start = x
                elif not blocked and run_start >= 0:
                    self._record(run_start, y, x - run_start, 1)
                    run_start = -1

        self.last_layout = layout
        log.info(
            "true maze level %d: %dx%d = %d cells, %d loops added",
            level, cells_x, cells_y, layout.cell_count, len(layout.extra_edges),
        )
        return layout

    # Debug helpers

    def flood_fill_check(self, start: Tuple[int, int], goal: Tuple[int, int]) -> bool:
        #4-connected reachability only, nothing relies on it outside debugging
        grid = self.grid
        if not grid.is_cell_valid(start):
            return False
        seen = {tuple(start)}
        queue = deque([tuple(start)])
        goal = tuple(goal)
        while queue:
            x, y = queue.popleft()
            if (x, y) == goal:
                return True
            for dx, dy in ((0, 1), (1, 0), (0, -1), (-1, 0)):
                nxt = (x + dx, y + dy)
                if nxt not in seen and grid.is_valid(*nxt):
                    seen.add(nxt)
                    queue.append(nxt)
        log.debug("flood fill: %s unreachable from %s", goal, start)
        return False
