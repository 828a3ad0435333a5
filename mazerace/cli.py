#Command line entry point
#Three modes:
#visual   - pygame lane race on the true maze (SPACE to start)
#solve    - runs every search algorithm on one generated maze and prints the metrics
#doubling - empirical doubling experiment over the true maze levels

#Examples:
#"python -m mazerace --mode solve --maze-type labyrinth --runs 5 --csv-output results.csv"
#"python -m mazerace --mode doubling --trials 3 --csv-output doubling.csv"

from __future__ import annotations

import argparse
import csv
import logging
import random
from typing import List, Optional, Sequence

from .benchmark import BenchmarkTracker, complexity_level_for
from .grid import Grid
from .maze_gen import MazeGenerator, MazeType
from .settings import BenchmarkSettings
from .solvers import ALGORITHMS, GOAL_AWARE_ALGORITHMS, Algorithm, algorithm_by_name, find_path

SOLVE_FIELDS = [
    "run",
    "seed",
    "maze_type",
    "algorithm",
    "found",
    "compute_ms",
    "expanded",
    "path_cells",
    "path_length",
]

DOUBLING_FIELDS = [
    "algorithm",
    "problem_size",
    "time_ms",
    "ratio",
    "estimated_big_o",
]


def build_settings(args) -> BenchmarkSettings:
    return BenchmarkSettings(
        width=args.width,
        height=args.height,
        cell_size=args.cell_size,
        maze_difficulty=args.difficulty,
        agents_per_algorithm=args.agents,
        goal_arrival_radius=args.goal_radius,
        max_claims_per_frame=args.max_claims,
        seed=args.seed,
    )


def selected_algorithms(args, default: Sequence[Algorithm]) -> List[Algorithm]:
    if not args.algorithms:
        return list(default)
    return [algorithm_by_name(name) for name in args.algorithms.split(",") if name.strip()]


def write_csv(path: str, fieldnames: List[str], rows: List[dict]) -> None:
    with open(path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)
    print(f"\nWrote {len(rows)} rows to {path}")


def run_visual_mode(args):
    from .race import Race
    from .visualizer import RaceViewer

    settings = build_settings(args)
    tracker = BenchmarkTracker(settings)
    print(f"Preparing benchmark {settings.width}x{settings.height}px")
    tracker.setup(settings.width, settings.height, settings.agents_per_algorithm, run_doubling=not args.skip_doubling)
    race = Race(tracker)
    race.spawn()
    RaceViewer(tracker, race, fps=args.fps, ticks_per_frame=args.ticks_per_frame).run()


def run_solve_mode(args):
    settings = build_settings(args)
    maze_type = MazeType(args.maze_type)
    algorithms = selected_algorithms(args, [a for a in ALGORITHMS if ALGORITHMS[a].solver is not None])

    rows = []
    for run_idx in range(args.runs):
        seed = args.seed + run_idx if args.seed is not None else random.randint(0, 1_000_000_000)
        seed_desc = seed if args.seed is not None else f"random({seed})"
        rng = random.Random(seed)
        grid = Grid(settings.width, settings.height, settings.cell_size)
        generator = MazeGenerator(grid, rng)

        if maze_type is MazeType.TRUE_MAZE:
            level = args.level or complexity_level_for(settings.maze_difficulty)
            layout = generator.generate_true_maze(level)
            goal = layout.exit_cell
            maze_desc = f"true maze level {level} (N={layout.cell_count})"
        else:
            generator.generate(maze_type, settings.maze_difficulty)
            goal = grid.world_to_grid(settings.width - settings.goal_margin, settings.height / 2.0)
            maze_desc = f"{maze_type.value} difficulty={settings.maze_difficulty:.2f}"
        start = grid.world_to_grid(settings.spawn_margin * 0.5, settings.height / 2.0)

        print(f"\nRun {run_idx + 1}/{args.runs} | {maze_desc} | grid {grid.grid_width}x{grid.grid_height} | seed: {seed_desc} | start={tuple(start)} goal={tuple(goal)}")
        for algorithm in algorithms:
            name = ALGORITHMS[algorithm].name
            result = find_path(grid, algorithm, start, goal)
            found = "yes" if result.found else "no"
            print(f"[{name}] found={found} elapsed={result.compute_time_ms:.3f}ms expanded={result.nodes_expanded} path_cells={len(result.path)} path_len={result.path_length:.2f}")
            rows.append({
                "run": run_idx + 1,
                "seed": seed,
                "maze_type": maze_type.value,
                "algorithm": name,
                "found": result.found,
                "compute_ms": f"{result.compute_time_ms:.6f}",
                "expanded": result.nodes_expanded,
                "path_cells": len(result.path),
                "path_length": f"{result.path_length:.4f}",
            })

    if args.csv_output:
        write_csv(args.csv_output, SOLVE_FIELDS, rows)
    return rows


def run_doubling_mode(args):
    settings = build_settings(args)
    tracker = BenchmarkTracker(settings)
    algorithms = selected_algorithms(args, GOAL_AWARE_ALGORITHMS)
    results = tracker.run_doubling_experiment(levels=args.levels, trials=args.trials, algorithms=algorithms)

    rows = []
    current = None
    for row in results:
        if row.algo_name != current:
            current = row.algo_name
            print(f"\n{current}")
        print(f"  N={row.problem_size:5d} time={row.time_ms:.3f}ms ratio={row.ratio:.2f} est={row.estimated_big_o}")
        rows.append({
            "algorithm": row.algo_name,
            "problem_size": row.problem_size,
            "time_ms": f"{row.time_ms:.6f}",
            "ratio": f"{row.ratio:.4f}",
            "estimated_big_o": row.estimated_big_o,
        })

    if args.csv_output:
        write_csv(args.csv_output, DOUBLING_FIELDS, rows)
    return rows


def prompt_for_mode():
    response = input("Run visualizer? (y/n): ").strip().lower()
    return "visual" if response.startswith("y") else "solve"


def parse_args(argv: Optional[Sequence[str]] = None):
    parser = argparse.ArgumentParser(description="Grid pathfinding race and maze complexity benchmark.")
    parser.add_argument("--mode", choices=["visual", "solve", "doubling"], help="'visual' for the pygame race, 'solve' or 'doubling' for text metrics.")
    parser.add_argument("--width", type=int, default=800, help="Arena width in pixels.")
    parser.add_argument("--height", type=int, default=600, help="Arena height in pixels.")
    parser.add_argument("--cell-size", type=int, default=4, help="Pixels per pathfinding cell.")
    parser.add_argument("--difficulty", type=float, default=0.5, help="Maze difficulty in [0, 1].")
    parser.add_argument("--maze-type", choices=[t.value for t in MazeType], default="true_maze", help="Maze generator used in solve mode.")
    parser.add_argument("--level", type=int, default=None, help="True maze level 1-6 in solve mode (default: from difficulty).")
    parser.add_argument("--algorithms", type=str, default=None, help="Comma separated algorithm names (e.g. 'astar,jps').")
    parser.add_argument("--agents", type=int, default=50, help="Agents per algorithm lane in visual mode.")
    parser.add_argument("--goal-radius", type=float, default=25.0, help="Distance in pixels that counts as arrived.")
    parser.add_argument("--max-claims", type=int, default=1, help="Frontier cells each explorer lane may claim per tick.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for maze generation (default: random).")
    parser.add_argument("--runs", type=int, default=1, help="Number of mazes to generate in solve mode.")
    parser.add_argument("--levels", type=int, default=6, help="Highest true maze level in doubling mode.")
    parser.add_argument("--trials", type=int, default=3, help="Searches averaged per level in doubling mode.")
    parser.add_argument("--fps", type=int, default=30, help="Frames per second in visual mode.")
    parser.add_argument("--ticks-per-frame", type=int, default=1, help="Race ticks simulated per frame in visual mode.")
    parser.add_argument("--skip-doubling", action="store_true", help="Do not run the doubling experiment before the visual race.")
    parser.add_argument("--csv-output", type=str, default=None, help="Path to write CSV metrics.")
    parser.add_argument("--verbose", action="store_true", help="Debug logging.")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    mode = args.mode or prompt_for_mode()
    if mode == "visual":
        run_visual_mode(args)
    elif mode == "doubling":
        run_doubling_mode(args)
    else:
        run_solve_mode(args)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
