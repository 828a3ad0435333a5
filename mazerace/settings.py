#Read-only configuration consumed by the benchmark core

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class BenchmarkSettings:
    width: int = 800
    height: int = 600
    cell_size: int = 4
    maze_difficulty: float = 0.5
    agents_per_algorithm: int = 50
    goal_arrival_radius: float = 25.0
    spawn_margin: float = 50.0
    goal_margin: float = 50.0
    max_claims_per_frame: int = 1
    seed: Optional[int] = None

    def __post_init__(self):
        if self.cell_size <= 0:
            raise ValueError(f"cell_size must be positive, got {self.cell_size}")
        if self.width < 0 or self.height < 0:
            raise ValueError(f"arena size must be non-negative, got {self.width}x{self.height}")
        if self.agents_per_algorithm < 0:
            raise ValueError(f"agents_per_algorithm must be non-negative, got {self.agents_per_algorithm}")
        if self.max_claims_per_frame < 1:
            raise ValueError(f"max_claims_per_frame must be at least 1, got {self.max_claims_per_frame}")
        self.maze_difficulty = min(max(self.maze_difficulty, 0.0), 1.0)
