from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum


class SearchStrategy(str, Enum):
    BFS = "bfs"
    DIJKSTRA = "dijkstra"
    ASTAR = "astar"


@dataclass(frozen=True)
class SamplingConfig:
    """Caller-supplied trace bounds.

    ``frontier_sample_size=None`` keeps the whole frontier in every step; together
    with ``record_every=1`` that records the full, unsampled trace.
    """

    record_every: int = 1
    frontier_sample_size: int | None = 50
    max_path_points: int = 20_000
    max_steps: int = 1500
    max_step_node_ids: int = 40_000
    max_visited_order: int = 20_000

    def __post_init__(self) -> None:
        if int(self.record_every) < 1:
            raise ValueError("record_every must be >= 1")
        if self.frontier_sample_size is not None and int(self.frontier_sample_size) < 0:
            raise ValueError("frontier_sample_size must be >= 0")
        for name in ("max_path_points", "max_steps", "max_step_node_ids", "max_visited_order"):
            if int(getattr(self, name)) < 0:
                raise ValueError(f"{name} must be >= 0")


@dataclass(frozen=True)
class SearchStep:
    current: str
    frontier_sample: tuple[str, ...]
    visited_count: int
    expanded: tuple[str, ...]


@dataclass(frozen=True)
class PathResult:
    path: tuple[str, ...]
    steps: tuple[SearchStep, ...]
    visited_order: tuple[str, ...]
    distance: float

    @property
    def found(self) -> bool:
        return bool(self.path)

    @classmethod
    def no_path(cls, *, steps: tuple[SearchStep, ...] = (), visited_order: tuple[str, ...] = ()) -> PathResult:
        return cls(path=(), steps=steps, visited_order=visited_order, distance=math.inf)


@dataclass(frozen=True)
class FallbackSearchResult:
    result: PathResult
    fallback_used: bool
