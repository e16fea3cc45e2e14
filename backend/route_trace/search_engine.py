from __future__ import annotations

import heapq
import math
from collections import deque
from collections.abc import Callable, Iterable
from itertools import islice

from .geo import haversine_m
from .graph_errors import EmptyGraphError
from .graph_model import GraphModel
from .path_reconstruction import reconstruct_path
from .search_models import PathResult, SamplingConfig, SearchStep, SearchStrategy

# (priority, insertion_seq, node_index, cost_from_start)
FrontierEntry = tuple[float, int, int, float]
Heuristic = Callable[[int], float]


class _StepRecorder:
    """Shared instrumentation: counts finalizations and emits sampled steps."""

    def __init__(self, graph: GraphModel, sampling: SamplingConfig, goal: int) -> None:
        self._node_ids = graph.node_ids
        self._record_every = max(1, int(sampling.record_every))
        self.sample_limit = (
            None if sampling.frontier_sample_size is None else max(0, int(sampling.frontier_sample_size))
        )
        self._goal = goal
        self.processed = 0
        self.steps: list[SearchStep] = []

    def finalize(self, node: int) -> bool:
        self.processed += 1
        return self.processed % self._record_every == 0 or node == self._goal

    def record(self, current: int, frontier: Iterable[int], expanded: list[int]) -> None:
        ids = self._node_ids
        self.steps.append(
            SearchStep(
                current=ids[current],
                frontier_sample=tuple(ids[idx] for idx in frontier),
                visited_count=self.processed,
                expanded=tuple(ids[idx] for idx in expanded),
            )
        )


def _bfs(
    graph: GraphModel,
    start: int,
    goal: int,
    recorder: _StepRecorder,
) -> tuple[dict[int, int], list[int]]:
    adjacency = graph.adjacency
    queue: deque[int] = deque([start])
    discovered = bytearray(graph.node_count)
    discovered[start] = 1
    visited_order = [start]
    predecessors: dict[int, int] = {}
    limit = recorder.sample_limit

    while queue:
        current = queue.popleft()
        due = recorder.finalize(current)
        if current == goal:
            recorder.record(current, islice(queue, limit), [])
            break
        expanded: list[int] = []
        for nxt, _weight in adjacency[current]:
            if discovered[nxt]:
                continue
            discovered[nxt] = 1
            visited_order.append(nxt)
            predecessors[nxt] = current
            queue.append(nxt)
            expanded.append(nxt)
        if due:
            recorder.record(current, islice(queue, limit), expanded)
    return predecessors, visited_order


def _frontier_sample(
    heap: list[FrontierEntry],
    best_cost: list[float],
    finalized: bytearray,
    limit: int | None,
) -> list[int]:
    """Live frontier nodes in ``(priority, seq)`` order.

    Stale heap entries (finalized, or superseded by a cheaper push) are skipped.
    With a limit the heap is walked from the root through a small side heap of
    positions, so only about ``limit`` entries plus the stale ones are touched.
    """
    if limit is None:
        live = (entry for entry in heap if not finalized[entry[2]] and entry[3] == best_cost[entry[2]])
        return [entry[2] for entry in sorted(live)]

    out: list[int] = []
    size = len(heap)
    if limit == 0 or size == 0:
        return out
    pending: list[tuple[FrontierEntry, int]] = [(heap[0], 0)]
    while pending and len(out) < limit:
        entry, pos = heapq.heappop(pending)
        node = entry[2]
        if not finalized[node] and entry[3] == best_cost[node]:
            out.append(node)
        for child in (2 * pos + 1, 2 * pos + 2):
            if child < size:
                heapq.heappush(pending, (heap[child], child))
    return out


def _best_first(
    graph: GraphModel,
    start: int,
    goal: int,
    recorder: _StepRecorder,
    heuristic: Heuristic | None = None,
) -> tuple[dict[int, int], list[int]]:
    adjacency = graph.adjacency
    best_cost = [math.inf] * graph.node_count
    best_cost[start] = 0.0
    finalized = bytearray(graph.node_count)
    predecessors: dict[int, int] = {}
    visited_order: list[int] = []
    limit = recorder.sample_limit

    start_priority = heuristic(start) if heuristic is not None else 0.0
    heap: list[FrontierEntry] = [(start_priority, 0, start, 0.0)]
    seq = 1

    while heap:
        _priority, _seq, current, cost = heapq.heappop(heap)
        if finalized[current]:
            continue
        finalized[current] = 1
        visited_order.append(current)
        due = recorder.finalize(current)
        if current == goal:
            recorder.record(current, _frontier_sample(heap, best_cost, finalized, limit), [])
            break
        expanded: list[int] = []
        for nxt, weight in adjacency[current]:
            if finalized[nxt]:
                continue
            tentative = cost + weight
            if tentative < best_cost[nxt]:
                best_cost[nxt] = tentative
                predecessors[nxt] = current
                priority = tentative + heuristic(nxt) if heuristic is not None else tentative
                heapq.heappush(heap, (priority, seq, nxt, tentative))
                seq += 1
                expanded.append(nxt)
        if due:
            recorder.record(current, _frontier_sample(heap, best_cost, finalized, limit), expanded)
    return predecessors, visited_order


def _dijkstra(
    graph: GraphModel,
    start: int,
    goal: int,
    recorder: _StepRecorder,
) -> tuple[dict[int, int], list[int]]:
    return _best_first(graph, start, goal, recorder)


def _astar(
    graph: GraphModel,
    start: int,
    goal: int,
    recorder: _StepRecorder,
) -> tuple[dict[int, int], list[int]]:
    goal_lat = graph.lats[goal]
    goal_lon = graph.lons[goal]
    lats = graph.lats
    lons = graph.lons

    def _straight_line_to_goal(idx: int) -> float:
        return haversine_m(lats[idx], lons[idx], goal_lat, goal_lon)

    return _best_first(graph, start, goal, recorder, heuristic=_straight_line_to_goal)


_STRATEGIES: dict[SearchStrategy, Callable[[GraphModel, int, int, _StepRecorder], tuple[dict[int, int], list[int]]]] = {
    SearchStrategy.BFS: _bfs,
    SearchStrategy.DIJKSTRA: _dijkstra,
    SearchStrategy.ASTAR: _astar,
}


def search(
    graph: GraphModel,
    start_id: str,
    goal_id: str,
    strategy: SearchStrategy | str = SearchStrategy.ASTAR,
    sampling: SamplingConfig | None = None,
) -> PathResult:
    """Run one strategy from ``start_id`` to ``goal_id``.

    An unreachable goal is a normal result (empty path, infinite distance). The
    reported distance is recomputed from the returned path's edge weights.
    """
    if graph.node_count == 0:
        raise EmptyGraphError("Graph has no nodes; search cannot run.")
    start = graph.index_of(start_id, role="start")
    goal = graph.index_of(goal_id, role="goal")
    runner = _STRATEGIES[SearchStrategy(strategy)]
    recorder = _StepRecorder(graph, sampling or SamplingConfig(), goal)

    predecessors, visited_order = runner(graph, start, goal, recorder)

    node_ids = graph.node_ids
    path = tuple(node_ids[idx] for idx in reconstruct_path(predecessors, start, goal))
    steps = tuple(recorder.steps)
    visited = tuple(node_ids[idx] for idx in visited_order)
    if not path:
        return PathResult.no_path(steps=steps, visited_order=visited)
    return PathResult(path=path, steps=steps, visited_order=visited, distance=graph.path_weight(path))
