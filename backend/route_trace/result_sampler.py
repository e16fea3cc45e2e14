from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace

from .graph_model import GraphModel, GraphNode
from .search_models import PathResult, SamplingConfig, SearchStep


@dataclass(frozen=True)
class BoundedPayload:
    node_path: tuple[str, ...]
    path: tuple[tuple[float, float], ...]
    steps: tuple[SearchStep, ...]
    visited_order: tuple[str, ...]
    step_nodes: tuple[GraphNode, ...]
    distance: float
    visited: int
    truncated: bool


def _prioritized_ids(
    node_path: tuple[str, ...],
    visited_order: tuple[str, ...],
    steps: tuple[SearchStep, ...],
    start_id: str | None,
    goal_id: str | None,
) -> Iterator[str]:
    yield from node_path
    yield from visited_order
    for step in steps:
        yield step.current
        yield from step.frontier_sample
        yield from step.expanded
    if start_id is not None:
        yield start_id
    if goal_id is not None:
        yield goal_id


def _unique_capped(ids: Iterable[str], cap: int) -> tuple[list[str], bool]:
    out: list[str] = []
    seen: set[str] = set()
    for node_id in ids:
        if node_id in seen:
            continue
        if len(out) >= cap:
            return out, True
        seen.add(node_id)
        out.append(node_id)
    return out, False


def sample_result(
    result: PathResult,
    graph: GraphModel,
    limits: SamplingConfig,
    *,
    start_id: str | None = None,
    goal_id: str | None = None,
) -> BoundedPayload:
    """Bound a search result for a visualizer.

    Node ids needed for rendering are collected path first, then visited order,
    then step contents, then the endpoints, so the cap drops late frontier noise
    before anything on the answer.
    """
    node_path = result.path[: limits.max_path_points]
    visited_order = result.visited_order[: limits.max_visited_order]
    frontier_limit = limits.frontier_sample_size
    frontier_cut = False
    steps: list[SearchStep] = []
    for step in result.steps[: limits.max_steps]:
        if frontier_limit is not None and len(step.frontier_sample) > frontier_limit:
            frontier_cut = True
            step = replace(step, frontier_sample=step.frontier_sample[:frontier_limit])
        steps.append(step)
    bounded_steps = tuple(steps)

    render_ids, ids_capped = _unique_capped(
        _prioritized_ids(node_path, visited_order, bounded_steps, start_id, goal_id),
        max(0, int(limits.max_step_node_ids)),
    )
    step_nodes = tuple(node for node in (graph.node(node_id) for node_id in render_ids) if node is not None)
    coordinates: list[tuple[float, float]] = []
    for node_id in node_path:
        node = graph.node(node_id)
        if node is not None:
            coordinates.append((node.lat, node.lon))

    truncated = (
        len(node_path) < len(result.path)
        or len(visited_order) < len(result.visited_order)
        or len(bounded_steps) < len(result.steps)
        or frontier_cut
        or ids_capped
    )
    return BoundedPayload(
        node_path=node_path,
        path=tuple(coordinates),
        steps=bounded_steps,
        visited_order=visited_order,
        step_nodes=step_nodes,
        distance=result.distance,
        visited=len(result.visited_order),
        truncated=truncated,
    )
