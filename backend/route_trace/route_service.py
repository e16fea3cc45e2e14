from __future__ import annotations

import math
import time
from dataclasses import dataclass

from .graph_errors import NoPathFoundError
from .graph_model import GraphModel
from .logging_utils import log_event
from .nearest_node import NearestNode, snap_to_node
from .result_sampler import BoundedPayload, sample_result
from .search_models import SamplingConfig, SearchStrategy
from .settings import settings
from .undirected_fallback import search_with_fallback


@dataclass(frozen=True)
class RoutePlan:
    strategy: SearchStrategy
    start: NearestNode
    goal: NearestNode
    payload: BoundedPayload
    elapsed_ms: float
    fallback_used: bool


def sampling_for_graph(graph: GraphModel) -> SamplingConfig:
    """Trace bounds from settings; cadence scales so a full run yields about the target step count."""
    target_steps = max(1, int(settings.route_trace_target_steps))
    return SamplingConfig(
        record_every=max(1, math.ceil(graph.node_count / target_steps)),
        frontier_sample_size=int(settings.route_frontier_sample_size),
        max_path_points=int(settings.route_max_path_points),
        max_steps=int(settings.route_max_steps),
        max_step_node_ids=int(settings.route_max_step_node_ids),
        max_visited_order=int(settings.route_max_visited_order),
    )


def plan_route(
    graph: GraphModel,
    *,
    start_lat: float,
    start_lon: float,
    goal_lat: float,
    goal_lon: float,
    strategy: SearchStrategy | str | None = None,
    limits: SamplingConfig | None = None,
) -> RoutePlan:
    chosen = SearchStrategy(strategy or settings.route_default_algorithm)
    sampling = limits or sampling_for_graph(graph)
    start = snap_to_node(graph, lat=start_lat, lon=start_lon)
    goal = snap_to_node(graph, lat=goal_lat, lon=goal_lon)

    t0 = time.perf_counter()
    outcome = search_with_fallback(
        graph,
        start.id,
        goal.id,
        chosen,
        sampling,
        enabled=bool(settings.route_undirected_fallback_enabled),
    )
    elapsed_ms = round((time.perf_counter() - t0) * 1000.0, 2)

    result = outcome.result
    if not result.found:
        log_event(
            "route_search_no_path",
            strategy=chosen.value,
            start_node=start.id,
            goal_node=goal.id,
            visited=len(result.visited_order),
            elapsed_ms=elapsed_ms,
        )
        raise NoPathFoundError(start.id, goal.id)

    payload = sample_result(result, graph, sampling, start_id=start.id, goal_id=goal.id)
    log_event(
        "route_search_completed",
        strategy=chosen.value,
        start_node=start.id,
        goal_node=goal.id,
        start_snap_m=round(start.distance_m, 2),
        goal_snap_m=round(goal.distance_m, 2),
        distance_m=round(result.distance, 2),
        visited=payload.visited,
        steps_recorded=len(result.steps),
        record_every=sampling.record_every,
        truncated=payload.truncated,
        fallback_used=outcome.fallback_used,
        elapsed_ms=elapsed_ms,
    )
    return RoutePlan(
        strategy=chosen,
        start=start,
        goal=goal,
        payload=payload,
        elapsed_ms=elapsed_ms,
        fallback_used=outcome.fallback_used,
    )
