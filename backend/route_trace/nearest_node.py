from __future__ import annotations

import math
from dataclasses import dataclass

from .geo import haversine_m
from .graph_errors import EmptyGraphError
from .graph_model import GraphModel


@dataclass(frozen=True)
class NearestNode:
    id: str
    distance_m: float


def nearest_node(graph: GraphModel, *, lat: float, lon: float) -> NearestNode | None:
    """Linear scan for the closest node; ties go to the first node in graph order."""
    best_idx: int | None = None
    best_dist = math.inf
    for idx in range(graph.node_count):
        dist = haversine_m(lat, lon, graph.lats[idx], graph.lons[idx])
        if best_idx is None or dist < best_dist:
            best_idx = idx
            best_dist = dist
    if best_idx is None:
        return None
    return NearestNode(id=graph.node_ids[best_idx], distance_m=float(best_dist))


def snap_to_node(graph: GraphModel, *, lat: float, lon: float) -> NearestNode:
    nearest = nearest_node(graph, lat=lat, lon=lon)
    if nearest is None:
        raise EmptyGraphError("Graph is empty; coordinates cannot be snapped to a node.")
    return nearest
