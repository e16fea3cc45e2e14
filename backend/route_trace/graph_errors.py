from __future__ import annotations

from dataclasses import dataclass
from typing import Any

FROZEN_REASON_CODES: frozenset[str] = frozenset(
    {
        "routing_graph_unavailable",
        "routing_graph_empty",
        "routing_graph_node_not_found",
        "routing_graph_invalid_edge_weight",
        "routing_graph_invalid_node_coordinate",
        "routing_graph_no_path",
    }
)


@dataclass
class RouteGraphError(ValueError):
    reason_code: str
    message: str
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return self.message


class EmptyGraphError(RouteGraphError):
    def __init__(self, message: str = "Graph has no nodes.", details: dict[str, Any] | None = None) -> None:
        super().__init__(reason_code="routing_graph_empty", message=message, details=details)


class NodeNotFoundError(RouteGraphError):
    def __init__(self, node_id: str, *, role: str = "node") -> None:
        super().__init__(
            reason_code="routing_graph_node_not_found",
            message=f"{role} id {node_id!r} is not present in the graph.",
            details={"node_id": node_id, "role": role},
        )


class InvalidEdgeWeightError(RouteGraphError):
    def __init__(self, source: str, target: str, weight: object) -> None:
        super().__init__(
            reason_code="routing_graph_invalid_edge_weight",
            message=f"Edge {source!r}->{target!r} has invalid weight {weight!r}.",
            details={"from": source, "to": target, "weight": repr(weight)},
        )


class InvalidNodeCoordinateError(RouteGraphError):
    def __init__(self, node_id: str, lat: object, lon: object) -> None:
        super().__init__(
            reason_code="routing_graph_invalid_node_coordinate",
            message=f"Node {node_id!r} has invalid coordinates ({lat!r}, {lon!r}).",
            details={"node_id": node_id, "lat": repr(lat), "lon": repr(lon)},
        )


class GraphUnavailableError(RouteGraphError):
    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(reason_code="routing_graph_unavailable", message=message, details=details)


class NoPathFoundError(RouteGraphError):
    def __init__(self, start_id: str, goal_id: str) -> None:
        super().__init__(
            reason_code="routing_graph_no_path",
            message="No path found between selected points.",
            details={"start_node": start_id, "goal_node": goal_id},
        )


def normalize_reason_code(reason_code: str, *, default: str = "routing_graph_unavailable") -> str:
    code = str(reason_code or "").strip()
    if code in FROZEN_REASON_CODES:
        return code
    return default
