from __future__ import annotations

import threading
import time
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any

import ijson

from .graph_errors import GraphUnavailableError, InvalidEdgeWeightError, RouteGraphError
from .graph_model import BoundingBox, GraphEdge, GraphModel, GraphNode
from .logging_utils import log_event
from .settings import settings

_LOAD_LOCK = threading.Lock()
_LAST_LOAD: dict[str, Any] = {}


def _graph_asset_path() -> Path:
    return Path(settings.graph_asset_path)


def _as_float(raw: object) -> float | None:
    if not isinstance(raw, (int, float, str, Decimal)) or isinstance(raw, bool):
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None


def _parse_node(raw: object) -> GraphNode | None:
    if not isinstance(raw, dict):
        return None
    node_id_raw = raw.get("id")
    if node_id_raw is None:
        return None
    lat = _as_float(raw.get("lat"))
    lon = _as_float(raw.get("lon"))
    if lat is None or lon is None:
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        return None
    return GraphNode(id=str(node_id_raw), lat=lat, lon=lon)


def _parse_edge(raw: object) -> GraphEdge | None:
    if not isinstance(raw, dict):
        return None
    u = raw.get("from")
    v = raw.get("to")
    if u is None or v is None:
        return None
    weight_raw = raw.get("weight")
    if weight_raw is None:
        return GraphEdge(source=str(u), target=str(v))
    weight = _as_float(weight_raw)
    if weight is None:
        raise InvalidEdgeWeightError(str(u), str(v), weight_raw)
    return GraphEdge(source=str(u), target=str(v), weight=weight)


def _parse_bbox(raw: object) -> BoundingBox | None:
    if not isinstance(raw, dict):
        return None
    values = [_as_float(raw.get(key)) for key in ("minLat", "maxLat", "minLon", "maxLon")]
    if any(value is None for value in values):
        return None
    min_lat, max_lat, min_lon, max_lon = values
    return BoundingBox(min_lat=min_lat, max_lat=max_lat, min_lon=min_lon, max_lon=max_lon)  # type: ignore[arg-type]


def load_graph_file(path: Path) -> GraphModel:
    """Stream a ``{bbox?, nodes, edges}`` JSON asset into a GraphModel."""
    if not path.exists():
        raise GraphUnavailableError(
            "Route graph asset is unavailable.",
            details={"graph_path": str(path)},
        )
    nodes: list[GraphNode] = []
    edges: list[GraphEdge] = []
    bbox: BoundingBox | None = None
    nodes_seen = 0
    edges_seen = 0
    try:
        with path.open("rb") as fh:
            for raw_node in ijson.items(fh, "nodes.item"):
                nodes_seen += 1
                node = _parse_node(raw_node)
                if node is not None:
                    nodes.append(node)
        with path.open("rb") as fh:
            for raw_edge in ijson.items(fh, "edges.item"):
                edges_seen += 1
                edge = _parse_edge(raw_edge)
                if edge is not None:
                    edges.append(edge)
        with path.open("rb") as fh:
            for raw_bbox in ijson.items(fh, "bbox"):
                bbox = _parse_bbox(raw_bbox)
                break
    except (OSError, ijson.JSONError) as exc:
        raise GraphUnavailableError(
            f"Route graph asset could not be parsed: {exc}",
            details={"graph_path": str(path)},
        ) from exc

    graph = GraphModel.build(nodes, edges, bounding_box=bbox)
    log_event(
        "route_graph_loaded",
        graph_path=str(path),
        nodes_seen=nodes_seen,
        nodes_kept=graph.node_count,
        edges_seen=edges_seen,
        edges_kept=graph.edge_count,
        edges_skipped=graph.skipped_edge_count,
    )
    return graph


@lru_cache(maxsize=1)
def _cached_graph(path_str: str) -> GraphModel:
    return load_graph_file(Path(path_str))


def load_graph() -> GraphModel:
    """Return the most recently built graph, building it on first use.

    The lock keeps concurrent first callers from building the asset twice.
    """
    path = _graph_asset_path()
    with _LOAD_LOCK:
        started = time.monotonic()
        try:
            graph = _cached_graph(str(path))
        except RouteGraphError as exc:
            _LAST_LOAD.update({"state": "failed", "error": str(exc), "reason_code": exc.reason_code})
            log_event("route_graph_load_failed", graph_path=str(path), reason_code=exc.reason_code, error=str(exc))
            raise
        if _LAST_LOAD.get("graph_path") != str(path) or _LAST_LOAD.get("state") != "ready":
            _LAST_LOAD.clear()
            _LAST_LOAD.update(
                {
                    "state": "ready",
                    "graph_path": str(path),
                    "node_count": graph.node_count,
                    "edge_count": graph.edge_count,
                    "load_ms": round(max(0.0, (time.monotonic() - started) * 1000.0), 2),
                }
            )
        return graph


def reset_graph_cache() -> None:
    with _LOAD_LOCK:
        _cached_graph.cache_clear()
        _LAST_LOAD.clear()


def graph_status() -> dict[str, Any]:
    path = _graph_asset_path()
    with _LOAD_LOCK:
        snapshot = dict(_LAST_LOAD)
        cache_loaded = bool(_cached_graph.cache_info().currsize > 0)
    return {
        "state": str(snapshot.get("state", "idle")),
        "graph_path": str(path),
        "asset_exists": path.exists(),
        "cache_loaded": cache_loaded,
        "node_count": snapshot.get("node_count"),
        "edge_count": snapshot.get("edge_count"),
        "load_ms": snapshot.get("load_ms"),
        "last_error": snapshot.get("error"),
    }
