from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from functools import cached_property

from .geo import haversine_m
from .graph_errors import InvalidEdgeWeightError, InvalidNodeCoordinateError, NodeNotFoundError


@dataclass(frozen=True)
class GraphNode:
    id: str
    lat: float
    lon: float


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str
    weight: float | None = None


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    @classmethod
    def from_nodes(cls, nodes: Iterable[GraphNode]) -> BoundingBox | None:
        lats: list[float] = []
        lons: list[float] = []
        for node in nodes:
            lats.append(node.lat)
            lons.append(node.lon)
        if not lats:
            return None
        return cls(min_lat=min(lats), max_lat=max(lats), min_lon=min(lons), max_lon=max(lons))


Adjacency = tuple[tuple[tuple[int, float], ...], ...]


def _checked_weight(edge: GraphEdge, source: GraphNode, target: GraphNode) -> float:
    if edge.weight is None:
        return haversine_m(source.lat, source.lon, target.lat, target.lon)
    if isinstance(edge.weight, bool):
        raise InvalidEdgeWeightError(edge.source, edge.target, edge.weight)
    try:
        weight = float(edge.weight)
    except (TypeError, ValueError) as exc:
        raise InvalidEdgeWeightError(edge.source, edge.target, edge.weight) from exc
    if not math.isfinite(weight) or weight < 0.0:
        raise InvalidEdgeWeightError(edge.source, edge.target, edge.weight)
    return weight


@dataclass(frozen=True)
class GraphModel:
    """Immutable road graph with node ids interned to dense indices.

    ``adjacency[i]`` lists ``(neighbor_index, weight_m)`` in insertion order.
    Parallel edges between the same ordered pair are dropped at build time,
    first one wins. Nothing is added after construction.
    """

    node_ids: tuple[str, ...]
    lats: tuple[float, ...]
    lons: tuple[float, ...]
    index_by_id: dict[str, int]
    adjacency: Adjacency
    edge_weights: dict[tuple[int, int], float]
    bounding_box: BoundingBox | None = None
    skipped_edge_count: int = 0
    directed: bool = field(default=True)

    @classmethod
    def build(
        cls,
        nodes: Iterable[GraphNode],
        edges: Iterable[GraphEdge],
        *,
        bounding_box: BoundingBox | None = None,
    ) -> GraphModel:
        kept: list[GraphNode] = []
        index_by_id: dict[str, int] = {}
        for node in nodes:
            if node.id in index_by_id:
                continue
            if not (math.isfinite(node.lat) and math.isfinite(node.lon)):
                raise InvalidNodeCoordinateError(node.id, node.lat, node.lon)
            index_by_id[node.id] = len(kept)
            kept.append(node)

        adjacency_mut: list[list[tuple[int, float]]] = [[] for _ in kept]
        edge_weights: dict[tuple[int, int], float] = {}
        skipped = 0
        for edge in edges:
            u = index_by_id.get(edge.source)
            v = index_by_id.get(edge.target)
            if u is None or v is None:
                skipped += 1
                continue
            weight = _checked_weight(edge, kept[u], kept[v])
            if (u, v) in edge_weights:
                continue
            edge_weights[(u, v)] = weight
            adjacency_mut[u].append((v, weight))

        return cls(
            node_ids=tuple(node.id for node in kept),
            lats=tuple(float(node.lat) for node in kept),
            lons=tuple(float(node.lon) for node in kept),
            index_by_id=index_by_id,
            adjacency=tuple(tuple(row) for row in adjacency_mut),
            edge_weights=edge_weights,
            bounding_box=bounding_box if bounding_box is not None else BoundingBox.from_nodes(kept),
            skipped_edge_count=skipped,
        )

    @property
    def node_count(self) -> int:
        return len(self.node_ids)

    @property
    def edge_count(self) -> int:
        return len(self.edge_weights)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.index_by_id

    def has_node(self, node_id: str) -> bool:
        return node_id in self.index_by_id

    def index_of(self, node_id: str, *, role: str = "node") -> int:
        idx = self.index_by_id.get(node_id)
        if idx is None:
            raise NodeNotFoundError(node_id, role=role)
        return idx

    def node(self, node_id: str) -> GraphNode | None:
        idx = self.index_by_id.get(node_id)
        if idx is None:
            return None
        return GraphNode(id=node_id, lat=self.lats[idx], lon=self.lons[idx])

    def neighbors(self, node_id: str) -> list[tuple[str, float]]:
        idx = self.index_by_id.get(node_id)
        if idx is None:
            return []
        return [(self.node_ids[nxt], weight) for nxt, weight in self.adjacency[idx]]

    def edge_weight(self, source: str, target: str) -> float | None:
        u = self.index_by_id.get(source)
        v = self.index_by_id.get(target)
        if u is None or v is None:
            return None
        return self.edge_weights.get((u, v))

    def path_weight(self, path: Iterable[str]) -> float:
        nodes = list(path)
        if not nodes:
            return math.inf
        total = 0.0
        for idx in range(1, len(nodes)):
            weight = self.edge_weight(nodes[idx - 1], nodes[idx])
            if weight is None:
                return math.inf
            total += weight
        return total

    def symmetrized(self) -> GraphModel:
        """Undirected view sharing this graph's nodes; computed once per model."""
        if not self.directed:
            return self
        return self._symmetrized_view

    @cached_property
    def _symmetrized_view(self) -> GraphModel:
        adjacency_mut: list[list[tuple[int, float]]] = [[] for _ in self.node_ids]
        edge_weights: dict[tuple[int, int], float] = {}

        def _add(u: int, v: int, weight: float) -> None:
            if (u, v) in edge_weights:
                return
            edge_weights[(u, v)] = weight
            adjacency_mut[u].append((v, weight))

        # Existing edges keep their own weight; mirrored edges only fill gaps.
        for u, row in enumerate(self.adjacency):
            for v, weight in row:
                _add(u, v, weight)
        for u, row in enumerate(self.adjacency):
            for v, weight in row:
                _add(v, u, weight)

        return GraphModel(
            node_ids=self.node_ids,
            lats=self.lats,
            lons=self.lons,
            index_by_id=self.index_by_id,
            adjacency=tuple(tuple(row) for row in adjacency_mut),
            edge_weights=edge_weights,
            bounding_box=self.bounding_box,
            skipped_edge_count=self.skipped_edge_count,
            directed=False,
        )
