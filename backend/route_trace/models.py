from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

AlgorithmName = Literal["bfs", "dijkstra", "astar"]


class LatLng(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class BoundingBoxModel(BaseModel):
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float


class RouteRequest(BaseModel):
    start: LatLng
    goal: LatLng
    algorithm: AlgorithmName | None = None

    @field_validator("algorithm", mode="before")
    @classmethod
    def lower_algorithm(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().lower() or None
        return v


class SearchStepModel(BaseModel):
    current: str
    frontier: list[str]
    visited_count: int
    expanded: list[str]


class StepNodeModel(BaseModel):
    id: str
    lat: float
    lon: float


class RouteResponse(BaseModel):
    algorithm: AlgorithmName
    path: list[LatLng]
    node_path: list[str]
    steps: list[SearchStepModel]
    distance: float
    visited: int
    elapsed_ms: float
    start: LatLng
    goal: LatLng
    start_node: str
    goal_node: str
    step_nodes: list[StepNodeModel]
    bbox: BoundingBoxModel | None = None
    visited_order: list[str]
    truncated: bool = False
    fallback_used: bool = False


class GraphStatusResponse(BaseModel):
    state: str
    graph_path: str
    asset_exists: bool
    cache_loaded: bool
    node_count: int | None = None
    edge_count: int | None = None
    load_ms: float | None = None
    last_error: str | None = None
    bbox: BoundingBoxModel | None = None
