from __future__ import annotations

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_graph_asset_path() -> str:
    return str(Path(__file__).resolve().parents[1] / "data" / "graph.json")


def _default_out_dir() -> str:
    return str(Path(__file__).resolve().parents[1] / "out")


class Settings(BaseSettings):
    """Env-driven settings for the graph asset, trace bounds and the Overpass builder."""

    model_config = SettingsConfigDict(
        # Support both "repo root/.env" and "backend/.env" (local dev)
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    graph_asset_path: str = Field(default_factory=_default_graph_asset_path, alias="GRAPH_ASSET_PATH")
    graph_warmup_on_startup: bool = Field(default=True, alias="GRAPH_WARMUP_ON_STARTUP")

    out_dir: str = Field(default_factory=_default_out_dir, alias="OUT_DIR")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Trace bounds for the visualizer payload
    route_trace_target_steps: int = Field(default=2000, ge=1, alias="ROUTE_TRACE_TARGET_STEPS")
    route_frontier_sample_size: int = Field(default=50, ge=1, alias="ROUTE_FRONTIER_SAMPLE_SIZE")
    route_max_path_points: int = Field(default=20_000, alias="ROUTE_MAX_PATH_POINTS")
    route_max_steps: int = Field(default=1500, alias="ROUTE_MAX_STEPS")
    route_max_step_node_ids: int = Field(default=40_000, alias="ROUTE_MAX_STEP_NODE_IDS")
    route_max_visited_order: int = Field(default=20_000, alias="ROUTE_MAX_VISITED_ORDER")

    route_default_algorithm: str = Field(default="astar", alias="ROUTE_DEFAULT_ALGORITHM")
    route_undirected_fallback_enabled: bool = Field(default=True, alias="ROUTE_UNDIRECTED_FALLBACK_ENABLED")

    overpass_url: str = Field(default="https://overpass-api.de/api/interpreter", alias="OVERPASS_URL")
    overpass_fallback_url: str = Field(
        default="https://overpass.kumi.systems/api/interpreter",
        alias="OVERPASS_FALLBACK_URL",
    )
    overpass_timeout_s: float = Field(default=180.0, ge=1.0, le=900.0, alias="OVERPASS_TIMEOUT_S")

    @model_validator(mode="after")
    def _normalise_route_defaults(self) -> "Settings":
        algorithm = str(self.route_default_algorithm or "astar").strip().lower()
        if algorithm not in {"bfs", "dijkstra", "astar"}:
            algorithm = "astar"
        self.route_default_algorithm = algorithm
        self.route_max_path_points = max(1, int(self.route_max_path_points))
        self.route_max_steps = max(1, int(self.route_max_steps))
        self.route_max_step_node_ids = max(1, int(self.route_max_step_node_ids))
        self.route_max_visited_order = max(1, int(self.route_max_visited_order))
        return self


settings = Settings()
