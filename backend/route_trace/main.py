from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Annotated, Any

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .graph_errors import (
    EmptyGraphError,
    GraphUnavailableError,
    NodeNotFoundError,
    NoPathFoundError,
    RouteGraphError,
    normalize_reason_code,
)
from .graph_loader import graph_status, load_graph
from .graph_model import BoundingBox, GraphModel
from .logging_utils import log_event
from .models import (
    BoundingBoxModel,
    GraphStatusResponse,
    LatLng,
    RouteRequest,
    RouteResponse,
    SearchStepModel,
    StepNodeModel,
)
from .route_service import RoutePlan, plan_route
from .settings import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.graph_warmup_on_startup:
        try:
            await asyncio.to_thread(load_graph)
        except RouteGraphError as exc:
            # Startup continues; /api/route reports the load error per request.
            log_event("route_graph_warmup_failed", reason_code=exc.reason_code, error=str(exc))
    yield


app = FastAPI(title="Route Search Visualizer API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

_STATUS_BY_ERROR: tuple[tuple[type[RouteGraphError], int], ...] = (
    (NoPathFoundError, 404),
    (GraphUnavailableError, 503),
    (NodeNotFoundError, 400),
    (EmptyGraphError, 500),
)


def _http_error(exc: RouteGraphError) -> HTTPException:
    status = next((code for kind, code in _STATUS_BY_ERROR if isinstance(exc, kind)), 500)
    return HTTPException(
        status_code=status,
        detail={"reason_code": normalize_reason_code(exc.reason_code), "message": exc.message},
    )


async def route_graph() -> GraphModel:
    try:
        return await asyncio.to_thread(load_graph)
    except RouteGraphError as exc:
        raise _http_error(exc) from exc


GraphDep = Annotated[GraphModel, Depends(route_graph)]


def _bbox_model(bbox: BoundingBox | None) -> BoundingBoxModel | None:
    if bbox is None:
        return None
    return BoundingBoxModel(
        min_lat=bbox.min_lat,
        max_lat=bbox.max_lat,
        min_lon=bbox.min_lon,
        max_lon=bbox.max_lon,
    )


def build_route_response(plan: RoutePlan, *, request: RouteRequest, graph: GraphModel) -> RouteResponse:
    payload = plan.payload
    return RouteResponse(
        algorithm=plan.strategy.value,
        path=[LatLng(lat=lat, lon=lon) for lat, lon in payload.path],
        node_path=list(payload.node_path),
        steps=[
            SearchStepModel(
                current=step.current,
                frontier=list(step.frontier_sample),
                visited_count=step.visited_count,
                expanded=list(step.expanded),
            )
            for step in payload.steps
        ],
        distance=float(payload.distance),
        visited=payload.visited,
        elapsed_ms=plan.elapsed_ms,
        start=request.start,
        goal=request.goal,
        start_node=plan.start.id,
        goal_node=plan.goal.id,
        step_nodes=[StepNodeModel(id=node.id, lat=node.lat, lon=node.lon) for node in payload.step_nodes],
        bbox=_bbox_model(graph.bounding_box),
        visited_order=list(payload.visited_order),
        truncated=payload.truncated,
        fallback_used=plan.fallback_used,
    )


@app.get("/")
async def root() -> dict[str, str]:
    return {"message": "Backend is running. Visit /docs for the API UI.", "docs": "/docs"}


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/graph/status", response_model=GraphStatusResponse)
async def get_graph_status() -> GraphStatusResponse:
    status: dict[str, Any] = graph_status()
    bbox: BoundingBoxModel | None = None
    if status.get("state") == "ready":
        try:
            bbox = _bbox_model((await asyncio.to_thread(load_graph)).bounding_box)
        except RouteGraphError:
            bbox = None
    return GraphStatusResponse(**status, bbox=bbox)


@app.post("/api/route", response_model=RouteResponse)
async def compute_route(req: RouteRequest, graph: GraphDep) -> RouteResponse:
    try:
        plan = await asyncio.to_thread(
            plan_route,
            graph,
            start_lat=req.start.lat,
            start_lon=req.start.lon,
            goal_lat=req.goal.lat,
            goal_lon=req.goal.lon,
            strategy=req.algorithm,
        )
    except RouteGraphError as exc:
        raise _http_error(exc) from exc
    return build_route_response(plan, request=req, graph=graph)
