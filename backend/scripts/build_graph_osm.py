from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

import httpx

from route_trace.geo import haversine_m
from route_trace.logging_utils import log_event
from route_trace.settings import settings

DEFAULT_BBOX = (40.368, 49.836, 40.375, 49.847)  # south, west, north, east
DRIVABLE_HIGHWAYS = {
    "motorway",
    "motorway_link",
    "trunk",
    "trunk_link",
    "primary",
    "primary_link",
    "secondary",
    "secondary_link",
    "tertiary",
    "tertiary_link",
    "unclassified",
    "residential",
    "living_street",
    "service",
}
BANNED_ACCESS = {"no", "private"}


def parse_bbox(raw: str | None) -> tuple[float, float, float, float]:
    if not raw:
        return DEFAULT_BBOX
    parts = [part.strip() for part in str(raw).split(",")]
    if len(parts) != 4:
        raise ValueError("bbox must be provided as south,west,north,east")
    try:
        south, west, north, east = (float(part) for part in parts)
    except ValueError as exc:
        raise ValueError("bbox must be provided as south,west,north,east") from exc
    return south, west, north, east


def overpass_query(bbox: tuple[float, float, float, float]) -> str:
    south, west, north, east = bbox
    return (
        "[out:json][timeout:180];\n"
        f'(way["highway"]({south},{west},{north},{east}););\n'
        "(._;>;);\n"
        "out body;\n"
    )


def request_overpass(
    query: str,
    *,
    endpoints: list[str],
    client: httpx.Client,
) -> dict[str, Any]:
    last_error: Exception | None = None
    for url in endpoints:
        try:
            resp = client.post(
                url,
                content=query.encode("utf-8"),
                headers={"content-type": "text/plain", "accept": "application/json"},
            )
        except httpx.HTTPError as exc:
            last_error = exc
            log_event("overpass_request_failed", url=url, error=str(exc))
            continue
        if resp.status_code != 200:
            last_error = RuntimeError(f"Overpass request failed: {resp.status_code} {resp.reason_phrase}")
            log_event("overpass_request_failed", url=url, status_code=resp.status_code)
            continue
        payload = resp.json()
        if not isinstance(payload, dict):
            raise RuntimeError("Overpass payload must be a JSON object.")
        return payload
    raise RuntimeError(str(last_error) if last_error is not None else "Overpass request failed")


def graph_from_overpass(payload: dict[str, Any]) -> dict[str, Any]:
    elements = payload.get("elements", [])
    if not isinstance(elements, list):
        elements = []
    node_map: dict[int, dict[str, Any]] = {}
    for el in elements:
        if isinstance(el, dict) and el.get("type") == "node":
            node_map[int(el["id"])] = {"id": f"n{el['id']}", "lat": float(el["lat"]), "lon": float(el["lon"])}

    edges: list[dict[str, Any]] = []
    edge_seen: set[tuple[str, str]] = set()

    def _add(a: dict[str, Any], b: dict[str, Any], weight: float) -> None:
        key = (a["id"], b["id"])
        if key in edge_seen:
            return
        edge_seen.add(key)
        edges.append({"from": a["id"], "to": b["id"], "weight": weight})

    for el in elements:
        if not isinstance(el, dict) or el.get("type") != "way":
            continue
        tags = el.get("tags") or {}
        highway = str(tags.get("highway", "")).strip().lower()
        if highway not in DRIVABLE_HIGHWAYS:
            continue
        if str(tags.get("access", "")).strip().lower() in BANNED_ACCESS:
            continue
        oneway = str(tags.get("oneway", "")).strip().lower()
        allow_forward = oneway != "-1"
        allow_backward = oneway != "yes"
        ids = el.get("nodes") or []
        for idx in range(len(ids) - 1):
            a = node_map.get(int(ids[idx]))
            b = node_map.get(int(ids[idx + 1]))
            if a is None or b is None:
                continue
            weight = haversine_m(a["lat"], a["lon"], b["lat"], b["lon"])
            if allow_forward:
                _add(a, b, weight)
            if allow_backward:
                _add(b, a, weight)

    nodes = list(node_map.values())
    bbox = None
    if nodes:
        bbox = {
            "minLat": min(node["lat"] for node in nodes),
            "maxLat": max(node["lat"] for node in nodes),
            "minLon": min(node["lon"] for node in nodes),
            "maxLon": max(node["lon"] for node in nodes),
        }
    return {"bbox": bbox, "nodes": nodes, "edges": edges}


def build(
    *,
    bbox: tuple[float, float, float, float],
    output: Path,
    endpoints: list[str] | None = None,
    client: httpx.Client | None = None,
) -> dict[str, Any]:
    urls = endpoints or [url for url in (settings.overpass_url, settings.overpass_fallback_url) if url]
    own_client = client is None
    http = client or httpx.Client(timeout=httpx.Timeout(float(settings.overpass_timeout_s), connect=10.0))
    try:
        payload = request_overpass(overpass_query(bbox), endpoints=urls, client=http)
    finally:
        if own_client:
            http.close()
    graph = graph_from_overpass(payload)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(graph, indent=2), encoding="utf-8")
    return {
        "output": str(output),
        "nodes": len(graph["nodes"]),
        "edges": len(graph["edges"]),
        "bbox": graph["bbox"],
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Build the routing graph asset from OpenStreetMap (Overpass).")
    parser.add_argument("--bbox", type=str, default=None, help="south,west,north,east")
    parser.add_argument(
        "--output",
        type=Path,
        default=Path(settings.graph_asset_path),
        help="Output graph JSON path.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    report = build(bbox=parse_bbox(args.bbox), output=args.output)
    print(json.dumps(report, indent=2))


if __name__ == "__main__":
    main()
