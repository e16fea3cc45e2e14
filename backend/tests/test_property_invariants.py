from __future__ import annotations

import math
import random
from collections import deque

import pytest

from route_trace.geo import haversine_m
from route_trace.graph_model import GraphEdge, GraphModel, GraphNode
from route_trace.search_engine import search
from route_trace.search_models import SamplingConfig, SearchStrategy

FULL_TRACE = SamplingConfig(record_every=1, frontier_sample_size=None)


def _random_graph(rng: random.Random, *, n: int, m: int) -> GraphModel:
    nodes = [
        GraphNode(id=f"v{idx}", lat=round(51.5 + rng.uniform(-0.02, 0.02), 6), lon=round(-0.1 + rng.uniform(-0.02, 0.02), 6))
        for idx in range(n)
    ]
    edges: list[GraphEdge] = []
    for _ in range(m):
        a = rng.choice(nodes)
        b = rng.choice(nodes)
        if a.id == b.id:
            continue
        # Never shorter than the straight line, so the A* heuristic stays admissible.
        stretch = rng.uniform(1.0, 2.5)
        edges.append(GraphEdge(a.id, b.id, haversine_m(a.lat, a.lon, b.lat, b.lon) * stretch))
    return GraphModel.build(nodes, edges)


def _bellman_ford(graph: GraphModel, start: str) -> dict[str, float]:
    dist = {node_id: math.inf for node_id in graph.node_ids}
    dist[start] = 0.0
    for _ in range(graph.node_count - 1):
        changed = False
        for (u, v), weight in graph.edge_weights.items():
            a = graph.node_ids[u]
            b = graph.node_ids[v]
            if dist[a] + weight < dist[b]:
                dist[b] = dist[a] + weight
                changed = True
        if not changed:
            break
    return dist


def _hop_counts(graph: GraphModel, start: str) -> dict[str, int]:
    hops = {start: 0}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for nxt, _weight in graph.neighbors(current):
            if nxt not in hops:
                hops[nxt] = hops[current] + 1
                queue.append(nxt)
    return hops


def _assert_valid_path(graph: GraphModel, path: tuple[str, ...], start: str, goal: str) -> None:
    assert path[0] == start
    assert path[-1] == goal
    for a, b in zip(path, path[1:]):
        assert graph.edge_weight(a, b) is not None


def _assert_trace_invariants(result, graph: GraphModel) -> None:
    assert len(set(result.visited_order)) == len(result.visited_order)
    counts = [step.visited_count for step in result.steps]
    assert counts == sorted(counts)
    assert len(set(counts)) == len(counts)
    for step in result.steps:
        assert step.current in graph
        assert all(node_id in graph for node_id in step.frontier_sample)
        assert all(node_id in graph for node_id in step.expanded)


@pytest.mark.parametrize("seed", [7, 20260212, 99])
def test_weighted_strategies_match_bellman_ford(seed: int) -> None:
    rng = random.Random(seed)
    for _ in range(20):
        graph = _random_graph(rng, n=25, m=70)
        start, goal = rng.sample(list(graph.node_ids), 2)
        expected = _bellman_ford(graph, start)[goal]

        dijkstra = search(graph, start, goal, SearchStrategy.DIJKSTRA, FULL_TRACE)
        astar = search(graph, start, goal, SearchStrategy.ASTAR, FULL_TRACE)

        for result in (dijkstra, astar):
            _assert_trace_invariants(result, graph)
            if math.isinf(expected):
                assert result.path == ()
                assert math.isinf(result.distance)
                continue
            _assert_valid_path(graph, result.path, start, goal)
            assert result.distance == pytest.approx(expected, rel=1e-9)
            assert result.steps[-1].current == goal


@pytest.mark.parametrize("seed", [3, 11])
def test_bfs_path_has_minimum_edge_count(seed: int) -> None:
    rng = random.Random(seed)
    for _ in range(25):
        graph = _random_graph(rng, n=20, m=45)
        start, goal = rng.sample(list(graph.node_ids), 2)
        hops = _hop_counts(graph, start)

        result = search(graph, start, goal, SearchStrategy.BFS, FULL_TRACE)

        _assert_trace_invariants(result, graph)
        if goal not in hops:
            assert result.path == ()
            continue
        _assert_valid_path(graph, result.path, start, goal)
        assert len(result.path) - 1 == hops[goal]
        assert result.distance == pytest.approx(graph.path_weight(result.path))


def test_sampled_steps_are_subset_of_full_trace() -> None:
    rng = random.Random(5)
    graph = _random_graph(rng, n=30, m=90)
    start, goal = graph.node_ids[0], graph.node_ids[-1]

    for strategy in SearchStrategy:
        full = search(graph, start, goal, strategy, FULL_TRACE)
        sampled = search(graph, start, goal, strategy, SamplingConfig(record_every=4, frontier_sample_size=None))

        assert sampled.path == full.path
        assert sampled.visited_order == full.visited_order
        full_by_count = {step.visited_count: step for step in full.steps}
        for step in sampled.steps:
            assert full_by_count[step.visited_count] == step
            if step.current != goal:
                assert step.visited_count % 4 == 0
