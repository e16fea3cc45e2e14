from __future__ import annotations

import pytest

from route_trace.graph_model import GraphEdge, GraphModel, GraphNode
from route_trace.result_sampler import sample_result
from route_trace.search_engine import search
from route_trace.search_models import PathResult, SamplingConfig, SearchStep, SearchStrategy


def _line_graph() -> GraphModel:
    ids = ["a", "b", "c", "d", "e"]
    return GraphModel.build(
        [GraphNode(node_id, 51.5, -0.1 + 0.001 * idx) for idx, node_id in enumerate(ids)],
        [GraphEdge(ids[idx], ids[idx + 1], 10.0) for idx in range(len(ids) - 1)],
    )


def _result() -> PathResult:
    return PathResult(
        path=("a", "b", "c", "d", "e"),
        steps=(
            SearchStep(current="a", frontier_sample=("b",), visited_count=1, expanded=("b",)),
            SearchStep(current="b", frontier_sample=("c",), visited_count=2, expanded=("c",)),
            SearchStep(current="e", frontier_sample=(), visited_count=5, expanded=()),
        ),
        visited_order=("a", "b", "c", "d", "e"),
        distance=40.0,
    )


def test_unbounded_payload_is_not_truncated() -> None:
    graph = _line_graph()
    payload = sample_result(_result(), graph, SamplingConfig(), start_id="a", goal_id="e")

    assert payload.truncated is False
    assert payload.node_path == ("a", "b", "c", "d", "e")
    assert payload.path[0] == (51.5, pytest.approx(-0.1))
    assert len(payload.path) == 5
    assert [node.id for node in payload.step_nodes] == ["a", "b", "c", "d", "e"]
    assert payload.visited == 5
    assert payload.distance == 40.0


def test_path_points_are_capped_and_flagged() -> None:
    payload = sample_result(_result(), _line_graph(), SamplingConfig(max_path_points=3))

    assert payload.node_path == ("a", "b", "c")
    assert len(payload.path) == 3
    assert payload.truncated is True
    # Distance and visited describe the full search, not the cut payload.
    assert payload.distance == 40.0
    assert payload.visited == 5


def test_steps_and_visited_order_are_capped() -> None:
    payload = sample_result(_result(), _line_graph(), SamplingConfig(max_steps=2, max_visited_order=2))

    assert [step.current for step in payload.steps] == ["a", "b"]
    assert payload.visited_order == ("a", "b")
    assert payload.truncated is True


def test_frontier_samples_are_cut_to_limit() -> None:
    result = PathResult(
        path=("a", "b"),
        steps=(SearchStep(current="a", frontier_sample=("b", "c", "d"), visited_count=1, expanded=("b", "c", "d")),),
        visited_order=("a",),
        distance=10.0,
    )

    payload = sample_result(result, _line_graph(), SamplingConfig(frontier_sample_size=1))

    assert payload.steps[0].frontier_sample == ("b",)
    assert payload.steps[0].expanded == ("b", "c", "d")
    assert payload.truncated is True


def test_render_ids_prefer_path_then_visited_then_steps() -> None:
    result = PathResult(
        path=("c", "d"),
        steps=(SearchStep(current="a", frontier_sample=("e",), visited_count=1, expanded=()),),
        visited_order=("b", "c"),
        distance=10.0,
    )

    payload = sample_result(result, _line_graph(), SamplingConfig(max_step_node_ids=3))

    assert [node.id for node in payload.step_nodes] == ["c", "d", "b"]
    assert payload.truncated is True


def test_endpoints_are_included_when_room_allows() -> None:
    result = PathResult.no_path(visited_order=("b",))

    payload = sample_result(result, _line_graph(), SamplingConfig(), start_id="a", goal_id="e")

    assert [node.id for node in payload.step_nodes] == ["b", "a", "e"]
    assert payload.node_path == ()
    assert payload.path == ()
    assert payload.truncated is False


def test_duplicate_ids_do_not_count_against_cap() -> None:
    result = PathResult(
        path=("a", "b"),
        steps=(SearchStep(current="a", frontier_sample=("b",), visited_count=1, expanded=("b",)),),
        visited_order=("a", "b"),
        distance=10.0,
    )

    payload = sample_result(result, _line_graph(), SamplingConfig(max_step_node_ids=2), start_id="a", goal_id="b")

    assert [node.id for node in payload.step_nodes] == ["a", "b"]
    assert payload.truncated is False


def test_sampling_a_real_search_keeps_goal_step() -> None:
    graph = _line_graph()
    result = search(graph, "a", "e", SearchStrategy.DIJKSTRA, SamplingConfig(record_every=2))

    payload = sample_result(result, graph, SamplingConfig(record_every=2), start_id="a", goal_id="e")

    assert payload.steps[-1].current == "e"
    assert payload.node_path == ("a", "b", "c", "d", "e")
    assert payload.distance == pytest.approx(40.0)
