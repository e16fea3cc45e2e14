from __future__ import annotations

from route_trace.path_reconstruction import reconstruct_path


def test_walks_predecessors_back_to_start() -> None:
    predecessors = {"b": "a", "c": "b", "d": "c"}
    assert reconstruct_path(predecessors, "a", "d") == ["a", "b", "c", "d"]


def test_start_equals_goal_is_single_node() -> None:
    assert reconstruct_path({}, "a", "a") == ["a"]
    assert reconstruct_path({"a": "z"}, "a", "a") == ["a"]


def test_unreached_goal_gives_empty_path() -> None:
    assert reconstruct_path({"b": "a"}, "a", "c") == []


def test_broken_chain_gives_empty_path() -> None:
    # "c" was reached from "x", which has no predecessor and is not the start.
    assert reconstruct_path({"c": "x"}, "a", "c") == []


def test_cycle_terminates_with_empty_path() -> None:
    predecessors = {"b": "c", "c": "b"}
    assert reconstruct_path(predecessors, "a", "b") == []


def test_works_with_integer_indices() -> None:
    assert reconstruct_path({1: 0, 2: 1}, 0, 2) == [0, 1, 2]
