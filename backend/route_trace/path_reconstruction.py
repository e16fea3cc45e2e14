from __future__ import annotations

from collections.abc import Mapping
from typing import TypeVar

NodeT = TypeVar("NodeT")


def reconstruct_path(predecessors: Mapping[NodeT, NodeT], start: NodeT, goal: NodeT) -> list[NodeT]:
    """Walk ``predecessors`` back from ``goal``; empty when the chain never reaches ``start``."""
    if start == goal:
        return [start]
    if goal not in predecessors:
        return []
    path = [goal]
    current = goal
    # At most len(predecessors) hops back to start.
    for _ in range(len(predecessors)):
        prev = predecessors.get(current)
        if prev is None:
            return []
        path.append(prev)
        if prev == start:
            path.reverse()
            return path
        current = prev
    return []
