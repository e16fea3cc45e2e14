from __future__ import annotations

from .graph_model import GraphModel
from .logging_utils import log_event
from .search_engine import search
from .search_models import FallbackSearchResult, SamplingConfig, SearchStrategy


def search_with_fallback(
    graph: GraphModel,
    start_id: str,
    goal_id: str,
    strategy: SearchStrategy | str = SearchStrategy.ASTAR,
    sampling: SamplingConfig | None = None,
    *,
    enabled: bool = True,
) -> FallbackSearchResult:
    """Directed search, retried once on the symmetrized graph when no path exists.

    When the retry also fails the directed result (with its trace) is returned.
    """
    primary = search(graph, start_id, goal_id, strategy, sampling)
    if primary.found or not enabled:
        return FallbackSearchResult(result=primary, fallback_used=False)

    undirected = graph.symmetrized()
    log_event(
        "route_search_fallback_attempted",
        strategy=SearchStrategy(strategy).value,
        start_node=start_id,
        goal_node=goal_id,
        directed_visited=len(primary.visited_order),
        undirected_edge_count=undirected.edge_count,
    )
    retry = search(undirected, start_id, goal_id, strategy, sampling)
    if retry.found:
        return FallbackSearchResult(result=retry, fallback_used=True)
    return FallbackSearchResult(result=primary, fallback_used=False)
