"""Recommendation queries against a built index."""

from typing import Hashable, Iterable, Protocol

from .aggregation import finalize
from .config import DEFAULT_RECOMMENDATION_CONFIG, RecommendationConfig
from .types import (
    ALL_NODES,
    SOURCE_NODES,
    Direction,
    Pair,
    PortConnection,
    RecommendationEntry,
    RecommendationIndex,
    Single,
    entry_key,
)


class GraphNeighbors(Protocol):
    def node_id(self, node: Hashable) -> str: ...

    def port_connections(
        self, node: Hashable, direction: Direction
    ) -> list[list[PortConnection]]: ...


def _union(
    gathered: dict[str, RecommendationEntry],
    entries: Iterable[RecommendationEntry],
) -> None:
    """Add entries whose target is not present yet; first occurrence wins."""
    for entry in entries:
        gathered.setdefault(entry_key(entry), entry)


def gather_successor_context(
    index: RecommendationIndex,
    graph: GraphNeighbors,
    node: Hashable,
    node_id: str,
) -> dict[str, RecommendationEntry]:
    """Successor candidates implied by the upstream neighbours of ``node``.

    Walks the input ports in order. An unconnected port or a connection that
    leaves the visible workflow ends the walk with what was gathered so far.
    """
    gathered: dict[str, RecommendationEntry] = {}
    for connections in graph.port_connections(node, Direction.SUCCESSORS):
        if not connections or any(conn.leaves_scope for conn in connections):
            return gathered
        for conn in connections:
            if conn.neighbor_id is None:
                continue
            _union(
                gathered,
                index.entries(Pair(conn.neighbor_id, node_id), Direction.SUCCESSORS),
            )
    return gathered


def gather_predecessor_context(
    index: RecommendationIndex,
    graph: GraphNeighbors,
    node: Hashable,
    node_id: str,
) -> dict[str, RecommendationEntry]:
    """Predecessor candidates implied by the downstream neighbours of ``node``.

    Connections leaving the visible workflow are skipped; the remaining
    ports are still processed.
    """
    gathered: dict[str, RecommendationEntry] = {}
    for connections in graph.port_connections(node, Direction.PREDECESSORS):
        for conn in connections:
            if conn.leaves_scope or conn.neighbor_id is None:
                continue
            _union(
                gathered,
                index.entries(
                    Pair(node_id, conn.neighbor_id), Direction.PREDECESSORS
                ),
            )
    return gathered


def recommend_for_node(
    index: RecommendationIndex,
    node_id: str,
    direction: Direction,
    *,
    graph: GraphNeighbors | None = None,
    node: Hashable | None = None,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> list[RecommendationEntry]:
    """Ranked recommendations for a single node of one source's index.

    Args:
        index: Index of one statistics source.
        node_id: Node id of the queried node.
        direction: Successor or predecessor recommendations.
        graph: Optional workflow the node lives in; enables the
            neighbour-pair contexts.
        node: Key of the node within ``graph`` (defaults to ``node_id``).
        config: Ranking configuration.

    Returns:
        Fresh entries sorted by descending frequency, without ``node_id``
        itself, with totals recomputed over the returned list.
    """
    gathered: dict[str, RecommendationEntry] = {}
    if graph is not None:
        graph_node = node_id if node is None else node
        if direction is Direction.SUCCESSORS:
            gathered = gather_successor_context(index, graph, graph_node, node_id)
        else:
            gathered = gather_predecessor_context(index, graph, graph_node, node_id)

    _union(gathered, index.entries(Single(node_id), direction))

    candidates = [
        entry for key, entry in gathered.items() if key != node_id
    ]
    return finalize(candidates, config)


def source_node_recommendations(
    index: RecommendationIndex,
) -> tuple[RecommendationEntry, ...]:
    """Nodes to start a workflow with; identical for both directions."""
    return index.entries(SOURCE_NODES, Direction.SUCCESSORS)


def most_frequently_used(
    index: RecommendationIndex,
) -> tuple[RecommendationEntry, ...]:
    return index.entries(ALL_NODES, Direction.SUCCESSORS)
