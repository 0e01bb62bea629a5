"""Recommendation engine lifecycle: snapshot loading, reload listeners, queries."""

import logging
from typing import Callable, Hashable, Iterator, Protocol, Sequence

from . import joiner, query
from .builder import build_index
from .config import DEFAULT_RECOMMENDATION_CONFIG, RecommendationConfig
from .errors import SourceLoadFailure, UnsupportedQuery
from .types import (
    NOT_LOADED,
    Classifier,
    Direction,
    Loaded,
    RecommendationEntry,
    RecommendationIndex,
    RecommendationResult,
    Snapshot,
    UsageTriple,
)

log = logging.getLogger(__name__)

ReloadListener = Callable[[], None]


class StatisticsSource(Protocol):
    name: str

    def is_enabled(self) -> bool: ...

    def needs_update(self) -> bool: ...

    def triples(self) -> Iterator[UsageTriple]: ...


class RecommendationEngine:
    """Holds the current snapshot of per-source indices and answers queries.

    ``reload`` builds a complete new snapshot and swaps it in with a single
    assignment, so readers always see either the previous or the new one.
    """

    def __init__(
        self,
        sources: Sequence[StatisticsSource],
        classify: Classifier | None = None,
        config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
    ):
        self.sources = list(sources)
        self.config = config
        self._classify = classify
        self._snapshot: Snapshot | None = None
        self._listeners: list[ReloadListener] = []

    @property
    def snapshot(self) -> Snapshot | None:
        return self._snapshot

    def initialize(self, classify: Classifier) -> bool:
        """Set the node classifier and load recommendations unless already loaded.

        Returns:
            True if a snapshot is available afterwards.
        """
        self._classify = classify
        if self._snapshot is None:
            self.reload()
        else:
            log.debug("No need to reload the node recommendations")
        return self._snapshot is not None

    def add_reload_listener(self, listener: ReloadListener) -> None:
        self._listeners.append(listener)

    def remove_reload_listener(self, listener: ReloadListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _load_source(
        self, source: StatisticsSource, classify: Classifier
    ) -> RecommendationIndex | None:
        name = source.name
        log.info(f"Loading node recommendations from <{name}>")

        if not source.is_enabled():
            log.debug(f"Source <{name}> is disabled, skipped")
            return None
        if source.needs_update():
            log.info(f"Source <{name}> requires an update, skipped")
            return None

        try:
            return build_index(source.triples(), classify, self.config)
        except (OSError, SourceLoadFailure) as e:
            log.warning(f"Failed to load node recommendations from <{name}>: {e}")
            return None

    def reload(self) -> None:
        """(Re-)load recommendations from all sources and notify listeners.

        Sources that are disabled, need an update or fail to load are left out.
        When no source contributes, the snapshot is cleared.
        """
        classify = self._classify
        if classify is None:
            log.debug("Cannot load recommendations yet. No node classifier available.")
            return

        indices: list[RecommendationIndex] = []
        names: list[str] = []
        for source in self.sources:
            index = self._load_source(source, classify)
            if index is not None:
                indices.append(index)
                names.append(source.name)

        if indices:
            self._snapshot = Snapshot(indices=tuple(indices), source_names=tuple(names))
            log.info("Successfully (re-)loaded all node recommendations available")
        else:
            self._snapshot = None
            log.info("No statistics source provided node recommendations")

        for listener in list(self._listeners):
            listener()

    def num_loaded_sources(self) -> int:
        snapshot = self._snapshot
        return 0 if snapshot is None else len(snapshot)

    def is_enabled(self) -> bool:
        """True if at least one statistics source is enabled."""
        return any(source.is_enabled() for source in self.sources)

    def recommend(
        self,
        nodes: Sequence[Hashable] = (),
        direction: Direction = Direction.SUCCESSORS,
        graph: query.GraphNeighbors | None = None,
    ) -> RecommendationResult:
        """Recommendations per loaded source for zero or one selected node.

        Args:
            nodes: Empty to recommend workflow starting points, or exactly one
                node. Without ``graph`` the node is given by its node id; with
                ``graph`` it is the node's key in that workflow.
            direction: Successor or predecessor recommendations.
            graph: Workflow the node lives in, used for neighbour contexts.

        Raises:
            UnsupportedQuery: More than one node was given.
        """
        snapshot = self._snapshot
        if snapshot is None:
            return NOT_LOADED

        if len(nodes) > 1:
            raise UnsupportedQuery(
                "Recommendations for more than one node are not supported, yet."
            )

        if not nodes:
            lists = tuple(
                query.source_node_recommendations(index) for index in snapshot.indices
            )
            return Loaded(lists=lists, source_names=snapshot.source_names)

        node = nodes[0]
        node_id = graph.node_id(node) if graph is not None else str(node)
        lists = tuple(
            tuple(
                query.recommend_for_node(
                    index,
                    node_id,
                    direction,
                    graph=graph,
                    node=node,
                    config=self.config,
                )
            )
            for index in snapshot.indices
        )
        return Loaded(lists=lists, source_names=snapshot.source_names)

    def recommend_successors(
        self,
        nodes: Sequence[Hashable] = (),
        graph: query.GraphNeighbors | None = None,
    ) -> RecommendationResult:
        return self.recommend(nodes, Direction.SUCCESSORS, graph)

    def recommend_predecessors(
        self,
        nodes: Sequence[Hashable] = (),
        graph: query.GraphNeighbors | None = None,
    ) -> RecommendationResult:
        return self.recommend(nodes, Direction.PREDECESSORS, graph)

    def most_frequently_used(self) -> RecommendationResult:
        """Nodes sorted by how often they are used at all, per source."""
        snapshot = self._snapshot
        if snapshot is None:
            return NOT_LOADED
        lists = tuple(query.most_frequently_used(index) for index in snapshot.indices)
        return Loaded(lists=lists, source_names=snapshot.source_names)

    def join(
        self, lists: Sequence[Sequence[RecommendationEntry]]
    ) -> list[joiner.Row]:
        """Join per-source lists into deduplicated rows for side-by-side display."""
        return joiner.join(lists, config=self.config)
