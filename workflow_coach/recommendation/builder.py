"""Index construction from raw usage triples."""

from dataclasses import dataclass
import logging
from typing import Iterable

from .aggregation import aggregate_index
from .config import DEFAULT_RECOMMENDATION_CONFIG, RecommendationConfig
from .types import (
    ALL_NODES,
    SOURCE_NODES,
    Classifier,
    ContextKey,
    NodeType,
    Pair,
    RecommendationEntry,
    RecommendationIndex,
    Single,
    UsageTriple,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Endpoint:
    node_id: str
    node_type: NodeType

    @property
    def is_source(self) -> bool:
        return self.node_type is NodeType.SOURCE


def _resolve(node_id: str | None, classify: Classifier) -> _Endpoint | None:
    """Known endpoint, or None for absent and unresolvable ids alike."""
    if not node_id:
        return None
    node_type = classify(node_id)
    if node_type is None:
        return None
    return _Endpoint(node_id=node_id, node_type=node_type)


class TripleIndexBuilder:
    """Collects recommendation entries per context for one statistics source.

    Working lists stay private to the builder until ``build`` aggregates them
    into an immutable :class:`RecommendationIndex`.
    """

    def __init__(
        self,
        classify: Classifier,
        config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
    ):
        self.classify = classify
        self.config = config
        self._working: dict[ContextKey, tuple[list, list]] = {}
        self.stats = {"triples": 0, "unresolved": 0}

    def _add(self, key: ContextKey, target_id: str, count: int, successor: bool):
        predecessors, successors = self._working.setdefault(key, ([], []))
        entry = RecommendationEntry.single(target_id, count)
        if successor:
            successors.append(entry)
        else:
            predecessors.append(entry)

    def add_triple(self, triple: UsageTriple) -> None:
        """Apply every ingestion rule the triple satisfies."""
        predecessor = _resolve(triple.predecessor, self.classify)
        node = _resolve(triple.node, self.classify)
        successor = _resolve(triple.successor, self.classify)
        count = triple.count

        self.stats["triples"] += 1
        if (
            (triple.predecessor and predecessor is None)
            or (triple.node and node is None)
            or (triple.successor and successor is None)
        ):
            self.stats["unresolved"] += 1

        # every usage of a node, for the most frequently used nodes
        if node is not None:
            self._add(ALL_NODES, node.node_id, count, successor=True)

        # workflow starts recorded by their first node only
        if (
            node is None
            and predecessor is None
            and successor is not None
            and successor.is_source
        ):
            self._add(SOURCE_NODES, successor.node_id, count, successor=True)

        # source nodes used as the node itself
        if predecessor is None and node is not None and node.is_source:
            self._add(SOURCE_NODES, node.node_id, count, successor=True)

        # node -> successor, without a predecessor
        if predecessor is None and node is not None and successor is not None:
            self._add(Single(node.node_id), successor.node_id, count, successor=True)
            self._add(Single(successor.node_id), node.node_id, count, successor=False)

        # full triple
        if predecessor is not None and node is not None and successor is not None:
            self._add(
                Pair(predecessor.node_id, node.node_id),
                successor.node_id,
                count,
                successor=True,
            )
            self._add(
                Pair(node.node_id, successor.node_id),
                predecessor.node_id,
                count,
                successor=False,
            )
            self._add(Single(predecessor.node_id), node.node_id, count, successor=True)
            self._add(Single(node.node_id), predecessor.node_id, count, successor=False)

    def build(self) -> RecommendationIndex:
        index = aggregate_index(self._working, self.config)
        log.debug(
            f"Built index: triples={self.stats['triples']} "
            f"unresolved={self.stats['unresolved']} contexts={len(index)}"
        )
        return index


def build_index(
    triples: Iterable[UsageTriple],
    classify: Classifier,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> RecommendationIndex:
    """Build a recommendation index from a stream of usage triples."""
    builder = TripleIndexBuilder(classify, config)
    for triple in triples:
        builder.add_triple(triple)
    return builder.build()
