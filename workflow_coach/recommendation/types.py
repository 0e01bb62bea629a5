"""Typed contracts for node recommendations."""

from dataclasses import dataclass, field
from enum import Enum
import math
from typing import Callable, Mapping


class NodeType(Enum):
    """Node types the recommender distinguishes."""

    SOURCE = "source"  # no input ports, starts a workflow
    OTHER = "other"


class Direction(Enum):
    """Which side of a node recommendations are requested for."""

    SUCCESSORS = "successors"
    PREDECESSORS = "predecessors"


Classifier = Callable[[str], NodeType | None]


@dataclass(frozen=True)
class UsageTriple:
    """One historical usage record: how often ``node`` sat between its neighbours."""

    predecessor: str | None = None
    node: str | None = None
    successor: str | None = None
    count: int = 0


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves upwards (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


@dataclass(frozen=True)
class RecommendationEntry:
    """A recommended node together with how often it was used in a context.

    Attributes:
        target_id: Node id being recommended.
        frequency_sum: Sum of the usage counts merged into this entry.
        sample_count: Number of samples ``frequency_sum`` averages over;
            stays 1 for summed contexts.
        total_frequency: Sum of ``frequency()`` over the list the entry was
            published in, the base for percentage display.
    """

    target_id: str
    frequency_sum: int
    sample_count: int = 1
    total_frequency: int = 0

    @classmethod
    def single(cls, target_id: str, count: int) -> "RecommendationEntry":
        """Fresh entry for one ingested triple."""
        return cls(
            target_id=target_id,
            frequency_sum=count,
            sample_count=1,
            total_frequency=count,
        )

    def frequency(self) -> int:
        """Aggregated frequency; the mean when merged with MEAN, the sum with SUM."""
        return round_half_up(self.frequency_sum / self.sample_count)


def entry_key(entry: RecommendationEntry) -> str:
    """Identity of an entry for deduplication and cross-source joining."""
    return entry.target_id


@dataclass(frozen=True)
class AllNodes:
    pass


@dataclass(frozen=True)
class SourceNodes:
    pass


@dataclass(frozen=True)
class Single:
    node_id: str


@dataclass(frozen=True)
class Pair:
    first: str
    second: str


ContextKey = AllNodes | SourceNodes | Single | Pair

ALL_NODES = AllNodes()
SOURCE_NODES = SourceNodes()


@dataclass(frozen=True)
class RecommendationLists:
    predecessors: tuple[RecommendationEntry, ...] = ()
    successors: tuple[RecommendationEntry, ...] = ()

    def for_direction(self, direction: Direction) -> tuple[RecommendationEntry, ...]:
        if direction is Direction.SUCCESSORS:
            return self.successors
        return self.predecessors


_EMPTY_LISTS = RecommendationLists()


@dataclass(frozen=True)
class RecommendationIndex:
    """Context-keyed recommendation lists built from one statistics source."""

    contexts: Mapping[ContextKey, RecommendationLists] = field(default_factory=dict)

    def lists(self, key: ContextKey) -> RecommendationLists:
        return self.contexts.get(key, _EMPTY_LISTS)

    def entries(
        self, key: ContextKey, direction: Direction
    ) -> tuple[RecommendationEntry, ...]:
        return self.lists(key).for_direction(direction)

    def __len__(self) -> int:
        return len(self.contexts)


@dataclass(frozen=True)
class Snapshot:
    """Complete set of per-source indices currently in effect."""

    indices: tuple[RecommendationIndex, ...]
    source_names: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.indices)


@dataclass(frozen=True)
class NotLoaded:
    """No snapshot is available: nothing loaded yet or every source unavailable."""

    reason: str = "no recommendations loaded"


@dataclass(frozen=True)
class Loaded:
    """Per-source recommendation lists, one list per snapshot slot."""

    lists: tuple[tuple[RecommendationEntry, ...], ...]
    source_names: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.lists)


RecommendationResult = Loaded | NotLoaded

NOT_LOADED = NotLoaded()


@dataclass(frozen=True)
class PortConnection:
    """One connection on a node port as seen from the queried node.

    ``neighbor_id`` is None when the node at the far end is not a plain node
    (e.g. a component); ``leaves_scope`` marks connections crossing the
    boundary of the visible workflow.
    """

    neighbor_id: str | None
    leaves_scope: bool = False
