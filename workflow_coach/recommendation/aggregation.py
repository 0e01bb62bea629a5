"""Deduplication and ranking of recommendation lists."""

from dataclasses import replace
from enum import Enum
from typing import Iterable

from .config import DEFAULT_RECOMMENDATION_CONFIG, RecommendationConfig
from .types import (
    AllNodes,
    ContextKey,
    RecommendationEntry,
    RecommendationIndex,
    RecommendationLists,
    SourceNodes,
    entry_key,
)


class AggregationPolicy(Enum):
    """How duplicate entries for the same target are merged."""

    MEAN = "mean"  # every merged sample counts once
    SUM = "sum"  # frequencies add up, the sample count stays at one


def policy_for(key: ContextKey) -> AggregationPolicy:
    """Independent contexts (all nodes, source nodes) sum; the rest average."""
    if isinstance(key, (AllNodes, SourceNodes)):
        return AggregationPolicy.SUM
    return AggregationPolicy.MEAN


def merge_entries(
    accumulator: RecommendationEntry,
    other: RecommendationEntry,
    policy: AggregationPolicy,
) -> RecommendationEntry:
    sample_increase = 1 if policy is AggregationPolicy.MEAN else 0
    return replace(
        accumulator,
        frequency_sum=accumulator.frequency_sum + other.frequency_sum,
        sample_count=accumulator.sample_count + sample_increase,
    )


def aggregate(
    entries: Iterable[RecommendationEntry],
    policy: AggregationPolicy,
) -> list[RecommendationEntry]:
    """Collapse entries sharing a target id into the first occurrence.

    The result keeps first-occurrence order.
    """
    merged: dict[str, RecommendationEntry] = {}
    for entry in entries:
        key = entry_key(entry)
        existing = merged.get(key)
        if existing is None:
            merged[key] = entry
        else:
            merged[key] = merge_entries(existing, entry, policy)
    return list(merged.values())


def _frequency_sort_key(entry: RecommendationEntry) -> int:
    return -entry.frequency()


def _frequency_then_id_sort_key(entry: RecommendationEntry) -> tuple[int, str]:
    return (-entry.frequency(), entry.target_id)


def sort_by_frequency(
    entries: Iterable[RecommendationEntry],
    *,
    tie_break_by_id: bool = False,
) -> list[RecommendationEntry]:
    """Sort descending by frequency; equal frequencies keep their input order."""
    key = _frequency_then_id_sort_key if tie_break_by_id else _frequency_sort_key
    return sorted(entries, key=key)


def with_total_frequency(
    entries: Iterable[RecommendationEntry],
) -> list[RecommendationEntry]:
    """Return copies carrying the summed frequency of the whole list."""
    items = list(entries)
    total = sum(entry.frequency() for entry in items)
    return [replace(entry, total_frequency=total) for entry in items]


def finalize(
    entries: Iterable[RecommendationEntry],
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> list[RecommendationEntry]:
    """Rank a list and stamp the total frequency used for percentages."""
    ranked = sort_by_frequency(entries, tie_break_by_id=config.tie_break_by_id)
    return with_total_frequency(ranked)


def aggregate_lists(
    key: ContextKey,
    predecessors: list[RecommendationEntry],
    successors: list[RecommendationEntry],
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> RecommendationLists:
    policy = policy_for(key)
    aggregated_predecessors = aggregate(predecessors, policy)
    aggregated_successors = aggregate(successors, policy)

    if policy is AggregationPolicy.SUM:
        # Ranked once here; queries hand these lists out unchanged.
        aggregated_successors = finalize(aggregated_successors, config)

    return RecommendationLists(
        predecessors=tuple(aggregated_predecessors),
        successors=tuple(aggregated_successors),
    )


def aggregate_index(
    working: dict[ContextKey, tuple[list, list]],
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> RecommendationIndex:
    """Turn the builder's working lists into a published, immutable index."""
    contexts = {
        key: aggregate_lists(key, predecessors, successors, config)
        for key, (predecessors, successors) in working.items()
    }
    return RecommendationIndex(contexts=contexts)
