"""Rank-synchronized joining of recommendation lists from several sources."""

from itertools import combinations
from typing import Callable, Hashable, Sequence

from .config import DEFAULT_RECOMMENDATION_CONFIG, RecommendationConfig
from .types import RecommendationEntry, entry_key

Row = tuple[RecommendationEntry | None, ...]
KeyFn = Callable[[RecommendationEntry], Hashable]


def _colex_combinations(n: int, size: int) -> list[tuple[int, ...]]:
    """Index subsets of ``size`` in colexicographic order (0,1), (0,2), (1,2), (0,3)..."""
    return sorted(combinations(range(n), size), key=lambda combo: combo[::-1])


def take_largest_agreeing(
    slots: list[RecommendationEntry | None],
    key: KeyFn = entry_key,
) -> Row | None:
    """Remove and return the largest group of slots holding the same entry.

    ``slots`` is modified in place: the returned slots are cleared. Returns
    None once every slot is empty.
    """
    n = len(slots)
    for size in range(n, 0, -1):
        for indices in _colex_combinations(n, size):
            first = slots[indices[0]]
            if first is None:
                continue
            first_key = key(first)
            if all(
                slots[i] is not None and key(slots[i]) == first_key
                for i in indices[1:]
            ):
                row: list[RecommendationEntry | None] = [None] * n
                for i in indices:
                    row[i] = slots[i]
                    slots[i] = None
                return tuple(row)
    return None


def join_rank(
    lists: Sequence[Sequence[RecommendationEntry]],
    rank: int,
    key: KeyFn = entry_key,
) -> list[Row]:
    slots = [entries[rank] if rank < len(entries) else None for entries in lists]
    rows: list[Row] = []
    while True:
        row = take_largest_agreeing(slots, key)
        if row is None:
            return rows
        rows.append(row)


def join_by_rank(
    lists: Sequence[Sequence[RecommendationEntry]],
    key: KeyFn = entry_key,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> list[Row]:
    """Join lists rank by rank, merging sources that agree at a rank.

    For ``[a1, a2, a3]`` and ``[b1, b2, b3]`` with ``a2 == b2`` the result is
    ``[a1, _], [_, b1], [a2, b2], [a3, _], [_, b3]``.
    """
    if len(lists) > config.max_join_sources:
        raise ValueError(
            f"Cannot join {len(lists)} sources, the limit is {config.max_join_sources}"
        )
    max_len = max((len(entries) for entries in lists), default=0)
    rows: list[Row] = []
    for rank in range(max_len):
        rows.extend(join_rank(lists, rank, key))
    return rows


def first_present(row: Row) -> RecommendationEntry | None:
    for entry in row:
        if entry is not None:
            return entry
    return None


def remove_duplicates(rows: Sequence[Row], key: KeyFn = entry_key) -> list[Row]:
    """Drop rows whose identity (first non-empty slot) was already exported."""
    seen: set = set()
    unique: list[Row] = []
    for row in rows:
        entry = first_present(row)
        if entry is None:
            continue
        identity = key(entry)
        if identity in seen:
            continue
        seen.add(identity)
        unique.append(row)
    return unique


def join(
    lists: Sequence[Sequence[RecommendationEntry]],
    key: KeyFn = entry_key,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> list[Row]:
    """Rank-join per-source lists and export every target id once."""
    return remove_duplicates(join_by_rank(lists, key, config), key)
