"""Canonical export and fingerprinting of recommendation snapshots."""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

from .types import (
    AllNodes,
    ContextKey,
    Pair,
    RecommendationEntry,
    RecommendationIndex,
    Single,
    Snapshot,
    SourceNodes,
)


def _canonical_dumps(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def context_label(key: ContextKey) -> str:
    """Stable text form of a context key, e.g. ``pair:a#b``."""
    if isinstance(key, AllNodes):
        return "<all_nodes>"
    if isinstance(key, SourceNodes):
        return "<source_nodes>"
    if isinstance(key, Single):
        return f"single:{key.node_id}"
    if isinstance(key, Pair):
        return f"pair:{key.first}#{key.second}"
    raise TypeError(f"Unknown context key: {key!r}")


def _entry_dict(entry: RecommendationEntry) -> dict[str, Any]:
    return {
        "target_id": entry.target_id,
        "frequency": entry.frequency(),
        "frequency_sum": entry.frequency_sum,
        "sample_count": entry.sample_count,
        "total_frequency": entry.total_frequency,
    }


def index_to_dict(index: RecommendationIndex) -> dict[str, Any]:
    contexts = {}
    for key, lists in index.contexts.items():
        contexts[context_label(key)] = {
            "predecessors": [_entry_dict(e) for e in lists.predecessors],
            "successors": [_entry_dict(e) for e in lists.successors],
        }
    return {"contexts": dict(sorted(contexts.items()))}


def _names(snapshot: Snapshot) -> list[str]:
    names = list(snapshot.source_names)
    if len(names) < len(snapshot.indices):
        names.extend(f"source-{i}" for i in range(len(names), len(snapshot.indices)))
    return names


def snapshot_to_dict(snapshot: Snapshot) -> dict[str, Any]:
    """JSON-ready payload with contexts in sorted order.

    List order inside a context is kept, since it is the ranking.
    """
    return {
        "sources": [
            {"name": name, **index_to_dict(index)}
            for name, index in zip(_names(snapshot), snapshot.indices)
        ]
    }


def snapshot_hash(snapshot: Snapshot) -> str:
    """SHA-256 of the canonical payload; equal for structurally equal snapshots."""
    payload = _canonical_dumps(snapshot_to_dict(snapshot)).encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


def write_snapshot(snapshot: Snapshot, path: str | Path) -> str:
    """Write the snapshot payload with its hash to ``path``; returns the hash."""
    digest = snapshot_hash(snapshot)
    payload = {"version": 1, "snapshot_hash": digest, **snapshot_to_dict(snapshot)}
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(
        json.dumps(payload, indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )
    return digest
