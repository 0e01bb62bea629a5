"""Node catalog: maps node ids to node types.

Loaded from YAML::

    nodes:
      org.example.CsvReader: source
      org.example.RowFilter: other
"""

from pathlib import Path
from typing import Mapping

import yaml

from ..recommendation.types import NodeType


def parse_node_type(raw: str) -> NodeType:
    """Resolve a node type name case-insensitively."""
    for node_type in NodeType:
        if node_type.value == str(raw).strip().lower():
            return node_type
    valid = ", ".join(t.value for t in NodeType)
    raise ValueError(f"Invalid node type '{raw}'. Valid types: {valid}")


class NodeCatalog:
    """Classifier over a fixed set of installed nodes."""

    def __init__(self, nodes: Mapping[str, NodeType] | None = None):
        self.nodes: dict[str, NodeType] = dict(nodes or {})

    def classify(self, node_id: str) -> NodeType | None:
        """Node type for ``node_id``, or None if the node is not installed."""
        return self.nodes.get(node_id)

    __call__ = classify

    def __contains__(self, node_id: str) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    @classmethod
    def from_dict(cls, data: dict | None) -> "NodeCatalog":
        raw_nodes = (data or {}).get("nodes") or {}
        if not isinstance(raw_nodes, dict):
            raise ValueError("'nodes' must be a mapping of node id to node type")
        return cls({str(k): parse_node_type(v) for k, v in raw_nodes.items()})

    @classmethod
    def load(cls, path: str | Path) -> "NodeCatalog":
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data)
