"""Statistics sources and node classification."""

from .catalog import NodeCatalog
from .jsonl import JsonLinesTripleSource
from .memory import InMemoryTripleSource

__all__ = ["InMemoryTripleSource", "JsonLinesTripleSource", "NodeCatalog"]
